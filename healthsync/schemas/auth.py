"""
Authenticated caller.
"""
from typing import Optional

from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    """The bearer token's subject. Users live in the auth provider, not in this database."""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
