"""
Bearer token handling.

Callers present an HS256 JWT issued by the application's auth provider. The
``sub`` claim is the user id that keys every credential record.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import jwt

from healthsync.core.config import settings
from healthsync.core.time_utils import utc_now


def create_access_token(
    subject: str,
    *,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Create a signed access token. Used by the admin CLI and tests."""
    expire = utc_now() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims: Dict[str, Any] = {"sub": subject, "exp": expire, "iat": utc_now()}
    if email:
        claims["email"] = email
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    if extra_claims:
        claims.update(extra_claims)
    return jwt.encode(claims, settings.effective_jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a bearer token.

    Raises:
        jose.ExpiredSignatureError: If the token has expired
        jose.JWTError: If the signature, audience or format is invalid
    """
    return jwt.decode(
        token,
        settings.effective_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options={"verify_aud": bool(settings.jwt_audience)},
    )
