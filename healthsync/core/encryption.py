"""
Encryption at rest for provider credentials.

Client secrets, OAuth tokens and webhook keys are stored as Fernet ciphertext
in ``api_configurations`` and decrypted only when an outbound call needs them.
The Fernet key is derived from SECRET_KEY with HKDF-SHA256, one cipher per
distinct SECRET_KEY value. Rotating SECRET_KEY makes every stored credential
unreadable; users then have to reconnect their integrations.

Usage:
    from healthsync.core.encryption import encrypt_secret, decrypt_secret

    stored = encrypt_secret("ya29.a0Af...")
    plaintext = decrypt_secret(stored)
"""
import base64
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from healthsync.core.config import settings
from healthsync.core.logging_config import log_error

KEY_INFO = b"healthsync-credential-encryption"

# Every Fernet token starts with version byte 0x80, which base64-encodes to "gAAAAA"
FERNET_PREFIX = "gAAAAA"


class UnreadableSecretError(ValueError):
    """A stored value could not be decrypted with the current SECRET_KEY."""


@lru_cache(maxsize=4)
def _cipher_for(secret_key: str) -> Fernet:
    derived = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=KEY_INFO).derive(
        secret_key.encode("utf-8")
    )
    return Fernet(base64.urlsafe_b64encode(derived))


def credential_cipher() -> Fernet:
    if not settings.secret_key:
        raise ValueError(
            "SECRET_KEY must be set for encryption. "
            "Set it in your .env file or environment variables."
        )
    return _cipher_for(settings.secret_key)


def encrypt_secret(value: str) -> str:
    """
    Encrypt one credential value.

    Raises:
        ValueError: If ``value`` is blank
    """
    if not value or not value.strip():
        raise ValueError("Cannot encrypt an empty credential value")
    return credential_cipher().encrypt(value.encode("utf-8")).decode("ascii")


def decrypt_secret(stored: str) -> str:
    """
    Decrypt a value written by :func:`encrypt_secret`.

    Raises:
        UnreadableSecretError: If the ciphertext is corrupt or SECRET_KEY changed
    """
    if not stored or not stored.strip():
        raise ValueError("Cannot decrypt an empty credential value")

    try:
        return credential_cipher().decrypt(stored.encode("ascii")).decode("utf-8")
    except (InvalidToken, UnicodeError) as e:
        log_error(e, action="credential_decryption")
        raise UnreadableSecretError(
            "Stored credential could not be decrypted. It is corrupted or SECRET_KEY "
            "has changed; reconnect the integration."
        ) from e


def encrypt_optional(value: Optional[str]) -> Optional[str]:
    """Encrypt a nullable column value; blank values are stored as NULL."""
    if value is None or not value.strip():
        return None
    return encrypt_secret(value)


def decrypt_optional(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return decrypt_secret(value)


def is_encrypted(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(FERNET_PREFIX)


def reset_key_cache() -> None:
    """Drop derived ciphers. Tests call this between SECRET_KEY changes."""
    _cipher_for.cache_clear()
