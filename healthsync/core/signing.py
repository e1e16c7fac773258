"""
Signed, time-bounded OAuth state tokens.

The state parameter carried through a provider redirect is URL-safe base64 of a
JSON object:

    {"user_id": ..., "provider": ..., "nonce": ..., "timestamp": ..., "signature": ...}

The signature is HMAC-SHA256 over a canonical message built from the other
four fields:

    HEALTHSYNC-STATE-V1
    <SHA256_HEX_OF_CANONICAL_JSON_FIELDS>

Canonical JSON uses sorted keys and no whitespace, so the signature does not
depend on how the payload was serialized.
"""
import base64
import binascii
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from healthsync.core.exceptions import InvalidStateError

STATE_SIGNATURE_VERSION = "HEALTHSYNC-STATE-V1"
STATE_FIELDS = ("user_id", "provider", "nonce", "timestamp")


class OAuthState(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    provider: str
    nonce: str
    timestamp: int


def generate_canonical_signature(*, fields: Dict[str, Any], secret: str) -> str:
    """
    Generate HMAC-SHA256 signature over the canonical JSON of ``fields``.

    Returns:
        Hex-encoded HMAC-SHA256 signature (64 characters)

    Raises:
        ValueError: If fields contain non-JSON-serializable values
    """
    try:
        canonical_fields = json.dumps(fields, sort_keys=True, separators=(',', ':'))
    except (TypeError, ValueError) as e:
        raise ValueError(
            f"state contains non-JSON-serializable value: {str(e)}"
        ) from e

    fields_hash = hashlib.sha256(canonical_fields.encode('utf-8')).hexdigest()
    canonical_message = f"{STATE_SIGNATURE_VERSION}\n{fields_hash}"

    return hmac.new(
        secret.encode('utf-8'),
        canonical_message.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()


def _default_secret() -> str:
    from healthsync.core.config import settings
    return settings.secret_key


def issue_state(user_id: str, provider: str, *, secret: Optional[str] = None, now: Optional[int] = None) -> str:
    """Build a signed state token for ``user_id`` starting an OAuth flow with ``provider``."""
    fields = {
        "user_id": user_id,
        "provider": provider,
        "nonce": secrets.token_urlsafe(16),
        "timestamp": int(now if now is not None else time.time()),
    }
    payload = dict(fields)
    payload["signature"] = generate_canonical_signature(fields=fields, secret=secret or _default_secret())
    raw = json.dumps(payload, separators=(',', ':')).encode('utf-8')
    return base64.urlsafe_b64encode(raw).decode('ascii')


def decode_state(token: str) -> Dict[str, Any]:
    """Decode a state token without verifying it."""
    if not token or not token.strip():
        raise InvalidStateError("State parameter is empty")

    padded = token.strip() + "=" * (-len(token.strip()) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode('ascii'))
        payload = json.loads(raw.decode('utf-8'))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidStateError("State parameter could not be decoded") from e

    if not isinstance(payload, dict):
        raise InvalidStateError("State parameter is not a JSON object")
    return payload


def verify_state(
    token: str,
    provider: str,
    *,
    secret: Optional[str] = None,
    max_age_seconds: Optional[int] = None,
    clock_skew_seconds: Optional[int] = None,
    now: Optional[int] = None,
) -> OAuthState:
    """
    Verify a state token issued by :func:`issue_state`.

    Raises:
        InvalidStateError: If the token is undecodable, incomplete, issued for
            another provider, carries a bad signature, or is outside its
            validity window.
    """
    from healthsync.core.config import settings

    payload = decode_state(token)

    missing = [name for name in STATE_FIELDS + ("signature",) if name not in payload]
    if missing:
        raise InvalidStateError(f"State is missing fields: {', '.join(missing)}")

    fields = {name: payload[name] for name in STATE_FIELDS}
    if not isinstance(fields["user_id"], str) or not fields["user_id"]:
        raise InvalidStateError("State user_id is invalid")
    if not isinstance(fields["timestamp"], int) or isinstance(fields["timestamp"], bool):
        raise InvalidStateError("State timestamp is invalid")

    if fields["provider"] != provider:
        raise InvalidStateError("State was issued for a different provider")

    try:
        expected = generate_canonical_signature(fields=fields, secret=secret or _default_secret())
    except ValueError as e:
        raise InvalidStateError(str(e)) from e

    signature = payload["signature"]
    if not isinstance(signature, str) or not hmac.compare_digest(expected, signature):
        raise InvalidStateError("State signature mismatch")

    max_age = max_age_seconds if max_age_seconds is not None else settings.oauth_state_ttl_seconds
    skew = clock_skew_seconds if clock_skew_seconds is not None else settings.oauth_state_clock_skew_seconds
    current = int(now if now is not None else time.time())
    age = current - fields["timestamp"]
    if age > max_age:
        raise InvalidStateError("State has expired")
    if age < -skew:
        raise InvalidStateError("State timestamp is in the future")

    return OAuthState(**fields)
