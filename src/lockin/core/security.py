"""Password hashing and access tokens."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from lockin.core.settings import Settings, settings as default_settings

PBKDF2_ITERATIONS = 120_000
_SCHEME = "pbkdf2_sha256"


def hash_password(password: str, *, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Return a salted PBKDF2-SHA256 hash in ``scheme$iterations$salt$hash`` form."""
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a hash produced by ``hash_password``."""
    try:
        scheme, iterations, salt_hex, digest_hex = encoded.split("$")
        if scheme != _SCHEME:
            return False
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations)
        )
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), digest_hex)


def create_access_token(subject: str, config: Settings | None = None) -> str:
    """Create a JWT access token whose ``sub`` is the user id."""
    config = config or default_settings
    expire = datetime.now(UTC) + timedelta(minutes=config.access_token_expire_minutes)
    to_encode: dict[str, object] = {"sub": subject, "exp": expire}
    encoded_jwt: str = jwt.encode(to_encode, config.secret_key, algorithm=config.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str, config: Settings | None = None) -> str | None:
    """Return the user id carried by ``token``, or None if it is invalid or expired."""
    config = config or default_settings
    try:
        payload = jwt.decode(token, config.secret_key, algorithms=[config.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) else None
