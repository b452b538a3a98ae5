"""
Security primitives for the wishlist service.

- Password hashing and verification (argon2id)
- Random bearer tokens for session cookies and invite codes
- base64url encoding of tokens for transport
"""

import base64
import binascii
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError


# Name of the cookie carrying the session token
SESSION_COOKIE_NAME = "wishlist_session_id"

# Raw token width in bytes (256 bits)
TOKEN_BYTES = 32

# Default lifetimes
SESSION_TTL = timedelta(days=7)
INVITE_CODE_TTL = timedelta(days=7)

_hasher = PasswordHasher()


def get_password_hash(password: str) -> str:
    """Hash a password into an encoded argon2 string."""
    return _hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against an encoded argon2 hash.

    Malformed hashes are treated as a mismatch.
    """
    try:
        return _hasher.verify(hashed_password, plain_password)
    except (VerificationError, InvalidHashError):
        return False


@lru_cache()
def _dummy_hash() -> str:
    return _hasher.hash(secrets.token_urlsafe(16))


def burn_password_check(plain_password: str) -> None:
    """
    Run a verification against a throwaway hash.

    Used when the account lookup misses so that the response takes as long as
    a real mismatch.
    """
    verify_password(plain_password, _dummy_hash())


def generate_token() -> bytes:
    """Generate a new uniformly random token."""
    return secrets.token_bytes(TOKEN_BYTES)


def encode_token(token: bytes) -> str:
    """Encode a raw token as unpadded base64url, safe to use unquoted in a cookie."""
    return base64.urlsafe_b64encode(token).decode("ascii").rstrip("=")


def decode_token(value: Optional[str]) -> Optional[bytes]:
    """
    Decode a base64url token.

    Returns None when the value is missing, undecodable or the wrong width.
    """
    if not value:
        return None

    value = value.strip()
    # Tolerate stripped padding
    value += "=" * (-len(value) % 4)
    try:
        raw = base64.b64decode(value.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, ValueError, UnicodeEncodeError):
        return None

    if len(raw) != TOKEN_BYTES:
        return None
    return raw
