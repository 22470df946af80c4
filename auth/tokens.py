"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt with the library's default cost factor (gensalt()).
       Bcrypt is the right choice for low-entropy secrets (passwords) because
       its cost factor makes brute-force expensive. The _DUMMY_HASH constant
       enables timing equalization in AuthService.authenticate() so response
       time does not reveal whether a login exists.

  Session tokens: uuid4 strings. They are opaque to clients and only ever
       looked up in SessionStore; nothing about the user is encoded in them.

  Admin token: compared with hmac.compare_digest so the comparison time does
       not leak how many leading characters matched.

Layer rule: no imports from api/, documents/, or cache/.
"""

from __future__ import annotations

import hmac
import uuid

import bcrypt

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
#
# Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
# wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
# rejects with an explicit error.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt rejects input over 72 bytes. auth.validators.validate_password
    enforces that limit on UTF-8 bytes before anything reaches this call.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage or over-long input
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("astra_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison against a dummy hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a fresh opaque session token (uuid4, 122 random bits)."""
    return str(uuid.uuid4())


def tokens_match(supplied: str, expected: str) -> bool:
    """Constant-time string comparison for shared secrets."""
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))
