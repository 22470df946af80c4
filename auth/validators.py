"""
auth/validators.py -- Login and password format rules for registration.

Pure functions: no I/O, no state. Each raises core.errors.ValidationError with
the exact text the client sees, and rules are checked in a fixed order so the
first failing rule is the one reported.

Login:    at least 8 characters, latin letters and digits only.
Password: at least 8 characters and at most 72 UTF-8 bytes, upper and lower case letters, a digit, and
          one character from SPECIAL_CHARS.
"""

import re

from core.errors import ValidationError

MIN_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt input limit
SPECIAL_CHARS = "!@#$%^&*()-_=+[]{}|;:',.<>?/`~"

_LOGIN_RE = re.compile(r"^[A-Za-z0-9]+$")


def validate_login(login: str) -> None:
    if len(login) < MIN_LENGTH:
        raise ValidationError(f"login must be at least {MIN_LENGTH} characters")
    if not _LOGIN_RE.match(login):
        raise ValidationError("login must contain only latin letters and digits")


def validate_password(password: str) -> None:
    """Check password length and character classes.

    Only ASCII letters count toward the upper/lower requirement.
    """
    if len(password) < MIN_LENGTH:
        raise ValidationError(f"password must be at least {MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    has_upper = any("A" <= c <= "Z" for c in password)
    has_lower = any("a" <= c <= "z" for c in password)
    has_digit = any("0" <= c <= "9" for c in password)
    has_special = any(c in SPECIAL_CHARS for c in password)
    if not (has_upper and has_lower):
        raise ValidationError("password must contain both upper and lower case letters")
    if not has_digit:
        raise ValidationError("password must contain at least one digit")
    if not has_special:
        raise ValidationError("password must contain at least one special character")
