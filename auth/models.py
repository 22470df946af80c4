"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these own the shape.

Layer rule: no imports from api/, documents/, or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered account.

    id is a UUID4 string assigned by AuthService.register() before the record
    is written. hashed_password is the bcrypt hash and must never leave the
    service layer -- API response models do not carry it.
    """

    login: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None  # ISO 8601, UTC


@dataclass(frozen=True)
class Session:
    """An authenticated bearer session.

    Immutable once created. Lives in SessionStore until logout or process
    restart -- there is no TTL on sessions.
    """

    token: str
    user_id: str
    login: str
    created_at: datetime
