"""
auth/service.py -- Registration and password authentication.

AuthService depends only on a UserRepository (see auth/store.py) and the
configured admin token, so tests can hand it an in-memory fake.

Error texts are part of the API contract -- the HTTP layer shows them verbatim.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from auth.models import User
from auth.store import UserRepository
from auth.tokens import burn_password_check, hash_password, tokens_match, verify_password
from auth.validators import validate_login, validate_password
from core.errors import NotFound, PermissionDenied, Unauthorized

logger = logging.getLogger("astra.auth")


class AuthService:
    def __init__(self, users: UserRepository, admin_token: str) -> None:
        self.users = users
        self._admin_token = admin_token

    def register(self, login: str, password: str, admin_token: str) -> User:
        """Create a user after checking the admin token and credential format.

        Raises:
            PermissionDenied: admin_token does not match the configured secret.
            ValidationError:  login or password breaks a format rule, or the
                              login is already taken.
            StorageError:     the user could not be persisted.
        """
        if not tokens_match(admin_token, self._admin_token):
            raise PermissionDenied("invalid admin token")
        validate_login(login)
        validate_password(password)
        user = User(
            id=str(uuid.uuid4()),
            login=login,
            hashed_password=hash_password(password),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.users.create(user)
        logger.info("Registered user %s (%s)", user.login, user.id)
        return user

    def authenticate(self, login: str, password: str) -> User:
        """Return the stored user if the password matches.

        bcrypt runs whether or not the login exists, so response time does not
        reveal which logins are registered. The error texts still differ.
        """
        user = self.users.get_by_login(login)
        if user is None:
            burn_password_check(password)
            raise NotFound("user not found")
        if not verify_password(password, user.hashed_password):
            raise Unauthorized("invalid password")
        return user
