"""
auth/dependencies.py -- FastAPI Depends() helpers for session authentication.

This is the one token-resolution path for every protected route. The token is
looked for in priority order:
  1. `token` query parameter.
  2. Authorization header -- the raw value, or the part after "Bearer ".
  3. `token` field of a multipart or urlencoded form body.

The token must map to a live session in app.state.sessions, and the session's
user must still exist in app.state.user_store. The session and user are put
on request.state and returned together as an AuthContext.

Layer rule: no imports from api/, documents/, or cache/.
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from auth.models import Session, User
from core.errors import StorageError, Unauthorized

_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass(frozen=True)
class AuthContext:
    session: Session
    user: User


async def get_request_token(request: Request) -> str:
    """Return the bearer token from query, header, or form. Empty string if none."""
    token = request.query_params.get("token", "")
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        auth_header = auth_header[7:]
    if auth_header:
        return auth_header

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        # Starlette caches the parsed form on the request, so routes that
        # declare Form()/File() parameters read the same parsed body.
        form = await request.form()
        value = form.get("token")
        if isinstance(value, str) and value:
            return value
    return ""


async def require_session(request: Request) -> AuthContext:
    """Require a valid session. Raises Unauthorized (HTTP 401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(auth: AuthContext = Depends(require_session)): ...
    """
    token = await get_request_token(request)
    if not token:
        raise Unauthorized("missing authentication token")

    session = request.app.state.sessions.validate(token)
    if session is None:
        raise Unauthorized("invalid or expired token")

    try:
        user = request.app.state.user_store.get_by_id(session.user_id)
    except StorageError:
        user = None
    if user is None:
        raise Unauthorized("user not found")

    request.state.session = session
    request.state.user = user
    return AuthContext(session=session, user=user)
