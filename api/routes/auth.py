"""
api/routes/auth.py -- Registration, login, and logout endpoints.

Routes:
  POST   /api/register        -- create a user (requires the admin token in the body)
  POST   /api/auth            -- password login; returns a session token
  DELETE /api/auth/{token}    -- end a session
  DELETE /api/auth            -- 400, the token path segment is required

Security:
  POST /register and POST /auth are rate-limited per IP (AUTH_RATE_LIMIT).
  AuthService.authenticate() equalizes bcrypt timing -- use it, never inline.
  Cache-Control: no-store on login responses so tokens never land in caches.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import AUTH_RATE_LIMIT, limiter
from api.models import APIResponse, AuthRequest, RegisterRequest, error_body
from auth.service import AuthService
from auth.sessions import SessionStore
from core.errors import NotFound, Unauthorized, ValidationError

logger = logging.getLogger("astra.auth")

# Auth policy: every route here is public. Logout needs no session beyond the
# token it names -- knowing the token is the credential.
router = APIRouter()


@limiter.limit(AUTH_RATE_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/register")
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a user account.

    Errors come from AuthService unchanged: 403 for a wrong admin token,
    400 with the failing format rule otherwise.
    """
    auth_service: AuthService = request.app.state.auth_service
    user = auth_service.register(body.login, body.pswd, body.token)
    return JSONResponse(content=APIResponse(response={"login": user.login}).body())


@limiter.limit(AUTH_RATE_LIMIT)
@router.post("/auth")
def login(request: Request, body: AuthRequest) -> JSONResponse:
    """Authenticate with login and password; return a new session token.

    Unknown login and wrong password both answer 401, with the service's
    text ("user not found" / "invalid password").
    """
    auth_service: AuthService = request.app.state.auth_service
    sessions: SessionStore = request.app.state.sessions
    try:
        user = auth_service.authenticate(body.login, body.pswd)
    except (NotFound, Unauthorized) as exc:
        logger.info("Login failed for %r: %s", body.login, exc.text)
        resp = JSONResponse(status_code=401, content=error_body(401, exc.text))
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = sessions.create(user.id, user.login)
    logger.info("Login succeeded for %s (%d active sessions)", user.login, len(sessions))
    resp = JSONResponse(content=APIResponse(response={"token": token}).body())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.delete("/auth/{token}")
def logout(request: Request, token: str) -> JSONResponse:
    """End the session identified by token. Unknown tokens answer 400."""
    sessions: SessionStore = request.app.state.sessions
    if not sessions.delete(token):
        raise ValidationError("invalid token")
    logger.info("Session closed")
    return JSONResponse(content=APIResponse(response={token: True}).body())


@router.delete("/auth")
def logout_without_token() -> JSONResponse:
    raise ValidationError("missing token")
