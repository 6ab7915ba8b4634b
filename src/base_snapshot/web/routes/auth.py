"""
OAuth2 login endpoints.

The login handler issues a session id and a random state, both as cookies,
and redirects to the Lark consent page. The callback checks the state
against its cookie, redeems the code and stores the tokens for the session.
"""

import hmac
import secrets
import time
import uuid
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from base_snapshot.auth.service import AuthService, auth_state_for
from base_snapshot.config import AppSettings
from base_snapshot.constants import (
    OAUTH_STATE_TTL,
    SESSION_COOKIE,
    SESSION_MAX_AGE,
    STATE_COOKIE,
)
from base_snapshot.exceptions import ApiError, AuthError
from base_snapshot.logger import logger
from base_snapshot.web.deps import get_auth_service, get_sessions, get_settings
from base_snapshot.web.sessions import SessionBackend, set_cookie

router = APIRouter(prefix="/auth", tags=["Auth"])


def _state_cookie_value(state: str, issued_at: int) -> str:
    return f"{state}.{issued_at}"


def _state_is_valid(cookie_value: Optional[str], state: str, now: float = None) -> bool:
    """The callback's state matches the login's and is at most 10 minutes old."""
    if not cookie_value or "." not in cookie_value:
        return False
    expected, _, issued = cookie_value.rpartition(".")
    try:
        issued_at = int(issued)
    except ValueError:
        return False
    if (now if now is not None else time.time()) - issued_at > OAUTH_STATE_TTL:
        return False
    return hmac.compare_digest(expected, state)


@router.get("/login")
def login(
    settings: AppSettings = Depends(get_settings),
    auth: AuthService = Depends(get_auth_service),
):
    session_id = str(uuid.uuid4())
    state = secrets.token_hex(16)

    response = RedirectResponse(auth.get_authorization_url(state), status_code=302)
    set_cookie(response, settings, SESSION_COOKIE, session_id, SESSION_MAX_AGE)
    set_cookie(response, settings, STATE_COOKIE,
               _state_cookie_value(state, int(time.time())), OAUTH_STATE_TTL)
    return response


@router.get("/callback")
def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    settings: AppSettings = Depends(get_settings),
    auth: AuthService = Depends(get_auth_service),
    sessions: SessionBackend = Depends(get_sessions),
):
    if not code or not state:
        raise ApiError(400, "Missing code or state")
    if not _state_is_valid(request.cookies.get(STATE_COOKIE), state):
        raise ApiError(400, "Invalid state")

    session_id = request.cookies.get(SESSION_COOKIE)
    try:
        tokens = auth.exchange_code(code)
    except AuthError as e:
        logger.error(f"OAuth 回调失败: {e}")
        response = RedirectResponse(
            f"{settings.client_url}?login=error&message={quote(str(e))}", status_code=302,
        )
        response.delete_cookie(STATE_COOKIE)
        return response

    response = RedirectResponse(f"{settings.client_url}?login=success", status_code=302)
    sessions.save(response, session_id, tokens)
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/status")
def status(request: Request, sessions: SessionBackend = Depends(get_sessions)):
    return auth_state_for(sessions.load(request)).to_dict()


@router.post("/logout")
def logout(request: Request, sessions: SessionBackend = Depends(get_sessions)):
    response = JSONResponse({"success": True})
    sessions.clear(request, response)
    return response
