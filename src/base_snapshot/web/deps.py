"""
Route dependencies: settings, services and the authenticated user's tokens.

Everything is read from `app.state`, populated by create_app.
"""

from typing import Callable

from fastapi import Depends, Request, Response

from base_snapshot.auth.service import AuthService, OAuthTokens
from base_snapshot.config import AppSettings
from base_snapshot.constants import SESSION_COOKIE
from base_snapshot.exceptions import ApiError, AuthError
from base_snapshot.lark_client import LarkClient
from base_snapshot.logger import logger
from base_snapshot.web.sessions import SessionBackend

ClientFactory = Callable[[str], LarkClient]


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_sessions(request: Request) -> SessionBackend:
    return request.app.state.sessions


def get_auth_service(request: Request,
                     settings: AppSettings = Depends(get_settings)) -> AuthService:
    if not settings.has_credentials:
        raise ApiError(500, "LARK_APP_ID and LARK_APP_SECRET must be set")
    return request.app.state.auth_service


def get_client_factory(request: Request,
                       settings: AppSettings = Depends(get_settings)) -> ClientFactory:
    if not settings.has_credentials:
        raise ApiError(500, "LARK_APP_ID and LARK_APP_SECRET must be set")
    return request.app.state.client_factory


def require_tokens(
    request: Request,
    response: Response,
    sessions: SessionBackend = Depends(get_sessions),
    auth: AuthService = Depends(get_auth_service),
) -> OAuthTokens:
    """Tokens of the calling session, refreshed once if expired.

    Raises:
        ApiError: 401 when there is no session or the token cannot be renewed
    """
    tokens = sessions.load(request)
    if tokens is None:
        raise ApiError(401, "Not authenticated")
    if not tokens.is_expired():
        return tokens
    if not tokens.refresh_token:
        raise ApiError(401, "Token expired")

    try:
        refreshed = auth.refresh(tokens.refresh_token, previous=tokens)
    except AuthError as e:
        logger.warning(f"刷新 User Access Token 失败: {e}")
        raise ApiError(401, "Token expired", str(e)) from e

    sessions.save(response, request.cookies.get(SESSION_COOKIE), refreshed)
    return refreshed
