"""
Session backends: where a browser session's OAuth tokens live.

StoreSessionBackend keeps tokens server-side in a TokenStore keyed by the
`session_id` cookie. CookieSessionBackend carries them in the browser as a
base64 cookie, for serverless deployments where instances share nothing.
"""

from typing import Optional

from fastapi import Request, Response

from base_snapshot.auth.cookie import decode_tokens, encode_tokens
from base_snapshot.auth.service import OAuthTokens
from base_snapshot.auth.store import TokenStore
from base_snapshot.config import AppSettings
from base_snapshot.constants import SESSION_COOKIE, SESSION_MAX_AGE, TOKEN_COOKIE


def set_cookie(response: Response, settings: AppSettings, name: str, value: str, max_age: int):
    response.set_cookie(
        name, value,
        max_age=max_age,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


class SessionBackend:
    """Interface of a session backend."""

    def __init__(self, settings: AppSettings):
        self.settings = settings

    def load(self, request: Request) -> Optional[OAuthTokens]:
        raise NotImplementedError

    def save(self, response: Response, session_id: Optional[str], tokens: OAuthTokens) -> None:
        raise NotImplementedError

    def clear(self, request: Request, response: Response) -> None:
        raise NotImplementedError


class StoreSessionBackend(SessionBackend):

    def __init__(self, settings: AppSettings, store: TokenStore):
        super().__init__(settings)
        self.store = store

    def load(self, request: Request) -> Optional[OAuthTokens]:
        session_id = request.cookies.get(SESSION_COOKIE)
        return self.store.get(session_id) if session_id else None

    def save(self, response: Response, session_id: Optional[str], tokens: OAuthTokens) -> None:
        if session_id:
            self.store.set(session_id, tokens)

    def clear(self, request: Request, response: Response) -> None:
        session_id = request.cookies.get(SESSION_COOKIE)
        if session_id:
            self.store.delete(session_id)
        response.delete_cookie(SESSION_COOKIE)


class CookieSessionBackend(SessionBackend):

    def load(self, request: Request) -> Optional[OAuthTokens]:
        return decode_tokens(request.cookies.get(TOKEN_COOKIE))

    def save(self, response: Response, session_id: Optional[str], tokens: OAuthTokens) -> None:
        set_cookie(response, self.settings, TOKEN_COOKIE, encode_tokens(tokens), SESSION_MAX_AGE)

    def clear(self, request: Request, response: Response) -> None:
        response.delete_cookie(TOKEN_COOKIE)
        response.delete_cookie(SESSION_COOKIE)
