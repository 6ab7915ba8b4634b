"""
OAuth2 Authentication Service

Builds the Lark authorization URL and turns authorization codes and refresh
tokens into user access tokens. Both exchanges first obtain an app access
token, then call the authen endpoint with it.
"""

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from base_snapshot.config import AppSettings
from base_snapshot.constants import METADATA_TIMEOUT, OAUTH_SCOPES
from base_snapshot.exceptions import AuthError
from base_snapshot.logger import logger


@dataclass
class OAuthTokens:
    access_token: str
    refresh_token: str
    expires_at: float          # epoch seconds
    user_id: str = ""
    user_name: str = ""

    def is_expired(self, now: float = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OAuthTokens":
        return cls(
            access_token=data.get("access_token", ""),
            refresh_token=data.get("refresh_token", ""),
            expires_at=float(data.get("expires_at", 0)),
            user_id=data.get("user_id", ""),
            user_name=data.get("user_name", ""),
        )


@dataclass
class AuthState:
    is_authenticated: bool
    user: Optional[Dict[str, str]] = None
    expires_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"isAuthenticated": self.is_authenticated}
        if self.user is not None:
            data["user"] = self.user
        if self.expires_at is not None:
            data["expiresAt"] = self.expires_at
        return data


def auth_state_for(tokens: Optional[OAuthTokens], now: float = None) -> AuthState:
    """Authenticated only while the stored token has not expired."""
    if tokens is None or tokens.is_expired(now):
        return AuthState(is_authenticated=False)
    return AuthState(
        is_authenticated=True,
        user={"id": tokens.user_id, "name": tokens.user_name},
        expires_at=tokens.expires_at,
    )


class AuthService:
    """Lark OAuth2 code exchange and token refresh."""

    def __init__(self, settings: AppSettings, session: requests.Session = None):
        self.settings = settings
        self.session = session or requests.Session()

    def get_authorization_url(self, state: str) -> str:
        params = {
            "app_id": self.settings.app_id,
            "redirect_uri": self.settings.redirect_uri,
            "state": state,
            "scope": OAUTH_SCOPES,
        }
        return f"{self.settings.oauth_base_url}/authorize?{urlencode(params)}"

    def _post(self, path: str, payload: Dict[str, Any], token: str = None) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json; charset=utf-8"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.settings.api_base_url}{path}"
        try:
            resp = self.session.post(url, headers=headers, json=payload, timeout=METADATA_TIMEOUT)
            return resp.json()
        except requests.exceptions.RequestException as e:
            raise AuthError(f"Request to {path} failed: {e}") from e
        except ValueError as e:
            raise AuthError(f"Invalid response from {path}") from e

    def _get_app_access_token(self) -> str:
        data = self._post("/auth/v3/app_access_token/internal", {
            "app_id": self.settings.app_id,
            "app_secret": self.settings.app_secret,
        })
        token = data.get("app_access_token") or data.get("tenant_access_token")
        if data.get("code", 0) != 0 or not token:
            raise AuthError(f"Failed to get app token: {data.get('msg', '')}")
        return token

    def exchange_code(self, code: str) -> OAuthTokens:
        """Redeem an authorization code for a user token pair."""
        app_token = self._get_app_access_token()
        data = self._post("/authen/v1/access_token", {
            "grant_type": "authorization_code",
            "code": code,
        }, token=app_token)

        user = data.get("data")
        if data.get("code", 0) != 0 or not user:
            raise AuthError(f"Failed to get user token: {data.get('msg', '')}")

        tokens = OAuthTokens(
            access_token=user.get("access_token", ""),
            refresh_token=user.get("refresh_token", ""),
            expires_at=time.time() + int(user.get("expires_in", 0)),
            user_id=user.get("user_id") or user.get("open_id", ""),
            user_name=user.get("name") or user.get("en_name", ""),
        )
        logger.success(f"用户登录成功: {tokens.user_name or tokens.user_id}")
        return tokens

    def refresh(self, refresh_token: str, previous: OAuthTokens = None) -> OAuthTokens:
        """Obtain a new token pair; user details are carried over from `previous`."""
        app_token = self._get_app_access_token()
        data = self._post("/authen/v1/refresh_access_token", {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }, token=app_token)

        payload = data.get("data")
        if data.get("code", 0) != 0 or not payload:
            raise AuthError(f"Failed to refresh token: {data.get('msg', '')}")

        logger.info("已刷新 User Access Token", icon="🔄")
        return OAuthTokens(
            access_token=payload.get("access_token", ""),
            refresh_token=payload.get("refresh_token", refresh_token),
            expires_at=time.time() + int(payload.get("expires_in", 0)),
            user_id=previous.user_id if previous else "",
            user_name=previous.user_name if previous else "",
        )
