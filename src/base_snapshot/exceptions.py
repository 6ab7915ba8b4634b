"""
Exception types raised by the Lark client, the URL resolver and the auth service.
"""

from typing import Optional

from base_snapshot.constants import PERMISSION_ERROR_MARKERS


class LarkError(Exception):
    """Base class for every failure talking to the Lark Open API."""


class LarkApiError(LarkError):
    """The response envelope carried a non-zero status code."""

    def __init__(self, code: int, msg: str, path: Optional[str] = None):
        self.code = code
        self.msg = msg or ""
        self.path = path
        super().__init__(f"API Error: {self.msg} (code: {code})")


class LarkHttpError(LarkError):
    """Non-2xx response without a parseable JSON envelope."""

    def __init__(self, status_code: int, path: Optional[str] = None, body: str = ""):
        self.status_code = status_code
        self.path = path
        self.body = body
        super().__init__(f"HTTP {status_code} from {path or 'Lark API'}")


class LarkTimeoutError(LarkError):
    """The request did not complete within its timeout."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s: {path}")


class LarkNetworkError(LarkError):
    """Connection-level failure (DNS, refused, reset)."""


class InvalidBaseUrlError(ValueError):
    """The text does not match any known Base URL shape."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid Base URL format: {url}")


class AuthError(Exception):
    """OAuth token exchange or refresh failed."""


class ApiError(Exception):
    """Error returned by the HTTP API as `{"error": ..., "message": ...}`."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None):
        self.status_code = status_code
        self.error = error
        self.message = message
        super().__init__(error if message is None else f"{error}: {message}")

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


def is_permission_error(exc: BaseException) -> bool:
    """Heuristically decide whether an error means "access denied".

    Lark reports field/record level restrictions with several codes, so the
    message text is the most stable signal.
    """
    if isinstance(exc, LarkHttpError) and exc.status_code == 403:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in PERMISSION_ERROR_MARKERS)
