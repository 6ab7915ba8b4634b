"""
Base Lark Client Module

Contains core client functionality:
- Authentication (tenant token cache, user token override)
- Rate limiting and rate-limit retry
- Envelope/transport error mapping
- Paginated list helper
"""

import threading
import time
from typing import Any, Dict, List, Optional

import requests

from base_snapshot.constants import (
    API_RATE_LIMIT_INTERVAL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_DELAY,
    LARK_API_BASE_URL,
    METADATA_TIMEOUT,
    RATE_LIMIT_ERROR_CODE,
    TOKEN_EXPIRY_MARGIN,
)
from base_snapshot.exceptions import (
    LarkApiError,
    LarkHttpError,
    LarkNetworkError,
    LarkTimeoutError,
)
from base_snapshot.logger import logger


class LarkClientBase:
    """Base class for the Lark API client with authentication and rate limiting."""

    # Shared across instances: the vendor limit applies per app, not per client
    _last_request_time = 0.0
    _rate_limit_lock = threading.Lock()

    def __init__(self, app_id: str, app_secret: str, user_access_token: str = None,
                 base_url: str = LARK_API_BASE_URL,
                 session: Optional[requests.Session] = None,
                 rate_limit_interval: float = API_RATE_LIMIT_INTERVAL,
                 max_retries: int = DEFAULT_MAX_RETRIES,
                 retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY):
        """Initialize the Lark client.

        Args:
            app_id: Lark app ID
            app_secret: Lark app secret
            user_access_token: Optional user access token; when set it is used
                for every call instead of the tenant token
            base_url: Open API root, e.g. https://open.larksuite.com/open-apis
            session: Optional requests session (injected in tests)
            rate_limit_interval: Minimum seconds between requests, 0 disables
            max_retries: Retries on rate-limit responses
            retry_base_delay: First backoff delay, doubled on each retry
        """
        self.app_id = app_id
        self.app_secret = app_secret
        self.user_access_token = user_access_token
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.rate_limit_interval = rate_limit_interval
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

        self._tenant_token: Optional[str] = None
        self._tenant_token_expiry = 0.0
        self._token_lock = threading.Lock()

    def _rate_limit(self):
        """Ensure minimum interval between API requests."""
        if self.rate_limit_interval <= 0:
            return
        with LarkClientBase._rate_limit_lock:
            now = time.time()
            elapsed = now - LarkClientBase._last_request_time
            if elapsed < self.rate_limit_interval:
                time.sleep(self.rate_limit_interval - elapsed)
            LarkClientBase._last_request_time = time.time()

    # =========================================================================
    # Authentication
    # =========================================================================

    def _get_tenant_access_token(self) -> str:
        """Return the cached tenant token, fetching a new one near expiry."""
        with self._token_lock:
            if self._tenant_token and time.time() < self._tenant_token_expiry - TOKEN_EXPIRY_MARGIN:
                return self._tenant_token

            envelope = self._request(
                "POST", "/auth/v3/tenant_access_token/internal",
                json={"app_id": self.app_id, "app_secret": self.app_secret},
                auth=False, envelope=True,
            )
            token = envelope.get("tenant_access_token")
            if not token:
                raise LarkApiError(envelope.get("code", -1),
                                   f"Failed to get access token: {envelope.get('msg', '')}")

            self._tenant_token = token
            self._tenant_token_expiry = time.time() + int(envelope.get("expire", 0))
            logger.debug("已刷新 tenant_access_token")
            return token

    def _get_access_token(self) -> str:
        """User token when supplied by the caller, otherwise the tenant token."""
        if self.user_access_token:
            return self.user_access_token
        return self._get_tenant_access_token()

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(self, method: str, path: str, *, params: Dict = None, json: Any = None,
                 data: Dict = None, files: Dict = None, timeout: float = METADATA_TIMEOUT,
                 auth: bool = True, envelope: bool = False, raw: bool = False) -> Any:
        """Send one API call and unwrap the response envelope.

        Args:
            method: HTTP method
            path: Path below the Open API root, starting with "/"
            params: Query parameters
            json: JSON body
            data: Form fields (multipart uploads)
            files: Multipart files
            timeout: Seconds before the call is abandoned
            auth: Attach a bearer token
            envelope: Return the whole JSON envelope instead of its "data"
            raw: Return the response body bytes (downloads)

        Returns:
            The envelope's "data" dict (or the envelope / raw bytes)

        Raises:
            LarkTimeoutError, LarkNetworkError, LarkHttpError, LarkApiError
        """
        url = f"{self.base_url}{path}"
        label = f"{method} {path}"
        delay = self.retry_base_delay

        for attempt in range(self.max_retries + 1):
            headers = {}
            if auth:
                headers["Authorization"] = f"Bearer {self._get_access_token()}"
            if json is not None:
                headers["Content-Type"] = "application/json; charset=utf-8"

            self._rate_limit()
            try:
                resp = self.session.request(
                    method, url, params=params, json=json, data=data, files=files,
                    headers=headers, timeout=timeout,
                )
            except requests.exceptions.Timeout as e:
                raise LarkTimeoutError(label, timeout) from e
            except requests.exceptions.RequestException as e:
                raise LarkNetworkError(f"{label} failed: {e}") from e

            ok = 200 <= resp.status_code < 300
            content_type = resp.headers.get("Content-Type", "")
            if raw and ok and "application/json" not in content_type:
                return resp.content

            try:
                payload = resp.json()
            except ValueError:
                payload = None

            rate_limited = resp.status_code == 429 or (
                isinstance(payload, dict) and payload.get("code") == RATE_LIMIT_ERROR_CODE
            )
            if rate_limited and attempt < self.max_retries:
                logger.warning(f"请求被限流，{delay:.1f}s 后重试 ({attempt + 1}/{self.max_retries}): {label}")
                time.sleep(delay)
                delay *= 2
                continue

            if not isinstance(payload, dict) or (not ok and "code" not in payload):
                raise LarkHttpError(resp.status_code, path, (resp.text or "")[:200])

            code = payload.get("code", 0)
            if code != 0:
                raise LarkApiError(code, payload.get("msg", ""), path)

            if envelope:
                return payload
            return payload.get("data") or {}

        # Unreachable: the last attempt either returns or raises
        raise LarkHttpError(429, path)

    def _paginate(self, path: str, page_size: int, max_pages: int, label: str,
                  params: Dict = None) -> List[Dict[str, Any]]:
        """Collect `items` across pages of a list endpoint.

        Stops when the server reports no more pages, when it hands back the
        same page_token twice in a row, or after `max_pages` pages. The last
        two guard against a misbehaving server; they work around a repeated
        token rather than explain it.
        """
        items: List[Dict[str, Any]] = []
        page_token = None

        for _ in range(max_pages):
            query = dict(params or {})
            query["page_size"] = page_size
            if page_token:
                query["page_token"] = page_token

            data = self._request("GET", path, params=query)
            items.extend(data.get("items") or [])

            next_token = data.get("page_token")
            if not data.get("has_more") or not next_token:
                return items
            if next_token == page_token:
                logger.warning(f"{label}: 服务端重复返回相同的 page_token，停止翻页")
                return items
            page_token = next_token

        logger.warning(f"{label}: 已达到最大页数 {max_pages}，结果可能不完整")
        return items
