"""
Session Token Stores

Thread-safe maps from an opaque session id to the user's OAuth tokens.
The web app receives one store instance at construction time:

- MemoryTokenStore: process lifetime only (tests, serverless fallback)
- JsonFileTokenStore: also persisted to a local JSON file
"""

import json
import os
import threading
from typing import Dict, Optional

from base_snapshot.auth.service import OAuthTokens
from base_snapshot.config import AppSettings
from base_snapshot.logger import logger


class TokenStore:
    """Interface of a session token store."""

    def get(self, session_id: str) -> Optional[OAuthTokens]:
        raise NotImplementedError

    def set(self, session_id: str, tokens: OAuthTokens) -> None:
        raise NotImplementedError

    def delete(self, session_id: str) -> None:
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    """In-process token store."""

    def __init__(self):
        self._tokens: Dict[str, OAuthTokens] = {}
        self._mutex = threading.Lock()

    def get(self, session_id: str) -> Optional[OAuthTokens]:
        with self._mutex:
            return self._tokens.get(session_id)

    def set(self, session_id: str, tokens: OAuthTokens) -> None:
        with self._mutex:
            self._tokens[session_id] = tokens
            self._persist()

    def delete(self, session_id: str) -> None:
        with self._mutex:
            if self._tokens.pop(session_id, None) is not None:
                self._persist()

    def __len__(self) -> int:
        with self._mutex:
            return len(self._tokens)

    def _persist(self):
        """Hook called with the mutex held after every change."""


class JsonFileTokenStore(MemoryTokenStore):
    """Token store persisted to a JSON file keyed by session id."""

    def __init__(self, path: str):
        super().__init__()
        self.path = os.path.abspath(path)
        self._load()

    def _load(self):
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._tokens = {sid: OAuthTokens.from_dict(t) for sid, t in data.items()}
            logger.info(f"已从文件加载 {len(self._tokens)} 个会话", icon="📂")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"加载会话文件失败: {e}")
            self._tokens = {}

    def _persist(self):
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump({sid: t.to_dict() for sid, t in self._tokens.items()},
                          f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"保存会话文件失败: {e}")


def create_token_store(settings: AppSettings) -> TokenStore:
    if settings.session_file:
        return JsonFileTokenStore(settings.session_file)
    return MemoryTokenStore()
