"""
Lark Client

Composes the API mixins into the single client the snapshot service, the
web routes and the CLI use.
"""

from base_snapshot.config import AppSettings
from base_snapshot.lark.base import LarkClientBase
from base_snapshot.lark.bitable import BitableOperationsMixin
from base_snapshot.lark.media import MediaOperationsMixin
from base_snapshot.lark.wiki import WikiOperationsMixin


class LarkClient(
    BitableOperationsMixin,
    MediaOperationsMixin,
    WikiOperationsMixin,
    LarkClientBase,
):
    """Lark Open API client.

    Authenticates with a caller-supplied user access token when present,
    otherwise with the app's tenant token.
    """

    @classmethod
    def from_settings(cls, settings: AppSettings, user_access_token: str = None,
                      **kwargs) -> "LarkClient":
        return cls(
            settings.app_id,
            settings.app_secret,
            user_access_token=user_access_token,
            base_url=settings.api_base_url,
            rate_limit_interval=settings.rate_limit_interval,
            **kwargs,
        )
