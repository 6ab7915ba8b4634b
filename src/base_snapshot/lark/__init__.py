"""
Lark API Client Package

This package provides a modular interface to the Lark (Feishu) Open API.

Package Structure:
    - base.py: Core client (authentication, rate limiting, pagination)
    - bitable.py: Base operations (app/table/field/record/member)
    - media.py: Attachment download/upload
    - wiki.py: Wiki node lookup and Base URL resolution
    - urls.py: Base URL parsing

Usage:
    from base_snapshot.lark import LarkClient

    # Or import specific mixins for custom clients
    from base_snapshot.lark.base import LarkClientBase
    from base_snapshot.lark.bitable import BitableOperationsMixin
"""

# Export base class and mixins (no circular import)
from base_snapshot.lark.base import LarkClientBase
from base_snapshot.lark.bitable import BitableOperationsMixin
from base_snapshot.lark.media import MediaOperationsMixin
from base_snapshot.lark.wiki import WikiOperationsMixin
from base_snapshot.lark.urls import parse_base_url, parse_table_id_from_url, parse_wiki_token


def __getattr__(name):
    """Lazy import LarkClient to avoid circular import."""
    if name == 'LarkClient':
        from base_snapshot.lark_client import LarkClient
        return LarkClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'LarkClient',
    'LarkClientBase',
    'BitableOperationsMixin',
    'MediaOperationsMixin',
    'WikiOperationsMixin',
    'parse_base_url',
    'parse_table_id_from_url',
    'parse_wiki_token',
]
