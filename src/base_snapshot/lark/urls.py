"""
Base URL parsing.

Users paste Base links in several shapes:

    https://x.larksuite.com/base/<app_token>?table=<table_id>
    https://x.larksuite.com/?app_token=<app_token>
    https://x.feishu.cn/bitable/<app_token>
    https://x.larksuite.com/wiki/<node_token>

A Wiki link carries a node token, not an app token; resolving it needs an API
call (see WikiOperationsMixin.resolve_base_app_token).
"""

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

from base_snapshot.exceptions import InvalidBaseUrlError

_TOKEN = r"([A-Za-z0-9]+)"

# Ordered: the first pattern that matches wins
BASE_URL_PATTERNS = [
    re.compile(rf"/base/{_TOKEN}"),
    re.compile(rf"app_token={_TOKEN}"),
    re.compile(rf"bitable/{_TOKEN}"),
    re.compile(rf"/wiki/{_TOKEN}"),
]

WIKI_URL_PATTERN = re.compile(rf"/wiki/{_TOKEN}")


def parse_base_url(url: str) -> str:
    """Extract the app token from a Base URL.

    Raises:
        InvalidBaseUrlError: no known pattern matches
    """
    for pattern in BASE_URL_PATTERNS:
        match = pattern.search(url or "")
        if match:
            return match.group(1)
    raise InvalidBaseUrlError(url)


def parse_wiki_token(url: str) -> Optional[str]:
    """Node token of a Wiki URL, or None for any other URL."""
    match = WIKI_URL_PATTERN.search(url or "")
    return match.group(1) if match else None


def parse_table_id_from_url(url: str) -> Optional[str]:
    """Value of the `table` query parameter, if present."""
    try:
        query = parse_qs(urlparse(url or "").query)
    except ValueError:
        return None
    values = query.get("table")
    return values[0] if values and values[0] else None
