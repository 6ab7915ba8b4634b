"""
Cookie-carried token payload, for serverless deployments with no shared store.
"""

import base64
import binascii
import json
from typing import Optional

from base_snapshot.auth.service import OAuthTokens


def encode_tokens(tokens: OAuthTokens) -> str:
    raw = json.dumps(tokens.to_dict(), separators=(",", ":")).encode("utf-8")
    # Unpadded: "=" would force the cookie value to be quoted
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_tokens(value: Optional[str]) -> Optional[OAuthTokens]:
    """Tokens from a cookie value; None when absent or malformed."""
    if not value:
        return None
    try:
        padded = value + "=" * (-len(value) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError):
        return None
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    try:
        return OAuthTokens.from_dict(data)
    except (TypeError, ValueError):
        return None
