"""
Lark Wiki Operations Module

A Base embedded in a Wiki space is addressed by a Wiki node token; the Base
token is the node's obj_token.
"""

from base_snapshot.exceptions import LarkError
from base_snapshot.lark.urls import parse_base_url, parse_wiki_token
from base_snapshot.logger import logger
from base_snapshot.models import WikiNode


class WikiOperationsMixin:
    """Mixin class providing Wiki node lookup and Base URL resolution."""

    def get_wiki_node(self, node_token: str) -> WikiNode:
        data = self._request("GET", "/wiki/v2/spaces/get_node", params={"token": node_token})
        node = data.get("node") or {}
        return WikiNode(
            node_token=node.get("node_token", node_token),
            obj_token=node.get("obj_token", ""),
            obj_type=node.get("obj_type", ""),
            title=node.get("title", ""),
        )

    def resolve_base_app_token(self, url: str) -> str:
        """Resolve any supported Base URL to an app token.

        Wiki URLs are looked up through the Wiki API; when that lookup fails
        or the node is not a Base, plain pattern matching is used instead.

        Raises:
            InvalidBaseUrlError: the URL matches no known pattern
        """
        wiki_token = parse_wiki_token(url)
        if wiki_token:
            try:
                node = self.get_wiki_node(wiki_token)
                if node.obj_type == "bitable" and node.obj_token:
                    logger.debug(f"Wiki 节点 {wiki_token} -> {node.obj_token}")
                    return node.obj_token
                logger.warning(f"Wiki 节点类型为 {node.obj_type or '未知'}，按 URL 直接解析")
            except LarkError as e:
                logger.warning(f"解析 Wiki 节点失败，按 URL 直接解析: {e}")
        return parse_base_url(url)
