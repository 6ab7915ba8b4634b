"""
Lark Media Operations Module

Contains methods for attachment bytes:
- download_attachment
- upload_attachment (into a Base, parent type bitable_file)
"""

from typing import Optional

from base_snapshot.constants import DOWNLOAD_TIMEOUT, UPLOAD_TIMEOUT
from base_snapshot.logger import logger


class MediaOperationsMixin:
    """Mixin class providing media operation methods for LarkClient."""

    def download_attachment(self, file_token: str, extra: Optional[str] = None) -> bytes:
        """Download an attachment's bytes.

        Args:
            file_token: Attachment file token
            extra: Optional `extra` query value some Bases require for
                attachments behind advanced permissions

        Returns:
            The file content
        """
        params = {"extra": extra} if extra else None
        content = self._request(
            "GET", f"/drive/v1/medias/{file_token}/download",
            params=params, timeout=DOWNLOAD_TIMEOUT, raw=True,
        )
        logger.debug(f"下载附件: {file_token} ({len(content)} bytes)")
        return content

    def upload_attachment(self, app_token: str, file_name: str, content: bytes) -> str:
        """Upload bytes as an attachment of a Base.

        Args:
            app_token: Target Base token (the upload's parent node)
            file_name: Name shown in the attachment cell
            content: File bytes

        Returns:
            The new file token
        """
        files = {"file": (file_name, content)}
        data = {
            "file_name": file_name,
            "parent_type": "bitable_file",
            "parent_node": app_token,
            "size": str(len(content)),
        }
        result = self._request(
            "POST", "/drive/v1/medias/upload_all",
            data=data, files=files, timeout=UPLOAD_TIMEOUT,
        )
        file_token = result.get("file_token", "")
        logger.debug(f"上传附件: {file_name} -> {file_token}")
        return file_token
