"""
Request bodies of the snapshot endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from base_snapshot.models import SnapshotConfig


class PreviewRequestDTO(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    sourceBaseUrl: str = Field(..., min_length=1)


class SnapshotRequestDTO(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    sourceBaseUrl: str = Field(..., min_length=1)
    targetBaseName: str = Field(..., min_length=1)
    grantAdminPermission: bool = True
    preserveAttachments: bool = False
    selectedTableIds: Optional[List[str]] = None

    def to_config(self) -> SnapshotConfig:
        return SnapshotConfig(
            source_base_url=self.sourceBaseUrl,
            target_base_name=self.targetBaseName,
            grant_admin_permission=self.grantAdminPermission,
            preserve_attachments=self.preserveAttachments,
            selected_table_ids=self.selectedTableIds or None,
        )
