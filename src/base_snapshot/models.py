"""
Data Model Module

Plain data holders shared by the Lark client, the converter and the
snapshot procedure. Everything here is built per request and discarded.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldDefinition:
    """A column definition as returned by the fields endpoint."""
    field_name: str
    type: int
    ui_type: Optional[str] = None
    field_id: Optional[str] = None
    property: Optional[Dict[str, Any]] = None
    is_primary: bool = False

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "FieldDefinition":
        return cls(
            field_id=item.get("field_id"),
            field_name=item.get("field_name", ""),
            type=item.get("type") or 0,
            ui_type=item.get("ui_type") or None,
            property=item.get("property") or None,
            is_primary=bool(item.get("is_primary", False)),
        )

    def with_type(self, type_code: int, ui_type: str) -> "FieldDefinition":
        """Return a copy retyped to a plain field with no property bag."""
        return replace(self, type=type_code, ui_type=ui_type, property=None)

    def to_create_payload(self) -> Dict[str, Any]:
        """Body fragment accepted by the create-table endpoint."""
        payload: Dict[str, Any] = {"field_name": self.field_name, "type": self.type}
        if self.ui_type:
            payload["ui_type"] = self.ui_type
        if self.property:
            payload["property"] = self.property
        return payload


@dataclass
class Record:
    """A row; `fields` is keyed by field name, not field id."""
    record_id: Optional[str]
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Record":
        return cls(record_id=item.get("record_id"), fields=item.get("fields") or {})


@dataclass
class TableInfo:
    table_id: str
    name: str
    revision: Optional[int] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "TableInfo":
        return cls(
            table_id=item.get("table_id", ""),
            name=item.get("name", ""),
            revision=item.get("revision"),
        )


@dataclass
class BaseInfo:
    """A Base (bitable app) descriptor."""
    app_token: str
    name: str
    url: Optional[str] = None
    folder_token: Optional[str] = None

    @classmethod
    def from_api(cls, app: Dict[str, Any]) -> "BaseInfo":
        return cls(
            app_token=app.get("app_token", ""),
            name=app.get("name", ""),
            url=app.get("url") or None,
            folder_token=app.get("folder_token") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"app_token": self.app_token, "name": self.name}
        if self.url:
            data["url"] = self.url
        if self.folder_token:
            data["folder_token"] = self.folder_token
        return data


@dataclass
class UserInfo:
    open_id: str
    name: str = ""
    user_id: Optional[str] = None
    en_name: Optional[str] = None

    @property
    def member_id(self) -> str:
        return self.open_id or self.user_id or ""


@dataclass
class WikiNode:
    node_token: str
    obj_token: str
    obj_type: str
    title: str = ""


# =============================================================================
# Snapshot
# =============================================================================

@dataclass
class SnapshotConfig:
    source_base_url: str
    target_base_name: str
    grant_admin_permission: bool = True
    preserve_attachments: bool = False
    selected_table_ids: Optional[List[str]] = None


@dataclass
class SnapshotError:
    """One failure, located as precisely as it is known."""
    message: str
    table: Optional[str] = None
    record: Optional[str] = None
    field: Optional[str] = None
    code: Optional[str] = None

    @property
    def location(self) -> str:
        return " > ".join(p for p in (self.table, self.record, self.field) if p)

    def to_dict(self) -> Dict[str, Any]:
        data = {"message": self.message}
        for key in ("table", "record", "field", "code"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


@dataclass
class SnapshotResult:
    success: bool
    source_base: BaseInfo
    target_base: BaseInfo
    tables_processed: int = 0
    records_processed: int = 0
    fields_converted: int = 0
    errors: List[SnapshotError] = field(default_factory=list)
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the camelCase body returned by POST /api/snapshot."""
        return {
            "success": self.success,
            "sourceBase": self.source_base.to_dict(),
            "targetBase": self.target_base.to_dict(),
            "tablesProcessed": self.tables_processed,
            "recordsProcessed": self.records_processed,
            "fieldsConverted": self.fields_converted,
            "errors": [e.to_dict() for e in self.errors],
            "createdAt": self.created_at,
        }
