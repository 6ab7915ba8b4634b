"""
Lark Bitable (多维表格) Operations Module

Contains methods for Base manipulation:
- App: get, create
- Table: list, create, delete
- Field: list, create
- Record: list, batch create
- Member: current user, add collaborator

The *_with_fallback variants absorb permission-denied errors so a snapshot
can proceed past tables the caller is not allowed to read in full.
"""

from typing import Any, Dict, List, Optional

from base_snapshot.constants import (
    ADMIN_PERMISSION,
    DEFAULT_VIEW_NAME,
    FIELD_PAGE_SIZE,
    MAX_FIELD_PAGES,
    MAX_RECORD_PAGES,
    MAX_TABLE_PAGES,
    RECORD_BATCH_SIZE,
    RECORD_PAGE_SIZE,
    TABLE_PAGE_SIZE,
)
from base_snapshot.exceptions import LarkError, is_permission_error
from base_snapshot.logger import logger
from base_snapshot.models import BaseInfo, FieldDefinition, Record, TableInfo, UserInfo


class BitableOperationsMixin:
    """Mixin class providing Bitable operation methods for LarkClient."""

    # =========================================================================
    # App Operations
    # =========================================================================

    def get_base(self, app_token: str) -> BaseInfo:
        data = self._request("GET", f"/bitable/v1/apps/{app_token}")
        app = data.get("app") or {}
        app.setdefault("app_token", app_token)
        return BaseInfo.from_api(app)

    def create_base(self, name: str, folder_token: str = None) -> BaseInfo:
        """Create a new Base.

        Args:
            name: Base name
            folder_token: Optional Drive folder to create it in

        Returns:
            Descriptor of the created Base
        """
        body: Dict[str, Any] = {"name": name}
        if folder_token:
            body["folder_token"] = folder_token

        data = self._request("POST", "/bitable/v1/apps", json=body)
        base = BaseInfo.from_api(data.get("app") or {})
        logger.success(f"创建多维表格成功: {name} ({base.app_token})")
        return base

    # =========================================================================
    # Table Operations
    # =========================================================================

    def list_tables(self, app_token: str) -> List[TableInfo]:
        items = self._paginate(
            f"/bitable/v1/apps/{app_token}/tables",
            page_size=TABLE_PAGE_SIZE, max_pages=MAX_TABLE_PAGES, label="列出数据表",
        )
        return [TableInfo.from_api(item) for item in items]

    def list_tables_with_fallback(self, app_token: str,
                                  table_id_from_url: Optional[str] = None) -> List[TableInfo]:
        """List tables, degrading to what the URL tells us on permission errors.

        Args:
            app_token: Base token
            table_id_from_url: Table id embedded in the source URL, if any

        Returns:
            The table list; on a permission error, one synthesized table for
            `table_id_from_url` or an empty list
        """
        try:
            return self.list_tables(app_token)
        except LarkError as e:
            if not is_permission_error(e):
                raise
            logger.warning(f"无权限列出数据表，使用降级结果: {e}")
            if table_id_from_url:
                return [TableInfo(table_id=table_id_from_url, name=table_id_from_url)]
            return []

    def create_table(self, app_token: str, name: str,
                     fields: List[FieldDefinition]) -> TableInfo:
        """Create a table with the given field list and the default grid view."""
        body = {
            "table": {
                "name": name,
                "default_view_name": DEFAULT_VIEW_NAME,
                "fields": [f.to_create_payload() for f in fields],
            }
        }
        data = self._request("POST", f"/bitable/v1/apps/{app_token}/tables", json=body)
        table_id = data.get("table_id", "")
        logger.debug(f"创建数据表: {name} ({table_id})")
        return TableInfo(table_id=table_id, name=name)

    def delete_table(self, app_token: str, table_id: str) -> None:
        self._request("DELETE", f"/bitable/v1/apps/{app_token}/tables/{table_id}")

    # =========================================================================
    # Field Operations
    # =========================================================================

    def list_fields(self, app_token: str, table_id: str) -> List[FieldDefinition]:
        items = self._paginate(
            f"/bitable/v1/apps/{app_token}/tables/{table_id}/fields",
            page_size=FIELD_PAGE_SIZE, max_pages=MAX_FIELD_PAGES, label=f"列出字段 {table_id}",
        )
        return [FieldDefinition.from_api(item) for item in items]

    def list_fields_with_fallback(self, app_token: str, table_id: str) -> List[FieldDefinition]:
        try:
            return self.list_fields(app_token, table_id)
        except LarkError as e:
            if not is_permission_error(e):
                raise
            logger.warning(f"无权限读取字段 {table_id}: {e}")
            return []

    def create_field(self, app_token: str, table_id: str,
                     field_def: FieldDefinition) -> FieldDefinition:
        data = self._request(
            "POST", f"/bitable/v1/apps/{app_token}/tables/{table_id}/fields",
            json=field_def.to_create_payload(),
        )
        return FieldDefinition.from_api(data.get("field") or {})

    # =========================================================================
    # Record Operations
    # =========================================================================

    def list_records(self, app_token: str, table_id: str) -> List[Record]:
        items = self._paginate(
            f"/bitable/v1/apps/{app_token}/tables/{table_id}/records",
            page_size=RECORD_PAGE_SIZE, max_pages=MAX_RECORD_PAGES, label=f"列出记录 {table_id}",
        )
        return [Record.from_api(item) for item in items]

    def list_records_with_fallback(self, app_token: str, table_id: str) -> List[Record]:
        try:
            return self.list_records(app_token, table_id)
        except LarkError as e:
            if not is_permission_error(e):
                raise
            logger.warning(f"无权限读取记录 {table_id}: {e}")
            return []

    def create_records(self, app_token: str, table_id: str,
                       records: List[Dict[str, Any]],
                       batch_size: int = RECORD_BATCH_SIZE) -> List[Record]:
        """Batch create records.

        Args:
            app_token: Base token
            table_id: Target table
            records: Field maps keyed by field name
            batch_size: Records per request (vendor limit is 500)

        Returns:
            The created records
        """
        created: List[Record] = []
        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            data = self._request(
                "POST", f"/bitable/v1/apps/{app_token}/tables/{table_id}/records/batch_create",
                json={"records": [{"fields": fields} for fields in batch]},
            )
            created.extend(Record.from_api(item) for item in data.get("records") or [])
            logger.debug(f"批量创建记录: {len(batch)} 条 ({i // batch_size + 1})")
        return created

    # =========================================================================
    # Member Operations
    # =========================================================================

    def get_current_user(self) -> UserInfo:
        """User behind the current user access token."""
        data = self._request("GET", "/authen/v1/user_info")
        return UserInfo(
            open_id=data.get("open_id", ""),
            name=data.get("name", ""),
            user_id=data.get("user_id"),
            en_name=data.get("en_name"),
        )

    def add_collaborator(self, app_token: str, member_id: str,
                         perm: str = ADMIN_PERMISSION, member_type: str = "openid") -> None:
        self._request(
            "POST", f"/drive/v1/permissions/{app_token}/members",
            params={"type": "bitable", "need_notification": "false"},
            json={"member_type": member_type, "member_id": member_id, "perm": perm},
        )
        logger.debug(f"已添加协作者 {member_id} ({perm})")
