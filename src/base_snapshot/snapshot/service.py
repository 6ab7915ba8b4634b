"""
Snapshot Service Module

Copies a source Base into a newly created Base whose fields are all static.

Flow:
- Resolve the source URL (Wiki indirection, table id in the query string)
- Create the target Base and drop the table it is created with
- Replicate each source table: convert fields, create the table, convert
  and batch-insert records
- Optionally grant the calling user full access on the target Base

`create_snapshot` never raises: setup failures become one fatal error,
per-table failures are recorded and the next table is processed.
"""

from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from base_snapshot.constants import DEFAULT_TABLE_NAMES, SNAPSHOT_TABLE_SUFFIX
from base_snapshot.converter.field_converter import FieldConverter
from base_snapshot.exceptions import LarkApiError, LarkError
from base_snapshot.lark.urls import parse_table_id_from_url
from base_snapshot.lark_client import LarkClient
from base_snapshot.logger import logger
from base_snapshot.models import (
    BaseInfo,
    Record,
    SnapshotConfig,
    SnapshotError,
    SnapshotResult,
    TableInfo,
)


def snapshot_table_name(name: str, day: date) -> str:
    return f"{name}{SNAPSHOT_TABLE_SUFFIX}{day.strftime('%Y%m%d')}"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error_code(exc: Exception) -> Optional[str]:
    """Lark status code of an API failure, if it carried one."""
    return str(exc.code) if isinstance(exc, LarkApiError) else None


class SnapshotService:
    """Creates static snapshots of a Base."""

    def __init__(self, client: LarkClient, today: Callable[[], date] = None):
        """Initialize the snapshot service.

        Args:
            client: Authenticated LarkClient (user token for admin grants)
            today: Returns the date used in snapshot table names
        """
        self.client = client
        self.today = today or date.today

    def create_snapshot(self, config: SnapshotConfig) -> SnapshotResult:
        """Create a snapshot Base as described by `config`."""
        created_at = _utc_timestamp()
        errors: List[SnapshotError] = []

        logger.header(f"创建快照: {config.target_base_name}", icon="📸")

        try:
            source_token = self.client.resolve_base_app_token(config.source_base_url)
            table_id_from_url = parse_table_id_from_url(config.source_base_url)
            source_base = self.client.get_base(source_token)
            logger.info(f"源多维表格: {source_base.name} ({source_token})")

            target_base = self.client.create_base(config.target_base_name)
            self._delete_default_table(target_base.app_token)

            tables = self.client.list_tables_with_fallback(source_token, table_id_from_url)
            if config.selected_table_ids:
                selected = set(config.selected_table_ids)
                tables = [t for t in tables if t.table_id in selected]
            logger.info(f"待处理数据表: {len(tables)} 个", icon="📋")
        except Exception as e:
            logger.error(f"快照初始化失败: {e}")
            return SnapshotResult(
                success=False,
                source_base=BaseInfo(app_token="", name="", url=config.source_base_url),
                target_base=BaseInfo(app_token="", name=config.target_base_name),
                errors=[SnapshotError(message=str(e), code=_error_code(e))],
                created_at=created_at,
            )

        result = SnapshotResult(
            success=False,
            source_base=source_base,
            target_base=target_base,
            tables_processed=len(tables),
            errors=errors,
            created_at=created_at,
        )

        day = self.today()
        for table in tables:
            try:
                records, converted = self._process_table(
                    source_token, target_base.app_token, table,
                    snapshot_table_name(table.name, day), config, errors,
                )
                result.records_processed += records
                result.fields_converted += converted
            except Exception as e:
                logger.error(f"处理数据表失败 {table.name}: {e}")
                errors.append(SnapshotError(
                    message=f"Failed to process table: {e}", table=table.name,
                    code=_error_code(e),
                ))

        if config.grant_admin_permission:
            self._grant_admin(target_base.app_token, errors)

        result.success = not errors
        if result.success:
            logger.success(f"快照完成: {target_base.name} ({target_base.app_token})")
        else:
            logger.warning(f"快照完成，但有 {len(errors)} 个错误")
        return result

    # =========================================================================
    # Setup
    # =========================================================================

    def _delete_default_table(self, app_token: str):
        """Remove the table a new Base is created with; failure is ignored."""
        try:
            for table in self.client.list_tables(app_token):
                if table.name in DEFAULT_TABLE_NAMES:
                    logger.debug(f"删除默认数据表: {table.name} ({table.table_id})")
                    self.client.delete_table(app_token, table.table_id)
                    return
        except LarkError as e:
            logger.warning(f"删除默认数据表失败，已忽略: {e}")

    def _grant_admin(self, app_token: str, errors: List[SnapshotError]):
        try:
            user = self.client.get_current_user()
            self.client.add_collaborator(app_token, user.member_id)
            logger.success(f"已授予 {user.name or user.member_id} 管理权限")
        except Exception as e:
            logger.warning(f"授予管理权限失败: {e}")
            errors.append(SnapshotError(
                message=f"Failed to grant admin permission: {e}", code=_error_code(e),
            ))

    # =========================================================================
    # Per-table replication
    # =========================================================================

    def _process_table(self, source_token: str, target_token: str, table: TableInfo,
                       table_name: str, config: SnapshotConfig,
                       errors: List[SnapshotError]) -> tuple:
        """Replicate one table.

        Returns:
            (records processed, fields converted)
        """
        logger.info(f"处理数据表: {table.name} -> {table_name}", icon="📄")

        source_fields = self.client.list_fields_with_fallback(source_token, table.table_id)
        if not source_fields:
            errors.append(SnapshotError(
                message="Could not retrieve field definitions "
                        "(advanced permissions may be blocking access)",
                table=table.name,
            ))
            return 0, 0

        converted = FieldConverter.convert_fields(source_fields, config.preserve_attachments)
        fields_converted = sum(1 for c in converted if c.is_converted)

        target_table = self.client.create_table(
            target_token, table_name, [c.target for c in converted],
        )
        # Records are keyed by field name; the target's names are authoritative
        target_names = {f.field_name for f in self.client.list_fields(target_token, target_table.table_id)}

        source_records = self.client.list_records_with_fallback(source_token, table.table_id)
        if not source_records:
            logger.info(f"{table.name}: 没有需要复制的记录")
            return 0, fields_converted

        rows = [
            FieldConverter.convert_record(
                record.fields, converted, target_names,
                self._attachment_copier(target_token, table, record, errors)
                if config.preserve_attachments else None,
            )
            for record in source_records
        ]
        self.client.create_records(target_token, target_table.table_id, rows)

        logger.success(f"{table_name}: 已复制 {len(rows)} 条记录，转换 {fields_converted} 个字段")
        return len(rows), fields_converted

    def _attachment_copier(self, target_token: str, table: TableInfo,
                           record: Record, errors: List[SnapshotError]):
        """Copier that re-uploads a cell's files into the target Base.

        A file that fails to copy is recorded and left out of the cell.
        """
        def copy(field_name: str, value: Any) -> Optional[List[Dict[str, str]]]:
            if not isinstance(value, list):
                return None
            copied = []
            for item in value:
                if not isinstance(item, dict) or not item.get("file_token"):
                    continue
                file_token = item["file_token"]
                file_name = item.get("name") or file_token
                try:
                    content = self.client.download_attachment(file_token)
                    new_token = self.client.upload_attachment(target_token, file_name, content)
                except LarkError as e:
                    errors.append(SnapshotError(
                        message=f"Failed to copy attachment {file_name}: {e}",
                        table=table.name, record=record.record_id, field=field_name,
                        code=_error_code(e),
                    ))
                    continue
                copied.append({"file_token": new_token})
            return copied or None

        return copy
