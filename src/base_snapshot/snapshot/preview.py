"""
Snapshot preview: what a snapshot of a Base would touch, without creating anything.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List

from base_snapshot.converter.field_types import FieldCategory, classify_field
from base_snapshot.lark.urls import parse_table_id_from_url
from base_snapshot.lark_client import LarkClient
from base_snapshot.logger import logger
from base_snapshot.models import BaseInfo, TableInfo


@dataclass
class TablePreview:
    table_id: str
    name: str
    field_count: int
    dynamic_field_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tableId": self.table_id,
            "fieldCount": self.field_count,
            "dynamicFieldCount": self.dynamic_field_count,
        }


@dataclass
class BasePreview:
    base: BaseInfo
    tables: List[TablePreview] = field(default_factory=list)

    @property
    def total_dynamic_fields(self) -> int:
        return sum(t.dynamic_field_count for t in self.tables)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": {"name": self.base.name, "appToken": self.base.app_token},
            "tables": [t.to_dict() for t in self.tables],
            "totalTables": len(self.tables),
            "totalDynamicFields": self.total_dynamic_fields,
        }


def _preview_table(client: LarkClient, app_token: str, table: TableInfo) -> TablePreview:
    fields = client.list_fields_with_fallback(app_token, table.table_id)
    dynamic = sum(1 for f in fields if classify_field(f) is FieldCategory.DYNAMIC)
    return TablePreview(
        table_id=table.table_id,
        name=table.name,
        field_count=len(fields),
        dynamic_field_count=dynamic,
    )


def preview_base(client: LarkClient, url: str) -> BasePreview:
    """Table and dynamic-field counts of the Base at `url`.

    Field lists are fetched concurrently, one worker per table.

    Raises:
        InvalidBaseUrlError, LarkError
    """
    app_token = client.resolve_base_app_token(url)
    base = client.get_base(app_token)
    tables = client.list_tables_with_fallback(app_token, parse_table_id_from_url(url))

    preview = BasePreview(base=base)
    if not tables:
        return preview

    with ThreadPoolExecutor(max_workers=len(tables)) as executor:
        futures = [executor.submit(_preview_table, client, app_token, t) for t in tables]
        preview.tables = [f.result() for f in futures]

    logger.info(f"预览 {base.name}: {len(tables)} 个数据表, "
                f"{preview.total_dynamic_fields} 个动态字段", icon="🔍")
    return preview
