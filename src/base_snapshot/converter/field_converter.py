"""
Field Definition and Record Conversion Module

Rewrites source field definitions into ones the create-table endpoint
accepts, and source records into field maps for the batch-create endpoint.

Usage:
    from base_snapshot.converter import FieldConverter

    converted = FieldConverter.convert_fields(source_fields)
    target_fields = [c.target for c in converted]
    values = FieldConverter.convert_record(record.fields, converted, target_names)
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from base_snapshot.constants import LINKED_PROPERTY_KEYS
from base_snapshot.converter.field_types import (
    FIELD_TYPE_ATTACHMENT,
    FIELD_TYPE_NUMBER,
    FIELD_TYPE_TEXT,
    FieldCategory,
    UiType,
    classify_field,
    dynamic_ui_type,
    is_numeric_field,
)
from base_snapshot.converter.value_converter import (
    convert_dynamic_value,
    extract_text,
    sanitize_number,
)
from base_snapshot.models import FieldDefinition

SELECT_UI_TYPES = (UiType.SINGLE_SELECT.value, UiType.MULTI_SELECT.value)

# (field name, source cell value) -> target cell value, or None to omit
AttachmentCopier = Callable[[str, Any], Any]


@dataclass(frozen=True)
class ConvertedField:
    """A source field paired with the definition created in the target."""
    source: FieldDefinition
    target: FieldDefinition
    category: FieldCategory

    @property
    def is_converted(self) -> bool:
        return self.category is not FieldCategory.STATIC

    @property
    def is_attachment_copy(self) -> bool:
        return self.category is FieldCategory.STATIC and self.target.type == FIELD_TYPE_ATTACHMENT


class FieldConverter:
    """Converter from source Base definitions/records to static ones.

    All methods are static for easy use without instantiation.
    """

    # =========================================================================
    # Field Definitions
    # =========================================================================

    @staticmethod
    def clean_property(field_def: FieldDefinition) -> Optional[Dict[str, Any]]:
        """Property bag without references to other tables or formulas.

        Select fields keep only their option names and colors; the target
        Base assigns new option ids.
        """
        prop = field_def.property
        if not prop:
            return None

        if field_def.ui_type in SELECT_UI_TYPES:
            options = []
            for option in prop.get("options") or []:
                if not isinstance(option, dict) or not option.get("name"):
                    continue
                cleaned = {"name": option["name"]}
                if option.get("color") is not None:
                    cleaned["color"] = option["color"]
                options.append(cleaned)
            return {"options": options}

        cleaned = {k: v for k, v in prop.items() if k not in LINKED_PROPERTY_KEYS}
        return cleaned or None

    @staticmethod
    def convert_field(field_def: FieldDefinition,
                      preserve_attachments: bool = False) -> ConvertedField:
        category = classify_field(field_def, preserve_attachments)

        if category in (FieldCategory.DYNAMIC, FieldCategory.TEXT_ONLY):
            target = field_def.with_type(FIELD_TYPE_TEXT, UiType.TEXT.value)
        elif category is FieldCategory.NUMBER_ONLY:
            target = field_def.with_type(FIELD_TYPE_NUMBER, UiType.NUMBER.value)
        else:
            target = FieldDefinition(
                field_name=field_def.field_name,
                type=field_def.type,
                ui_type=field_def.ui_type,
                property=FieldConverter.clean_property(field_def),
                is_primary=field_def.is_primary,
            )
        return ConvertedField(source=field_def, target=target, category=category)

    @staticmethod
    def convert_fields(fields: Iterable[FieldDefinition],
                       preserve_attachments: bool = False) -> List[ConvertedField]:
        return [FieldConverter.convert_field(f, preserve_attachments) for f in fields]

    # =========================================================================
    # Records
    # =========================================================================

    @staticmethod
    def convert_value(converted: ConvertedField, value: Any) -> Any:
        """Target cell value for one source cell, or None to omit it."""
        category = converted.category

        if category is FieldCategory.DYNAMIC:
            return convert_dynamic_value(value, dynamic_ui_type(converted.source))
        if category is FieldCategory.NUMBER_ONLY:
            return sanitize_number(value)
        if category is FieldCategory.TEXT_ONLY:
            return extract_text(value)
        if is_numeric_field(converted.source):
            return sanitize_number(value)
        return value

    @staticmethod
    def convert_record(fields: Dict[str, Any], converted_fields: List[ConvertedField],
                       target_field_names: Iterable[str],
                       attachment_copier: AttachmentCopier = None) -> Dict[str, Any]:
        """Build the field map for one target record.

        Iterates the source field list, not the record's keys: fields the
        target table does not have and null values are skipped.

        Args:
            fields: Source record values keyed by field name
            converted_fields: Output of convert_fields for the source table
            target_field_names: Field names that exist in the target table
            attachment_copier: Copies preserved attachment cells; without
                one, preserved attachment cells are omitted

        Returns:
            Values keyed by field name
        """
        target_names = set(target_field_names)
        result: Dict[str, Any] = {}

        for converted in converted_fields:
            name = converted.source.field_name
            value = fields.get(name)
            if name not in target_names or value is None:
                continue

            if converted.is_attachment_copy:
                new_value = attachment_copier(name, value) if attachment_copier else None
            else:
                new_value = FieldConverter.convert_value(converted, value)

            if new_value is None:
                continue
            result[name] = new_value

        return result
