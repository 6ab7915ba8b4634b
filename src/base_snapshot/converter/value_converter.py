"""
Cell Value Conversion

Turns dynamic cell values (users, links, lookups, formulas, attachments)
into plain strings, and cleans values written to numeric or text-only
target fields.

Display-text precedence, per value shape:

    user        name, en_name, id
    link        text, record_id
    attachment  name, file_token
    any object  text, value (recursively), name, en_name, JSON form
"""

import json
import math
from typing import Any, Callable, Dict, Optional

from base_snapshot.converter.field_types import (
    UI_TYPE_CATEGORIES,
    FieldCategory,
    UiType,
)

LIST_SEPARATOR = ", "

_OBJECT_TEXT_KEYS = ("text", "value", "name", "en_name")


def _first_present(item: Dict[str, Any], keys) -> str:
    for key in keys:
        value = item.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def extract_text(value: Any) -> str:
    """Best display string for an arbitrary nested cell value."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, list):
        return LIST_SEPARATOR.join(extract_text(v) for v in value)
    if isinstance(value, dict):
        for key in _OBJECT_TEXT_KEYS:
            if key not in value:
                continue
            if key == "value":
                text = extract_text(value[key])
            elif isinstance(value[key], str):
                text = value[key]
            else:
                continue
            if text:
                return text
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def sanitize_number(value: Any) -> Optional[float]:
    """Finite number parsed from a number or numeric string, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


# =============================================================================
# Dynamic value converters, one per UI variant
# =============================================================================

def convert_user(value: Any) -> str:
    if isinstance(value, list):
        return LIST_SEPARATOR.join(convert_user(u) for u in value)
    if isinstance(value, dict):
        return _first_present(value, ("name", "en_name", "id"))
    return extract_text(value)


def convert_link(value: Any) -> str:
    if isinstance(value, dict):
        # {"link_record_ids": [...]} shape returned by some list calls
        if "link_record_ids" in value:
            return LIST_SEPARATOR.join(str(r) for r in value.get("link_record_ids") or [])
        if "record_ids" in value:
            return LIST_SEPARATOR.join(str(r) for r in value.get("record_ids") or [])
        return _first_present(value, ("text", "record_id"))
    if not isinstance(value, list):
        return ""
    parts = []
    for link in value:
        if isinstance(link, dict):
            parts.append(_first_present(link, ("text", "record_id")))
        else:
            parts.append(extract_text(link))
    return LIST_SEPARATOR.join(parts)


def convert_lookup(value: Any) -> str:
    if isinstance(value, list):
        return LIST_SEPARATOR.join(t for t in (extract_text(v) for v in value) if t)
    return extract_text(value)


def convert_formula(value: Any) -> str:
    if isinstance(value, str):
        return value
    return extract_text(value)


def convert_attachment(value: Any) -> str:
    if not isinstance(value, list):
        return ""
    names = []
    for item in value:
        if isinstance(item, dict):
            names.append(_first_present(item, ("name", "file_token")))
    return LIST_SEPARATOR.join(n for n in names if n)


DYNAMIC_CONVERTERS: Dict[UiType, Callable[[Any], str]] = {
    UiType.USER: convert_user,
    UiType.CREATED_USER: convert_user,
    UiType.MODIFIED_USER: convert_user,
    UiType.SINGLE_LINK: convert_link,
    UiType.DUPLEX_LINK: convert_link,
    UiType.LOOKUP: convert_lookup,
    UiType.FORMULA: convert_formula,
    UiType.ATTACHMENT: convert_attachment,
}

_missing = [ui for ui, category in UI_TYPE_CATEGORIES.items()
            if category is FieldCategory.DYNAMIC and ui not in DYNAMIC_CONVERTERS]
if _missing:
    raise RuntimeError(f"No value converter for dynamic UI types: {_missing}")


def convert_dynamic_value(value: Any, ui_type: Optional[UiType]) -> str:
    """Static text for a dynamic cell; unknown variants use the generic extraction."""
    if value is None:
        return ""
    converter = DYNAMIC_CONVERTERS.get(ui_type, extract_text)
    return converter(value)
