"""
Field Type Classification

One canonical table maps each UI type tag and each numeric type code to a
category. Both are consulted because the API omits `ui_type` on some
responses and some UI tags share a type code (e.g. Currency and Number).

    STATIC       kept as-is (properties cleaned)
    DYNAMIC      computed or referencing values; rewritten to Text
    TEXT_ONLY    rejected by the create-table endpoint; rewritten to Text
    NUMBER_ONLY  rejected by the create-table endpoint, numeric; rewritten to Number
"""

from enum import Enum
from typing import Dict, Optional

from base_snapshot.models import FieldDefinition


class FieldCategory(Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    TEXT_ONLY = "text_only"
    NUMBER_ONLY = "number_only"


class UiType(str, Enum):
    """Symbolic field type tags (`ui_type` in API responses)."""
    TEXT = "Text"
    NUMBER = "Number"
    SINGLE_SELECT = "SingleSelect"
    MULTI_SELECT = "MultiSelect"
    DATE_TIME = "DateTime"
    CHECKBOX = "Checkbox"
    PHONE = "Phone"
    URL = "Url"
    PROGRESS = "Progress"
    CURRENCY = "Currency"
    RATING = "Rating"
    USER = "User"
    CREATED_USER = "CreatedUser"
    MODIFIED_USER = "ModifiedUser"
    SINGLE_LINK = "SingleLink"
    DUPLEX_LINK = "DuplexLink"
    LOOKUP = "Lookup"
    FORMULA = "Formula"
    ATTACHMENT = "Attachment"
    STAGE = "Stage"
    EMAIL = "Email"
    LOCATION = "Location"
    BARCODE = "Barcode"
    BUTTON = "Button"
    AUTO_NUMBER = "AutoNumber"
    CREATED_TIME = "CreatedTime"
    MODIFIED_TIME = "ModifiedTime"
    GROUP_CHAT = "GroupChat"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["UiType"]:
        """Known tag for `value`, or None (absent or unknown)."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# Numeric type codes
FIELD_TYPE_TEXT = 1
FIELD_TYPE_NUMBER = 2
FIELD_TYPE_SINGLE_SELECT = 3
FIELD_TYPE_MULTI_SELECT = 4
FIELD_TYPE_DATE = 5
FIELD_TYPE_CHECKBOX = 7
FIELD_TYPE_USER = 11
FIELD_TYPE_PHONE = 13
FIELD_TYPE_URL = 15
FIELD_TYPE_ATTACHMENT = 17
FIELD_TYPE_SINGLE_LINK = 18
FIELD_TYPE_LOOKUP = 19
FIELD_TYPE_FORMULA = 20
FIELD_TYPE_DUPLEX_LINK = 21
FIELD_TYPE_LOCATION = 22
FIELD_TYPE_BARCODE = 23
FIELD_TYPE_RATING = 24           # also Stage
FIELD_TYPE_CREATED_TIME = 1001
FIELD_TYPE_MODIFIED_TIME = 1002
FIELD_TYPE_CREATED_USER = 1003
FIELD_TYPE_MODIFIED_USER = 1004
FIELD_TYPE_AUTO_NUMBER = 1005
FIELD_TYPE_CURRENCY = 1050
FIELD_TYPE_EMAIL = 1051
FIELD_TYPE_BUTTON = 3001


UI_TYPE_CATEGORIES: Dict[UiType, FieldCategory] = {
    UiType.TEXT: FieldCategory.STATIC,
    UiType.NUMBER: FieldCategory.STATIC,
    UiType.SINGLE_SELECT: FieldCategory.STATIC,
    UiType.MULTI_SELECT: FieldCategory.STATIC,
    UiType.DATE_TIME: FieldCategory.STATIC,
    UiType.CHECKBOX: FieldCategory.STATIC,
    UiType.PHONE: FieldCategory.STATIC,
    UiType.URL: FieldCategory.STATIC,
    UiType.PROGRESS: FieldCategory.STATIC,

    UiType.USER: FieldCategory.DYNAMIC,
    UiType.CREATED_USER: FieldCategory.DYNAMIC,
    UiType.MODIFIED_USER: FieldCategory.DYNAMIC,
    UiType.SINGLE_LINK: FieldCategory.DYNAMIC,
    UiType.DUPLEX_LINK: FieldCategory.DYNAMIC,
    UiType.LOOKUP: FieldCategory.DYNAMIC,
    UiType.FORMULA: FieldCategory.DYNAMIC,
    UiType.ATTACHMENT: FieldCategory.DYNAMIC,

    UiType.RATING: FieldCategory.NUMBER_ONLY,
    UiType.CURRENCY: FieldCategory.NUMBER_ONLY,

    UiType.STAGE: FieldCategory.TEXT_ONLY,
    UiType.EMAIL: FieldCategory.TEXT_ONLY,
    UiType.LOCATION: FieldCategory.TEXT_ONLY,
    UiType.BARCODE: FieldCategory.TEXT_ONLY,
    UiType.BUTTON: FieldCategory.TEXT_ONLY,
    UiType.AUTO_NUMBER: FieldCategory.TEXT_ONLY,
    UiType.CREATED_TIME: FieldCategory.TEXT_ONLY,
    UiType.MODIFIED_TIME: FieldCategory.TEXT_ONLY,
    UiType.GROUP_CHAT: FieldCategory.TEXT_ONLY,
}

TYPE_CODE_CATEGORIES: Dict[int, FieldCategory] = {
    FIELD_TYPE_TEXT: FieldCategory.STATIC,
    FIELD_TYPE_NUMBER: FieldCategory.STATIC,
    FIELD_TYPE_SINGLE_SELECT: FieldCategory.STATIC,
    FIELD_TYPE_MULTI_SELECT: FieldCategory.STATIC,
    FIELD_TYPE_DATE: FieldCategory.STATIC,
    FIELD_TYPE_CHECKBOX: FieldCategory.STATIC,
    FIELD_TYPE_PHONE: FieldCategory.STATIC,
    FIELD_TYPE_URL: FieldCategory.STATIC,

    FIELD_TYPE_USER: FieldCategory.DYNAMIC,
    FIELD_TYPE_ATTACHMENT: FieldCategory.DYNAMIC,
    FIELD_TYPE_SINGLE_LINK: FieldCategory.DYNAMIC,
    FIELD_TYPE_LOOKUP: FieldCategory.DYNAMIC,
    FIELD_TYPE_FORMULA: FieldCategory.DYNAMIC,
    FIELD_TYPE_DUPLEX_LINK: FieldCategory.DYNAMIC,
    FIELD_TYPE_CREATED_USER: FieldCategory.DYNAMIC,
    FIELD_TYPE_MODIFIED_USER: FieldCategory.DYNAMIC,

    FIELD_TYPE_RATING: FieldCategory.NUMBER_ONLY,
    FIELD_TYPE_CURRENCY: FieldCategory.NUMBER_ONLY,

    FIELD_TYPE_LOCATION: FieldCategory.TEXT_ONLY,
    FIELD_TYPE_BARCODE: FieldCategory.TEXT_ONLY,
    FIELD_TYPE_EMAIL: FieldCategory.TEXT_ONLY,
    FIELD_TYPE_CREATED_TIME: FieldCategory.TEXT_ONLY,
    FIELD_TYPE_MODIFIED_TIME: FieldCategory.TEXT_ONLY,
    FIELD_TYPE_AUTO_NUMBER: FieldCategory.TEXT_ONLY,
    FIELD_TYPE_BUTTON: FieldCategory.TEXT_ONLY,
}

# UI variant implied by a dynamic type code when `ui_type` is absent
DYNAMIC_TYPE_CODE_UI: Dict[int, UiType] = {
    FIELD_TYPE_USER: UiType.USER,
    FIELD_TYPE_ATTACHMENT: UiType.ATTACHMENT,
    FIELD_TYPE_SINGLE_LINK: UiType.SINGLE_LINK,
    FIELD_TYPE_LOOKUP: UiType.LOOKUP,
    FIELD_TYPE_FORMULA: UiType.FORMULA,
    FIELD_TYPE_DUPLEX_LINK: UiType.DUPLEX_LINK,
    FIELD_TYPE_CREATED_USER: UiType.CREATED_USER,
    FIELD_TYPE_MODIFIED_USER: UiType.MODIFIED_USER,
}

# Static UI types whose values must be finite numbers
NUMERIC_UI_TYPES = frozenset({UiType.NUMBER, UiType.CURRENCY, UiType.PROGRESS, UiType.RATING})


def _is_attachment(field_def: FieldDefinition, ui: Optional[UiType]) -> bool:
    if ui is not None:
        return ui is UiType.ATTACHMENT
    return field_def.type == FIELD_TYPE_ATTACHMENT


def classify_field(field_def: FieldDefinition, preserve_attachments: bool = False) -> FieldCategory:
    """Category of a source field.

    Rules, first match wins:
      1. dynamic if the UI tag or the type code says dynamic
      2. the UI tag's category when the tag is known and not static
      3. the code's category (unknown codes are TEXT_ONLY)

    With `preserve_attachments`, Attachment fields are STATIC.
    """
    ui = UiType.parse(field_def.ui_type)

    if preserve_attachments and _is_attachment(field_def, ui):
        return FieldCategory.STATIC

    ui_category = UI_TYPE_CATEGORIES.get(ui) if ui is not None else None
    code_category = TYPE_CODE_CATEGORIES.get(field_def.type, FieldCategory.TEXT_ONLY)

    if FieldCategory.DYNAMIC in (ui_category, code_category):
        return FieldCategory.DYNAMIC
    if ui_category is not None and ui_category is not FieldCategory.STATIC:
        return ui_category
    if ui_category is FieldCategory.STATIC and field_def.type not in TYPE_CODE_CATEGORIES:
        # Known static tag wins over an unrecognised code
        return FieldCategory.STATIC
    return code_category


def dynamic_ui_type(field_def: FieldDefinition) -> Optional[UiType]:
    """Converter variant for a dynamic field, from its tag or, failing that, its code."""
    ui = UiType.parse(field_def.ui_type)
    if ui is not None and UI_TYPE_CATEGORIES.get(ui) is FieldCategory.DYNAMIC:
        return ui
    return DYNAMIC_TYPE_CODE_UI.get(field_def.type)


def is_numeric_field(field_def: FieldDefinition) -> bool:
    """Whether a target field only accepts finite numbers."""
    ui = UiType.parse(field_def.ui_type)
    if ui is not None:
        return ui in NUMERIC_UI_TYPES
    return field_def.type == FIELD_TYPE_NUMBER
