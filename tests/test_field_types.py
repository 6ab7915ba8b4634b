"""Tests for field classification."""
import pytest

from base_snapshot.converter.field_types import (
    FieldCategory,
    UiType,
    classify_field,
    dynamic_ui_type,
    is_numeric_field,
)
from base_snapshot.models import FieldDefinition


def make_field(type_code, ui_type=None, name="F"):
    return FieldDefinition(field_name=name, type=type_code, ui_type=ui_type)


class TestClassifyByUiType:

    @pytest.mark.parametrize("ui_type,code", [
        ("User", 11), ("CreatedUser", 1003), ("ModifiedUser", 1004),
        ("SingleLink", 18), ("DuplexLink", 21), ("Lookup", 19),
        ("Formula", 20), ("Attachment", 17),
    ])
    def test_dynamic_types(self, ui_type, code):
        assert classify_field(make_field(code, ui_type)) is FieldCategory.DYNAMIC

    @pytest.mark.parametrize("ui_type,code", [
        ("Text", 1), ("Number", 2), ("SingleSelect", 3), ("MultiSelect", 4),
        ("DateTime", 5), ("Checkbox", 7), ("Phone", 13), ("Url", 15),
    ])
    def test_static_types(self, ui_type, code):
        assert classify_field(make_field(code, ui_type)) is FieldCategory.STATIC

    def test_progress_stored_as_number_is_static(self):
        assert classify_field(make_field(2, "Progress")) is FieldCategory.STATIC

    def test_rating_and_currency_become_number(self):
        assert classify_field(make_field(2, "Rating")) is FieldCategory.NUMBER_ONLY
        assert classify_field(make_field(2, "Currency")) is FieldCategory.NUMBER_ONLY

    @pytest.mark.parametrize("ui_type,code", [
        ("AutoNumber", 1005), ("CreatedTime", 1001), ("ModifiedTime", 1002),
        ("Email", 1), ("Barcode", 1), ("Location", 22), ("Button", 3001),
        ("Stage", 24), ("GroupChat", 23),
    ])
    def test_text_only_types(self, ui_type, code):
        assert classify_field(make_field(code, ui_type)) is FieldCategory.TEXT_ONLY


class TestClassifyByTypeCode:

    @pytest.mark.parametrize("code", [11, 17, 18, 19, 20, 21, 1003, 1004])
    def test_dynamic_codes_without_ui_type(self, code):
        assert classify_field(make_field(code)) is FieldCategory.DYNAMIC

    def test_static_code_without_ui_type(self):
        assert classify_field(make_field(1)) is FieldCategory.STATIC

    @pytest.mark.parametrize("code", [24, 1050])
    def test_number_only_codes(self, code):
        assert classify_field(make_field(code)) is FieldCategory.NUMBER_ONLY

    @pytest.mark.parametrize("code", [22, 23, 1001, 1002, 1005, 1051, 3001])
    def test_text_only_codes(self, code):
        assert classify_field(make_field(code)) is FieldCategory.TEXT_ONLY

    def test_unknown_code_is_text_only(self):
        assert classify_field(make_field(9999)) is FieldCategory.TEXT_ONLY

    def test_dynamic_code_wins_over_static_tag(self):
        assert classify_field(make_field(18, "Text")) is FieldCategory.DYNAMIC

    def test_unsupported_code_wins_over_static_tag(self):
        assert classify_field(make_field(1005, "Text")) is FieldCategory.TEXT_ONLY

    def test_unknown_tag_falls_back_to_code(self):
        assert classify_field(make_field(19, "SomethingNew")) is FieldCategory.DYNAMIC
        assert classify_field(make_field(1, "SomethingNew")) is FieldCategory.STATIC


class TestPreserveAttachments:

    def test_attachment_static_when_preserved(self):
        field_def = make_field(17, "Attachment")
        assert classify_field(field_def, preserve_attachments=True) is FieldCategory.STATIC

    def test_attachment_code_static_when_preserved(self):
        assert classify_field(make_field(17), preserve_attachments=True) is FieldCategory.STATIC

    def test_other_dynamic_unaffected(self):
        assert classify_field(make_field(11, "User"), preserve_attachments=True) is FieldCategory.DYNAMIC


class TestHelpers:

    def test_dynamic_ui_type_from_tag(self):
        assert dynamic_ui_type(make_field(18, "SingleLink")) is UiType.SINGLE_LINK

    def test_dynamic_ui_type_from_code(self):
        assert dynamic_ui_type(make_field(21)) is UiType.DUPLEX_LINK
        assert dynamic_ui_type(make_field(1003)) is UiType.CREATED_USER

    def test_dynamic_ui_type_none_for_static(self):
        assert dynamic_ui_type(make_field(1, "Text")) is None

    def test_numeric_fields(self):
        assert is_numeric_field(make_field(2, "Number"))
        assert is_numeric_field(make_field(2, "Progress"))
        assert is_numeric_field(make_field(2))
        assert not is_numeric_field(make_field(1, "Text"))
