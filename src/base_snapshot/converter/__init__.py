"""
Converter Package

Classification of Base fields and conversion of field definitions and
record values into their static equivalents.

Usage:
    from base_snapshot.converter import FieldConverter, classify_field

    converted = FieldConverter.convert_fields(source_fields)
"""

from base_snapshot.converter.field_converter import ConvertedField, FieldConverter
from base_snapshot.converter.field_types import FieldCategory, UiType, classify_field
from base_snapshot.converter.value_converter import (
    convert_dynamic_value,
    extract_text,
    sanitize_number,
)

__all__ = [
    'ConvertedField',
    'FieldConverter',
    'FieldCategory',
    'UiType',
    'classify_field',
    'convert_dynamic_value',
    'extract_text',
    'sanitize_number',
]
