"""
Binding Module for Invoice Template Studio.

This module provides functionality for:
    - Resolving element bindings against document-data records
    - Composite bindings (bank details block, amount in words)
    - Deterministic monetary and numeric formatting
    - The catalog of common binding paths

Author: ML Engineering Team
"""

from .currency import number_to_words, currency_name
from .formatting import (
    coerce_number,
    round_money,
    format_currency,
    format_value,
    is_monetary_path,
)
from .resolver import CompositeBinding, FieldPath, parse_binding, resolve, lookup
from .catalog import COMMON_BINDINGS, BindingOption, binding_label, is_custom_binding

__all__ = [
    'number_to_words',
    'currency_name',
    'coerce_number',
    'round_money',
    'format_currency',
    'format_value',
    'is_monetary_path',
    'CompositeBinding',
    'FieldPath',
    'parse_binding',
    'resolve',
    'lookup',
    'COMMON_BINDINGS',
    'BindingOption',
    'binding_label',
    'is_custom_binding'
]
