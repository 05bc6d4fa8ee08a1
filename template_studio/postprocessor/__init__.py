"""
Postprocessor Module for Invoice Template Studio.

This module provides functionality for:
    - Normalizing extracted dates and amounts
    - Cleaning extracted text
    - Flagging low-confidence fields

Author: ML Engineering Team
"""

from .normalizers import DateNormalizer, AmountNormalizer, clean_text
from .processor import RecordPostProcessor

__all__ = [
    'DateNormalizer',
    'AmountNormalizer',
    'clean_text',
    'RecordPostProcessor'
]
