"""
Output Handler Module for Invoice Template Studio.

This module provides:
    - CSV export of line items and document summaries
    - Excel export using openpyxl
    - Unified output handling, including PDF rendering

Author: ML Engineering Team
"""

from .csv_exporter import CsvExporter, LINE_ITEM_COLUMNS, DOCUMENT_COLUMNS
from .excel_exporter import ExcelExporter
from .handler import OutputHandler

__all__ = [
    'CsvExporter',
    'ExcelExporter',
    'OutputHandler',
    'LINE_ITEM_COLUMNS',
    'DOCUMENT_COLUMNS'
]
