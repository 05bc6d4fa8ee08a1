"""
CSV Exporter Module.

Writes line items and document summaries as CSV: every field
double-quoted, header row first, monetary columns formatted with
thousands separators and two decimals.

Author: ML Engineering Team
"""

import csv
import io
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from config import get_config
from template_studio.binding.formatting import format_currency, format_plain
from template_studio.model.document import InvoiceData, SummaryLine
from template_studio.utils.exceptions import CsvExportError
from template_studio.utils.helpers import ensure_directory, generate_timestamp
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

Column = Tuple[str, Callable[[InvoiceData, Optional[SummaryLine]], Any], bool]


def _document_ref(record: InvoiceData) -> str:
    return record.metadata.invoice_number or record.original_file_name or ''


# (header, getter, monetary)
LINE_ITEM_COLUMNS: List[Column] = [
    ('Document', lambda r, l: _document_ref(r), False),
    ('Description', lambda r, l: l.description, False),
    ('Quantity', lambda r, l: l.quantity, False),
    ('Unit', lambda r, l: l.unit, False),
    ('Rate', lambda r, l: l.rate, True),
    ('Total', lambda r, l: l.total, True),
    ('Currency', lambda r, l: r.currency, False),
]

DOCUMENT_COLUMNS: List[Column] = [
    ('Document', lambda r, l: _document_ref(r), False),
    ('Date', lambda r, l: r.metadata.date or '', False),
    ('Client', lambda r, l: r.metadata.client_name or '', False),
    ('Client Reference', lambda r, l: r.metadata.client_ref or '', False),
    ('Lines', lambda r, l: len(r.summary), False),
    ('Grand Total', lambda r, l: r.grand_total, True),
    ('Currency', lambda r, l: r.currency, False),
    ('Amount In Words', lambda r, l: r.amount_in_words, False),
    ('Source File', lambda r, l: r.original_file_name or '', False),
]


def _cell(value: Any, monetary: bool) -> str:
    if monetary:
        return format_currency(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_plain(value)
    return '' if value is None else str(value)


class CsvExporter:
    """
    Exports records to CSV.

    Example:
        >>> exporter = CsvExporter()
        >>> text = exporter.line_items_csv([record])
        >>> path = exporter.export_line_items([record], "items.csv")
    """

    def __init__(self) -> None:
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))

    @staticmethod
    def _render(rows: List[List[str]], headers: Sequence[str]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
        writer.writerow(headers)
        writer.writerows(rows)
        return buffer.getvalue()

    def line_items_csv(self, records: Sequence[InvoiceData]) -> str:
        """One row per line item across all records."""
        rows = [
            [_cell(get(record, line), monetary) for _, get, monetary in LINE_ITEM_COLUMNS]
            for record in records
            for line in record.summary
        ]
        return self._render(rows, [h for h, _, _ in LINE_ITEM_COLUMNS])

    def documents_csv(self, records: Sequence[InvoiceData]) -> str:
        """One row per record."""
        rows = [
            [_cell(get(record, None), monetary) for _, get, monetary in DOCUMENT_COLUMNS]
            for record in records
        ]
        return self._render(rows, [h for h, _, _ in DOCUMENT_COLUMNS])

    def _write(self, text: str, filename: Optional[str], output_dir: Optional[Union[str, Path]]) -> Path:
        directory = ensure_directory(output_dir or self.output_dir)
        if filename is None:
            pattern = get_config("output.csv.filename_pattern", "line_items_{timestamp}.csv")
            filename = pattern.format(timestamp=generate_timestamp())
        filepath = directory / filename
        try:
            filepath.write_text(text, encoding='utf-8')
        except OSError as e:
            logger.error(f"CSV export failed: {e}")
            raise CsvExportError(str(filepath), str(e))
        logger.info(f"CSV file saved: {filepath}")
        return filepath

    def export_line_items(
        self,
        records: Union[InvoiceData, Sequence[InvoiceData]],
        filename: Optional[str] = None,
        output_dir: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Write line items to a CSV file.

        Raises:
            CsvExportError: If the file cannot be written.
        """
        if isinstance(records, InvoiceData):
            records = [records]
        return self._write(self.line_items_csv(records), filename, output_dir)

    def export_documents(
        self,
        records: Sequence[InvoiceData],
        filename: Optional[str] = None,
        output_dir: Optional[Union[str, Path]] = None
    ) -> Path:
        return self._write(self.documents_csv(records), filename, output_dir)
