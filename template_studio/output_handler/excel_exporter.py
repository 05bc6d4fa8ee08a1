"""
Excel Exporter Module.

This module provides Excel workbook generation for document records.
Uses openpyxl for modern Excel format support.

Features:
    - Formatted headers
    - Two-decimal number formats on monetary columns
    - Auto-column width
    - Optional document summary sheet

Author: ML Engineering Team
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from config import get_config
from template_studio.binding.formatting import round_money
from template_studio.model.document import InvoiceData
from template_studio.utils.exceptions import ExcelExportError
from template_studio.utils.helpers import ensure_directory, generate_timestamp
from template_studio.utils.logger import get_logger
from .csv_exporter import DOCUMENT_COLUMNS, LINE_ITEM_COLUMNS, Column

# Initialize module logger
logger = get_logger(__name__)

MONEY_FORMAT = '#,##0.00'


class ExcelExporter:
    """
    Exports records to Excel format.

    Attributes:
        output_dir: Directory for output files.
        sheet_name: Title of the line item sheet.
        include_summary: Whether to add a document summary sheet.

    Example:
        >>> exporter = ExcelExporter()
        >>> filepath = exporter.export(records, "line_items.xlsx")
        >>> print(f"Saved to: {filepath}")
    """

    HEADER_FONT = Font(bold=True, color="FFFFFF")
    THIN_BORDER = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    def __init__(self) -> None:
        """Initialize the Excel exporter with configuration."""
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))
        self.sheet_name = get_config("output.excel.sheet_name", "Line Items")
        self.include_summary = get_config("output.excel.include_summary", True)
        logger.debug(f"ExcelExporter initialized (output_dir: {self.output_dir})")

    def build_workbook(self, records: Sequence[InvoiceData]) -> Workbook:
        """Workbook with a line item sheet and, if enabled, a summary sheet."""
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_name
        rows = [(record, line) for record in records for line in record.summary]
        self._fill_sheet(sheet, LINE_ITEM_COLUMNS, rows, "4472C4")

        if self.include_summary:
            summary = workbook.create_sheet(title="Documents")
            self._fill_sheet(summary, DOCUMENT_COLUMNS, [(record, None) for record in records], "548235")
        return workbook

    def export(
        self,
        records: Union[InvoiceData, List[InvoiceData]],
        filename: Optional[str] = None,
        output_dir: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Export records to an Excel file.

        Args:
            records: Single record or list of records to export.
            filename: Output filename. If None, auto-generated.
            output_dir: Output directory. If None, uses configured dir.

        Returns:
            Path to the created Excel file.

        Raises:
            ExcelExportError: If export fails.
        """
        if isinstance(records, InvoiceData):
            records = [records]
        if not records:
            raise ExcelExportError("No records", "No records to export")

        out_dir = ensure_directory(output_dir or self.output_dir)
        filepath = out_dir / (filename or self.get_default_filename())

        try:
            self.build_workbook(records).save(filepath)
        except (OSError, ValueError) as e:
            logger.error(f"Excel export failed: {e}")
            raise ExcelExportError(str(filepath), str(e))

        logger.info(f"Excel file saved: {filepath} ({len(records)} documents)")
        return filepath

    def _fill_sheet(self, sheet, columns: List[Column], rows, header_color: str) -> None:
        header_fill = PatternFill(start_color=header_color, end_color=header_color, fill_type="solid")

        # Write headers
        for col, (header, _, _) in enumerate(columns, 1):
            cell = sheet.cell(row=1, column=col, value=header)
            cell.font = self.HEADER_FONT
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = self.THIN_BORDER

        # Write data rows; numbers stay numeric so the sheet can sum them
        widths = [len(header) for header, _, _ in columns]
        for row_num, (record, line) in enumerate(rows, 2):
            for col, (_, get, monetary) in enumerate(columns, 1):
                value = get(record, line)
                if monetary:
                    value = round_money(value)
                cell = sheet.cell(row=row_num, column=col, value=value)
                cell.border = self.THIN_BORDER
                if monetary:
                    cell.number_format = MONEY_FORMAT
                    cell.alignment = Alignment(horizontal="right")
                widths[col - 1] = max(widths[col - 1], len(str(value)))

        for col, width in enumerate(widths, 1):
            sheet.column_dimensions[get_column_letter(col)].width = min(width + 2, 50)

        # Freeze header row
        sheet.freeze_panes = 'A2'

    def get_default_filename(self) -> str:
        pattern = get_config("output.excel.filename_pattern", "line_items_{timestamp}.xlsx")
        return pattern.format(timestamp=generate_timestamp())
