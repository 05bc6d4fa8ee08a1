"""
Main Output Handler Module.

This module provides the unified OutputHandler class that coordinates
all output operations (PDF, CSV and Excel).

Author: ML Engineering Team
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from config import get_config
from template_studio.model.document import InvoiceData
from template_studio.model.template import TemplateData
from template_studio.utils.exceptions import TemplateStudioError
from template_studio.utils.logger import get_logger
from .csv_exporter import CsvExporter
from .excel_exporter import ExcelExporter

# Initialize module logger
logger = get_logger(__name__)


class OutputHandler:
    """
    Unified output handler for merged records.

    Coordinates output to PDF documents, a line item CSV and an Excel
    workbook. Each output can be toggled independently.

    Attributes:
        pdf_enabled: Whether PDF rendering is enabled
        csv_enabled: Whether CSV export is enabled
        excel_enabled: Whether Excel export is enabled

    Example:
        >>> handler = OutputHandler()
        >>> handler.save(template, records)  # Saves to every enabled output
        >>>
        >>> # Or save to specific outputs
        >>> handler.to_csv(records, "items.csv")
        >>> handler.to_pdf(template, record)
    """

    def __init__(
        self,
        pdf_enabled: Optional[bool] = None,
        csv_enabled: Optional[bool] = None,
        excel_enabled: Optional[bool] = None,
        output_dir: Optional[Union[str, Path]] = None
    ) -> None:
        """
        Initialize the output handler.

        Args:
            pdf_enabled: Override config for PDF output.
            csv_enabled: Override config for CSV output.
            excel_enabled: Override config for Excel output.
            output_dir: Directory for every output. Defaults to paths.output_dir.
        """
        # Load configuration
        self.pdf_enabled = pdf_enabled if pdf_enabled is not None else \
            get_config("output.pdf.enabled", True)
        self.csv_enabled = csv_enabled if csv_enabled is not None else \
            get_config("output.csv.enabled", True)
        self.excel_enabled = excel_enabled if excel_enabled is not None else \
            get_config("output.excel.enabled", True)
        self.output_dir = Path(output_dir or get_config("paths.output_dir", "outputs"))

        # Initialize exporters (lazy loading)
        self._pdf_renderer = None
        self._csv_exporter = None
        self._excel_exporter = None

        logger.info(
            f"OutputHandler initialized "
            f"(pdf={self.pdf_enabled}, csv={self.csv_enabled}, excel={self.excel_enabled})"
        )

    @property
    def pdf_renderer(self):
        """Get or create the PDF renderer."""
        if self._pdf_renderer is None:
            from template_studio.rendering.pdf_renderer import PdfRenderer
            self._pdf_renderer = PdfRenderer()
        return self._pdf_renderer

    @property
    def csv_exporter(self) -> CsvExporter:
        """Get or create the CSV exporter."""
        if self._csv_exporter is None:
            self._csv_exporter = CsvExporter()
        return self._csv_exporter

    @property
    def excel_exporter(self) -> ExcelExporter:
        """Get or create the Excel exporter."""
        if self._excel_exporter is None:
            self._excel_exporter = ExcelExporter()
        return self._excel_exporter

    def save(
        self,
        template: TemplateData,
        records: Union[InvoiceData, List[InvoiceData]]
    ) -> Dict[str, Any]:
        """
        Save records to all enabled outputs.

        A failing output is logged and does not stop the others.

        Args:
            template: Template the PDFs are rendered with.
            records: Single record or list of records.

        Returns:
            Dictionary with output details:
            {
                'pdf_paths': [Path, ...],
                'csv_path': Path,
                'excel_path': Path
            }
        """
        # Normalize to list
        if isinstance(records, InvoiceData):
            records = [records]

        output_info: Dict[str, Any] = {
            'pdf_paths': [],
            'csv_path': None,
            'excel_path': None
        }

        if self.pdf_enabled:
            for record in records:
                try:
                    output_info['pdf_paths'].append(self.to_pdf(template, record))
                except TemplateStudioError as e:
                    logger.error(f"PDF render failed: {e}")

        if self.csv_enabled:
            try:
                output_info['csv_path'] = self.to_csv(records)
            except TemplateStudioError as e:
                logger.error(f"CSV export failed: {e}")

        if self.excel_enabled:
            try:
                output_info['excel_path'] = self.to_excel(records)
            except TemplateStudioError as e:
                logger.error(f"Excel export failed: {e}")

        return output_info

    def to_pdf(self, template: TemplateData, record: InvoiceData) -> Path:
        """Render one record and write the PDF."""
        document = self.pdf_renderer.render(template, record)
        return document.save(self.output_dir)

    def to_csv(
        self,
        records: Union[InvoiceData, List[InvoiceData]],
        filename: Optional[str] = None
    ) -> Path:
        return self.csv_exporter.export_line_items(records, filename, self.output_dir)

    def to_excel(
        self,
        records: Union[InvoiceData, List[InvoiceData]],
        filename: Optional[str] = None
    ) -> Path:
        return self.excel_exporter.export(records, filename, self.output_dir)
