"""
PDF Renderer Module.

Draws a template and a record onto an A4 PDF with reportlab. All layout
decisions come from the shared layout pass; this module only converts
page units to points, flips the y axis and issues canvas calls.

Tables may run past the bottom of the page. The rows that do not fit
continue on extra pages, drawn after every other element of the first
page, with the header repeated.

Author: ML Engineering Team
"""

import asyncio
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from config import get_config
from template_studio.layout.coordinates import font_size_to_pt, px_to_pt
from template_studio.model.document import InvoiceData
from template_studio.model.template import TemplateData
from template_studio.utils.exceptions import RenderError
from template_studio.utils.helpers import document_filename, ensure_directory
from template_studio.utils.logger import get_logger
from .images import ImageLoader
from .layout import (
    FONT_NAMES,
    ImageOp,
    LayoutEngine,
    LayoutPlan,
    RectOp,
    TableOp,
    TableRow,
    TextOp,
    cell_anchor,
    cell_baselines,
    paginate_table,
)

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class RenderedDocument:
    """
    Result of a PDF render.

    Attributes:
        content: PDF bytes.
        filename: Suggested filename derived from the invoice number.
        draw_order: Element ids in the order they were painted.
        page_count: Number of pages, more than one only for long tables.
        skipped_images: Element ids whose image could not be loaded.
    """
    content: bytes
    filename: str
    draw_order: List[str] = field(default_factory=list)
    page_count: int = 1
    skipped_images: List[str] = field(default_factory=list)

    def save(self, output_dir: Union[str, Path, None] = None) -> Path:
        """Write the PDF into a directory and return its path."""
        directory = ensure_directory(output_dir or get_config("paths.output_dir", "outputs"))
        path = directory / self.filename
        path.write_bytes(self.content)
        logger.info(f"PDF saved to: {path}")
        return path


def _rgb(color) -> tuple:
    return tuple(c / 255.0 for c in color)


class PdfRenderer:
    """
    Renders template + record snapshots to PDF.

    The renderer never mutates its inputs.

    Example:
        >>> renderer = PdfRenderer()
        >>> document = renderer.render(template, record)
        >>> document.save("outputs")
    """

    def __init__(
        self,
        layout_engine: Optional[LayoutEngine] = None,
        image_loader: Optional[ImageLoader] = None
    ) -> None:
        self.layout_engine = layout_engine or LayoutEngine()
        self.image_loader = image_loader or ImageLoader()
        self.page_width, self.page_height = A4

    def render(self, template: TemplateData, record: Any) -> RenderedDocument:
        """Synchronous wrapper around arender()."""
        return asyncio.run(self.arender(template, record))

    async def arender(self, template: TemplateData, record: Any) -> RenderedDocument:
        """
        Render a template and record to PDF bytes.

        Image sources are loaded first; a failed image is skipped and
        the rest of the document still renders.

        Args:
            template: Template snapshot.
            record: InvoiceData or its camelCase mapping.

        Returns:
            RenderedDocument.

        Raises:
            RenderError: If reportlab fails to produce the document.
        """
        data = record if isinstance(record, InvoiceData) else InvoiceData.from_dict(record or {})
        plan = self.layout_engine.layout(template, data)

        sources = [op.source for op in plan.operations if isinstance(op, ImageOp)]
        images = await self.image_loader.load_many(sources)

        filename = document_filename(
            data.metadata.invoice_number,
            fallback=data.original_file_name or template.name,
        )

        try:
            content, page_count, skipped = self._draw(plan, images, Path(filename).stem)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"PDF generation failed: {e}", {"template": template.name})

        logger.info(f"Rendered '{template.name}' to {filename} ({page_count} page(s))")
        return RenderedDocument(
            content=content,
            filename=filename,
            draw_order=plan.draw_order,
            page_count=page_count,
            skipped_images=skipped,
        )

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def _draw(self, plan: LayoutPlan, images: Dict[str, Optional[bytes]], title: str):
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
        pdf.setTitle(title)

        skipped: List[str] = []
        continuations = []

        for op in plan.operations:
            if isinstance(op, RectOp):
                self._draw_rect(pdf, op)
            elif isinstance(op, TextOp):
                self._draw_text(pdf, op)
            elif isinstance(op, ImageOp):
                if not self._draw_image(pdf, op, images.get(op.source)):
                    skipped.append(op.element_id)
            elif isinstance(op, TableOp):
                pages = paginate_table(op)
                self._draw_table_page(pdf, op, pages[0])
                continuations.extend((op, page) for page in pages[1:])

        page_count = 1
        for op, page in continuations:
            pdf.showPage()
            page_count += 1
            self._draw_table_page(pdf, op, page)

        pdf.save()
        return buffer.getvalue(), page_count, skipped

    def _y(self, page_y: float) -> float:
        """Page-unit top-down y to PDF bottom-up points."""
        return self.page_height - px_to_pt(page_y)

    def _draw_rect(self, pdf: canvas.Canvas, op: RectOp) -> None:
        pdf.setFillColorRGB(*_rgb(op.fill))
        pdf.setStrokeColorRGB(*_rgb(op.stroke))
        pdf.setLineWidth(px_to_pt(op.stroke_width))
        pdf.rect(
            px_to_pt(op.rect.x),
            self._y(op.rect.bottom),
            px_to_pt(op.rect.width),
            px_to_pt(op.rect.height),
            fill=1,
            stroke=1,
        )

    def _draw_text(self, pdf: canvas.Canvas, op: TextOp) -> None:
        if not op.lines:
            return
        pdf.setFont(op.font, font_size_to_pt(op.font_size))
        pdf.setFillColorRGB(*_rgb(op.color))
        for line in op.lines:
            self._draw_aligned(pdf, line.text, line.x, line.baseline, op.align)

        if op.underline:
            x1, y, x2 = op.underline
            pdf.setStrokeColorRGB(*_rgb(op.color))
            pdf.setLineWidth(max(0.5, font_size_to_pt(op.font_size) / 18))
            pdf.line(px_to_pt(x1), self._y(y), px_to_pt(x2), self._y(y))

    def _draw_aligned(self, pdf: canvas.Canvas, text: str, x: float, baseline: float, align: str) -> None:
        px, py = px_to_pt(x), self._y(baseline)
        if align == 'center':
            pdf.drawCentredString(px, py, text)
        elif align == 'right':
            pdf.drawRightString(px, py, text)
        else:
            pdf.drawString(px, py, text)

    def _draw_image(self, pdf: canvas.Canvas, op: ImageOp, png: Optional[bytes]) -> bool:
        if not png:
            return False
        try:
            pdf.drawImage(
                ImageReader(io.BytesIO(png)),
                px_to_pt(op.rect.x),
                self._y(op.rect.bottom),
                px_to_pt(op.rect.width),
                px_to_pt(op.rect.height),
                mask='auto',
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Image add failed for {op.element_id}: {e}")
            return False
        return True

    def _draw_table_page(self, pdf: canvas.Canvas, op: TableOp, rows) -> None:
        for row, top in rows:
            self._draw_table_row(pdf, op, row, top)

    def _draw_table_row(self, pdf: canvas.Canvas, op: TableOp, row: TableRow, top: float) -> None:
        total_width = sum(op.column_widths)
        if row.header:
            pdf.setFillColorRGB(*_rgb(op.header_fill))
            pdf.rect(
                px_to_pt(op.rect.x),
                self._y(top + row.height),
                px_to_pt(total_width),
                px_to_pt(row.height),
                fill=1,
                stroke=0,
            )

        font = FONT_NAMES['bold'] if row.header else FONT_NAMES['normal']
        pdf.setFont(font, font_size_to_pt(op.font_size))
        pdf.setFillColorRGB(*_rgb(op.header_color if row.header else op.body_color))

        x = op.rect.x
        for cell, width in zip(row.cells, op.column_widths):
            anchor = cell_anchor(x, width, cell.align, op.padding)
            baselines = cell_baselines(op, top, font, len(cell.lines))
            for text, baseline in zip(cell.lines, baselines):
                self._draw_aligned(pdf, text, anchor, baseline, cell.align)
            x += width
