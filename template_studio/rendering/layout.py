"""
Shared Layout Pass.

Walks a template against a record once and produces drawing operations
in page units. The PDF back-end and the canvas preview back-end both
consume these operations, so binding resolution, monetary formatting,
text wrapping, alignment, render order and table contents are computed
in exactly one place. Back-ends only convert units: page units to
millimetres/points for print, page units times zoom for the screen.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

from PIL import ImageColor
from reportlab.pdfbase import pdfmetrics

from config import get_config
from template_studio.binding.formatting import format_currency, format_plain, coerce_number
from template_studio.binding.resolver import resolve
from template_studio.layout.coordinates import Rect, mm_to_px, PAGE_HEIGHT
from template_studio.model.document import InvoiceData
from template_studio.model.element import ElementType, ResolvedStyle, TemplateElement
from template_studio.model.template import TemplateData
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

RGB = Tuple[int, int, int]

# Standard PDF fonts; their metrics drive wrapping for both back-ends
FONT_NAMES = {
    'normal': 'Helvetica',
    'bold': 'Helvetica-Bold',
    'italic': 'Helvetica-Oblique',
    'bolditalic': 'Helvetica-BoldOblique',
}

TABLE_HEADERS = ["DESCRIPTION", "QTY", "RATE", "TOTAL"]
TABLE_ALIGNS = ['left', 'center', 'right', 'right']
PREVIEW_NOTE = "... (Full table in PDF) ..."

# Continuation pages start the table this far from the top edge
TABLE_PAGE_MARGIN = 40


def parse_color(value: Optional[str], default: RGB = (0, 0, 0)) -> RGB:
    """Parse a CSS colour string; unparsable values fall back to the default."""
    if not value:
        return default
    try:
        rgb = ImageColor.getrgb(str(value))
    except ValueError:
        logger.debug(f"Unparsable colour '{value}', using default")
        return default
    return tuple(rgb[:3])


def font_name(style: ResolvedStyle) -> str:
    return FONT_NAMES[style.font_variant]


def text_width(text: str, font: str, size: float) -> float:
    """Advance width of a string, in the same unit as size."""
    return pdfmetrics.stringWidth(text, font, size)


def wrap_text(text: str, font: str, size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap.

    Explicit newlines are kept. Words wider than the line are broken
    between characters. Empty text yields no lines.
    """
    if not text:
        return []

    lines: List[str] = []
    for paragraph in text.split('\n'):
        words = paragraph.split(' ')
        current = ''
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if text_width(candidate, font, size) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            # Break over-long words
            current = ''
            for char in word:
                if current and text_width(current + char, font, size) > max_width:
                    lines.append(current)
                    current = char
                else:
                    current += char
        lines.append(current)
    return lines


# =============================================================================
# OPERATIONS
# =============================================================================

@dataclass(frozen=True)
class RectOp:
    element_id: str
    rect: Rect
    fill: RGB
    stroke: RGB
    stroke_width: float = 1.0


@dataclass(frozen=True)
class TextLine:
    text: str
    x: float
    baseline: float


@dataclass(frozen=True)
class TextOp:
    """
    Laid-out text. x positions are alignment anchors: the left edge,
    the centre, or the right edge of the line depending on align.
    """
    element_id: str
    rect: Rect
    text: str
    lines: Tuple[TextLine, ...]
    font: str
    font_size: float
    color: RGB
    align: str
    underline: Optional[Tuple[float, float, float]] = None


@dataclass(frozen=True)
class ImageOp:
    element_id: str
    rect: Rect
    source: str


@dataclass(frozen=True)
class TableCell:
    lines: Tuple[str, ...]
    align: str


@dataclass(frozen=True)
class TableRow:
    cells: Tuple[TableCell, ...]
    height: float
    header: bool = False

    @property
    def texts(self) -> List[str]:
        return ['\n'.join(cell.lines) for cell in self.cells]


@dataclass(frozen=True)
class TableOp:
    """
    Line-item table. Rows stack downward from rect.y; the element height
    is a layout seed, not a clip region.
    """
    element_id: str
    rect: Rect
    column_widths: Tuple[float, ...]
    header: TableRow
    rows: Tuple[TableRow, ...]
    font_size: float
    padding: float
    line_height: float
    header_fill: RGB
    header_color: RGB
    body_color: RGB
    truncated: bool = False


Operation = Union[RectOp, TextOp, ImageOp, TableOp]


@dataclass
class LayoutPlan:
    """Operations in paint order."""
    operations: List[Operation] = field(default_factory=list)

    @property
    def draw_order(self) -> List[str]:
        return [op.element_id for op in self.operations]

    def find(self, element_id: str) -> Optional[Operation]:
        for op in self.operations:
            if op.element_id == element_id:
                return op
        return None


# =============================================================================
# LAYOUT ENGINE
# =============================================================================

class LayoutEngine:
    """
    Computes the shared layout for a template and a record.

    Attributes:
        box_fill: Default box background.
        box_stroke: Box outline colour.
        line_height: Line height as a multiple of font size.
        text_padding: Gap above the first text line, in page units.
        table_padding: Table cell padding, in page units.
        column_widths_mm: Fixed widths of the quantity, rate and total columns.

    Example:
        >>> engine = LayoutEngine()
        >>> plan = engine.layout(template, record)
        >>> plan.draw_order[:2]
        ['el_client_box', 'el_meta_box']
    """

    def __init__(self) -> None:
        self.box_fill = parse_color(get_config("rendering.box.fill", "#f8f8f8"), (248, 248, 248))
        self.box_stroke = tuple(get_config("rendering.box.stroke", [200, 200, 200]))
        self.line_height = float(get_config("rendering.text.line_height", 1.2))
        self.text_padding = float(get_config("rendering.text.padding", 2))
        self.table_font_size = float(get_config("rendering.table.font_size", 12))
        self.table_padding = float(get_config("rendering.table.cell_padding", 7.5))
        self.header_fill = tuple(get_config("rendering.table.header_fill", [240, 240, 240]))
        self.header_color = tuple(get_config("rendering.table.header_text", [50, 50, 50]))
        widths = get_config("rendering.table.column_widths_mm", {}) or {}
        self.column_widths_mm = (
            float(widths.get("quantity", 25)),
            float(widths.get("rate", 30)),
            float(widths.get("total", 30)),
        )
        self.preview_rows = int(get_config("rendering.table.preview_rows", 3))

    def layout(
        self,
        template: Union[TemplateData, Sequence[TemplateElement]],
        record: Any,
        table_row_limit: Optional[int] = None
    ) -> LayoutPlan:
        """
        Lay out every element of a template in paint order.

        Args:
            template: TemplateData, or a plain element sequence.
            record: InvoiceData or a camelCase mapping of one.
            table_row_limit: Truncate tables to this many rows (preview only).

        Returns:
            LayoutPlan with one operation per element.
        """
        elements = template.elements if isinstance(template, TemplateData) else tuple(template)
        data = record if isinstance(record, InvoiceData) else InvoiceData.from_dict(record or {})
        context = data.to_dict()

        plan = LayoutPlan()
        # sorted() is stable, so equal (priority, y) keep insertion order
        for element in sorted(elements, key=lambda el: (el.render_priority, el.y)):
            if element.type == ElementType.BOX:
                plan.operations.append(self.layout_box(element))
            elif element.type == ElementType.TEXT:
                plan.operations.append(self.layout_text(element, context))
            elif element.type == ElementType.IMAGE:
                plan.operations.append(ImageOp(element.id, element.rect, element.content or ''))
            elif element.type == ElementType.TABLE:
                plan.operations.append(self.layout_table(element, data, table_row_limit))
        return plan

    def layout_preview(self, template, record) -> LayoutPlan:
        """Layout for the editor canvas: tables truncated to the preview row count."""
        return self.layout(template, record, table_row_limit=self.preview_rows)

    # -------------------------------------------------------------------------
    # Per-type layout
    # -------------------------------------------------------------------------

    def layout_box(self, element: TemplateElement) -> RectOp:
        style = element.style.resolved()
        return RectOp(
            element_id=element.id,
            rect=element.rect,
            fill=parse_color(style.background_color, self.box_fill),
            stroke=self.box_stroke,
        )

    def layout_text(self, element: TemplateElement, context: dict) -> TextOp:
        style = element.style.resolved()
        size = coerce_number(style.font_size) or 12.0
        font = font_name(style)
        align = style.align if style.align in ('left', 'center', 'right') else 'left'

        text = resolve(context, element.binding, element.content)
        wrapped = wrap_text(text, font, size, element.width)

        anchor = element.x
        if align == 'center':
            anchor = element.x + element.width / 2
        elif align == 'right':
            anchor = element.x + element.width

        ascent = pdfmetrics.getAscent(font, size)
        step = size * self.line_height
        first_top = element.y + self.text_padding
        lines = tuple(
            TextLine(line, anchor, first_top + i * step + ascent)
            for i, line in enumerate(wrapped)
        )

        underline = None
        if style.underline and lines:
            width = text_width(lines[0].text, font, size)
            start = anchor
            if align == 'center':
                start -= width / 2
            elif align == 'right':
                start -= width
            y = lines[0].baseline + size * 0.1
            underline = (start, y, start + width)

        return TextOp(
            element_id=element.id,
            rect=element.rect,
            text=text,
            lines=lines,
            font=font,
            font_size=size,
            color=parse_color(style.color),
            align=align,
            underline=underline,
        )

    def layout_table(
        self,
        element: TemplateElement,
        data: InvoiceData,
        row_limit: Optional[int] = None
    ) -> TableOp:
        style = element.style.resolved()
        size = coerce_number(element.style.font_size) or self.table_font_size
        body_font = FONT_NAMES['normal']
        header_font = FONT_NAMES['bold']
        padding = self.table_padding
        step = size * self.line_height

        fixed = [mm_to_px(w) for w in self.column_widths_mm]
        description_width = max(element.width - sum(fixed), padding * 2 + size)
        widths = (description_width, *fixed)

        def build_row(values: List[str], font: str, header: bool = False) -> TableRow:
            cells = []
            max_lines = 1
            for value, width, align in zip(values, widths, TABLE_ALIGNS):
                lines = wrap_text(value, font, size, max(width - 2 * padding, size)) or ['']
                max_lines = max(max_lines, len(lines))
                cells.append(TableCell(tuple(lines), 'left' if header else align))
            return TableRow(tuple(cells), max_lines * step + 2 * padding, header)

        lines = data.summary
        truncated = row_limit is not None and len(lines) > row_limit
        if truncated:
            lines = lines[:row_limit]

        rows = [
            build_row([
                line.description,
                f"{format_plain(line.quantity)} {line.unit}".strip(),
                format_currency(line.rate),
                format_currency(line.total),
            ], body_font)
            for line in lines
        ]
        if truncated:
            note = TableCell((PREVIEW_NOTE,), 'center')
            rows.append(TableRow(
                (note, TableCell(('',), 'left'), TableCell(('',), 'left'), TableCell(('',), 'left')),
                step + 2 * padding,
            ))

        return TableOp(
            element_id=element.id,
            rect=element.rect,
            column_widths=widths,
            header=build_row(list(TABLE_HEADERS), header_font, header=True),
            rows=tuple(rows),
            font_size=size,
            padding=padding,
            line_height=step,
            header_fill=self.header_fill,
            header_color=self.header_color,
            body_color=parse_color(style.color),
            truncated=truncated,
        )


def paginate_table(
    table: TableOp,
    page_height: float = PAGE_HEIGHT,
    margin: float = TABLE_PAGE_MARGIN
) -> List[List[Tuple[TableRow, float]]]:
    """
    Stack table rows into pages.

    The first page starts at the element's top edge; each continuation
    page repeats the header at the top margin. Every row appears exactly
    once.

    Returns:
        One list per page of (row, top) pairs in page units, header first.
    """
    bottom = page_height - margin
    pages: List[List[Tuple[TableRow, float]]] = []
    page = [(table.header, table.rect.y)]
    cursor = table.rect.y + table.header.height

    for row in table.rows:
        if cursor + row.height > bottom and len(page) > 1:
            pages.append(page)
            page = [(table.header, margin)]
            cursor = margin + table.header.height
        page.append((row, cursor))
        cursor += row.height
    pages.append(page)
    return pages


def cell_anchor(x: float, width: float, align: str, padding: float) -> float:
    """Alignment anchor of a table cell whose left edge is x."""
    if align == 'center':
        return x + width / 2
    if align == 'right':
        return x + width - padding
    return x + padding


def cell_baselines(table: TableOp, top: float, font: str, count: int) -> List[float]:
    """Baselines of the wrapped lines of a cell in a row starting at top."""
    ascent = pdfmetrics.getAscent(font, table.font_size)
    return [top + table.padding + i * table.line_height + ascent for i in range(count)]
