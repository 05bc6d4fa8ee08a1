"""
Canvas Preview Renderer.

Rasterizes the editor canvas with Pillow at the editor's zoom factor.
It consumes the same layout operations as the PDF renderer; the only
differences are the zoom multiplication, the truncated table preview,
the optional snap grid and the selection overlay.

Author: ML Engineering Team
"""

import asyncio
import io
from typing import Any, Dict, Iterable, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from config import get_config
from template_studio.layout.coordinates import PAGE_HEIGHT, PAGE_WIDTH, Rect
from template_studio.model.template import TemplateData
from template_studio.utils.logger import get_logger
from .images import ImageLoader
from .layout import (
    FONT_NAMES,
    ImageOp,
    LayoutEngine,
    LayoutPlan,
    RectOp,
    TableOp,
    TextOp,
    cell_anchor,
    cell_baselines,
    paginate_table,
    parse_color,
)

# Initialize module logger
logger = get_logger(__name__)

# Pillow text anchors: horizontal alignment + baseline
_ANCHORS = {'left': 'ls', 'center': 'ms', 'right': 'rs'}

_VARIANTS = {name: variant for variant, name in FONT_NAMES.items()}

HANDLE_SIZE = 8


class PreviewRenderer:
    """
    Draws the editor canvas as a Pillow image.

    Attributes:
        background: Page background colour.
        grid_color: Snap grid colour.
        selection_color: Selection outline and handle colour.
        grid: Snap grid spacing in page units.

    Example:
        >>> preview = PreviewRenderer()
        >>> image = preview.render(template, SAMPLE_RECORD, zoom=0.7)
        >>> image.size
        (556, 786)
    """

    def __init__(
        self,
        layout_engine: Optional[LayoutEngine] = None,
        image_loader: Optional[ImageLoader] = None
    ) -> None:
        self.layout_engine = layout_engine or LayoutEngine()
        self.image_loader = image_loader or ImageLoader()
        self.background = parse_color(get_config("rendering.preview.background", "#ffffff"), (255, 255, 255))
        self.grid_color = parse_color(get_config("rendering.preview.grid_color", "#f0f0f0"), (240, 240, 240))
        self.selection_color = parse_color(get_config("rendering.preview.selection_color", "#f97316"), (249, 115, 22))
        self.grid = float(get_config("editor.snap_grid", 10))
        self.font_files: Dict[str, str] = get_config("rendering.preview.fonts", {}) or {}
        self._fonts: Dict[tuple, ImageFont.ImageFont] = {}

    def render(
        self,
        template: TemplateData,
        record: Any,
        zoom: float = 1.0,
        selected_ids: Sequence[str] = (),
        show_grid: bool = True
    ) -> Image.Image:
        """Synchronous wrapper around arender()."""
        return asyncio.run(self.arender(template, record, zoom, selected_ids, show_grid))

    async def arender(
        self,
        template: TemplateData,
        record: Any,
        zoom: float = 1.0,
        selected_ids: Sequence[str] = (),
        show_grid: bool = True
    ) -> Image.Image:
        """
        Render the canvas at a zoom factor.

        Args:
            template: Template being edited.
            record: Record bindings are previewed against.
            zoom: Screen scale; stored geometry is not affected.
            selected_ids: Selected element ids, last one carries the resize handle.
            show_grid: Draw the snap grid.

        Returns:
            RGB image of size (PAGE_WIDTH * zoom, PAGE_HEIGHT * zoom).
        """
        plan = self.layout_engine.layout_preview(template, record)
        sources = [op.source for op in plan.operations if isinstance(op, ImageOp)]
        images = await self.image_loader.load_many(sources)
        return self.draw(plan, images, zoom, selected_ids, show_grid, template)

    def draw(
        self,
        plan: LayoutPlan,
        images: Dict[str, Optional[bytes]],
        zoom: float,
        selected_ids: Sequence[str] = (),
        show_grid: bool = True,
        template: Optional[TemplateData] = None
    ) -> Image.Image:
        """Rasterize an already computed layout plan."""
        size = (max(1, round(PAGE_WIDTH * zoom)), max(1, round(PAGE_HEIGHT * zoom)))
        canvas = Image.new('RGB', size, self.background)
        draw = ImageDraw.Draw(canvas)

        if show_grid:
            self._draw_grid(draw, size, zoom)

        for op in plan.operations:
            if isinstance(op, RectOp):
                self._draw_rect(draw, op, zoom)
            elif isinstance(op, TextOp):
                self._draw_text(draw, op, zoom)
            elif isinstance(op, ImageOp):
                self._draw_image(canvas, op, images.get(op.source), zoom)
            elif isinstance(op, TableOp):
                self._draw_table(draw, op, zoom)

        if selected_ids and template is not None:
            self._draw_selection(draw, template, selected_ids, zoom)

        return canvas

    # -------------------------------------------------------------------------
    # Fonts
    # -------------------------------------------------------------------------

    def _font(self, font: str, size: float) -> ImageFont.ImageFont:
        pixel_size = max(1, round(size))
        key = (font, pixel_size)
        if key not in self._fonts:
            variant = _VARIANTS.get(font, 'normal')
            path = self.font_files.get(variant)
            try:
                self._fonts[key] = ImageFont.truetype(path, pixel_size)
            except (OSError, TypeError, AttributeError):
                logger.debug(f"Font file '{path}' unavailable, using Pillow default")
                self._fonts[key] = ImageFont.load_default(pixel_size)
        return self._fonts[key]

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def _draw_grid(self, draw: ImageDraw.ImageDraw, size, zoom: float) -> None:
        step = self.grid * zoom
        if step < 4:
            return
        x = 0.0
        while x < size[0]:
            draw.line([(x, 0), (x, size[1])], fill=self.grid_color)
            x += step
        y = 0.0
        while y < size[1]:
            draw.line([(0, y), (size[0], y)], fill=self.grid_color)
            y += step

    @staticmethod
    def _box(rect: Rect, zoom: float):
        x, y, w, h = rect.scaled(zoom)
        return [x, y, x + w, y + h]

    def _draw_rect(self, draw: ImageDraw.ImageDraw, op: RectOp, zoom: float) -> None:
        draw.rectangle(
            self._box(op.rect, zoom),
            fill=op.fill,
            outline=op.stroke,
            width=max(1, round(op.stroke_width * zoom)),
        )

    def _draw_text(self, draw: ImageDraw.ImageDraw, op: TextOp, zoom: float) -> None:
        if not op.lines:
            return
        font = self._font(op.font, op.font_size * zoom)
        anchor = _ANCHORS[op.align]
        for line in op.lines:
            draw.text((line.x * zoom, line.baseline * zoom), line.text, fill=op.color, font=font, anchor=anchor)
        if op.underline:
            x1, y, x2 = op.underline
            draw.line([(x1 * zoom, y * zoom), (x2 * zoom, y * zoom)], fill=op.color, width=1)

    def _draw_image(self, canvas: Image.Image, op: ImageOp, png: Optional[bytes], zoom: float) -> None:
        if not png:
            return
        x, y, w, h = op.rect.scaled(zoom)
        target = (max(1, round(w)), max(1, round(h)))
        with Image.open(io.BytesIO(png)) as img:
            picture = img.convert('RGBA').resize(target)
        canvas.paste(picture, (round(x), round(y)), picture)

    def _draw_table(self, draw: ImageDraw.ImageDraw, op: TableOp, zoom: float) -> None:
        rows = paginate_table(op)[0]
        total_width = sum(op.column_widths)
        for row, top in rows:
            if row.header:
                draw.rectangle(
                    [op.rect.x * zoom, top * zoom, (op.rect.x + total_width) * zoom, (top + row.height) * zoom],
                    fill=op.header_fill,
                )
            font_key = FONT_NAMES['bold'] if row.header else FONT_NAMES['normal']
            font = self._font(font_key, op.font_size * zoom)
            color = op.header_color if row.header else op.body_color

            x = op.rect.x
            for cell, width in zip(row.cells, op.column_widths):
                anchor = cell_anchor(x, width, cell.align, op.padding)
                baselines = cell_baselines(op, top, font_key, len(cell.lines))
                for text, baseline in zip(cell.lines, baselines):
                    draw.text((anchor * zoom, baseline * zoom), text, fill=color, font=font,
                              anchor=_ANCHORS[cell.align])
                x += width

    def _draw_selection(
        self,
        draw: ImageDraw.ImageDraw,
        template: TemplateData,
        selected_ids: Iterable[str],
        zoom: float
    ) -> None:
        selected = [template.element(i) for i in selected_ids]
        selected = [el for el in selected if el is not None]
        for el in selected:
            draw.rectangle(self._box(el.rect, zoom), outline=self.selection_color, width=2)
        if selected:
            x1, y1 = selected[-1].rect.right * zoom, selected[-1].rect.bottom * zoom
            half = HANDLE_SIZE / 2
            draw.rectangle([x1 - half, y1 - half, x1 + half, y1 + half], fill=self.selection_color)
