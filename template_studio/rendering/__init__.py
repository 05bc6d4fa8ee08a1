"""
Rendering Module for Invoice Template Studio.

This module provides:
    - The shared layout pass (render order, wrapping, table contents)
    - The reportlab PDF renderer
    - The Pillow canvas preview renderer
    - Image source loading with aiohttp

Author: ML Engineering Team
"""

from .layout import (
    LayoutEngine,
    LayoutPlan,
    RectOp,
    TextOp,
    ImageOp,
    TableOp,
    TableRow,
    paginate_table,
    wrap_text,
)
from .images import ImageLoader
from .pdf_renderer import PdfRenderer, RenderedDocument
from .preview_renderer import PreviewRenderer

__all__ = [
    'LayoutEngine',
    'LayoutPlan',
    'RectOp',
    'TextOp',
    'ImageOp',
    'TableOp',
    'TableRow',
    'paginate_table',
    'wrap_text',
    'ImageLoader',
    'PdfRenderer',
    'RenderedDocument',
    'PreviewRenderer'
]
