"""
Layout Module.

Page coordinate space, unit conversion and grid snapping shared by the
editor and both renderers.
"""

from .coordinates import (
    PAGE_WIDTH,
    PAGE_HEIGHT,
    PX_TO_MM,
    FONT_SCALE,
    Rect,
    px_to_mm,
    mm_to_px,
    px_to_pt,
    font_size_to_pt,
    snap,
    clamp_size,
    clamp_zoom,
    screen_to_page,
    page_to_screen,
)

__all__ = [
    'PAGE_WIDTH',
    'PAGE_HEIGHT',
    'PX_TO_MM',
    'FONT_SCALE',
    'Rect',
    'px_to_mm',
    'mm_to_px',
    'px_to_pt',
    'font_size_to_pt',
    'snap',
    'clamp_size',
    'clamp_zoom',
    'screen_to_page',
    'page_to_screen'
]
