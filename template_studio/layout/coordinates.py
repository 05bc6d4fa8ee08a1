"""
Page Coordinate Model.

Templates are laid out on a fixed virtual page of 794 x 1123 page units
(A4 at 96 DPI). One page unit maps to PX_TO_MM millimetres in print
output. The editor multiplies page units by a zoom factor for display
only; stored geometry is always in page units.

These constants define the document format and are intentionally not
read from configuration.
"""

import math
from dataclasses import dataclass
from typing import Tuple

PAGE_WIDTH = 794
PAGE_HEIGHT = 1123

# Millimetres per page unit
PX_TO_MM = 0.2645

# Page-unit font sizes to PDF points
FONT_SCALE = 0.75

# Points per millimetre (72 pt per inch, 25.4 mm per inch)
MM_TO_PT = 72.0 / 25.4

DEFAULT_SNAP_GRID = 10
DEFAULT_MIN_SIZE = 20
DEFAULT_ZOOM_MIN = 0.3
DEFAULT_ZOOM_MAX = 1.5


def px_to_mm(value: float) -> float:
    """Convert page units to millimetres."""
    return value * PX_TO_MM


def mm_to_px(value: float) -> float:
    """Convert millimetres back to page units."""
    return value / PX_TO_MM


def px_to_pt(value: float) -> float:
    """Convert page units to PDF points."""
    return px_to_mm(value) * MM_TO_PT


def font_size_to_pt(size: float) -> float:
    """Scale a page-unit font size to its point equivalent."""
    return size * FONT_SCALE


def snap(value: float, grid: float = DEFAULT_SNAP_GRID) -> float:
    """
    Snap a value to the nearest grid line.

    Halves round upwards, so snap(5) == 10 and snap(-5) == 0.

    Args:
        value: Coordinate in page units.
        grid: Grid spacing in page units. A non-positive grid disables snapping.

    Returns:
        Snapped coordinate.
    """
    if grid <= 0:
        return value
    return math.floor(value / grid + 0.5) * grid


def clamp_size(value: float, minimum: float = DEFAULT_MIN_SIZE) -> float:
    """Clamp a width or height to the minimum element size."""
    return max(minimum, value)


def clamp_zoom(
    zoom: float,
    minimum: float = DEFAULT_ZOOM_MIN,
    maximum: float = DEFAULT_ZOOM_MAX
) -> float:
    """Clamp a zoom factor into the allowed range, rounded to 2 decimals."""
    return round(min(maximum, max(minimum, zoom)), 2)


def screen_to_page(dx: float, dy: float, zoom: float) -> Tuple[float, float]:
    """Convert a screen-pixel delta to page units at the given zoom."""
    return dx / zoom, dy / zoom


def page_to_screen(x: float, y: float, zoom: float) -> Tuple[float, float]:
    """Convert page units to screen pixels at the given zoom."""
    return x * zoom, y * zoom


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in page units, origin at the page's top-left."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float) -> bool:
        """Check whether a page point falls inside the rectangle."""
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def to_mm(self) -> Tuple[float, float, float, float]:
        """Return (x, y, width, height) in millimetres."""
        return (
            px_to_mm(self.x),
            px_to_mm(self.y),
            px_to_mm(self.width),
            px_to_mm(self.height),
        )

    def scaled(self, zoom: float) -> Tuple[float, float, float, float]:
        """Return (x, y, width, height) in screen pixels."""
        return (self.x * zoom, self.y * zoom, self.width * zoom, self.height * zoom)
