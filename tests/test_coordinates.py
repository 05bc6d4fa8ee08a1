"""Tests for the page coordinate model."""

import pytest

from template_studio.layout.coordinates import (
    PAGE_HEIGHT,
    PAGE_WIDTH,
    Rect,
    clamp_size,
    clamp_zoom,
    font_size_to_pt,
    mm_to_px,
    px_to_mm,
    screen_to_page,
    snap,
)


def test_page_is_a4_in_page_units():
    assert (PAGE_WIDTH, PAGE_HEIGHT) == (794, 1123)
    assert px_to_mm(PAGE_WIDTH) == pytest.approx(210.0, abs=0.1)
    assert px_to_mm(PAGE_HEIGHT) == pytest.approx(297.0, abs=0.1)


def test_mm_conversion_is_reversible():
    assert mm_to_px(px_to_mm(123.0)) == pytest.approx(123.0)


def test_font_sizes_scale_to_points():
    assert font_size_to_pt(16) == 12


@pytest.mark.parametrize("value, expected", [
    (0, 0),
    (4, 0),
    (5, 10),
    (14, 10),
    (15, 20),
    (123, 120),
    (-5, 0),
    (-6, -10),
])
def test_snap_rounds_to_nearest_grid_line(value, expected):
    assert snap(value, 10) == expected


def test_snap_disabled_for_non_positive_grid():
    assert snap(13.7, 0) == 13.7


def test_clamp_size_enforces_minimum():
    assert clamp_size(5) == 20
    assert clamp_size(-300) == 20
    assert clamp_size(45) == 45


def test_clamp_zoom_bounds_and_rounding():
    assert clamp_zoom(5.0) == 1.5
    assert clamp_zoom(0.05) == 0.3
    assert clamp_zoom(0.7 + 0.1) == 0.8


def test_screen_delta_is_divided_by_zoom():
    dx, dy = screen_to_page(50, 25, 0.5)
    assert (dx, dy) == (100, 50)


def test_rect_contains_edges():
    rect = Rect(10, 20, 100, 50)
    assert rect.right == 110
    assert rect.bottom == 70
    assert rect.contains(10, 20)
    assert rect.contains(110, 70)
    assert not rect.contains(111, 30)


def test_rect_in_millimetres():
    assert Rect(0, 0, PAGE_WIDTH, PAGE_HEIGHT).to_mm() == pytest.approx((0, 0, px_to_mm(PAGE_WIDTH), px_to_mm(PAGE_HEIGHT)))


def test_rect_scaled_for_display_only():
    rect = Rect(100, 200, 50, 20)
    assert rect.scaled(0.5) == (50, 100, 25, 10)
    assert rect.x == 100
