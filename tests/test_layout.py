"""Tests for the shared layout pass and table pagination."""

import pytest

from template_studio.model.document import InvoiceData, SummaryLine
from template_studio.model.element import ElementStyle, ElementType, TemplateElement
from template_studio.model.template import TemplateData
from template_studio.rendering.layout import (
    PREVIEW_NOTE,
    TABLE_PAGE_MARGIN,
    LayoutEngine,
    RectOp,
    TableOp,
    TextOp,
    paginate_table,
    parse_color,
    text_width,
    wrap_text,
)
from template_studio.layout.coordinates import PAGE_HEIGHT


@pytest.fixture
def engine():
    return LayoutEngine()


def _text(element_id="el_text", **kwargs):
    style = kwargs.pop("style", {})
    return TemplateElement(id=element_id, type=ElementType.TEXT, style=ElementStyle.from_dict(style), **kwargs)


def _table(**style):
    return TemplateElement(
        id="el_table", type=ElementType.TABLE, x=40, y=320, width=714, height=350,
        style=ElementStyle.from_dict(style),
    )


def _record_with_lines(count):
    return InvoiceData(summary=[
        SummaryLine(f"Line {i + 1}", quantity=1, unit="Day", rate=10) for i in range(count)
    ])


# =============================================================================
# Text
# =============================================================================

def test_wrap_text_respects_width():
    lines = wrap_text("Provision of inspection services for the north field", "Helvetica", 10, 100)

    assert len(lines) > 1
    assert all(text_width(line, "Helvetica", 10) <= 100 for line in lines)
    assert " ".join(lines) == "Provision of inspection services for the north field"


def test_wrap_text_keeps_newlines_and_breaks_long_words():
    assert wrap_text("", "Helvetica", 10, 100) == []
    assert wrap_text("Account: A\nBank: B", "Helvetica", 10, 500) == ["Account: A", "Bank: B"]

    lines = wrap_text("W" * 40, "Helvetica", 10, 40)
    assert "".join(lines) == "W" * 40
    assert all(text_width(line, "Helvetica", 10) <= 40 for line in lines)


def test_bound_text_is_resolved_and_formatted(engine, record):
    element = _text(binding="grandTotal", content="ignored", x=100, y=200, width=200, height=20)
    op = engine.layout([element], record).find("el_text")

    assert isinstance(op, TextOp)
    assert op.text == "250.00"
    assert [line.text for line in op.lines] == ["250.00"]


def test_unbound_text_uses_static_content(engine):
    op = engine.layout([_text(content="Invoice")], {}).find("el_text")
    assert op.text == "Invoice"


def test_missing_binding_renders_blank(engine):
    op = engine.layout([_text(binding="metadata.vendorName")], {}).find("el_text")

    assert op.text == ""
    assert op.lines == ()


@pytest.mark.parametrize("align, expected_x", [
    ("left", 100),
    ("center", 200),
    ("right", 300),
    ("justify", 100),
])
def test_alignment_anchor(engine, align, expected_x):
    element = _text(content="Total", x=100, y=50, width=200, style={"align": align})
    op = engine.layout([element], {}).find("el_text")

    assert op.lines[0].x == expected_x


def test_lines_stack_by_line_height(engine):
    element = _text(content="A\nB", y=100, width=200, style={"fontSize": 10})
    op = engine.layout([element], {}).find("el_text")

    first, second = op.lines
    assert first.baseline > 100
    assert second.baseline - first.baseline == pytest.approx(12.0)


def test_font_variant_and_underline(engine):
    element = _text(content="Signed", x=100, width=200, style={
        "fontWeight": "bold", "fontStyle": "italic", "textDecoration": "underline", "color": "#ff0000",
    })
    op = engine.layout([element], {}).find("el_text")

    assert op.font == "Helvetica-BoldOblique"
    assert op.color == (255, 0, 0)
    x1, _, x2 = op.underline
    assert x1 == 100
    assert x2 == pytest.approx(100 + text_width("Signed", op.font, op.font_size))


def test_zero_font_size_falls_back(engine):
    op = engine.layout([_text(content="x", style={"fontSize": 0})], {}).find("el_text")
    assert op.font_size == 12


# =============================================================================
# Boxes and paint order
# =============================================================================

def test_box_fill_defaults(engine):
    plain = TemplateElement(id="plain", type=ElementType.BOX)
    grey = TemplateElement(id="grey", type=ElementType.BOX, y=10, style=ElementStyle(background_color="#e5e5e5"))
    broken = TemplateElement(id="broken", type=ElementType.BOX, y=20, style=ElementStyle(background_color="nope"))
    plan = engine.layout([plain, grey, broken], {})

    assert plan.find("plain").fill == (248, 248, 248)
    assert plan.find("grey").fill == (229, 229, 229)
    assert plan.find("broken").fill == (248, 248, 248)
    assert isinstance(plan.find("plain"), RectOp)


def test_paint_order_boxes_first_text_last(engine, template, record):
    plan = engine.layout(template, record)

    assert plan.draw_order[:4] == ["el_client_box", "el_meta_box", "el_words_box", "el_footer_box"]
    assert plan.draw_order[4] == "el_logo_img"
    assert plan.draw_order[5] == "el_table"
    assert plan.draw_order == [el.id for el in template.render_order()]


def test_default_template_end_to_end(engine, template, record):
    merged = record.merge_with_template(template)
    plan = engine.layout(template, merged)

    assert plan.find("el_words").text == "US DOLLARS TWO HUNDRED FIFTY ONLY"
    assert plan.find("el_client_name_overlay").text == "Acme Corp"
    assert plan.find("val_doc").text == "INV-2024/001"
    assert plan.find("val_curr").text == "USD"
    assert plan.find("el_doc_title").text == "Invoice:"


def test_parse_color():
    assert parse_color("#000") == (0, 0, 0)
    assert parse_color("rgb(10, 20, 30)") == (10, 20, 30)
    assert parse_color(None, (1, 2, 3)) == (1, 2, 3)
    assert parse_color("not-a-colour", (1, 2, 3)) == (1, 2, 3)


# =============================================================================
# Tables
# =============================================================================

def test_table_rows_are_formatted(engine, record):
    op = engine.layout([_table()], record).find("el_table")

    assert isinstance(op, TableOp)
    assert op.header.texts == ["DESCRIPTION", "QTY", "RATE", "TOTAL"]
    assert op.rows[0].texts == ["Senior Inspector - Day Shift", "2 Day", "100.00", "200.00"]
    assert op.rows[1].texts == ["Inspector overtime", "1 Hour", "50.00", "50.00"]
    assert [cell.align for cell in op.rows[0].cells] == ["left", "center", "right", "right"]
    assert not op.truncated


def test_table_font_size(engine, record):
    assert engine.layout([_table()], record).find("el_table").font_size == 12
    assert engine.layout([_table(fontSize=10)], record).find("el_table").font_size == 10


def test_table_column_widths_fill_element(engine, record):
    op = engine.layout([_table()], record).find("el_table")
    assert sum(op.column_widths) == pytest.approx(714)


def test_empty_table_has_header_only(engine):
    op = engine.layout([_table()], InvoiceData()).find("el_table")
    assert op.rows == ()


def test_preview_truncates_long_tables(engine):
    op = engine.layout_preview([_table()], _record_with_lines(5)).find("el_table")

    assert op.truncated
    assert len(op.rows) == 4
    assert op.rows[2].texts[0] == "Line 3"
    assert op.rows[3].texts[0] == PREVIEW_NOTE


def test_preview_keeps_short_tables(engine):
    op = engine.layout_preview([_table()], _record_with_lines(3)).find("el_table")

    assert not op.truncated
    assert [row.texts[0] for row in op.rows] == ["Line 1", "Line 2", "Line 3"]


def test_long_description_grows_row(engine):
    record = InvoiceData(summary=[SummaryLine("word " * 200, quantity=1, rate=1)])
    op = engine.layout([_table()], record).find("el_table")

    assert len(op.rows[0].cells[0].lines) > 1
    assert op.rows[0].height > op.header.height


def test_pagination_covers_every_row_once(engine):
    op = engine.layout([_table(fontSize=10)], _record_with_lines(60)).find("el_table")
    pages = paginate_table(op)

    assert len(pages) > 1
    body = [row for page in pages for row, _ in page if not row.header]
    assert body == list(op.rows)

    for index, page in enumerate(pages):
        header, top = page[0]
        assert header.header
        assert top == (op.rect.y if index == 0 else TABLE_PAGE_MARGIN)
        for row, row_top in page:
            assert row_top + row.height <= PAGE_HEIGHT - TABLE_PAGE_MARGIN


def test_short_table_fits_one_page(engine, record):
    op = engine.layout([_table()], record).find("el_table")
    assert len(paginate_table(op)) == 1


def test_layout_does_not_modify_inputs(engine, template, record):
    before = (template, record.to_dict())
    engine.layout(template, record)
    assert (template, record.to_dict()) == before


def test_template_data_and_element_lists_are_equivalent(engine, record):
    template = TemplateData(name="T", elements=[_table(), _text(content="x")])

    assert engine.layout(template, record).draw_order == engine.layout(list(template.elements), record).draw_order
