"""Tests for the PDF and canvas preview renderers and image loading."""

import asyncio
import re

import pytest

from template_studio.layout.coordinates import PAGE_HEIGHT, PAGE_WIDTH
from template_studio.model.document import InvoiceData, SummaryLine
from template_studio.model.element import ElementStyle, ElementType, TemplateElement
from template_studio.model.template import TemplateData
from template_studio.rendering.images import ImageLoader, decode_data_url
from template_studio.rendering.pdf_renderer import PdfRenderer
from template_studio.rendering.preview_renderer import PreviewRenderer
from template_studio.utils.exceptions import ImageLoadError

BROKEN_DATA_URL = "data:image/png;base64,bm90IGFuIGltYWdl"


@pytest.fixture
def pdf_renderer():
    return PdfRenderer()


@pytest.fixture
def preview_renderer():
    return PreviewRenderer()


def _image(element_id, source, x=300, y=300):
    return TemplateElement(id=element_id, type=ElementType.IMAGE, x=x, y=y, width=40, height=40, content=source)


# =============================================================================
# Images
# =============================================================================

def test_data_url_images_are_normalized_to_png(png_data_url):
    images = asyncio.run(ImageLoader().load_many([png_data_url, png_data_url, ""]))

    assert list(images) == [png_data_url]
    assert images[png_data_url].startswith(b"\x89PNG")


def test_failed_images_map_to_none():
    images = asyncio.run(ImageLoader().load_many([BROKEN_DATA_URL, "ftp://example.com/logo.png"]))
    assert images == {BROKEN_DATA_URL: None, "ftp://example.com/logo.png": None}


def test_malformed_data_url():
    with pytest.raises(ImageLoadError):
        decode_data_url("data:image/png,rawbytes")
    with pytest.raises(ImageLoadError):
        decode_data_url("not a url")


def test_to_data_url_failure_gives_empty_string():
    assert asyncio.run(ImageLoader().to_data_url(BROKEN_DATA_URL)) == ""


# =============================================================================
# PDF
# =============================================================================

class TestPdfRenderer:
    """PDF output of the default and hand-built templates."""

    def test_render_default_template(self, pdf_renderer, template, record):
        document = pdf_renderer.render(template, record.merge_with_template(template))

        assert document.content.startswith(b"%PDF")
        assert document.filename == "INV2024001.pdf"
        assert document.page_count == 1
        assert document.draw_order == [el.id for el in template.render_order()]
        assert document.skipped_images == []

    def test_filename_falls_back_to_source_file(self, pdf_renderer, template):
        record = InvoiceData(original_file_name="timesheet march.pdf")
        assert pdf_renderer.render(template, record).filename == "timesheetmarch.pdf"

    def test_filename_falls_back_to_template_name(self, pdf_renderer):
        document = pdf_renderer.render(TemplateData(name="Standard Invoice"), {})
        assert document.filename == "StandardInvoice.pdf"

    def test_broken_image_is_skipped(self, pdf_renderer, png_data_url):
        template = TemplateData(name="Images", elements=[
            _image("good", png_data_url),
            _image("broken", BROKEN_DATA_URL, y=400),
            TemplateElement(id="label", type=ElementType.TEXT, content="Still rendered"),
        ])
        document = pdf_renderer.render(template, {})

        assert document.skipped_images == ["broken"]
        assert document.content.startswith(b"%PDF")
        assert document.draw_order == ["good", "broken", "label"]

    def test_long_table_continues_on_extra_pages(self, pdf_renderer):
        table = TemplateElement(
            id="el_table", type=ElementType.TABLE, x=40, y=320, width=714, height=350,
            style=ElementStyle(font_size=10),
        )
        record = InvoiceData(summary=[
            SummaryLine(f"Line {i}", quantity=1, unit="Day", rate=10) for i in range(60)
        ])
        document = pdf_renderer.render(TemplateData(name="Long", elements=[table]), record)

        assert document.page_count == 2
        assert len(re.findall(rb"/Type\s*/Page(?!s)", document.content)) == 2

    def test_output_is_deterministic(self, pdf_renderer, template, record):
        first = pdf_renderer.render(template, record)
        second = pdf_renderer.render(template, record)
        assert first.content == second.content

    def test_render_does_not_modify_record(self, pdf_renderer, template, record):
        before = record.to_dict()
        pdf_renderer.render(template, record)
        assert record.to_dict() == before

    def test_save_writes_file(self, pdf_renderer, template, record, tmp_path):
        path = pdf_renderer.render(template, record).save(tmp_path / "pdf")

        assert path == tmp_path / "pdf" / "INV2024001.pdf"
        assert path.read_bytes().startswith(b"%PDF")


# =============================================================================
# Preview
# =============================================================================

class TestPreviewRenderer:
    """Canvas rasterization at a zoom factor."""

    @pytest.mark.parametrize("zoom", [0.3, 0.5, 0.7, 1.0, 1.5])
    def test_image_size_follows_zoom(self, preview_renderer, template, zoom):
        image = preview_renderer.render(template, {}, zoom=zoom, show_grid=False)
        assert image.size == (round(PAGE_WIDTH * zoom), round(PAGE_HEIGHT * zoom))

    def test_box_and_image_pixels(self, preview_renderer, png_data_url):
        template = TemplateData(name="Pixels", elements=[
            TemplateElement(id="box", type=ElementType.BOX, x=100, y=100, width=100, height=100,
                            style=ElementStyle(background_color="#00ff00")),
            _image("logo", png_data_url),
        ])
        image = preview_renderer.render(template, {}, zoom=1.0, show_grid=False)

        assert image.getpixel((150, 150)) == (0, 255, 0)
        assert image.getpixel((320, 320)) == (255, 0, 0)
        assert image.getpixel((600, 600)) == (255, 255, 255)

    def test_geometry_is_scaled_by_zoom(self, preview_renderer):
        template = TemplateData(name="Zoom", elements=[
            TemplateElement(id="box", type=ElementType.BOX, x=100, y=100, width=100, height=100,
                            style=ElementStyle(background_color="#0000ff")),
        ])
        image = preview_renderer.render(template, {}, zoom=0.5, show_grid=False)

        assert image.getpixel((75, 75)) == (0, 0, 255)
        assert image.getpixel((150, 150)) == (255, 255, 255)

    def test_selection_overlay(self, preview_renderer):
        template = TemplateData(name="Selection", elements=[
            TemplateElement(id="box", type=ElementType.BOX, x=100, y=100, width=100, height=100,
                            style=ElementStyle(background_color="#ffffff")),
        ])
        plain = preview_renderer.render(template, {}, zoom=1.0, show_grid=False)
        selected = preview_renderer.render(template, {}, zoom=1.0, selected_ids=["box"], show_grid=False)

        assert plain.getpixel((150, 101)) == (255, 255, 255)
        assert selected.getpixel((150, 101)) == preview_renderer.selection_color
        assert selected.getpixel((200, 200)) == preview_renderer.selection_color

    def test_grid_is_drawn_on_request(self, preview_renderer):
        template = TemplateData(name="Empty")

        with_grid = preview_renderer.render(template, {}, zoom=1.0, show_grid=True)
        without = preview_renderer.render(template, {}, zoom=1.0, show_grid=False)

        assert with_grid.getpixel((10, 5)) == preview_renderer.grid_color
        assert without.getpixel((10, 5)) == (255, 255, 255)

    def test_broken_image_does_not_abort_preview(self, preview_renderer):
        template = TemplateData(name="Broken", elements=[_image("broken", BROKEN_DATA_URL)])
        image = preview_renderer.render(template, {}, zoom=1.0, show_grid=False)

        assert image.getpixel((320, 320)) == (255, 255, 255)
