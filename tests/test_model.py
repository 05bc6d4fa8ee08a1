"""Tests for template elements, templates and document-data records."""

import json

import pytest

from template_studio.model.document import (
    DocumentKind,
    InvoiceData,
    InvoiceMetadata,
    PRO_FORMA_TITLE,
    SummaryLine,
)
from template_studio.model.element import ElementStyle, ElementType, TemplateElement
from template_studio.model.template import NEW_TEMPLATE_NAME, TemplateData, create_element
from template_studio.utils.exceptions import InvalidElementError, RecordEditError, TemplateError


# =============================================================================
# Elements
# =============================================================================

class TestTemplateElement:
    """Element construction and patching."""

    def test_create_text_element_defaults(self):
        element = create_element(ElementType.TEXT, element_id="el_1")

        assert (element.width, element.height) == (200, 50)
        assert element.content == "Double click to edit"
        assert element.binding is None
        style = element.style.resolved()
        assert (style.font_size, style.color, style.align) == (12, '#000000', 'left')

    def test_create_table_element_is_larger(self):
        element = create_element("table")

        assert (element.width, element.height) == (600, 200)
        assert element.content is None
        assert element.id.startswith("el_")

    def test_generated_ids_are_unique(self):
        ids = {create_element(ElementType.BOX).id for _ in range(50)}
        assert len(ids) == 50

    def test_unknown_type_is_rejected(self):
        with pytest.raises(InvalidElementError):
            TemplateElement(id="el_1", type="circle")

    def test_from_dict_requires_id(self):
        with pytest.raises(InvalidElementError):
            TemplateElement.from_dict({"type": "text"})

    def test_from_dict_rejects_non_numeric_geometry(self):
        with pytest.raises(InvalidElementError) as exc_info:
            TemplateElement.from_dict({"id": "el_1", "type": "text", "x": "left"})
        assert exc_info.value.details["element_id"] == "el_1"

    def test_patch_clamps_size_and_keeps_id(self):
        element = create_element(ElementType.BOX, element_id="el_1")
        patched = element.with_patch({"id": "other", "width": 5, "height": -10, "x": "30"})

        assert patched.id == "el_1"
        assert (patched.width, patched.height) == (20, 20)
        assert patched.x == 30.0
        assert element.width == 200

    def test_patch_merges_style(self):
        element = create_element(ElementType.TEXT, element_id="el_1")
        patched = element.with_patch({"style": {"fontWeight": "bold"}})

        style = patched.style.resolved()
        assert style.bold
        assert style.font_size == 12
        assert style.align == 'left'

    def test_patch_sets_binding(self):
        element = create_element(ElementType.TEXT, element_id="el_1")
        patched = element.with_patch({"binding": "metadata.date"})

        assert patched.is_bound
        assert patched.content == element.content

    def test_style_defaults_and_variants(self):
        style = ElementStyle().resolved()
        assert style.font_size == 12
        assert style.font_variant == 'normal'
        assert style.background_color is None

        style = ElementStyle(font_weight='bold', font_style='italic').resolved()
        assert style.font_variant == 'bolditalic'

    def test_serialized_form_uses_camel_case(self):
        element = TemplateElement(
            id="el_1", type=ElementType.TEXT, binding="grandTotal",
            style=ElementStyle(font_size=14, background_color="#ffffff"),
        )
        data = element.to_dict()

        assert data["type"] == "text"
        assert data["style"] == {"fontSize": 14, "backgroundColor": "#ffffff"}
        assert "content" not in data
        assert TemplateElement.from_dict(data) == element


# =============================================================================
# Templates
# =============================================================================

class TestTemplateData:
    """Immutable template operations."""

    def test_adding_duplicate_id_fails(self):
        template = TemplateData(name="T").with_element_added(create_element("text", "el_1"))

        with pytest.raises(TemplateError):
            template.with_element_added(create_element("box", "el_1"))

    def test_mutations_return_new_templates(self):
        original = TemplateData(name="T", elements=[create_element("text", "el_1")])
        moved = original.with_elements_moved(["el_1"], 10, 5)

        assert original.element("el_1").x == 50
        assert moved.element("el_1").x == 60
        assert moved.element("el_1").y == 55

    def test_update_unknown_id_leaves_template_unchanged(self):
        template = TemplateData(name="T", elements=[create_element("text", "el_1")])
        assert template.with_element_updated("missing", {"x": 0}) == template

    def test_render_order_by_type_then_y(self):
        template = TemplateData(name="T", elements=[
            create_element("text", "text_low", y=10),
            create_element("table", "table", y=0),
            create_element("box", "box_b", y=300),
            create_element("image", "image", y=0),
            create_element("box", "box_a", y=100),
        ])

        assert [el.id for el in template.render_order()] == [
            "box_a", "box_b", "image", "table", "text_low",
        ]

    def test_without_elements(self):
        template = TemplateData(name="T", elements=[
            create_element("text", "el_1"), create_element("text", "el_2"),
        ])
        assert template.without_elements(["el_1"]).element_ids == ["el_2"]

    def test_clone_clears_id(self):
        template = TemplateData(name="Standard", id="t1")
        copy = template.clone()

        assert copy.id is None
        assert copy.name == "Standard (Copy)"

    def test_row_form_hoists_id_and_name(self):
        template = TemplateData(
            name="Standard", id="t1",
            metadata={"currency": "QAR"},
            elements=[create_element("text", "el_1")],
        )
        row = template.to_row()

        assert row["id"] == "t1"
        assert "name" not in row["data"]
        assert TemplateData.from_row(row) == template

    def test_from_dict_without_name_uses_default(self):
        assert TemplateData.from_dict({}).name == NEW_TEMPLATE_NAME

    def test_default_template_layout(self, template):
        table = template.element("el_table")

        assert (table.x, table.y, table.width) == (40, 320, 714)
        assert template.element("el_words").binding == "amountInWords"
        assert template.element("el_logo_img").type == ElementType.IMAGE
        assert len(set(template.element_ids)) == len(template.elements)


# =============================================================================
# Records
# =============================================================================

class TestSummaryLine:
    """Line item coercion and derived totals."""

    def test_total_is_derived(self):
        line = SummaryLine("Inspector", quantity="2", rate=100)
        assert line.total == 200.0

        line.quantity = 3
        assert line.total == 300.0

    def test_invalid_numbers_become_zero(self):
        line = SummaryLine("Inspector", quantity=2, rate=100)
        line.rate = "abc"

        assert line.rate == 0.0
        assert line.total == 0.0

    def test_stored_total_is_ignored(self):
        line = SummaryLine.from_dict({"quantity": 2, "rate": 10, "total": 999})
        assert line.total == 20.0

    def test_update_accepts_camel_case(self):
        line = SummaryLine()
        line.update({"lineText": "Week 1", "rate": "45.5", "total": 1000})

        assert line.line_text == "Week 1"
        assert line.rate == 45.5


class TestInvoiceData:
    """Record totals, editing and the template merge."""

    def test_grand_total_and_words(self, record):
        assert record.grand_total == 250.0
        assert record.amount_in_words == "US DOLLARS TWO HUNDRED FIFTY ONLY"

    def test_grand_total_is_rounded(self):
        record = InvoiceData(summary=[SummaryLine(quantity=3, rate=0.1)])
        assert record.grand_total == 0.3

    def test_empty_record(self):
        record = InvoiceData.from_dict({})

        assert record.summary == []
        assert record.grand_total == 0.0
        assert record.currency == ''

    def test_line_mutations_update_totals(self, record):
        record.update_line(0, {"quantity": 3})
        assert record.grand_total == 350.0

        record.remove_line(1)
        record.add_line(SummaryLine("Mobilization", quantity=1, rate=1000))
        assert record.grand_total == 1300.0

        with pytest.raises(IndexError):
            record.update_line(5, {"rate": 1})

    def test_to_dict_exposes_derived_totals(self, record):
        data = record.to_dict()

        assert data["grandTotal"] == 250.0
        assert data["summary"][0]["total"] == 200.0
        assert data["metadata"]["clientName"] == "Acme Corp"

    def test_unknown_metadata_keys_are_kept(self):
        metadata = InvoiceMetadata.from_dict({"clientName": "Acme", "siteCode": "RL-7"})

        assert metadata.client_name == "Acme"
        assert metadata.get("siteCode") == "RL-7"
        assert metadata.to_dict()["siteCode"] == "RL-7"

    def test_set_metadata_by_camel_case_key(self, record):
        record.set_metadata("clientName", "Globex")
        record.set_metadata("siteCode", "RL-7")

        assert record.metadata.client_name == "Globex"
        assert record.metadata.extras == {"siteCode": "RL-7"}

    def test_apply_json_edit(self, record):
        edited = json.loads(record.to_json())
        edited["summary"][0]["rate"] = 150
        text = "```json\n" + json.dumps(edited) + "\n```"

        record.apply_json_edit(text)

        assert record.summary[0].rate == 150.0
        assert record.grand_total == 350.0

    @pytest.mark.parametrize("text", ["{not json", "[1, 2]", "42"])
    def test_invalid_json_edit_leaves_record_untouched(self, record, text):
        before = record.to_dict()

        with pytest.raises(RecordEditError):
            record.apply_json_edit(text)

        assert record.to_dict() == before

    def test_json_edit_keeps_merged_elements(self, record, template):
        merged = record.merge_with_template(template)
        merged.apply_json_edit(merged.to_json())

        assert len(merged.elements) == len(template.elements)

    def test_merge_uses_template_defaults(self, record, template):
        merged = record.merge_with_template(template)

        assert merged.metadata.client_name == "Acme Corp"
        assert merged.metadata.vendor_name == template.metadata["vendorName"]
        assert merged.metadata.document_title == "Invoice:"
        assert merged.bank_details.iban_usd == template.bank_details["ibanUsd"]
        assert merged.elements == list(template.elements)
        assert merged.layout == list(template.layout)

    def test_merge_does_not_modify_the_extracted_record(self, record, template):
        merged = record.merge_with_template(template)
        merged.summary[0].rate = 1

        assert record.summary[0].rate == 100.0
        assert record.metadata.vendor_name is None

    def test_blank_extracted_values_keep_defaults(self, template):
        record = InvoiceData.from_dict({"metadata": {"clientName": "  "}})
        merged = record.merge_with_template(template)

        assert merged.metadata.client_name == template.metadata["clientName"]

    def test_purchase_order_gets_pro_forma_title(self, record, template):
        merged = record.merge_with_template(template, DocumentKind.PURCHASE_ORDER)
        assert merged.metadata.document_title == PRO_FORMA_TITLE

    def test_missing_title_falls_back_to_pro_forma(self, record):
        merged = record.merge_with_template(TemplateData(name="Bare"))
        assert merged.metadata.document_title == PRO_FORMA_TITLE

    def test_merge_currency_precedence(self, template):
        qar_template = template.with_metadata({"currency": "QAR"})

        assert InvoiceData.from_dict({}).merge_with_template(qar_template).currency == "QAR"
        assert InvoiceData.from_dict({}).merge_with_template(TemplateData(name="Bare")).currency == "USD"

        from_metadata = InvoiceData.from_dict({"metadata": {"currency": "EUR"}})
        merged = from_metadata.merge_with_template(qar_template)
        assert merged.currency == "EUR"
        assert merged.metadata.currency == "EUR"
