"""Tests for the interactive editor session."""

import pytest
from PIL import Image

from template_studio.editor.session import (
    EditorSession,
    PointerMode,
    TOTAL_LABEL_ID,
    TOTAL_VALUE_ID,
)
from template_studio.model.element import ElementType
from template_studio.model.template import NEW_TEMPLATE_NAME, TemplateData
from template_studio.layout.coordinates import PAGE_HEIGHT, PAGE_WIDTH
from template_studio.utils.exceptions import InvalidElementError


@pytest.fixture
def blank_session():
    session = EditorSession(TemplateData(name="Blank"))
    session.set_zoom(1.0)
    return session


class TestElementOperations:
    """Adding, updating and deleting elements."""

    def test_add_element_selects_it(self, blank_session):
        element = blank_session.add_element(ElementType.BOX)

        assert blank_session.selection == [element.id]
        assert blank_session.template.element(element.id) == element
        assert len(blank_session.history) == 2

    def test_update_element(self, blank_session):
        element = blank_session.add_element("text")
        updated = blank_session.update_element(element.id, {"content": "Invoice", "width": 3})

        assert updated.content == "Invoice"
        assert updated.width == 20

    def test_unchanged_updates_add_no_history(self, blank_session):
        element = blank_session.add_element("text")
        blank_session.update_element(element.id, {"content": "Invoice"})
        blank_session.select([element.id])
        steps = len(blank_session.history)

        blank_session.update_element(element.id, {"content": "Invoice"})
        blank_session.update_selected({"content": "Invoice"})

        assert len(blank_session.history) == steps
        assert blank_session.template.element(element.id).content == "Invoice"

    def test_update_unknown_element_fails(self, blank_session):
        with pytest.raises(InvalidElementError):
            blank_session.update_element("missing", {"x": 1})

    def test_update_selected_is_one_step(self, blank_session):
        first = blank_session.add_element("text")
        second = blank_session.add_element("text")
        blank_session.select([first.id, second.id])
        steps = len(blank_session.history)

        blank_session.update_selected({"style": {"fontWeight": "bold"}})

        assert len(blank_session.history) == steps + 1
        assert all(el.style.resolved().bold for el in blank_session.selected_elements)

    def test_delete_selected(self, blank_session):
        first = blank_session.add_element("box")
        blank_session.add_element("box")
        blank_session.select([first.id, "missing"])

        assert blank_session.selection == [first.id]
        assert blank_session.delete_selected() == 1
        assert blank_session.template.element(first.id) is None
        assert blank_session.selection == []

    def test_total_block_replaces_existing(self, blank_session):
        blank_session.add_total_block()
        blank_session.nudge(100, 0)
        blank_session.add_total_block()

        ids = blank_session.template.element_ids
        assert ids.count(TOTAL_LABEL_ID) == 1
        assert ids.count(TOTAL_VALUE_ID) == 1
        value = blank_session.template.element(TOTAL_VALUE_ID)
        assert value.binding == "grandTotal"
        assert value.x == 610
        assert blank_session.selection == [TOTAL_LABEL_ID, TOTAL_VALUE_ID]

    def test_upload_image_embeds_data_url(self, blank_session, tmp_path):
        element = blank_session.add_element("image")
        path = tmp_path / "logo.png"
        Image.new("RGB", (2, 2), (0, 0, 255)).save(path)

        data_url = blank_session.upload_image(element.id, path)

        assert data_url.startswith("data:image/png;base64,")
        assert blank_session.template.element(element.id).content == data_url

    def test_update_settings(self, blank_session):
        blank_session.update_settings(currency="QAR", scope_of_work="Inspection")

        assert blank_session.template.metadata["currency"] == "QAR"
        assert blank_session.template.metadata["scopeOfWork"] == "Inspection"

    def test_update_settings_without_changes_adds_no_step(self, blank_session):
        blank_session.update_settings()
        assert len(blank_session.history) == 1


class TestHistory:
    """Undo and redo through the session."""

    def test_undo_restores_previous_template(self, blank_session):
        element = blank_session.add_element("box")
        blank_session.update_element(element.id, {"x": 300})

        blank_session.undo()
        assert blank_session.template.element(element.id).x == 50

        blank_session.redo()
        assert blank_session.template.element(element.id).x == 300

    def test_undo_prunes_selection(self, blank_session):
        element = blank_session.add_element("box")
        blank_session.undo()

        assert blank_session.template.element(element.id) is None
        assert blank_session.selection == []

    def test_open_resets_history(self, session):
        session.add_element("box")
        session.open(TemplateData(name="Other"))

        assert len(session.history) == 1
        assert session.selection == []
        assert session.template.name == "Other"

    def test_create_new_and_clone(self, session):
        created = session.create_new()
        assert created.name == NEW_TEMPLATE_NAME
        assert created.id is None

        session.mark_saved(TemplateData(name="Saved", id="t1"))
        cloned = session.clone()
        assert cloned.id is None
        assert cloned.name == "Saved (Copy)"


class TestPointerGestures:
    """Drag and resize state machine."""

    def test_drag_snaps_and_commits_once(self, blank_session):
        element = blank_session.add_element("box")
        steps = len(blank_session.history)

        blank_session.pointer_down(element.id, 60, 60)
        assert blank_session.mode == PointerMode.DRAGGING
        blank_session.pointer_move(80, 65)
        blank_session.pointer_move(93, 77)

        moved = blank_session.template.element(element.id)
        assert (moved.x, moved.y) == (80, 70)
        assert len(blank_session.history) == steps

        assert blank_session.pointer_up() is True
        assert blank_session.mode == PointerMode.IDLE
        assert len(blank_session.history) == steps + 1

        blank_session.undo()
        assert blank_session.template.element(element.id).x == 50

    def test_drag_converts_screen_delta_by_zoom(self, blank_session):
        element = blank_session.add_element("box")
        blank_session.set_zoom(0.5)

        blank_session.pointer_down(element.id, 0, 0)
        blank_session.pointer_move(50, 0)
        blank_session.pointer_up()

        assert blank_session.template.element(element.id).x == 150

    def test_drag_moves_whole_selection(self, blank_session):
        first = blank_session.add_element("box")
        second = blank_session.add_element("text")
        blank_session.select([first.id, second.id])

        blank_session.pointer_down(second.id, 0, 0)
        blank_session.pointer_move(100, 200)
        blank_session.pointer_up()

        for element_id in (first.id, second.id):
            el = blank_session.template.element(element_id)
            assert (el.x, el.y) == (150, 250)

    def test_toggle_adds_and_removes_selection(self, blank_session):
        first = blank_session.add_element("box")
        second = blank_session.add_element("box")

        blank_session.pointer_down(first.id, 0, 0, toggle=True)
        blank_session.pointer_up()
        assert blank_session.selection == [second.id, first.id]

        blank_session.pointer_down(second.id, 0, 0, toggle=True)
        blank_session.pointer_up()
        assert blank_session.selection == [first.id]

    def test_resize_snaps_and_clamps(self, blank_session):
        element = blank_session.add_element("box")

        blank_session.pointer_down(element.id, 250, 100, handle="se")
        assert blank_session.mode == PointerMode.RESIZING
        blank_session.pointer_move(287, 100)
        resized = blank_session.template.element(element.id)
        assert (resized.width, resized.height) == (240, 50)

        blank_session.pointer_move(-400, -400)
        resized = blank_session.template.element(element.id)
        assert (resized.width, resized.height) == (20, 20)
        assert blank_session.pointer_up() is True

    def test_click_without_movement_records_nothing(self, blank_session):
        element = blank_session.add_element("box")
        steps = len(blank_session.history)

        blank_session.pointer_down(element.id, 10, 10)
        assert blank_session.pointer_up() is False
        assert len(blank_session.history) == steps

    def test_pointer_down_on_unknown_element_fails(self, blank_session):
        with pytest.raises(InvalidElementError):
            blank_session.pointer_down("missing", 0, 0)

    def test_element_at_prefers_topmost(self, session):
        assert session.element_at(60, 155).id == "el_client_name_overlay"
        assert session.element_at(45, 145).id == "el_client_box"
        assert session.element_at(5, 1110) is None


class TestKeyboard:
    """Keyboard shortcuts."""

    def test_arrow_nudges(self, blank_session):
        element = blank_session.add_element("box")

        assert blank_session.key_down("ArrowRight")
        assert blank_session.key_down("ArrowDown", shift=True)

        moved = blank_session.template.element(element.id)
        assert (moved.x, moved.y) == (51, 60)

    def test_keys_without_selection(self, blank_session):
        blank_session.add_element("box")
        blank_session.click_background()

        assert not blank_session.key_down("ArrowUp")
        assert not blank_session.key_down("Delete")
        assert blank_session.key_down("z", ctrl=True)

    def test_delete_key_removes_selection(self, blank_session):
        element = blank_session.add_element("box")

        assert blank_session.key_down("Backspace")
        assert blank_session.template.element(element.id) is None

    def test_undo_redo_shortcuts(self, blank_session):
        element = blank_session.add_element("box")

        blank_session.key_down("z", meta=True)
        assert blank_session.template.element(element.id) is None

        blank_session.key_down("Z", ctrl=True, shift=True)
        assert blank_session.template.element(element.id) is not None

        blank_session.key_down("z", ctrl=True)
        blank_session.key_down("y", ctrl=True)
        assert blank_session.template.element(element.id) is not None

    def test_unhandled_key(self, blank_session):
        blank_session.add_element("box")
        assert not blank_session.key_down("a")


class TestZoomAndPreview:
    """Zoom clamping and the rasterized canvas."""

    def test_default_zoom(self, session):
        assert session.zoom == 0.7

    def test_zoom_steps_are_clamped(self, session):
        for _ in range(20):
            session.zoom_in()
        assert session.zoom == 1.5

        for _ in range(20):
            session.zoom_out()
        assert session.zoom == 0.3

    def test_zoom_does_not_touch_geometry(self, session):
        before = session.template
        session.set_zoom(1.2)
        assert session.template is before

    def test_preview_size_follows_zoom(self, session):
        session.select(["el_table"])
        image = session.preview()

        assert image.size == (round(PAGE_WIDTH * 0.7), round(PAGE_HEIGHT * 0.7))
