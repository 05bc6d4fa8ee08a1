"""
Editor Session Module.

One EditorSession owns the template being edited, its undo history, the
selection set, the zoom factor and the pointer gesture in progress. It
is constructed once per editing session and handed to the views that
need it; there is no module-level editor state.

Pointer gestures follow a small state machine:

    IDLE --pointer_down(element)--> DRAGGING --pointer_up--> IDLE
    IDLE --pointer_down(handle)---> RESIZING --pointer_up--> IDLE

Intermediate pointer moves update the live template only. Releasing the
pointer commits a single history snapshot.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from config import get_config
from template_studio.layout.coordinates import (
    DEFAULT_MIN_SIZE,
    DEFAULT_SNAP_GRID,
    DEFAULT_ZOOM_MAX,
    DEFAULT_ZOOM_MIN,
    clamp_size,
    clamp_zoom,
    screen_to_page,
    snap,
)
from template_studio.model.defaults import SAMPLE_RECORD, default_template
from template_studio.model.element import ElementStyle, ElementType, TemplateElement
from template_studio.model.template import NEW_TEMPLATE_NAME, TemplateData, create_element
from template_studio.utils.exceptions import InvalidElementError
from template_studio.utils.helpers import to_data_url
from template_studio.utils.logger import get_logger
from .history import History

# Initialize module logger
logger = get_logger(__name__)

RESIZE_HANDLE = 'se'

TOTAL_LABEL_ID = 'el_lbl_ts'
TOTAL_VALUE_ID = 'el_val_ts'

_ARROWS = {
    'ArrowUp': (0, -1),
    'ArrowDown': (0, 1),
    'ArrowLeft': (-1, 0),
    'ArrowRight': (1, 0),
}

_IMAGE_MIME_TYPES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
    '.svg': 'image/svg+xml',
}


class PointerMode(str, Enum):
    """Pointer gesture in progress."""
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass
class _Gesture:
    """Pointer-down snapshot: start point and initial geometry of the selection."""
    mode: PointerMode = PointerMode.IDLE
    handle: Optional[str] = None
    start_x: float = 0.0
    start_y: float = 0.0
    initial: Dict[str, tuple] = field(default_factory=dict)


class EditorSession:
    """
    Interactive editing state for one template.

    Attributes:
        history: Committed snapshots.
        selection: Selected element ids; the last one is the primary.
        zoom: Screen scale factor, never applied to stored geometry.
        snap_grid: Grid spacing for drag and resize.
        min_size: Minimum element width and height.

    Example:
        >>> session = EditorSession()
        >>> element = session.add_element(ElementType.BOX)
        >>> session.pointer_down(element.id, 60, 60)
        >>> session.pointer_move(130, 60)
        >>> session.pointer_up()
        >>> session.undo()
    """

    def __init__(
        self,
        template: Optional[TemplateData] = None,
        preview_renderer=None
    ) -> None:
        self.snap_grid = float(get_config("editor.snap_grid", DEFAULT_SNAP_GRID))
        self.min_size = float(get_config("editor.min_element_size", DEFAULT_MIN_SIZE))
        self.zoom_min = float(get_config("editor.zoom.min", DEFAULT_ZOOM_MIN))
        self.zoom_max = float(get_config("editor.zoom.max", DEFAULT_ZOOM_MAX))
        self.zoom_step = float(get_config("editor.zoom.step", 0.1))
        self.nudge_small = float(get_config("editor.nudge.small", 1))
        self.nudge_large = float(get_config("editor.nudge.large", 10))

        self._template = template if template is not None else default_template()
        self.history = History(self._template)
        self.selection: List[str] = []
        self.zoom = clamp_zoom(float(get_config("editor.zoom.default", 0.7)), self.zoom_min, self.zoom_max)
        self._gesture = _Gesture()
        self._preview_renderer = preview_renderer

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def template(self) -> TemplateData:
        """Live template, including uncommitted gesture changes."""
        return self._template

    @property
    def mode(self) -> PointerMode:
        return self._gesture.mode

    @property
    def primary_id(self) -> Optional[str]:
        return self.selection[-1] if self.selection else None

    @property
    def primary_element(self) -> Optional[TemplateElement]:
        return self._template.element(self.primary_id) if self.primary_id else None

    @property
    def is_multiple(self) -> bool:
        return len(self.selection) > 1

    @property
    def selected_elements(self) -> List[TemplateElement]:
        elements = [self._template.element(i) for i in self.selection]
        return [el for el in elements if el is not None]

    def _commit(self, template: TemplateData) -> None:
        """Make a template the live state and record it as one history step."""
        self._template = template
        self.history.push(template)

    def _commit_if_changed(self, template: TemplateData) -> bool:
        """Commit unless the edit leaves the template as it is."""
        if template == self.history.current:
            self._template = template
            return False
        self._commit(template)
        return True

    def _prune_selection(self) -> None:
        present = set(self._template.element_ids)
        self.selection = [i for i in self.selection if i in present]

    def open(self, template: TemplateData) -> None:
        """Switch to another template: history reset, selection cleared."""
        self._template = template
        self.history.reset(template)
        self.selection = []
        self._gesture = _Gesture()
        logger.info(f"Editing template '{template.name}' ({len(template.elements)} elements)")

    def create_new(self) -> TemplateData:
        """Start a fresh, unsaved template from the built-in layout."""
        template = default_template().renamed(NEW_TEMPLATE_NAME)
        self.open(template)
        return template

    def clone(self) -> TemplateData:
        """Continue editing an unsaved copy of the current template."""
        template = self._template.clone()
        self.open(template)
        return template

    # -------------------------------------------------------------------------
    # Element operations
    # -------------------------------------------------------------------------

    def add_element(self, element_type: Union[ElementType, str]) -> TemplateElement:
        """
        Add an element with the default geometry for its type and select it.

        Args:
            element_type: Element type, e.g. ElementType.TEXT or "box".

        Returns:
            The new element.
        """
        element = create_element(ElementType(element_type))
        self._commit(self._template.with_element_added(element))
        self.selection = [element.id]
        logger.debug(f"Added {element.type.value} element {element.id}")
        return element

    def add_total_block(self) -> List[TemplateElement]:
        """
        Add a "Grand Total:" label and a grandTotal-bound value as one step.

        Existing total block elements are replaced, so the block can be
        re-added after it was moved away.

        Returns:
            The label and value elements, both selected.
        """
        style = {'fontSize': 12, 'fontWeight': 'bold', 'align': 'right'}
        label = TemplateElement(
            id=TOTAL_LABEL_ID, type=ElementType.TEXT, label="Total Label",
            x=500, y=650, width=100, height=20,
            content="Grand Total:", style=ElementStyle.from_dict(style),
        )
        value = TemplateElement(
            id=TOTAL_VALUE_ID, type=ElementType.TEXT, label="Total Value",
            x=610, y=650, width=90, height=20,
            binding="grandTotal", style=ElementStyle.from_dict(style),
        )
        template = self._template.without_elements([TOTAL_LABEL_ID, TOTAL_VALUE_ID])
        template = template.with_element_added(label).with_element_added(value)
        self._commit(template)
        self.selection = [label.id, value.id]
        return [label, value]

    def update_element(self, element_id: str, patch: Dict[str, Any]) -> TemplateElement:
        """
        Merge a partial patch into one element as one history step.

        Raises:
            InvalidElementError: If no element has this id.
        """
        if self._template.element(element_id) is None:
            raise InvalidElementError(element_id, "no such element")
        self._commit_if_changed(self._template.with_element_updated(element_id, patch, self.min_size))
        return self._template.element(element_id)

    def update_selected(self, patch: Dict[str, Any]) -> None:
        """Apply one patch to every selected element as a single step."""
        if not self.selection:
            return
        template = self._template
        for element_id in self.selection:
            template = template.with_element_updated(element_id, patch, self.min_size)
        self._commit_if_changed(template)

    def delete_selected(self) -> int:
        """Remove all selected elements as one step; returns the count removed."""
        count = len(self.selected_elements)
        if not count:
            return 0
        self._commit(self._template.without_elements(self.selection))
        self.selection = []
        return count

    def nudge(self, dx: float, dy: float) -> None:
        """Move the selection by a page-unit offset as one step."""
        if not self.selection:
            return
        self._commit(self._template.with_elements_moved(self.selection, dx, dy))

    def upload_image(
        self,
        element_id: str,
        content: Union[bytes, str, Path],
        mime_type: Optional[str] = None
    ) -> str:
        """
        Embed an image file into an image element as a data URL.

        Args:
            element_id: Target image element.
            content: Raw bytes or a path to the image file.
            mime_type: MIME type; guessed from the file suffix when omitted.

        Returns:
            The data URL now stored as the element content.
        """
        if isinstance(content, (str, Path)):
            path = Path(content)
            mime_type = mime_type or _IMAGE_MIME_TYPES.get(path.suffix.lower(), 'application/octet-stream')
            content = path.read_bytes()
        data_url = to_data_url(content, mime_type or 'image/png')
        self.update_element(element_id, {'content': data_url})
        return data_url

    # -------------------------------------------------------------------------
    # Template settings
    # -------------------------------------------------------------------------

    def update_settings(self, currency: Optional[str] = None, scope_of_work: Optional[str] = None) -> None:
        """Change the template's default currency and/or scope of work."""
        patch: Dict[str, Any] = {}
        if currency is not None:
            patch['currency'] = currency
        if scope_of_work is not None:
            patch['scopeOfWork'] = scope_of_work
        if patch:
            self._commit(self._template.with_metadata(patch))

    def rename(self, name: str) -> None:
        if name and name != self._template.name:
            self._commit(self._template.renamed(name))

    def mark_saved(self, saved: TemplateData) -> None:
        """Adopt the store's copy (with its id) without adding a history step."""
        self._template = saved
        self.history.reset(saved)
        self._prune_selection()

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> TemplateData:
        self._gesture = _Gesture()
        self._template = self.history.undo()
        self._prune_selection()
        return self._template

    def redo(self) -> TemplateData:
        self._gesture = _Gesture()
        self._template = self.history.redo()
        self._prune_selection()
        return self._template

    # -------------------------------------------------------------------------
    # Zoom
    # -------------------------------------------------------------------------

    def set_zoom(self, zoom: float) -> float:
        self.zoom = clamp_zoom(zoom, self.zoom_min, self.zoom_max)
        return self.zoom

    def zoom_in(self) -> float:
        return self.set_zoom(self.zoom + self.zoom_step)

    def zoom_out(self) -> float:
        return self.set_zoom(self.zoom - self.zoom_step)

    # -------------------------------------------------------------------------
    # Keyboard
    # -------------------------------------------------------------------------

    def key_down(self, key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> bool:
        """
        Handle a key press.

        Args:
            key: Key name as reported by the browser, e.g. "z", "Delete", "ArrowUp".
            ctrl: Control held.
            meta: Command held.
            shift: Shift held.

        Returns:
            True if the key was handled.
        """
        command = ctrl or meta
        if command and key.lower() == 'z':
            if shift:
                self.redo()
            else:
                self.undo()
            return True
        if command and key.lower() == 'y':
            self.redo()
            return True

        if not self.selection:
            return False

        if key in ('Delete', 'Backspace'):
            self.delete_selected()
            return True
        if key in _ARROWS:
            amount = self.nudge_large if shift else self.nudge_small
            ux, uy = _ARROWS[key]
            self.nudge(ux * amount, uy * amount)
            return True
        return False

    # -------------------------------------------------------------------------
    # Pointer gestures
    # -------------------------------------------------------------------------

    def element_at(self, page_x: float, page_y: float) -> Optional[TemplateElement]:
        """Topmost element under a page-unit point, in paint order."""
        for el in reversed(self._template.render_order()):
            if el.rect.contains(page_x, page_y):
                return el
        return None

    def pointer_down(
        self,
        element_id: str,
        screen_x: float,
        screen_y: float,
        handle: Optional[str] = None,
        toggle: bool = False
    ) -> None:
        """
        Start a drag, or a resize when a handle is given.

        Args:
            element_id: Element under the pointer.
            screen_x: Pointer x relative to the canvas, in screen pixels.
            screen_y: Pointer y relative to the canvas, in screen pixels.
            handle: Resize handle name ("se"), None for a drag.
            toggle: Modifier held; toggles membership instead of replacing.
        """
        if self._template.element(element_id) is None:
            raise InvalidElementError(element_id, "no such element")

        if toggle:
            if element_id in self.selection:
                self.selection = [i for i in self.selection if i != element_id]
            else:
                self.selection = self.selection + [element_id]
        elif element_id not in self.selection:
            self.selection = [element_id]

        start_x, start_y = screen_to_page(screen_x, screen_y, self.zoom)
        self._gesture = _Gesture(
            mode=PointerMode.RESIZING if handle else PointerMode.DRAGGING,
            handle=handle,
            start_x=start_x,
            start_y=start_y,
            initial={el.id: (el.x, el.y, el.width, el.height) for el in self.selected_elements},
        )

    def pointer_move(self, screen_x: float, screen_y: float) -> None:
        """Update the live template for the gesture in progress."""
        gesture = self._gesture
        if gesture.mode == PointerMode.IDLE or not self.selection:
            return

        page_x, page_y = screen_to_page(screen_x, screen_y, self.zoom)
        dx = page_x - gesture.start_x
        dy = page_y - gesture.start_y

        if gesture.mode == PointerMode.DRAGGING:
            moved = []
            for el in self.selected_elements:
                init = gesture.initial.get(el.id)
                if init:
                    moved.append(el.with_patch({
                        'x': snap(init[0] + dx, self.snap_grid),
                        'y': snap(init[1] + dy, self.snap_grid),
                    }, self.min_size))
            self._template = self._template.with_elements_replaced(moved)
            return

        init = gesture.initial.get(self.primary_id)
        if not init:
            return
        width, height = init[2], init[3]
        if 'e' in gesture.handle:
            width = clamp_size(snap(init[2] + dx, self.snap_grid), self.min_size)
        if 's' in gesture.handle:
            height = clamp_size(snap(init[3] + dy, self.snap_grid), self.min_size)
        self._template = self._template.with_element_updated(
            self.primary_id, {'width': width, 'height': height}, self.min_size
        )

    def pointer_up(self) -> bool:
        """
        End the gesture and commit its final state.

        Returns:
            True if a history step was recorded; a gesture that changed
            nothing leaves the history alone.
        """
        active = self._gesture.mode != PointerMode.IDLE
        self._gesture = _Gesture()
        if active and self._template != self.history.current:
            self.history.push(self._template)
            return True
        return False

    def click_background(self) -> None:
        self.selection = []

    def select(self, element_ids: Sequence[str]) -> None:
        present = set(self._template.element_ids)
        self.selection = [i for i in element_ids if i in present]

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def preview(self, record: Any = None, show_grid: bool = True):
        """Rasterize the canvas at the current zoom with the selection overlay."""
        if self._preview_renderer is None:
            from template_studio.rendering.preview_renderer import PreviewRenderer
            self._preview_renderer = PreviewRenderer()
        return self._preview_renderer.render(
            self._template,
            SAMPLE_RECORD if record is None else record,
            zoom=self.zoom,
            selected_ids=self.selection,
            show_grid=show_grid,
        )
