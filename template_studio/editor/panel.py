"""
Property panel model.

Computes what the property panel shows for the current selection and
turns panel edits into element patches on the editor session. With one
element selected the full property set is editable; with several only
bulk actions are offered.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from template_studio.binding.catalog import COMMON_BINDINGS, BindingOption, is_custom_binding
from template_studio.binding.formatting import coerce_number
from template_studio.model.element import ElementType, ResolvedStyle, TemplateElement
from .session import EditorSession

ALIGNMENTS = ('left', 'center', 'right')

# Shown instead of an embedded image in the URL field
EMBEDDED_IMAGE_LABEL = "(Base64)"


class PanelMode(str, Enum):
    EMPTY = "empty"
    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass
class PanelState:
    """
    Snapshot of the property panel.

    Attributes:
        mode: Nothing, one element or several selected.
        selected_count: Number of selected elements.
        element: The selected element in SINGLE mode.
        style: Its style with defaults applied.
        binding_options: Dropdown entries.
        binding_choice: Catalog path selected in the dropdown, "" for none/custom.
        custom_binding: Free-text path when the binding is not in the catalog.
        show_content: Static content textarea is shown (unbound text).
        show_background: Background colour picker is shown (boxes).
        show_upload: Image URL field and file upload are shown.
        image_source: Text for the image URL field.
        actions: Available buttons.
    """
    mode: PanelMode
    selected_count: int = 0
    element: Optional[TemplateElement] = None
    style: Optional[ResolvedStyle] = None
    binding_options: List[BindingOption] = field(default_factory=list)
    binding_choice: str = ''
    custom_binding: str = ''
    show_content: bool = False
    show_background: bool = False
    show_upload: bool = False
    image_source: str = ''
    actions: List[str] = field(default_factory=list)


class PropertyPanel:
    """
    Property editing bound to an EditorSession.

    Every setter is one history step on the session.

    Example:
        >>> panel = PropertyPanel(session)
        >>> panel.set_geometry('width', '5')
        >>> session.primary_element.width
        20.0
    """

    def __init__(self, session: EditorSession) -> None:
        self.session = session

    def state(self) -> PanelState:
        count = len(self.session.selected_elements)
        if count == 0:
            return PanelState(mode=PanelMode.EMPTY)
        if count > 1:
            return PanelState(mode=PanelMode.MULTIPLE, selected_count=count, actions=['delete'])

        el = self.session.primary_element
        binding = el.binding or ''
        custom = is_custom_binding(binding)
        image_source = ''
        if el.type == ElementType.IMAGE:
            content = el.content or ''
            image_source = EMBEDDED_IMAGE_LABEL if content.startswith('data:') else content
        return PanelState(
            mode=PanelMode.SINGLE,
            selected_count=1,
            element=el,
            style=el.style.resolved(),
            binding_options=list(COMMON_BINDINGS),
            binding_choice='' if custom else binding,
            custom_binding=binding if custom else '',
            show_content=el.type == ElementType.TEXT and not el.is_bound,
            show_background=el.type == ElementType.BOX,
            show_upload=el.type == ElementType.IMAGE,
            image_source=image_source,
            actions=['delete'],
        )

    # -------------------------------------------------------------------------
    # Edits on the primary element
    # -------------------------------------------------------------------------

    def _patch(self, patch: Dict[str, Any]) -> Optional[TemplateElement]:
        element_id = self.session.primary_id
        if element_id is None or self.session.is_multiple:
            return None
        return self.session.update_element(element_id, patch)

    def set_geometry(self, name: str, value: Any) -> Optional[TemplateElement]:
        """Set x, y, width or height from panel input; non-numeric input counts as 0."""
        if name not in ('x', 'y', 'width', 'height'):
            raise ValueError(f"Not a geometry field: {name}")
        return self._patch({name: int(coerce_number(value))})

    def set_label(self, label: str) -> Optional[TemplateElement]:
        return self._patch({'label': label})

    def set_binding(self, path: Optional[str]) -> Optional[TemplateElement]:
        """Select a catalog path, type a custom one, or clear with "" / None."""
        path = (path or '').strip()
        return self._patch({'binding': path or None})

    def set_content(self, content: str) -> Optional[TemplateElement]:
        return self._patch({'content': content})

    def set_font_size(self, size: Any) -> Optional[TemplateElement]:
        return self._patch({'style': {'fontSize': int(coerce_number(size)) or 12}})

    def set_color(self, color: str) -> Optional[TemplateElement]:
        return self._patch({'style': {'color': color}})

    def set_background(self, color: str) -> Optional[TemplateElement]:
        return self._patch({'style': {'backgroundColor': color}})

    def set_align(self, align: str) -> Optional[TemplateElement]:
        if align not in ALIGNMENTS:
            raise ValueError(f"Unknown alignment: {align}")
        return self._patch({'style': {'align': align}})

    def toggle_bold(self) -> Optional[TemplateElement]:
        el = self.session.primary_element
        if el is None:
            return None
        return self._patch({'style': {'fontWeight': 'normal' if el.style.resolved().bold else 'bold'}})

    def toggle_italic(self) -> Optional[TemplateElement]:
        el = self.session.primary_element
        if el is None:
            return None
        return self._patch({'style': {'fontStyle': 'normal' if el.style.resolved().italic else 'italic'}})

    def toggle_underline(self) -> Optional[TemplateElement]:
        el = self.session.primary_element
        if el is None:
            return None
        return self._patch({'style': {'textDecoration': 'none' if el.style.resolved().underline else 'underline'}})

    def delete(self) -> int:
        """Bulk action, available in both single and multiple mode."""
        return self.session.delete_selected()
