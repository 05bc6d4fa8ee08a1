"""
Template Data Class.

A template is a named, immutable collection of positioned elements plus
default metadata and bank details. Every mutation returns a new template
so the editor history can keep whole snapshots without copying.

Author: ML Engineering Team
"""

import itertools
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from template_studio.layout.coordinates import DEFAULT_MIN_SIZE
from template_studio.utils.exceptions import TemplateError
from .element import ElementStyle, ElementType, TemplateElement, render_sort_key

_id_counter = itertools.count()

NEW_TEMPLATE_NAME = "New Custom Template"
PLACEHOLDER_TEXT = "Double click to edit"


def generate_element_id() -> str:
    """Millisecond timestamp id with a process-wide counter to avoid collisions."""
    return f"el_{int(time.time() * 1000)}_{next(_id_counter)}"


def create_element(
    element_type: ElementType,
    element_id: Optional[str] = None,
    x: float = 50,
    y: float = 50
) -> TemplateElement:
    """
    Create an element with the default geometry and style for its type.

    Tables start at 600 x 200, everything else at 200 x 50. Text starts
    with placeholder content.

    Args:
        element_type: Type of the new element.
        element_id: Explicit id; generated when omitted.
        x: Left edge in page units.
        y: Top edge in page units.

    Returns:
        New TemplateElement.
    """
    element_type = ElementType(element_type)
    is_table = element_type == ElementType.TABLE
    return TemplateElement(
        id=element_id or generate_element_id(),
        type=element_type,
        label=f"New {element_type.value}",
        x=x,
        y=y,
        width=600 if is_table else 200,
        height=200 if is_table else 50,
        content=PLACEHOLDER_TEXT if element_type == ElementType.TEXT else None,
        style=ElementStyle(font_size=12, color='#000000', align='left'),
    )


@dataclass(frozen=True)
class TemplateData:
    """
    Named template: elements plus default metadata and bank details.

    Attributes:
        id: Store id, None until first saved.
        name: Display name.
        metadata: Default metadata bag (camelCase keys).
        bank_details: Default bank details (camelCase keys).
        layout: Section ordering hint.
        elements: Elements in insertion order.

    Example:
        >>> template = TemplateData(name="Blank")
        >>> template = template.with_element_added(create_element(ElementType.TEXT))
        >>> len(template.elements)
        1
    """
    name: str
    id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    bank_details: Dict[str, Any] = field(default_factory=dict)
    layout: Tuple[str, ...] = ()
    elements: Tuple[TemplateElement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'elements', tuple(self.elements))
        object.__setattr__(self, 'layout', tuple(self.layout))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def element(self, element_id: str) -> Optional[TemplateElement]:
        """Find an element by id."""
        for el in self.elements:
            if el.id == element_id:
                return el
        return None

    @property
    def element_ids(self) -> List[str]:
        return [el.id for el in self.elements]

    def render_order(self) -> List[TemplateElement]:
        """Elements in paint order (stable sort by type priority, then y)."""
        return sorted(self.elements, key=render_sort_key)

    # -------------------------------------------------------------------------
    # Mutations (return new templates)
    # -------------------------------------------------------------------------

    def with_element_added(self, element: TemplateElement) -> 'TemplateData':
        if self.element(element.id) is not None:
            raise TemplateError(f"Duplicate element id: {element.id}")
        return replace(self, elements=self.elements + (element,))

    def with_element_updated(
        self,
        element_id: str,
        patch: Dict[str, Any],
        min_size: float = DEFAULT_MIN_SIZE
    ) -> 'TemplateData':
        """Apply a partial patch to one element; unknown ids leave the template as is."""
        return replace(self, elements=tuple(
            el.with_patch(patch, min_size) if el.id == element_id else el
            for el in self.elements
        ))

    def with_elements_replaced(self, updated: Iterable[TemplateElement]) -> 'TemplateData':
        """Swap in new versions of existing elements, matched by id."""
        by_id = {el.id: el for el in updated}
        return replace(self, elements=tuple(by_id.get(el.id, el) for el in self.elements))

    def without_elements(self, element_ids: Iterable[str]) -> 'TemplateData':
        doomed = set(element_ids)
        return replace(self, elements=tuple(el for el in self.elements if el.id not in doomed))

    def with_elements_moved(self, element_ids: Iterable[str], dx: float, dy: float) -> 'TemplateData':
        targets = set(element_ids)
        return replace(self, elements=tuple(
            el.moved(dx, dy) if el.id in targets else el
            for el in self.elements
        ))

    def with_metadata(self, patch: Dict[str, Any]) -> 'TemplateData':
        return replace(self, metadata={**self.metadata, **patch})

    def renamed(self, name: str) -> 'TemplateData':
        return replace(self, name=name)

    def clone(self) -> 'TemplateData':
        """Copy under a new name with the store id cleared."""
        return replace(self, id=None, name=f"{self.name} (Copy)")

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Flat camelCase form, as cached locally."""
        data: Dict[str, Any] = {
            'name': self.name,
            'metadata': dict(self.metadata),
            'bankDetails': dict(self.bank_details),
            'layout': list(self.layout),
            'elements': [el.to_dict() for el in self.elements],
        }
        if self.id is not None:
            data['id'] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TemplateData':
        return cls(
            id=data.get('id'),
            name=data.get('name') or NEW_TEMPLATE_NAME,
            metadata=dict(data.get('metadata') or {}),
            bank_details=dict(data.get('bankDetails') or {}),
            layout=tuple(data.get('layout') or ()),
            elements=tuple(TemplateElement.from_dict(el) for el in data.get('elements') or ()),
        )

    def to_row(self) -> Dict[str, Any]:
        """Persisted row shape: id and name hoisted out of the data bag."""
        return {
            'id': self.id,
            'name': self.name,
            'data': {
                'metadata': dict(self.metadata),
                'bankDetails': dict(self.bank_details),
                'layout': list(self.layout),
                'elements': [el.to_dict() for el in self.elements],
            },
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'TemplateData':
        data = dict(row.get('data') or {})
        data['id'] = row.get('id')
        data['name'] = row.get('name')
        return cls.from_dict(data)
