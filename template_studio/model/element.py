"""
Template Element Data Classes.

This module defines the atomic visual unit of a template: a positioned
element of one of four closed types (text, image, box, table) with
geometry in page units, an optional flat style and either static
content or a binding.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional

from template_studio.layout.coordinates import Rect, clamp_size, DEFAULT_MIN_SIZE
from template_studio.utils.exceptions import InvalidElementError
from template_studio.utils.helpers import camel_to_snake, snake_to_camel


class ElementType(str, Enum):
    """Closed set of element types."""
    TEXT = "text"
    IMAGE = "image"
    BOX = "box"
    TABLE = "table"


# Paint order: backgrounds first, text last
RENDER_PRIORITY: Dict[ElementType, int] = {
    ElementType.BOX: 0,
    ElementType.IMAGE: 1,
    ElementType.TABLE: 2,
    ElementType.TEXT: 3,
}

GEOMETRY_FIELDS = ('x', 'y', 'width', 'height')


@dataclass(frozen=True)
class ResolvedStyle:
    """Element style with every default applied, as the renderers consume it."""
    font_size: float = 12
    font_weight: str = 'normal'
    font_style: str = 'normal'
    text_decoration: str = 'none'
    align: str = 'left'
    color: str = '#000000'
    background_color: Optional[str] = None

    @property
    def bold(self) -> bool:
        return self.font_weight == 'bold'

    @property
    def italic(self) -> bool:
        return self.font_style == 'italic'

    @property
    def underline(self) -> bool:
        return self.text_decoration == 'underline'

    @property
    def font_variant(self) -> str:
        """One of normal, bold, italic, bolditalic."""
        if self.bold and self.italic:
            return 'bolditalic'
        if self.bold:
            return 'bold'
        if self.italic:
            return 'italic'
        return 'normal'


@dataclass(frozen=True)
class ElementStyle:
    """
    Flat optional style of an element.

    Every field is optional; resolved() applies the documented defaults
    field by field.

    Example:
        >>> style = ElementStyle(font_weight="bold")
        >>> style.resolved().font_size
        12
    """
    font_size: Optional[float] = None
    font_weight: Optional[str] = None
    font_style: Optional[str] = None
    text_decoration: Optional[str] = None
    align: Optional[str] = None
    background_color: Optional[str] = None
    color: Optional[str] = None

    def resolved(self) -> ResolvedStyle:
        """Apply defaults to unset fields."""
        defaults = ResolvedStyle()
        values = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
        return replace(defaults, **values)

    def merged(self, patch: Dict[str, Any]) -> 'ElementStyle':
        """
        Shallow-merge a style patch.

        Keys may be camelCase or snake_case; unknown keys are ignored.
        A None value clears the field.
        """
        known = {f.name for f in fields(self)}
        changes = {}
        for key, value in patch.items():
            name = camel_to_snake(key)
            if name in known:
                changes[name] = value
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase dictionary of the set fields."""
        return {
            snake_to_camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ElementStyle':
        return cls().merged(data or {})


@dataclass(frozen=True)
class TemplateElement:
    """
    A positioned element on the template page.

    Attributes:
        id: Unique id, stable for the lifetime of the template.
        type: Element type.
        label: Human-readable name shown in the editor.
        x, y, width, height: Geometry in page units.
        content: Static text, image URL/data URL; used when unbound.
        binding: Dotted path or composite key; wins over content.
        style: Optional flat style.
    """
    id: str
    type: ElementType
    label: str = ''
    x: float = 0
    y: float = 0
    width: float = 200
    height: float = 50
    content: Optional[str] = None
    binding: Optional[str] = None
    style: ElementStyle = field(default_factory=ElementStyle)

    def __post_init__(self):
        if not isinstance(self.type, ElementType):
            try:
                object.__setattr__(self, 'type', ElementType(self.type))
            except ValueError:
                raise InvalidElementError(self.id, f"unknown element type '{self.type}'")

    @property
    def is_bound(self) -> bool:
        """Binding-driven rather than content-driven."""
        return bool(self.binding and str(self.binding).strip())

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def render_priority(self) -> int:
        return RENDER_PRIORITY[self.type]

    def with_patch(self, patch: Dict[str, Any], min_size: float = DEFAULT_MIN_SIZE) -> 'TemplateElement':
        """
        Return a copy with a partial patch applied.

        Unspecified fields are preserved. A "style" entry is merged into
        the existing style rather than replacing it. Patched width and
        height are clamped to the minimum element size. The id is fixed.

        Args:
            patch: Field values by snake_case or camelCase name.
            min_size: Minimum width and height.

        Returns:
            Updated element.
        """
        changes: Dict[str, Any] = {}
        for key, value in patch.items():
            name = camel_to_snake(key)
            if name == 'id':
                continue
            if name == 'style':
                if isinstance(value, ElementStyle):
                    changes['style'] = value
                else:
                    changes['style'] = self.style.merged(value or {})
            elif name in ('width', 'height'):
                changes[name] = clamp_size(float(value), min_size)
            elif name in ('x', 'y'):
                changes[name] = float(value)
            elif name == 'type':
                changes[name] = ElementType(value)
            elif name in ('label', 'content', 'binding'):
                changes[name] = value
        return replace(self, **changes)

    def moved(self, dx: float, dy: float) -> 'TemplateElement':
        return replace(self, x=self.x + dx, y=self.y + dy)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the persisted camelCase keys."""
        data: Dict[str, Any] = {
            'id': self.id,
            'type': self.type.value,
            'label': self.label,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
        }
        if self.content is not None:
            data['content'] = self.content
        if self.binding is not None:
            data['binding'] = self.binding
        style = self.style.to_dict()
        if style:
            data['style'] = style
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TemplateElement':
        """
        Build an element from its persisted form.

        Raises:
            InvalidElementError: If the id or type is missing or invalid,
                or geometry is not numeric.
        """
        element_id = data.get('id')
        if not element_id:
            raise InvalidElementError(None, "missing id")
        try:
            return cls(
                id=str(element_id),
                type=ElementType(data.get('type')),
                label=data.get('label') or '',
                x=float(data.get('x', 0)),
                y=float(data.get('y', 0)),
                width=float(data.get('width', 200)),
                height=float(data.get('height', 50)),
                content=data.get('content'),
                binding=data.get('binding') or None,
                style=ElementStyle.from_dict(data.get('style')),
            )
        except (TypeError, ValueError) as e:
            raise InvalidElementError(str(element_id), str(e))


def render_sort_key(element: TemplateElement):
    """Sort key for paint order: type priority, then top edge."""
    return (element.render_priority, element.y)
