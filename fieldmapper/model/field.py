"""Form field model definitions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
import math
from types import MappingProxyType
from typing import Any

from fieldmapper.geometry.transform import DocumentRect


class FieldType(str, Enum):
    TEXT = "text"
    CHECKBOX = "checkbox"
    DATE = "date"


class FontFamily(str, Enum):
    HELVETICA = "Helvetica"
    TIMES_ROMAN = "Times-Roman"
    COURIER = "Courier"


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


EDITABLE_ATTRIBUTES = frozenset(
    {"name", "type", "page", "x", "y", "width", "height", "properties"}
)


class FieldValueError(ValueError):
    """Raised when field attributes fail validation."""


class InvalidGeometryError(FieldValueError):
    """Raised when a field's position or extent is non-finite or non-positive."""


@dataclass(frozen=True, slots=True)
class FormField:
    id: str
    name: str
    type: FieldType
    page: int
    x: float
    y: float
    width: float
    height: float
    properties: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def rect(self) -> DocumentRect:
        return DocumentRect(x=self.x, y=self.y, width=self.width, height=self.height)


def default_properties(field_type: FieldType) -> dict[str, Any]:
    if field_type is FieldType.TEXT:
        return {
            "fontSize": 12,
            "fontFamily": FontFamily.HELVETICA.value,
            "alignment": Alignment.LEFT.value,
        }
    return {}


def default_field_name(position: int) -> str:
    return f"Field_{position}"


def create_field(attributes: Mapping[str, Any], field_id: str) -> FormField:
    """Build a validated snapshot from plain attributes.

    Any ``id`` inside ``attributes`` is ignored in favour of ``field_id``.
    Text fields get the default font settings for any property they omit.
    """
    field_type = _coerce_type(attributes.get("type", FieldType.TEXT))
    properties = _coerce_properties(field_type, attributes.get("properties"))

    name = attributes.get("name", "")
    if not isinstance(name, str):
        raise FieldValueError(f"Field name must be a string, got {type(name).__name__}")

    x = _coerce_number("x", attributes.get("x"))
    y = _coerce_number("y", attributes.get("y"))
    width = _coerce_number("width", attributes.get("width"))
    height = _coerce_number("height", attributes.get("height"))
    if width <= 0.0 or height <= 0.0:
        raise InvalidGeometryError(f"Field extent must be positive, got {width} x {height}")

    return FormField(
        id=field_id,
        name=name,
        type=field_type,
        page=_coerce_page(attributes.get("page")),
        x=x,
        y=y,
        width=width,
        height=height,
        properties=MappingProxyType(properties),
    )


def with_updates(current: FormField, changes: Mapping[str, Any]) -> FormField:
    """Return a new snapshot of ``current`` with ``changes`` applied."""
    if "id" in changes and changes["id"] != current.id:
        raise FieldValueError("Field id is immutable")

    unknown = set(changes) - EDITABLE_ATTRIBUTES - {"id"}
    if unknown:
        raise FieldValueError(f"Unknown field attribute(s): {', '.join(sorted(unknown))}")

    merged = field_attributes(current)
    merged.update({key: value for key, value in changes.items() if key != "id"})
    return create_field(merged, current.id)


def field_attributes(item: FormField) -> dict[str, Any]:
    return {
        "name": item.name,
        "type": item.type,
        "page": item.page,
        "x": item.x,
        "y": item.y,
        "width": item.width,
        "height": item.height,
        "properties": dict(item.properties),
    }


def to_dict(item: FormField) -> dict[str, Any]:
    data = field_attributes(item)
    data["type"] = item.type.value
    return {"id": item.id, **data}


def matches_filter(item: FormField, search: str, page: int, all_pages: bool = False) -> bool:
    if search and search.lower() not in item.name.lower():
        return False
    return all_pages or item.page == page


def _coerce_type(value: Any) -> FieldType:
    try:
        return FieldType(value)
    except ValueError as exc:
        raise FieldValueError(f"Unsupported field type: {value!r}") from exc


def _coerce_number(label: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidGeometryError(f"Field {label} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise InvalidGeometryError(f"Field {label} must be finite, got {value!r}")
    return number


def _coerce_page(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FieldValueError(f"Field page must be a positive integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise FieldValueError(f"Field page must be a positive integer, got {value!r}")
    page = int(value)
    if page < 1:
        raise FieldValueError(f"Field page must be a positive integer, got {value!r}")
    return page


def _coerce_properties(field_type: FieldType, value: Any) -> dict[str, Any]:
    if value is None:
        value = {}
    if not isinstance(value, Mapping):
        raise FieldValueError("Field properties must be a mapping")

    properties = dict(value)
    if field_type is not FieldType.TEXT:
        return properties

    properties = {**default_properties(FieldType.TEXT), **properties}
    try:
        properties["fontFamily"] = FontFamily(properties["fontFamily"]).value
        properties["alignment"] = Alignment(properties["alignment"]).value
    except ValueError as exc:
        raise FieldValueError(f"Unsupported text property: {exc}") from exc

    font_size = properties["fontSize"]
    if (
        isinstance(font_size, bool)
        or not isinstance(font_size, (int, float))
        or not math.isfinite(font_size)
        or font_size <= 0
    ):
        raise FieldValueError(f"Font size must be a positive number, got {font_size!r}")
    return properties
