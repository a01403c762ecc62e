"""In-memory registry of placed fields, selection, and the active draw type."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import Enum
import logging
from typing import Any
from uuid import uuid4

from fieldmapper.model.field import (
    FieldType,
    FieldValueError,
    FormField,
    InvalidGeometryError,
    create_field,
    default_field_name,
    matches_filter,
    with_updates,
)

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET_PT = 12.0

Listener = Callable[[], None]


class MutationStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INVALID_GEOMETRY = "invalid_geometry"
    INVALID_VALUE = "invalid_value"


def new_field_id() -> str:
    return uuid4().hex


class FieldRegistry:
    """Owns every field snapshot of the session.

    Fields are immutable; each update swaps in a new snapshot under the same id.
    Selection is kept as an id and resolved on every read, so ``selected()``
    never returns a deleted or outdated field.
    """

    def __init__(self) -> None:
        self._fields: dict[str, FormField] = {}
        self._selected_id: str | None = None
        self._current_draw_type = FieldType.TEXT
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    @property
    def current_draw_type(self) -> FieldType:
        return self._current_draw_type

    def list(self) -> list[FormField]:
        return list(self._fields.values())

    def get(self, field_id: str) -> FormField | None:
        return self._fields.get(field_id)

    def selected(self) -> FormField | None:
        if self._selected_id is None:
            return None
        return self._fields.get(self._selected_id)

    def filtered(self, search: str, page: int, all_pages: bool = False) -> list[FormField]:
        return [item for item in self._fields.values() if matches_filter(item, search, page, all_pages)]

    def next_default_name(self) -> str:
        return default_field_name(len(self._fields) + 1)

    def add(self, attributes: Mapping[str, Any]) -> str:
        field_id = new_field_id()
        while field_id in self._fields:
            field_id = new_field_id()

        item = create_field(attributes, field_id)
        self._fields[field_id] = item
        self._selected_id = field_id
        logger.debug("Added %s field %s on page %d", item.type.value, field_id, item.page)
        self._notify()
        return field_id

    def update(self, field_id: str, changes: Mapping[str, Any]) -> MutationStatus:
        current = self._fields.get(field_id)
        if current is None:
            logger.debug("Update ignored, unknown field id %s", field_id)
            return MutationStatus.NOT_FOUND

        try:
            updated = with_updates(current, changes)
        except InvalidGeometryError as exc:
            logger.debug("Rejected geometry for field %s: %s", field_id, exc)
            return MutationStatus.INVALID_GEOMETRY
        except FieldValueError as exc:
            logger.debug("Rejected update for field %s: %s", field_id, exc)
            return MutationStatus.INVALID_VALUE

        self._fields[field_id] = updated
        self._notify()
        return MutationStatus.OK

    def delete(self, field_id: str) -> MutationStatus:
        if field_id not in self._fields:
            return MutationStatus.NOT_FOUND

        del self._fields[field_id]
        if self._selected_id == field_id:
            self._selected_id = None
        logger.debug("Deleted field %s", field_id)
        self._notify()
        return MutationStatus.OK

    def duplicate(self, field_id: str) -> str | None:
        source = self._fields.get(field_id)
        if source is None:
            return None

        attributes = {
            "name": self.next_default_name(),
            "type": source.type,
            "page": source.page,
            "x": source.x + DUPLICATE_OFFSET_PT,
            "y": source.y - DUPLICATE_OFFSET_PT,
            "width": source.width,
            "height": source.height,
            "properties": dict(source.properties),
        }
        return self.add(attributes)

    def select(self, field_id: str | None) -> MutationStatus:
        if field_id is not None and field_id not in self._fields:
            return MutationStatus.NOT_FOUND
        if field_id == self._selected_id:
            return MutationStatus.OK

        self._selected_id = field_id
        self._notify()
        return MutationStatus.OK

    def clear(self) -> None:
        self._fields.clear()
        self._selected_id = None
        self._notify()

    def replace_all(self, fields: Iterable[FormField]) -> None:
        replacement: dict[str, FormField] = {}
        for item in fields:
            if item.id in replacement:
                raise FieldValueError(f"Duplicate field id: {item.id}")
            replacement[item.id] = item

        self._fields = replacement
        self._selected_id = None
        self._notify()

    def set_current_draw_type(self, field_type: FieldType | str) -> None:
        self._current_draw_type = FieldType(field_type)
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Field registry listener failed")
