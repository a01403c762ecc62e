"""JSON exchange format for placed fields.

Every exported field carries two geometry quadruples:

* ``x``, ``y``, ``width``, ``height`` in millimetres, anchored at the field's
  centre and rounded to two decimals;
* ``pdfX``, ``pdfY``, ``pdfWidth``, ``pdfHeight`` in unrounded PDF points,
  anchored at the bottom-left corner.

On import the point quadruple is authoritative. Files that only carry the
millimetre values are converted back into points.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import math
from pathlib import Path
from typing import Any

from fieldmapper.geometry.transform import (
    DocumentRect,
    PhysicalRect,
    document_to_physical,
    physical_to_document,
)
from fieldmapper.model.field import (
    FieldValueError,
    FormField,
    create_field,
    default_field_name,
    to_dict,
)
from fieldmapper.state.registry import FieldRegistry, new_field_id

logger = logging.getLogger(__name__)

DOCUMENT_KEYS = ("pdfX", "pdfY", "pdfWidth", "pdfHeight")
PHYSICAL_KEYS = ("x", "y", "width", "height")


class MalformedImportError(RuntimeError):
    """Raised when an exchange payload does not have the expected shape."""


def export_field(item: FormField) -> dict[str, Any]:
    physical = document_to_physical(item.rect)
    record = to_dict(item)
    record.update(
        {
            "x": physical.x,
            "y": physical.y,
            "width": physical.width,
            "height": physical.height,
            "pdfX": item.x,
            "pdfY": item.y,
            "pdfWidth": item.width,
            "pdfHeight": item.height,
        }
    )
    return record


def export_fields(registry: FieldRegistry, document_name: str | None) -> dict[str, Any]:
    return {
        "pdfName": document_name,
        "fields": [export_field(item) for item in registry.list()],
    }


def decode_fields(payload: Any) -> list[FormField]:
    """Validate a whole payload and build its field snapshots.

    Nothing is returned unless every entry is valid.
    """
    if not isinstance(payload, Mapping):
        raise MalformedImportError("Import payload must be a JSON object")
    entries = payload.get("fields")
    if not isinstance(entries, list):
        raise MalformedImportError("Import payload must contain a 'fields' list")

    decoded: list[FormField] = []
    seen_ids: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise MalformedImportError(f"Field #{index + 1} is not an object")

        rect = _entry_rect(entry, index)
        field_id = entry.get("id")
        if not isinstance(field_id, str) or not field_id or field_id in seen_ids:
            field_id = new_field_id()
            while field_id in seen_ids:
                field_id = new_field_id()
        seen_ids.add(field_id)

        attributes = {
            "name": entry.get("name", default_field_name(index + 1)),
            "type": entry.get("type"),
            "page": entry.get("page"),
            "x": rect.x,
            "y": rect.y,
            "width": rect.width,
            "height": rect.height,
            "properties": entry.get("properties"),
        }
        try:
            decoded.append(create_field(attributes, field_id))
        except FieldValueError as exc:
            raise MalformedImportError(f"Field #{index + 1}: {exc}") from exc

    return decoded


def import_fields(registry: FieldRegistry, payload: Any) -> int:
    fields = decode_fields(payload)
    registry.replace_all(fields)
    logger.info("Imported %d field(s)", len(fields))
    return len(fields)


def save_json(path: str | Path, payload: Mapping[str, Any]) -> None:
    target = Path(path)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
        handle.write("\n")
    logger.info("Wrote %d field(s) to %s", len(payload.get("fields", [])), target)


def load_json(path: str | Path) -> Any:
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedImportError(f"Invalid JSON file: {source}") from exc


def _entry_rect(entry: Mapping[str, Any], index: int) -> DocumentRect:
    if all(entry.get(key) is not None for key in DOCUMENT_KEYS):
        x, y, width, height = (_number(entry, key, index) for key in DOCUMENT_KEYS)
        return DocumentRect(x=x, y=y, width=width, height=height)

    if all(entry.get(key) is not None for key in PHYSICAL_KEYS):
        x, y, width, height = (_number(entry, key, index) for key in PHYSICAL_KEYS)
        return physical_to_document(PhysicalRect(x=x, y=y, width=width, height=height))

    raise MalformedImportError(f"Field #{index + 1} has no complete geometry")


def _number(entry: Mapping[str, Any], key: str, index: int) -> float:
    value = entry[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise MalformedImportError(f"Field #{index + 1} has a non-numeric '{key}': {value!r}")
    return float(value)
