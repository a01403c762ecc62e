"""Seed placed fields from AcroForm widgets already present in a PDF."""

from __future__ import annotations

import logging
from pathlib import Path

from pypdf import PdfReader

from fieldmapper.model.field import (
    Alignment,
    FieldType,
    FormField,
    create_field,
    default_field_name,
    default_properties,
)
from fieldmapper.pdf.writer import DATE_MAX_LENGTH
from fieldmapper.state.registry import new_field_id

logger = logging.getLogger(__name__)

ALIGNMENT_BY_QUADDING = {
    0: Alignment.LEFT.value,
    1: Alignment.CENTER.value,
    2: Alignment.RIGHT.value,
}


class PdfImportError(RuntimeError):
    """Raised when existing form fields cannot be imported."""


def import_pdf_fields(source_path: str | Path) -> list[FormField]:
    source = Path(source_path)
    imported: list[FormField] = []
    skipped = 0

    try:
        reader = PdfReader(str(source))
        for page_index, page in enumerate(reader.pages):
            annots = page.get("/Annots")
            if annots is None:
                continue
            for annot_ref in annots.get_object():
                annot = annot_ref.get_object()
                if annot.get("/Subtype") != "/Widget":
                    continue

                parent = annot.get("/Parent")
                parent_obj = parent.get_object() if parent is not None else None

                pdf_type = _inherited(annot, parent_obj, "/FT")
                rect = annot.get("/Rect")
                if rect is not None:
                    rect = rect.get_object()
                if pdf_type not in ("/Tx", "/Btn") or rect is None:
                    continue

                llx, lly, urx, ury = (float(value) for value in rect)
                width = abs(urx - llx)
                height = abs(ury - lly)
                if width <= 0.0 or height <= 0.0:
                    skipped += 1
                    continue

                if pdf_type == "/Tx":
                    field_type = _text_field_type(
                        _inherited(annot, parent_obj, "/MaxLen"),
                        _inherited(annot, parent_obj, "/TU"),
                    )
                else:
                    field_type = FieldType.CHECKBOX

                properties = default_properties(field_type)
                if field_type is FieldType.TEXT:
                    quadding = _inherited(annot, parent_obj, "/Q")
                    properties["alignment"] = ALIGNMENT_BY_QUADDING.get(
                        int(quadding or 0), Alignment.LEFT.value
                    )

                name = str(_inherited(annot, parent_obj, "/T") or "")
                if not name:
                    name = default_field_name(len(imported) + 1)
                imported.append(
                    create_field(
                        {
                            "name": name,
                            "type": field_type,
                            "page": page_index + 1,
                            "x": min(llx, urx),
                            "y": min(lly, ury),
                            "width": width,
                            "height": height,
                            "properties": properties,
                        },
                        new_field_id(),
                    )
                )
    except Exception as exc:
        raise PdfImportError(f"Failed to import form fields from: {source}") from exc

    if skipped:
        logger.info("Skipped %d zero-area widget(s) in %s", skipped, source)
    logger.info("Imported %d existing form field(s) from %s", len(imported), source)
    return imported


def _text_field_type(max_length, tooltip) -> FieldType:
    if max_length is not None and int(max_length) == DATE_MAX_LENGTH and str(tooltip or "") == "Date":
        return FieldType.DATE
    return FieldType.TEXT


def _inherited(annot, parent_obj, key: str):
    value = annot.get(key)
    if value is None and parent_obj is not None:
        value = parent_obj.get(key)
    return value
