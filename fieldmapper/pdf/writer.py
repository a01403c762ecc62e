"""Fillable PDF writer using reportlab overlay widgets + pypdf."""

from __future__ import annotations

from collections import defaultdict
from io import BytesIO
import logging
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from pypdf.generic import ArrayObject, BooleanObject, DictionaryObject, NameObject, NumberObject
from reportlab.lib import colors
from reportlab.pdfgen import canvas

from fieldmapper.model.field import Alignment, FieldType, FontFamily, FormField

logger = logging.getLogger(__name__)

DATE_MAX_LENGTH = 10

QUADDING = {
    Alignment.LEFT.value: 0,
    Alignment.CENTER.value: 1,
    Alignment.RIGHT.value: 2,
}


class PdfWriteError(RuntimeError):
    """Raised when output generation fails."""


def write_pdf_with_fields(
    source_path: str | Path,
    output_path: str | Path,
    fields: list[FormField],
) -> None:
    source = Path(source_path)
    output = Path(output_path)

    try:
        reader = PdfReader(str(source))
        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)

        _strip_existing_form_widgets(writer)

        placeable = [item for item in fields if item.page <= len(reader.pages)]
        if len(placeable) < len(fields):
            logger.warning(
                "Skipped %d field(s) placed beyond page %d",
                len(fields) - len(placeable),
                len(reader.pages),
            )

        if placeable:
            widget_names = unique_widget_names(placeable)
            overlay_pdf = _build_overlay_pdf(reader, placeable, widget_names)
            overlay_reader = PdfReader(overlay_pdf)
            pages_with_fields = {item.page - 1 for item in placeable}
            alignments = {
                widget_names[item.id]: item.properties.get("alignment", Alignment.LEFT.value)
                for item in placeable
                if item.type is FieldType.TEXT
            }
            _transfer_widget_annotations(overlay_reader, writer, pages_with_fields, alignments)

        with output.open("wb") as handle:
            writer.write(handle)
    except Exception as exc:
        raise PdfWriteError(f"Failed to write output PDF: {output}") from exc

    logger.info("Wrote %d field(s) to %s", len(fields), output)


def unique_widget_names(fields: list[FormField]) -> dict[str, str]:
    """Map field ids to AcroForm names, suffixing repeats so widgets stay separate."""
    names: dict[str, str] = {}
    used: set[str] = set()
    for item in fields:
        base = item.name.strip() or item.type.value
        candidate = base
        counter = 2
        while candidate in used:
            candidate = f"{base}_{counter}"
            counter += 1
        used.add(candidate)
        names[item.id] = candidate
    return names


def _is_widget(annot_ref) -> bool:
    return annot_ref.get_object().get("/Subtype") == "/Widget"


def _strip_existing_form_widgets(writer: PdfWriter) -> None:
    for page in writer.pages:
        annots = page.get("/Annots")
        if annots is None:
            continue

        kept = ArrayObject(ref for ref in annots.get_object() if not _is_widget(ref))
        if kept:
            page[NameObject("/Annots")] = kept
        else:
            del page["/Annots"]

    writer._root_object.pop("/AcroForm", None)


def _hide_widget_chrome(widget: DictionaryObject) -> None:
    widget[NameObject("/Border")] = ArrayObject([NumberObject(0), NumberObject(0), NumberObject(0)])
    appearance = widget.get("/MK")
    if appearance is not None:
        appearance.get_object().pop("/BG", None)


def _transfer_widget_annotations(
    overlay_reader: PdfReader,
    writer: PdfWriter,
    pages_with_fields: set[int],
    alignments: dict[str, str],
) -> None:
    field_refs = ArrayObject()

    for page_index in sorted(pages_with_fields):
        target_page = writer.pages[page_index]
        existing = target_page.get("/Annots")
        target_annots = ArrayObject() if existing is None else existing.get_object()

        overlay_annots = overlay_reader.pages[page_index].get("/Annots") or []
        for widget_ref in (ref for ref in overlay_annots if _is_widget(ref)):
            cloned_ref = widget_ref.get_object().clone(writer)
            widget = cloned_ref.get_object()
            if target_page.indirect_reference is not None:
                widget[NameObject("/P")] = target_page.indirect_reference
            _hide_widget_chrome(widget)

            alignment = alignments.get(str(widget.get("/T") or ""))
            if alignment is not None:
                widget[NameObject("/Q")] = NumberObject(QUADDING[alignment])

            target_annots.append(cloned_ref)
            field_refs.append(cloned_ref)

        target_page[NameObject("/Annots")] = target_annots

    acroform = DictionaryObject(
        {
            NameObject("/Fields"): field_refs,
            NameObject("/NeedAppearances"): BooleanObject(True),
        }
    )
    writer._root_object[NameObject("/AcroForm")] = writer._add_object(acroform)


def _build_overlay_pdf(
    reader: PdfReader,
    fields: list[FormField],
    widget_names: dict[str, str],
) -> BytesIO:
    grouped: dict[int, list[FormField]] = defaultdict(list)
    for item in fields:
        grouped[item.page - 1].append(item)

    buffer = BytesIO()

    first_page = reader.pages[0]
    base_w = float(first_page.mediabox.width)
    base_h = float(first_page.mediabox.height)
    report = canvas.Canvas(buffer, pagesize=(base_w, base_h))

    for page_index, page in enumerate(reader.pages):
        width = float(page.mediabox.width)
        height = float(page.mediabox.height)
        report.setPageSize((width, height))

        for item in grouped.get(page_index, []):
            name = widget_names[item.id]
            if item.type is FieldType.CHECKBOX:
                report.acroForm.checkbox(
                    name=name,
                    x=item.x,
                    y=item.y,
                    size=min(item.width, item.height),
                    checked=False,
                    buttonStyle="check",
                    borderWidth=0,
                    fillColor=None,
                    borderColor=None,
                )
            elif item.type is FieldType.DATE:
                report.acroForm.textfield(
                    name=name,
                    tooltip="Date",
                    x=item.x,
                    y=item.y,
                    width=item.width,
                    height=item.height,
                    maxlen=DATE_MAX_LENGTH,
                    forceBorder=False,
                    borderWidth=0,
                    fillColor=None,
                    borderColor=None,
                    textColor=colors.black,
                )
            else:
                report.acroForm.textfield(
                    name=name,
                    x=item.x,
                    y=item.y,
                    width=item.width,
                    height=item.height,
                    fontName=item.properties.get("fontFamily", FontFamily.HELVETICA.value),
                    fontSize=item.properties.get("fontSize", 12),
                    forceBorder=False,
                    borderWidth=0,
                    fillColor=None,
                    borderColor=None,
                    textColor=colors.black,
                )

        report.showPage()

    report.save()
    buffer.seek(0)
    return buffer
