"""PDF loading helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
import tempfile

import fitz

from fieldmapper.model.document import PdfDocument

logger = logging.getLogger(__name__)


class PdfLoadError(RuntimeError):
    """Raised when a PDF cannot be opened."""


def load_pdf(path: str | Path) -> PdfDocument:
    """Open ``path`` through a temporary working copy.

    The writer saves into the working copy, so the user's file is only
    touched when they pick it as the output path.
    """
    source_path = Path(path)
    if not source_path.is_file():
        raise PdfLoadError(f"File not found: {source_path}")

    fd, temp_path = tempfile.mkstemp(prefix=".fieldmapper_", suffix=".pdf")
    os.close(fd)
    try:
        shutil.copy2(source_path, temp_path)
        handle = fitz.open(temp_path)
    except Exception as exc:
        os.remove(temp_path)
        raise PdfLoadError(f"Failed to open PDF: {source_path}") from exc

    if handle.page_count == 0:
        handle.close()
        os.remove(temp_path)
        raise PdfLoadError(f"PDF has no pages: {source_path}")

    logger.info("Loaded %s (%d page(s))", source_path, handle.page_count)
    return PdfDocument(path=source_path, working_path=Path(temp_path), handle=handle)
