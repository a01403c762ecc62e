"""Document model for the source PDF and its working-copy handle."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

import fitz

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PdfDocument:
    path: Path
    working_path: Path
    handle: fitz.Document

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def page_count(self) -> int:
        return self.handle.page_count

    def page_size(self, page: int) -> tuple[float, float]:
        """Width and height in points of the 1-based ``page``."""
        rect = self.handle.load_page(page - 1).rect
        return float(rect.width), float(rect.height)

    def close_handle(self) -> None:
        if not self.handle.is_closed:
            self.handle.close()

    def reopen_handle(self) -> None:
        if self.handle.is_closed:
            self.handle = fitz.open(self.working_path)

    def close(self) -> None:
        self.close_handle()
        if self.working_path != self.path and self.working_path.exists():
            try:
                os.remove(self.working_path)
            except OSError:
                logger.warning("Could not remove working copy %s", self.working_path)
