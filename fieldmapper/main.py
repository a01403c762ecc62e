"""Application entry point."""

from __future__ import annotations

import argparse
import logging
import sys

from PySide6.QtWidgets import QApplication

from fieldmapper.ui.main_window import MainWindow


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fieldmapper",
        description="Place form fields on PDF pages and export their coordinates.",
    )
    parser.add_argument("pdf", nargs="?", help="PDF file to open on startup")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity (default: WARNING)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("PDF Coordinate Mapper")

    window = MainWindow()
    window.show()
    if args.pdf:
        window.open_pdf(args.pdf)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
