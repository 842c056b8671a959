from __future__ import annotations

import argparse
from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.triage_vm import TriageVM
from app.views.main_window import MainWindow
from core.services.review_service import ReviewManager
from core.services.triage_engine import TriageEngine
from infrastructure.delete_service import DeleteService
from infrastructure.image_service import ImageService
from infrastructure.image_source import FolderImageSource
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def build_vm(settings: JsonSettings, root: str | None = None) -> TriageVM:
    """Wire the image source, engine, review manager and deletion backend."""
    source = FolderImageSource.from_settings(settings, root)
    engine = TriageEngine(source)
    review = ReviewManager(engine.store, DeleteService(settings.get("delete.log_dir") or None))
    return TriageVM(engine, review, source)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Swipe through photos and keep or delete them.")
    parser.add_argument("root", nargs="?", help="Folder to triage (overrides settings.json)")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    args = parser.parse_args(argv)

    settings = JsonSettings(args.settings)
    init_logging(settings.get("logging.dir") or None, settings.get("logging.level", "INFO"))
    logger.info("Starting photo triage, settings={}", settings.path)

    app = QApplication(sys.argv[:1])
    vm = build_vm(settings, args.root)
    img = ImageService(settings)
    win = MainWindow(vm=vm, image_service=img, settings=settings)
    win.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
