"""Main triage window.

Left arrow deletes, right arrow keeps, Ctrl+Z undoes the last swipe. Once a
category is exhausted the review dialog opens; confirmed deletions run on the
thread pool and report back through `FlushTaskRunner` signals.
"""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence, QPixmap, QShortcut
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.triage_vm import TriageVM
from app.views.dialogs.review_dialog import ReviewDialog
from app.views.flush_task import FlushTaskRunner
from core.errors import DeletionInProgress, InvalidCategory
from core.models import Category, CategoryKind, Decision


class MainWindow(QMainWindow):
    """Single-image keep/delete window."""

    def __init__(self, vm: TriageVM, image_service: Any, settings: Any | None = None) -> None:
        super().__init__()
        self._vm = vm
        self._img = image_service
        self._preview_side = 1600
        if settings is not None:
            self._preview_side = settings.get_int("preview.max_side", 1600)
        self._flush = FlushTaskRunner(vm.begin_deletion, vm.finish_deletion)
        self._flush.signals.finished.connect(self._on_flush_finished)
        self._flush.signals.failed.connect(self._on_flush_failed)

        self.setWindowTitle("Photo Triage")
        self._setup_ui()
        self._setup_shortcuts()
        self._reload_menu()
        self.resize(900, 800)
        self.statusBar().showMessage("Ready", 3000)

    def _setup_ui(self) -> None:
        central = QWidget()
        root = QVBoxLayout(central)

        top = QHBoxLayout()
        self.category_box = QComboBox()
        self.month_box = QComboBox()
        self.month_box.setVisible(False)
        self.progress = QLabel()
        top.addWidget(self.category_box, 1)
        top.addWidget(self.month_box, 1)
        top.addWidget(self.progress)
        root.addLayout(top)

        self.image_label = QLabel("Select a category")
        self.image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.image_label.setMinimumSize(400, 400)
        root.addWidget(self.image_label, 1)

        bottom = QHBoxLayout()
        self.btn_delete = QPushButton("Delete")
        self.deleted_label = QLabel("0")
        self.btn_undo = QPushButton("Undo")
        self.kept_label = QLabel("0")
        self.btn_keep = QPushButton("Keep")
        self.btn_review = QPushButton("Review")
        for w in (self.btn_delete, self.deleted_label, self.btn_undo):
            bottom.addWidget(w)
        bottom.addStretch(1)
        for w in (self.btn_review, self.kept_label, self.btn_keep):
            bottom.addWidget(w)
        root.addLayout(bottom)
        self.setCentralWidget(central)

        self.category_box.activated.connect(self._on_category_chosen)
        self.month_box.activated.connect(self._on_month_chosen)
        self.btn_delete.clicked.connect(lambda: self._swipe(Decision.DELETE))
        self.btn_keep.clicked.connect(lambda: self._swipe(Decision.KEEP))
        self.btn_undo.clicked.connect(self._undo)
        self.btn_review.clicked.connect(self._open_review)

    def _setup_shortcuts(self) -> None:
        bindings = [
            (QKeySequence(Qt.Key.Key_Left), lambda: self._swipe(Decision.DELETE)),
            (QKeySequence(Qt.Key.Key_Right), lambda: self._swipe(Decision.KEEP)),
            (QKeySequence(QKeySequence.StandardKey.Undo), self._undo),
        ]
        self._shortcuts = []
        for seq, slot in bindings:
            shortcut = QShortcut(seq, self)
            shortcut.activated.connect(slot)
            self._shortcuts.append(shortcut)

    def _reload_menu(self) -> None:
        self.category_box.clear()
        self.category_box.addItem("Select a Category", None)
        for entry in self._vm.menu_entries():
            mark = " ✓" if entry.completed else ""
            self.category_box.addItem(entry.label + mark, entry.category)

    def _on_category_chosen(self, index: int) -> None:
        category = self.category_box.itemData(index)
        if category is None:
            self._vm.back()
            self.month_box.setVisible(False)
            self._refresh()
            return
        if category.kind is CategoryKind.YEAR:
            self.month_box.clear()
            self.month_box.addItem(f"Select a Month for {category.year}", None)
            for entry in self._vm.month_entries(category.year):
                mark = " ✓" if entry.completed else ""
                self.month_box.addItem(entry.label + mark, entry.category)
            self.month_box.setVisible(True)
        else:
            self.month_box.setVisible(False)
        self._open(category)

    def _on_month_chosen(self, index: int) -> None:
        category = self.month_box.itemData(index)
        if category is not None:
            self._open(category)

    def _open(self, category: Category) -> None:
        try:
            self._vm.open(category)
        except InvalidCategory as ex:
            QMessageBox.warning(self, "Invalid category", str(ex))
            return
        self._refresh()
        if self._vm.review_requested:
            self._open_review()

    def _swipe(self, decision: Decision) -> None:
        self._vm.swipe(decision)
        self._refresh()
        if self._vm.review_requested:
            self._open_review()

    def _undo(self) -> None:
        entry = self._vm.undo()
        if entry is not None:
            self.statusBar().showMessage(f"Undid {entry.decision.value}", 2000)
        self._refresh()

    def _open_review(self) -> None:
        category = self._vm.category
        if category is None or self._vm.busy:
            return
        staged = self._vm.staged()
        if not staged:
            self._vm.review_requested = False
            self._reload_menu()
            return
        dlg = ReviewDialog(staged, self._img.render, self._vm.restore, parent=self)
        if dlg.exec() == QDialog.DialogCode.Accepted:
            try:
                if self._flush.start(category):
                    self.statusBar().showMessage("Deleting...")
            except DeletionInProgress as ex:
                logger.info("Flush not started: {}", ex)
        self._vm.review_requested = False
        self._reload_menu()
        self._refresh()

    def _on_flush_finished(self, category: Category, count: int) -> None:
        logger.info("Flush finished for {}: {}", category.key, count)
        self.statusBar().showMessage(f"Deleted {count} photo(s) from {category.label}", 5000)
        self._reload_menu()
        self._refresh()

    def _on_flush_failed(self, category: Category, detail: str) -> None:
        QMessageBox.critical(self, "Delete failed", f"{category.label}: {detail}")
        self._refresh()

    def _refresh(self) -> None:
        busy = self._vm.busy
        session = self._vm.session
        kept, deleted = self._vm.counters()
        self.kept_label.setText(str(kept))
        self.deleted_label.setText(str(deleted))
        self.progress.setText(self._vm.progress_text())
        self.btn_undo.setEnabled(self._vm.can_undo())
        self.btn_review.setEnabled(bool(self._vm.staged()) and not busy)
        can_swipe = session is not None and not session.is_exhausted and not busy
        self.btn_keep.setEnabled(can_swipe)
        self.btn_delete.setEnabled(can_swipe)

        image = self._vm.current_image()
        if image is None:
            self.image_label.setPixmap(QPixmap())
            self.image_label.setText("All done" if session is not None else "Select a category")
            return
        qimg = self._img.render(image, self._preview_side)
        pix = QPixmap.fromImage(qimg).scaled(
            self.image_label.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        self.image_label.setPixmap(pix)
