from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QIcon, QPixmap
from PySide6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from core.models import ImageHandle

THUMB_SIDE = 100


class ReviewDialog(QDialog):
    """Grid of staged deletions with Restore and Delete All Permanently."""

    def __init__(
        self,
        staged: list[ImageHandle],
        render: Callable[[ImageHandle, int], object],
        restore: Callable[[ImageHandle], bool],
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Review Deleted Photos")
        self._restore = restore

        root = QVBoxLayout(self)
        self._summary = QLabel()
        root.addWidget(self._summary)

        self._list = QListWidget()
        self._list.setViewMode(QListWidget.ViewMode.IconMode)
        self._list.setIconSize(QSize(THUMB_SIDE, THUMB_SIDE))
        self._list.setResizeMode(QListWidget.ResizeMode.Adjust)
        for image in staged:
            item = QListWidgetItem(Path(image.identifier).name)
            item.setData(Qt.ItemDataRole.UserRole, image)
            item.setIcon(QIcon(QPixmap.fromImage(render(image, THUMB_SIDE))))
            self._list.addItem(item)
        root.addWidget(self._list)

        btns = QHBoxLayout()
        self.btn_restore = QPushButton("Restore")
        self.btn_delete = QPushButton("Delete All Permanently")
        self.btn_delete.setStyleSheet("color: #b00020; font-weight: bold;")
        self.btn_close = QPushButton("Close")
        btns.addWidget(self.btn_restore)
        btns.addStretch(1)
        btns.addWidget(self.btn_delete)
        btns.addWidget(self.btn_close)
        root.addLayout(btns)

        self.btn_restore.clicked.connect(self._on_restore)
        self.btn_delete.clicked.connect(self._on_delete_all)
        self.btn_close.clicked.connect(self.reject)
        self._refresh()

    def _refresh(self) -> None:
        count = self._list.count()
        self._summary.setText(f"{count} photo(s) marked for deletion")
        self.btn_delete.setEnabled(count > 0)
        self.btn_restore.setEnabled(count > 0)

    def _on_restore(self) -> None:
        for item in self._list.selectedItems():
            self._restore(item.data(Qt.ItemDataRole.UserRole))
            self._list.takeItem(self._list.row(item))
        self._refresh()

    def _on_delete_all(self) -> None:
        answer = QMessageBox.question(
            self,
            "Permanently Delete All?",
            "This action cannot be undone.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.Cancel,
        )
        if answer == QMessageBox.StandardButton.Yes:
            self.accept()
