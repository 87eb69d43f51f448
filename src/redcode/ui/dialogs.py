"""File pickers and the unsaved-changes prompt."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from PySide6.QtWidgets import QFileDialog, QMessageBox, QWidget

from ..editor.document_model import Document
from ..editor.session import SaveTargetPicker
from .controller import CloseDecision

__all__ = [
    "DEFAULT_FILE_FILTER",
    "CloseDecision",
    "make_save_target_picker",
    "open_file_dialog",
    "prompt_unsaved_changes",
    "save_file_dialog",
]

DEFAULT_FILE_FILTER = ";;".join(
    (
        "All files (*)",
        "Text files (*.txt)",
        "Python (*.py)",
        "JavaScript (*.js)",
        "TypeScript (*.ts *.tsx)",
        "HTML (*.html *.htm)",
        "CSS (*.css *.scss *.sass *.less)",
    )
)


def open_file_dialog(
    parent: QWidget | None = None,
    *,
    caption: str = "Open File",
    start_dir: Path | str | None = None,
    file_filter: str | None = None,
) -> Path | None:
    path, _ = QFileDialog.getOpenFileName(
        parent, caption, str(start_dir or ""), file_filter or DEFAULT_FILE_FILTER
    )
    return Path(path) if path else None


def save_file_dialog(
    parent: QWidget | None = None,
    *,
    caption: str = "Save File As",
    start_dir: Path | str | None = None,
    suggested_name: str | None = None,
    file_filter: str | None = None,
) -> Path | None:
    """Prompt for a save target; ``None`` means the user dismissed the dialog."""

    initial = Path(start_dir) if start_dir else Path.home()
    if suggested_name:
        initial = initial / suggested_name
    path, _ = QFileDialog.getSaveFileName(
        parent, caption, str(initial), file_filter or DEFAULT_FILE_FILTER
    )
    return Path(path) if path else None


def prompt_unsaved_changes(parent: QWidget | None, display_name: str) -> CloseDecision:
    """Ask whether to save, discard or keep a document with unsaved changes."""

    box = QMessageBox(parent)
    box.setIcon(QMessageBox.Icon.Warning)
    box.setWindowTitle("Unsaved Changes")
    box.setText(f"Do you want to save the changes you made to {display_name}?")
    box.setInformativeText("Your changes will be lost if you don't save them.")
    box.setStandardButtons(
        QMessageBox.StandardButton.Save
        | QMessageBox.StandardButton.Discard
        | QMessageBox.StandardButton.Cancel
    )
    box.setDefaultButton(QMessageBox.StandardButton.Save)
    box.exec()
    answer = box.standardButton(box.clickedButton())
    if answer == QMessageBox.StandardButton.Save:
        return CloseDecision.SAVE
    if answer == QMessageBox.StandardButton.Discard:
        return CloseDecision.DISCARD
    return CloseDecision.CANCEL


def make_save_target_picker(
    parent_provider: Callable[[], QWidget | None],
    start_dir_provider: Callable[[], Path | None] = lambda: None,
) -> SaveTargetPicker:
    """Build the session's "save as" prompt around :func:`save_file_dialog`."""

    async def _pick(document: Document) -> str | None:
        suggested = None if document.persisted else f"{document.display_name}.txt"
        path = save_file_dialog(
            parent_provider(),
            start_dir=start_dir_provider(),
            suggested_name=suggested,
        )
        return str(path) if path is not None else None

    return _pick
