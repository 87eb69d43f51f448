"""Applies the system, light or dark color scheme to the running application."""

from __future__ import annotations

import logging
from typing import Any

from PySide6.QtGui import QColor, QPalette

__all__ = ["apply_theme"]

LOGGER = logging.getLogger(__name__)

_DARK_COLORS = {
    QPalette.ColorRole.Window: "#2b2b2b",
    QPalette.ColorRole.WindowText: "#dcdcdc",
    QPalette.ColorRole.Base: "#1e1e1e",
    QPalette.ColorRole.AlternateBase: "#2b2b2b",
    QPalette.ColorRole.ToolTipBase: "#3c3f41",
    QPalette.ColorRole.ToolTipText: "#dcdcdc",
    QPalette.ColorRole.Text: "#dcdcdc",
    QPalette.ColorRole.Button: "#3c3f41",
    QPalette.ColorRole.ButtonText: "#dcdcdc",
    QPalette.ColorRole.BrightText: "#ff5555",
    QPalette.ColorRole.Highlight: "#c0392b",
    QPalette.ColorRole.HighlightedText: "#ffffff",
    QPalette.ColorRole.Link: "#e06c75",
}


def apply_theme(app: Any, theme: str, *, system_style: str | None = None) -> None:
    """Switch ``app`` to ``theme``; "system" restores the platform style and palette."""

    if theme == "system":
        if system_style:
            app.setStyle(system_style)
        app.setPalette(app.style().standardPalette())
        LOGGER.debug("Applied system theme (style=%s)", system_style)
        return

    app.setStyle("Fusion")
    palette = app.style().standardPalette()
    if theme == "dark":
        for role, color in _DARK_COLORS.items():
            palette.setColor(role, QColor(color))
        palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Text, QColor("#7f7f7f"))
        palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.ButtonText, QColor("#7f7f7f"))
    app.setPalette(palette)
    LOGGER.debug("Applied %s theme", theme)
