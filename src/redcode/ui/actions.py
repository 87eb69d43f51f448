"""Declarative menu actions shared by the Qt window and headless tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple


@dataclass(slots=True)
class WindowAction:
    """A high-level command exposed through the menu bar."""

    name: str
    text: str
    shortcut: str | None = None
    status_tip: str | None = None
    callback: Callable[[], Any] | None = None
    checkable: bool = False

    def trigger(self) -> None:
        if self.callback is not None:
            self.callback()


@dataclass(slots=True)
class MenuSpec:
    name: str
    title: str
    actions: tuple[str, ...]
    submenus: tuple["MenuSpec", ...] = ()


@dataclass(frozen=True, slots=True)
class _ActionDefinition:
    name: str
    text: str
    shortcut: Optional[str]
    status_tip: Optional[str]
    checkable: bool = False


ACTION_DEFINITIONS: Tuple[_ActionDefinition, ...] = (
    _ActionDefinition("file_new", "New", "Ctrl+N", "Create a new untitled document"),
    _ActionDefinition("file_open", "Open…", "Ctrl+O", "Open a file"),
    _ActionDefinition("file_save", "Save", "Ctrl+S", "Save the current document"),
    _ActionDefinition("file_save_as", "Save As…", "Ctrl+Shift+S", "Save the document to a new location"),
    _ActionDefinition("file_close_tab", "Close Tab", "Ctrl+W", "Close the active tab"),
    _ActionDefinition("file_quit", "Quit", "Ctrl+Q", "Quit RedCode"),
    _ActionDefinition("theme_system", "System", None, "Follow the system color scheme", checkable=True),
    _ActionDefinition("theme_light", "Light", None, "Use the light theme", checkable=True),
    _ActionDefinition("theme_dark", "Dark", None, "Use the dark theme", checkable=True),
)

DEFAULT_MENUS: Tuple[MenuSpec, ...] = (
    MenuSpec(
        name="file",
        title="&File",
        actions=("file_new", "file_open", "file_save", "file_save_as", "file_close_tab", "file_quit"),
    ),
    MenuSpec(
        name="view",
        title="&View",
        actions=(),
        submenus=(MenuSpec(name="theme", title="&Theme", actions=("theme_system", "theme_light", "theme_dark")),),
    ),
)


def build_actions(callbacks: Mapping[str, Callable[[], Any]]) -> Dict[str, WindowAction]:
    """Bind every known action to its callback; a missing callback is an error."""

    actions: Dict[str, WindowAction] = {}
    for definition in ACTION_DEFINITIONS:
        callback = callbacks.get(definition.name)
        if callback is None:
            raise KeyError(f"Missing callback for action '{definition.name}'")
        actions[definition.name] = WindowAction(
            name=definition.name,
            text=definition.text,
            shortcut=definition.shortcut,
            status_tip=definition.status_tip,
            callback=callback,
            checkable=definition.checkable,
        )
    return actions


__all__ = ["ACTION_DEFINITIONS", "DEFAULT_MENUS", "MenuSpec", "WindowAction", "build_actions"]
