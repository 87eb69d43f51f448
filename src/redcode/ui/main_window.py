"""Main window: tab strip, editor, status bar and menus around one session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Coroutine, Dict

from PySide6.QtCore import QByteArray
from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QApplication, QMainWindow, QMenu, QTabBar, QVBoxLayout, QWidget

from ..editor.document_model import Document, TabSummary
from ..editor.session import SessionManager
from ..editor.widget_link import EditorLink
from ..services.settings import Settings
from ..services.workspace_state import WorkspaceStateService
from .actions import DEFAULT_MENUS, MenuSpec, WindowAction, build_actions
from .controller import CloseDecision, WindowController
from .dialogs import make_save_target_picker, open_file_dialog, prompt_unsaved_changes
from .editor_view import EditorView
from .status_bar import StatusBar
from .theme import apply_theme

__all__ = ["MainWindow", "WindowContext"]

LOGGER = logging.getLogger(__name__)

WINDOW_TITLE = "RedCode"


@dataclass(slots=True)
class WindowContext:
    """Collaborators the window is built around."""

    session: SessionManager
    settings: Settings
    workspace: WorkspaceStateService
    system_style: str | None = None


class MainWindow(QMainWindow):
    """Qt shell; all document logic lives in :class:`WindowController`."""

    def __init__(self, context: WindowContext) -> None:
        super().__init__()
        self._context = context
        self._session = context.session
        self._quit_confirmed = False
        self._quit_pending = False
        self._syncing_tabs = False
        self._tab_ids: list[str] = []
        self._tasks: set[asyncio.Future[Any]] = set()

        self._tab_bar = QTabBar()
        self._tab_bar.setObjectName("rc-tab-bar")
        self._tab_bar.setTabsClosable(True)
        self._tab_bar.setDocumentMode(True)
        self._tab_bar.setExpanding(False)
        self._editor = EditorView()
        self._editor.apply_settings(context.settings)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._tab_bar)
        layout.addWidget(self._editor)
        self.setCentralWidget(central)

        self._status_bar = StatusBar(self)
        qt_status_bar = self._status_bar.widget()
        if qt_status_bar is not None:
            self.setStatusBar(qt_status_bar)

        save_as_picker = make_save_target_picker(lambda: self, self._start_dir)
        self._session.set_save_target_picker(save_as_picker)
        self._controller = WindowController(
            self._session,
            self._status_bar,
            settings=context.settings,
            workspace=context.workspace,
            close_prompt=self._prompt_close,
            open_picker=self._pick_open_path,
            save_as_picker=save_as_picker,
        )
        self._link = EditorLink(self._session, self._editor)

        self._actions = build_actions(self._action_callbacks())
        self._qt_actions = self._install_menus(self._actions)
        self._sync_theme_actions(context.settings.theme)

        self._tab_bar.currentChanged.connect(self._on_tab_selected)
        self._tab_bar.tabCloseRequested.connect(self._on_tab_close_requested)
        self._controller.add_tabs_listener(self._render_tabs)
        self._controller.add_theme_listener(self._on_theme_changed)

        self._restore_geometry(context.settings.window_geometry)
        self.setWindowTitle(WINDOW_TITLE)

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    @property
    def controller(self) -> WindowController:
        return self._controller

    @property
    def editor(self) -> EditorView:
        return self._editor

    def schedule(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Future[Any]:
        """Run ``coro`` on the qasync loop, logging anything it raises."""

        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_finished)
        return task

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------
    def closeEvent(self, event: Any) -> None:  # noqa: N802 - Qt naming
        """Resolve unsaved documents before letting the window close."""

        if self._quit_confirmed:
            self._context.settings.window_geometry = bytes(self.saveGeometry().toBase64()).decode("ascii")
            self._context.workspace.persist()
            super().closeEvent(event)
            event.accept()
            return

        event.ignore()
        if not self._quit_pending:
            self._quit_pending = True
            self.schedule(self._confirm_and_close())

    async def _confirm_and_close(self) -> None:
        try:
            confirmed = await self._controller.confirm_quit()
        finally:
            self._quit_pending = False
        if confirmed:
            self._quit_confirmed = True
            self.close()

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------
    def _action_callbacks(self) -> Dict[str, Any]:
        controller = self._controller
        return {
            "file_new": controller.new_document,
            "file_open": lambda: self.schedule(controller.open_interactive()),
            "file_save": lambda: self.schedule(controller.save_active()),
            "file_save_as": lambda: self.schedule(controller.save_active_as()),
            "file_close_tab": lambda: self.schedule(controller.close_active()),
            "file_quit": self.close,
            "theme_system": lambda: controller.set_theme("system"),
            "theme_light": lambda: controller.set_theme("light"),
            "theme_dark": lambda: controller.set_theme("dark"),
        }

    def _install_menus(self, actions: Dict[str, WindowAction]) -> Dict[str, QAction]:
        qt_actions: Dict[str, QAction] = {}
        for action in actions.values():
            qt_action = QAction(action.text, self)
            if action.shortcut:
                qt_action.setShortcut(action.shortcut)
            if action.status_tip:
                qt_action.setStatusTip(action.status_tip)
            qt_action.setCheckable(action.checkable)
            qt_action.triggered.connect(action.trigger)
            qt_actions[action.name] = qt_action

        theme_group = QActionGroup(self)
        theme_group.setExclusive(True)
        for name in ("theme_system", "theme_light", "theme_dark"):
            theme_group.addAction(qt_actions[name])

        menubar = self.menuBar()
        for spec in DEFAULT_MENUS:
            self._populate_menu(menubar.addMenu(spec.title), spec, qt_actions)
        return qt_actions

    def _populate_menu(self, menu: QMenu, spec: MenuSpec, qt_actions: Dict[str, QAction]) -> None:
        for name in spec.actions:
            if name == "file_quit":
                menu.addSeparator()
            menu.addAction(qt_actions[name])
        for child in spec.submenus:
            self._populate_menu(menu.addMenu(child.title), child, qt_actions)

    def _sync_theme_actions(self, theme: str) -> None:
        action = self._qt_actions.get(f"theme_{theme}")
        if action is not None:
            action.setChecked(True)

    def _on_theme_changed(self, theme: str) -> None:
        self._sync_theme_actions(theme)
        app = QApplication.instance()
        if app is not None:
            apply_theme(app, theme, system_style=self._context.system_style)

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------
    def _render_tabs(self, tabs: list[TabSummary]) -> None:
        self._syncing_tabs = True
        try:
            while self._tab_bar.count() > len(tabs):
                self._tab_bar.removeTab(self._tab_bar.count() - 1)
            while self._tab_bar.count() < len(tabs):
                self._tab_bar.addTab("")
            active_index = 0
            for tab in tabs:
                self._tab_bar.setTabText(tab.index, tab.title)
                self._tab_bar.setTabToolTip(tab.index, tab.locator)
                if tab.active:
                    active_index = tab.index
            self._tab_ids = [tab.document_id for tab in tabs]
            self._tab_bar.setCurrentIndex(active_index)
        finally:
            self._syncing_tabs = False
        active = next((tab for tab in tabs if tab.active), None)
        self.setWindowTitle(f"{active.title} - {WINDOW_TITLE}" if active else WINDOW_TITLE)

    def _on_tab_selected(self, index: int) -> None:
        if self._syncing_tabs or not 0 <= index < len(self._tab_ids):
            return
        self._session.set_active(self._tab_ids[index])

    def _on_tab_close_requested(self, index: int) -> None:
        if not 0 <= index < len(self._tab_ids):
            return
        self.schedule(self._controller.close_document(self._tab_ids[index]))

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------
    async def _prompt_close(self, document: Document) -> CloseDecision:
        return prompt_unsaved_changes(self, document.display_name)

    async def _pick_open_path(self) -> str | None:
        path = open_file_dialog(self, start_dir=self._start_dir())
        return str(path) if path is not None else None

    def _start_dir(self) -> Path | None:
        for locator in self._context.settings.recent_files:
            parent = Path(locator).expanduser().parent
            if parent.is_dir():
                return parent
        return None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _restore_geometry(self, encoded: str | None) -> None:
        if not encoded:
            self.resize(1000, 700)
            return
        if not self.restoreGeometry(QByteArray.fromBase64(encoded.encode("ascii"))):
            LOGGER.debug("Ignoring unreadable window geometry")
            self.resize(1000, 700)

    def _on_task_finished(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Window task failed", exc_info=exc)
            self._status_bar.set_message(f"Error: {exc}")
