"""Application bootstrap helpers for the RedCode editor."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, cast, get_args, get_origin, get_type_hints

from .editor.session import SessionManager
from .events import EventBus
from .services.file_storage import LocalFileStorage
from .services.settings import Settings, SettingsStore
from .services.workspace_state import WorkspaceStateService
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_NULL_WORDS = {"none", "null"}
_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class QtRuntime:
    """Container returned by :func:`create_qapp`."""

    app: Any
    loop: asyncio.AbstractEventLoop
    system_style: str | None = None


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Install the rotating log file and route Qt diagnostics through it."""

    logging_utils.setup_logging(logging.DEBUG if debug else logging.INFO, force=force)
    _LOGGER.debug("Logging ready (debug=%s, log file=%s)", debug, logging_utils.get_log_path())
    _install_qt_message_handler()


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Read settings through ``store``; an unreadable file yields the defaults."""

    source = store if store is not None else SettingsStore(path)
    try:
        return source.load(overrides=overrides)
    except (OSError, ValueError, TypeError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", source.path, exc)
        return Settings()


def build_session(settings: Settings, *, storage: Any | None = None, event_bus: EventBus | None = None) -> SessionManager:
    """Create the session manager configured from ``settings``.

    The session starts empty when a previous workspace will be restored.
    """

    return SessionManager(
        storage or LocalFileStorage(),
        event_bus=event_bus,
        untitled_prefix=settings.untitled_prefix,
        encoding=settings.default_encoding,
        strict=settings.strict_document_ids,
        skip_default_document=settings.restore_session,
    )


def create_qapp(settings: Settings) -> QtRuntime:
    """Create the QApplication and install a qasync loop as the asyncio loop."""

    # Imported here so the headless helpers above work without a display stack.
    try:
        from PySide6.QtWidgets import QApplication
        from qasync import QEventLoop
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError(f"RedCode needs PySide6 and qasync to show its window: {exc}") from exc

    from .ui.theme import apply_theme

    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")
    existing = QApplication.instance()
    app = cast(Any, existing if existing is not None else QApplication(sys.argv))
    app.setApplicationName("RedCode")
    app.setApplicationDisplayName("RedCode")
    system_style = app.style().name()

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)

    theme = (settings.theme or "system").lower()
    if theme != "system":
        apply_theme(app, theme, system_style=system_style)
    return QtRuntime(app=app, loop=loop, system_style=system_style)


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `redcode` console script."""

    args, qt_args = _parse_cli_args(argv)
    _rewrite_sys_argv(qt_args)

    debug = _env_flag("REDCODE_DEBUG", default=False)
    configure_logging(debug)

    raw_path = args.settings_path or os.environ.get("REDCODE_SETTINGS_PATH")
    store = SettingsStore(Path(raw_path).expanduser() if raw_path else None)
    try:
        overrides = _coerce_cli_overrides(args.overrides)
    except ValueError as exc:
        print(f"redcode: invalid --set value: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc
    settings = load_settings(store=store, overrides=overrides or None)

    if args.dump_settings:
        _dump_settings(settings, store, overrides=overrides)
        return
    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    from .ui.main_window import MainWindow, WindowContext

    runtime = create_qapp(settings)
    session = build_session(settings)
    workspace = WorkspaceStateService(session, settings, store)
    window = MainWindow(
        WindowContext(
            session=session,
            settings=settings,
            workspace=workspace,
            system_style=runtime.system_style,
        )
    )

    loop = runtime.loop
    try:
        loop.run_until_complete(_open_initial_documents(window, workspace, args.files, restore=settings.restore_session))
        window.show()
        loop.run_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Interrupted; closing RedCode.")
    finally:
        _drain_event_loop(loop)
        loop.close()


async def _open_initial_documents(
    window: Any,
    workspace: WorkspaceStateService,
    files: Sequence[str],
    *,
    restore: bool,
) -> None:
    session = window.controller.session
    if restore:
        await workspace.restore()
    for name in files:
        await window.controller.open_locator(str(Path(name).expanduser()))
    session.ensure_document()


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _drain_event_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel tasks left on ``loop`` and release async generators and the executor."""

    if loop.is_closed():
        return

    pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
    for task in pending:
        task.cancel()
    try:
        if pending:
            _LOGGER.debug("Cancelling %d task(s) still pending at shutdown", len(pending))
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        for shutdown in (loop.shutdown_asyncgens, loop.shutdown_default_executor):
            with contextlib.suppress(NotImplementedError):
                loop.run_until_complete(shutdown())
    except RuntimeError as exc:  # pragma: no cover - loop already stopped elsewhere
        _LOGGER.debug("Unable to drain asyncio loop: %s", exc)


def _install_qt_message_handler() -> None:
    """Route Qt's own diagnostics into the ``redcode.qt`` logger."""

    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler
    except ImportError:  # pragma: no cover - PySide6 optional during tests
        return

    qt_logger = logging.getLogger("redcode.qt")
    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _forward(mode, _context, message):  # type: ignore[no-untyped-def]
        qt_logger.log(levels.get(mode, logging.INFO), message)

    qInstallMessageHandler(_forward)


def _parse_cli_args(argv: Sequence[str] | None) -> tuple[argparse.Namespace, list[str]]:
    """Parse RedCode's own flags; unknown ones are handed on to Qt."""

    parser = argparse.ArgumentParser(
        prog="redcode",
        description="Open files in the RedCode multi-tab editor, or inspect its configuration.",
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Files to open on startup.")
    parser.add_argument("--dump-settings", action="store_true", help="Print the effective settings as JSON and exit.")
    parser.add_argument("--settings-path", metavar="PATH", help="Read settings from PATH instead of ~/.redcode/settings.json.")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override one setting for this run; may be repeated.",
    )
    return parser.parse_known_args(argv)


def _rewrite_sys_argv(passthrough: Sequence[str]) -> None:
    program = sys.argv[0] if sys.argv else "redcode"
    sys.argv = [program, *passthrough]


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn repeated ``--set KEY=VALUE`` entries into typed :class:`Settings` fields."""

    field_types = get_type_hints(Settings)
    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if key not in field_types:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _coerce_value(field_types[key], raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, value: str) -> Any:
    """Coerce ``value`` to a settings field type.

    Settings fields are ``str``, ``int``, ``bool`` or lists given as JSON,
    each possibly optional, where ``none``/``null`` clears the field.
    """

    members = get_args(annotation)
    if type(None) in members:
        if value.lower() in _NULL_WORDS:
            return None
        annotation = next(member for member in members if member is not type(None))
    if get_origin(annotation) is list:
        try:
            parsed = json.loads(value or "[]")
        except json.JSONDecodeError as exc:
            raise ValueError(f"Expected a JSON array, got {value!r}") from exc
        if not isinstance(parsed, list):
            raise ValueError(f"Expected a JSON array, got {value!r}")
        return parsed
    if annotation is bool:
        return _parse_bool(value)
    if annotation is int:
        return int(value, 10)
    return value


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    """Write the effective settings plus where each layer came from as JSON."""

    log_path = logging_utils.get_log_path()
    payload = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(name for name in os.environ if name.startswith("REDCODE_")),
            "log_path": str(log_path) if log_path is not None else None,
        },
    }
    out = stream if stream is not None else sys.stdout
    out.write(json.dumps(payload, indent=2) + "\n")
