"""Settings dataclass and JSON persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "Settings",
    "SettingsStore",
    "THEME_CHOICES",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".redcode"
DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "REDCODE_THEME": "theme",
    "REDCODE_FONT_FAMILY": "font_family",
    "REDCODE_DEFAULT_ENCODING": "default_encoding",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "REDCODE_DEBUG_LOGGING": "debug_logging",
    "REDCODE_RESTORE_SESSION": "restore_session",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "REDCODE_FONT_SIZE": "font_size",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
THEME_CHOICES: tuple[str, ...] = ("system", "light", "dark")
_DEFAULT_THEME = "system"


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    theme: str = _DEFAULT_THEME
    font_family: str = "JetBrains Mono"
    font_size: int = 13
    word_wrap: bool = False
    show_line_numbers: bool = True
    untitled_prefix: str = "Untitled"
    default_encoding: str = "utf-8"
    recent_files: list[str] = field(default_factory=list)
    last_open_file: str | None = None
    max_recent_files: int = 10
    open_tabs: list[dict[str, Any]] | None = None  # None = never saved, [] = explicitly empty
    active_tab_index: int | None = None
    next_untitled_index: int = 1
    restore_session: bool = True
    debug_logging: bool = False
    strict_document_ids: bool = True
    window_geometry: str | None = None


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()

        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            LOGGER.debug(
                "Settings loaded from %s: %d tabs, active_tab_index=%s",
                self._path,
                len(settings.open_tabs or []),
                settings.active_tab_index,
            )

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        settings = self._apply_env_overrides(settings)
        return _normalize(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = self._serialize(settings)
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug(
            "Settings saved to %s: %d tabs, active_tab_index=%s",
            self._path,
            len(settings.open_tabs or []),
            settings.active_tab_index,
        )
        return self._path

    def _serialize(self, settings: Settings) -> Dict[str, Any]:
        data = asdict(settings)
        data["version"] = _SETTINGS_VERSION
        return data

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        version = payload.get("version")
        if version is not None and version != _SETTINGS_VERSION:
            LOGGER.info("Settings file %s uses version %s; reading known fields only", self._path, version)
        return payload

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {field.name for field in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)}
    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if key not in allowed:
            continue
        result[key] = value
    return result


def _normalize(settings: Settings) -> Settings:
    updates: Dict[str, Any] = {}
    theme = str(settings.theme or "").strip().lower()
    if theme not in THEME_CHOICES:
        LOGGER.warning("Unknown theme '%s'; defaulting to %s.", settings.theme, _DEFAULT_THEME)
        theme = _DEFAULT_THEME
    if theme != settings.theme:
        updates["theme"] = theme
    if not isinstance(settings.recent_files, list):
        updates["recent_files"] = []
    if settings.max_recent_files < 0:
        updates["max_recent_files"] = 0
    if settings.next_untitled_index < 1:
        updates["next_untitled_index"] = 1
    if updates:
        settings = replace(settings, **updates)
    return settings
