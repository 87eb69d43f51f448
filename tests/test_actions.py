"""Tests for the declarative menu actions."""

from __future__ import annotations

import pytest

from redcode.ui.actions import ACTION_DEFINITIONS, DEFAULT_MENUS, build_actions


def _all_callbacks(calls: list[str]) -> dict[str, object]:
    return {definition.name: (lambda name=definition.name: calls.append(name)) for definition in ACTION_DEFINITIONS}


def test_build_actions_binds_callbacks() -> None:
    calls: list[str] = []
    actions = build_actions(_all_callbacks(calls))  # type: ignore[arg-type]

    actions["file_save"].trigger()
    actions["theme_dark"].trigger()

    assert calls == ["file_save", "theme_dark"]
    assert actions["file_save"].shortcut == "Ctrl+S"
    assert actions["theme_dark"].checkable
    assert not actions["file_new"].checkable


def test_missing_callback_is_an_error() -> None:
    callbacks = _all_callbacks([])
    del callbacks["file_quit"]

    with pytest.raises(KeyError, match="file_quit"):
        build_actions(callbacks)  # type: ignore[arg-type]


def test_menus_reference_known_actions() -> None:
    known = {definition.name for definition in ACTION_DEFINITIONS}

    def _names(menus: tuple) -> list[str]:
        names: list[str] = []
        for menu in menus:
            names.extend(menu.actions)
            names.extend(_names(menu.submenus))
        return names

    referenced = _names(DEFAULT_MENUS)

    assert set(referenced) == known
    assert len(referenced) == len(known)
