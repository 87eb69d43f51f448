"""Tests for the session/editing-widget glue."""

from __future__ import annotations

from redcode.editor.languages import Language
from redcode.editor.session import SessionManager
from redcode.editor.widget_link import EditorLink
from tests.helpers import StubEditorWidget


def test_link_loads_active_document_without_dirtying(session: SessionManager) -> None:
    document_id = session.open("mem://docs/app.py", "app.py", "import os\ndef main(): pass\n")
    widget = StubEditorWidget()

    link = EditorLink(session, widget)

    assert link.document_id == document_id
    assert widget.content == "import os\ndef main(): pass\n"
    assert widget.language is Language.PYTHON
    assert session.get(document_id).dirty is False


def test_widget_edits_flow_back_into_session(session: SessionManager) -> None:
    document_id = session.open("mem://docs/a.txt", "a.txt", "alpha")
    widget = StubEditorWidget()
    link = EditorLink(session, widget)

    widget.type_text("alpha beta")
    widget.move(0, 10)

    document = session.get(document_id)
    assert document.content == "alpha beta"
    assert document.dirty is True
    assert document.cursor.as_tuple() == (0, 10)
    assert link.document_id == document_id


def test_switching_documents_restores_content_and_caret(session: SessionManager) -> None:
    first = session.open("mem://docs/a.txt", "a.txt", "alpha\nbeta")
    widget = StubEditorWidget()
    EditorLink(session, widget)
    widget.move(1, 2)
    second = session.open("mem://docs/b.css", "b.css", "body {}")

    assert widget.content == "body {}"
    assert widget.language is Language.CSS

    session.set_active(first)

    assert widget.content == "alpha\nbeta"
    assert widget.cursor is not None
    assert widget.cursor.as_tuple() == (1, 2)
    assert session.get(first).dirty is False
    assert session.get(second).dirty is False


def test_closing_shown_document_moves_widget(session: SessionManager) -> None:
    first = session.active_document_id
    second = session.open("mem://docs/a.txt", "a.txt", "alpha")
    widget = StubEditorWidget()
    link = EditorLink(session, widget)

    session.perform_close(second)

    assert link.document_id == first
    assert widget.content == ""


def test_detach_stops_following(session: SessionManager) -> None:
    widget = StubEditorWidget()
    link = EditorLink(session, widget)
    loads = widget.loads

    link.detach()
    session.create_new()
    widget.type_text("ignored")

    assert widget.loads == loads
    assert link.document_id is None
    assert all(not document.dirty for document in session)
