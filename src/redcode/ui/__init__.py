"""PySide6 presentation shell for the RedCode editor.

Qt-dependent modules (``dialogs``, ``editor_view``, ``main_window``) are
imported on demand so the headless pieces stay usable without a display.
"""
