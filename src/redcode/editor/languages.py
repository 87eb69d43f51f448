"""Language tags and the filename/content classifier used for tab presentation."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Sequence

__all__ = [
    "Language",
    "LanguageRule",
    "classify",
    "detect_from_extension",
    "detect_from_filename",
    "detect_from_shebang",
]


class Language(Enum):
    """Languages the editing widget knows how to present."""

    PLAIN_TEXT = ("plain-text", "Plain Text", "txt")
    PYTHON = ("python", "Python", "py")
    JAVASCRIPT = ("javascript", "JavaScript", "js")
    TYPESCRIPT = ("typescript", "TypeScript", "ts")
    HTML = ("html", "HTML", "html")
    CSS = ("css", "CSS", "css")

    def __init__(self, tag: str, display_name: str, extension: str) -> None:
        self.tag = tag
        self.display_name = display_name
        self.extension = extension

    @classmethod
    def from_tag(cls, tag: str | None) -> "Language":
        """Return the language for ``tag``, falling back to plain text."""

        normalized = (tag or "").strip().lower()
        for language in cls:
            if language.tag == normalized or language.name.lower() == normalized:
                return language
        return cls.PLAIN_TEXT


_EXTENSION_TABLE: dict[str, Language] = {
    "py": Language.PYTHON,
    "js": Language.JAVASCRIPT,
    "ts": Language.TYPESCRIPT,
    "tsx": Language.TYPESCRIPT,
    "html": Language.HTML,
    "htm": Language.HTML,
    "css": Language.CSS,
    "scss": Language.CSS,
    "sass": Language.CSS,
    "less": Language.CSS,
}

LanguageRule = tuple[Callable[[str], bool], Language]


def _has_all(*needles: str) -> Callable[[str], bool]:
    return lambda text: all(needle in text for needle in needles)


def _has_any(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(needle in text for needle in needles)


def _looks_like_html(text: str) -> bool:
    lowered = text.lower()
    return "<!doctype html" in lowered or "<html" in lowered


# Evaluated top-down; the first matching rule wins.
_CONTENT_RULES: Sequence[LanguageRule] = (
    (_looks_like_html, Language.HTML),
    (_has_all("def ", "import "), Language.PYTHON),
    (_has_any("function ", "const ", "let ", "var "), Language.JAVASCRIPT),
    (_has_all("interface ", ": "), Language.TYPESCRIPT),
    (_has_all("{", "}", ":", ";"), Language.CSS),
)

_SHEBANG_RULES: Sequence[tuple[tuple[str, ...], Language]] = (
    (("python",), Language.PYTHON),
    (("node",), Language.JAVASCRIPT),
    (("bash", "sh"), Language.PLAIN_TEXT),
)


def detect_from_extension(extension: str | None) -> Language | None:
    """Return the language mapped to ``extension`` or ``None`` when unknown."""

    normalized = (extension or "").strip().lstrip(".").lower()
    return _EXTENSION_TABLE.get(normalized)


def detect_from_filename(filename: str | None) -> Language | None:
    """Return the language implied by the trailing extension of ``filename``."""

    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return detect_from_extension(name.rsplit(".", 1)[-1])


def detect_from_shebang(content: str | None) -> Language | None:
    """Inspect a ``#!`` interpreter line; ``None`` when there is no shebang."""

    text = content or ""
    if not text.startswith("#!"):
        return None
    first_line = text.splitlines()[0].lower()
    for needles, language in _SHEBANG_RULES:
        if any(needle in first_line for needle in needles):
            return language
    return Language.PLAIN_TEXT


def classify(filename: str | None, content: str | None) -> Language:
    """Classify a document by extension, then shebang, then content heuristics.

    The function is total: ambiguous or empty inputs degrade to
    :attr:`Language.PLAIN_TEXT` rather than raising.
    """

    from_name = detect_from_filename(filename)
    if from_name is not None:
        return from_name

    text = content or ""
    from_shebang = detect_from_shebang(text)
    if from_shebang is not None:
        return from_shebang

    for matches, language in _CONTENT_RULES:
        if matches(text):
            return language
    return Language.PLAIN_TEXT
