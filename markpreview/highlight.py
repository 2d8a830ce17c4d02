"""Syntax highlighting for fenced code via Pygments."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound


class SyntaxHighlighter:
    """Highlight code into inner ``<span>`` markup for a ``<pre><code>`` wrapper.

    ``languages`` optionally restricts which language names are treated as
    registered; anything else is reported as unknown even if Pygments has a lexer.
    """

    def __init__(self, languages: Iterable[str] | None = None) -> None:
        self._languages = frozenset(name.lower() for name in languages) if languages is not None else None
        self._formatter = HtmlFormatter(nowrap=True)

    def has_language(self, language: str) -> bool:
        name = language.strip().lower()
        if not name:
            return False
        if self._languages is not None and name not in self._languages:
            return False
        return _lexer_for(name) is not None

    def highlight(self, code: str, language: str) -> str:
        """Return highlighted HTML for ``code``; raises ``ClassNotFound`` for unknown languages."""
        lexer = _lexer_for(language.strip().lower())
        if lexer is None:
            raise ClassNotFound(f"no lexer for alias {language!r} found")
        return pygments_highlight(code, lexer, self._formatter)


@lru_cache(maxsize=128)
def _lexer_for(name: str) -> Lexer | None:
    try:
        return get_lexer_by_name(name, stripnl=False)
    except ClassNotFound:
        return None
