"""Fill math containers left by the pipeline with MathML."""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import unquote

from bs4 import BeautifulSoup, Tag
from latex2mathml.converter import convert as latex_to_mathml

from .cache import ProcessedCache
from .models import ExpressionKind, ExpressionRecord

logger = logging.getLogger(__name__)

MathRenderer = Callable[[str, bool], str]

RENDERED_ATTR = "data-math-rendered"
ERROR_CLASS = "math-error"


def render_mathml(expression: str, display: bool) -> str:
    return latex_to_mathml(expression, display="block" if display else "inline")


class MathTypesetter:
    """Render ``span.math-inline`` / ``span.math-display`` containers in place.

    Spans already carrying ``data-math-rendered`` are left alone. A failed expression
    shows its original delimited source and gets the ``math-error`` class.
    """

    def __init__(self, renderer: MathRenderer | None = None) -> None:
        self._renderer = renderer or render_mathml
        self._cache: ProcessedCache[str] = ProcessedCache()

    @property
    def cache(self) -> ProcessedCache[str]:
        return self._cache

    def process(self, html: str) -> str:
        self._cache.sync(html)
        soup = BeautifulSoup(html, "html.parser")
        for kind in (ExpressionKind.INLINE, ExpressionKind.DISPLAY):
            for element in soup.select(f".math-{kind.value}:not([{RENDERED_ATTR}])"):
                self._typeset(element, kind)
        return str(soup)

    def _typeset(self, element: Tag, kind: ExpressionKind) -> None:
        encoded = element.get("data-math")
        if not encoded:
            return

        record = ExpressionRecord(kind=kind, content=unquote(str(encoded)))
        key = f"{kind.value}:{record.content}"
        rendered = self._cache.get(key)
        if rendered is None:
            try:
                rendered = self._renderer(record.content, kind is ExpressionKind.DISPLAY)
            except Exception as exc:  # noqa: BLE001 - show the source instead of failing
                logger.warning("Failed to render %s math %r: %s", kind.value, record.content, exc)
                element.clear()
                element.string = record.delimited()
                element[RENDERED_ATTR] = "true"
                classes = list(element.get("class") or [])
                if ERROR_CLASS not in classes:
                    element["class"] = [*classes, ERROR_CLASS]
                return
            self._cache.mark(key, rendered)

        element.clear()
        element.append(BeautifulSoup(rendered, "html.parser"))
        element[RENDERED_ATTR] = "true"
