"""End-to-end rendering pipeline.

The stages always run in the same order::

    extract -> parse -> reinject -> highlight (only with a query) -> sanitize

Sanitizing last means the allow-list sees the final tree, including the math
containers and search marks inserted by earlier stages.
"""

from __future__ import annotations

import asyncio
import logging

from .config import RenderConfig
from .errors import RenderError
from .expressions import extract_expressions, reinject_expressions
from .markdown import render_markdown
from .models import RenderResult
from .sanitize import sanitize_html
from .search import highlight_matches

logger = logging.getLogger(__name__)

__all__ = ["RenderError", "render", "render_async"]


def render(
    markdown_text: str,
    search_query: str | None = None,
    case_sensitive: bool = False,
    active_match_index: int = 0,
    *,
    config: RenderConfig | None = None,
) -> RenderResult:
    """Render Markdown into sanitized HTML plus the table of extracted math.

    Identical arguments always produce identical output. A failure of the Markdown
    grammar is raised as :class:`RenderError`; everything else degrades in place.
    """
    cfg = config or RenderConfig()
    try:
        text, expressions = extract_expressions(markdown_text)
        html = render_markdown(text, cfg)
    except Exception as exc:
        logger.error("Markdown rendering failed: %s", exc)
        raise RenderError(f"Unable to render Markdown: {exc}") from exc

    html = reinject_expressions(html, expressions)

    if search_query:
        html = highlight_matches(
            html,
            search_query,
            case_sensitive,
            active_match_index,
            config=cfg.search,
        )

    return RenderResult(html=sanitize_html(html), expressions=expressions)


async def render_async(
    markdown_text: str,
    search_query: str | None = None,
    case_sensitive: bool = False,
    active_match_index: int = 0,
    *,
    config: RenderConfig | None = None,
) -> RenderResult:
    """Run :func:`render` in a worker thread so event loops stay responsive.

    Overlapping calls are not cancelled. Hosts that re-render on every keystroke keep
    only the newest result with a :class:`~markpreview.cache.LatestRenderGate`::

        ticket = gate.issue()
        result = await render_async(text)
        if gate.is_current(ticket):
            show(result.html)
    """
    return await asyncio.to_thread(
        render,
        markdown_text,
        search_query,
        case_sensitive,
        active_match_index,
        config=config,
    )
