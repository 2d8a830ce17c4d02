"""Shared Markdown rendering helpers."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Sequence, cast

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll
from markdown_it.renderer import RendererProtocol
from markdown_it.token import Token
from markdown_it.utils import EnvType, OptionsDict
from mdit_py_plugins.tasklists import tasklists_plugin

from .config import RenderConfig
from .highlight import SyntaxHighlighter

logger = logging.getLogger(__name__)

CODE_TOKEN_TYPES = frozenset({"fence", "code_block"})


def render_code_block(
    code: str,
    language: str,
    *,
    diagram_language: str,
    highlighter: SyntaxHighlighter | None,
    highlight_class: str = "hljs",
) -> str:
    """Render one fenced block as ``<pre><code>`` markup.

    Diagram blocks are escaped verbatim for a later diagram pass. Other languages are
    highlighted when the highlighter knows them and fall back to escaped text.
    """
    lang_attr = escapeHtml(language)
    if language and language == diagram_language:
        return f'<pre><code class="language-{lang_attr}">{escapeHtml(code)}</code></pre>\n'

    if language and highlighter is not None and highlighter.has_language(language):
        try:
            highlighted = highlighter.highlight(code, language)
        except Exception as exc:  # noqa: BLE001 - highlighting must never fail a render
            logger.warning("Highlighting failed for language %s: %s", language, exc)
        else:
            return f'<pre><code class="{highlight_class} language-{lang_attr}">{highlighted}</code></pre>\n'

    class_attr = f' class="language-{lang_attr}"' if language else ""
    return f"<pre><code{class_attr}>{escapeHtml(code)}</code></pre>\n"


def fence_language(info: str) -> str:
    """Return the first word of a fence info string."""
    text = unescapeAll(info).strip() if info else ""
    return text.split(maxsplit=1)[0] if text else ""


@lru_cache(maxsize=8)
def _renderer(
    diagram_language: str,
    breaks: bool,
    linkify: bool,
    typographer: bool,
    allow_html: bool,
    highlight_enabled: bool,
    highlight_class: str,
    languages: tuple[str, ...] | None,
) -> MarkdownIt:
    """Configure and cache a GFM-flavoured renderer with the custom fence rule."""
    md = MarkdownIt(
        "gfm-like",
        {"html": allow_html, "linkify": linkify, "typographer": typographer, "breaks": breaks},
    )
    md.use(tasklists_plugin)
    highlighter = SyntaxHighlighter(languages) if highlight_enabled else None

    def render_fence(
        self: RendererProtocol,
        tokens: Sequence[Token],
        idx: int,
        options: OptionsDict,
        env: EnvType,
    ) -> str:
        token = tokens[idx]
        return render_code_block(
            token.content,
            fence_language(token.info),
            diagram_language=diagram_language,
            highlighter=highlighter,
            highlight_class=highlight_class,
        )

    md.add_render_rule("fence", render_fence)
    return md


@lru_cache(maxsize=1)
def _block_parser() -> MarkdownIt:
    return MarkdownIt("commonmark")


def get_renderer(config: RenderConfig | None = None) -> MarkdownIt:
    """Return the cached renderer for ``config`` (defaults when omitted)."""
    cfg = config or RenderConfig()
    languages = cfg.highlight.languages
    return _renderer(
        cfg.diagram_language,
        cfg.breaks,
        cfg.linkify,
        cfg.typographer,
        cfg.html,
        cfg.highlight.enabled,
        cfg.highlight.css_class,
        tuple(languages) if languages is not None else None,
    )


def render_markdown(text: str, config: RenderConfig | None = None) -> str:
    """Render Markdown to HTML using the shared renderer."""
    if not text.strip():
        return ""
    return cast(str, get_renderer(config).render(text))


def code_line_ranges(text: str) -> list[tuple[int, int]]:
    """Return ``[start, end)`` line ranges covered by fenced or indented code blocks."""
    env: dict[str, Any] = {}
    tokens = _block_parser().parse(text, env)
    return [
        (token.map[0], token.map[1])
        for token in tokens
        if token.type in CODE_TOKEN_TYPES and token.map is not None
    ]
