"""Math extraction into placeholder tokens and reinjection as inert containers.

Math is lifted out of the Markdown source before parsing so that the grammar never
sees ``$`` delimited text (underscores and asterisks in TeX would otherwise turn into
emphasis). After parsing, every token is swapped for an empty ``<span>`` that carries
the percent-encoded expression; a typesetter fills those spans in later.
"""

from __future__ import annotations

import itertools
import re
from typing import Callable, Iterator
from urllib.parse import quote

from markdown_it.common.utils import escapeHtml

from .markdown import code_line_ranges
from .models import ExpressionKind, ExpressionRecord, PlaceholderTable

INLINE_PREFIX = "MATH_INLINE_PLACEHOLDER_"
DISPLAY_PREFIX = "MATH_DISPLAY_PLACEHOLDER_"
TOKEN_SUFFIX = "_END"

# encodeURIComponent leaves these punctuation characters untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"

DISPLAY_PATTERN = re.compile(r"\$\$([\s\S]*?)\$\$")
INLINE_PATTERN = re.compile(r"(?<!\\)\$([^\s$][^$\n]*?)\$")

# Backtick code span: a run of N backticks closed by a run of exactly N, within one paragraph.
CODE_SPAN_PATTERN = re.compile(r"(?<![\\`])(`+)(?!`)(?:(?!\n[ \t]*\n)[\s\S])*?(?<!`)\1(?!`)")

TOKEN_PATTERN = re.compile(
    rf"(?:{re.escape(INLINE_PREFIX)}|{re.escape(DISPLAY_PREFIX)})\d+{re.escape(TOKEN_SUFFIX)}"
)
TAG_PATTERN = re.compile(r"""<(?:[^>"']|"[^"]*"|'[^']*')*>""")

# Stand-ins for masked code spans. NUL never survives into the parser (it becomes
# U+FFFD), so input text cannot collide with them.
_MASK = "\x00"
_MASK_PATTERN = re.compile(rf"{_MASK}(\d+){_MASK}")


def extract_expressions(text: str) -> tuple[str, PlaceholderTable]:
    """Replace math spans with placeholder tokens.

    Display spans (``$$...$$``) are consumed before inline spans (``$...$``) because
    the display delimiter would otherwise be read as two empty inline spans. Lines
    that belong to fenced or indented code blocks, and backtick code spans, are left
    untouched.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace(_MASK, "\ufffd")
    table: PlaceholderTable = {}
    counter = itertools.count()
    masked: list[str] = []
    segments = [
        (is_code, chunk if is_code else _mask_code_spans(chunk, masked))
        for is_code, chunk in _split_code_segments(text)
    ]

    passes: tuple[tuple[re.Pattern[str], ExpressionKind, str], ...] = (
        (DISPLAY_PATTERN, ExpressionKind.DISPLAY, DISPLAY_PREFIX),
        (INLINE_PATTERN, ExpressionKind.INLINE, INLINE_PREFIX),
    )
    for pattern, kind, prefix in passes:
        replace = _make_replacer(table, counter, kind, prefix)
        segments = [
            (is_code, chunk if is_code else pattern.sub(replace, chunk))
            for is_code, chunk in segments
        ]

    rewritten = "\n".join(chunk for _, chunk in segments)
    if not masked:
        return rewritten, table
    restored = {
        token: ExpressionRecord(kind=record.kind, content=_unmask(record.content, masked))
        for token, record in table.items()
    }
    return _unmask(rewritten, masked), restored


def reinject_expressions(html: str, table: PlaceholderTable) -> str:
    """Swap each placeholder token for an empty math container element.

    A token that ended up inside a tag (a link destination or title, say) is put
    back as its literal, escaped ``$...$`` source instead.
    """
    if not table:
        return html

    pieces: list[str] = []
    last_end = 0
    for tag in TAG_PATTERN.finditer(html):
        pieces.append(_replace_tokens(html[last_end : tag.start()], table, _container))
        pieces.append(_replace_tokens(tag.group(0), table, _attribute_source))
        last_end = tag.end()
    pieces.append(_replace_tokens(html[last_end:], table, _container))
    return "".join(pieces)


def make_token(prefix: str, index: int) -> str:
    return f"{prefix}{index}{TOKEN_SUFFIX}"


def _container(record: ExpressionRecord) -> str:
    encoded = quote(record.content, safe=_URI_COMPONENT_SAFE)
    return f'<span class="{record.css_class}" data-math="{encoded}"></span>'


def _attribute_source(record: ExpressionRecord) -> str:
    return escapeHtml(record.delimited())


def _replace_tokens(
    chunk: str,
    table: PlaceholderTable,
    render: Callable[[ExpressionRecord], str],
) -> str:
    def replace(match: re.Match[str]) -> str:
        record = table.get(match.group(0))
        return match.group(0) if record is None else render(record)

    return TOKEN_PATTERN.sub(replace, chunk)


def _make_replacer(
    table: PlaceholderTable,
    counter: Iterator[int],
    kind: ExpressionKind,
    prefix: str,
) -> Callable[[re.Match[str]], str]:
    def replace(match: re.Match[str]) -> str:
        token = make_token(prefix, next(counter))
        table[token] = ExpressionRecord(kind=kind, content=match.group(1).strip())
        return token

    return replace


def _mask_code_spans(chunk: str, masked: list[str]) -> str:
    def stash(match: re.Match[str]) -> str:
        masked.append(match.group(0))
        return f"{_MASK}{len(masked) - 1}{_MASK}"

    return CODE_SPAN_PATTERN.sub(stash, chunk)


def _unmask(text: str, masked: list[str]) -> str:
    return _MASK_PATTERN.sub(lambda match: masked[int(match.group(1))], text)


def _split_code_segments(text: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_code, chunk)`` runs of whole lines; joining chunks with newlines restores ``text``."""
    lines = text.split("\n")
    protected = [False] * len(lines)
    for start, end in code_line_ranges(text):
        for index in range(start, min(end, len(lines))):
            protected[index] = True

    for is_code, group in itertools.groupby(zip(protected, lines), key=lambda pair: pair[0]):
        yield is_code, "\n".join(line for _, line in group)
