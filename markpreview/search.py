"""Search-term highlighting over rendered HTML."""

from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag

from .config import SearchConfig
from .models import MatchSpan

# Subtrees whose text is never highlighted.
SKIPPED_TAGS = frozenset({"code", "pre", "script", "style"})


@dataclass(slots=True)
class _MatchCounter:
    value: int = 0


def find_matches(text: str, query: str, case_sensitive: bool = False) -> list[MatchSpan]:
    """Return every non-overlapping occurrence of ``query`` in ``text``."""
    if not query:
        return []
    pattern = _compile(query, case_sensitive)
    return [MatchSpan(start=match.start(), end=match.end()) for match in pattern.finditer(text)]


def highlight_matches(
    html: str,
    query: str,
    case_sensitive: bool = False,
    active_index: int = 0,
    *,
    config: SearchConfig | None = None,
) -> str:
    """Wrap search matches outside code in ``<mark>`` elements.

    Matches are numbered from 1 in document order; the one equal to ``active_index``
    gets the active class and id.
    """
    if not query:
        return html

    cfg = config or SearchConfig()
    soup = BeautifulSoup(html, "html.parser")
    _highlight_children(soup, soup, _compile(query, case_sensitive), cfg, active_index, _MatchCounter())
    return str(soup)


def count_matches(html: str, query: str, case_sensitive: bool = False) -> int:
    """Count the matches :func:`highlight_matches` would mark in ``html``."""
    if not query:
        return 0
    pattern = _compile(query, case_sensitive)
    soup = BeautifulSoup(html, "html.parser")
    return sum(len(pattern.findall(str(node))) for node in _text_nodes(soup))


def _compile(query: str, case_sensitive: bool) -> re.Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(re.escape(query), flags)


def _text_nodes(node: Tag) -> list[NavigableString]:
    found: list[NavigableString] = []
    for child in node.children:
        if isinstance(child, Tag):
            if child.name not in SKIPPED_TAGS:
                found.extend(_text_nodes(child))
        elif type(child) is NavigableString:
            found.append(child)
    return found


def _highlight_children(
    soup: BeautifulSoup,
    node: Tag,
    pattern: re.Pattern[str],
    cfg: SearchConfig,
    active_index: int,
    counter: _MatchCounter,
) -> None:
    # Copy the child list; text nodes are replaced while iterating.
    for child in list(node.children):
        if isinstance(child, Tag):
            if child.name in SKIPPED_TAGS:
                continue
            _highlight_children(soup, child, pattern, cfg, active_index, counter)
        elif type(child) is NavigableString:
            _highlight_text(soup, child, pattern, cfg, active_index, counter)


def _highlight_text(
    soup: BeautifulSoup,
    node: NavigableString,
    pattern: re.Pattern[str],
    cfg: SearchConfig,
    active_index: int,
    counter: _MatchCounter,
) -> None:
    text = str(node)
    spans = [MatchSpan(start=match.start(), end=match.end()) for match in pattern.finditer(text)]
    if not spans:
        return

    fragments: list[NavigableString | Tag] = []
    last_end = 0
    for span in spans:
        if span.start > last_end:
            fragments.append(NavigableString(text[last_end : span.start]))
        counter.value += 1
        mark = soup.new_tag("mark")
        mark["class"] = [cfg.mark_class]
        if counter.value == active_index:
            mark["class"].append(cfg.active_class)
            mark["id"] = cfg.active_id
        mark.string = text[span.start : span.end]
        fragments.append(mark)
        last_end = span.end
    if last_end < len(text):
        fragments.append(NavigableString(text[last_end:]))

    node.replace_with(*fragments)
