"""HTML sanitization for rendered previews."""

from __future__ import annotations

import logging
from functools import lru_cache

import bleach
from bleach.css_sanitizer import CSSSanitizer
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Removed together with their content; bleach alone would keep the inner text.
DROPPED_ELEMENTS = ["script", "style", "iframe", "object", "embed", "noscript", "template"]

ALLOWED_PROTOCOLS = ["http", "https", "mailto", "tel"]


@lru_cache(maxsize=1)
def _get_bleach_config() -> tuple[frozenset[str], dict[str, list[str]], list[str]]:
    """Cache the allow-lists; a Cleaner is built per call because it is not thread-safe."""
    allowed_tags = set(bleach.sanitizer.ALLOWED_TAGS).union(
        {
            # text
            "p",
            "br",
            "hr",
            "div",
            "span",
            "mark",
            "del",
            "s",
            "ins",
            "sup",
            "sub",
            # headings
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "h6",
            # lists
            "ul",
            "ol",
            "li",
            "dl",
            "dt",
            "dd",
            "blockquote",
            # code
            "pre",
            "code",
            "kbd",
            "samp",
            # tables
            "table",
            "thead",
            "tbody",
            "tr",
            "th",
            "td",
            # media
            "img",
            # task lists
            "input",
        }
    )

    allowed_attrs = {
        "a": ["href", "title"],
        "img": ["src", "alt", "title", "width", "height"],
        "abbr": ["title"],
        "acronym": ["title"],
        "ol": ["start"],
        "ul": ["class"],
        "li": ["class"],
        "pre": ["class"],
        "code": ["class"],
        "th": ["style"],
        "td": ["style"],
        "input": ["class", "type", "checked", "disabled"],
        # math containers and search markers
        "span": ["class", "data-math"],
        "mark": ["class", "id"],
    }

    return frozenset(allowed_tags), allowed_attrs, ALLOWED_PROTOCOLS


def sanitize_html(html: str) -> str:
    """Strip unsafe elements, attributes and URLs; keep math containers and search marks."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    removed = 0
    for element in soup.find_all(DROPPED_ELEMENTS):
        # Nested matches are already gone with their ancestor.
        if element.decomposed:
            continue
        element.decompose()
        removed += 1
    if removed:
        logger.debug("Removed %d unsafe element(s) before sanitizing", removed)
    allowed_tags, allowed_attrs, allowed_protocols = _get_bleach_config()
    return bleach.clean(
        str(soup),
        tags=allowed_tags,
        attributes=allowed_attrs,
        protocols=allowed_protocols,
        strip=True,
        strip_comments=True,
        css_sanitizer=CSSSanitizer(allowed_css_properties=["text-align"]),
    )
