"""Standalone, print-friendly HTML documents built from rendered previews."""

from __future__ import annotations

import logging
import re
import time
from html import escape
from pathlib import Path
from textwrap import dedent

logger = logging.getLogger(__name__)

# Names written by export_document; other files in the directory are never pruned.
EXPORT_NAME_PATTERN = re.compile(r".+_\d+\.html")

PRINT_STYLE = dedent(
    """
    @page {
      margin: 2cm;
    }

    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Ubuntu, sans-serif;
      font-size: 12pt;
      line-height: 1.6;
      color: #333;
      margin: 0;
      padding: 20px;
    }

    h1, h2, h3 {
      page-break-after: avoid;
    }

    pre, blockquote, table, figure, img {
      page-break-inside: avoid;
    }

    pre {
      background-color: #f5f5f5;
      padding: 12px;
      border-radius: 4px;
      white-space: pre-wrap;
      word-wrap: break-word;
      border: 1px solid #ddd;
    }

    code {
      background-color: #f3f4f6;
      padding: 2px 6px;
      border-radius: 3px;
      font-family: "SF Mono", Monaco, Inconsolata, "Fira Code", monospace;
      font-size: 0.9em;
    }

    pre code {
      background-color: transparent;
      padding: 0;
    }

    blockquote {
      border-left: 4px solid #2563eb;
      padding-left: 16px;
      margin: 16px 0;
      color: #666;
      font-style: italic;
    }

    table {
      width: 100%;
      border-collapse: collapse;
      margin: 16px 0;
    }

    th, td {
      border: 1px solid #e0e0e0;
      padding: 8px 12px;
      text-align: left;
    }

    .math-display {
      display: block;
      text-align: center;
      margin: 1em 0;
    }

    .math-error, .mermaid-error {
      color: #b91c1c;
    }

    .search-highlight {
      background-color: transparent;
    }
    """
).strip()


def safe_title(title: str) -> str:
    """Turn a document title into a filename stem."""
    cleaned = "".join(char if char.isalnum() or char == " " else "_" for char in title.strip())
    return cleaned.replace(" ", "_") or "document"


def build_document(title: str, body_html: str) -> str:
    """Wrap rendered HTML in a complete HTML5 document."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{escape(title)}</title>\n"
        f"  <style>\n{PRINT_STYLE}\n  </style>\n"
        "</head>\n"
        "<body>\n"
        f"{body_html}\n"
        "</body>\n"
        "</html>\n"
    )


def export_document(
    title: str,
    body_html: str,
    output_dir: Path,
    *,
    keep: int = 10,
    now: float | None = None,
) -> Path:
    """Write ``body_html`` as ``<safe_title>_<timestamp>.html`` and prune older exports.

    Only files named like exports (``<stem>_<digits>.html``) are pruned. At most
    ``keep`` of them remain in ``output_dir`` afterwards; the file just written is
    always among them.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = int(time.time() if now is None else now)
    path = output_dir / f"{safe_title(title)}_{timestamp}.html"
    path.write_text(build_document(title, body_html), encoding="utf-8")
    _prune_exports(output_dir, keep, path)
    return path


def _prune_exports(output_dir: Path, keep: int, current: Path) -> None:
    others = sorted(
        (
            candidate
            for candidate in output_dir.glob("*.html")
            if candidate != current and EXPORT_NAME_PATTERN.fullmatch(candidate.name)
        ),
        key=lambda candidate: (candidate.stat().st_mtime_ns, candidate.name),
    )
    excess = len(others) + 1 - keep
    for old in others[: max(excess, 0)]:
        logger.debug("Removing old export %s", old)
        old.unlink(missing_ok=True)
