"""Typed values exchanged between the rendering stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class ExpressionKind(str, Enum):
    """Whether an extracted math expression is rendered inline or as a block."""

    INLINE = "inline"
    DISPLAY = "display"


@dataclass(frozen=True, slots=True)
class ExpressionRecord:
    """Raw math expression pulled out of the source text."""

    kind: ExpressionKind
    content: str

    @property
    def css_class(self) -> str:
        return f"math-{self.kind.value}"

    def delimited(self) -> str:
        """Return the expression wrapped in the delimiters it was written with."""
        marker = "$$" if self.kind is ExpressionKind.DISPLAY else "$"
        return f"{marker}{self.content}{marker}"

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "content": self.content}


PlaceholderTable = Dict[str, ExpressionRecord]


@dataclass(frozen=True, slots=True)
class MatchSpan:
    """Character offsets of one search match inside a single text node."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Sanitized HTML plus the expressions extracted while producing it."""

    html: str
    expressions: PlaceholderTable = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "html": self.html,
            "expressions": {token: record.to_dict() for token, record in self.expressions.items()},
        }
