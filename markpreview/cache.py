"""Idempotency bookkeeping for the post-render collaborators."""

from __future__ import annotations

import hashlib
import threading
from typing import Generic, TypeVar

T = TypeVar("T")


def content_hash(text: str, length: int = 12) -> str:
    """Short, stable digest used to key diagrams and HTML generations."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:length]


class ProcessedCache(Generic[T]):
    """Results already produced for the current HTML generation.

    ``sync`` must be called with the HTML about to be processed; when it differs from
    the previous call the generation advances and every entry is forgotten, so the
    collaborator renders against the new markup instead of reusing stale output.
    """

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}
        self._fingerprint: str | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def sync(self, source: str) -> bool:
        """Track ``source``; return True when it started a new generation."""
        fingerprint = content_hash(source, length=40)
        if fingerprint == self._fingerprint:
            return False
        self._fingerprint = fingerprint
        self._advance()
        return True

    def clear(self) -> None:
        """Forget everything, forcing the next pass to render again."""
        self._fingerprint = None
        self._advance()

    def seen(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> T | None:
        return self._entries.get(key)

    def mark(self, key: str, value: T) -> None:
        self._entries[key] = value

    def __len__(self) -> int:
        return len(self._entries)

    def _advance(self) -> None:
        self._entries.clear()
        self._generation += 1


class LatestRenderGate:
    """Last-submitted-wins guard for overlapping render calls.

    Each submission takes a ticket from :meth:`issue`; when its render finishes the
    caller keeps the result only if :meth:`is_current` still holds for that ticket.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest = 0

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest
