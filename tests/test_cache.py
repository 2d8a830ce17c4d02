from __future__ import annotations

from markpreview.cache import LatestRenderGate, ProcessedCache, content_hash


def test_content_hash_is_stable_and_short() -> None:
    assert content_hash("graph TD") == content_hash("graph TD")
    assert content_hash("graph TD") != content_hash("graph LR")
    assert len(content_hash("x")) == 12
    assert len(content_hash("x", length=40)) == 40


def test_sync_starts_generation_only_when_source_changes() -> None:
    cache: ProcessedCache[str] = ProcessedCache()

    assert cache.sync("<p>a</p>") is True
    first = cache.generation
    cache.mark("k", "v")

    assert cache.sync("<p>a</p>") is False
    assert cache.generation == first
    assert cache.seen("k")
    assert cache.get("k") == "v"

    assert cache.sync("<p>b</p>") is True
    assert cache.generation == first + 1
    assert not cache.seen("k")
    assert cache.get("k") is None
    assert len(cache) == 0


def test_clear_forces_next_sync_to_advance() -> None:
    cache: ProcessedCache[int] = ProcessedCache()
    cache.sync("same")
    cache.mark("n", 1)

    cache.clear()

    assert len(cache) == 0
    assert cache.sync("same") is True


def test_gate_keeps_only_latest_ticket() -> None:
    gate = LatestRenderGate()

    first = gate.issue()
    second = gate.issue()

    assert not gate.is_current(first)
    assert gate.is_current(second)
