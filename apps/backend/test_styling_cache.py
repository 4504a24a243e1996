"""
Tests for the per-deck styling analysis cache.
"""

import asyncio

import pytest

from models.styling import (
    BackgroundImage,
    ContentAnalysis,
    StylingResult,
    StylingStatus,
    ThemeSelectionResult,
)
from services.styling_cache import InMemoryStylingStorage, StylingCache


def analysis(industry="technology"):
    return ContentAnalysis(industry=industry, tone="formal", audience="investors")


def gated(result, gate: asyncio.Event, calls=None):
    async def run():
        if calls is not None:
            calls.append(1)
        await gate.wait()
        return result
    return run


def test_begin_dedupes_in_flight_analysis():
    async def main():
        cache = StylingCache()
        gate = asyncio.Event()
        calls = []
        task = cache.begin_analysis("d1", gated(analysis(), gate, calls))
        assert task is not None
        assert cache.get_status("d1") == StylingStatus.IN_PROGRESS
        assert cache.begin_analysis("d1", gated(analysis("finance"), gate, calls)) is None

        gate.set()
        entry = await task
        assert entry is not None
        assert len(calls) == 1
        assert cache.get_status("d1") == StylingStatus.COMPLETE
        assert cache.get_cached("d1").industry.value == "technology"
        assert cache.get_cached_theme("d1") is None
        assert cache.get_cached_backgrounds("d1") == []

    asyncio.run(main())


def test_empty_deck_id_is_ignored():
    async def main():
        cache = StylingCache()
        assert cache.begin_analysis("", gated(analysis(), asyncio.Event())) is None
        assert cache.get_status("") == StylingStatus.NOT_STARTED
        assert cache.get_cached("") is None

    asyncio.run(main())


def test_failure_returns_to_not_started_and_can_retry():
    async def main():
        cache = StylingCache()

        async def boom():
            raise RuntimeError("model unavailable")

        assert await cache.begin_analysis("d1", boom) is None
        assert cache.get_status("d1") == StylingStatus.NOT_STARTED
        assert isinstance(cache.get_last_error("d1"), RuntimeError)
        assert cache.get_cached("d1") is None

        gate = asyncio.Event()
        gate.set()
        await cache.begin_analysis("d1", gated(analysis(), gate))
        assert cache.get_status("d1") == StylingStatus.COMPLETE
        assert cache.get_last_error("d1") is None

    asyncio.run(main())


def test_unusable_result_counts_as_failure():
    async def main():
        cache = StylingCache()

        async def nothing_useful():
            return 42

        await cache.begin_analysis("d1", nothing_useful)
        assert cache.get_status("d1") == StylingStatus.NOT_STARTED
        assert isinstance(cache.get_last_error("d1"), TypeError)

    asyncio.run(main())


def test_invalidate_during_run_does_not_resurrect_entry():
    async def main():
        cache = StylingCache()
        gate = asyncio.Event()
        task = cache.begin_analysis("d1", gated(analysis(), gate))
        await asyncio.sleep(0)

        cache.invalidate("d1")
        assert cache.get_status("d1") == StylingStatus.NOT_STARTED

        gate.set()
        assert await task is None
        assert cache.get_status("d1") == StylingStatus.NOT_STARTED
        assert cache.get_cached("d1") is None

    asyncio.run(main())


def test_stale_run_never_overwrites_newer_run():
    async def main():
        cache = StylingCache()
        old_gate, new_gate = asyncio.Event(), asyncio.Event()
        old = cache.begin_analysis("d1", gated(analysis("retail"), old_gate))
        cache.invalidate("d1")
        new = cache.begin_analysis("d1", gated(analysis("finance"), new_gate))
        assert new is not None

        new_gate.set()
        await new
        old_gate.set()
        await old
        assert cache.get_cached("d1").industry.value == "finance"
        assert cache.get_status("d1") == StylingStatus.COMPLETE

    asyncio.run(main())


def test_invalidate_clears_completed_entry():
    async def main():
        storage = InMemoryStylingStorage()
        cache = StylingCache(storage)
        gate = asyncio.Event()
        gate.set()
        await cache.begin_analysis("d1", gated(analysis(), gate))
        assert len(storage) == 1

        cache.invalidate("d1")
        assert len(storage) == 0
        assert cache.get_status("d1") == StylingStatus.NOT_STARTED

    asyncio.run(main())


def test_styling_result_stores_theme_and_backgrounds():
    async def main():
        cache = StylingCache()
        result = StylingResult(
            analysis=analysis(),
            theme=ThemeSelectionResult(color_theme="purple"),
            backgrounds=[BackgroundImage(id="bg", url="https://example.com/bg.jpg")],
        )
        completed = []
        gate = asyncio.Event()
        gate.set()
        await cache.begin_analysis("d1", gated(result, gate), on_complete=completed.append)

        assert cache.get_cached_theme("d1").color_theme == "purple"
        assert [bg.id for bg in cache.get_cached_backgrounds("d1")] == ["bg"]
        assert len(completed) == 1
        assert completed[0].theme.color_theme == "purple"

    asyncio.run(main())


def test_failing_completion_callback_keeps_entry():
    async def main():
        cache = StylingCache()

        def broken(entry):
            raise RuntimeError("listener failed")

        gate = asyncio.Event()
        gate.set()
        entry = await cache.begin_analysis("d1", gated(analysis(), gate), on_complete=broken)
        assert entry is not None
        assert cache.get_status("d1") == StylingStatus.COMPLETE

    asyncio.run(main())


def test_decks_are_independent():
    async def main():
        cache = StylingCache()
        gate_a, gate_b = asyncio.Event(), asyncio.Event()
        task_a = cache.begin_analysis("a", gated(analysis("retail"), gate_a))
        task_b = cache.begin_analysis("b", gated(analysis("finance"), gate_b))
        assert task_a is not None and task_b is not None

        gate_b.set()
        await task_b
        assert cache.get_status("a") == StylingStatus.IN_PROGRESS
        assert cache.get_status("b") == StylingStatus.COMPLETE

        gate_a.set()
        await task_a
        assert cache.get_cached("a").industry.value == "retail"

    asyncio.run(main())


def test_cancelled_analysis_clears_in_flight():
    async def main():
        cache = StylingCache()
        task = cache.begin_analysis("d1", gated(analysis(), asyncio.Event()))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert cache.get_status("d1") == StylingStatus.NOT_STARTED
        assert cache.begin_analysis("d1", gated(analysis(), asyncio.Event())) is not None

    asyncio.run(main())


def test_injected_empty_storage_is_used():
    storage = InMemoryStylingStorage()
    cache = StylingCache(storage)
    assert cache.storage is storage


def test_invalidate_prunes_per_deck_state():
    async def main():
        cache = StylingCache()
        gate = asyncio.Event()
        gate.set()
        await cache.begin_analysis("d1", gated(analysis(), gate))
        await asyncio.sleep(0)

        cache.invalidate("d1")
        assert "d1" not in cache._locks
        assert "d1" not in cache._generations

    asyncio.run(main())


def test_run_from_before_two_invalidations_stays_stale():
    async def main():
        cache = StylingCache()
        old_gate, mid_gate, new_gate = asyncio.Event(), asyncio.Event(), asyncio.Event()
        old = cache.begin_analysis("d1", gated(analysis("retail"), old_gate))
        cache.invalidate("d1")

        mid = cache.begin_analysis("d1", gated(analysis("education"), mid_gate))
        mid_gate.set()
        await mid
        await asyncio.sleep(0)
        cache.invalidate("d1")

        new = cache.begin_analysis("d1", gated(analysis("finance"), new_gate))
        old_gate.set()
        assert await old is None
        assert cache.get_status("d1") == StylingStatus.IN_PROGRESS

        new_gate.set()
        await new
        assert cache.get_cached("d1").industry.value == "finance"

    asyncio.run(main())
