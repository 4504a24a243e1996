"""
Per-deck styling analysis cache and queue.

At most one analysis runs per deck. Results are stored only by the run that
is still current: invalidate() bumps the deck's generation so a run that
started earlier finishes without writing anything back.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from models.styling import (
    BackgroundImage,
    ContentAnalysis,
    StylingCacheEntry,
    StylingResult,
    StylingStatus,
    ThemeSelectionResult,
)
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

AnalyzeFn = Callable[[], Awaitable[Any]]
CompleteCallback = Callable[[StylingCacheEntry], None]


class StylingCacheStorage(ABC):
    """Where completed analyses live. Calls must not suspend."""

    @abstractmethod
    def get_entry(self, deck_id: str) -> Optional[StylingCacheEntry]:
        pass

    @abstractmethod
    def set_entry(self, deck_id: str, entry: StylingCacheEntry) -> None:
        pass

    @abstractmethod
    def delete_entry(self, deck_id: str) -> None:
        pass


class InMemoryStylingStorage(StylingCacheStorage):
    """Process-local storage backed by a dict."""

    def __init__(self):
        self._entries: Dict[str, StylingCacheEntry] = {}

    def get_entry(self, deck_id: str) -> Optional[StylingCacheEntry]:
        return self._entries.get(deck_id)

    def set_entry(self, deck_id: str, entry: StylingCacheEntry) -> None:
        self._entries[deck_id] = entry

    def delete_entry(self, deck_id: str) -> None:
        self._entries.pop(deck_id, None)

    def __len__(self) -> int:
        return len(self._entries)


def _to_entry(result: Any) -> StylingCacheEntry:
    """Normalize what an analysis job returned into a cache entry."""
    if isinstance(result, StylingCacheEntry):
        return result
    if isinstance(result, ContentAnalysis):
        return StylingCacheEntry(analysis=result)
    if isinstance(result, StylingResult):
        return StylingCacheEntry(analysis=result.analysis, theme=result.theme, backgrounds=list(result.backgrounds))
    if isinstance(result, tuple) and len(result) == 3:
        analysis, theme, backgrounds = result
        return StylingCacheEntry(analysis=analysis, theme=theme, backgrounds=list(backgrounds or []))
    if isinstance(result, Mapping):
        return StylingCacheEntry.model_validate(result)
    raise TypeError(f"Unsupported analysis result: {type(result).__name__}")


class StylingCache:
    """
    Deduplicates concurrent "analyze and auto-style" requests per deck.

    Must be used from a running event loop; begin_analysis schedules the job
    as a task and returns immediately.
    """

    def __init__(self, storage: Optional[StylingCacheStorage] = None):
        self.storage = storage if storage is not None else InMemoryStylingStorage()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._in_flight: Dict[str, int] = {}
        self._generations: Dict[str, int] = {}
        # Tokens are never reused, so a pruned generation cannot match a stale run
        self._token_counter = 0
        self._tasks: Dict[str, asyncio.Task] = {}
        self._last_errors: Dict[str, BaseException] = {}

    def _lock(self, deck_id: str) -> asyncio.Lock:
        if deck_id not in self._locks:
            self._locks[deck_id] = asyncio.Lock()
        return self._locks[deck_id]

    def begin_analysis(
        self,
        deck_id: str,
        analyze_fn: AnalyzeFn,
        on_complete: Optional[CompleteCallback] = None,
    ) -> Optional[asyncio.Task]:
        """
        Start analyzing a deck in the background.

        Args:
            deck_id: Deck identity; empty ids are ignored
            analyze_fn: Async callable returning a ContentAnalysis or an
                (analysis, theme, backgrounds) result
            on_complete: Called with the stored entry after success

        Returns:
            The running task, or None when nothing was started
        """
        if not deck_id:
            logger.info("Skipping styling analysis: deck has no id")
            return None
        if deck_id in self._in_flight:
            logger.info(f"Styling analysis already in progress for deck {deck_id}")
            return None

        self._token_counter += 1
        token = self._token_counter
        self._generations[deck_id] = token
        self._in_flight[deck_id] = token
        self._last_errors.pop(deck_id, None)

        task = asyncio.create_task(self._run(deck_id, token, analyze_fn, on_complete))
        self._tasks[deck_id] = task
        task.add_done_callback(lambda t, d=deck_id: self._forget_task(d, t))
        logger.info(f"Started styling analysis for deck {deck_id}")
        return task

    def _forget_task(self, deck_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(deck_id) is task:
            del self._tasks[deck_id]

    async def _run(
        self,
        deck_id: str,
        token: int,
        analyze_fn: AnalyzeFn,
        on_complete: Optional[CompleteCallback],
    ) -> Optional[StylingCacheEntry]:
        try:
            entry = _to_entry(await analyze_fn())
        except asyncio.CancelledError:
            self._clear_in_flight(deck_id, token)
            logger.info(f"Styling analysis cancelled for deck {deck_id}")
            raise
        except Exception as e:
            logger.error(f"Styling analysis failed for deck {deck_id}: {e}", exc_info=True)
            async with self._lock(deck_id):
                if self._clear_in_flight(deck_id, token):
                    self._last_errors[deck_id] = e
            return None

        async with self._lock(deck_id):
            if self._generations.get(deck_id) != token:
                logger.info(f"Discarding styling result for invalidated deck {deck_id}")
                return None
            self.storage.set_entry(deck_id, entry)
            self._clear_in_flight(deck_id, token)

        logger.info(
            f"Styling analysis complete for deck {deck_id}: "
            f"{entry.analysis.industry.value}/{entry.analysis.tone.value}"
        )
        if on_complete is not None:
            try:
                on_complete(entry)
            except Exception as e:
                logger.warning(f"Styling completion callback failed for deck {deck_id}: {e}")
        return entry

    def _clear_in_flight(self, deck_id: str, token: int) -> bool:
        """Clear the in-flight flag if it still belongs to this run."""
        if self._in_flight.get(deck_id) == token:
            del self._in_flight[deck_id]
            return True
        return False

    def get_status(self, deck_id: str) -> StylingStatus:
        if deck_id in self._in_flight:
            return StylingStatus.IN_PROGRESS
        if deck_id and self.storage.get_entry(deck_id) is not None:
            return StylingStatus.COMPLETE
        return StylingStatus.NOT_STARTED

    def get_entry(self, deck_id: str) -> Optional[StylingCacheEntry]:
        return self.storage.get_entry(deck_id) if deck_id else None

    def get_cached(self, deck_id: str) -> Optional[ContentAnalysis]:
        entry = self.get_entry(deck_id)
        return entry.analysis if entry else None

    def get_cached_theme(self, deck_id: str) -> Optional[ThemeSelectionResult]:
        entry = self.get_entry(deck_id)
        return entry.theme if entry else None

    def get_cached_backgrounds(self, deck_id: str) -> List[BackgroundImage]:
        entry = self.get_entry(deck_id)
        return list(entry.backgrounds) if entry else []

    def get_last_error(self, deck_id: str) -> Optional[BaseException]:
        """Most recent analysis failure, until the next begin or invalidate."""
        return self._last_errors.get(deck_id)

    def get_task(self, deck_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(deck_id)

    def invalidate(self, deck_id: str) -> None:
        """Forget everything about a deck; a running analysis will not store its result."""
        self.storage.delete_entry(deck_id)
        self._in_flight.pop(deck_id, None)
        self._last_errors.pop(deck_id, None)
        # A running task no longer matches the generation and drops its result
        self._generations.pop(deck_id, None)
        task = self._tasks.get(deck_id)
        if task is None or task.done():
            self._locks.pop(deck_id, None)
        logger.info(f"Invalidated styling cache for deck {deck_id}")
