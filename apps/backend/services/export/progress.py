"""
Progress tracking for deck export.

Each slide contributes two steps (rendered, appended), so progress is
round(step / (2 * total) * 100). Values reported to the callback never
decrease and 100 is reported exactly once.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from config.logging_config import should_log_progress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ExportPhase(Enum):
    """Sub-steps of exporting one slide."""
    RENDER = "render"
    APPEND = "append"


class ExportProgress:
    """
    Tracks export progress and forwards it to an optional callback.

    A callback that raises is logged and otherwise ignored; it never stops
    the export.
    """

    def __init__(self, total_slides: int, on_progress: Optional[ProgressCallback] = None):
        self.total_slides = total_slides
        self.total_steps = total_slides * 2
        self.on_progress = on_progress
        self.step = 0
        self.progress = 0
        self.completed_reported = False
        self.started_at = datetime.now()
        self._last_logged: Optional[int] = None

    def advance(self, phase: ExportPhase, slide_index: int) -> int:
        """Complete one sub-step for a slide and report the new value."""
        self.step = min(self.step + 1, self.total_steps)
        value = round(self.step / self.total_steps * 100) if self.total_steps else 100
        self._report(value)
        logger.debug(f"Slide {slide_index + 1}/{self.total_slides} {phase.value}: {self.progress}%")
        return self.progress

    def finish(self, cancelled: bool = False) -> int:
        """
        Report the final value.

        A completed export ends on 100; a cancelled one repeats the last
        computed value.
        """
        if cancelled:
            self._report(self.progress, force=True)
        elif not self.completed_reported:
            self._report(100)
        elapsed = (datetime.now() - self.started_at).total_seconds()
        logger.info(f"Export {'cancelled' if cancelled else 'finished'} at {self.progress}% after {elapsed:.1f}s")
        return self.progress

    def _report(self, value: int, force: bool = False) -> None:
        value = max(self.progress, min(100, int(value)))
        if value == 100 and self.completed_reported and not force:
            return
        if value == 100:
            self.completed_reported = True
        self.progress = value

        if should_log_progress(value, self._last_logged):
            logger.info(f"Export progress: {value}%")
            self._last_logged = value

        if self.on_progress is None:
            return
        try:
            self.on_progress(value)
        except Exception as e:
            logger.warning(f"Progress callback failed at {value}%: {e}")
