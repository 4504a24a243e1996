"""
Deck export orchestration.

Slides are rasterized one at a time in deck order. A slide that fails is
replaced by a fallback page in the same slot, so the output always has one
page per processed slide. Cancellation is checked between slides and leaves
a well-formed partial document.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from config.export_config import EXPORT_CANVAS_HEIGHT, EXPORT_CANVAS_WIDTH
from setup_logging_optimized import get_logger
from models.deck import Deck
from models.slide import Slide
from services.export.document import ExportDocument, SlideFailure, validate_page_size
from services.export.exceptions import (
    EmptyDeckError,
    ExportInputError,
    SlideRasterizationError,
)
from services.export.fonts import FontProvider
from services.export.progress import ExportPhase, ExportProgress, ProgressCallback
from services.export.slide_rasterizer import SlideRasterizer
from services.export.surface import PillowSurface
from services.export.theme_resolver import resolve_theme

logger = get_logger(__name__)

FALLBACK_TITLE_SIZE = 60
FALLBACK_CAPTION_SIZE = 40
FALLBACK_CAPTION = "Error rendering slide content"


@dataclass
class ExportJob:
    """State of one export_deck call."""
    deck_id: Optional[str]
    total_slides: int
    document: ExportDocument
    progress: ExportProgress
    current_index: int = 0
    cancelled: bool = False

    @property
    def failures(self):
        return self.document.failures


class DeckExporter:
    """
    Exports decks to page sequences.

    Holds the rasterizer and, optionally, the styling cache whose completed
    analysis feeds theme resolution.
    """

    def __init__(
        self,
        rasterizer: Optional[SlideRasterizer] = None,
        styling_cache=None,
        page_size: Tuple[int, int] = (EXPORT_CANVAS_WIDTH, EXPORT_CANVAS_HEIGHT),
    ):
        self.page_size = validate_page_size(page_size)
        self.rasterizer = rasterizer or SlideRasterizer(width=self.page_size[0], height=self.page_size[1])
        self.styling_cache = styling_cache
        self._fallback_fonts = getattr(self.rasterizer, 'fonts', None) or FontProvider()

    async def export(
        self,
        deck: Union[Deck, Mapping[str, Any]],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExportDocument:
        """
        Export every slide of a deck.

        Args:
            deck: Deck, or a mapping validated into one
            on_progress: Receives integer percentages
            cancel_event: When set, export stops before the next slide

        Returns:
            The document, also when some or all slides fell back

        Raises:
            EmptyDeckError: The deck has no slides
            ExportInputError: The deck could not be read
        """
        deck = self._coerce_deck(deck)
        if not deck.slides:
            raise EmptyDeckError(context={"deck_id": deck.id})

        total = len(deck.slides)
        job = ExportJob(
            deck_id=deck.id,
            total_slides=total,
            document=ExportDocument(page_size=self.page_size, title=deck.title),
            progress=ExportProgress(total, on_progress),
        )
        analysis, status = self._styling_inputs(deck)
        logger.info(f"Exporting deck {deck.id or deck.title!r}: {total} slides")

        for index, slide in enumerate(deck.slides):
            if cancel_event is not None and cancel_event.is_set():
                job.cancelled = True
                logger.info(f"Export cancelled before slide {index + 1}/{total}")
                break
            job.current_index = index
            await self._export_slide(job, deck, slide, index, analysis, status)

        job.document.cancelled = job.cancelled
        job.progress.finish(cancelled=job.cancelled)

        if job.failures:
            logger.warning(
                f"Export finished with {len(job.failures)} fallback page(s): "
                f"{[f.slide_index + 1 for f in job.failures]}"
            )
        return job.document

    async def _export_slide(self, job: ExportJob, deck: Deck, slide: Slide, index: int,
                            analysis: Any, status: Any) -> None:
        rendered = False
        try:
            theme = resolve_theme(slide.content, deck, analysis, status)
            surface, report = await self.rasterizer.rasterize_with_report(slide, theme, index, job.total_slides)
            job.progress.advance(ExportPhase.RENDER, index)
            rendered = True
            job.document.add_page(surface.to_image(), slide_id=slide.id)
            if report.image_error:
                logger.debug(f"Slide {index + 1} exported without its image: {report.image_error}")
        except Exception as e:
            kind = type(e.cause).__name__ if isinstance(e, SlideRasterizationError) and e.cause else type(e).__name__
            logger.error(f"Error rendering slide {index + 1}/{job.total_slides}: {e}", exc_info=True)
            job.failures.append(SlideFailure(slide_index=index, kind=kind, message=str(e)))
            if not rendered:
                job.progress.advance(ExportPhase.RENDER, index)
            job.document.add_page(self._fallback_page(deck, slide, index), slide_id=slide.id, is_fallback=True)
        job.progress.advance(ExportPhase.APPEND, index)

    def _fallback_page(self, deck: Deck, slide: Slide, index: int):
        """Theme background with the slide title and an error caption."""
        W, H = self.page_size
        theme = resolve_theme(slide.content, deck)
        surface = PillowSurface(W, H, theme.background)
        title_font = self._fallback_fonts.get_font(theme.font_style, FALLBACK_TITLE_SIZE, bold=True)
        caption_font = self._fallback_fonts.get_font(theme.font_style, FALLBACK_CAPTION_SIZE)
        surface.draw_text(slide.title or f"Slide {index + 1}", W / 2, H / 2 - 40, title_font, '#ffffff',
                          align='center', max_width=W - 300)
        surface.draw_text(FALLBACK_CAPTION, W / 2, H / 2 + 40, caption_font, '#ffffff', align='center')
        return surface.to_image()

    def _styling_inputs(self, deck: Deck):
        """Completed styling analysis for the deck, if a cache is attached."""
        if self.styling_cache is None or not deck.id:
            return None, None
        status = self.styling_cache.get_status(deck.id)
        analysis = self.styling_cache.get_cached_theme(deck.id) or self.styling_cache.get_cached(deck.id)
        return analysis, status

    @staticmethod
    def _coerce_deck(deck: Union[Deck, Mapping[str, Any]]) -> Deck:
        if isinstance(deck, Deck):
            return deck
        if deck is None:
            raise EmptyDeckError()
        try:
            return Deck.model_validate(deck)
        except ValidationError as e:
            raise ExportInputError("Deck could not be read", cause=e)


async def export_deck(
    deck: Union[Deck, Mapping[str, Any]],
    on_progress: Optional[ProgressCallback] = None,
    *,
    rasterizer: Optional[SlideRasterizer] = None,
    page_size: Tuple[int, int] = (EXPORT_CANVAS_WIDTH, EXPORT_CANVAS_HEIGHT),
    cancel_event: Optional[asyncio.Event] = None,
    styling_cache=None,
) -> ExportDocument:
    """
    Export a deck to an ExportDocument.

    Page size is validated and an empty deck rejected before anything is
    drawn.
    """
    exporter = DeckExporter(rasterizer=rasterizer, styling_cache=styling_cache, page_size=page_size)
    return await exporter.export(deck, on_progress=on_progress, cancel_event=cancel_event)
