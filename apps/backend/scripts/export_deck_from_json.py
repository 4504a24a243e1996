import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from config.export_config import EXPORT_IMAGE_TIMEOUT_SECONDS
from models.deck import Deck
from services.auto_styling_service import AutoStylingService, analysis_summary
from services.export import ExportDocument, ExportError, export_deck
from services.export.image_loader import ImageLoader
from services.export.slide_rasterizer import SlideRasterizer
from services.styling_cache import StylingCache
from setup_logging_optimized import get_logger, setup_logging

logger = get_logger("scripts.export_deck_from_json")


def _progress(percent: int) -> None:
    logger.info(f"Export progress: {percent}%")


async def _auto_style(deck: Deck) -> Optional[StylingCache]:
    """Run styling analysis up front so the export can use its theme."""
    if not deck.id:
        logger.warning("Deck has no id, skipping auto-styling")
        return None
    cache = StylingCache()
    service = AutoStylingService()
    task = cache.begin_analysis(deck.id, service.analysis_job(deck))
    if task is not None:
        await task
    analysis = cache.get_cached(deck.id)
    if analysis is None:
        logger.warning(f"Auto-styling failed: {cache.get_last_error(deck.id)}")
    else:
        logger.info(f"Auto-styling: {analysis_summary(analysis)}")
    return cache


async def run(args: argparse.Namespace) -> ExportDocument:
    deck_path = Path(args.deck_json).resolve()
    data: Dict[str, Any] = json.loads(deck_path.read_text())
    deck = Deck.model_validate(data)

    cache = await _auto_style(deck) if args.auto_style else None
    rasterizer = SlideRasterizer(image_loader=ImageLoader(timeout=args.image_timeout))
    return await export_deck(deck, _progress, rasterizer=rasterizer, styling_cache=cache)


def main() -> int:
    parser = argparse.ArgumentParser(description="Export deck JSON to PDF, PPTX or PNG images")
    parser.add_argument("deck_json", help="Path to deck JSON")
    parser.add_argument("--out", default="./deck.pdf", help="Output PDF path")
    parser.add_argument("--pptx", help="Also write a PPTX to this path")
    parser.add_argument("--png-dir", help="Also write one PNG per slide into this directory")
    parser.add_argument("--image-timeout", type=float, default=EXPORT_IMAGE_TIMEOUT_SECONDS,
                        help="Seconds allowed per background image")
    parser.add_argument("--auto-style", action="store_true", help="Analyze content and apply an automatic theme")
    parser.add_argument("--log-level", default=None, help="Override the environment logging profile")
    args = parser.parse_args()

    setup_logging(args.log_level)

    try:
        document = asyncio.run(run(args))
    except (OSError, ValueError, ExportError) as e:
        logger.error(f"Export failed: {e}")
        return 1

    out_path = Path(args.out).resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    document.to_pdf(out_path)
    logger.info(f"Wrote {out_path}")
    if args.pptx:
        document.to_pptx(Path(args.pptx).resolve())
        logger.info(f"Wrote {args.pptx}")
    if args.png_dir:
        paths = document.save_pngs(Path(args.png_dir).resolve(), prefix="deck_slide")
        logger.info(f"Wrote {len(paths)} PNG files to {args.png_dir}")

    if document.failures:
        logger.warning(f"{len(document.failures)} slide(s) were replaced by fallback pages")
    return 0


if __name__ == "__main__":
    sys.exit(main())
