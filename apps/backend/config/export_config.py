"""
Configuration settings for deck export and rendering.
"""

import os
import logging
from typing import List

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}={raw!r}, using {default}")
        return default
    if value != value or value in (float("inf"), float("-inf")):
        logger.warning(f"Non-finite value for {name}={raw!r}, using {default}")
        return default
    return value


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(os.pathsep) if part.strip()]


#==============================================================================
# RASTER SURFACE
#==============================================================================

# Production slide resolution; PDF pages use the same size in points
EXPORT_CANVAS_WIDTH = _env_int("EXPORT_CANVAS_WIDTH", 1920)
EXPORT_CANVAS_HEIGHT = _env_int("EXPORT_CANVAS_HEIGHT", 1080)

# JPEG quality used when pages are embedded into PDF/PPTX
EXPORT_JPEG_QUALITY = _env_int("EXPORT_JPEG_QUALITY", 95)

#==============================================================================
# TEXT LAYOUT
#==============================================================================

# Readability floor for wrapped lines at export font sizes
EXPORT_MAX_CHARS_PER_LINE = _env_int("EXPORT_MAX_CHARS_PER_LINE", 60)

# Extra directories searched for TrueType fonts before the system defaults
EXPORT_FONT_DIRS = _env_list("EXPORT_FONT_DIRS", [])

#==============================================================================
# BACKGROUND IMAGES
#==============================================================================

# Hard cap on a single background image load, in seconds
EXPORT_IMAGE_TIMEOUT_SECONDS = _env_float("EXPORT_IMAGE_TIMEOUT_SECONDS", 5.0)

# Refuse to decode anything larger than this (bytes)
EXPORT_IMAGE_MAX_BYTES = _env_int("EXPORT_IMAGE_MAX_BYTES", 15 * 1024 * 1024)

EXPORT_IMAGE_HEADERS = {
    'User-Agent': os.getenv(
        "EXPORT_IMAGE_USER_AGENT",
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
    ),
    'Accept': 'image/webp,image/apng,image/*,*/*;q=0.8',
}

#==============================================================================
# THEME DEFAULTS
#==============================================================================

DEFAULT_COLOR_THEME = "blue"
DEFAULT_DESIGN_STYLE = "modern"
DEFAULT_FONT_STYLE = "sans-serif"

# Page fill used when nothing else resolves
DEFAULT_BACKGROUND_COLOR = "#0f172a"
