"""
Font lookup for the export rasterizer.

Fonts are resolved per (font style, weight, italic) from configured font
directories and well-known system locations, and cached per size. When no
TrueType file is found Pillow's bundled default font is used, so rendering
never depends on what is installed.
"""

import glob
import logging
import os
from typing import Dict, List, Optional, Tuple

from PIL import ImageFont

from config.export_config import EXPORT_FONT_DIRS

logger = logging.getLogger(__name__)

# Candidate files per font style; first existing path wins
FONT_PATHS: Dict[str, Dict[str, List[str]]] = {
    'sans-serif': {
        'regular': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',  # Linux
            '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',  # Linux
            '/System/Library/Fonts/Supplemental/Arial.ttf',  # macOS
            'C:\\Windows\\Fonts\\arial.ttf',  # Windows
        ],
        'bold': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
            '/System/Library/Fonts/Supplemental/Arial Bold.ttf',
            'C:\\Windows\\Fonts\\arialbd.ttf',
        ],
        'italic': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf',
            '/System/Library/Fonts/Supplemental/Arial Italic.ttf',
            'C:\\Windows\\Fonts\\ariali.ttf',
        ],
    },
    'serif': {
        'regular': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-Regular.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf',
            '/System/Library/Fonts/Supplemental/Times New Roman.ttf',
            'C:\\Windows\\Fonts\\times.ttf',
        ],
        'bold': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-Bold.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif-Bold.ttf',
            '/System/Library/Fonts/Supplemental/Times New Roman Bold.ttf',
            'C:\\Windows\\Fonts\\timesbd.ttf',
        ],
        'italic': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-Italic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif-Italic.ttf',
            '/System/Library/Fonts/Supplemental/Times New Roman Italic.ttf',
            'C:\\Windows\\Fonts\\timesi.ttf',
        ],
    },
}

# Named styles that map onto the two families above
FONT_STYLE_ALIASES = {
    'display': 'sans-serif',
    'montserrat': 'sans-serif',
    'roboto': 'sans-serif',
    'opensans': 'sans-serif',
    'lato': 'sans-serif',
    'poppins': 'sans-serif',
    'playfair': 'serif',
}

# Family name fragments searched for in EXPORT_FONT_DIRS
_DIR_PATTERNS = {
    'sans-serif': {'regular': '*Sans-Regular.ttf', 'bold': '*Sans-Bold.ttf', 'italic': '*Sans-Italic.ttf'},
    'serif': {'regular': '*Serif-Regular.ttf', 'bold': '*Serif-Bold.ttf', 'italic': '*Serif-Italic.ttf'},
}


class FontProvider:
    """Resolves and caches fonts by style, size and weight"""

    def __init__(self, font_dirs: Optional[List[str]] = None):
        self.font_dirs = list(EXPORT_FONT_DIRS if font_dirs is None else font_dirs)
        self._path_cache: Dict[Tuple[str, str], Optional[str]] = {}
        self._font_cache: Dict[Tuple[str, str, int], ImageFont.ImageFont] = {}

    @staticmethod
    def _family(font_style: Optional[str]) -> str:
        style = (font_style or 'sans-serif').lower()
        if style in FONT_PATHS:
            return style
        return FONT_STYLE_ALIASES.get(style, 'sans-serif')

    def _find_path(self, family: str, variant: str) -> Optional[str]:
        key = (family, variant)
        if key in self._path_cache:
            return self._path_cache[key]

        path = None
        for directory in self.font_dirs:
            matches = sorted(glob.glob(os.path.join(directory, _DIR_PATTERNS[family][variant])))
            if matches:
                path = matches[0]
                break
        if path is None:
            for candidate in FONT_PATHS[family][variant]:
                if os.path.exists(candidate):
                    path = candidate
                    break
        if path is None and variant != 'regular':
            path = self._find_path(family, 'regular')

        self._path_cache[key] = path
        return path

    def get_font(self, font_style: Optional[str], size: int, bold: bool = False, italic: bool = False):
        """Get font with caching"""
        family = self._family(font_style)
        variant = 'bold' if bold else 'italic' if italic else 'regular'
        cache_key = (family, variant, size)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        font_path = self._find_path(family, variant)
        font = None
        if font_path:
            try:
                font = ImageFont.truetype(font_path, size)
            except OSError as e:
                logger.warning(f"Failed to load font {font_path}: {e}, using default")
        if font is None:
            font = ImageFont.load_default(size=size)
        self._font_cache[cache_key] = font
        return font
