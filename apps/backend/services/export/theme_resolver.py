"""
Theme resolution for export.

Per field (color theme, design style, font style) the first known value
wins, in this order: slide override, completed styling analysis, deck
default, global default.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from config.export_config import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_COLOR_THEME,
    DEFAULT_DESIGN_STYLE,
    DEFAULT_FONT_STYLE,
)
from models.deck import Deck
from models.slide import SlideContent
from models.styling import ContentAnalysis, StylingStatus, ThemeSelectionResult
from models.theme import ThemeRecord
from services.export.color_sanitizer import format_color, parse_color
from services.theme_selection_service import select_theme_from_analysis

logger = logging.getLogger(__name__)

# primary / secondary / accent per color theme
THEME_PALETTES: Dict[str, Dict[str, str]] = {
    'blue': {'primary': '#3B82F6', 'secondary': '#93C5FD', 'accent': '#1D4ED8'},
    'green': {'primary': '#10B981', 'secondary': '#6EE7B7', 'accent': '#059669'},
    'purple': {'primary': '#8B5CF6', 'secondary': '#C4B5FD', 'accent': '#7C3AED'},
    'red': {'primary': '#EF4444', 'secondary': '#FCA5A5', 'accent': '#DC2626'},
    'orange': {'primary': '#F97316', 'secondary': '#FDBA74', 'accent': '#EA580C'},
    'teal': {'primary': '#14B8A6', 'secondary': '#5EEAD4', 'accent': '#0D9488'},
    'coral': {'primary': '#F43F5E', 'secondary': '#FB7185', 'accent': '#BE123C'},
    'light': {'primary': '#4F46E5', 'secondary': '#A5B4FC', 'accent': '#4338CA'},
    'dark': {'primary': '#4B5563', 'secondary': '#9CA3AF', 'accent': '#1E40AF'},
    'royal_blue': {'primary': '#1E40AF', 'secondary': '#3B82F6', 'accent': '#2563EB'},
    'forest': {'primary': '#059669', 'secondary': '#34D399', 'accent': '#047857'},
    'gradient': {'primary': '#6366F1', 'secondary': '#A855F7', 'accent': '#EC4899'},
}

# Dark page fills; text on these is always white
THEME_BACKGROUNDS: Dict[str, str] = {
    'blue': '#1e3a8a',
    'green': '#064e3b',
    'red': '#7f1d1d',
    'purple': '#581c87',
    'gray': '#1f2937',
    'yellow': '#854d0e',
    'orange': '#7c2d12',
    'teal': '#134e4a',
    'custom': '#1e293b',
}

# Bright accent drawn on top of the dark fills
BRAND_ACCENTS: Dict[str, str] = {
    'blue': '#4FC3F7',
    'green': '#81C784',
    'purple': '#B39DDB',
    'red': '#FF8A65',
    'orange': '#FFB74D',
    'teal': '#4DB6AC',
}
DEFAULT_BRAND_ACCENT = '#64B5F6'

DESIGN_STYLES = ('modern', 'classic', 'minimal', 'bold', 'creative')
FONT_STYLES = ('sans-serif', 'serif', 'display', 'montserrat', 'playfair', 'roboto', 'opensans', 'lato', 'poppins')

ThemeSource = Union[str, Deck, Mapping[str, Any], None]


def get_theme_background(color_theme: Optional[str]) -> str:
    """Dark page fill for a color theme."""
    return THEME_BACKGROUNDS.get(_normalize_id(color_theme) or '', DEFAULT_BACKGROUND_COLOR)


def get_brand_accent(color_theme: Optional[str]) -> str:
    """Bright accent color for a color theme."""
    return BRAND_ACCENTS.get(_normalize_id(color_theme) or '', DEFAULT_BRAND_ACCENT)


def _normalize_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, 'value'):
        value = value.value
    text = str(value).strip().lower()
    return text or None


def _known(value: Any, allowed) -> Optional[str]:
    normalized = _normalize_id(value)
    if normalized is None:
        return None
    if normalized.replace('-', '_') in allowed:
        return normalized.replace('-', '_')
    if normalized in allowed:
        return normalized
    return None


def _deck_defaults(deck_default_theme: ThemeSource) -> Dict[str, Any]:
    if deck_default_theme is None:
        return {}
    if isinstance(deck_default_theme, str):
        return {'color_theme': deck_default_theme}
    if isinstance(deck_default_theme, Deck):
        return deck_default_theme.default_theme()
    if isinstance(deck_default_theme, Mapping):
        return dict(deck_default_theme)
    logger.debug(f"Ignoring deck default theme of type {type(deck_default_theme).__name__}")
    return {}


def _analysis_defaults(analysis: Any, analysis_status: Any) -> Dict[str, Any]:
    status = _normalize_id(analysis_status)
    if analysis is None or status != StylingStatus.COMPLETE.value:
        return {}
    if isinstance(analysis, ThemeSelectionResult):
        return analysis.model_dump()
    if isinstance(analysis, ContentAnalysis):
        return select_theme_from_analysis(analysis).model_dump()
    if isinstance(analysis, Mapping):
        return dict(analysis)
    return {}


def _pick(field_name: str, allowed, *sources: Mapping[str, Any]) -> Optional[str]:
    for source in sources:
        value = _known(source.get(field_name), allowed)
        if value is not None:
            return value
    return None


def resolve_theme(
    slide_content: Union[SlideContent, Mapping[str, Any], None],
    deck_default_theme: ThemeSource = None,
    analysis: Any = None,
    analysis_status: Any = None,
) -> ThemeRecord:
    """
    Produce the fully populated theme for one slide.

    Args:
        slide_content: Slide content carrying optional per-slide overrides
        deck_default_theme: Theme id string, Deck, or mapping of theme fields
        analysis: ContentAnalysis or ThemeSelectionResult from styling
        analysis_status: Styling status; analysis is used only when complete

    Returns:
        ThemeRecord; unknown ids at every level resolve to the global default
    """
    if slide_content is None:
        content: Dict[str, Any] = {}
    elif isinstance(slide_content, SlideContent):
        content = slide_content.model_dump()
    else:
        content = dict(slide_content)

    analysis_fields = _analysis_defaults(analysis, analysis_status)
    deck_fields = _deck_defaults(deck_default_theme)

    color_theme = _pick('color_theme', THEME_PALETTES, content, analysis_fields, deck_fields) or DEFAULT_COLOR_THEME
    design_style = _pick('design_style', DESIGN_STYLES, content, analysis_fields, deck_fields) or DEFAULT_DESIGN_STYLE
    font_style = _pick('font_style', FONT_STYLES, content, analysis_fields, deck_fields) or DEFAULT_FONT_STYLE

    palette = THEME_PALETTES[color_theme]
    accent = get_brand_accent(color_theme)
    text = "#ffffff"

    accent_override = parse_color(content.get('accent_color'))
    if accent_override is not None:
        accent = format_color(accent_override)
    text_override = parse_color(content.get('text_color'))
    if text_override is not None:
        text = format_color(text_override)

    return ThemeRecord(
        color_theme=color_theme,
        design_style=design_style,
        font_style=font_style,
        primary=palette['primary'].lower(),
        secondary=palette['secondary'].lower(),
        accent=accent.lower(),
        background=get_theme_background(color_theme),
        text=text,
    )
