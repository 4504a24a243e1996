"""
Smart theme selection.

Picks color theme, design style and font style from a content analysis.
"""

import logging
from typing import Dict, List

from models.styling import (
    AudienceType,
    ContentAnalysis,
    IndustryType,
    ThemeSelectionResult,
    ToneType,
)

logger = logging.getLogger(__name__)

INDUSTRY_THEME_MAP: Dict[IndustryType, List[str]] = {
    IndustryType.TECHNOLOGY: ['blue', 'purple', 'teal'],
    IndustryType.FINANCE: ['blue', 'green', 'teal'],
    IndustryType.HEALTHCARE: ['blue', 'green', 'teal'],
    IndustryType.EDUCATION: ['blue', 'purple', 'orange'],
    IndustryType.RETAIL: ['orange', 'red', 'green'],
    IndustryType.MANUFACTURING: ['blue', 'orange', 'green'],
    IndustryType.CREATIVE: ['purple', 'red', 'orange'],
    IndustryType.CONSULTING: ['blue', 'teal', 'purple'],
    IndustryType.REAL_ESTATE: ['blue', 'green', 'teal'],
    IndustryType.NON_PROFIT: ['purple', 'green', 'orange'],
    IndustryType.FOOD: ['orange', 'red', 'green'],
    IndustryType.TRAVEL: ['teal', 'blue', 'orange'],
    IndustryType.GENERAL: ['blue', 'purple', 'teal'],
}


def _tone_styles(formal, casual, technical, inspirational, informative, persuasive, urgent, neutral) -> Dict[ToneType, str]:
    return {
        ToneType.FORMAL: formal,
        ToneType.CASUAL: casual,
        ToneType.TECHNICAL: technical,
        ToneType.INSPIRATIONAL: inspirational,
        ToneType.INFORMATIVE: informative,
        ToneType.PERSUASIVE: persuasive,
        ToneType.URGENT: urgent,
        ToneType.NEUTRAL: neutral,
    }


# Design style per (industry, tone)
STYLE_MAPPING: Dict[IndustryType, Dict[ToneType, str]] = {
    IndustryType.TECHNOLOGY: _tone_styles('modern', 'modern', 'minimal', 'bold', 'modern', 'bold', 'bold', 'modern'),
    IndustryType.FINANCE: _tone_styles('classic', 'modern', 'minimal', 'modern', 'classic', 'modern', 'bold', 'classic'),
    IndustryType.HEALTHCARE: _tone_styles('classic', 'modern', 'minimal', 'modern', 'modern', 'modern', 'bold', 'modern'),
    IndustryType.EDUCATION: _tone_styles('classic', 'creative', 'minimal', 'creative', 'modern', 'modern', 'bold', 'modern'),
    IndustryType.RETAIL: _tone_styles('modern', 'creative', 'minimal', 'bold', 'modern', 'bold', 'bold', 'modern'),
    IndustryType.MANUFACTURING: _tone_styles('classic', 'modern', 'minimal', 'modern', 'modern', 'modern', 'bold', 'modern'),
    IndustryType.CREATIVE: _tone_styles('modern', 'creative', 'modern', 'creative', 'creative', 'creative', 'bold', 'creative'),
    IndustryType.CONSULTING: _tone_styles('classic', 'modern', 'minimal', 'modern', 'modern', 'modern', 'bold', 'modern'),
    IndustryType.REAL_ESTATE: _tone_styles('classic', 'modern', 'minimal', 'bold', 'modern', 'bold', 'bold', 'modern'),
    IndustryType.NON_PROFIT: _tone_styles('classic', 'creative', 'minimal', 'creative', 'modern', 'creative', 'bold', 'modern'),
    IndustryType.FOOD: _tone_styles('classic', 'creative', 'minimal', 'creative', 'creative', 'bold', 'bold', 'creative'),
    IndustryType.TRAVEL: _tone_styles('modern', 'creative', 'minimal', 'creative', 'creative', 'creative', 'bold', 'creative'),
    IndustryType.GENERAL: _tone_styles('classic', 'modern', 'minimal', 'modern', 'modern', 'modern', 'bold', 'modern'),
}

# Font style per (design style, audience); anything not listed is sans-serif
FONT_STYLE_MAPPING: Dict[str, Dict[AudienceType, str]] = {
    'modern': {audience: 'sans-serif' for audience in AudienceType},
    'classic': {audience: 'serif' for audience in AudienceType},
    'minimal': {audience: 'sans-serif' for audience in AudienceType},
    'bold': {
        AudienceType.INVESTORS: 'sans-serif',
        AudienceType.CUSTOMERS: 'display',
        AudienceType.EXECUTIVES: 'sans-serif',
        AudienceType.GENERAL_PUBLIC: 'display',
        AudienceType.TECHNICAL: 'sans-serif',
        AudienceType.INTERNAL: 'sans-serif',
        AudienceType.PARTNERS: 'sans-serif',
        AudienceType.MIXED: 'display',
    },
    'creative': {
        **{audience: 'display' for audience in AudienceType},
        AudienceType.TECHNICAL: 'sans-serif',
    },
}

BASE_IMAGE_TYPES: Dict[IndustryType, List[str]] = {
    IndustryType.TECHNOLOGY: ['technology', 'digital', 'office', 'innovation'],
    IndustryType.FINANCE: ['finance', 'business', 'professional', 'office'],
    IndustryType.HEALTHCARE: ['healthcare', 'medical', 'professional', 'care'],
    IndustryType.EDUCATION: ['education', 'learning', 'classroom', 'students'],
    IndustryType.RETAIL: ['retail', 'store', 'shopping', 'products'],
    IndustryType.MANUFACTURING: ['factory', 'industrial', 'machinery', 'production'],
    IndustryType.CREATIVE: ['creative', 'design', 'art', 'colorful'],
    IndustryType.CONSULTING: ['business', 'meeting', 'professional', 'office'],
    IndustryType.REAL_ESTATE: ['real estate', 'property', 'architecture', 'homes'],
    IndustryType.NON_PROFIT: ['community', 'people', 'volunteer', 'collaboration'],
    IndustryType.FOOD: ['food', 'restaurant', 'cooking', 'ingredients'],
    IndustryType.TRAVEL: ['travel', 'destination', 'landscape', 'adventure'],
    IndustryType.GENERAL: ['business', 'professional', 'abstract', 'modern'],
}

DEFAULT_SELECTION = ThemeSelectionResult(
    color_theme='blue',
    design_style='modern',
    font_style='sans-serif',
    recommended_image_types=['business', 'office', 'professional'],
)


def map_hex_to_theme_color(hex_color: str) -> str:
    """Map a hex color to a theme by its dominant channel."""
    hex_value = hex_color.strip().lstrip('#')
    if len(hex_value) == 3:
        hex_value = ''.join(ch * 2 for ch in hex_value)
    r = int(hex_value[0:2], 16)
    g = int(hex_value[2:4], 16)
    b = int(hex_value[4:6], 16)

    if r > g and r > b:
        return 'red'
    if g > r and g > b:
        return 'green'
    if b > r and b > g:
        return 'blue'

    # No single dominant channel
    if r > 200 and g > 150 and b < 100:
        return 'orange'
    if r > 100 and g > 100 and b > 150:
        return 'purple'
    if r < 100 and g > 150 and b > 150:
        return 'teal'
    return 'blue'


def _select_color_theme(analysis: ContentAnalysis) -> str:
    if analysis.dominant_colors:
        return map_hex_to_theme_color(analysis.dominant_colors[0])
    themes = INDUSTRY_THEME_MAP.get(analysis.industry, INDUSTRY_THEME_MAP[IndustryType.GENERAL])
    return themes[0]


def _select_design_style(analysis: ContentAnalysis) -> str:
    return STYLE_MAPPING.get(analysis.industry, {}).get(analysis.tone, 'modern')


def _select_font_style(design_style: str, audience: AudienceType) -> str:
    return FONT_STYLE_MAPPING.get(design_style, {}).get(audience, 'sans-serif')


def _recommended_image_types(analysis: ContentAnalysis) -> List[str]:
    industry_types = BASE_IMAGE_TYPES.get(analysis.industry, BASE_IMAGE_TYPES[IndustryType.GENERAL])
    keyword_types = [k for k in analysis.keywords if len(k) > 3][:2]
    return (industry_types + keyword_types)[:5]


def select_theme_from_analysis(analysis: ContentAnalysis) -> ThemeSelectionResult:
    """
    Select the theme best matching a content analysis.

    Returns safe defaults (blue / modern / sans-serif) if anything in the
    analysis cannot be mapped.
    """
    try:
        design_style = _select_design_style(analysis)
        return ThemeSelectionResult(
            color_theme=_select_color_theme(analysis),
            design_style=design_style,
            font_style=_select_font_style(design_style, analysis.audience),
            recommended_image_types=_recommended_image_types(analysis),
        )
    except Exception as e:
        logger.error(f"Error selecting theme: {e}")
        return DEFAULT_SELECTION.model_copy(deep=True)
