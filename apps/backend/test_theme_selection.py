"""
Tests for theme selection from content analysis.
"""

from models.styling import AudienceType, ContentAnalysis, IndustryType, ToneType
from services.theme_selection_service import map_hex_to_theme_color, select_theme_from_analysis


def test_industry_picks_first_color_theme():
    result = select_theme_from_analysis(ContentAnalysis(industry="retail"))
    assert result.color_theme == "orange"


def test_dominant_color_wins_over_industry():
    result = select_theme_from_analysis(ContentAnalysis(industry="retail", dominant_colors=["#10B981"]))
    assert result.color_theme == "green"


def test_design_style_from_industry_and_tone():
    result = select_theme_from_analysis(ContentAnalysis(industry=IndustryType.TECHNOLOGY, tone=ToneType.TECHNICAL))
    assert result.design_style == "minimal"
    assert result.font_style == "sans-serif"


def test_font_style_from_design_style_and_audience():
    classic = select_theme_from_analysis(ContentAnalysis(industry="finance", tone="formal"))
    assert classic.design_style == "classic"
    assert classic.font_style == "serif"

    bold = select_theme_from_analysis(
        ContentAnalysis(industry="retail", tone="urgent", audience=AudienceType.CUSTOMERS)
    )
    assert bold.design_style == "bold"
    assert bold.font_style == "display"


def test_recommended_image_types_add_keywords():
    analysis = ContentAnalysis(industry="technology", keywords=["ai", "platform", "growth", "cloud"])
    result = select_theme_from_analysis(analysis)
    assert result.recommended_image_types == ["technology", "digital", "office", "innovation", "platform"]


def test_unknown_labels_are_coerced():
    analysis = ContentAnalysis(industry="space mining", tone="whimsical", audience="aliens", content_density="??")
    assert analysis.industry == IndustryType.GENERAL
    assert analysis.tone == ToneType.NEUTRAL
    assert analysis.audience == AudienceType.MIXED
    result = select_theme_from_analysis(analysis)
    assert result.color_theme == "blue"
    assert result.design_style == "modern"


def test_bad_dominant_color_returns_safe_defaults():
    result = select_theme_from_analysis(ContentAnalysis(dominant_colors=["not-hex"]))
    assert result.color_theme == "blue"
    assert result.design_style == "modern"
    assert result.font_style == "sans-serif"
    assert result.recommended_image_types == ["business", "office", "professional"]


def test_map_hex_to_theme_color():
    assert map_hex_to_theme_color("#ff0000") == "red"
    assert map_hex_to_theme_color("#00f") == "blue"
    assert map_hex_to_theme_color("#ffff00") == "orange"
    assert map_hex_to_theme_color("#ffcc33") == "red"
    assert map_hex_to_theme_color("#40c8c8") == "teal"
    assert map_hex_to_theme_color("#c8c8c8") == "purple"
    assert map_hex_to_theme_color("#505050") == "blue"
