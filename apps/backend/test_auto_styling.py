"""
Tests for content analysis and automatic deck styling.
"""

import asyncio
import json

import pytest

from models.deck import Deck
from models.styling import (
    AudienceType,
    BackgroundImage,
    ContentDensity,
    IndustryType,
    StylingStatus,
    ToneType,
)
from services.auto_styling_service import (
    CURATED_BACKGROUNDS,
    AutoStylingService,
    BackgroundProvider,
    StaticBackgroundProvider,
)
from services.deck_style_analyzer import DeckStyleAnalyzer, strip_code_fences
from services.styling_cache import StylingCache


def deck_with(*texts, slide_type="content", deck_id="deck-1"):
    return Deck.model_validate({
        "id": deck_id,
        "title": "Deck",
        "slides": [
            {"id": f"s{i}", "title": "", "slide_type": slide_type, "content": {"paragraphs": [text]}}
            for i, text in enumerate(texts)
        ],
    })


def test_heuristic_keywords_by_frequency_then_first_seen():
    deck = deck_with("growth revenue growth this that with", "margin revenue growth team")
    result = DeckStyleAnalyzer().analyze_heuristically(deck)
    assert result.keywords[:4] == ["growth", "revenue", "margin", "team"]
    assert "this" not in result.keywords
    assert "with" not in result.keywords


def test_heuristic_keyword_limit():
    words = " ".join(f"word{i}" for i in range(20))
    result = DeckStyleAnalyzer().analyze_heuristically(deck_with(words))
    assert len(result.keywords) == 10


@pytest.mark.parametrize("text,industry", [
    ("Our software platform", IndustryType.TECHNOLOGY),
    ("Better patient outcomes in every hospital", IndustryType.HEALTHCARE),
    ("Lower loan rates for families", IndustryType.FINANCE),
    ("Every student deserves a great course", IndustryType.EDUCATION),
    ("Shop local, buy from the store", IndustryType.RETAIL),
    ("Nothing recognisable here", IndustryType.TECHNOLOGY),
])
def test_heuristic_industry(text, industry):
    assert DeckStyleAnalyzer().analyze_heuristically(deck_with(text)).industry == industry


def test_heuristic_fixed_tone_and_audience():
    result = DeckStyleAnalyzer().analyze_heuristically(deck_with("hello"))
    assert result.tone == ToneType.FORMAL
    assert result.audience == AudienceType.INVESTORS


def test_heuristic_density():
    analyzer = DeckStyleAnalyzer()
    assert analyzer.analyze_heuristically(deck_with("few words")).content_density == ContentDensity.LIGHT
    assert analyzer.analyze_heuristically(deck_with("word " * 80)).content_density == ContentDensity.MEDIUM
    assert analyzer.analyze_heuristically(deck_with("word " * 200)).content_density == ContentDensity.HEAVY


def test_heuristic_has_data():
    analyzer = DeckStyleAnalyzer()
    assert analyzer.analyze_heuristically(deck_with("Revenue up 45% this year")).has_data
    assert analyzer.analyze_heuristically(deck_with("Raising 5$ million")).has_data
    assert analyzer.analyze_heuristically(deck_with("No figures", slide_type="financials")).has_data
    assert not analyzer.analyze_heuristically(deck_with("Just words")).has_data


def test_llm_answer_is_validated():
    async def complete(prompt, system):
        assert "Deck" in prompt
        return "```json\n" + json.dumps({
            "industry": "Real Estate",
            "tone": "persuasive",
            "audience": "customers",
            "keywords": ["homes"],
            "dominant_colors": ["#10B981"],
        }) + "\n```"

    result = asyncio.run(DeckStyleAnalyzer(complete).analyze(deck_with("hello")))
    assert result.industry == IndustryType.REAL_ESTATE
    assert result.tone == ToneType.PERSUASIVE
    assert result.dominant_colors == ["#10B981"]


@pytest.mark.parametrize("answer", ["not json", "[1, 2, 3]", '{"has_data": "maybe"}', ""])
def test_unusable_llm_answer_falls_back_to_heuristic(answer):
    async def complete(prompt, system):
        return answer

    result = asyncio.run(DeckStyleAnalyzer(complete).analyze(deck_with("Our software platform")))
    assert result.industry == IndustryType.TECHNOLOGY
    assert result.tone == ToneType.FORMAL


def test_failing_completion_client_falls_back_to_heuristic():
    async def complete(prompt, system):
        raise ConnectionError("offline")

    result = asyncio.run(DeckStyleAnalyzer(complete).analyze(deck_with("patient care")))
    assert result.industry == IndustryType.HEALTHCARE


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_auto_style_requires_deck_id():
    deck = deck_with("hello", deck_id=None)
    with pytest.raises(ValueError):
        asyncio.run(AutoStylingService().auto_style_deck(deck))


def test_auto_style_returns_styled_copy():
    deck = deck_with("Our software platform", "More software", "Even more")
    original = deck.model_dump()
    result = asyncio.run(AutoStylingService().auto_style_deck(deck))

    assert deck.model_dump() == original
    assert result.theme.color_theme == "blue"
    assert result.backgrounds == CURATED_BACKGROUNDS["blue"]

    urls = [slide.content.background_image for slide in result.deck.slides]
    assert urls == [bg.url for bg in CURATED_BACKGROUNDS["blue"]][:3]
    first = result.deck.slides[0].content
    assert first.color_theme == "blue"
    assert first.design_style == "modern"
    assert first.font_style == "sans-serif"
    assert first.accent_color == "#3B82F6"
    assert first.highlight_color == "#2563EB"
    assert first.secondary_color == "#1E40AF"
    assert result.deck.slides[0].content.paragraphs == deck.slides[0].content.paragraphs


def test_backgrounds_rotate_by_slide_index():
    class TwoBackgrounds(BackgroundProvider):
        async def get_themed_backgrounds(self, color_theme):
            return [BackgroundImage(id="a", url="https://x/a.jpg"), BackgroundImage(id="b", url="https://x/b.jpg")]

    deck = deck_with("software", "b", "c", "d", "e")
    result = asyncio.run(AutoStylingService(background_provider=TwoBackgrounds()).auto_style_deck(deck))
    urls = [slide.content.background_image for slide in result.deck.slides]
    assert urls == ["https://x/a.jpg", "https://x/b.jpg", "https://x/a.jpg", "https://x/b.jpg", "https://x/a.jpg"]


def test_non_palette_fonts_are_not_applied():
    async def complete(prompt, system):
        return json.dumps({"industry": "retail", "tone": "urgent", "audience": "customers"})

    service = AutoStylingService(analyzer=DeckStyleAnalyzer(complete))
    result = asyncio.run(service.auto_style_deck(deck_with("anything")))
    assert result.theme.font_style == "display"
    content = result.deck.slides[0].content
    assert content.font_style is None
    assert content.design_style == "bold"
    assert content.color_theme == "orange"
    assert content.accent_color is None


def test_failing_background_provider_leaves_backgrounds_empty():
    class Broken(BackgroundProvider):
        async def get_themed_backgrounds(self, color_theme):
            raise RuntimeError("stock service down")

    result = asyncio.run(AutoStylingService(background_provider=Broken()).auto_style_deck(deck_with("software")))
    assert result.backgrounds == []
    assert result.deck.slides[0].content.background_image is None


def test_static_provider_falls_back_to_blue():
    images = asyncio.run(StaticBackgroundProvider().get_themed_backgrounds("magenta"))
    assert images == CURATED_BACKGROUNDS["blue"]


def test_analysis_job_runs_through_styling_cache():
    async def main():
        cache = StylingCache()
        deck = deck_with("Lower loan rates for families")
        task = cache.begin_analysis(deck.id, AutoStylingService().analysis_job(deck))
        await task
        assert cache.get_status(deck.id) == StylingStatus.COMPLETE
        assert cache.get_cached(deck.id).industry == IndustryType.FINANCE
        assert cache.get_cached_theme(deck.id).design_style == "classic"
        assert cache.get_cached_backgrounds(deck.id)

    asyncio.run(main())
