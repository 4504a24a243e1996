"""
Deck Style Analyzer Service

This service analyzes deck content to classify its industry, tone, audience
and density. The classification drives automatic theme selection.
"""

import json
import logging
import re
from collections import Counter
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from models.deck import Deck
from models.styling import AudienceType, ContentAnalysis, ContentDensity, IndustryType, ToneType

logger = logging.getLogger(__name__)

# Opaque completion client: complete(prompt, system) -> raw text
CompleteFn = Callable[[str, str], Awaitable[str]]

STOP_WORDS = frozenset(['this', 'that', 'with', 'from', 'have', 'your'])
MAX_KEYWORDS = 10

# Checked in order; the first industry with a matching keyword wins
INDUSTRY_KEYWORDS: Dict[IndustryType, List[str]] = {
    IndustryType.TECHNOLOGY: ['software', 'app', 'technology', 'tech', 'digital', 'platform', 'online'],
    IndustryType.HEALTHCARE: ['health', 'medical', 'care', 'patient', 'hospital', 'clinic', 'wellness'],
    IndustryType.FINANCE: ['finance', 'financial', 'banking', 'investment', 'money', 'payment', 'loan'],
    IndustryType.EDUCATION: ['education', 'learning', 'school', 'student', 'teach', 'course', 'training'],
    IndustryType.RETAIL: ['retail', 'shop', 'store', 'product', 'consumer', 'customer', 'sale'],
}

DATA_SLIDE_TYPES = ('data', 'financials')
LIGHT_WORDS_PER_SLIDE = 40
MEDIUM_WORDS_PER_SLIDE = 120

_WORD_SPLIT_RE = re.compile(r'\W+')
_DATA_FIGURE_RE = re.compile(r'\d\s*[%$]')
_CODE_FENCE_RE = re.compile(r'^```(?:json)?\s*|\s*```$', re.IGNORECASE)

SYSTEM_PROMPT = "You are a design expert that provides styling recommendations for business presentations."


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json fence from a model answer."""
    return _CODE_FENCE_RE.sub('', text.strip()).strip()


class DeckStyleAnalyzer:
    """Analyzes deck content to determine appropriate styling inputs"""

    def __init__(self, complete: Optional[CompleteFn] = None):
        self.complete = complete

    async def analyze(self, deck: Deck) -> ContentAnalysis:
        """
        Classify a deck.

        Uses the completion client when one is configured and falls back to
        the keyword heuristic when there is none or its answer is unusable.
        """
        if self.complete is None:
            return self.analyze_heuristically(deck)

        prompt = self._build_prompt(deck)
        try:
            raw = await self.complete(prompt, SYSTEM_PROMPT)
            data = json.loads(strip_code_fences(raw or ''))
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
            analysis = ContentAnalysis.model_validate(data)
            logger.info(f"Deck content analysis complete: {analysis.industry.value} - {analysis.tone.value}")
            return analysis
        except (ValueError, ValidationError) as e:
            logger.warning(f"Unusable content analysis answer, using heuristic: {e}")
        except Exception as e:
            logger.error(f"Error analyzing deck content: {e}")
        return self.analyze_heuristically(deck)

    def analyze_heuristically(self, deck: Deck) -> ContentAnalysis:
        """Keyword based classification that needs no external service."""
        texts = [self._slide_text(slide) for slide in deck.slides]
        all_text = ' '.join(t for t in texts if t).lower()

        words = [w for w in _WORD_SPLIT_RE.split(all_text) if len(w) > 3 and w not in STOP_WORDS]
        # Counter keeps first-seen order for equal counts
        keywords = [word for word, _ in Counter(words).most_common(MAX_KEYWORDS)]

        return ContentAnalysis(
            industry=self._detect_industry(all_text),
            tone=ToneType.FORMAL,
            audience=AudienceType.INVESTORS,
            keywords=keywords,
            content_density=self._density(texts),
            has_data=self._has_data(deck, all_text),
        )

    @staticmethod
    def _slide_text(slide) -> str:
        content = slide.content
        parts = [slide.title, content.headline, *content.paragraphs, *content.bullets]
        return ' '.join(p for p in parts if p)

    @staticmethod
    def _detect_industry(text: str) -> IndustryType:
        for industry, keywords in INDUSTRY_KEYWORDS.items():
            if any(keyword in text for keyword in keywords):
                return industry
        return IndustryType.TECHNOLOGY

    @staticmethod
    def _density(texts: List[str]) -> ContentDensity:
        if not texts:
            return ContentDensity.LIGHT
        total_words = sum(len(t.split()) for t in texts)
        per_slide = total_words / len(texts)
        if per_slide < LIGHT_WORDS_PER_SLIDE:
            return ContentDensity.LIGHT
        if per_slide < MEDIUM_WORDS_PER_SLIDE:
            return ContentDensity.MEDIUM
        return ContentDensity.HEAVY

    @staticmethod
    def _has_data(deck: Deck, text: str) -> bool:
        if any(slide.slide_type in DATA_SLIDE_TYPES for slide in deck.slides):
            return True
        return bool(_DATA_FIGURE_RE.search(text))

    def _build_prompt(self, deck: Deck) -> str:
        return f"""
Analyze this presentation deck and classify its content for styling.

DECK INFORMATION:
Title: {deck.title or 'Untitled'}

SLIDE CONTENT SUMMARY:
{self._prepare_content_summary(deck)}

Respond with a JSON object with these keys:
- industry: one of {', '.join(i.value for i in IndustryType)}
- tone: one of {', '.join(t.value for t in ToneType)}
- audience: one of {', '.join(a.value for a in AudienceType)}
- keywords: up to 10 key terms
- content_density: light, medium or heavy
- has_data: true when the deck presents figures or charts
- dominant_colors: 0-3 hex color codes that fit the content
- style_keywords: 2-4 words describing the visual style
"""

    def _prepare_content_summary(self, deck: Deck) -> str:
        """Prepare a summary of slide content for analysis"""
        summary_parts = []

        for i, slide in enumerate(deck.slides[:10]):  # Analyze first 10 slides
            text = ' '.join([*slide.content.paragraphs, *slide.content.bullets])
            content_preview = text[:200] + "..." if len(text) > 200 else text
            summary_parts.append(f"Slide {i+1} ({slide.slide_type}) - {slide.display_title}: {content_preview}")

        if len(deck.slides) > 10:
            summary_parts.append(f"... and {len(deck.slides) - 10} more slides")

        return "\n".join(summary_parts)
