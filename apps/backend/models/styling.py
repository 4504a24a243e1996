"""
Models for content analysis and AI-driven styling.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.deck import Deck


class IndustryType(str, Enum):
    """Industries supported for specialized styling."""
    TECHNOLOGY = "technology"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    RETAIL = "retail"
    MANUFACTURING = "manufacturing"
    CREATIVE = "creative"
    CONSULTING = "consulting"
    REAL_ESTATE = "real_estate"
    NON_PROFIT = "non_profit"
    FOOD = "food"
    TRAVEL = "travel"
    GENERAL = "general"


class ToneType(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    TECHNICAL = "technical"
    INSPIRATIONAL = "inspirational"
    INFORMATIVE = "informative"
    PERSUASIVE = "persuasive"
    URGENT = "urgent"
    NEUTRAL = "neutral"


class AudienceType(str, Enum):
    INVESTORS = "investors"
    CUSTOMERS = "customers"
    EXECUTIVES = "executives"
    GENERAL_PUBLIC = "general_public"
    TECHNICAL = "technical"
    INTERNAL = "internal"
    PARTNERS = "partners"
    MIXED = "mixed"


class ContentDensity(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class StylingStatus(str, Enum):
    """Styling status for a deck."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    normalized = str(value).strip().lower().replace(' ', '_').replace('-', '_')
    try:
        return enum_cls(normalized)
    except ValueError:
        return default


class ContentAnalysis(BaseModel):
    """
    Classification of deck content used to auto-select a theme.

    Unknown enumerated values coerce to general / neutral / mixed / medium so
    that an LLM answer with a creative label still validates.
    """
    model_config = ConfigDict(use_enum_values=False)

    industry: IndustryType = IndustryType.GENERAL
    tone: ToneType = ToneType.NEUTRAL
    audience: AudienceType = AudienceType.MIXED
    keywords: List[str] = Field(default_factory=list)
    content_density: ContentDensity = ContentDensity.MEDIUM
    has_data: bool = False
    dominant_colors: List[str] = Field(default_factory=list, description="Hex color codes")
    style_keywords: List[str] = Field(default_factory=list)

    @field_validator('industry', mode='before')
    @classmethod
    def _industry(cls, value: Any) -> IndustryType:
        return _coerce_enum(IndustryType, value, IndustryType.GENERAL)

    @field_validator('tone', mode='before')
    @classmethod
    def _tone(cls, value: Any) -> ToneType:
        return _coerce_enum(ToneType, value, ToneType.NEUTRAL)

    @field_validator('audience', mode='before')
    @classmethod
    def _audience(cls, value: Any) -> AudienceType:
        return _coerce_enum(AudienceType, value, AudienceType.MIXED)

    @field_validator('content_density', mode='before')
    @classmethod
    def _density(cls, value: Any) -> ContentDensity:
        return _coerce_enum(ContentDensity, value, ContentDensity.MEDIUM)

    @field_validator('keywords', 'dominant_colors', 'style_keywords', mode='before')
    @classmethod
    def _string_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple, set)):
            return [str(value)]
        return [str(v) for v in value if v is not None and str(v).strip()]


class ThemeSelectionResult(BaseModel):
    """Theme picked from a content analysis."""
    color_theme: str = "blue"
    design_style: str = "modern"
    font_style: str = "sans-serif"
    recommended_image_types: List[str] = Field(default_factory=list)


class BackgroundImage(BaseModel):
    """Stock background candidate for a color theme."""
    id: str
    url: str
    thumbnail_url: Optional[str] = None
    description: str = ""
    author: str = ""
    color_theme: Optional[str] = None


class StylingResult(BaseModel):
    """Outcome of auto-styling one deck. The deck is a styled copy."""
    deck: Optional[Deck] = None
    analysis: ContentAnalysis
    theme: ThemeSelectionResult
    backgrounds: List[BackgroundImage] = Field(default_factory=list)


class StylingCacheEntry(BaseModel):
    """Last successful analysis triple for one deck."""
    analysis: ContentAnalysis
    theme: Optional[ThemeSelectionResult] = None
    backgrounds: List[BackgroundImage] = Field(default_factory=list)
    stored_at: datetime = Field(default_factory=datetime.now)
