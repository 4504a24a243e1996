from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator
from models.slide import Slide


class Deck(BaseModel):
    """
    Model representing a deck handed to the export engine.

    The engine only reads decks; persistence belongs to the caller.

    Attributes:
        id: Deck identity, used as the styling cache key
        title: Title of the deck
        slides: Slides in the order they will be exported
        color_theme / design_style / font_style: Deck-level default theme
    """
    id: Optional[str] = Field(None, validation_alias=AliasChoices('id', 'uuid'))
    title: str = Field("", validation_alias=AliasChoices('title', 'name'))
    slides: List[Slide] = Field(default_factory=list, description="Slides in export order")
    color_theme: Optional[str] = Field(None, validation_alias=AliasChoices('color_theme', 'colorTheme'))
    design_style: Optional[str] = Field(None, validation_alias=AliasChoices('design_style', 'designStyle'))
    font_style: Optional[str] = Field(None, validation_alias=AliasChoices('font_style', 'fontStyle'))

    @field_validator('slides', mode='before')
    @classmethod
    def _coerce_slides(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator('title', mode='before')
    @classmethod
    def _coerce_title(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def default_theme(self) -> Dict[str, Optional[str]]:
        """Deck-level theme defaults as a plain mapping."""
        return {
            'color_theme': self.color_theme,
            'design_style': self.design_style,
            'font_style': self.font_style,
        }
