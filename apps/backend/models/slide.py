from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional
import re

# Image extensions recognised when a background reference is a bare path
_IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.webp', '.bmp', '.tif', '.tiff')
_COLOR_PREFIXES = ('#', 'rgb', 'hsl')
_NAMED_COLOR_RE = re.compile(r'^[a-z]+$')


def background_kind(value: Optional[str]) -> str:
    """
    Classify a background reference.

    Returns one of 'none', 'color', 'gradient' or 'image'. Anything that is
    neither a recognisable image reference nor a gradient/color expression is
    reported as 'color' so that it goes through color sanitization.
    """
    if value is None:
        return 'none'
    v = str(value).strip()
    if not v or v.lower() in ('none', 'transparent'):
        return 'none'
    lowered = v.lower()
    if 'gradient(' in lowered:
        return 'gradient'
    if lowered.startswith(('http://', 'https://', 'data:image', 'url(', 'file://')):
        return 'image'
    if lowered.startswith(_COLOR_PREFIXES) or _NAMED_COLOR_RE.match(lowered):
        return 'color'
    if lowered.endswith(_IMAGE_EXTENSIONS) or '/' in v:
        return 'image'
    return 'color'


class SlideContent(BaseModel):
    """
    Free-form content bag of a slide. Every field is optional; resolution of
    missing values happens in the theme resolver and rasterizer, never here.

    Attributes:
        headline: Main headline, falls back to the slide title when drawn
        subheadline: Secondary headline
        paragraphs: Ordered paragraph strings
        bullets: Ordered bullet strings
        background_image: Color/gradient expression, image URL or "none"
        color_theme / design_style / font_style: Per-slide theme override
        text_color / accent_color: Explicit color overrides
    """
    model_config = ConfigDict(extra='ignore')

    headline: Optional[str] = None
    subheadline: Optional[str] = None
    paragraphs: List[str] = Field(default_factory=list)
    bullets: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None

    # Design attributes
    background_image: Optional[str] = None
    background_color: Optional[str] = None
    color_theme: Optional[str] = None
    design_style: Optional[str] = None
    font_style: Optional[str] = None
    text_color: Optional[str] = None
    accent_color: Optional[str] = None
    highlight_color: Optional[str] = None
    secondary_color: Optional[str] = None

    @field_validator('paragraphs', 'bullets', mode='before')
    @classmethod
    def _coerce_text_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value if item is not None]
        return [str(value)]

    @field_validator(
        'headline', 'subheadline', 'image_url', 'background_image', 'background_color',
        'color_theme', 'design_style', 'font_style', 'text_color', 'accent_color',
        'highlight_color', 'secondary_color',
        mode='before',
    )
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def background_kind(self) -> str:
        return background_kind(self.background_image)

    @property
    def has_background_image(self) -> bool:
        """True when the slide asks for a background photo."""
        return self.background_kind == 'image'


class Slide(BaseModel):
    """
    Model representing one slide of a deck.

    Attributes:
        id: Identifier of the slide (may be absent for unsaved slides)
        title: Title of the slide
        position: Stored ordering key; may have gaps and is not used for export order
        slide_type: Slide kind tag (cover, problem, solution, data, content, ...)
        content: Free-form content record
    """
    id: Optional[str] = None
    title: str = ""
    position: int = 0
    slide_type: str = "content"
    content: SlideContent = Field(default_factory=SlideContent)

    @field_validator('title', mode='before')
    @classmethod
    def _coerce_title(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator('slide_type', mode='before')
    @classmethod
    def _coerce_slide_type(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return "content"
        return str(value).strip().lower()

    @field_validator('content', mode='before')
    @classmethod
    def _coerce_content(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator('position', mode='before')
    @classmethod
    def _coerce_position(cls, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @property
    def display_title(self) -> str:
        return self.content.headline or self.title
