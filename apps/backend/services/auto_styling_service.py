"""
Automatic deck styling.

Ties together content analysis, theme selection and themed background
images. The result is a styled copy of the deck; nothing is persisted.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List, Optional

from models.deck import Deck
from models.slide import Slide
from models.styling import BackgroundImage, ContentAnalysis, StylingResult, ThemeSelectionResult
from services.deck_style_analyzer import DeckStyleAnalyzer
from services.theme_selection_service import select_theme_from_analysis
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

STYLED_DESIGN_STYLES = ('modern', 'classic', 'minimal', 'bold', 'creative')
STYLED_COLOR_THEMES = ('blue', 'green', 'purple', 'red', 'orange', 'teal')
STYLED_FONT_STYLES = ('serif', 'sans-serif')

# accent, highlight, secondary
THEME_ACCENT_COLORS: Dict[str, Dict[str, str]] = {
    'blue': {'accent_color': '#3B82F6', 'highlight_color': '#2563EB', 'secondary_color': '#1E40AF'},
    'green': {'accent_color': '#10B981', 'highlight_color': '#059669', 'secondary_color': '#047857'},
    'purple': {'accent_color': '#8B5CF6', 'highlight_color': '#7C3AED', 'secondary_color': '#6D28D9'},
}


def _unsplash(image_id: str, photo: str, description: str, color_theme: str) -> BackgroundImage:
    url = f"https://images.unsplash.com/{photo}"
    return BackgroundImage(
        id=image_id,
        url=url,
        thumbnail_url=f"{url}?w=200",
        description=description,
        author="Unsplash",
        color_theme=color_theme,
    )


CURATED_BACKGROUNDS: Dict[str, List[BackgroundImage]] = {
    'blue': [
        _unsplash('blue-gradient-1', 'photo-1579547945413-497e1b99f0c9', 'Blue gradient background', 'blue'),
        _unsplash('blue-abstract-1', 'photo-1557682250-28f91128cde1', 'Blue abstract waves', 'blue'),
        _unsplash('blue-tech-1', 'photo-1530533718754-001d2668365a', 'Blue technology background', 'blue'),
    ],
    'green': [
        _unsplash('green-gradient-1', 'photo-1560015534-cee980ba7e13', 'Green gradient background', 'green'),
        _unsplash('green-abstract-1', 'photo-1561059270-33e4b58d5566', 'Green abstract shapes', 'green'),
    ],
    'purple': [
        _unsplash('purple-gradient-1', 'photo-1568701349452-31dd8343bd9c', 'Purple gradient background', 'purple'),
        _unsplash('purple-abstract-1', 'photo-1566909493465-8960c7370e2c', 'Purple abstract waves', 'purple'),
    ],
    'red': [
        _unsplash('red-gradient-1', 'photo-1484589065579-248aad0d8b13', 'Red gradient background', 'red'),
    ],
    'orange': [
        _unsplash('orange-gradient-1', 'photo-1495015584635-2598d5212bb0', 'Orange gradient background', 'orange'),
    ],
    'teal': [
        _unsplash('teal-gradient-1', 'photo-1560451098-43ac7ee39ec2', 'Teal gradient background', 'teal'),
    ],
}


class BackgroundProvider(ABC):
    """Source of background images for a color theme."""

    @abstractmethod
    async def get_themed_backgrounds(self, color_theme: str) -> List[BackgroundImage]:
        pass


class StaticBackgroundProvider(BackgroundProvider):
    """Curated stock backgrounds; unknown themes get the blue set."""

    def __init__(self, backgrounds: Optional[Dict[str, List[BackgroundImage]]] = None):
        self.backgrounds = backgrounds if backgrounds is not None else CURATED_BACKGROUNDS

    async def get_themed_backgrounds(self, color_theme: str) -> List[BackgroundImage]:
        images = self.backgrounds.get(color_theme) or self.backgrounds.get('blue', [])
        return list(images)


class AutoStylingService:
    """Analyze a deck, pick a theme and backgrounds, and produce a styled copy."""

    def __init__(
        self,
        analyzer: Optional[DeckStyleAnalyzer] = None,
        background_provider: Optional[BackgroundProvider] = None,
    ):
        self.analyzer = analyzer or DeckStyleAnalyzer()
        self.background_provider = background_provider or StaticBackgroundProvider()

    async def auto_style_deck(self, deck: Deck) -> StylingResult:
        """
        Style a deck based on its content.

        Raises:
            ValueError: The deck has no id
        """
        if not deck.id:
            raise ValueError("Deck ID is required for styling")

        analysis = await self.analyzer.analyze(deck)
        theme = select_theme_from_analysis(analysis)
        backgrounds = await self._backgrounds(theme)
        styled = self.apply_styles(deck, theme, backgrounds)

        logger.info(
            f"Auto-styled deck {deck.id}: {theme.color_theme}/{theme.design_style}/{theme.font_style}, "
            f"{len(backgrounds)} backgrounds"
        )
        return StylingResult(deck=styled, analysis=analysis, theme=theme, backgrounds=backgrounds)

    def analysis_job(self, deck: Deck) -> Callable[[], Awaitable[StylingResult]]:
        """Job for StylingCache.begin_analysis."""
        async def run() -> StylingResult:
            return await self.auto_style_deck(deck)
        return run

    async def _backgrounds(self, theme: ThemeSelectionResult) -> List[BackgroundImage]:
        try:
            images = await self.background_provider.get_themed_backgrounds(theme.color_theme)
        except Exception as e:
            logger.error(f"Error getting themed backgrounds: {e}")
            return []
        logger.debug(f"Retrieved {len(images)} background images for color theme {theme.color_theme}")
        return images

    def apply_styles(
        self,
        deck: Deck,
        theme: ThemeSelectionResult,
        backgrounds: List[BackgroundImage],
    ) -> Deck:
        """Styled deep copy of the deck; the input is left untouched."""
        slides = [self._style_slide(slide, theme, backgrounds, index) for index, slide in enumerate(deck.slides)]
        return deck.model_copy(update={'slides': slides}, deep=True)

    @staticmethod
    def _style_slide(
        slide: Slide,
        theme: ThemeSelectionResult,
        backgrounds: List[BackgroundImage],
        index: int,
    ) -> Slide:
        updates = {}
        if theme.design_style in STYLED_DESIGN_STYLES:
            updates['design_style'] = theme.design_style
        if theme.color_theme in STYLED_COLOR_THEMES:
            updates['color_theme'] = theme.color_theme
        if theme.font_style in STYLED_FONT_STYLES:
            updates['font_style'] = theme.font_style
        if backgrounds:
            # Rotate through the available images
            updates['background_image'] = backgrounds[index % len(backgrounds)].url
        updates.update(THEME_ACCENT_COLORS.get(theme.color_theme, {}))

        content = slide.content.model_copy(update=updates, deep=True)
        return slide.model_copy(update={'content': content}, deep=True)


def analysis_summary(analysis: ContentAnalysis) -> str:
    """One line description of an analysis for logs and CLI output."""
    return (
        f"{analysis.industry.value} / {analysis.tone.value} / {analysis.audience.value}, "
        f"density {analysis.content_density.value}, keywords: {', '.join(analysis.keywords[:5]) or '-'}"
    )
