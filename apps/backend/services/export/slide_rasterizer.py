"""
Slide Rasterizer - Draws one slide's content into a fixed-size raster

Drawing is a fixed sequence of passes over a DrawingSurface:
  1. Fill: theme or custom background, dark overlay, diagonal depth gradient
  2. Decorate: motif chosen by slide kind, plus a corner accent
  3. Background image on the right, when the slide asks for one
  4. Header bar in the brand accent
  5. Headline and subheadline
  6. Wrapped paragraphs
  7. Bullets, continuing below the paragraphs
  8. Footer with slide kind and "i/n" counter

Only the image load suspends. An image that fails or times out is logged
and skipped; any other failure is raised as SlideRasterizationError.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from config.export_config import (
    EXPORT_CANVAS_HEIGHT,
    EXPORT_CANVAS_WIDTH,
    EXPORT_MAX_CHARS_PER_LINE,
)
from models.slide import Slide, background_kind
from models.theme import ThemeRecord
from services.export.color_sanitizer import (
    LinearGradient,
    RGBA,
    parse_color,
    parse_gradient,
    sanitize,
)
from services.export.exceptions import SlideRasterizationError
from services.export.fonts import FontProvider
from services.export.image_loader import ImageLoader
from services.export.surface import DrawingSurface, SurfaceFactory, pillow_surface_factory
from services.export.text_layout import wrap

logger = logging.getLogger(__name__)

# Overlays
DARK_OVERLAY = LinearGradient(angle=180.0, stops=[(RGBA(0, 0, 0, 0.3), 0.0), (RGBA(0, 0, 0, 0.6), 1.0)])
DEPTH_STOPS = [(RGBA(255, 255, 255, 0.1), 0.0), (RGBA(255, 255, 255, 0.05), 0.5), (RGBA(0, 0, 0, 0.2), 1.0)]

# Motifs
STRIPE_WIDTH = 30
STRIPE_SPACING = 220
MOTIF_ALPHA = 0.1
GRID_SIZE = 100
CORNER_SIZE = 200
CORNER_ALPHA = 0.2
STRIPE_KINDS = ('cover', 'closing')
CIRCLE_KINDS = ('problem', 'solution')
# Stroke weight multiplier per design style
STROKE_WEIGHTS = {'modern': 1.0, 'classic': 0.8, 'minimal': 0.5, 'bold': 1.5, 'creative': 1.2}

# Background image box
IMAGE_WIDTH_RATIO = 0.45
IMAGE_HEIGHT_RATIO = 0.7
IMAGE_MARGIN = 100
IMAGE_ALPHA = 0.9
IMAGE_BORDER = ('rgba(255,255,255,0.7)', 4)

# Header
HEADER_HEIGHT = 100
HEADER_ALPHA = 0.8

# Text
TEXT_LEFT = 150
HEADLINE_SIZE = 72
HEADLINE_Y = 200
HEADLINE_SHADOW = ('rgba(0,0,0,0.5)', 6, 2, 2)
SUBHEADLINE_SIZE = 48
SUBHEADLINE_Y = 280
PARAGRAPH_SIZE = 36
PARAGRAPH_START_Y = 350
PARAGRAPH_LINE_STEP = PARAGRAPH_SIZE * 150 / 36
PARAGRAPH_GAP = 120
BODY_SHADOW = ('rgba(0,0,0,0.5)', 4, 2, 2)
BULLET_SIZE = 40
BULLET_TEXT_X = 200
BULLET_DISC_RADIUS = 12
BULLET_DISC_RISE = 15
BULLET_LINE_STEP = 130
BULLET_GAP = 180
BULLETS_DEFAULT_Y = 450

# Footer
FOOTER_SIZE = 24
FOOTER_MARGIN_X = 100
FOOTER_MARGIN_BOTTOM = 50


@dataclass
class RasterReport:
    """What was drawn for one slide, for logs and tests."""
    slide_index: int
    slide_kind: str
    motif: str = ''
    background: str = 'theme'
    headline: str = ''
    subheadline_drawn: bool = False
    paragraph_lines: List[List[str]] = field(default_factory=list)
    bullet_lines: List[List[str]] = field(default_factory=list)
    bullets_start_y: Optional[float] = None
    content_bottom_y: float = 0.0
    image_requested: bool = False
    image_drawn: bool = False
    image_error: Optional[str] = None
    footer: Tuple[str, str] = ('', '')


def image_source(slide: Slide) -> Optional[str]:
    """Image reference for the right-hand image box, if any."""
    content = slide.content
    if content.has_background_image:
        return content.background_image
    if content.image_url and background_kind(content.image_url) == 'image':
        return content.image_url
    return None


class SlideRasterizer:
    """Renders slides to rasters for export"""

    def __init__(
        self,
        image_loader: Optional[ImageLoader] = None,
        surface_factory: Optional[SurfaceFactory] = None,
        font_provider: Optional[FontProvider] = None,
        width: int = EXPORT_CANVAS_WIDTH,
        height: int = EXPORT_CANVAS_HEIGHT,
        max_chars: int = EXPORT_MAX_CHARS_PER_LINE,
    ):
        self.image_loader = image_loader or ImageLoader()
        self.surface_factory = surface_factory or pillow_surface_factory
        self.fonts = font_provider or FontProvider()
        self.width = width
        self.height = height
        self.max_chars = max_chars

    async def rasterize(self, slide: Slide, theme: ThemeRecord, slide_index: int = 0,
                        slide_count: int = 1) -> DrawingSurface:
        surface, _ = await self.rasterize_with_report(slide, theme, slide_index, slide_count)
        return surface

    async def rasterize_with_report(
        self,
        slide: Slide,
        theme: ThemeRecord,
        slide_index: int = 0,
        slide_count: int = 1,
    ) -> Tuple[DrawingSurface, RasterReport]:
        """
        Draw a slide.

        Args:
            slide: Slide to draw
            theme: Resolved theme for the slide
            slide_index: Zero-based position in the deck
            slide_count: Number of slides in the deck

        Returns:
            The drawn surface and a report of what was drawn

        Raises:
            SlideRasterizationError: Drawing failed for a reason other than the image
        """
        report = RasterReport(slide_index=slide_index, slide_kind=slide.slide_type)
        try:
            surface = self.surface_factory(self.width, self.height, theme.background)
            self._draw_background(surface, slide, theme, report)
            self._draw_motif(surface, slide.slide_type, theme, report)

            source = image_source(slide)
            report.image_requested = source is not None
            if source is not None:
                await self._draw_image(surface, source, report)

            self._draw_header(surface, theme)
            self._draw_headlines(surface, slide, theme, slide_index, report)
            y = self._draw_paragraphs(surface, slide, theme, report)
            y = self._draw_bullets(surface, slide, theme, y, report)
            report.content_bottom_y = y
            self._draw_footer(surface, slide, theme, slide_index, slide_count, report)
        except SlideRasterizationError:
            raise
        except Exception as e:
            raise SlideRasterizationError(
                slide_index,
                f"Failed to render slide {slide_index + 1}",
                slide_title=slide.display_title or None,
                cause=e,
            )
        return surface, report

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _draw_background(self, surface: DrawingSurface, slide: Slide, theme: ThemeRecord,
                         report: RasterReport) -> None:
        W, H = surface.width, surface.height
        content = slide.content

        custom = None
        if content.background_kind == 'gradient':
            custom = sanitize(content.background_image, theme.background)
        elif content.background_kind == 'color' and parse_color(content.background_image) is not None:
            custom = sanitize(content.background_image, theme.background)
        elif content.background_color:
            custom = sanitize(content.background_color, theme.background)

        surface.fill_rect(0, 0, W, H, theme.background)
        if custom is not None:
            gradient = parse_gradient(custom)
            if gradient is not None:
                surface.fill_linear_gradient(0, 0, W, H, gradient)
                report.background = 'gradient'
            elif parse_color(custom) is not None:
                surface.fill_rect(0, 0, W, H, custom)
                report.background = 'color'

        surface.fill_linear_gradient(0, 0, W, H, DARK_OVERLAY)
        # Top-left to bottom-right regardless of aspect ratio, like a canvas gradient
        surface.fill_linear_gradient(0, 0, W, H, LinearGradient(angle=_corner_angle(W, H), stops=DEPTH_STOPS))

    def _draw_motif(self, surface: DrawingSurface, slide_kind: str, theme: ThemeRecord,
                    report: RasterReport) -> None:
        W, H = surface.width, surface.height
        weight = STROKE_WEIGHTS.get(theme.design_style, 1.0)

        if slide_kind in STRIPE_KINDS:
            report.motif = 'stripes'
            for x in range(-W, W * 2, STRIPE_SPACING):
                surface.stroke_line((x, 0), (x + W, H), theme.accent, STRIPE_WIDTH * weight, MOTIF_ALPHA)
        elif slide_kind in CIRCLE_KINDS:
            report.motif = 'circles'
            radius = W * 0.15
            surface.fill_circle(W * 0.85, H * 0.15, radius, '#ffffff', MOTIF_ALPHA)
            surface.fill_circle(W * 0.15, H * 0.85, radius * 0.7, '#ffffff', MOTIF_ALPHA)
        else:
            report.motif = 'grid'
            line_width = max(1.0, weight)
            for x in range(GRID_SIZE, W, GRID_SIZE):
                surface.stroke_line((x, 0), (x, H), '#ffffff', line_width, MOTIF_ALPHA)
            for y in range(GRID_SIZE, H, GRID_SIZE):
                surface.stroke_line((0, y), (W, y), '#ffffff', line_width, MOTIF_ALPHA)

        surface.fill_polygon([(0, 0), (CORNER_SIZE, 0), (0, CORNER_SIZE)], theme.accent, CORNER_ALPHA)

    async def _draw_image(self, surface: DrawingSurface, source: str, report: RasterReport) -> None:
        W, H = surface.width, surface.height
        box_w = W * IMAGE_WIDTH_RATIO
        box_h = H * IMAGE_HEIGHT_RATIO
        box_x = W - box_w - IMAGE_MARGIN
        box_y = (H - box_h) / 2
        try:
            image = await self.image_loader.load(source)
        except Exception as e:
            logger.warning(f"Slide {report.slide_index + 1}: skipping background image: {e}")
            report.image_error = str(e)
            return
        surface.draw_image(image, box_x, box_y, box_w, box_h, IMAGE_ALPHA)
        border_color, border_width = IMAGE_BORDER
        surface.stroke_rect(box_x, box_y, box_w, box_h, border_color, border_width)
        report.image_drawn = True

    def _draw_header(self, surface: DrawingSurface, theme: ThemeRecord) -> None:
        surface.fill_rect(0, 0, surface.width, HEADER_HEIGHT, theme.accent, HEADER_ALPHA)

    def _draw_headlines(self, surface: DrawingSurface, slide: Slide, theme: ThemeRecord,
                        slide_index: int, report: RasterReport) -> None:
        W = surface.width
        headline = slide.content.headline or slide.title or f"Slide {slide_index + 1}"
        font = self.fonts.get_font(theme.font_style, HEADLINE_SIZE, bold=True)
        surface.draw_text(headline, TEXT_LEFT, HEADLINE_Y, font, theme.text,
                          max_width=W - 2 * TEXT_LEFT, shadow=HEADLINE_SHADOW)
        report.headline = headline

        if slide.content.subheadline:
            font = self.fonts.get_font(theme.font_style, SUBHEADLINE_SIZE, bold=True)
            surface.draw_text(slide.content.subheadline, W / 2, SUBHEADLINE_Y, font, theme.text,
                              align='center', max_width=W - 2 * TEXT_LEFT)
            report.subheadline_drawn = True

    def _content_width(self, surface: DrawingSurface, report: RasterReport, inset: float) -> float:
        if report.image_requested:
            return surface.width * 0.5 - inset
        return surface.width - 2 * inset

    def _draw_paragraphs(self, surface: DrawingSurface, slide: Slide, theme: ThemeRecord,
                         report: RasterReport) -> Optional[float]:
        """Returns the y where paragraphs ended, or None when there were none."""
        paragraphs = [p for p in slide.content.paragraphs if p and p.strip()]
        if not paragraphs:
            return None

        font = self.fonts.get_font(theme.font_style, PARAGRAPH_SIZE)
        width = self._content_width(surface, report, TEXT_LEFT)
        y = PARAGRAPH_START_Y
        for paragraph in paragraphs:
            lines = wrap(paragraph, width, lambda s: surface.measure_text(s, font), self.max_chars)
            for line in lines:
                surface.draw_text(line, TEXT_LEFT, y, font, theme.text, max_width=width, shadow=BODY_SHADOW)
                y += PARAGRAPH_LINE_STEP
            y += PARAGRAPH_GAP
            report.paragraph_lines.append(lines)
        return y

    def _draw_bullets(self, surface: DrawingSurface, slide: Slide, theme: ThemeRecord,
                      start_y: Optional[float], report: RasterReport) -> float:
        bullets = [b for b in slide.content.bullets if b and b.strip()]
        y = BULLETS_DEFAULT_Y if start_y is None else start_y
        if not bullets:
            return y if start_y is not None else PARAGRAPH_START_Y

        font = self.fonts.get_font(theme.font_style, BULLET_SIZE, bold=True)
        if report.image_requested:
            width = surface.width * 0.5 - BULLET_TEXT_X
        else:
            width = surface.width - (BULLET_TEXT_X + TEXT_LEFT)
        report.bullets_start_y = y
        for bullet in bullets:
            surface.fill_circle(TEXT_LEFT, y - BULLET_DISC_RISE, BULLET_DISC_RADIUS, theme.accent)
            lines = wrap(bullet, width, lambda s: surface.measure_text(s, font), self.max_chars)
            for index, line in enumerate(lines):
                if index > 0:
                    y += BULLET_LINE_STEP
                surface.draw_text(line, BULLET_TEXT_X, y, font, theme.text, max_width=width, shadow=BODY_SHADOW)
            y += BULLET_GAP
            report.bullet_lines.append(lines)
        return y

    def _draw_footer(self, surface: DrawingSurface, slide: Slide, theme: ThemeRecord,
                     slide_index: int, slide_count: int, report: RasterReport) -> None:
        W, H = surface.width, surface.height
        font = self.fonts.get_font(theme.font_style, FOOTER_SIZE, italic=True)
        counter = f"{slide_index + 1}/{slide_count}"
        y = H - FOOTER_MARGIN_BOTTOM
        surface.draw_text(slide.slide_type, FOOTER_MARGIN_X, y, font, theme.text)
        surface.draw_text(counter, W - FOOTER_MARGIN_X, y, font, theme.text, align='right')
        report.footer = (slide.slide_type, counter)


def _corner_angle(width: int, height: int) -> float:
    """CSS angle whose gradient line runs from the top-left to the bottom-right corner."""
    return 90.0 + math.degrees(math.atan2(height, width))
