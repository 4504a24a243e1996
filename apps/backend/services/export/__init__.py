"""Deck export and rendering package"""

from .color_sanitizer import (
    sanitize,
    parse_color,
    parse_gradient,
    convert_background,
    contrast_text_color,
    adjust_brightness
)
from .deck_exporter import DeckExporter, ExportJob, export_deck
from .document import ExportDocument, DocumentPage, SlideFailure
from .exceptions import (
    ExportError,
    EmptyDeckError,
    DocumentConfigError,
    ImageLoadError,
    ImageTimeoutError,
    SlideRasterizationError,
    SurfaceUnavailableError
)
from .slide_rasterizer import SlideRasterizer, RasterReport
from .text_layout import wrap, layout_block, char_width_measure
from .theme_resolver import resolve_theme

__all__ = [
    'sanitize',
    'parse_color',
    'parse_gradient',
    'convert_background',
    'contrast_text_color',
    'adjust_brightness',
    'DeckExporter',
    'ExportJob',
    'export_deck',
    'ExportDocument',
    'DocumentPage',
    'SlideFailure',
    'ExportError',
    'EmptyDeckError',
    'DocumentConfigError',
    'ImageLoadError',
    'ImageTimeoutError',
    'SlideRasterizationError',
    'SurfaceUnavailableError',
    'SlideRasterizer',
    'RasterReport',
    'wrap',
    'layout_block',
    'char_width_measure',
    'resolve_theme'
]
