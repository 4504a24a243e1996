"""
Exception hierarchy for deck export.

Input errors are fatal and raised before any slide is drawn. Resource and
rasterization errors are recoverable: the rasterizer absorbs image failures
and the exporter turns slide failures into fallback pages.
"""

from typing import Optional, Dict, Any


class ExportError(Exception):
    """Base exception for all export errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [super().__str__()]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


# === Input exceptions ===

class ExportInputError(ExportError):
    """Export cannot start with the given input"""
    pass


class EmptyDeckError(ExportInputError):
    """Deck has no slides"""

    def __init__(self, message: str = "No slides found in deck for export", **kwargs):
        super().__init__(message, **kwargs)


class DocumentConfigError(ExportInputError):
    """Output document cannot be created with the requested settings"""
    pass


# === Resource exceptions ===

class ResourceError(ExportError):
    """External resource could not be obtained"""
    pass


class ImageLoadError(ResourceError):
    """Background image could not be fetched or decoded"""

    def __init__(self, source: str, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source


class ImageTimeoutError(ImageLoadError):
    """Background image load exceeded its time budget"""

    def __init__(self, source: str, timeout: float, **kwargs):
        super().__init__(source, f"Image load timed out after {timeout}s", **kwargs)
        self.timeout = timeout


# === Rendering exceptions ===

class SurfaceUnavailableError(ExportError):
    """Drawing surface could not be created"""
    pass


class SlideRasterizationError(ExportError):
    """Drawing one slide failed"""

    def __init__(
        self,
        slide_index: int,
        message: str,
        slide_title: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.slide_index = slide_index
        self.slide_title = slide_title
