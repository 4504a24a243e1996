"""
Export output: an ordered sequence of slide rasters.

The document can be written out as a multi-page PDF (one page per slide at
the page size in points), as a PPTX with one full-bleed picture per slide,
or as a directory of PNGs.
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from PIL import Image
from pptx import Presentation
from pptx.util import Emu

from config.export_config import EXPORT_JPEG_QUALITY
from services.export.exceptions import DocumentConfigError

logger = logging.getLogger(__name__)

PathOrFile = Union[str, Path, BinaryIO]

# 96 px per inch, 914400 EMU per inch
EMU_PER_PIXEL = 9525


@dataclass
class DocumentPage:
    index: int
    image: Image.Image
    slide_id: Optional[str] = None
    is_fallback: bool = False


@dataclass
class SlideFailure:
    """A slide that was replaced by a fallback page."""
    slide_index: int
    kind: str
    message: str


@dataclass
class ExportDocument:
    """Landscape document with one page per exported slide"""
    page_size: Tuple[int, int] = (1920, 1080)
    title: str = ""
    pages: List[DocumentPage] = field(default_factory=list)
    failures: List[SlideFailure] = field(default_factory=list)
    cancelled: bool = False

    def __post_init__(self):
        validate_page_size(self.page_size)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def fallback_count(self) -> int:
        return sum(1 for page in self.pages if page.is_fallback)

    def add_page(self, image: Image.Image, slide_id: Optional[str] = None, is_fallback: bool = False) -> DocumentPage:
        """Append a page, scaling the image to the page size when needed."""
        if image.size != tuple(self.page_size):
            image = image.resize(tuple(self.page_size), Image.LANCZOS)
        if image.mode != 'RGB':
            image = image.convert('RGB')
        page = DocumentPage(index=len(self.pages), image=image, slide_id=slide_id, is_fallback=is_fallback)
        self.pages.append(page)
        return page

    def _require_pages(self) -> None:
        if not self.pages:
            raise DocumentConfigError("Document has no pages to write")

    def to_pdf(self, target: PathOrFile) -> None:
        """Write a multi-page PDF; at 72 dpi one pixel is one point."""
        self._require_pages()
        first, *rest = [page.image for page in self.pages]
        first.save(
            target,
            format='PDF',
            save_all=True,
            append_images=rest,
            resolution=72.0,
            title=self.title or None,
        )
        logger.info(f"Wrote PDF with {self.page_count} pages")

    def to_pptx(self, target: PathOrFile) -> None:
        """Write a PPTX with each page as a full-bleed picture."""
        self._require_pages()
        width, height = self.page_size
        prs = Presentation()
        prs.slide_width = Emu(width * EMU_PER_PIXEL)
        prs.slide_height = Emu(height * EMU_PER_PIXEL)
        blank_layout = prs.slide_layouts[6]  # blank layout

        for page in self.pages:
            slide = prs.slides.add_slide(blank_layout)
            stream = io.BytesIO()
            page.image.save(stream, format='JPEG', quality=EXPORT_JPEG_QUALITY)
            stream.seek(0)
            slide.shapes.add_picture(stream, 0, 0, width=prs.slide_width, height=prs.slide_height)

        if self.title:
            prs.core_properties.title = self.title
        prs.save(str(target) if isinstance(target, Path) else target)
        logger.info(f"Wrote PPTX with {self.page_count} slides")

    def save_pngs(self, directory: Union[str, Path], prefix: str = "slide") -> List[Path]:
        """Write one PNG per page and return the paths in page order."""
        self._require_pages()
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for page in self.pages:
            path = out_dir / f"{prefix}_{page.index + 1:03d}.png"
            page.image.save(path, format='PNG')
            paths.append(path)
        return paths


def validate_page_size(page_size) -> Tuple[int, int]:
    """Page size must be two positive integers."""
    try:
        width, height = page_size
    except (TypeError, ValueError):
        raise DocumentConfigError(f"Invalid page size: {page_size!r}")
    for value in (width, height):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise DocumentConfigError(f"Invalid page size: {page_size!r}", context={"page_size": page_size})
    return width, height
