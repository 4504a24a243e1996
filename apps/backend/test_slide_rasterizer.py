"""
Tests for the slide rasterizer and image loading.

A recording surface stands in for Pillow so the drawing passes can be
checked by what was drawn where.
"""

import asyncio
import base64
import io

import pytest
from PIL import Image

from models.slide import Slide
from services.export.exceptions import (
    ImageLoadError,
    ImageTimeoutError,
    SlideRasterizationError,
    SurfaceUnavailableError,
)
from services.export.image_loader import ImageLoader
from services.export.slide_rasterizer import (
    BULLETS_DEFAULT_Y,
    PARAGRAPH_GAP,
    PARAGRAPH_LINE_STEP,
    PARAGRAPH_START_Y,
    SlideRasterizer,
    image_source,
)
from services.export.surface import DrawingSurface, PillowSurface
from services.export.theme_resolver import resolve_theme

W, H = 1920, 1080


class RecordingSurface(DrawingSurface):
    """Records drawing calls; every character is 20px wide."""

    def __init__(self, width, height, background):
        self.width = width
        self.height = height
        self.background = background
        self.calls = []

    def fill_rect(self, x, y, w, h, color, opacity=1.0):
        self.calls.append(('fill_rect', x, y, w, h, color, opacity))

    def fill_linear_gradient(self, x, y, w, h, gradient, opacity=1.0):
        self.calls.append(('gradient', gradient))

    def stroke_line(self, start, end, color, line_width, opacity=1.0):
        self.calls.append(('line', start, end, color, line_width, opacity))

    def fill_circle(self, cx, cy, radius, color, opacity=1.0):
        self.calls.append(('circle', cx, cy, radius, color, opacity))

    def fill_polygon(self, points, color, opacity=1.0):
        self.calls.append(('polygon', tuple(points), color, opacity))

    def stroke_rect(self, x, y, w, h, color, line_width, opacity=1.0):
        self.calls.append(('stroke_rect', x, y, w, h))

    def draw_text(self, text, x, y, font, color, align='left', max_width=None, shadow=None):
        self.calls.append(('text', text, x, y, align))

    def measure_text(self, text, font):
        return len(text) * 20.0

    def draw_image(self, image, x, y, w, h, opacity=1.0):
        self.calls.append(('image', x, y, w, h, opacity))

    def to_image(self):
        return Image.new('RGB', (self.width, self.height))

    def texts(self):
        return [call for call in self.calls if call[0] == 'text']

    def kinds(self):
        return [call[0] for call in self.calls]


class FakeFonts:
    def get_font(self, font_style, size, bold=False, italic=False):
        return (font_style, size, bold, italic)


def png_bytes(color=(255, 0, 0)):
    buffer = io.BytesIO()
    Image.new('RGB', (8, 8), color).save(buffer, format='PNG')
    return buffer.getvalue()


def make_rasterizer(fetcher=None, timeout=1.0, surface_factory=RecordingSurface):
    async def no_network(url):
        raise AssertionError(f"unexpected fetch of {url}")

    return SlideRasterizer(
        image_loader=ImageLoader(timeout=timeout, fetcher=fetcher or no_network),
        surface_factory=surface_factory,
        font_provider=FakeFonts(),
        width=W,
        height=H,
    )


def render(rasterizer, slide, index=0, count=1):
    theme = resolve_theme(slide.content)
    return asyncio.run(rasterizer.rasterize_with_report(slide, theme, index, count))


def test_headline_falls_back_to_slide_number():
    surface, report = render(make_rasterizer(), Slide(slide_type="content"), index=3, count=5)
    assert report.headline == "Slide 4"
    assert report.footer == ("content", "4/5")
    texts = [call[1] for call in surface.texts()]
    assert "Slide 4" in texts
    assert "4/5" in texts


def test_headline_prefers_content_headline_over_title():
    slide = Slide(title="Title", content={"headline": "Headline", "subheadline": "Sub"})
    surface, report = render(make_rasterizer(), slide)
    assert report.headline == "Headline"
    assert report.subheadline_drawn
    sub = next(call for call in surface.texts() if call[1] == "Sub")
    assert sub[2] == W / 2
    assert sub[4] == 'center'


def test_bullets_continue_below_paragraphs():
    slide = Slide(title="T", content={"paragraphs": ["Hello world"], "bullets": ["One", "Two"]})
    _, report = render(make_rasterizer(), slide)
    expected = PARAGRAPH_START_Y + PARAGRAPH_LINE_STEP + PARAGRAPH_GAP
    assert report.paragraph_lines == [["Hello world"]]
    assert report.bullets_start_y == expected
    assert report.bullet_lines == [["One"], ["Two"]]


def test_bullets_without_paragraphs_start_at_default():
    slide = Slide(title="T", content={"bullets": ["Only bullet"]})
    _, report = render(make_rasterizer(), slide)
    assert report.bullets_start_y == BULLETS_DEFAULT_Y


def test_no_body_content_ends_at_paragraph_start():
    _, report = render(make_rasterizer(), Slide(title="Just a title"))
    assert report.paragraph_lines == []
    assert report.bullet_lines == []
    assert report.content_bottom_y == PARAGRAPH_START_Y


def test_long_paragraph_wraps_within_character_cap():
    words = " ".join(["metric"] * 40)
    slide = Slide(title="T", content={"paragraphs": [words]})
    _, report = render(make_rasterizer(), slide)
    lines = report.paragraph_lines[0]
    assert len(lines) > 1
    assert all(len(line) < 60 for line in lines)
    assert " ".join(lines) == words


@pytest.mark.parametrize("kind,motif", [
    ("cover", "stripes"),
    ("closing", "stripes"),
    ("problem", "circles"),
    ("solution", "circles"),
    ("data", "grid"),
    ("team", "grid"),
])
def test_motif_by_slide_kind(kind, motif):
    surface, report = render(make_rasterizer(), Slide(slide_type=kind))
    assert report.motif == motif
    assert 'polygon' in surface.kinds()


def test_gradient_and_color_backgrounds():
    _, gradient_report = render(make_rasterizer(), Slide(content={"background_image": "linear-gradient(90deg, #000, #fff)"}))
    assert gradient_report.background == 'gradient'
    _, color_report = render(make_rasterizer(), Slide(content={"background_color": "#ff0000"}))
    assert color_report.background == 'color'
    _, default_report = render(make_rasterizer(), Slide(content={"background_color": "rgb(NaN, 1, 2)"}))
    assert default_report.background == 'color'


def test_plain_color_in_background_image_is_painted():
    surface, report = render(make_rasterizer(), Slide(content={"background_image": "#ff0000"}))
    assert report.background == 'color'
    assert ('fill_rect', 0, 0, W, H, '#ff0000', 1.0) in surface.calls
    assert not report.image_requested


def test_unreadable_background_image_color_defers_to_background_color():
    surface, report = render(make_rasterizer(), Slide(content={"background_image": "notacolor",
                                                               "background_color": "#00ff00"}))
    assert report.background == 'color'
    assert ('fill_rect', 0, 0, W, H, '#00ff00', 1.0) in surface.calls


def test_radial_gradient_with_shape_prefix_is_painted():
    slide = Slide(title="Radial", content={
        "background_image": "radial-gradient(circle at center, #ff0000 0%, #000000 100%)",
    })
    _, report = render(make_rasterizer(), slide)
    assert report.background == 'gradient'
    assert report.headline == "Radial"


def test_image_is_drawn_in_right_box():
    async def fetcher(url):
        return png_bytes()

    slide = Slide(title="T", content={"background_image": "https://example.com/photo.png", "paragraphs": ["x"]})
    surface, report = render(make_rasterizer(fetcher), slide)
    assert report.image_requested and report.image_drawn
    image_call = next(call for call in surface.calls if call[0] == 'image')
    assert image_call[1] == pytest.approx(W - W * 0.45 - 100)
    assert image_call[3] == pytest.approx(W * 0.45)
    assert 'stroke_rect' in surface.kinds()


def test_failed_image_is_skipped():
    async def fetcher(url):
        raise ImageLoadError(url, "HTTP 404")

    slide = Slide(title="Still here", content={"background_image": "https://example.com/missing.png"})
    surface, report = render(make_rasterizer(fetcher), slide)
    assert report.image_requested
    assert not report.image_drawn
    assert "HTTP 404" in report.image_error
    assert 'image' not in surface.kinds()
    assert report.headline == "Still here"


def test_slow_image_times_out_and_is_skipped():
    async def fetcher(url):
        await asyncio.sleep(5)
        return png_bytes()

    slide = Slide(content={"background_image": "https://example.com/slow.png"})
    _, report = render(make_rasterizer(fetcher, timeout=0.05), slide)
    assert not report.image_drawn
    assert "timed out" in report.image_error


def test_surface_failure_is_reported_as_slide_error():
    def broken_factory(width, height, background):
        raise SurfaceUnavailableError("no canvas")

    with pytest.raises(SlideRasterizationError) as exc_info:
        render(make_rasterizer(surface_factory=broken_factory), Slide(title="Broken"), index=2)
    assert exc_info.value.slide_index == 2
    assert isinstance(exc_info.value.cause, SurfaceUnavailableError)


def test_image_source_prefers_background_image():
    assert image_source(Slide(content={"background_image": "https://a/b.png", "image_url": "https://c/d.png"})) == "https://a/b.png"
    assert image_source(Slide(content={"background_image": "#fff", "image_url": "https://c/d.png"})) == "https://c/d.png"
    assert image_source(Slide(content={"background_image": "linear-gradient(red, blue)"})) is None


def test_pillow_surface_renders_full_slide():
    slide = Slide(
        title="Pillow",
        slide_type="cover",
        content={"subheadline": "Sub", "paragraphs": ["Paragraph text"], "bullets": ["A bullet"]},
    )
    rasterizer = SlideRasterizer(
        image_loader=ImageLoader(timeout=0.1),
        surface_factory=lambda w, h, bg: PillowSurface(w, h, bg),
        width=320,
        height=180,
    )
    surface = asyncio.run(rasterizer.rasterize(slide, resolve_theme(slide.content), 0, 1))
    image = surface.to_image()
    assert image.size == (320, 180)
    assert image.mode == 'RGB'


def test_image_loader_reads_data_urls_and_files(tmp_path):
    loader = ImageLoader(timeout=1.0)
    data_url = "data:image/png;base64," + base64.b64encode(png_bytes((0, 255, 0))).decode()
    image = asyncio.run(loader.load(f"url('{data_url}')"))
    assert image.mode == 'RGBA'
    assert image.getpixel((0, 0))[:3] == (0, 255, 0)

    path = tmp_path / "bg.png"
    path.write_bytes(png_bytes((0, 0, 255)))
    image = asyncio.run(loader.load(str(path)))
    assert image.getpixel((0, 0))[:3] == (0, 0, 255)


def test_image_loader_errors():
    loader = ImageLoader(timeout=1.0)
    with pytest.raises(ImageLoadError):
        asyncio.run(loader.load(""))
    with pytest.raises(ImageLoadError):
        asyncio.run(loader.load("data:image/png;base64," + base64.b64encode(b"not an image").decode()))
    with pytest.raises(ImageLoadError):
        asyncio.run(loader.load("/definitely/not/here.png"))

    async def slow(url):
        await asyncio.sleep(5)
        return b""

    with pytest.raises(ImageTimeoutError):
        asyncio.run(ImageLoader(timeout=0.01, fetcher=slow).load("https://example.com/x.png"))
