"""
Drawing surface used by the slide rasterizer.

DrawingSurface is the narrow set of canvas operations the rasterizer needs.
PillowSurface implements it on an RGBA Pillow image; translucent drawing is
done on a layer clipped to the shape's bounds and alpha-composited.
"""

import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter

from services.export.color_sanitizer import RGBA, LinearGradient, parse_color

Point = Tuple[float, float]
# (color, blur radius, offset x, offset y)
Shadow = Tuple[str, float, float, float]


def _rgba(color, opacity: float = 1.0) -> Tuple[int, int, int, int]:
    parsed = color if isinstance(color, RGBA) else parse_color(color)
    if parsed is None:
        raise ValueError(f"Unparseable color: {color!r}")
    return parsed.to_pil(opacity)


class DrawingSurface(ABC):
    """Fixed-size raster target for one slide"""

    width: int
    height: int

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color, opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def fill_linear_gradient(self, x: float, y: float, w: float, h: float,
                             gradient: LinearGradient, opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def stroke_line(self, start: Point, end: Point, color, line_width: float, opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def fill_circle(self, cx: float, cy: float, radius: float, color, opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def fill_polygon(self, points: Sequence[Point], color, opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def stroke_rect(self, x: float, y: float, w: float, h: float, color, line_width: float,
                    opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def draw_text(self, text: str, x: float, y: float, font, color, align: str = 'left',
                  max_width: Optional[float] = None, shadow: Optional[Shadow] = None) -> None:
        """Draw one line of text with its baseline at y."""
        pass

    @abstractmethod
    def measure_text(self, text: str, font) -> float:
        pass

    @abstractmethod
    def draw_image(self, image: Image.Image, x: float, y: float, w: float, h: float,
                   opacity: float = 1.0) -> None:
        pass

    @abstractmethod
    def to_image(self) -> Image.Image:
        pass


SurfaceFactory = Callable[[int, int, str], DrawingSurface]


class PillowSurface(DrawingSurface):
    """DrawingSurface on a Pillow RGBA image"""

    def __init__(self, width: int, height: int, background: str = "#000000"):
        self.width = width
        self.height = height
        self._image = Image.new('RGBA', (width, height), _rgba(background))
        self._draw = ImageDraw.Draw(self._image)

    def _clip(self, left: float, top: float, right: float, bottom: float) -> Optional[Tuple[int, int, int, int]]:
        box = (
            max(0, int(math.floor(left))),
            max(0, int(math.floor(top))),
            min(self.width, int(math.ceil(right))),
            min(self.height, int(math.ceil(bottom))),
        )
        if box[2] <= box[0] or box[3] <= box[1]:
            return None
        return box

    def _paint(self, bounds: Tuple[float, float, float, float], fill: Tuple[int, int, int, int],
               painter: Callable[[ImageDraw.ImageDraw, float, float], None]) -> None:
        """Run painter directly when opaque, otherwise on a clipped layer."""
        if fill[3] >= 255:
            painter(self._draw, 0.0, 0.0)
            return
        box = self._clip(*bounds)
        if box is None:
            return
        layer = Image.new('RGBA', (box[2] - box[0], box[3] - box[1]), (0, 0, 0, 0))
        painter(ImageDraw.Draw(layer), float(box[0]), float(box[1]))
        self._image.alpha_composite(layer, (box[0], box[1]))

    def fill_rect(self, x, y, w, h, color, opacity=1.0):
        fill = _rgba(color, opacity)
        self._paint(
            (x, y, x + w, y + h), fill,
            lambda d, ox, oy: d.rectangle([x - ox, y - oy, x + w - ox - 1, y + h - oy - 1], fill=fill),
        )

    def fill_linear_gradient(self, x, y, w, h, gradient, opacity=1.0):
        box = self._clip(x, y, x + w, y + h)
        if box is None or not gradient.stops:
            return
        bw, bh = int(round(w)), int(round(h))
        theta = math.radians(gradient.angle)
        length = abs(bw * math.sin(theta)) + abs(bh * math.cos(theta))
        steps = max(2, int(math.ceil(length)) + 2)
        span = int(math.ceil(math.hypot(bw, bh))) + 2

        strip = Image.new('RGBA', (steps, 1))
        strip.putdata([gradient.color_at(i / (steps - 1)).to_pil(opacity) for i in range(steps)])
        strip = strip.resize((steps, span), Image.NEAREST)
        # Strip runs left to right, which is 90deg in CSS terms
        rotated = strip.rotate(90 - gradient.angle, resample=Image.BICUBIC, expand=True)
        left = (rotated.width - bw) // 2
        top = (rotated.height - bh) // 2
        tile = rotated.crop((left, top, left + bw, top + bh))
        self._composite(tile, x, y)

    def stroke_line(self, start, end, color, line_width, opacity=1.0):
        fill = _rgba(color, opacity)
        pad = line_width
        bounds = (min(start[0], end[0]) - pad, min(start[1], end[1]) - pad,
                  max(start[0], end[0]) + pad, max(start[1], end[1]) + pad)
        self._paint(
            bounds, fill,
            lambda d, ox, oy: d.line([(start[0] - ox, start[1] - oy), (end[0] - ox, end[1] - oy)],
                                     fill=fill, width=max(1, int(round(line_width)))),
        )

    def fill_circle(self, cx, cy, radius, color, opacity=1.0):
        fill = _rgba(color, opacity)
        self._paint(
            (cx - radius, cy - radius, cx + radius, cy + radius), fill,
            lambda d, ox, oy: d.ellipse([cx - radius - ox, cy - radius - oy, cx + radius - ox, cy + radius - oy],
                                        fill=fill),
        )

    def fill_polygon(self, points, color, opacity=1.0):
        fill = _rgba(color, opacity)
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        self._paint(
            (min(xs), min(ys), max(xs) + 1, max(ys) + 1), fill,
            lambda d, ox, oy: d.polygon([(px - ox, py - oy) for px, py in points], fill=fill),
        )

    def stroke_rect(self, x, y, w, h, color, line_width, opacity=1.0):
        fill = _rgba(color, opacity)
        half = line_width / 2
        bounds = (x - half, y - half, x + w + half, y + h + half)
        self._paint(
            bounds, fill,
            lambda d, ox, oy: d.rectangle([bounds[0] - ox, bounds[1] - oy, bounds[2] - ox, bounds[3] - oy],
                                          outline=fill, width=max(1, int(round(line_width)))),
        )

    def measure_text(self, text, font):
        return float(font.getlength(text))

    def _text_layer(self, text: str, font, fill: Tuple[int, int, int, int]) -> Tuple[Image.Image, int]:
        """Render text onto a tight layer; returns the layer and its ascent."""
        if hasattr(font, 'getmetrics'):
            ascent, descent = font.getmetrics()
        else:
            bbox = font.getbbox(text)
            ascent, descent = bbox[3], 0
        width = max(1, int(math.ceil(font.getlength(text))))
        layer = Image.new('RGBA', (width, max(1, ascent + descent)), (0, 0, 0, 0))
        ImageDraw.Draw(layer).text((0, 0), text, font=font, fill=fill)
        return layer, ascent

    def draw_text(self, text, x, y, font, color, align='left', max_width=None, shadow=None):
        if not text:
            return
        layer, ascent = self._text_layer(text, font, _rgba(color))
        # Squeeze horizontally to max_width, like canvas fillText
        if max_width is not None and max_width > 0 and layer.width > max_width:
            layer = layer.resize((max(1, int(max_width)), layer.height), Image.LANCZOS)

        if align == 'center':
            left = x - layer.width / 2
        elif align == 'right':
            left = x - layer.width
        else:
            left = x
        top = y - ascent

        if shadow is not None:
            shadow_color, blur, dx, dy = shadow
            shade = _rgba(shadow_color)
            pad = int(math.ceil(blur * 2)) + 1
            shadow_layer = Image.new('RGBA', (layer.width + pad * 2, layer.height + pad * 2), (0, 0, 0, 0))
            mask = layer.getchannel('A').point(lambda a: a * shade[3] // 255)
            solid = Image.new('RGBA', layer.size, shade[:3] + (0,))
            solid.putalpha(mask)
            shadow_layer.paste(solid, (pad, pad))
            if blur > 0:
                shadow_layer = shadow_layer.filter(ImageFilter.GaussianBlur(blur / 2))
            self._composite(shadow_layer, left + dx - pad, top + dy - pad)
        self._composite(layer, left, top)

    def _composite(self, layer: Image.Image, left: float, top: float) -> None:
        """Alpha-composite a layer at a possibly out-of-bounds position."""
        lx, ly = int(round(left)), int(round(top))
        box = self._clip(lx, ly, lx + layer.width, ly + layer.height)
        if box is None:
            return
        cropped = layer.crop((box[0] - lx, box[1] - ly, box[2] - lx, box[3] - ly))
        self._image.alpha_composite(cropped, (box[0], box[1]))

    def draw_image(self, image, x, y, w, h, opacity=1.0):
        # Stretched into the box, like canvas drawImage with a destination size
        fitted = image.convert('RGBA').resize((max(1, int(round(w))), max(1, int(round(h)))), Image.LANCZOS)
        if opacity < 1.0:
            alpha = fitted.getchannel('A').point(lambda a: int(a * opacity))
            fitted.putalpha(alpha)
        self._composite(fitted, x, y)

    def to_image(self) -> Image.Image:
        return self._image.convert('RGB')


def pillow_surface_factory(width: int, height: int, background: str) -> DrawingSurface:
    return PillowSurface(width, height, background)
