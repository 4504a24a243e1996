"""
Color and gradient sanitization for export.

Background values arrive as free-form CSS written by users and models:
hex, rgb()/hsl() with or without alpha, named colors, multi-layer gradients,
sometimes with NaN or undefined baked in. Everything here reduces such a
value to something the rasterizer can paint, or to a fallback color.

sanitize() never raises and is idempotent: its output is either a canonical
color/gradient string (a fixed point) or the fallback.
"""

import colorsys
import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

from PIL import ImageColor

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK = "#0f172a"

_BAD_TOKEN_RE = re.compile(r'nan|infinity|undefined', re.IGNORECASE)
_GRADIENT_RE = re.compile(r'^(repeating-)?(linear|radial|conic)-gradient\((.*)\)$', re.IGNORECASE | re.DOTALL)
_FUNC_COLOR_RE = re.compile(r'^(rgba?|hsla?)\(([^()]*)\)$', re.IGNORECASE)
_ANGLE_RE = re.compile(r'^(-?\d*\.?\d+)(deg|grad|rad|turn)$', re.IGNORECASE)
_POSITION_RE = re.compile(r'^-?\d*\.?\d+(%|px|em|rem|vw|vh|deg|turn)?$', re.IGNORECASE)
# A stop is recognisable when it is a functional color followed by a length,
# a bare percentage, or a hex/named color
_STOP_PATTERN_RE = re.compile(r'(rgba?|hsla?)\(.*?\)\s+\d*\.?\d+%?|\d*\.?\d+%', re.IGNORECASE)

_DIRECTION_ANGLES = {
    'top': 0.0,
    'right': 90.0,
    'bottom': 180.0,
    'left': 270.0,
    'top right': 45.0,
    'right top': 45.0,
    'bottom right': 135.0,
    'right bottom': 135.0,
    'bottom left': 225.0,
    'left bottom': 225.0,
    'top left': 315.0,
    'left top': 315.0,
}
_DEFAULT_ANGLE = 180.0


class RGBA(NamedTuple):
    """Color with 0-255 channels and 0-1 alpha."""
    r: int
    g: int
    b: int
    a: float = 1.0

    def to_pil(self, opacity: float = 1.0) -> Tuple[int, int, int, int]:
        alpha = max(0.0, min(1.0, self.a * opacity))
        return (self.r, self.g, self.b, int(round(alpha * 255)))

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass
class LinearGradient:
    """
    Paintable linear gradient.

    Angle follows the CSS convention (0deg points up, 90deg right). Stop
    positions are fractions in [0, 1]; missing positions are spread evenly
    by parse_gradient().
    """
    angle: float
    stops: List[Tuple[RGBA, float]] = field(default_factory=list)

    def color_at(self, t: float) -> RGBA:
        if not self.stops:
            return RGBA(0, 0, 0, 0.0)
        t = max(0.0, min(1.0, t))
        if t <= self.stops[0][1]:
            return self.stops[0][0]
        for (c1, p1), (c2, p2) in zip(self.stops, self.stops[1:]):
            if t <= p2:
                span = p2 - p1
                local = 0.0 if span <= 0 else (t - p1) / span
                return RGBA(
                    int(round(c1.r + (c2.r - c1.r) * local)),
                    int(round(c1.g + (c2.g - c1.g) * local)),
                    int(round(c1.b + (c2.b - c1.b) * local)),
                    c1.a + (c2.a - c1.a) * local,
                )
        return self.stops[-1][0]


class BackgroundSpec(NamedTuple):
    """Classified background: kind is 'color', 'gradient' or 'image'."""
    kind: str
    value: str


def _clamp_channel(value: float) -> int:
    return max(0, min(255, int(round(value))))


def _parse_number(token: str, scale: float) -> float:
    token = token.strip()
    if token.endswith('%'):
        return float(token[:-1]) * scale / 100.0
    return float(token)


def _parse_alpha(token: str) -> float:
    token = token.strip()
    value = float(token[:-1]) / 100.0 if token.endswith('%') else float(token)
    return max(0.0, min(1.0, value))


def _parse_hue(token: str) -> float:
    token = token.strip().lower()
    for unit, factor in (('deg', 1.0), ('grad', 0.9), ('rad', 180.0 / math.pi), ('turn', 360.0)):
        if token.endswith(unit):
            return float(token[:-len(unit)]) * factor
    return float(token)


def _split_functional_args(body: str) -> List[str]:
    # Accept both "1, 2, 3 / 0.5" and "1 2 3 / 0.5"
    body = body.replace('/', ' / ')
    if ',' in body:
        parts = [p.strip() for p in body.split(',')]
    else:
        parts = body.split()
    cleaned = []
    for part in parts:
        for token in part.split():
            if token != '/':
                cleaned.append(token)
    return cleaned


def parse_color(value) -> Optional[RGBA]:
    """
    Parse a CSS color into RGBA.

    Supports #rgb, #rgba, #rrggbb, #rrggbbaa, rgb()/rgba(), hsl()/hsla() in
    comma or space syntax, 'transparent' and CSS named colors. Returns None
    for anything else, including non-finite numbers.
    """
    if not isinstance(value, str):
        return None
    v = value.strip().lower()
    if not v or _BAD_TOKEN_RE.search(v):
        return None
    if v == 'transparent':
        return RGBA(0, 0, 0, 0.0)

    if v.startswith('#'):
        digits = v[1:]
        if not re.fullmatch(r'[0-9a-f]+', digits or 'x'):
            return None
        if len(digits) in (3, 4):
            digits = ''.join(ch * 2 for ch in digits)
        if len(digits) == 6:
            return RGBA(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
        if len(digits) == 8:
            return RGBA(
                int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16),
                round(int(digits[6:8], 16) / 255.0, 3),
            )
        return None

    match = _FUNC_COLOR_RE.match(v)
    if match:
        func = match.group(1)
        args = _split_functional_args(match.group(2))
        if len(args) not in (3, 4):
            return None
        try:
            alpha = _parse_alpha(args[3]) if len(args) == 4 else 1.0
            if func.startswith('rgb'):
                r, g, b = (_clamp_channel(_parse_number(a, 255.0)) for a in args[:3])
            else:
                hue = (_parse_hue(args[0]) % 360.0) / 360.0
                sat = max(0.0, min(1.0, _parse_number(args[1], 100.0) / 100.0))
                light = max(0.0, min(1.0, _parse_number(args[2], 100.0) / 100.0))
                rf, gf, bf = colorsys.hls_to_rgb(hue, light, sat)
                r, g, b = _clamp_channel(rf * 255), _clamp_channel(gf * 255), _clamp_channel(bf * 255)
        except (ValueError, OverflowError):
            return None
        return RGBA(r, g, b, alpha)

    if re.fullmatch(r'[a-z]+', v) and v in ImageColor.colormap:
        r, g, b = ImageColor.getrgb(v)[:3]
        return RGBA(r, g, b)
    return None


def format_color(color: RGBA) -> str:
    """Canonical string form: #rrggbb when opaque, rgba(...) otherwise."""
    if color.a >= 1.0:
        return color.to_hex()
    return f"rgba({color.r}, {color.g}, {color.b}, {format(round(color.a, 3), 'g')})"


def _split_top_level(value: str) -> List[str]:
    """Split on commas that are not nested inside parentheses."""
    parts = []
    depth = 0
    current = []
    for ch in value:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth = max(0, depth - 1)
        if ch == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
            continue
        current.append(ch)
    parts.append(''.join(current).strip())
    return parts


def _direction_to_angle(arg: str) -> Optional[float]:
    words = arg.lower().split()
    if not words or words[0] != 'to':
        return None
    return _DIRECTION_ANGLES.get(' '.join(words[1:]), _DEFAULT_ANGLE)


def _parse_angle(arg: str) -> Optional[float]:
    match = _ANGLE_RE.match(arg.strip())
    if not match:
        return None
    number, unit = float(match.group(1)), match.group(2).lower()
    factor = {'deg': 1.0, 'grad': 0.9, 'rad': 180.0 / math.pi, 'turn': 360.0}[unit]
    return number * factor


def _split_stop(arg: str) -> Optional[Tuple[str, List[str]]]:
    """Split a color stop into its color text and position tokens."""
    arg = arg.strip()
    if not arg:
        return None
    paren = arg.find('(')
    if paren > 0 and re.match(r'^(rgba?|hsla?)$', arg[:paren], re.IGNORECASE):
        close = arg.find(')', paren)
        if close < 0:
            return None
        color_text = arg[:close + 1]
        rest = arg[close + 1:].split()
    else:
        tokens = arg.split()
        color_text, rest = tokens[0], tokens[1:]
    if any(not _POSITION_RE.match(token) for token in rest):
        return None
    return color_text, rest


def _format_angle(angle: float) -> str:
    return f"{format(round(angle % 360.0, 3) % 360.0, 'g')}deg"


def _canonical_gradient(value: str) -> Optional[str]:
    """Canonical form of the first gradient layer in value, or None when unusable."""
    first_layer = _split_top_level(value)[0]
    match = _GRADIENT_RE.match(first_layer.strip())
    if not match:
        return None
    repeating, kind, body = match.group(1) or '', match.group(2).lower(), match.group(3)
    args = [a for a in _split_top_level(body)]
    if not args or any(not a for a in args):
        return None

    prefix = None
    if kind == 'linear':
        angle = _direction_to_angle(args[0])
        if angle is None:
            angle = _parse_angle(args[0])
        if angle is not None:
            args = args[1:]
        prefix = _format_angle(_DEFAULT_ANGLE if angle is None else angle)
    else:
        head = _split_stop(args[0])
        if head is None or parse_color(head[0]) is None:
            prefix = ' '.join(args[0].split())
            args = args[1:]

    stops = []
    recognisable = False
    for arg in args:
        parts = _split_stop(arg)
        if parts is None:
            return None
        color_text, positions = parts
        color = parse_color(color_text)
        if color is None:
            return None
        stop = ' '.join([format_color(color)] + positions)
        # Judged on the canonical text so a second pass reaches the same verdict
        if _STOP_PATTERN_RE.search(stop) or not stop.startswith('rgba('):
            recognisable = True
        stops.append(stop)
    if not stops or not recognisable:
        return None

    inner = ', '.join(([prefix] if prefix else []) + stops)
    return f"{repeating.lower()}{kind}-gradient({inner})"


def _sanitize_value(raw) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value or _BAD_TOKEN_RE.search(value):
        return None
    if 'gradient(' in value.lower():
        return _canonical_gradient(value)
    color = parse_color(value)
    return format_color(color) if color is not None else None


def sanitize(raw, fallback: str = DEFAULT_FALLBACK) -> str:
    """
    Reduce a color or gradient expression to a safe, paintable value.

    Returns the canonical color/gradient string, or the fallback when the
    value is empty, contains NaN/Infinity/undefined, or has no usable color.
    """
    try:
        result = _sanitize_value(raw)
    except Exception as e:
        logger.warning(f"Error sanitizing background {raw!r}, using fallback: {e}")
        result = None
    if result is not None:
        return result
    safe_fallback = _sanitize_value(fallback) or fallback
    if raw:
        logger.debug(f"Replaced background {raw!r} with {safe_fallback}")
    return safe_fallback


def parse_gradient(expr) -> Optional[LinearGradient]:
    """
    Parse a sanitized gradient into a LinearGradient.

    Radial and conic gradients are approximated by a vertical linear gradient
    through the same stops. Returns None when expr is not a usable gradient.
    """
    if not isinstance(expr, str):
        return None
    canonical = _canonical_gradient(expr.strip())
    if canonical is None:
        return None
    match = _GRADIENT_RE.match(canonical)
    kind = match.group(2).lower()
    args = _split_top_level(match.group(3))

    angle = _DEFAULT_ANGLE
    if kind == 'linear':
        angle = _parse_angle(args[0]) or 0.0
        args = args[1:]
    else:
        head = _split_stop(args[0])
        if head is None or parse_color(head[0]) is None:
            args = args[1:]

    colors: List[RGBA] = []
    positions: List[Optional[float]] = []
    for arg in args:
        color_text, tokens = _split_stop(arg)
        colors.append(parse_color(color_text))
        percent = next((t for t in tokens if t.endswith('%')), None)
        positions.append(float(percent[:-1]) / 100.0 if percent else None)

    # Spread unspecified positions evenly between their known neighbours
    if positions[0] is None:
        positions[0] = 0.0
    if len(positions) > 1 and positions[-1] is None:
        positions[-1] = 1.0
    i = 0
    while i < len(positions):
        if positions[i] is None:
            start = i - 1
            end = i
            while positions[end] is None:
                end += 1
            step = (positions[end] - positions[start]) / (end - start)
            for k in range(start + 1, end):
                positions[k] = positions[start] + step * (k - start)
            i = end
        i += 1
    # Stop positions never go backwards
    for k in range(1, len(positions)):
        positions[k] = max(positions[k], positions[k - 1])

    return LinearGradient(angle=angle, stops=list(zip(colors, positions)))


def convert_background(value, default: str = DEFAULT_FALLBACK) -> BackgroundSpec:
    """
    Classify a background reference.

    Colors and gradients come back sanitized; image references come back as
    a bare URL with any CSS url(...) wrapper removed. Document images and
    unusable values become the default color.
    """
    if not isinstance(value, str) or not value.strip() or value.strip().lower() in ('none', 'transparent'):
        return BackgroundSpec('color', sanitize(default, DEFAULT_FALLBACK))
    v = value.strip()
    lowered = v.lower()
    if 'gradient(' in lowered:
        result = sanitize(v, default)
        return BackgroundSpec('gradient' if 'gradient(' in result else 'color', result)
    if lowered.startswith('url(') or lowered.startswith(('http://', 'https://', 'data:image', 'file://')):
        url = unwrap_css_url(v)
        if 'document' in url.lower() and not lowered.startswith('data:'):
            return BackgroundSpec('color', sanitize(default, DEFAULT_FALLBACK))
        return BackgroundSpec('image', url)
    return BackgroundSpec('color', sanitize(v, default))


def unwrap_css_url(value: str) -> str:
    """Strip a CSS url(...) wrapper and its quotes."""
    v = value.strip()
    if v.lower().startswith('url(') and v.endswith(')'):
        v = v[4:-1].strip().strip('\'"')
    return v


def contrast_text_color(background) -> str:
    """Black or white, whichever reads better on the given background."""
    color = parse_color(background) if isinstance(background, str) else background
    if color is None:
        return "#ffffff"
    luminance = (0.299 * color.r + 0.587 * color.g + 0.114 * color.b) / 255
    return "#000000" if luminance > 0.5 else "#ffffff"


def adjust_brightness(color: str, percent: float) -> str:
    """Lighten (positive percent) or darken (negative) a color, returning hex."""
    parsed = parse_color(color)
    if parsed is None:
        return color

    def _adjust(value: int) -> int:
        return max(0, min(255, value + math.floor(value * (percent / 100))))

    return f"#{_adjust(parsed.r):02x}{_adjust(parsed.g):02x}{_adjust(parsed.b):02x}"
