"""
Stem drawn as a cubic Bezier from the leaf base, tapering from 6 px to 0.5 px and
shading from brown into green along its length.
"""

from typing import Sequence, Tuple

from .raster import Layer, Point, draw_line

BROWN = (120.0, 70.0, 40.0)
DARK_GREEN = (70.0, 100.0, 70.0)
LIGHT_GREEN = (220.0, 250.0, 180.0)


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def bezier_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    u = 1.0 - t
    x = u ** 3 * p0[0] + 3 * u * u * t * p1[0] + 3 * u * t * t * p2[0] + t ** 3 * p3[0]
    y = u ** 3 * p0[1] + 3 * u * u * t * p1[1] + 3 * u * t * t * p2[1] + t ** 3 * p3[1]
    return x, y


def stem_color(t: float) -> Tuple[float, float, float]:
    if t < 0.3:
        a, b, k = BROWN, DARK_GREEN, t / 0.3
    else:
        a, b, k = DARK_GREEN, LIGHT_GREEN, (t - 0.3) / 0.7
    return _lerp(a[0], b[0], k), _lerp(a[1], b[1], k), _lerp(a[2], b[2], k)


def stem_width(t: float) -> float:
    return _lerp(6.0, 0.5, t)


def stem_layer(width: int, height: int, origin: Point, controls: Sequence[Point], steps: int = 100) -> Layer:
    """Tapered Bezier stem; ``controls`` are relative to ``origin``."""
    ox, oy = origin
    p0, p1, p2, p3 = [(ox + x, oy + y) for x, y in controls]
    layer = Layer(width, height)
    for i in range(steps):
        t = i / steps
        a = bezier_point(p0, p1, p2, p3, t)
        b = bezier_point(p0, p1, p2, p3, (i + 1) / steps)
        r, g, bl = stem_color(t)
        draw_line(layer, a, b, (r, g, bl, 255), stem_width(t))
    return layer
