from __future__ import annotations

"""
Pixel buffers for the leaf renderer.

A Layer holds straight (non-premultiplied) RGBA in float32, values 0..255, indexed
by (x, y). Primitives are rasterized with OpenCV into a coverage patch and blended
"over" the layer, so strokes and dots with partial alpha stack like paint.
"""

from typing import Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np

Point = Tuple[float, float]
RGBA = Tuple[float, float, float, float]

# cv2 fixed-point precision used for sub-pixel primitives
_SHIFT = 4
_ONE = 1 << _SHIFT


def _fx(v: float) -> int:
    return int(round(v * _ONE))


class Layer:
    def __init__(self, width: int, height: int, pixels: Optional[np.ndarray] = None):
        if pixels is None:
            pixels = np.zeros((height, width, 4), dtype=np.float32)
        if pixels.shape != (height, width, 4):
            raise ValueError(f"pixel array shape {pixels.shape} does not match {width}x{height} RGBA")
        self.pixels = pixels.astype(np.float32, copy=False)

    @classmethod
    def from_rgba8(cls, arr: np.ndarray) -> "Layer":
        h, w = arr.shape[:2]
        return cls(w, h, arr.astype(np.float32))

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def get(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = np.clip(np.rint(self.pixels[y, x]), 0, 255)
        return int(r), int(g), int(b), int(a)

    def set(self, x: int, y: int, rgba: Sequence[float]) -> None:
        self.pixels[y, x] = np.clip(np.asarray(rgba, dtype=np.float32), 0, 255)

    def stamp(self, coverage: np.ndarray, x0: int, y0: int, rgba: RGBA) -> None:
        """Blend a solid colour over the region at (x0, y0), weighted by ``coverage`` in [0, 1]."""
        h, w = coverage.shape
        cx0, cy0 = max(0, x0), max(0, y0)
        cx1, cy1 = min(self.width, x0 + w), min(self.height, y0 + h)
        if cx1 <= cx0 or cy1 <= cy0:
            return
        cov = coverage[cy0 - y0:cy1 - y0, cx0 - x0:cx1 - x0]
        src_a = cov * (float(rgba[3]) / 255.0)
        region = self.pixels[cy0:cy1, cx0:cx1]
        _over_into(region, np.asarray(rgba[:3], dtype=np.float32), src_a)

    def clip_to(self, mask: np.ndarray) -> None:
        self.pixels[~mask] = 0.0

    def blur(self, radius: float) -> None:
        """Gaussian blur with sigma ``radius``, done on premultiplied colour."""
        if radius <= 0:
            return
        k = max(3, int(round(radius * 3)) * 2 + 1)
        a = self.pixels[..., 3:4] / 255.0
        premult = np.concatenate([self.pixels[..., :3] * a, a], axis=-1)
        premult = cv2.GaussianBlur(premult, (k, k), radius)
        alpha = premult[..., 3:4]
        rgb = np.divide(premult[..., :3], alpha, out=np.zeros_like(premult[..., :3]), where=alpha > 1e-6)
        self.pixels = np.concatenate([rgb, alpha * 255.0], axis=-1).astype(np.float32)
        np.clip(self.pixels, 0, 255, out=self.pixels)

    def over(self, top: "Layer") -> None:
        """Composite ``top`` over this layer in place."""
        src_a = top.pixels[..., 3] / 255.0
        _over_into(self.pixels, top.pixels[..., :3], src_a)

    def to_rgba8(self) -> np.ndarray:
        return np.clip(np.rint(self.pixels), 0, 255).astype(np.uint8)


def _over_into(dst: np.ndarray, src_rgb: np.ndarray, src_a: np.ndarray) -> None:
    dst_a = dst[..., 3] / 255.0
    out_a = src_a + dst_a * (1.0 - src_a)
    num = src_rgb * src_a[..., None] + dst[..., :3] * (dst_a * (1.0 - src_a))[..., None]
    safe = np.where(out_a > 1e-6, out_a, 1.0)[..., None]
    dst[..., :3] = np.where(out_a[..., None] > 1e-6, num / safe, 0.0)
    dst[..., 3] = out_a * 255.0


def _patch_origin(points: Iterable[Point], pad: float) -> Tuple[int, int, int, int]:
    xs, ys = zip(*points)
    x0 = int(np.floor(min(xs) - pad))
    y0 = int(np.floor(min(ys) - pad))
    x1 = int(np.ceil(max(xs) + pad)) + 1
    y1 = int(np.ceil(max(ys) + pad)) + 1
    return x0, y0, x1 - x0, y1 - y0


def draw_line(layer: Layer, p0: Point, p1: Point, rgba: RGBA, weight: float = 1.0) -> None:
    thickness = max(1, int(round(weight)))
    x0, y0, w, h = _patch_origin([p0, p1], thickness / 2.0 + 2)
    cov = np.zeros((h, w), dtype=np.uint8)
    a = (_fx(p0[0] - x0), _fx(p0[1] - y0))
    b = (_fx(p1[0] - x0), _fx(p1[1] - y0))
    cv2.line(cov, a, b, 255, thickness, cv2.LINE_AA, _SHIFT)
    layer.stamp(cov.astype(np.float32) / 255.0, x0, y0, rgba)


def draw_circle(layer: Layer, center: Point, diameter: float, rgba: RGBA, weight: Optional[float] = None) -> None:
    """Filled circle, or a ring stroked with ``weight`` when given.

    OpenCV strokes are at least one pixel wide; thinner rings keep that width and
    scale their coverage by ``weight`` instead.
    """
    r = max(diameter / 2.0, 0.5 / _ONE)
    thickness = -1 if weight is None else max(1, int(round(weight)))
    fade = 1.0 if weight is None else min(1.0, max(weight, 0.0))
    x0, y0, w, h = _patch_origin([center], r + 2)
    cov = np.zeros((h, w), dtype=np.uint8)
    c = (_fx(center[0] - x0), _fx(center[1] - y0))
    cv2.circle(cov, c, _fx(r), 255, thickness, cv2.LINE_AA, _SHIFT)
    layer.stamp(cov.astype(np.float32) / 255.0 * fade, x0, y0, rgba)


def stroke_path(layer: Layer, segments: Iterable[Tuple[Point, Point]], rgba: RGBA, weight: float) -> None:
    """Stroke many opaque-colour segments at once; overlapping strokes do not darken each other."""
    cov = np.zeros((layer.height, layer.width), dtype=np.uint8)
    thickness = max(1, int(round(weight)))
    for p0, p1 in segments:
        cv2.line(cov, (_fx(p0[0]), _fx(p0[1])), (_fx(p1[0]), _fx(p1[1])), 255, thickness, cv2.LINE_AA, _SHIFT)
    layer.stamp(cov.astype(np.float32) / 255.0, 0, 0, rgba)


def rasterize_mask(outline: Sequence[Point], width: int, height: int) -> np.ndarray:
    """Boolean (height, width) field, True inside the filled outline."""
    mask = np.zeros((height, width), dtype=np.uint8)
    if len(outline) >= 3:
        pts = np.round(np.asarray(outline, dtype=np.float64) * _ONE).astype(np.int32)
        cv2.fillPoly(mask, [pts.reshape(-1, 1, 2)], 1, cv2.LINE_8, _SHIFT)
    return mask.astype(bool)


def inside(mask: np.ndarray, x: float, y: float) -> bool:
    xi, yi = int(x), int(y)
    return 0 <= yi < mask.shape[0] and 0 <= xi < mask.shape[1] and bool(mask[yi, xi])


def composite(width: int, height: int, layers: Sequence[Layer]) -> Layer:
    """Alpha-blend ``layers`` bottom to top onto a transparent canvas."""
    out = Layer(width, height)
    for layer in layers:
        out.over(layer)
    return out
