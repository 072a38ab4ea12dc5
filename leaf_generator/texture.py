"""
Procedural texture layers for the leaf body.

All layers are confined to the leaf mask; the vein overlay is blurred first and
clipped afterwards. Random feature points are rejection-sampled against the
mask from the shared stream, in call order.
"""

from __future__ import annotations

import math
from typing import Iterable, Tuple

import numpy as np

from .raster import Layer, Point, draw_circle, inside, stroke_path


def _remap(v, a: float, b: float, c: float, d: float):
    """Linear map of ``v`` from [a, b] onto [c, d], without clamping."""
    return c + (v - a) * (d - c) / (b - a)


def sample_inside(mask: np.ndarray, n: int, rng: np.random.RandomState) -> np.ndarray:
    """Draw ``n`` points uniformly over the canvas, rejecting those outside ``mask``."""
    if n > 0 and not mask.any():
        raise ValueError("cannot sample feature points from an empty mask")
    h, w = mask.shape
    pts = []
    while len(pts) < n:
        x = rng.uniform(0, w)
        y = rng.uniform(0, h)
        if inside(mask, x, y):
            pts.append((x, y))
    return np.asarray(pts, dtype=np.float64).reshape(-1, 2)


def gradient_layer(mask: np.ndarray) -> Layer:
    """Green centre fading to amber towards the canvas corners."""
    h, w = mask.shape
    ny, nx = np.mgrid[0:h, 0:w].astype(np.float64)
    nx /= w
    ny /= h
    t = np.minimum(np.sqrt((nx - 0.5) ** 2 + (ny - 0.5) ** 2) * math.sqrt(2.0), 1.0)
    layer = Layer(w, h)
    px = layer.pixels
    px[..., 0] = 70 + 90 * t
    px[..., 1] = 170 - 100 * t
    px[..., 2] = 80 - 30 * t
    px[..., 3] = 255
    layer.clip_to(mask)
    return layer


def vein_layer(segments: Iterable[Tuple[Point, Point]], mask: np.ndarray,
               weight: float = 15.0, blur: float = 20.0) -> Layer:
    """White strokes blurred into soft veins, then cut back to the leaf."""
    h, w = mask.shape
    layer = Layer(w, h)
    stroke_path(layer, segments, (255, 255, 255, 255), weight)
    layer.blur(blur)
    layer.clip_to(mask)
    return layer


def nearest_two(points: np.ndarray, features: np.ndarray, chunk: int = 4096) -> Tuple[np.ndarray, np.ndarray]:
    """Distances from each point to its nearest and second-nearest feature."""
    f2 = np.einsum("ij,ij->i", features, features)
    d1 = np.empty(len(points))
    d2 = np.empty(len(points))
    for s in range(0, len(points), chunk):
        p = points[s:s + chunk]
        sq = np.einsum("ij,ij->i", p, p)[:, None] - 2.0 * p @ features.T + f2[None, :]
        np.maximum(sq, 0.0, out=sq)
        two = np.partition(sq, 1, axis=1)[:, :2]
        d1[s:s + chunk] = np.sqrt(two[:, 0])
        d2[s:s + chunk] = np.sqrt(two[:, 1])
    return d1, d2


def nearest(points: np.ndarray, features: np.ndarray) -> np.ndarray:
    """Worley F1: distance to the closest feature point."""
    diff = points[:, None, :] - features[None, :, :]
    return np.sqrt((diff ** 2).sum(axis=-1)).min(axis=1)


def edge_layer(mask: np.ndarray, features: np.ndarray, threshold: float = 0.1) -> Layer:
    """Cellular shading: pale cell walls where F2 - F1 is tiny, shaded green inside cells."""
    h, w = mask.shape
    layer = Layer(w, h)
    if len(features) < 2:
        return layer
    ys, xs = np.nonzero(mask)
    pts = np.stack([xs, ys], axis=1).astype(np.float64)
    d1, d2 = nearest_two(pts, features)
    edge = d2 - d1

    wall = edge < threshold
    shadow = _remap(edge, 0, 20, 80, 0)
    rgb = np.stack([
        _remap(d1, 0, 50, 100, 50) - shadow * 0.5,
        _remap(d1, 0, 50, 160, 100) - shadow * 0.6,
        _remap(d1, 0, 50, 80, 30) - shadow * 0.4,
    ], axis=1)
    alpha = _remap(shadow, 0, 80, 150, 50)
    # walls fade out towards the bottom of the canvas
    rgb[wall] = 255.0
    alpha = np.where(wall, 80.0 * (h - ys) / h, alpha)

    layer.pixels[ys, xs, :3] = np.clip(rgb, 0, 255)
    layer.pixels[ys, xs, 3] = np.clip(alpha, 0, 255)
    return layer


def stipple_layer(mask: np.ndarray, rng: np.random.RandomState, cell_count: int = 50,
                  draws: int = 50000, shade_far: float = 100.0, dot_alpha: float = 10.0) -> Layer:
    """Worley dot stipple: a faint white ring plus a tinted 1 px dot per accepted draw.

    Rings grow and fade, and the dot tint darkens towards ``shade_far``, as the
    sample gets further from its nearest cell point.
    """
    h, w = mask.shape
    layer = Layer(w, h)
    cells = sample_inside(mask, cell_count, rng)
    xy = rng.uniform(0.0, 1.0, size=(draws, 2)) * np.array([w, h], dtype=np.float64)
    keep = mask[xy[:, 1].astype(np.intp), xy[:, 0].astype(np.intp)]
    xy = xy[keep]
    if len(xy) == 0 or len(cells) == 0:
        return layer
    dist = nearest(xy, cells)
    shade = np.clip(_remap(dist, 0, 50, 255, shade_far), 0, 255)
    ring_alpha = np.clip(_remap(dist, 0, 50, 80, 20), 0, 255)
    ring_d = _remap(dist, 0, 50, 0.5, 2)
    for (x, y), s, a, d in zip(xy, shade, ring_alpha, ring_d):
        draw_circle(layer, (x, y), d, (255, 255, 255, a), weight=0.5)
        draw_circle(layer, (x, y), 1.0, (s, 160, s, dot_alpha))
    layer.clip_to(mask)
    return layer
