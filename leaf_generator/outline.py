"""
Leaf outline from the shape walk's boundary points.

The two halves are joined at the stem tip and at a fixed point past it, then the
point list is resampled with a uniform Catmull-Rom spline for a smooth edge.
"""

from typing import List, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]


def leaf_outline(left: Sequence[Point], right: Sequence[Point], stem_tip: Point,
                 tip_offset: float = 760.0) -> List[Point]:
    """Join both boundary halves into one closed outline.

    The left half starts at the stem tip and keeps walk order; the right half is
    closed with the stem tip pushed ``tip_offset`` px to the right and is then
    traversed backwards, so the outline ends where the right half began.
    """
    right_pts = list(reversed(right))
    right_pts.append((stem_tip[0] + tip_offset, stem_tip[1]))
    left_pts = [stem_tip] + list(left)
    return left_pts + right_pts[::-1]


def _catmull_rom(p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = t[:, None]
    t2 = t * t
    t3 = t2 * t
    f1 = -0.5 * t3 + t2 - 0.5 * t
    f2 = 1.5 * t3 - 2.5 * t2 + 1.0
    f3 = -1.5 * t3 + 2.0 * t2 + 0.5 * t
    f4 = 0.5 * t3 - 0.5 * t2
    return p0 * f1 + p1 * f2 + p2 * f3 + p3 * f4


def smooth_outline(points: Sequence[Point], detail: int = 30) -> List[Point]:
    """Catmull-Rom resample of ``points`` with ``detail + 1`` samples per window.

    The first point is padded once and the last twice so the curve passes through
    both ends. Fewer than two points are returned unchanged.
    """
    if len(points) < 2:
        return list(points)
    pts = np.asarray(points, dtype=np.float64)
    padded = np.concatenate([pts[:1], pts, pts[-1:], pts[-1:]], axis=0)
    t = np.linspace(0.0, 1.0, detail + 1)
    path = [
        _catmull_rom(padded[k], padded[k + 1], padded[k + 2], padded[k + 3], t)
        for k in range(len(padded) - 3)
    ]
    return [(float(x), float(y)) for x, y in np.concatenate(path, axis=0)]
