from __future__ import annotations

"""
Seeded leaf synthesizer.

One numpy RandomState, seeded once, is threaded through every randomized step in
a fixed order: grammar jitter, shape-walk turns, vein-walk turns, edge feature
points, green stipple, red stipple. Changing that order changes every leaf.

Progress is reported through an optional callback at fixed checkpoints so a host
can repaint between phases; the phases themselves always run in sequence.
"""

import hashlib
import math
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Tuple

import numpy as np

from .grammar import AXIOM, Grammar, GrowthParams
from .image_io import decode_png_data_url, encode_png_data_url, store_key
from .outline import leaf_outline, smooth_outline
from .raster import Layer, Point, composite, rasterize_mask
from .stem import stem_layer
from .texture import edge_layer, gradient_layer, sample_inside, stipple_layer, vein_layer
from .turtle import TurtleParams, Walk, shape_walk, vein_walk

PROGRESS_CHECKPOINTS = (0, 10, 20, 25, 50, 70, 80, 90, 100)

ProgressFn = Callable[[int], None]


class InvalidSeedError(ValueError):
    pass


@dataclass
class LeafConfig:
    # canvas
    width: int = 1000
    height: int = 700

    # Grammar
    axiom: str = AXIOM
    generations: int = 9
    b: float = 5.0
    c: float = 1.15
    d: float = 3.0
    e: float = 1.2
    f: int = 1
    branch_jitter: float = 0.2

    # Turtle
    angle: float = 70.0
    global_scale: float = 8.0
    start_heading: float = -90.0
    heading_damping: float = math.pi / 180.0
    turn_jitter: float = 10.0
    origin_frac: Tuple[float, float] = (0.125, 0.5)  # turtle origin as a fraction of the canvas

    # Outline
    stem_tip_offset: float = 760.0
    spline_detail: int = 30

    # Veins
    vein_weight: float = 15.0
    vein_blur: float = 20.0

    # Cellular shading
    n_points: int = 1000
    edge_threshold: float = 0.1

    # Dot stipple (green pass, then red pass)
    cell_count: int = 50
    stipple_draws: int = 50000
    green_shade_far: float = 100.0
    green_dot_alpha: float = 10.0
    red_shade_far: float = 180.0
    red_dot_alpha: float = 50.0

    # Stem (control points relative to the turtle origin)
    stem_steps: int = 100
    stem_controls: Tuple[Point, ...] = ((-50.0, 15.0), (120.0, -15.0), (340.0, -40.0), (560.0, -15.0))


def default_config() -> Dict[str, Any]:
    return asdict(LeafConfig())


def make_config(config: Optional[Dict[str, Any]] = None) -> LeafConfig:
    """Defaults overridden by ``config``; unknown keys raise TypeError."""
    return LeafConfig(**{**default_config(), **(config or {})})


def coerce_seed(seed: Any) -> int:
    """Integer seed for ``seed``.

    Integers and integral floats pass through, integer strings are parsed, any other
    non-blank string maps to the first 32 bits of its SHA-256.
    """
    if seed is None or isinstance(seed, bool):
        raise InvalidSeedError(f"invalid seed: {seed!r}")
    if isinstance(seed, (int, np.integer)):
        return int(seed)
    if isinstance(seed, float):
        if not math.isfinite(seed) or not seed.is_integer():
            raise InvalidSeedError(f"seed must be integral, got {seed!r}")
        return int(seed)
    if isinstance(seed, str):
        text = seed.strip()
        if not text:
            raise InvalidSeedError("seed must not be empty")
        try:
            return int(text, 10)
        except ValueError:
            return int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:4], "big")
    raise InvalidSeedError(f"seed of type {type(seed).__name__} is not supported")


def make_rng(seed: int) -> np.random.RandomState:
    return np.random.RandomState(seed % 2 ** 32)


@dataclass
class LeafRender:
    """Everything one run produced, kept for inspection and tests."""
    seed: int
    sentence: str
    shape: Walk
    veins: Walk
    outline: List[Point]
    smoothed: List[Point]
    mask: np.ndarray
    features: np.ndarray
    layers: Dict[str, Layer] = field(default_factory=dict)
    raster: Optional[np.ndarray] = None


class _Phases:
    def __init__(self, progress: Optional[ProgressFn], verbose: bool):
        self.progress = progress
        self.verbose = verbose
        self.t0 = time.perf_counter()

    def done(self, pct: int, name: str) -> None:
        if self.verbose:
            now = time.perf_counter()
            print(f"[TIMING][leaf] phase={name} {now - self.t0:.3f}s")
            self.t0 = now
        if self.progress is not None:
            self.progress(pct)


def render(seed: int, cfg: LeafConfig, progress: Optional[ProgressFn] = None, verbose: bool = False) -> LeafRender:
    """Run the whole pipeline for an already coerced seed."""
    ph = _Phases(progress, verbose)
    ph.done(0, "start")
    rng = make_rng(seed)
    w, h = cfg.width, cfg.height
    origin = (w * cfg.origin_frac[0], h * cfg.origin_frac[1])

    growth = GrowthParams(generations=cfg.generations, b=cfg.b, c=cfg.c, d=cfg.d, e=cfg.e,
                          f=cfg.f, branch_jitter=cfg.branch_jitter)
    sentence = Grammar(growth, rng).expand(cfg.axiom)
    ph.done(10, "grammar")

    tparams = TurtleParams(angle=cfg.angle, global_scale=cfg.global_scale, start_heading=cfg.start_heading,
                           heading_damping=cfg.heading_damping, turn_jitter=cfg.turn_jitter)
    shape = shape_walk(sentence, tparams, rng, origin)
    outline = leaf_outline(shape.left, shape.right, shape.end, cfg.stem_tip_offset)
    smoothed = smooth_outline(outline, cfg.spline_detail)
    ph.done(20, "outline")

    mask = rasterize_mask(smoothed, w, h)
    gradient = gradient_layer(mask)
    veins = vein_walk(sentence, tparams, rng, origin)
    vein = vein_layer(veins.segments, mask, cfg.vein_weight, cfg.vein_blur)
    features = sample_inside(mask, cfg.n_points, rng)
    ph.done(25, "mask")

    edges = edge_layer(mask, features, cfg.edge_threshold)
    ph.done(50, "cells")

    green = stipple_layer(mask, rng, cfg.cell_count, cfg.stipple_draws, cfg.green_shade_far, cfg.green_dot_alpha)
    ph.done(70, "green_stipple")
    red = stipple_layer(mask, rng, cfg.cell_count, cfg.stipple_draws, cfg.red_shade_far, cfg.red_dot_alpha)
    ph.done(80, "red_stipple")

    stem = stem_layer(w, h, origin, cfg.stem_controls, cfg.stem_steps)
    ph.done(90, "stem")

    layers = {"gradient": gradient, "veins": vein, "edges": edges, "green": green, "red": red, "stem": stem}
    raster = composite(w, h, list(layers.values())).to_rgba8()
    ph.done(100, "composite")
    return LeafRender(seed=seed, sentence=sentence, shape=shape, veins=veins, outline=outline,
                      smoothed=smoothed, mask=mask, features=features, layers=layers, raster=raster)


def generate(seed: Any, config: Optional[Dict[str, Any]] = None, progress: Optional[ProgressFn] = None,
             store: Optional[MutableMapping[str, str]] = None, verbose: bool = False) -> np.ndarray:
    """
    Generate the leaf raster (height, width, 4) RGBA uint8 for ``seed``.
    With a ``store``, a raster already kept under ``leaf-<seed>`` is decoded and
    returned without generating; a fresh raster is written back. The key names
    only the seed, so runs with config overrides bypass the store.
    """
    seed_int = coerce_seed(seed)
    cfg = make_config(config)
    key = store_key(seed)
    if store is not None and asdict(cfg) != default_config():
        store = None
    if store is not None:
        cached = store.get(key)
        if cached is not None:
            raster = decode_png_data_url(cached)
            if progress is not None:
                progress(100)
            return raster

    raster = render(seed_int, cfg, progress=progress, verbose=verbose).raster
    if store is not None:
        store[key] = encode_png_data_url(raster)
    return raster
