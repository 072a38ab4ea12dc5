"""
Seeded leaf generator: grows an L-system skeleton, traces its outline and paints
gradient, vein, cellular and stipple layers plus a Bezier stem into an RGBA raster.
"""

from .synth import (
    PROGRESS_CHECKPOINTS,
    InvalidSeedError,
    LeafConfig,
    coerce_seed,
    default_config,
    generate,
    render,
)
from .image_io import DirectoryStore, export_png, store_key

__all__ = [
    "PROGRESS_CHECKPOINTS",
    "InvalidSeedError",
    "LeafConfig",
    "coerce_seed",
    "default_config",
    "generate",
    "render",
    "DirectoryStore",
    "export_png",
    "store_key",
]
