from __future__ import annotations

"""
CLI module to render a batch of leaves with leaf_generator.synth.
Each seed is exported as cordate-leaf-<seed>.png; seeds already present in the
store are decoded instead of regenerated.
"""

import argparse
import json
import os
import re
import time
from pathlib import Path
from typing import List, Optional

from .image_io import DirectoryStore, export_png
from .synth import coerce_seed, generate

EXPORT_PREFIX = "cordate-leaf-"


def export_name(seed: str) -> str:
    return EXPORT_PREFIX + re.sub(r"[^\w\-_\.]", "_", str(seed).strip()) + ".png"


def seeds_from_args(args: argparse.Namespace) -> List[str]:
    if args.seed:
        return list(args.seed)
    return [str(args.seed_base + i) for i in range(args.n_images)]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Render seeded leaves to PNG")
    ap.add_argument("--out-dir", type=str, required=True)
    ap.add_argument("--seed", action="append", default=None, help="Seed to render; repeat for more")
    ap.add_argument("--n-images", type=int, default=1, help="Number of integer seeds when --seed is not given")
    ap.add_argument("--seed-base", type=int, default=0, help="First integer seed when --seed is not given")
    ap.add_argument("--store-dir", type=str, default=os.getenv("LEAFLET_STORE_DIR"),
                    help="Directory of previously rendered leaves (default: $LEAFLET_STORE_DIR)")
    ap.add_argument("--config-file", type=str, default=None, help="JSON overrides for LeafConfig")
    ap.add_argument("--verbose", action="store_true")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    cfg_dict = None
    if args.config_file:
        with open(args.config_file, "r", encoding="utf-8") as f:
            cfg_dict = json.load(f)
    store = DirectoryStore(args.store_dir) if args.store_dir else None

    seeds = seeds_from_args(args)
    # Reject bad seeds before any rendering starts
    for s in seeds:
        coerce_seed(s)
    print(f"[batch_job] n_images={len(seeds)} out_dir={out_dir}")

    for s in seeds:
        t0 = time.perf_counter()
        raster = generate(s, config=cfg_dict, store=store, verbose=args.verbose)
        path = export_png(raster, out_dir / export_name(s))
        print(f"[batch_job] seed={s} -> {path} ({time.perf_counter() - t0:.3f}s)")

    print(f"Rendered {len(seeds)} leaves into {out_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
