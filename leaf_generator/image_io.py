"""
Raster persistence and export.

Rasters are RGBA uint8 arrays of shape (height, width, 4). Stores keep them as PNG
data URLs keyed by ``leaf-<seed>``; any mutable mapping works as a store.
"""

import base64
import re
from collections.abc import MutableMapping
from pathlib import Path
from typing import Iterator

import cv2
import numpy as np
from PIL import Image

DATA_URL_PREFIX = "data:image/png;base64,"


def store_key(seed) -> str:
    return f"leaf-{str(seed).strip()}"


def _to_bgra(raster: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(raster, cv2.COLOR_RGBA2BGRA)


def _from_bgr_any(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)


def encode_png(raster: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", _to_bgra(raster))
    if not ok:
        raise RuntimeError("Failed to encode raster as PNG")
    return buf.tobytes()


def decode_png(data: bytes) -> np.ndarray:
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise RuntimeError("Failed to decode PNG data")
    return _from_bgr_any(img)


def encode_png_data_url(raster: np.ndarray) -> str:
    return DATA_URL_PREFIX + base64.b64encode(encode_png(raster)).decode("ascii")


def decode_png_data_url(url: str) -> np.ndarray:
    if not url.startswith(DATA_URL_PREFIX):
        raise RuntimeError("Not a PNG data URL")
    return decode_png(base64.b64decode(url[len(DATA_URL_PREFIX):]))


def load_image(path: str) -> np.ndarray:
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    return _from_bgr_any(img)


def save_image(path: str, raster: np.ndarray) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(path, _to_bgra(raster)):
        raise RuntimeError(f"Could not write image: {path}")


def export_png(raster: np.ndarray, path) -> Path:
    """Write the raster as an RGBA PNG for download."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8)).save(out, format="PNG")
    return out


class DirectoryStore(MutableMapping):
    """Data-URL store backed by one PNG file per key."""

    def __init__(self, root):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Sanitize to keep keys inside the store directory
        return self.root / (re.sub(r"[^\w\-_\.]", "_", key) + ".png")

    def __getitem__(self, key: str) -> str:
        p = self._path(key)
        if not p.exists():
            raise KeyError(key)
        return DATA_URL_PREFIX + base64.b64encode(p.read_bytes()).decode("ascii")

    def __setitem__(self, key: str, value: str) -> None:
        if not value.startswith(DATA_URL_PREFIX):
            raise ValueError("DirectoryStore only holds PNG data URLs")
        self._path(key).write_bytes(base64.b64decode(value[len(DATA_URL_PREFIX):]))

    def __delitem__(self, key: str) -> None:
        p = self._path(key)
        if not p.exists():
            raise KeyError(key)
        p.unlink()

    def __iter__(self) -> Iterator[str]:
        for p in sorted(self.root.glob("*.png")):
            yield p.stem

    def __len__(self) -> int:
        return sum(1 for _ in self.root.glob("*.png"))
