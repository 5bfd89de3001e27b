"""Build sizing-policy inputs from disk.

Usage stats document (YAML or JSON):

  stats:
    - lookup_key: ui/button.png        # relative path under source_dir
      max_render_width: 120
      max_render_height: 48
      max_scale_x: 1.5
      max_scale_y: 1.5
    - lookupKey: bg/sky.jpg            # camelCase keys are accepted too
      maxRenderWidth: 960
      maxRenderHeight: 540
      isOverridden: true
      overridePercentage: 50
  canonical_sizes:                     # optional: nominal size when the file is a hi-res source
    bg/sky.jpg: [1920, 1080]

A top-level list is read as the `stats` list.

Source images are keyed by their POSIX path relative to the source directory
and returned in sorted path order.
"""
from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml
from PIL import Image

from minres.sizing.models import AssetUsageStat, LoadedSourceImage

logger = logging.getLogger(__name__)

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tif", ".tiff"}


def _load_document(path: Path) -> Any:
    if not path.is_file():
        raise FileNotFoundError(f"stats file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_usage_stats(path: str | Path) -> List[AssetUsageStat]:
    """Read usage stats from a YAML/JSON document."""
    doc = _load_document(Path(path))
    entries = doc.get("stats", []) if isinstance(doc, dict) else doc
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValueError(f"'stats' must be a list in {path}")
    return [AssetUsageStat.from_dict(e) for e in entries]


def load_canonical_sizes(path: str | Path) -> Dict[str, Tuple[int, int]]:
    """Read the optional `canonical_sizes` mapping of a stats document."""
    doc = _load_document(Path(path))
    if not isinstance(doc, dict):
        return {}
    raw = doc.get("canonical_sizes") or {}
    sizes: Dict[str, Tuple[int, int]] = {}
    for key, wh in raw.items():
        if not (isinstance(wh, (list, tuple)) and len(wh) == 2):
            raise ValueError(f"canonical size for {key} must be [width, height], got {wh!r}")
        sizes[str(key)] = (int(wh[0]), int(wh[1]))
    return sizes


def list_images(root: Path, exts: Iterable[str] = IMAGE_EXTS) -> List[Path]:
    exts = {e.lower() for e in exts}
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in exts)


def _image_size(data: bytes) -> Optional[Tuple[int, int]]:
    """Read image size from the header without decoding pixels."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            return im.size
    except Exception:
        return None


def scan_source_images(
    root: str | Path,
    canonical_sizes: Optional[Mapping[str, Tuple[int, int]]] = None,
    exts: Iterable[str] = IMAGE_EXTS,
) -> Dict[str, LoadedSourceImage]:
    """Load every image under `root`, keyed by relative POSIX path.

    The file's own pixel size is the physical size. When `canonical_sizes` has
    an entry for the key, that becomes the canonical size and the file size is
    kept as the physical source size.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"source directory not found: {root}")
    canonical_sizes = canonical_sizes or {}

    images: Dict[str, LoadedSourceImage] = {}
    for fp in list_images(root, exts):
        rel = fp.relative_to(root).as_posix()
        data = fp.read_bytes()
        size = _image_size(data)
        if size is None:
            logger.warning("skipping unreadable image %s", rel)
            continue
        w, h = size
        if rel in canonical_sizes:
            cw, ch = canonical_sizes[rel]
            images[rel] = LoadedSourceImage(
                width=cw, height=ch, data=data, original_path=rel, source_width=w, source_height=h,
            )
        else:
            images[rel] = LoadedSourceImage(width=w, height=h, data=data, original_path=rel)
    logger.info("loaded %d source image(s) from %s", len(images), root)
    return images


__all__ = [
    "IMAGE_EXTS",
    "load_usage_stats",
    "load_canonical_sizes",
    "list_images",
    "scan_source_images",
]
