"""Resample entry point: bytes in, PNG bytes out.

Stages:
    decode (codec) -> float pyramid -> Lanczos-3 -> dither/quantize -> encode (codec)

`resample_image` raises `ImportFailure` / `EncodeFailure`; `run` wraps it and
returns a `ResampleOutcome` so batch callers can fall back to the original bytes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from minres.errors import ResampleError
from minres.resample.codecs import ImageCodec, get_codec
from minres.resample.lanczos import lanczos_resample
from minres.resample.pyramid import downscale_pyramid
from minres.resample.quantize import quantize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResampleConfig:
    seed: Optional[int] = None     # dither seed; None -> nondeterministic
    dither: bool = True
    codec: str = "pillow"          # 'pillow' | 'opencv'

    def make_rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)


@dataclass(frozen=True)
class ResampleOutcome:
    data: Optional[bytes]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.data is not None


def resample_pixels(
    pixels: np.ndarray,
    target_w: int,
    target_h: int,
    rng: Optional[np.random.Generator] = None,
    dither: bool = True,
) -> np.ndarray:
    """Numerical core on an already decoded float32 (H, W, 4) buffer. Returns uint8 (target_h, target_w, 4)."""
    if target_w < 1 or target_h < 1:
        raise ValueError(f"target size must be >= 1, got {target_w}x{target_h}")
    reduced = downscale_pyramid(pixels, target_w, target_h)
    resampled = lanczos_resample(reduced, target_w, target_h)
    return quantize(resampled, rng=rng, dither=dither)


def resample_image(
    source_bytes: bytes,
    target_w: int,
    target_h: int,
    config: Optional[ResampleConfig] = None,
    codec: Optional[ImageCodec] = None,
    rng: Optional[np.random.Generator] = None,
) -> bytes:
    """Decode `source_bytes`, resample to (target_w, target_h) and return PNG bytes."""
    cfg = config or ResampleConfig()
    if target_w < 1 or target_h < 1:
        raise ValueError(f"target size must be >= 1, got {target_w}x{target_h}")
    codec = codec or get_codec(cfg.codec)
    rng = rng if rng is not None else cfg.make_rng()

    pixels = codec.decode(source_bytes)
    src_h, src_w = pixels.shape[:2]
    logger.debug("resample %dx%d -> %dx%d (codec=%s)", src_w, src_h, target_w, target_h, codec.name)
    out = resample_pixels(pixels, target_w, target_h, rng=rng, dither=cfg.dither)
    return codec.encode(out)


def run(
    source_bytes: bytes,
    target_w: int,
    target_h: int,
    config: Optional[ResampleConfig] = None,
    codec: Optional[ImageCodec] = None,
    rng: Optional[np.random.Generator] = None,
) -> ResampleOutcome:
    """Like `resample_image` but reports per-image failures instead of raising."""
    try:
        return ResampleOutcome(data=resample_image(source_bytes, target_w, target_h, config, codec, rng))
    except (ResampleError, MemoryError) as e:
        logger.warning("resample failed (%dx%d): %s", target_w, target_h, e)
        return ResampleOutcome(data=None, error=str(e))


__all__ = ["ResampleConfig", "ResampleOutcome", "resample_pixels", "resample_image", "run"]
