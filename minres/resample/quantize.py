"""Float -> 8-bit quantization with TPDF dither and a premultiplied-alpha-safe clamp.

Per pixel, one dither value d = u1 + u2 - 1 (u1, u2 ~ U[0, 1)) is shared by all
four channels:
    alpha_out = alpha + d
    color_out = min(color, alpha) + d
then rounded to nearest and clamped to [0, 255]. The color <= alpha clamp is
taken before dither and rounding.
"""
from __future__ import annotations

from typing import Optional

import numpy as np


def tpdf_dither(shape, rng: np.random.Generator) -> np.ndarray:
    """Triangular dither in (-1, 1), one value per element of `shape`."""
    return rng.random(shape) + rng.random(shape) - 1.0


def clamp_color_to_alpha(buf: np.ndarray) -> np.ndarray:
    """Return a copy of an (H, W, 4) buffer with RGB limited to the pixel's alpha."""
    out = np.array(buf, dtype=np.float64, copy=True)
    alpha = out[..., 3:4]
    np.minimum(out[..., :3], alpha, out=out[..., :3])
    return out


def quantize(
    buf: np.ndarray,
    rng: Optional[np.random.Generator] = None,
    dither: bool = True,
) -> np.ndarray:
    """Quantize an (H, W, 4) float RGBA buffer to uint8.

    Args:
        buf: float samples on the 0..255 scale.
        rng: dither source; a fresh unseeded generator is used when omitted.
        dither: disable to round without noise.

    Returns:
        uint8 (H, W, 4) array.
    """
    if buf.ndim != 3 or buf.shape[2] != 4:
        raise ValueError(f"expected (H, W, 4) buffer, got shape {buf.shape}")
    clamped = clamp_color_to_alpha(buf)
    if dither:
        if rng is None:
            rng = np.random.default_rng()
        d = tpdf_dither(buf.shape[:2], rng)
        clamped += d[..., None]
    np.nan_to_num(clamped, copy=False, nan=0.0)
    np.rint(clamped, out=clamped)
    np.clip(clamped, 0, 255, out=clamped)
    return clamped.astype(np.uint8)


__all__ = ["tpdf_dither", "clamp_color_to_alpha", "quantize"]
