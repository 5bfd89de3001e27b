"""Float box-filter pyramid used before the final Lanczos pass.

Design:
 - Halve both axes (floor division) with a 2x2 box average while the buffer is
   more than 2x the target on BOTH axes.
 - Stay in float32 between levels; no 8-bit rounding, so no banding.
 - Each level replaces the previous buffer.
"""
from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def _needs_halving(w: int, h: int, target_w: int, target_h: int) -> bool:
    return w > 2 * target_w and h > 2 * target_h


def pyramid_levels(w: int, h: int, target_w: int, target_h: int) -> int:
    """Number of halvings `downscale_pyramid` performs for a (w, h) -> (target_w, target_h) reduction."""
    levels = 0
    while _needs_halving(w, h, target_w, target_h):
        w, h = w // 2, h // 2
        levels += 1
    return levels


def halve(buf: np.ndarray) -> np.ndarray:
    """Average non-overlapping 2x2 blocks of an (H, W, C) float buffer. Odd last row/column is dropped."""
    h, w = buf.shape[0] // 2, buf.shape[1] // 2
    blocks = buf[: 2 * h, : 2 * w].reshape(h, 2, w, 2, buf.shape[2])
    tl = blocks[:, 0, :, 0]
    tr = blocks[:, 0, :, 1]
    bl = blocks[:, 1, :, 0]
    br = blocks[:, 1, :, 1]
    return ((tl + tr + bl + br) * np.float32(0.25)).astype(np.float32, copy=False)


def downscale_pyramid(buf: np.ndarray, target_w: int, target_h: int) -> np.ndarray:
    """Repeatedly halve `buf` until it is within 2x of the target on at least one axis."""
    if target_w < 1 or target_h < 1:
        raise ValueError(f"target size must be >= 1, got {target_w}x{target_h}")
    cur = buf
    h, w = cur.shape[:2]
    while _needs_halving(w, h, target_w, target_h):
        cur = halve(cur)
        h, w = cur.shape[:2]
        logger.debug("pyramid reduce -> %dx%d", w, h)
    return cur


__all__ = ["pyramid_levels", "halve", "downscale_pyramid"]
