"""Separable Lanczos-3 resampling of float RGBA buffers.

Kernel:
    L(0) = 1, L(x) = 0 for |x| >= 3, else sinc(x) * sinc(x / 3), sinc(t) = sin(pi t) / (pi t)

Per output coordinate i on an axis of source length S and target length T:
    center = (i + 0.5) * S / T - 0.5
    taps   = floor(center) - 2 .. floor(center) + 3      (6 taps)
    weight = L(center - tap), renormalized to sum 1 (skipped if the raw sum is exactly 0)
    index  = clamp(tap, 0, S - 1)                          (edge replication)

Horizontal pass first into a (H_src, T_w) intermediate, then vertical into (T_h, T_w).
Everything stays floating point across both passes.
"""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)

LOBES = 3
TAPS = 2 * LOBES


def lanczos3(x):
    """Evaluate the Lanczos-3 kernel at `x` (scalar or array)."""
    arr = np.asarray(x, dtype=np.float64)
    flat = np.atleast_1d(arr)
    out = np.zeros_like(flat)
    inside = np.abs(flat) < LOBES
    xi = flat[inside]
    px = np.pi * xi
    with np.errstate(divide="ignore", invalid="ignore"):
        vals = (np.sin(px) / px) * (np.sin(px / LOBES) / (px / LOBES))
    vals[xi == 0] = 1.0
    out[inside] = vals
    if arr.ndim == 0:
        return float(out[0])
    return out


def axis_weights(src_size: int, dst_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """Tap indices and normalized weights for resampling one axis.

    Returns:
        (indices[dst_size, 6] int64, weights[dst_size, 6] float64)
    """
    if src_size < 1 or dst_size < 1:
        raise ValueError(f"axis sizes must be >= 1, got {src_size} -> {dst_size}")
    ratio = src_size / dst_size
    centers = (np.arange(dst_size, dtype=np.float64) + 0.5) * ratio - 0.5
    base = np.floor(centers).astype(np.int64)
    taps = base[:, None] + np.arange(-(LOBES - 1), LOBES + 1, dtype=np.int64)[None, :]
    weights = lanczos3(centers[:, None] - taps)

    sums = weights.sum(axis=1)
    degenerate = sums == 0
    if degenerate.any():
        logger.debug("%d degenerate weight set(s); leaving unnormalized", int(degenerate.sum()))
    safe = np.where(degenerate, 1.0, sums)
    weights = weights / safe[:, None]

    indices = np.clip(taps, 0, src_size - 1)
    return indices, weights


def resample_horizontal(buf: np.ndarray, target_w: int) -> np.ndarray:
    """(H, W, C) -> (H, target_w, C)."""
    indices, weights = axis_weights(buf.shape[1], target_w)
    acc = np.zeros((buf.shape[0], target_w, buf.shape[2]), dtype=np.float64)
    for k in range(TAPS):
        acc += buf[:, indices[:, k], :] * weights[None, :, k, None]
    return acc.astype(np.float32)


def resample_vertical(buf: np.ndarray, target_h: int) -> np.ndarray:
    """(H, W, C) -> (target_h, W, C)."""
    indices, weights = axis_weights(buf.shape[0], target_h)
    acc = np.zeros((target_h, buf.shape[1], buf.shape[2]), dtype=np.float64)
    for k in range(TAPS):
        acc += buf[indices[:, k], :, :] * weights[:, k, None, None]
    return acc.astype(np.float32)


def lanczos_resample(buf: np.ndarray, target_w: int, target_h: int) -> np.ndarray:
    """Resample an (H, W, 4) float buffer to exactly (target_h, target_w, 4)."""
    if buf.ndim != 3:
        raise ValueError(f"expected (H, W, C) buffer, got shape {buf.shape}")
    tmp = resample_horizontal(buf, target_w)
    return resample_vertical(tmp, target_h)


__all__ = [
    "LOBES",
    "TAPS",
    "lanczos3",
    "axis_weights",
    "resample_horizontal",
    "resample_vertical",
    "lanczos_resample",
]
