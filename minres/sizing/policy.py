"""Sizing policy: decide the minimum safe output resolution of every used asset.

Rules (per loaded image):
    1. No usage stat for the key -> asset is unused and dropped.
    2. Physical cap = source size when known, else canonical size.
    3. Requested size = override dims, or ceil(max render size * (1 + buffer/100)).
    4. Target = max(1, min(requested, cap)) per axis; overrides never upscale.
    5. is_resize = target differs from the cap on either axis.

Tasks are returned resize-first, then ordered by relative path inside each group.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, Tuple

from minres.sizing.models import AssetUsageStat, LoadedSourceImage, OptimizationTask

logger = logging.getLogger(__name__)

OUTPUT_EXTENSION = ".png"


def output_file_name(source_path: str, extension: str = OUTPUT_EXTENSION) -> str:
    """Replace the file extension of `source_path` with `extension`.

    Dots inside directory names are left alone: the extension is stripped only
    when the last dot comes after the last path separator.
    """
    last_sep = max(source_path.rfind("/"), source_path.rfind("\\"))
    last_dot = source_path.rfind(".")
    base = source_path[:last_dot] if last_dot > last_sep else source_path
    return f"{base}{extension}"


def _requested_size(stat: AssetUsageStat, buffer_percentage: float) -> Tuple[int, int]:
    if stat.is_overridden:
        return math.ceil(stat.max_render_width), math.ceil(stat.max_render_height)
    multiplier = 1 + (buffer_percentage / 100)
    return (
        math.ceil(stat.max_render_width * multiplier),
        math.ceil(stat.max_render_height * multiplier),
    )


def compute_optimization_targets(
    stats: Iterable[AssetUsageStat],
    loaded_images: Mapping[str, LoadedSourceImage],
    buffer_percentage: float = 0.0,
) -> List[OptimizationTask]:
    """Compute one `OptimizationTask` per used loaded image.

    Args:
        stats: usage stats keyed by `lookup_key`.
        loaded_images: ordered mapping lookup_key -> loaded image.
        buffer_percentage: uniform safety margin applied to non-override sizes.

    Returns:
        Tasks with every resize task before every pass-through task.
    """
    stats_by_key = {s.lookup_key: s for s in stats}
    tasks: List[OptimizationTask] = []
    dropped = 0

    for key, image in loaded_images.items():
        stat = stats_by_key.get(key)
        if stat is None:
            dropped += 1
            logger.debug("unused asset excluded: %s", image.original_path)
            continue

        phys_w, phys_h = image.physical_size
        req_w, req_h = _requested_size(stat, buffer_percentage)
        target_w = max(1, min(req_w, phys_w))
        target_h = max(1, min(req_h, phys_h))
        is_resize = target_w != phys_w or target_h != phys_h

        tasks.append(
            OptimizationTask(
                file_name=output_file_name(image.original_path),
                relative_path=image.original_path,
                original_width=phys_w,
                original_height=phys_h,
                target_width=target_w,
                target_height=target_h,
                source=image.data,
                max_scale_used=max(stat.max_scale_x, stat.max_scale_y),
                is_resize=is_resize,
                override_percentage=stat.override_percentage,
            )
        )

    tasks.sort(key=lambda t: (not t.is_resize, t.relative_path))
    if dropped:
        logger.info("excluded %d unused asset(s); %d task(s) planned", dropped, len(tasks))
    return tasks


@dataclass(frozen=True)
class SizingSummary:
    """Before/after totals of a task list."""
    total: int
    resized: int
    kept: int
    original_pixels: int
    target_pixels: int

    @property
    def pixel_ratio(self) -> float:
        if self.original_pixels == 0:
            return 1.0
        return self.target_pixels / self.original_pixels


def summarize_tasks(tasks: Sequence[OptimizationTask]) -> SizingSummary:
    resized = sum(1 for t in tasks if t.is_resize)
    return SizingSummary(
        total=len(tasks),
        resized=resized,
        kept=len(tasks) - resized,
        original_pixels=sum(t.original_width * t.original_height for t in tasks),
        target_pixels=sum(t.target_width * t.target_height for t in tasks),
    )


__all__ = [
    "OUTPUT_EXTENSION",
    "output_file_name",
    "compute_optimization_targets",
    "SizingSummary",
    "summarize_tasks",
]
