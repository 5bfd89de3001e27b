"""Data records exchanged between the sizing policy, the resampler and the packager.

Records:
    AssetUsageStat     aggregated on-screen usage of one logical asset (read-only input)
    LoadedSourceImage  physically decoded asset (bytes + dimensions)
    OptimizationTask   per-asset decision produced by the sizing policy

All records are immutable (`frozen=True`).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

# camelCase keys as exported by the usage aggregation step
_STAT_KEY_ALIASES = {
    "lookupKey": "lookup_key",
    "maxRenderWidth": "max_render_width",
    "maxRenderHeight": "max_render_height",
    "maxScaleX": "max_scale_x",
    "maxScaleY": "max_scale_y",
    "isOverridden": "is_overridden",
    "overridePercentage": "override_percentage",
}


@dataclass(frozen=True)
class AssetUsageStat:
    """Maximum usage observed for one asset.

    When `is_overridden` is set, `max_render_width/height` carry the override
    dimensions (override percentage already applied upstream).
    """
    lookup_key: str
    max_render_width: float
    max_render_height: float
    max_scale_x: float = 1.0
    max_scale_y: float = 1.0
    is_overridden: bool = False
    override_percentage: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AssetUsageStat":
        """Build a stat from a mapping with snake_case or camelCase keys."""
        data = {_STAT_KEY_ALIASES.get(k, k): v for k, v in raw.items()}
        missing = [k for k in ("lookup_key", "max_render_width", "max_render_height") if k not in data]
        if missing:
            raise ValueError(f"usage stat is missing fields: {', '.join(missing)}")
        override = data.get("override_percentage")
        return cls(
            lookup_key=str(data["lookup_key"]),
            max_render_width=float(data["max_render_width"]),
            max_render_height=float(data["max_render_height"]),
            max_scale_x=float(data.get("max_scale_x", 1.0)),
            max_scale_y=float(data.get("max_scale_y", 1.0)),
            is_overridden=bool(data.get("is_overridden", False)),
            override_percentage=None if override is None else float(override),
        )


@dataclass(frozen=True)
class LoadedSourceImage:
    """A decoded source asset.

    Fields:
        width, height: canonical size, px.
        data: raw encoded bytes of the file.
        original_path: relative path of the source file.
        source_width, source_height: true physical size when the canonical size is a scaled proxy.
    """
    width: int
    height: int
    data: bytes = field(repr=False)
    original_path: str
    source_width: Optional[int] = None
    source_height: Optional[int] = None

    @property
    def physical_size(self) -> Tuple[int, int]:
        w = self.source_width if self.source_width is not None else self.width
        h = self.source_height if self.source_height is not None else self.height
        return int(w), int(h)


@dataclass(frozen=True)
class OptimizationTask:
    """Sizing decision for one asset, consumed by the packager."""
    file_name: str
    relative_path: str
    original_width: int
    original_height: int
    target_width: int
    target_height: int
    source: bytes = field(repr=False)
    max_scale_used: float
    is_resize: bool
    override_percentage: Optional[float] = None

    @property
    def target_size(self) -> Tuple[int, int]:
        return self.target_width, self.target_height

    @property
    def original_size(self) -> Tuple[int, int]:
        return self.original_width, self.original_height


__all__ = ["AssetUsageStat", "LoadedSourceImage", "OptimizationTask"]
