"""
Command-line interface to size and downscale an asset folder into a zip package.

Usage example:
  minres-optimize --cfg configs/optimize.yaml \
                  --set buffer_percentage=10 --set workers=4 --set seed=7

Notes
- --cfg must point to a YAML file (see OptimizeConfig for the keys).
- Use --set key=value to override YAML fields at runtime (repeatable).
- Relative paths inside the YAML (source_dir, stats, output) are resolved
  relative to the cfg file directory.
"""
from __future__ import annotations

import argparse
import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional, Tuple

from minres.errors import ConfigError

PATH_FIELDS = ("source_dir", "stats", "output")


def _as_bool(v: Any) -> bool:
    if isinstance(v, str):
        lowered = v.strip().lower()
        if lowered in {"true", "yes", "on", "1"}:
            return True
        if lowered in {"false", "no", "off", "0", ""}:
            return False
        raise ValueError(f"not a boolean: {v!r}")
    return bool(v)


@dataclass(frozen=True)
class OptimizeConfig:
    source_dir: str
    stats: str
    output: str = "images_optimized.zip"
    buffer_percentage: float = 0.0
    workers: int = 1
    seed: Optional[int] = None
    dither: bool = True
    codec: str = "pillow"
    root_folder: str = "images_optimized"
    progress: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "OptimizeConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(cfg) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        for key in ("source_dir", "stats"):
            if not cfg.get(key):
                raise ConfigError(f"Missing required config key: {key}")
        try:
            out = cls(**dict(cfg))
            # YAML and --set may hand back strings, ints or floats for typed fields
            return dataclasses.replace(
                out,
                buffer_percentage=float(out.buffer_percentage),
                workers=int(out.workers),
                seed=None if out.seed is None else int(out.seed),
                dither=_as_bool(out.dither),
                progress=_as_bool(out.progress),
                source_dir=str(out.source_dir),
                stats=str(out.stats),
                output=str(out.output),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e


def _parse_key_value(s: str) -> Tuple[str, Any]:
    """Parse a key=value string and convert the value to a sensible type.

    Attempts to parse ints, floats, bools, None, and simple Python literals
    (lists/tuples/dicts) using ast.literal_eval. Falls back to raw string.
    """
    import ast

    if "=" not in s:
        raise argparse.ArgumentTypeError(f"Override '{s}' must be in key=value format")
    k, v = s.split("=", 1)
    k = k.strip()
    v = v.strip()
    if not k:
        raise argparse.ArgumentTypeError("Override key cannot be empty")
    lowered = v.lower()
    if lowered in {"true", "false"}:
        return k, lowered == "true"
    if lowered in {"none", "null"}:
        return k, None
    try:
        if v.isdigit() or (v.startswith("-") and v[1:].isdigit()):
            return k, int(v)
        return k, float(v)
    except ValueError:
        pass
    try:
        return k, ast.literal_eval(v)
    except (ValueError, SyntaxError):
        return k, v


def _deep_update(dst: MutableMapping[str, Any], src: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Deep-merge mapping 'src' into 'dst' in-place and return dst."""
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_update(dst[k], v)  # type: ignore[index]
        else:
            dst[k] = v
    return dst


def _resolve_path_fields(cfg: Dict[str, Any], base_dir: Path, fields: Iterable[str]) -> None:
    """Resolve path-like fields in the config relative to 'base_dir' if they are relative.

    Mutates cfg in-place.
    """
    for field in fields:
        if field in cfg and isinstance(cfg[field], (str, os.PathLike)) and cfg[field]:
            p = Path(cfg[field])
            if not p.is_absolute():
                cfg[field] = str((base_dir / p).resolve())


def load_cfg(path: str, overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    """Load a YAML config from 'path' and merge optional flat overrides."""
    import yaml  # type: ignore[import-not-found]

    cfg_path = Path(path)
    if not cfg_path.is_file():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        cfg: Dict[str, Any] = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config root must be a mapping: {cfg_path}")

    if overrides:
        cfg = dict(cfg)
        _deep_update(cfg, dict(overrides))

    _resolve_path_fields(cfg, cfg_path.parent, fields=PATH_FIELDS)
    return cfg


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="minres-optimize",
        description="Downscale used assets to their minimum safe resolution and package them as a zip",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--cfg",
        type=str,
        required=True,
        help="Path to the optimize YAML. Relative paths inside will be resolved relative to this file.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        type=_parse_key_value,
        action="append",
        default=[],
        metavar="key=value",
        help="Override fields from the YAML. Can be used multiple times.",
    )
    return parser.parse_args(argv)


def optimize(cfg: OptimizeConfig, logger) -> int:
    """Run sizing + packaging for a validated config. Returns POSIX exit code."""
    from minres.data.manifest import load_canonical_sizes, load_usage_stats, scan_source_images
    from minres.packaging.archive import build_archive
    from minres.resample.pipeline import ResampleConfig
    from minres.sizing.policy import compute_optimization_targets, summarize_tasks

    stats = load_usage_stats(cfg.stats)
    images = scan_source_images(cfg.source_dir, canonical_sizes=load_canonical_sizes(cfg.stats))
    tasks = compute_optimization_targets(stats, images, cfg.buffer_percentage)

    summary = summarize_tasks(tasks)
    logger.info(
        f"[optimize] {summary.total} used asset(s) of {len(images)} loaded; "
        f"{summary.resized} to resize, {summary.kept} kept; pixels {summary.original_pixels} -> "
        f"{summary.target_pixels} ({summary.pixel_ratio:.1%})"
    )
    for t in tasks:
        if t.is_resize:
            logger.info(
                f"[optimize]   {t.relative_path}: {t.original_width}x{t.original_height} -> "
                f"{t.target_width}x{t.target_height} (max scale {t.max_scale_used:g})"
            )

    report = build_archive(
        tasks,
        cfg.output,
        config=ResampleConfig(seed=cfg.seed, dither=cfg.dither, codec=cfg.codec),
        workers=cfg.workers,
        root_folder=cfg.root_folder,
        show_progress=cfg.progress,
    )
    if report.fallbacks:
        logger.warning(f"[optimize] {len(report.fallbacks)} image(s) shipped unresized: {', '.join(report.fallbacks)}")
    logger.info(f"[optimize] Wrote {report.written} file(s) to {cfg.output}")
    return 0


def main(argv: List[str] | None = None) -> int:
    """Entry point for console script. Returns POSIX exit code."""
    from minres.utils.logger import get_logger

    args = parse_args(argv)
    overrides = {k: v for k, v in (args.overrides or [])}

    logger = get_logger("minres")
    try:
        cfg = OptimizeConfig.from_dict(load_cfg(args.cfg, overrides=overrides))
    except (ConfigError, FileNotFoundError) as e:
        logger.error(f"[optimize] {e}")
        return 2
    logger = get_logger("minres", level=cfg.log_level)

    try:
        return optimize(cfg, logger)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"[optimize] {e}")
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
