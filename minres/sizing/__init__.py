from minres.sizing.models import AssetUsageStat, LoadedSourceImage, OptimizationTask
from minres.sizing.policy import (
    OUTPUT_EXTENSION,
    SizingSummary,
    compute_optimization_targets,
    output_file_name,
    summarize_tasks,
)

__all__ = [
    "AssetUsageStat",
    "LoadedSourceImage",
    "OptimizationTask",
    "OUTPUT_EXTENSION",
    "SizingSummary",
    "compute_optimization_targets",
    "output_file_name",
    "summarize_tasks",
]
