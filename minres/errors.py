"""Exception hierarchy shared by the sizing, resampling and packaging stages."""
from __future__ import annotations


class MinresError(RuntimeError):
    """Base class for all project errors."""


class ResampleError(MinresError):
    """Raised when a single image cannot be resampled. Recoverable per task."""


class ImportFailure(ResampleError):
    """Raised when raw RGBA samples cannot be obtained from the source bytes."""


class EncodeFailure(ResampleError):
    """Raised when the quantized buffer cannot be encoded."""


class PackagingCancelled(MinresError):
    """Raised when a batch is cancelled before every task completed."""

    def __init__(self, completed: int, total: int):
        super().__init__(f"packaging cancelled after {completed}/{total} tasks")
        self.completed = completed
        self.total = total


class ConfigError(MinresError, ValueError):
    """Raised for invalid or missing configuration values."""


__all__ = [
    "MinresError",
    "ResampleError",
    "ImportFailure",
    "EncodeFailure",
    "PackagingCancelled",
    "ConfigError",
]
