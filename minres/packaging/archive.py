"""Batch packager: resample every task and write the outputs into a zip archive.

Design:
    - Tasks run in list order; with workers > 1 they run on a thread pool, but
      entries are written and progress is reported strictly in task order.
    - A resize that fails (import/encode) ships the original bytes under the
      same output name; the batch never aborts on a single image.
    - Every entry lives under one root folder, keeping the task's relative path.
    - Seeded runs derive one RNG per task index, so output bytes do not depend
      on worker scheduling.
    - Cancellation (threading.Event) stops launching tasks; entries already
      written stay in the archive.
"""
from __future__ import annotations

import logging
import threading
import zipfile
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from tqdm.auto import tqdm

from minres.errors import PackagingCancelled
from minres.resample.codecs import ImageCodec, get_codec
from minres.resample.pipeline import ResampleConfig, run
from minres.sizing.models import OptimizationTask

logger = logging.getLogger(__name__)

DEFAULT_ROOT_FOLDER = "images_optimized"

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class PackagingReport:
    total: int
    written: int
    resized: int
    fallbacks: Tuple[str, ...]
    input_bytes: int
    output_bytes: int


def archive_entry_name(file_name: str, root_folder: str = DEFAULT_ROOT_FOLDER) -> str:
    """Zip entry name for an output: '<root_folder>/<relative/output/name>'."""
    name = file_name.replace("\\", "/").lstrip("/")
    root = root_folder.strip("/")
    return f"{root}/{name}" if root else name


def _check_unique(tasks: Sequence[OptimizationTask], root_folder: str) -> List[str]:
    names = [archive_entry_name(t.file_name, root_folder) for t in tasks]
    seen: set[str] = set()
    dupes: set[str] = set()
    for n in names:
        if n in seen:
            dupes.add(n)
        seen.add(n)
    if dupes:
        raise ValueError(f"duplicate output names in task list: {', '.join(sorted(dupes))}")
    return names


def _task_rng(config: ResampleConfig, index: int) -> np.random.Generator:
    if config.seed is None:
        return np.random.default_rng()
    return np.random.default_rng(np.random.SeedSequence([int(config.seed), index]))


def process_task(
    task: OptimizationTask,
    index: int,
    config: ResampleConfig,
    codec: ImageCodec,
) -> Tuple[bytes, bool]:
    """Produce the bytes for one task. Returns (data, resized_ok)."""
    if not task.is_resize:
        return task.source, False
    outcome = run(task.source, task.target_width, task.target_height, config, codec=codec, rng=_task_rng(config, index))
    if outcome.ok:
        return outcome.data, True  # type: ignore[return-value]
    logger.warning("keeping original for %s: %s", task.file_name, outcome.error)
    return task.source, False


def build_archive(
    tasks: Sequence[OptimizationTask],
    destination: Union[str, Path, BinaryIO],
    config: Optional[ResampleConfig] = None,
    workers: int = 1,
    progress: Optional[ProgressCallback] = None,
    cancel: Optional[threading.Event] = None,
    root_folder: str = DEFAULT_ROOT_FOLDER,
    show_progress: bool = True,
) -> PackagingReport:
    """Resample `tasks` and write them into a zip at `destination`.

    Args:
        tasks: task list from the sizing policy (its order is the archive order).
        destination: zip path or writable binary file object.
        config: resample settings (seed, dither, codec).
        workers: max tasks in flight; 1 runs inline.
        progress: called as progress(completed, total) after each task.
        cancel: when set, stop and raise `PackagingCancelled`.
        root_folder: folder every entry is placed under.
        show_progress: tqdm bar on/off.

    Raises:
        ValueError: duplicate output names.
        PackagingCancelled: `cancel` was set before all tasks completed.
    """
    cfg = config or ResampleConfig()
    names = _check_unique(tasks, root_folder)
    codec = get_codec(cfg.codec)
    total = len(tasks)
    workers = max(1, int(workers))

    written = resized = in_bytes = out_bytes = 0
    fallbacks: List[str] = []

    if isinstance(destination, (str, Path)):
        Path(destination).parent.mkdir(parents=True, exist_ok=True)

    executor: Optional[ThreadPoolExecutor] = None
    # at most `window` tasks are submitted ahead of the writer; a slot is cleared once written
    futures: List[Optional[Future]] = [None] * total
    window = workers * 2
    if workers > 1 and total > 1:
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="minres")

    def submit(j: int) -> None:
        futures[j] = executor.submit(process_task, tasks[j], j, cfg, codec)  # type: ignore[union-attr]

    try:
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as zf, \
                tqdm(total=total, desc="Packaging", unit="file", disable=not show_progress) as bar:
            if executor is not None:
                for j in range(min(window, total)):
                    submit(j)

            for i, task in enumerate(tasks):
                if cancel is not None and cancel.is_set():
                    for fut in futures[i:]:
                        if fut is not None:
                            fut.cancel()
                    logger.info("packaging cancelled at %d/%d", written, total)
                    raise PackagingCancelled(written, total)

                if executor is not None:
                    fut, futures[i] = futures[i], None
                    data, ok = fut.result()  # type: ignore[union-attr]
                    if i + window < total:
                        submit(i + window)
                else:
                    data, ok = process_task(task, i, cfg, codec)

                zf.writestr(names[i], data)
                written += 1
                in_bytes += len(task.source)
                out_bytes += len(data)
                if ok:
                    resized += 1
                elif task.is_resize:
                    fallbacks.append(task.file_name)

                bar.update(1)
                if progress is not None:
                    progress(written, total)
    finally:
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    logger.info(
        "archive done: %d written, %d resized, %d fallback(s), %d -> %d bytes",
        written, resized, len(fallbacks), in_bytes, out_bytes,
    )
    return PackagingReport(
        total=total,
        written=written,
        resized=resized,
        fallbacks=tuple(fallbacks),
        input_bytes=in_bytes,
        output_bytes=out_bytes,
    )


__all__ = [
    "DEFAULT_ROOT_FOLDER",
    "PackagingReport",
    "archive_entry_name",
    "process_task",
    "build_archive",
]
