"""Local parallel execution of per-transcript work.

NMD classification of one transcript never depends on another, so a
batch can be fanned out over threads or processes with no shared
state. ``ParallelExecutor.map_items`` applies one function to every
item and returns one ``TaskResult`` per item, in submission order,
whatever the backend.

Backends:
    - serial: in the calling thread (always used for one worker)
    - threads: ``ThreadPoolExecutor``
    - processes: ``ProcessPoolExecutor``; the function and items must
      be picklable

Example:
    >>> from functools import partial
    >>> from nmdpredict.parallel.executor import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=8, backend="processes")
    >>> results, stats = executor.map_items(
    ...     partial(classify_structure, threshold=50),
    ...     structures,
    ...     ids=[s.transcript_id for s in structures],
    ... )
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import (
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from enum import Enum
from typing import Any, Callable, Sequence

import attrs

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class ExecutorBackend(Enum):
    """Available execution backends."""

    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"


# =============================================================================
# Results
# =============================================================================


@attrs.define(slots=True)
class TaskResult:
    """Outcome of applying the function to one item.

    ``exception`` keeps the original exception object so callers can
    re-raise it with its own type.
    """

    task_id: str
    success: bool
    result: Any = None
    error: str | None = None
    exception: BaseException | None = attrs.field(default=None, repr=False)
    duration_seconds: float = 0.0


@attrs.define(slots=True)
class ExecutionStats:
    """Counts and timings of one ``map_items`` call."""

    total_tasks: int
    successful: int
    failed: int
    total_duration: float
    mean_task_duration: float
    max_task_duration: float

    @classmethod
    def from_results(cls, results: Sequence[TaskResult], total_duration: float) -> "ExecutionStats":
        durations = [r.duration_seconds for r in results]
        successful = sum(1 for r in results if r.success)
        return cls(
            total_tasks=len(results),
            successful=successful,
            failed=len(results) - successful,
            total_duration=total_duration,
            mean_task_duration=sum(durations) / len(durations) if durations else 0.0,
            max_task_duration=max(durations, default=0.0),
        )


def _run_task(func: Callable[[Any], Any], task_id: str, item: Any) -> TaskResult:
    # Module level so the process backend can pickle it
    start = time.perf_counter()
    try:
        value = func(item)
    except Exception as e:
        return TaskResult(
            task_id=task_id,
            success=False,
            error=f"{type(e).__name__}: {e}",
            exception=e,
            duration_seconds=time.perf_counter() - start,
        )
    return TaskResult(
        task_id=task_id,
        success=True,
        result=value,
        duration_seconds=time.perf_counter() - start,
    )


# =============================================================================
# Parallel Executor
# =============================================================================


class ParallelExecutor:
    """Apply a function to independent items serially or in a pool.

    Attributes:
        n_workers: Number of workers (at least 1).
        backend: Backend in use; SERIAL whenever ``n_workers`` is 1.
        progress_callback: Called with (completed, total, task_id) after
            each finished item.
    """

    def __init__(
        self,
        n_workers: int = 1,
        backend: ExecutorBackend | str = ExecutorBackend.PROCESSES,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.n_workers = max(1, n_workers)
        self.backend = ExecutorBackend(backend)
        if self.n_workers == 1:
            self.backend = ExecutorBackend.SERIAL
        self.progress_callback = progress_callback

    def map_items(
        self,
        func: Callable[[Any], Any],
        items: Sequence[Any],
        ids: Sequence[str] | None = None,
        continue_on_error: bool = True,
    ) -> tuple[list[TaskResult], ExecutionStats]:
        """Apply ``func`` to each item.

        Args:
            func: Function of one item. Must be picklable for the
                process backend.
            items: Items to process.
            ids: One identifier per item, used in results and progress
                (default ``item_000000``, ``item_000001``, ...).
            continue_on_error: If False, stop at the first failure and
                re-raise its original exception.

        Returns:
            Tuple of (results in submission order, statistics).

        Raises:
            ValueError: If ``ids`` and ``items`` differ in length.
        """
        if ids is None:
            ids = [f"item_{i:06d}" for i in range(len(items))]
        elif len(ids) != len(items):
            raise ValueError(f"Got {len(ids)} ids for {len(items)} items")

        start = time.perf_counter()
        if not items:
            results: list[TaskResult] = []
        elif self.backend == ExecutorBackend.SERIAL:
            results = self._run_serial(func, items, ids, continue_on_error)
        else:
            logger.debug(
                f"Running {len(items)} tasks on {self.n_workers} {self.backend.value} workers"
            )
            results = self._run_pool(func, items, ids, continue_on_error)

        stats = ExecutionStats.from_results(results, time.perf_counter() - start)
        logger.debug(
            f"{stats.successful}/{stats.total_tasks} tasks succeeded "
            f"in {stats.total_duration:.2f}s"
        )
        return results, stats

    def _report(self, completed: int, total: int, task_id: str) -> None:
        if self.progress_callback is not None:
            self.progress_callback(completed, total, task_id)

    def _run_serial(
        self,
        func: Callable[[Any], Any],
        items: Sequence[Any],
        ids: Sequence[str],
        continue_on_error: bool,
    ) -> list[TaskResult]:
        results = []
        for task_id, item in zip(ids, items):
            task = _run_task(func, task_id, item)
            if not task.success and not continue_on_error:
                logger.debug(f"Stopping at failed task {task_id}: {task.error}")
                raise task.exception
            results.append(task)
            self._report(len(results), len(items), task_id)
        return results

    def _make_pool(self) -> Executor:
        if self.backend == ExecutorBackend.THREADS:
            return ThreadPoolExecutor(max_workers=self.n_workers)
        return ProcessPoolExecutor(max_workers=self.n_workers)

    def _run_pool(
        self,
        func: Callable[[Any], Any],
        items: Sequence[Any],
        ids: Sequence[str],
        continue_on_error: bool,
    ) -> list[TaskResult]:
        slots: list[TaskResult | None] = [None] * len(items)

        with self._make_pool() as pool:
            pending: dict[Future, int] = {
                pool.submit(_run_task, func, task_id, item): index
                for index, (task_id, item) in enumerate(zip(ids, items))
            }
            for completed, future in enumerate(as_completed(pending), start=1):
                task = future.result()
                slots[pending[future]] = task
                self._report(completed, len(items), task.task_id)

                if not task.success and not continue_on_error:
                    logger.debug(f"Stopping at failed task {task.task_id}: {task.error}")
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise task.exception

        return [task for task in slots if task is not None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_optimal_workers(max_workers: int | None = None) -> int:
    """Number of workers to use on this machine.

    Args:
        max_workers: Upper bound; None or a value <= 0 means all CPUs.

    Returns:
        Worker count between 1 and the CPU count.
    """
    n_cpus = os.cpu_count() or 1
    if max_workers is None or max_workers <= 0:
        return n_cpus
    return min(max_workers, n_cpus)


def create_progress_bar() -> Any:
    """Rich progress bar for transcript batches (removed when finished)."""
    from rich.progress import (
        BarColumn,
        MofNCompleteColumn,
        Progress,
        SpinnerColumn,
        TextColumn,
        TimeElapsedColumn,
    )

    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        transient=True,
    )
