"""Parallel execution of independent per-transcript tasks.

Example:
    >>> from nmdpredict.parallel import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=4, backend="threads")
"""

from nmdpredict.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    ParallelExecutor,
    TaskResult,
)

__all__ = [
    "ExecutorBackend",
    "ExecutionStats",
    "ParallelExecutor",
    "TaskResult",
]
