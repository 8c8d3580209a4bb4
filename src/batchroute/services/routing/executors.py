"""Execution strategies that run one unit of work per pair and keep input order."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import Any, Callable, Iterable, Optional

from ...config import settings

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[int, int], None]
ErrorCallback = Callable[[Any, BaseException], Any]


class WorkerPool(ABC):
    """Contract for executing independent units of work.

    ``map_ordered`` returns results indexed like ``items`` whatever order the
    units finish in. ``on_complete(done, total)`` is called after each unit.
    When ``on_error(item, exc)`` is given, a unit that raises gets its return
    value in place of a result; otherwise the error propagates.
    """

    @abstractmethod
    def map_ordered(
        self,
        fn: Callable[[Any], Any],
        items: Iterable[Any],
        on_complete: Optional[CompletionCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> list[Any]:
        raise NotImplementedError


class SequentialPool(WorkerPool):
    """Runs every unit in-process, one at a time, in input order."""

    def map_ordered(self, fn, items, on_complete=None, on_error=None):
        items = list(items)
        total = len(items)
        results: list[Any] = [None] * total
        for index, item in enumerate(items):
            try:
                results[index] = fn(item)
            except Exception as exc:
                if on_error is None:
                    raise
                results[index] = on_error(item, exc)
            if on_complete is not None:
                on_complete(index + 1, total)
        return results


class ExecutorPool(WorkerPool):
    """Adapts a caller-owned ``concurrent.futures.Executor``; never shuts it down."""

    def __init__(self, executor: Executor) -> None:
        self.executor = executor

    def map_ordered(self, fn, items, on_complete=None, on_error=None):
        items = list(items)
        total = len(items)
        results: list[Any] = [None] * total

        future_to_index = {self.executor.submit(fn, item): index for index, item in enumerate(items)}
        completed = 0
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as exc:
                if on_error is None:
                    raise
                logger.warning(f"Unit of work {index + 1}/{total} failed in {type(self.executor).__name__}: {exc!r}")
                results[index] = on_error(items[index], exc)
            completed += 1
            if on_complete is not None:
                on_complete(completed, total)
        return results


class _ManagedExecutorPool(WorkerPool):
    executor_class: type[Executor]

    def __init__(self, max_workers: int | None = None) -> None:
        self.max_workers = max_workers or settings.max_workers

    def map_ordered(self, fn, items, on_complete=None, on_error=None):
        logger.debug(f"Starting {self.executor_class.__name__} with {self.max_workers} workers")
        with self.executor_class(max_workers=self.max_workers) as executor:
            return ExecutorPool(executor).map_ordered(fn, items, on_complete, on_error)


class ThreadWorkerPool(_ManagedExecutorPool):
    """Fixed-size thread pool, created and torn down per batch."""

    executor_class = ThreadPoolExecutor


class ProcessWorkerPool(_ManagedExecutorPool):
    """Fixed-size process pool; the routing function and its options must be picklable."""

    executor_class = ProcessPoolExecutor


def resolve_pool(worker_pool: Any = None) -> WorkerPool:
    """Map the ``worker_pool`` argument of ``route`` to an execution strategy."""
    if worker_pool is None:
        return SequentialPool()
    if isinstance(worker_pool, WorkerPool):
        return worker_pool
    if isinstance(worker_pool, Executor):
        return ExecutorPool(worker_pool)
    if isinstance(worker_pool, int) and not isinstance(worker_pool, bool):
        if worker_pool <= 1:
            return SequentialPool()
        return ThreadWorkerPool(max_workers=worker_pool)
    raise TypeError(
        f"worker_pool must be None, a worker count, an Executor or a WorkerPool; got {type(worker_pool).__name__}."
    )
