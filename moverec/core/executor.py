"""Parallel evaluation of per-entity work with progress and cancellation."""

import concurrent.futures
import math
import threading
from typing import Callable, Sequence, TypeVar

from moverec.exceptions import OperationCanceled
from moverec.utils.logging_utils import get_logger
from moverec.utils.progress import ProgressIndicator

T = TypeVar("T")
R = TypeVar("R")


class _ProgressCounter:
    """Completed-unit counter shared by the workers of one run."""

    def __init__(self, total: int):
        self.total = total
        self._done = 0
        self._lock = threading.Lock()

    def increment(self) -> float:
        with self._lock:
            self._done += 1
            return self._done / self.total


class ExecutionCoordinator:
    """
    Structured map-reduce over a list of units.

    Units are split into contiguous partitions, one per worker. Each worker
    evaluates its partition against the shared read-only snapshot into a
    private list; the lists are concatenated in partition order. The
    cancellation signal is polled before every unit and after every progress
    tick, and a cancellation aborts the whole run with ``OperationCanceled``
    instead of returning partial results.
    """

    def __init__(self, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def partition(units: Sequence[T], parts: int) -> list[Sequence[T]]:
        """Split ``units`` into at most ``parts`` contiguous, non-empty slices."""
        if not units:
            return []
        size = math.ceil(len(units) / parts)
        return [units[i : i + size] for i in range(0, len(units), size)]

    def run_parallel(
        self,
        units: Sequence[T],
        evaluate: Callable[[T], list[R]],
        indicator: ProgressIndicator,
    ) -> list[R]:
        """
        Apply ``evaluate`` to every unit and merge the results.

        Args:
            units: Work items (entities)
            evaluate: Per-unit function returning zero or more results
            indicator: Progress sink and cancellation source

        Returns:
            Concatenated results in partition order

        Raises:
            OperationCanceled: If cancellation was observed at any point
        """
        indicator.check_canceled()
        if not units:
            indicator.report_progress(1.0)
            return []

        counter = _ProgressCounter(len(units))

        def process(partition: Sequence[T]) -> list[R]:
            accumulator: list[R] = []
            for unit in partition:
                indicator.check_canceled()
                accumulator.extend(evaluate(unit))
                indicator.report_progress(counter.increment())
                indicator.check_canceled()
            return accumulator

        partitions = self.partition(units, self.max_workers)
        self.logger.debug(
            f"Evaluating {len(units)} units in {len(partitions)} partitions "
            f"(max_workers={self.max_workers})"
        )

        if len(partitions) == 1:
            return process(partitions[0])

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=len(partitions))
        try:
            futures = [executor.submit(process, p) for p in partitions]
            results: list[R] = []
            for future in futures:
                results.extend(future.result())
            return results
        except OperationCanceled:
            self.logger.info("Parallel evaluation canceled; discarding partial results")
            raise
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
