"""Tests for the execution coordinator."""

import threading

import pytest

from moverec.core.executor import ExecutionCoordinator
from moverec.exceptions import OperationCanceled
from moverec.utils.progress import CancellationToken


def test_partition_is_contiguous_and_complete():
    units = list(range(10))
    partitions = ExecutionCoordinator.partition(units, 4)

    assert len(partitions) == 4
    assert [u for p in partitions for u in p] == units
    assert all(partitions)


def test_partition_with_more_parts_than_units():
    assert ExecutionCoordinator.partition([1, 2], 8) == [[1], [2]]
    assert ExecutionCoordinator.partition([], 3) == []


def test_invalid_worker_count():
    with pytest.raises(ValueError):
        ExecutionCoordinator(max_workers=0)


@pytest.mark.parametrize("workers", [1, 2, 3, 8])
def test_results_keep_unit_order(workers):
    coordinator = ExecutionCoordinator(max_workers=workers)
    results = coordinator.run_parallel(
        list(range(20)), lambda u: [u * 2] if u % 3 else [], CancellationToken()
    )
    assert results == [u * 2 for u in range(20) if u % 3]


def test_runs_on_worker_threads():
    seen = set()
    lock = threading.Lock()

    def evaluate(unit):
        with lock:
            seen.add(threading.get_ident())
        return [unit]

    ExecutionCoordinator(max_workers=4).run_parallel(list(range(8)), evaluate, CancellationToken())
    assert threading.get_ident() not in seen


def test_progress_reaches_one():
    ticks = []
    token = CancellationToken(on_progress=ticks.append)
    ExecutionCoordinator(max_workers=3).run_parallel(list(range(9)), lambda u: [u], token)

    assert len(ticks) == 9
    assert max(ticks) == 1.0
    assert token.fraction <= 1.0


def test_empty_input_reports_completion():
    token = CancellationToken()
    assert ExecutionCoordinator().run_parallel([], lambda u: [u], token) == []
    assert token.fraction == 1.0


def test_canceled_before_start_evaluates_nothing():
    calls = []
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCanceled):
        ExecutionCoordinator(max_workers=2).run_parallel([1, 2, 3], calls.append, token)
    assert calls == []


def test_cancellation_from_worker_aborts_run():
    token = CancellationToken()

    def evaluate(unit):
        if unit == 5:
            token.cancel()
        return [unit]

    with pytest.raises(OperationCanceled):
        ExecutionCoordinator(max_workers=2).run_parallel(list(range(100)), evaluate, token)


def test_worker_errors_propagate():
    def evaluate(unit):
        if unit == 3:
            raise RuntimeError("boom")
        return [unit]

    with pytest.raises(RuntimeError, match="boom"):
        ExecutionCoordinator(max_workers=2).run_parallel(list(range(6)), evaluate, CancellationToken())
