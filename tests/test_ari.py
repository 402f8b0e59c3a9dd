"""Tests for the ARI algorithm (parallel nearest-class assignment)."""

import math
from pathlib import Path

import numpy as np
import pytest

from moverec.config import MoveRecConfig
from moverec.core.algorithms import ARI, find_nearest_class
from moverec.core.distance import DistanceFunction
from moverec.core.runner import RefactoringRunner, run
from moverec.entities import Entity, EntityCategory, EntitySearchResult, load_snapshot
from moverec.exceptions import NoTargetFound, OperationCanceled
from moverec.utils.progress import CancellationToken

METRICS = ["x", "y"]


def cls(name, features, props=(), supers=(), declared=()):
    return Entity(
        name=name,
        category=EntityCategory.CLASS,
        features=features,
        relevant_properties=props,
        supers=supers,
        declared_methods=declared,
    )


def method(name, owner, features, props=(), movable=True):
    return Entity(
        name=name,
        category=EntityCategory.METHOD,
        features=features,
        relevant_properties=props,
        class_name=owner,
        movable=movable,
    )


def field(name, owner, features, props=()):
    return Entity(
        name=name,
        category=EntityCategory.FIELD,
        features=features,
        relevant_properties=props,
        class_name=owner,
    )


def run_ari(snapshot, **config):
    runner = RefactoringRunner(MoveRecConfig(algorithms=["ARI"], **config))
    (result,) = runner.run(snapshot)
    return result


def random_snapshot(seed=3, n_classes=5, n_methods=40):
    rng = np.random.default_rng(seed)
    classes = [cls(f"C{i}", rng.uniform(0, 10, 2)) for i in range(n_classes)]
    methods = [
        method(f"C{i % n_classes}.m{i}()", f"C{i % n_classes}", rng.uniform(0, 10, 2))
        for i in range(n_methods)
    ]
    return EntitySearchResult(classes, methods, [], METRICS)


class TestNearestClass:
    """The shared nearest-class scan."""

    def test_moves_method_to_closer_class(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [10, 10])],
            [method("A.m()", "A", [9, 9])],
            [],
            METRICS,
        )
        result = run_ari(snapshot)

        assert result.get_refactorings() == {"A.m()": "B"}
        assert result.refactorings[0].confidence == 1.0

    def test_confidence_is_gap_over_distance(self):
        # d(m, A) = 1, d(m, B) = 1.5 -> gap 0.5, confidence 0.5
        snapshot = EntitySearchResult(
            [cls("A", [1, 0]), cls("B", [-1.5, 0]), cls("C", [0, 5])],
            [method("C.m()", "C", [0, 0])],
            [],
            METRICS,
        )
        result = run_ari(snapshot)

        (refactoring,) = result.refactorings
        assert refactoring.target_class == "A"
        assert refactoring.confidence == pytest.approx(0.5)

    def test_tie_keeps_first_class_with_zero_confidence(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [2, 2])],
            [method("B.m()", "B", [1, 1])],
            [],
            METRICS,
        )
        result = run_ari(snapshot)

        (refactoring,) = result.refactorings
        assert refactoring.target_class == "A"
        assert refactoring.confidence == 0.0

    def test_zero_distance_gives_zero_confidence(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [5, 5])],
            [method("B.m()", "B", [0, 0])],
            [],
            METRICS,
        )
        result = run_ari(snapshot)

        assert result.get_refactorings() == {"B.m()": "A"}
        assert result.refactorings[0].confidence == 0.0

    def test_find_nearest_class_reports_gap(self):
        classes = [cls("A", [0, 0]), cls("B", [3, 4]), cls("C", [6, 8])]
        nearest = find_nearest_class(
            method("C.m()", "C", [0, 0]), classes, DistanceFunction()
        )
        assert nearest.target.name == "A"
        assert nearest.distance == 0.0
        assert nearest.gap == pytest.approx(5.0)

    def test_find_nearest_class_needs_two_classes(self):
        with pytest.raises(NoTargetFound, match="fewer than 2 classes"):
            find_nearest_class(
                method("A.m()", "A", [0, 0]), [cls("A", [0, 0])], DistanceFunction()
            )


class TestARI:
    """Whole-run behavior of ARI."""

    def test_already_in_nearest_class_is_not_suggested(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [10, 10])],
            [method("A.m()", "A", [1, 1])],
            [field("B.f", "B", [9, 9])],
            METRICS,
        )
        result = run_ari(snapshot)

        assert result.refactorings == []
        assert result.skipped == {}

    def test_fields_are_suggested(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [10, 10])],
            [],
            [field("A.f", "A", [10, 9])],
            METRICS,
        )
        assert run_ari(snapshot).get_refactorings() == {"A.f": "B"}

    def test_unmovable_units_are_ignored(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [10, 10])],
            [method("A.main()", "A", [10, 10], movable=False)],
            [],
            METRICS,
        )
        result = run_ari(snapshot)

        assert result.refactorings == []
        assert result.skipped == {}

    def test_every_suggestion_targets_a_nearest_class(self):
        snapshot = random_snapshot()
        distance = DistanceFunction()
        result = run_ari(snapshot)

        assert result.refactorings
        for refactoring in result.refactorings:
            entity = snapshot.get(refactoring.entity_name)
            target = snapshot.get(refactoring.target_class)
            best = min(distance(entity, c) for c in snapshot.classes)
            assert distance(entity, target) == best
            assert refactoring.target_class != entity.class_name
            assert 0.0 <= refactoring.confidence <= 1.0

    def test_result_independent_of_worker_count(self):
        snapshot = random_snapshot(seed=11)
        sequential = run_ari(snapshot, execution={"max_workers": 1})
        parallel = run_ari(snapshot, execution={"max_workers": 4})

        assert sequential.as_mapping() == parallel.as_mapping()

    def test_idempotent(self):
        snapshot = random_snapshot(seed=5)
        assert run_ari(snapshot).as_mapping() == run_ari(snapshot).as_mapping()

    def test_snapshot_is_not_modified(self):
        snapshot = random_snapshot(seed=8)
        before = {e.name: (e.class_name, tuple(e.features)) for e in snapshot}
        run_ari(snapshot)
        after = {e.name: (e.class_name, tuple(e.features)) for e in snapshot}
        assert before == after

    def test_single_class_skips_every_unit(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0])],
            [method("A.m()", "A", [1, 1])],
            [field("A.f", "A", [2, 2])],
            METRICS,
        )
        result = run_ari(snapshot)

        assert result.refactorings == []
        assert set(result.skipped) == {"A.m()", "A.f"}
        assert all("fewer than 2 classes" in r for r in result.skipped.values())

    def test_incomparable_entity_is_skipped(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [1, 1])],
            [method("A.m()", "A", [math.nan, 1])],
            [],
            METRICS,
        )
        result = run_ari(snapshot)

        assert result.refactorings == []
        assert result.skipped == {"A.m()": "no comparable class"}

    def test_override_move_is_vetoed(self):
        base = cls("Base", [100, 100], declared={"run()"})
        a = cls("A", [0, 0], supers={"Base"})
        b = cls("B", [10, 10], supers={"Base"})
        snapshot = EntitySearchResult(
            [base, a, b], [method("A.run()", "A", [9, 9])], [], METRICS
        )
        result = run_ari(snapshot)

        assert result.refactorings == []
        assert "overrides" in result.skipped["A.run()"]

    def test_override_rule_does_not_apply_to_fields(self):
        base = cls("Base", [100, 100], declared={"run()"})
        a = cls("A", [0, 0], supers={"Base"})
        b = cls("B", [10, 10], supers={"Base"})
        snapshot = EntitySearchResult(
            [base, a, b], [], [field("A.run", "A", [9, 9])], METRICS
        )
        assert run_ari(snapshot).get_refactorings() == {"A.run": "B"}

    def test_min_confidence_drops_weak_suggestions(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [2, 2])],
            [method("B.m()", "B", [1, 1])],
            [],
            METRICS,
        )
        result = run_ari(snapshot, execution={"min_confidence": 0.5})

        assert result.refactorings == []
        assert result.skipped == {"B.m()": "below minimum confidence"}

    def test_run_returns_mapping(self):
        snapshot = EntitySearchResult(
            [cls("A", [0, 0]), cls("B", [10, 10])],
            [method("A.m()", "A", [9, 9])],
            [],
            METRICS,
        )
        suggestions = run(snapshot, algorithm="ARI")

        assert list(suggestions) == ["A.m()"]
        assert suggestions["A.m()"].target_class == "B"


class TestARICancellation:
    """Cooperative cancellation aborts without partial results."""

    def test_canceled_before_start(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCanceled):
            RefactoringRunner(MoveRecConfig(algorithms=["ARI"])).run(random_snapshot(), token)

    @pytest.mark.parametrize("workers", [1, 4])
    def test_canceled_during_run(self, workers):
        ticks = []

        def on_progress(fraction):
            ticks.append(fraction)
            token.cancel()

        token = CancellationToken(on_progress=on_progress)
        runner = RefactoringRunner(
            MoveRecConfig(algorithms=["ARI"], execution={"max_workers": workers})
        )
        with pytest.raises(OperationCanceled):
            runner.run(random_snapshot(), token)
        assert ticks
        assert max(ticks) < 1.0

    def test_algorithm_checks_cancellation_with_empty_input(self):
        token = CancellationToken()
        token.cancel()
        context = RefactoringRunner().build_context(
            EntitySearchResult([cls("A", [0, 0])], [], [], METRICS), token
        )
        with pytest.raises(OperationCanceled):
            ARI().execute(context)


def test_bundled_example_snapshot():
    path = Path(__file__).resolve().parent.parent / "examples" / "snapshot.yaml"
    result = run_ari(load_snapshot(path))

    assert result.get_refactorings() == {
        "shop.Order.formatAddress()": "shop.Customer",
        "shop.Order.billingAddress": "shop.Customer",
    }
    assert "common ancestor shop.Document" in result.skipped["shop.Order.print()"]
    assert "superclass" in result.skipped["shop.Order.total()"]
    assert "shop.Order.main(java.lang.String[])" not in result.skipped
