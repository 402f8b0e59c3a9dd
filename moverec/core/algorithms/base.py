"""Base classes shared by the refactoring algorithms."""

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Sequence, Union

from moverec.config.models import MoveRecConfig
from moverec.core.distance import DistanceFunction
from moverec.core.executor import ExecutionCoordinator
from moverec.entities.entity import Entity
from moverec.entities.search_result import EntitySearchResult
from moverec.exceptions import EntitySkipped, NoTargetFound, UnsafeMove
from moverec.utils.logging_utils import get_logger
from moverec.utils.progress import ProgressIndicator


@dataclass(frozen=True)
class Refactoring:
    """Proposal to move ``entity_name`` into ``target_class``."""

    entity_name: str
    target_class: str
    confidence: float

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

    def to_dict(self) -> dict:
        return {
            "entity": self.entity_name,
            "target": self.target_class,
            "confidence": self.confidence,
        }


Outcome = Union[Refactoring, EntitySkipped]


@dataclass
class AlgorithmResult:
    """Refactorings produced by one algorithm run."""

    algorithm_name: str
    refactorings: list[Refactoring] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)  # entity name -> reason
    execution_time: float = 0.0

    def as_mapping(self) -> dict[str, Refactoring]:
        return {r.entity_name: r for r in self.refactorings}

    def get_refactorings(self) -> dict[str, str]:
        """Entity name -> target class name."""
        return {r.entity_name: r.target_class for r in self.refactorings}

    def to_dict(self) -> dict:
        return {
            "algorithm": self.algorithm_name,
            "execution_time": round(self.execution_time, 4),
            "refactorings": [r.to_dict() for r in self.refactorings],
            "skipped": dict(self.skipped),
        }


@dataclass
class ExecutionContext:
    """Everything one algorithm run reads. Built fresh for every run."""

    snapshot: EntitySearchResult
    config: MoveRecConfig
    indicator: ProgressIndicator
    distance: DistanceFunction
    max_workers: int | None = None  # overrides config.execution.max_workers

    @property
    def coordinator(self) -> ExecutionCoordinator:
        return ExecutionCoordinator(self.max_workers or self.config.execution.max_workers)


@dataclass(frozen=True)
class NearestClass:
    """Closest class to an entity and its separation from the runner-up."""

    target: Entity
    distance: float
    gap: float

    @property
    def confidence(self) -> float:
        """
        ``min(gap / distance, 1)`` for a positive distance, else 0.

        A zero gap (the best and second-best classes are equidistant)
        always gives zero confidence.
        """
        if self.distance > 0:
            return min(self.gap / self.distance, 1.0)
        return 0.0


def find_nearest_class(
    entity: Entity, classes: Sequence[Entity], distance: DistanceFunction
) -> NearestClass:
    """
    Scan ``classes`` for the one closest to ``entity``.

    Ties for the minimum keep the first class in iteration order.

    Raises:
        NoTargetFound: With fewer than two classes or no comparable class
    """
    if len(classes) < 2:
        raise NoTargetFound(entity.name, "fewer than 2 classes, no move possible")

    min_distance = math.inf
    second_distance = math.inf
    target = None
    for class_entity in classes:
        d = distance(entity, class_entity)
        if d < min_distance:
            second_distance = min_distance
            min_distance = d
            target = class_entity
        elif d < second_distance:
            second_distance = d

    if target is None:
        raise NoTargetFound(entity.name, "no comparable class")

    return NearestClass(target=target, distance=min_distance, gap=second_distance - min_distance)


class Algorithm(ABC):
    """Abstract base class for refactoring algorithms."""

    def __init__(self, name: str, enable_parallel: bool):
        self.name = name
        self.enable_parallel = enable_parallel
        self.logger = get_logger(self.__class__.__name__)

    def execute(self, context: ExecutionContext) -> AlgorithmResult:
        """
        Run the algorithm and collect its outcomes.

        Per-entity skips are logged and recorded; run-level errors
        (OperationCanceled, ConfigurationMismatch) propagate. Algorithms
        created with ``enable_parallel=False`` get a single-worker
        coordinator.
        """
        if not self.enable_parallel:
            context = replace(context, max_workers=1)
        self.logger.info(
            f"Running {self.name} on {len(context.snapshot.classes)} classes and "
            f"{len(context.snapshot.units())} units"
        )
        start = time.perf_counter()
        outcomes = self.calculate_refactorings(context)
        elapsed = time.perf_counter() - start

        result = AlgorithmResult(algorithm_name=self.name, execution_time=elapsed)
        min_confidence = context.config.execution.min_confidence
        for outcome in outcomes:
            if isinstance(outcome, EntitySkipped):
                level = logging.INFO if isinstance(outcome, UnsafeMove) else logging.WARNING
                self.logger.log(level, f"Skipped {outcome.entity_name}: {outcome.reason}")
                result.skipped[outcome.entity_name] = outcome.reason
            elif outcome.confidence < min_confidence:
                self.logger.debug(
                    f"Dropped {outcome.entity_name} -> {outcome.target_class} "
                    f"(confidence {outcome.confidence:.3f} < {min_confidence})"
                )
                result.skipped[outcome.entity_name] = "below minimum confidence"
            else:
                result.refactorings.append(outcome)

        self.logger.info(
            f"{self.name} finished in {elapsed:.2f}s: {len(result.refactorings)} refactorings, "
            f"{len(result.skipped)} skipped"
        )
        return result

    @abstractmethod
    def calculate_refactorings(self, context: ExecutionContext) -> list[Outcome]:
        """
        Compute refactorings for the context's snapshot.

        Returns:
            One outcome per evaluated entity: a Refactoring or the skip reason
        """
        pass
