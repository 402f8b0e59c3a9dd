"""Comparator for evaluating move suggestions against expected moves."""

from dataclasses import dataclass, field
from typing import Mapping

from moverec.core.algorithms import AlgorithmResult, Refactoring
from moverec.utils.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class EvaluationMetrics:
    """Evaluation metrics for move suggestions."""

    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    wrong_target: list[str] = field(default_factory=list)


@dataclass
class ComparisonResult:
    """Result of comparing one algorithm's output against expected moves."""

    algorithm_name: str
    metrics: EvaluationMetrics


class Comparator:
    """Compares suggestion mappings against expected entity -> class moves."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def evaluate_suggestions(
        self,
        suggestions: Mapping[str, Refactoring] | Mapping[str, str],
        expected: Mapping[str, str],
    ) -> EvaluationMetrics:
        """
        Evaluate suggestions against the expected moves.

        A suggestion is a true positive when it moves the expected entity
        to the expected class. Moving an expected entity elsewhere counts as
        both a false positive and a false negative.

        Args:
            suggestions: Entity name -> Refactoring (or target class name)
            expected: Entity name -> expected target class name

        Returns:
            EvaluationMetrics
        """
        targets = {
            name: s.target_class if isinstance(s, Refactoring) else s
            for name, s in suggestions.items()
        }
        self.logger.info(f"Evaluating {len(targets)} suggestions against {len(expected)} expected moves")

        metrics = EvaluationMetrics()
        for name, target in targets.items():
            if expected.get(name) == target:
                metrics.true_positives += 1
            else:
                metrics.false_positives += 1
                if name in expected:
                    metrics.wrong_target.append(name)
        metrics.false_negatives = len(expected) - metrics.true_positives

        if metrics.true_positives + metrics.false_positives > 0:
            metrics.precision = metrics.true_positives / (
                metrics.true_positives + metrics.false_positives
            )
        if metrics.true_positives + metrics.false_negatives > 0:
            metrics.recall = metrics.true_positives / (
                metrics.true_positives + metrics.false_negatives
            )
        if metrics.precision + metrics.recall > 0:
            metrics.f1_score = (
                2 * (metrics.precision * metrics.recall) / (metrics.precision + metrics.recall)
            )

        self.logger.info(
            f"Metrics - Precision: {metrics.precision:.3f}, "
            f"Recall: {metrics.recall:.3f}, "
            f"F1: {metrics.f1_score:.3f}"
        )
        return metrics

    def compare_algorithms(
        self, results: list[AlgorithmResult], expected: Mapping[str, str]
    ) -> list[ComparisonResult]:
        """Evaluate every algorithm result against the same expected moves."""
        comparisons = []
        for result in results:
            self.logger.info(f"Evaluating algorithm: {result.algorithm_name}")
            metrics = self.evaluate_suggestions(result.as_mapping(), expected)
            comparisons.append(ComparisonResult(algorithm_name=result.algorithm_name, metrics=metrics))
        return comparisons
