"""Evaluation of suggestions against expected moves."""

from moverec.evaluation.comparator import Comparator, ComparisonResult, EvaluationMetrics

__all__ = ["Comparator", "ComparisonResult", "EvaluationMetrics"]
