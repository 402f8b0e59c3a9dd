"""Refactoring algorithms."""

from moverec.core.algorithms.ari import ARI
from moverec.core.algorithms.base import (
    Algorithm,
    AlgorithmResult,
    ExecutionContext,
    NearestClass,
    Refactoring,
    find_nearest_class,
)
from moverec.core.algorithms.hac import HAC
from moverec.core.algorithms.mri import MRI, Placement

ALGORITHMS = {
    "ARI": ARI,
    "MRI": MRI,
    "HAC": HAC,
}

__all__ = [
    "ALGORITHMS",
    "ARI",
    "MRI",
    "HAC",
    "Algorithm",
    "AlgorithmResult",
    "ExecutionContext",
    "NearestClass",
    "Placement",
    "Refactoring",
    "find_nearest_class",
]
