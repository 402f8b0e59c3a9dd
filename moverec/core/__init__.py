"""Core moverec modules."""

from moverec.core.algorithms import (
    ARI,
    HAC,
    MRI,
    Algorithm,
    AlgorithmResult,
    ExecutionContext,
    Refactoring,
)
from moverec.core.distance import DistanceFunction
from moverec.core.executor import ExecutionCoordinator
from moverec.core.hierarchy import InheritanceGraph, SafetyFilter
from moverec.core.runner import RefactoringRunner, run, run_all

__all__ = [
    "ARI",
    "MRI",
    "HAC",
    "Algorithm",
    "AlgorithmResult",
    "ExecutionContext",
    "Refactoring",
    "DistanceFunction",
    "ExecutionCoordinator",
    "InheritanceGraph",
    "SafetyFilter",
    "RefactoringRunner",
    "run",
    "run_all",
]
