"""
moverec: Move Method/Field Refactoring Recommender
"""

__version__ = "1.0.0"
__author__ = "moverec Team"

from moverec.core.runner import RefactoringRunner, run, run_all

__all__ = ["RefactoringRunner", "run", "run_all"]
