"""
Progress reporting and cooperative cancellation.

The core never blocks on the caller: it polls ``check_canceled`` between units
of work and pushes ``report_progress`` fractions to whatever sink the caller
installs (a CLI progress line, an IDE task, a websocket bridge).
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from moverec.exceptions import OperationCanceled
from moverec.utils.logging_utils import get_logger


class ProgressIndicator(ABC):
    """Sink for progress fractions and source of the cancellation signal."""

    @abstractmethod
    def check_canceled(self) -> None:
        """Raise OperationCanceled if the enclosing operation was canceled."""
        pass

    @abstractmethod
    def report_progress(self, fraction: float) -> None:
        """Report completion in [0, 1]."""
        pass


class CancellationToken(ProgressIndicator):
    """Thread-safe progress indicator backed by a ``threading.Event``."""

    def __init__(self, on_progress: Optional[Callable[[float], None]] = None):
        """
        Initialize token.

        Args:
            on_progress: Optional callback receiving every reported fraction
        """
        self._canceled = threading.Event()
        self._lock = threading.Lock()
        self._fraction = 0.0
        self._on_progress = on_progress
        self.logger = get_logger(self.__class__.__name__)

    def cancel(self) -> None:
        """Raise the cancellation signal. Idempotent."""
        if not self._canceled.is_set():
            self.logger.info("Cancellation requested")
        self._canceled.set()

    @property
    def is_canceled(self) -> bool:
        return self._canceled.is_set()

    @property
    def fraction(self) -> float:
        with self._lock:
            return self._fraction

    def check_canceled(self) -> None:
        if self._canceled.is_set():
            raise OperationCanceled("Operation canceled")

    def report_progress(self, fraction: float) -> None:
        fraction = max(0.0, min(1.0, fraction))
        with self._lock:
            self._fraction = fraction
        if self._on_progress is not None:
            self._on_progress(fraction)
