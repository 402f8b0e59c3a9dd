"""Custom exceptions for moverec."""


class MoveRecError(Exception):
    """Base exception for all moverec errors."""

    pass


# Configuration Errors
class ConfigurationError(MoveRecError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


class ConfigurationMismatch(ConfigurationError):
    """Raised when an entity's feature schema disagrees with the run's metric set."""

    def __init__(self, message: str, expected=None, actual=None):
        super().__init__(message)
        self.expected = list(expected) if expected is not None else None
        self.actual = list(actual) if actual is not None else None


# Run Errors
class OperationCanceled(MoveRecError):
    """Raised when the enclosing operation was canceled cooperatively."""

    pass


# Per-entity conditions
class EntitySkipped(MoveRecError):
    """Base class for per-entity conditions that skip an entity without failing the run."""

    def __init__(self, entity_name: str, reason: str):
        super().__init__(f"{entity_name}: {reason}")
        self.entity_name = entity_name
        self.reason = reason


class NoTargetFound(EntitySkipped):
    """Raised when no comparable target class exists for an entity."""

    pass


class UnsafeMove(EntitySkipped):
    """Raised when the safety filter vetoes a method move."""

    pass


# Input/Output Errors
class InputValidationError(MoveRecError):
    """Raised when input validation fails."""

    pass
