from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_QUANTUM = "InvalidQuantum"
    EMPTY_PROCESS_SET = "EmptyProcessSet"
    UNKNOWN_POLICY = "UnknownPolicy"
    INTERNAL_INVARIANT_VIOLATION = "InternalInvariantViolation"


class SimulationError(ValueError):
    """
    Raised when a simulation cannot produce a complete result.
    """

    kind = ErrorKind.INTERNAL_INVARIANT_VIOLATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class InvalidQuantumError(SimulationError):
    kind = ErrorKind.INVALID_QUANTUM


class EmptyProcessSetError(SimulationError):
    kind = ErrorKind.EMPTY_PROCESS_SET


class UnknownPolicyError(SimulationError):
    kind = ErrorKind.UNKNOWN_POLICY


class InvariantViolationError(SimulationError):
    kind = ErrorKind.INTERNAL_INVARIANT_VIOLATION


class WorkloadError(ValueError):
    """Raised for a workload file or entry that cannot be turned into processes."""
