"""
Simulation dispatcher: the single entry point used by front ends.

``simulate`` never raises for a bad request; it returns a ``SimulationOutcome``
holding either the result or the error. ``run_algorithm`` is the raising
variant for callers that prefer exceptions.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .algorithms import ALGORITHMS, QUANTUM_POLICIES, PolicyId
from .errors import (
    EmptyProcessSetError,
    InvalidQuantumError,
    InvariantViolationError,
    SimulationError,
    UnknownPolicyError,
)
from .models import ProcessDescriptor, SimulationResult

logger = logging.getLogger(__name__)

ALIASES = {
    "fcfs": PolicyId.FCFS,
    "sjf": PolicyId.SJF_NON_PREEMPTIVE,
    "srtf": PolicyId.SRTF,
    "priority": PolicyId.PRIORITY_NON_PREEMPTIVE,
    "priority_p": PolicyId.PRIORITY_PREEMPTIVE,
    "rr": PolicyId.RR,
    "ljf": PolicyId.LJF_NON_PREEMPTIVE,
    "lrtf": PolicyId.LRTF,
    "hrrn": PolicyId.HRRN,
    "mlfq": PolicyId.MLFQ,
}


@dataclass(frozen=True)
class SimulationOutcome:
    result: Optional[SimulationResult] = None
    error: Optional[SimulationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> SimulationResult:
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise InvariantViolationError("outcome holds neither a result nor an error")
        return self.result


def resolve_policy(algorithm: Union[str, PolicyId]) -> PolicyId:
    """
    Map a policy id, its value, or a short alias (case-insensitive) to a PolicyId.
    """
    if isinstance(algorithm, PolicyId):
        return algorithm
    name = str(algorithm).strip()
    for policy in PolicyId:
        if policy.value.lower() == name.lower() or policy.name.lower() == name.lower():
            return policy
    if name.lower() in ALIASES:
        return ALIASES[name.lower()]
    raise UnknownPolicyError(f"unknown scheduling policy {algorithm!r}")


def _validate(policy: PolicyId, processes: Sequence[ProcessDescriptor], quantum: Optional[int]) -> None:
    if not processes:
        raise EmptyProcessSetError("at least one process is required")
    if policy in QUANTUM_POLICIES:
        if isinstance(quantum, bool) or not isinstance(quantum, int) or quantum <= 0:
            raise InvalidQuantumError(
                f"{policy.value} requires a positive integer quantum, got {quantum!r}"
            )


def simulate(
    processes: Sequence[ProcessDescriptor],
    algorithm: Union[str, PolicyId],
    quantum: Optional[int] = None,
) -> SimulationOutcome:
    """
    Run one simulation on a private copy of ``processes``.
    """
    try:
        policy = resolve_policy(algorithm)
        _validate(policy, processes, quantum)
        working = copy.deepcopy(list(processes))
        logger.debug(
            "dispatching %s on %d processes (quantum=%s)", policy.value, len(working), quantum
        )
        func = ALGORITHMS[policy]
        result = func(working, quantum=quantum if policy in QUANTUM_POLICIES else None)
    except SimulationError as exc:
        logger.warning("simulation failed: %s", exc)
        return SimulationOutcome(error=exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("unexpected failure inside %r", algorithm)
        error = InvariantViolationError(f"{type(exc).__name__}: {exc}")
        error.__cause__ = exc
        return SimulationOutcome(error=error)

    return SimulationOutcome(result=result)


def run_algorithm(
    name: Union[str, PolicyId],
    processes: Sequence[ProcessDescriptor],
    quantum: Optional[int] = None,
) -> SimulationResult:
    """
    Dispatch to the requested algorithm, raising ``SimulationError`` on failure.
    """
    return simulate(processes, name, quantum=quantum).unwrap()
