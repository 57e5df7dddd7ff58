"""
CPU scheduling simulator.

Computes the Gantt timeline and per-process waiting, turnaround and response
times for ten classic single-CPU scheduling policies.
"""

from .algorithms import PolicyId
from .errors import SimulationError
from .models import GanttSegment, Process, ProcessDescriptor, SimulationResult
from .simulator import SimulationOutcome, run_algorithm, simulate

__all__ = [
    "GanttSegment",
    "PolicyId",
    "Process",
    "ProcessDescriptor",
    "SimulationError",
    "SimulationOutcome",
    "SimulationResult",
    "run_algorithm",
    "simulate",
]
