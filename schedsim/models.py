from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import IDLE_LABEL

IDLE = IDLE_LABEL

# Marks first_allocation_time / response_time before the process has run.
UNSET = -1

_ID_SUFFIX = re.compile(r"(\d+)$")


def pid_order_key(pid: str) -> Tuple[int, int, str]:
    """
    Sort key ordering process ids by their numeric suffix (P2 before P10).

    Ids without a numeric suffix come after all numbered ones.
    """
    match = _ID_SUFFIX.search(pid)
    if match:
        return (0, int(match.group(1)), pid)
    return (1, 0, pid)


@dataclass(frozen=True)
class ProcessDescriptor:
    """
    Caller-owned description of a process. Never mutated by the simulator.
    """

    pid: str
    arrival_time: int
    burst_time: int
    priority: int = 0


@dataclass
class Process:
    """
    Per-run state for one simulated process.
    """

    pid: str
    arrival_time: int
    burst_time: int
    priority: int = 0
    remaining_time: int = 0
    completion_time: int = 0
    turnaround_time: int = 0
    waiting_time: int = 0
    response_time: int = UNSET
    first_allocation_time: int = UNSET

    @classmethod
    def from_descriptor(cls, descriptor: ProcessDescriptor) -> "Process":
        return cls(
            pid=descriptor.pid,
            arrival_time=descriptor.arrival_time,
            burst_time=descriptor.burst_time,
            priority=descriptor.priority,
            remaining_time=descriptor.burst_time,
        )

    @property
    def finished(self) -> bool:
        return self.remaining_time == 0

    def allocate(self, current_time: int) -> None:
        """Record the first time this process receives the CPU."""
        if self.first_allocation_time == UNSET:
            self.first_allocation_time = current_time


@dataclass
class GanttSegment:
    """
    One contiguous interval during which a process (or Idle) holds the CPU.
    """

    pid: str
    start_time: int
    end_time: int

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def is_idle(self) -> bool:
        return self.pid == IDLE


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    idle_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    average_waiting_time: float
    average_turnaround_time: float
    average_response_time: float


@dataclass
class SimulationResult:
    algorithm: str
    quantum: Optional[int]
    gantt_segments: List[GanttSegment] = field(default_factory=list)
    completed_processes: List[Process] = field(default_factory=list)
    system: Optional[SystemMetrics] = None

    def process(self, pid: str) -> Process:
        for p in self.completed_processes:
            if p.pid == pid:
                return p
        raise KeyError(pid)
