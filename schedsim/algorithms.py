from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from fractions import Fraction
from typing import Callable, Deque, Dict, List, Optional, Sequence, Set

from .config import MLFQ_LEVEL_MULTIPLIERS
from .errors import EmptyProcessSetError, InvalidQuantumError, InvariantViolationError
from .metrics import compute_system_metrics, finalize
from .models import GanttSegment, Process, ProcessDescriptor, SimulationResult, pid_order_key
from .timeline import TimelineBuilder

logger = logging.getLogger(__name__)


class PolicyId(str, Enum):
    FCFS = "FCFS"
    SJF_NON_PREEMPTIVE = "SJF_non_preemptive"
    SRTF = "SRTF"
    PRIORITY_NON_PREEMPTIVE = "Priority_non_preemptive"
    PRIORITY_PREEMPTIVE = "Priority_preemptive"
    RR = "RR"
    LJF_NON_PREEMPTIVE = "LJF_non_preemptive"
    LRTF = "LRTF"
    HRRN = "HRRN"
    MLFQ = "MLFQ"


QUANTUM_POLICIES = frozenset({PolicyId.RR, PolicyId.MLFQ})


# ---------------------------------------------------------------------------
# Shared loop helpers
# ---------------------------------------------------------------------------


def _working_set(processes: Sequence[ProcessDescriptor]) -> List[Process]:
    """
    Fresh per-run records, ordered by arrival then id.
    """
    if not processes:
        raise EmptyProcessSetError("at least one process is required")
    records = [Process.from_descriptor(d) for d in processes]
    records.sort(key=lambda p: (p.arrival_time, pid_order_key(p.pid)))
    return records


def _require_quantum(quantum: Optional[int], name: str) -> int:
    if isinstance(quantum, bool) or not isinstance(quantum, int) or quantum <= 0:
        raise InvalidQuantumError(f"{name} requires a positive integer quantum, got {quantum!r}")
    return quantum


def _rank(key: Callable[[Process], object]) -> Callable[[Process], tuple]:
    # Ties on the primary key go to the earlier arrival, then the lower id.
    return lambda p: (key(p), p.arrival_time, pid_order_key(p.pid))


class _LoopGuard:
    """
    Bounds an event loop: every iteration must run a tick or jump over idle time.
    """

    def __init__(self, name: str, processes: List[Process]) -> None:
        self.name = name
        self.limit = 2 * sum(p.burst_time for p in processes) + 2 * len(processes) + 2
        self.count = 0

    def step(self) -> None:
        self.count += 1
        if self.count > self.limit:
            raise InvariantViolationError(
                f"{self.name} did not terminate within {self.limit} steps"
            )


def _advance_idle(timeline: TimelineBuilder, pending: List[Process], current_time: int) -> int:
    """
    Jump the clock to the next arrival among unfinished processes, recording Idle.
    """
    future = [p.arrival_time for p in pending if p.arrival_time > current_time]
    if not future:
        raise InvariantViolationError(
            f"no process is ready at t={current_time} and none is still to arrive"
        )
    next_arrival = min(future)
    timeline.record_idle(current_time, next_arrival)
    return next_arrival


def _complete(process: Process, current_time: int, pending: List[Process]) -> None:
    finalize(process, current_time)
    pending[:] = [p for p in pending if p is not process]


def _check_timeline(name: str, segments: List[GanttSegment]) -> None:
    clock = 0
    for seg in segments:
        if seg.start_time != clock or seg.end_time <= seg.start_time:
            raise InvariantViolationError(
                f"{name} produced a broken timeline at {seg.pid} {seg.start_time}-{seg.end_time}"
            )
        clock = seg.end_time


def _build_result(
    name: str,
    quantum: Optional[int],
    records: List[Process],
    timeline: TimelineBuilder,
) -> SimulationResult:
    unfinished = [p.pid for p in records if not p.finished]
    if unfinished:
        raise InvariantViolationError(f"{name} stopped with unfinished processes: {unfinished}")

    segments = timeline.build()
    _check_timeline(name, segments)

    result = SimulationResult(
        algorithm=name,
        quantum=quantum,
        gantt_segments=segments,
        completed_processes=sorted(records, key=lambda p: pid_order_key(p.pid)),
    )
    compute_system_metrics(result)
    return result


def _run_non_preemptive(
    name: str,
    processes: Sequence[ProcessDescriptor],
    key: Callable[[Process, int], object],
) -> SimulationResult:
    """
    Generic run-to-completion loop.

    At each decision point, the ready process with the smallest
    ``key(process, current_time)`` gets the CPU until it finishes.
    """
    records = _working_set(processes)
    pending = list(records)
    timeline = TimelineBuilder()
    guard = _LoopGuard(name, records)
    time = 0

    while pending:
        guard.step()
        ready = [p for p in pending if p.arrival_time <= time]
        if not ready:
            time = _advance_idle(timeline, pending, time)
            continue

        p = min(ready, key=lambda x: (key(x, time), x.arrival_time, pid_order_key(x.pid)))
        logger.debug("%s: t=%d selected %s", name, time, p.pid)

        p.allocate(time)
        end_time = time + p.remaining_time
        timeline.record_execution(p.pid, time, end_time)
        p.remaining_time = 0
        time = end_time
        _complete(p, time, pending)

    return _build_result(name, None, records, timeline)


def _run_preemptive(
    name: str,
    processes: Sequence[ProcessDescriptor],
    key: Callable[[Process], object],
) -> SimulationResult:
    """
    Generic tick-by-tick preemptive loop.

    The ready set is re-ranked before every time unit; the running process
    is replaced only by a process with a strictly smaller ``key``.
    """
    records = _working_set(processes)
    pending = list(records)
    timeline = TimelineBuilder()
    guard = _LoopGuard(name, records)
    rank = _rank(key)
    running: Optional[Process] = None
    time = 0

    while pending:
        guard.step()
        ready = [p for p in pending if p.arrival_time <= time]
        if not ready:
            time = _advance_idle(timeline, pending, time)
            continue

        best = min(ready, key=rank)
        if running is None:
            running = best
            logger.debug("%s: t=%d dispatched %s", name, time, running.pid)
        elif best is not running and key(best) < key(running):
            logger.debug("%s: t=%d %s preempts %s", name, time, best.pid, running.pid)
            running = best

        running.allocate(time)
        timeline.record_execution(running.pid, time, time + 1)
        running.remaining_time -= 1
        time += 1

        if running.finished:
            _complete(running, time, pending)
            running = None

    return _build_result(name, None, records, timeline)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


def schedule_fcfs(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    First-Come First-Serve (non-preemptive): strict arrival order.
    """
    return _run_non_preemptive("FCFS", processes, lambda p, _t: p.arrival_time)


def schedule_sjf(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Shortest Job First (non-preemptive).

    Among processes that have arrived and are not yet completed, choose the
    one with the smallest burst time.
    """
    return _run_non_preemptive("SJF (non-preemptive)", processes, lambda p, _t: p.burst_time)


def schedule_srtf(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Shortest Remaining Time First (preemptive SJF).
    """
    return _run_preemptive("SRTF", processes, lambda p: p.remaining_time)


def schedule_priority(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Priority scheduling (non-preemptive). Lower value means more urgent.
    """
    return _run_non_preemptive("Priority (non-preemptive)", processes, lambda p, _t: p.priority)


def schedule_priority_preemptive(
    processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None
) -> SimulationResult:
    """
    Priority scheduling (preemptive), re-evaluated every time unit.
    """
    return _run_preemptive("Priority (preemptive)", processes, lambda p: p.priority)


def schedule_rr(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Processes that arrive while a slice runs are queued ahead of the process
    whose slice just ended.
    """
    name = "Round Robin"
    quantum = _require_quantum(quantum, name)
    records = _working_set(processes)
    pending = list(records)
    timeline = TimelineBuilder()
    guard = _LoopGuard(name, records)

    ready: Deque[Process] = deque()
    admitted: Set[int] = set()
    time = 0

    def admit_arrivals(current_time: int) -> None:
        for p in pending:
            if p.arrival_time <= current_time and id(p) not in admitted:
                ready.append(p)
                admitted.add(id(p))

    while pending:
        guard.step()
        admit_arrivals(time)
        if not ready:
            time = _advance_idle(timeline, pending, time)
            continue

        p = ready.popleft()
        p.allocate(time)

        run_time = min(quantum, p.remaining_time)
        timeline.record_execution(p.pid, time, time + run_time)
        time += run_time
        p.remaining_time -= run_time

        admit_arrivals(time)

        if p.finished:
            _complete(p, time, pending)
        else:
            ready.append(p)

    return _build_result(name, quantum, records, timeline)


def schedule_ljf(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Longest Job First (non-preemptive).
    """
    return _run_non_preemptive("LJF (non-preemptive)", processes, lambda p, _t: -p.burst_time)


def schedule_lrtf(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Longest Remaining Time First (preemptive LJF).
    """
    return _run_preemptive("LRTF", processes, lambda p: -p.remaining_time)


def response_ratio(process: Process, current_time: int) -> Fraction:
    """
    (waiting + burst) / burst, using the original burst time.
    """
    waiting = current_time - process.arrival_time
    return Fraction(waiting + process.burst_time, process.burst_time)


def schedule_hrrn(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Highest Response Ratio Next (non-preemptive).

    Ratios are recomputed at every selection point and compared exactly.
    """
    return _run_non_preemptive("HRRN", processes, lambda p, t: -response_ratio(p, t))


def schedule_mlfq(processes: Sequence[ProcessDescriptor], quantum: Optional[int] = None) -> SimulationResult:
    """
    Multi-Level Feedback Queue with 3 levels.

    - New arrivals enter the highest-priority level (Q0).
    - Q0 runs round robin with the base quantum, Q1 with twice that, and Q2
      is FCFS with no quantum limit.
    - A process that uses its whole quantum without finishing is demoted one
      level (Q2 keeps it).
    - After every time unit, arrivals are admitted to Q0; if a level above the
      running process is no longer empty, the running process goes back to
      the front of its own level without being demoted.
    """
    name = "MLFQ"
    base_quantum = _require_quantum(quantum, name)
    quanta = [base_quantum * m if m is not None else None for m in MLFQ_LEVEL_MULTIPLIERS]
    lowest = len(quanta) - 1

    records = _working_set(processes)
    pending = list(records)
    timeline = TimelineBuilder()
    guard = _LoopGuard(name, records)

    levels: List[Deque[Process]] = [deque() for _ in quanta]
    level_of: Dict[int, int] = {}
    time = 0

    def admit_arrivals(current_time: int) -> None:
        for p in pending:
            if p.arrival_time <= current_time and id(p) not in level_of:
                levels[0].append(p)
                level_of[id(p)] = 0

    while pending:
        guard.step()
        admit_arrivals(time)
        level = next((i for i, q in enumerate(levels) if q), None)
        if level is None:
            time = _advance_idle(timeline, pending, time)
            continue

        p = levels[level].popleft()
        p.allocate(time)
        allotment = quanta[level]
        used = 0
        preempted = False

        while True:
            guard.step()
            timeline.record_execution(p.pid, time, time + 1)
            p.remaining_time -= 1
            time += 1
            used += 1
            admit_arrivals(time)

            if p.finished or (allotment is not None and used >= allotment):
                break
            if any(levels[higher] for higher in range(level)):
                preempted = True
                break

        if p.finished:
            _complete(p, time, pending)
        elif preempted:
            logger.debug("%s: t=%d %s preempted at level %d", name, time, p.pid, level)
            levels[level].appendleft(p)
        else:
            new_level = min(level + 1, lowest)
            if new_level != level:
                logger.debug("%s: t=%d %s demoted to level %d", name, time, p.pid, new_level)
            level_of[id(p)] = new_level
            levels[new_level].append(p)

    return _build_result(name, base_quantum, records, timeline)


ALGORITHMS: Dict[PolicyId, Callable[..., SimulationResult]] = {
    PolicyId.FCFS: schedule_fcfs,
    PolicyId.SJF_NON_PREEMPTIVE: schedule_sjf,
    PolicyId.SRTF: schedule_srtf,
    PolicyId.PRIORITY_NON_PREEMPTIVE: schedule_priority,
    PolicyId.PRIORITY_PREEMPTIVE: schedule_priority_preemptive,
    PolicyId.RR: schedule_rr,
    PolicyId.LJF_NON_PREEMPTIVE: schedule_ljf,
    PolicyId.LRTF: schedule_lrtf,
    PolicyId.HRRN: schedule_hrrn,
    PolicyId.MLFQ: schedule_mlfq,
}
