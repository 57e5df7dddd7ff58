from __future__ import annotations

import logging
from typing import List

from .errors import InvariantViolationError
from .models import UNSET, Process, SimulationResult, SystemMetrics

logger = logging.getLogger(__name__)


def finalize(process: Process, completion_time: int) -> None:
    """
    Stamp completion, turnaround, waiting and response time on a finished process.

    Must be called exactly once, at the moment its remaining time reaches 0.
    """
    if process.remaining_time != 0:
        raise InvariantViolationError(
            f"{process.pid} finalized with {process.remaining_time} units still to run"
        )

    process.completion_time = completion_time
    process.turnaround_time = completion_time - process.arrival_time
    process.waiting_time = process.turnaround_time - process.burst_time
    if process.first_allocation_time == UNSET:
        process.first_allocation_time = process.arrival_time
    process.response_time = process.first_allocation_time - process.arrival_time

    logger.debug(
        "%s completed at %d (turnaround=%d waiting=%d response=%d)",
        process.pid,
        completion_time,
        process.turnaround_time,
        process.waiting_time,
        process.response_time,
    )


def compute_system_metrics(result: SimulationResult) -> SystemMetrics:
    """
    Compute averages, throughput and CPU utilization for a finished result.
    """
    processes = result.completed_processes
    if not processes:
        system = SystemMetrics(
            cpu_busy_time=0,
            idle_time=0,
            makespan=0,
            throughput=0.0,
            cpu_utilization=0.0,
            average_waiting_time=0.0,
            average_turnaround_time=0.0,
            average_response_time=0.0,
        )
        result.system = system
        return system

    makespan = max(p.completion_time for p in processes)
    cpu_busy_time = sum(seg.duration for seg in result.gantt_segments if not seg.is_idle)
    idle_time = sum(seg.duration for seg in result.gantt_segments if seg.is_idle)
    averages = summarize_process_metrics(processes)

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        idle_time=idle_time,
        makespan=makespan,
        throughput=len(processes) / makespan if makespan > 0 else 0.0,
        cpu_utilization=cpu_busy_time / makespan if makespan > 0 else 0.0,
        average_waiting_time=averages["avg_waiting"],
        average_turnaround_time=averages["avg_turnaround"],
        average_response_time=averages["avg_response"],
    )
    result.system = system
    return system


def summarize_process_metrics(processes: List[Process]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }
