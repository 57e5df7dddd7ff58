import pytest

from schedsim.algorithms import ALGORITHMS, PolicyId
from schedsim.errors import (
    ErrorKind,
    InvalidQuantumError,
    SimulationError,
    UnknownPolicyError,
)
from schedsim.models import Process, ProcessDescriptor
from schedsim.simulator import SimulationOutcome, resolve_policy, run_algorithm, simulate


def _procs():
    return [
        ProcessDescriptor("P1", arrival_time=0, burst_time=5, priority=2),
        ProcessDescriptor("P2", arrival_time=1, burst_time=3, priority=1),
        ProcessDescriptor("P3", arrival_time=2, burst_time=8, priority=3),
    ]


def test_simulate_returns_result():
    outcome = simulate(_procs(), "FCFS")
    assert outcome.ok
    assert outcome.error is None
    assert [s.pid for s in outcome.result.gantt_segments] == ["P1", "P2", "P3"]


@pytest.mark.parametrize("name", ["fcfs", "FCFS", "sjf", "SJF_non_preemptive", "priority_p", "LRTF", "hrrn"])
def test_resolve_policy_accepts_ids_and_aliases(name):
    assert isinstance(resolve_policy(name), PolicyId)


def test_unknown_policy():
    outcome = simulate(_procs(), "lottery")
    assert not outcome.ok
    assert outcome.result is None
    assert outcome.error.kind is ErrorKind.UNKNOWN_POLICY


def test_empty_process_set():
    outcome = simulate([], "FCFS")
    assert outcome.error.kind is ErrorKind.EMPTY_PROCESS_SET


@pytest.mark.parametrize("policy", ["RR", "MLFQ"])
@pytest.mark.parametrize("quantum", [None, 0, -2, 1.5, True])
def test_invalid_quantum(policy, quantum):
    outcome = simulate(_procs(), policy, quantum=quantum)
    assert outcome.error.kind is ErrorKind.INVALID_QUANTUM


def test_quantum_ignored_for_other_policies():
    outcome = simulate(_procs(), "SJF_non_preemptive", quantum=0)
    assert outcome.ok
    assert outcome.result.quantum is None


def test_run_algorithm_raises():
    with pytest.raises(InvalidQuantumError):
        run_algorithm("rr", _procs(), quantum=0)
    with pytest.raises(UnknownPolicyError):
        run_algorithm("nope", _procs())


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        run_algorithm("nope", _procs())


def test_internal_failure_is_wrapped(monkeypatch):
    def boom(processes, quantum=None):
        raise RuntimeError("kaput")

    monkeypatch.setitem(ALGORITHMS, PolicyId.FCFS, boom)
    outcome = simulate(_procs(), PolicyId.FCFS)
    assert outcome.result is None
    assert outcome.error.kind is ErrorKind.INTERNAL_INVARIANT_VIOLATION
    assert "kaput" in str(outcome.error)
    with pytest.raises(SimulationError):
        outcome.unwrap()


def test_caller_records_are_not_mutated():
    records = [Process.from_descriptor(d) for d in _procs()]
    run_algorithm("SRTF", records)
    assert all(p.remaining_time == p.burst_time for p in records)
    assert all(p.completion_time == 0 for p in records)


def test_results_do_not_alias_input():
    procs = _procs()
    res = run_algorithm("FCFS", procs)
    assert all(p is not d for p, d in zip(res.completed_processes, procs))


@pytest.mark.parametrize("policy", list(PolicyId), ids=lambda p: p.value)
def test_duplicate_ids_still_complete(policy):
    procs = [ProcessDescriptor("P1", 0, 3), ProcessDescriptor("P1", 1, 2)]
    outcome = simulate(procs, policy, quantum=1)
    assert outcome.ok, outcome.error
    assert sorted(p.burst_time for p in outcome.result.completed_processes) == [2, 3]
    assert outcome.result.gantt_segments[-1].end_time == 5


def test_unwrap_empty_outcome_raises():
    with pytest.raises(SimulationError):
        SimulationOutcome().unwrap()
