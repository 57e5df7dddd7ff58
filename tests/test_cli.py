import json
import logging
from pathlib import Path

import pytest

from schedsim.algorithms import schedule_fcfs
from schedsim.cli import main, resolve_log_level
from schedsim.gantt import build_rich_gantt, render_gantt
from schedsim.models import GanttSegment, ProcessDescriptor


@pytest.fixture
def workload(tmp_path: Path) -> Path:
    p = tmp_path / "w.json"
    p.write_text(
        json.dumps(
            [
                {"pid": "P1", "arrival_time": 0, "burst_time": 5, "priority": 2},
                {"pid": "P2", "arrival_time": 1, "burst_time": 3, "priority": 1},
                {"pid": "P3", "arrival_time": 2, "burst_time": 8, "priority": 3},
            ]
        )
    )
    return p


def test_run_prints_metrics(workload, capsys):
    assert main(["run", "-a", "fcfs", "-w", str(workload)]) == 0
    out = capsys.readouterr().out
    assert "FCFS" in out
    assert "Per-process metrics" in out
    assert "3.33" in out


def test_run_rr_with_quantum(workload, capsys):
    assert main(["run", "-a", "RR", "-w", str(workload), "-q", "3"]) == 0
    assert "Quantum" in capsys.readouterr().out


def test_run_rejects_bad_quantum(workload, capsys):
    assert main(["run", "-a", "mlfq", "-w", str(workload), "-q", "0"]) == 1
    assert "InvalidQuantum" in capsys.readouterr().out


def test_run_unknown_algorithm(workload, capsys):
    assert main(["run", "-a", "lottery", "-w", str(workload)]) == 1


def test_run_missing_workload(tmp_path: Path, capsys):
    assert main(["run", "-a", "fcfs", "-w", str(tmp_path / "missing.json")]) == 1


def test_compare_all_policies(workload, capsys):
    assert main(["compare", "-w", str(workload)]) == 0
    out = capsys.readouterr().out
    assert "Algorithm comparison" in out
    assert "HRRN" in out


def test_list_policies(capsys):
    assert main(["list"]) == 0
    assert "Priority_preemptive" in capsys.readouterr().out


def test_render_gantt_marks_idle():
    res = schedule_fcfs([ProcessDescriptor("P1", arrival_time=5, burst_time=3)])
    text = render_gantt(res.gantt_segments)
    lines = text.splitlines()
    assert lines[0] == "Gantt Chart:"
    assert lines[1] == "|.....===|"
    assert lines[2] == " Idle P1 "
    assert lines[3] == "0    5  8"


def test_rich_gantt_empty():
    panel, marks = build_rich_gantt([])
    assert marks == ""


def test_time_marks_align_with_narrow_segments():
    text = render_gantt([GanttSegment("P1", 0, 9), GanttSegment("P2", 9, 10)])
    _, bar, labels, marks = text.splitlines()
    assert bar == "|" + "=" * 12 + "|"
    assert labels == " P1       P2 "
    assert marks == "0        9 10"
    # Each mark ends in the last column of the segment it closes.
    assert marks.index("9") == bar.index("=") + 8
    assert len(marks) == len(bar) - 1


def test_resolve_log_level():
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level("WARNING") == logging.WARNING
    assert resolve_log_level("LOUD") == logging.WARNING


def test_invalid_env_log_level_does_not_crash(monkeypatch, capsys):
    monkeypatch.setattr("schedsim.config.LOG_LEVEL", "LOUD")
    assert main(["list"]) == 0
