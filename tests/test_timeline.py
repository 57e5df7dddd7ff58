import pytest

from schedsim.errors import InvariantViolationError
from schedsim.models import GanttSegment
from schedsim.timeline import TimelineBuilder, merge_adjacent


def _triples(segments):
    return [(s.pid, s.start_time, s.end_time) for s in segments]


def test_merge_adjacent_combines_touching_segments():
    raw = [
        GanttSegment("P1", 0, 1),
        GanttSegment("P1", 1, 2),
        GanttSegment("P2", 2, 4),
        GanttSegment("P1", 4, 5),
    ]
    assert _triples(merge_adjacent(raw)) == [("P1", 0, 2), ("P2", 2, 4), ("P1", 4, 5)]


def test_merge_adjacent_keeps_non_touching_same_occupant():
    raw = [GanttSegment("P1", 0, 2), GanttSegment("P1", 3, 4)]
    assert _triples(merge_adjacent(raw)) == [("P1", 0, 2), ("P1", 3, 4)]


def test_merge_adjacent_does_not_mutate_input():
    raw = [GanttSegment("P1", 0, 1), GanttSegment("P1", 1, 2)]
    merge_adjacent(raw)
    assert _triples(raw) == [("P1", 0, 1), ("P1", 1, 2)]


def test_merge_adjacent_empty():
    assert merge_adjacent([]) == []


def test_builder_extends_trailing_idle():
    timeline = TimelineBuilder()
    timeline.record_idle(0, 3)
    timeline.record_idle(3, 5)
    timeline.record_execution("P1", 5, 6)
    assert _triples(timeline.raw_segments) == [("Idle", 0, 5), ("P1", 5, 6)]


def test_builder_ignores_empty_idle():
    timeline = TimelineBuilder()
    timeline.record_idle(4, 4)
    assert timeline.raw_segments == []


def test_build_drops_zero_length_segments():
    timeline = TimelineBuilder()
    timeline.record_execution("P1", 0, 2)
    timeline.record_execution("P2", 2, 2)
    timeline.record_execution("P1", 2, 3)
    assert _triples(timeline.build()) == [("P1", 0, 3)]


def test_record_execution_rejects_reversed_interval():
    timeline = TimelineBuilder()
    with pytest.raises(InvariantViolationError):
        timeline.record_execution("P1", 3, 2)
