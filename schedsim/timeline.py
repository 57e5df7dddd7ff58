from __future__ import annotations

import logging
from typing import Iterable, List

from .errors import InvariantViolationError
from .models import IDLE, GanttSegment

logger = logging.getLogger(__name__)


def merge_adjacent(segments: Iterable[GanttSegment]) -> List[GanttSegment]:
    """
    Combine consecutive segments of the same occupant that touch in time.

    The input is left untouched; the returned list holds fresh segments in
    the same order, with no two neighbours sharing an occupant and touching.
    """
    merged: List[GanttSegment] = []
    for seg in segments:
        last = merged[-1] if merged else None
        if last is not None and last.pid == seg.pid and last.end_time == seg.start_time:
            last.end_time = seg.end_time
        else:
            merged.append(GanttSegment(pid=seg.pid, start_time=seg.start_time, end_time=seg.end_time))
    return merged


class TimelineBuilder:
    """
    Collects raw execution and idle segments during one policy run.
    """

    def __init__(self) -> None:
        self._raw: List[GanttSegment] = []

    def record_execution(self, pid: str, start_time: int, end_time: int) -> None:
        if end_time < start_time:
            raise InvariantViolationError(
                f"segment for {pid} ends before it starts ({start_time}-{end_time})"
            )
        self._raw.append(GanttSegment(pid=pid, start_time=start_time, end_time=end_time))

    def record_idle(self, start_time: int, end_time: int) -> None:
        """
        Cover [start_time, end_time) with Idle, extending a trailing Idle segment.
        """
        if end_time <= start_time:
            return
        logger.debug("cpu idle from %d to %d", start_time, end_time)
        last = self._raw[-1] if self._raw else None
        if last is not None and last.pid == IDLE and last.end_time == start_time:
            last.end_time = end_time
            return
        self.record_execution(IDLE, start_time, end_time)

    @property
    def raw_segments(self) -> List[GanttSegment]:
        return list(self._raw)

    def build(self) -> List[GanttSegment]:
        """
        Final Gantt sequence: zero-length entries dropped, neighbours merged.
        """
        return merge_adjacent(seg for seg in self._raw if seg.end_time > seg.start_time)
