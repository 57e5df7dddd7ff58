from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import GanttSegment

IDLE_STYLE = "grey35"
COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def column_width(seg: GanttSegment) -> int:
    """
    Columns given to a segment: one per time unit, widened so its end mark fits.
    """
    return max(1, seg.duration, len(str(seg.end_time)) + 1)


def render_gantt(segments: List[GanttSegment]) -> str:
    """
    Plain-text Gantt chart. Idle time shows as dots.

    Each end-time mark is right-aligned under the last column of its segment.
    """
    if not segments:
        return "(no execution)"

    line = "|"
    labels = " "
    time_marks = str(segments[0].start_time)

    for seg in segments:
        width = column_width(seg)
        line += ("." if seg.is_idle else "=") * width
        labels += seg.pid[:width].ljust(width)
        time_marks += f"{seg.end_time:>{width}}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


def build_rich_gantt(segments: List[GanttSegment]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not segments:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(COLORS)
            pid_to_color[pid] = COLORS[idx]
        return pid_to_color[pid]

    start_mark = str(segments[0].start_time)
    timeline = Text(" " * len(start_mark))
    labels = Text(" " * len(start_mark))
    time_marks = start_mark

    for seg in segments:
        width = column_width(seg)
        color = IDLE_STYLE if seg.is_idle else pid_color(seg.pid)

        timeline.append(" " * width, style=f"on {color}")
        labels.append(seg.pid[:width].ljust(width), style="dim" if seg.is_idle else "bold")
        time_marks += f"{seg.end_time:>{width}}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
