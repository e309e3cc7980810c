from __future__ import annotations

from typing import Dict, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import IDLE, Timeline

CELL_WIDTH = 6


def render_gantt(timeline: Sequence[int]) -> str:
    """
    Plain-text Gantt chart with one cell per tick and a tick ruler underneath.
    """
    if not timeline:
        return "(no execution)"

    cells = "|"
    for owner in timeline:
        cells += " Idle |" if owner == IDLE else f" {'P' + str(owner):<4}|"

    ruler = "0" + "".join(f"{t:>{CELL_WIDTH}}" for t in range(1, len(timeline) + 1))

    return "\n".join(["Gantt Chart:", cells, ruler])


def build_rich_gantt(timeline: Timeline) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    slices = Timeline(timeline).slices()
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[int, str] = {}

    def pid_color(pid: int) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(colors)
            pid_to_color[pid] = colors[idx]
        return pid_to_color[pid]

    # Each tick is drawn three characters wide so labels fit.
    scale = 3
    bar = Text()
    labels = Text()
    time_marks = "0"
    last_time = 0

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            bar.append("." * idle_gap * scale, style="dim")
            labels.append(" " * idle_gap * scale)
            time_marks += " " * (idle_gap * scale - len(str(sl.start_time))) + str(sl.start_time)
            last_time = sl.start_time

        width = (sl.end_time - sl.start_time) * scale
        label = f"P{sl.pid}"[:width].ljust(width)

        bar.append(" " * width, style=f"on {pid_color(sl.pid)}")
        labels.append(label, style="bold")

        time_marks += " " * max(1, width - len(str(sl.end_time))) + str(sl.end_time)
        last_time = sl.end_time

    table = Table.grid(padding=(0, 0))
    table.add_row(bar)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
