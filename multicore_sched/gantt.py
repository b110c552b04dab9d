from __future__ import annotations

from typing import List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import CoreType, Process, Processor
from .timeline import TimelineFrame, TimelineSegment

MISSION_COLORS = ["red", "magenta", "dark_orange", "deep_pink3"]
BACKGROUND_COLORS = ["blue", "cyan", "green", "dark_cyan"]
CORE_STYLES = {
    CoreType.PERFORMANCE: "bold white on red",
    CoreType.EFFICIENCY: "bold white on blue",
}


def process_color(process: Process) -> str:
    palette = MISSION_COLORS if process.mission else BACKGROUND_COLORS
    return palette[process.pid % len(palette)]


def _core_label(processor: Processor) -> str:
    return f"CPU{processor.processor_id} {processor.core.short_name}"


def _label(segment: TimelineSegment) -> str:
    return str(segment.process.pid)[: segment.length].ljust(segment.length, "=")


def _time_marks(frame: TimelineFrame, offset: int) -> str:
    if frame.width == 0:
        return ""
    left = str(frame.lo)
    right = str(frame.hi)
    gap = max(frame.width - len(left) - len(right), 1)
    return " " * offset + left + " " * gap + right


def render_timeline(frame: TimelineFrame) -> str:
    """
    Plain-text timeline, one row per processor; idle ticks are dots.
    """
    if not frame.rows:
        return "(no processors)"

    label_width = max(len(_core_label(p)) for p in frame.rows)
    lines: List[str] = ["Timeline:"]

    for processor in sorted(frame.rows, key=lambda p: p.processor_id):
        cells = ["."] * frame.width
        for segment in frame.rows[processor]:
            cells[segment.start : segment.end] = list(_label(segment))
        lines.append(f"{_core_label(processor).ljust(label_width)} |{''.join(cells)}|")

    marks = _time_marks(frame, label_width + 2)
    if marks:
        lines.append(marks)
    return "\n".join(lines)


def build_rich_timeline(frame: TimelineFrame, title: str = "Timeline") -> Panel:
    """
    Build a Rich Panel with one colored bar per processor for the frame's
    window. Active cores get their core-class badge; idle ones are dimmed.
    """
    if frame.width == 0:
        return Panel("No execution yet", title=title)

    table = Table.grid(padding=(0, 1))
    table.add_column(no_wrap=True)
    table.add_column(no_wrap=True)

    for processor in sorted(frame.rows, key=lambda p: p.processor_id):
        style = CORE_STYLES[processor.core] if processor.is_active else "dim"
        label = Text(_core_label(processor), style=style)

        bar = Text()
        cursor = 0
        for segment in frame.rows[processor]:
            if segment.start > cursor:
                bar.append("·" * (segment.start - cursor), style="dim")
            bar.append(_label(segment), style=f"bold white on {process_color(segment.process)}")
            cursor = segment.end
        if cursor < frame.width:
            bar.append("·" * (frame.width - cursor), style="dim")

        table.add_row(label, bar)

    table.add_row(Text(""), Text(_time_marks(frame, 0), style="dim"))
    return Panel.fit(table, title=f"{title} (t={frame.elapsed})")
