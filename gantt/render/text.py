"""
Monospace rendering of a Chart for chat messages.

Meant for a window laid out with cell_width=1, so one cell is one character.
"""
from __future__ import annotations

import html
from typing import List

from gantt.domain.timeline.chart import ROW_CATEGORY, ROW_SUBCATEGORY, ROW_TASK, Chart, ChartRow

LABEL_WIDTH = 16

EMPTY_CELL = "·"
TODAY_CELL = "┊"
TASK_CELL = "█"
GROUP_CELL = "▒"
MARKER_CELL = "◆"
MULTI_MARKER_CELL = "◈"
CLIPPED_LEFT = "◂"
CLIPPED_RIGHT = "▸"


def _label(row: ChartRow, width: int) -> str:
    if row.kind == ROW_TASK:
        prefix = "    "
    else:
        arrow = "▼" if row.expanded else "▶"
        prefix = ("  " * row.depth) + arrow + " "
    text = prefix + row.label
    if len(text) > width:
        text = text[: width - 1] + "…"
    return text.ljust(width)


def _cells(chart: Chart, row: ChartRow) -> str:
    units = chart.window.units
    cells: List[str] = [EMPTY_CELL] * units
    if chart.today_index is not None:
        cells[chart.today_index] = TODAY_CELL

    if row.bar is not None:
        span = row.bar.span
        fill = TASK_CELL if row.kind == ROW_TASK else GROUP_CELL
        for i in range(max(span.start_index, 0), span.end_index + 1):
            cells[i] = fill
        if span.clipped_start:
            cells[0] = CLIPPED_LEFT
        if span.clipped_end:
            cells[-1] = CLIPPED_RIGHT

    per_cell = {}
    for marker in row.markers:
        per_cell[marker.index] = per_cell.get(marker.index, 0) + 1
    for index, count in per_cell.items():
        cells[index] = MULTI_MARKER_CELL if count > 1 else MARKER_CELL

    return "".join(cells)


def render_text(chart: Chart, label_width: int = LABEL_WIDTH) -> str:
    """HTML-safe <pre> block: one line per visible row."""
    labels = chart.labels
    first, last = (labels[0], labels[-1]) if labels else ("", "")
    span_line = first + last.rjust(max(chart.window.units - len(first), len(last) + 1))

    lines = [" " * label_width + span_line]
    if not chart.rows:
        lines.append("(no tasks)")
    for row in chart.rows:
        lines.append(_label(row, label_width) + _cells(chart, row))

    return "<pre>" + html.escape("\n".join(lines)) + "</pre>"


def row_summary(row: ChartRow) -> str:
    """One-line description used on buttons."""
    if row.kind == ROW_CATEGORY:
        return row.label
    if row.kind == ROW_SUBCATEGORY:
        return f"  {row.label}"
    return f"    {row.label}"
