"""
SVG export of a Chart laid out on the fixed-width pixel grid.

The document is exactly window.total_width wide; rows are row_height tall and
bars/markers are placed at the offsets the layout computed.
"""
from __future__ import annotations

import html
from typing import List

from gantt.constants import STATUS_COLORS, STATUS_UNKNOWN
from gantt.domain.tasks.models import status_color
from gantt.domain.timeline.chart import ROW_TASK, Chart, ChartRow

ROW_HEIGHT = 40
HEADER_HEIGHT = 30
BAR_HEIGHT = 24
GROUP_BAR_HEIGHT = 28
MARKER_RADIUS = 6

BACKGROUND = "#1f2937"
GRID_LINE = "#374151"
TODAY_FILL = "#06b6d4"
GROUP_FILL = STATUS_COLORS[STATUS_UNKNOWN]
MARKER_FILL = "#ef4444"
TEXT_FILL = "#e5e7eb"


def _attr(value: object) -> str:
    return html.escape(str(value), quote=True)


def _row(chart: Chart, row: ChartRow, y: int) -> List[str]:
    parts: List[str] = []
    center = y + ROW_HEIGHT / 2
    indent = 6 + row.depth * 10

    if row.bar is not None:
        is_task = row.kind == ROW_TASK
        height = BAR_HEIGHT if is_task else GROUP_BAR_HEIGHT
        fill = status_color(row.task.status) if is_task and row.task else GROUP_FILL
        parts.append(
            f'<rect x="{row.bar.left:g}" y="{center - height / 2:g}" width="{row.bar.width:g}" '
            f'height="{height}" rx="4" fill="{fill}" opacity="{0.85 if is_task else 0.6}">'
            f"<title>{_attr(row.label)}</title></rect>"
        )

    for marker in row.markers:
        parts.append(
            f'<circle cx="{marker.x:g}" cy="{center + marker.dy:g}" r="{MARKER_RADIUS}" '
            f'fill="{MARKER_FILL}" stroke="#ffffff" stroke-width="2">'
            f"<title>{_attr(marker.event.name)}</title></circle>"
        )

    # label column is drawn last so clipped bars run out from under it
    window = chart.window
    parts.append(
        f'<rect x="{window.padding}" y="{y}" width="{window.cell_width}" height="{ROW_HEIGHT}" fill="{BACKGROUND}"/>'
    )
    parts.append(
        f'<text x="{window.padding + indent}" y="{center + 4:g}" font-size="11" fill="{TEXT_FILL}">'
        f"{_attr(row.label)}</text>"
    )
    parts.append(
        f'<line x1="0" y1="{y + ROW_HEIGHT}" x2="{window.total_width}" y2="{y + ROW_HEIGHT}" stroke="{GRID_LINE}"/>'
    )
    return parts


def render_svg(chart: Chart) -> str:
    window = chart.window
    width = window.total_width
    height = HEADER_HEIGHT + ROW_HEIGHT * max(len(chart.rows), 1)

    parts: List[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" font-family="sans-serif">',
        f'<rect x="0" y="0" width="{width}" height="{height}" fill="{BACKGROUND}"/>',
    ]

    if chart.today_index is not None:
        parts.append(
            f'<rect x="{window.cell_left(chart.today_index)}" y="0" width="{window.cell_width}" '
            f'height="{height}" fill="{TODAY_FILL}" opacity="0.35"/>'
        )

    for i, label in enumerate(chart.labels):
        x = window.cell_left(i)
        parts.append(f'<line x1="{x}" y1="0" x2="{x}" y2="{height}" stroke="{GRID_LINE}"/>')
        parts.append(
            f'<text x="{window.cell_center(i):g}" y="{HEADER_HEIGHT - 10}" font-size="9" '
            f'text-anchor="middle" fill="{TEXT_FILL}">{_attr(label)}</text>'
        )

    for n, row in enumerate(chart.rows):
        parts.extend(_row(chart, row, HEADER_HEIGHT + n * ROW_HEIGHT))

    parts.append("</svg>")
    return "\n".join(parts)
