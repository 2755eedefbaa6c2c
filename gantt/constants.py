"""
Constants for storage keys, task status and timeline defaults.
"""
from __future__ import annotations

# Client-local preference keys (one JSON value each)
CATEGORY_ORDER_KEY = "gantt_category_order"
SUBCATEGORY_ORDER_KEY = "gantt_subcategory_order"
TASK_ORDER_KEY = "gantt_task_order"
EXPANDED_CATEGORIES_KEY = "gantt_expanded_categories"
EXPANDED_SUBCATEGORIES_KEY = "gantt_expanded_subcategories"

# Composite bucket key separator: "category::subcategory"
SUBCATEGORY_KEY_SEP = "::"

# Task / event status values (stored as-is in task.status / event.status)
STATUS_TODO = "ToDo"
STATUS_IN_PROGRESS = "InProgress"
STATUS_CONFIRMED = "Confirmed"
STATUS_ICEBOX = "IceBox"
STATUS_DONE = "Done"
STATUS_UNKNOWN = "unknown"

STATUS_COLORS = {
    STATUS_TODO: "#6b7280",
    STATUS_IN_PROGRESS: "#3b82f6",
    STATUS_CONFIRMED: "#eab308",
    STATUS_ICEBOX: "#a855f7",
    STATUS_DONE: "#22c55e",
    STATUS_UNKNOWN: "#6b7280",
}

NOTE_MAX_LEN = 1000
NAME_MAX_LEN = 255
GROUP_NAME_MAX_LEN = 100

# Timeline defaults
DEFAULT_TIMELINE_UNITS = 120
DEFAULT_TIMELINE_UNIT = "day"
DEFAULT_CELL_WIDTH = 30
DEFAULT_WINDOW_PADDING = 0
DEFAULT_EVENT_SPACING = 24
DEFAULT_TEXT_UNITS = 14
DEFAULT_LOOKBACK_DAYS = 7
