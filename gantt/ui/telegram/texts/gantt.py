MAIN_MENU = "Choose an action."

HELP = (
    "Gantt board.\n"
    "/gantt - show the timeline\n"
    "/export - timeline as an SVG file\n"
    "/add_task - add a task\n"
    "/add_event - add an event to a task\n"
    "/delete_task - delete a task\n"
    "/cancel - abort the current step"
)

NO_TASKS = "No tasks yet. Add one with /add_task."

ADD_TASK_FORMAT = (
    "Send the task as one line:\n"
    "<code>name; category; subcategory; start; end</code>\n"
    "Dates are YYYY-MM-DD and may be left empty."
)
ADD_EVENT_PICK = "Which task does the event belong to?"
ADD_EVENT_FORMAT = (
    "Send the event as one line:\n"
    "<code>name; due date</code>"
)
DELETE_PICK = "Which task should be deleted?"

DRAG_PICK = "Move task: pick the task to move."
DRAG_TARGET = "Moving <b>{name}</b>. Pick the task whose place it takes."
DRAG_NOT_ALLOWED = "Not allowed: tasks can only be moved within their own subcategory."
DRAG_DONE = "Moved."
DRAG_NOOP = "Same place, nothing changed."

MOVE_BLOCKED = "Already at the edge."
STORAGE_UNAVAILABLE = "Local order storage is unavailable, changes are not kept."

TASK_ADDED = "Task added: <b>{name}</b> ({category} / {sub_category})"
EVENT_ADDED = "Event added: <b>{name}</b> on {due}"
TASK_DELETED = "Task deleted."
TASK_GONE = "That task no longer exists."

CANCELLED = "Cancelled."
