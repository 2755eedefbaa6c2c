from aiogram.fsm.state import State, StatesGroup


class GanttFlow(StatesGroup):
    # "Move task": a task is picked up, waiting for the drop target
    drag_target = State()


class TaskFlow(StatesGroup):
    add_task_line = State()
    add_event_pick = State()
    add_event_line = State()
    delete_pick = State()
