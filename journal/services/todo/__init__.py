from journal.services.todo.todo_service import (
    TodoService,
    escalate_priority,
    format_todo,
    VALID_PRIORITIES,
    VALID_STATUSES,
)

__all__ = [
    "TodoService",
    "escalate_priority",
    "format_todo",
    "VALID_PRIORITIES",
    "VALID_STATUSES",
]
