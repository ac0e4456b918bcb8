# taskmaster/models/task_status.py
import enum


class TaskStatus(str, enum.Enum):
    """Lifecycle states of tasks and subtasks. Any value may follow any other."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


__all__ = ["TaskStatus"]
