"""ORM models exposed by the TaskMaster application."""
from .task_status import TaskStatus
from .base_task import BaseTask
from .user import User
from .task import Task
from .subtask import SubTask

__all__ = ["BaseTask", "SubTask", "Task", "TaskStatus", "User"]
