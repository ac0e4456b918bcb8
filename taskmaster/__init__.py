"""TaskMaster entity model: users, tasks and subtasks."""

__version__ = "0.1.0"
