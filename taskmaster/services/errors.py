"""Errors raised by the service layer."""


class TaskMasterError(Exception):
    pass


class UserNotFoundError(TaskMasterError, LookupError):
    pass


class TaskNotFoundError(TaskMasterError, LookupError):
    pass


class DuplicateEmailError(TaskMasterError):
    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email


class SubTaskWindowError(TaskMasterError, ValueError):
    pass


__all__ = [
    "DuplicateEmailError",
    "SubTaskWindowError",
    "TaskMasterError",
    "TaskNotFoundError",
    "UserNotFoundError",
]
