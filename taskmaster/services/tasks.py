# taskmaster/services/tasks.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from taskmaster.core.log import get_logger
from taskmaster.core.settings import TASK_RULES, TaskRules
from taskmaster.models import SubTask, Task, TaskStatus, User
from taskmaster.services.errors import (
    SubTaskWindowError,
    TaskNotFoundError,
    UserNotFoundError,
)
from taskmaster.storage.db import get_session, stamp_lifecycle


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValueError("title must not be empty")
    return cleaned


class TaskService:
    _listeners = {
        "after_create": set(),
        "after_update": set(),
        "after_delete": set(),
    }

    @classmethod
    def subscribe(cls, event: str, callback: Callable[[int], None]) -> None:
        if event not in cls._listeners:
            raise ValueError(f"Unsupported event: {event}")
        cls._listeners[event].add(callback)

    @classmethod
    def unsubscribe(cls, event: str, callback: Callable[[int], None]) -> None:
        if event not in cls._listeners:
            return
        cls._listeners[event].discard(callback)

    def __init__(
        self,
        session_factory: Callable[[], Session] = get_session,
        rules: TaskRules = TASK_RULES,
    ):
        self._session_factory = session_factory
        self.rules = rules
        self.logger = get_logger("taskmaster.services")

    def _emit(self, event: str, task_id: int) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(task_id)
            except Exception:
                self.logger.exception("Listener for %s failed on task %s", event, task_id)

    # ------------------------------------------------------------------
    def create(
        self,
        user_id: uuid.UUID,
        title: str,
        description: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        subtasks: Optional[Iterable[SubTask]] = None,
    ) -> Task:
        with self._session_factory() as s:
            user = s.get(User, user_id)
            if not user:
                raise UserNotFoundError(f"User not found: {user_id}")
            task = Task.create(
                title=_clean_title(title),
                description=description or None,
                start_date=start_date,
                end_date=end_date,
                user=user,
                subtasks=subtasks,
            )
            s.add(task)
            stamp_lifecycle(s)
            s.commit()
            self.logger.info("Task created: %s for user %s", task.id, user_id)
        self._emit("after_create", task.id)
        return task

    def get(self, task_id: int) -> Optional[Task]:
        with self._session_factory() as s:
            return self._load(s, task_id)

    def list_for_user(self, user_id: uuid.UUID) -> List[Task]:
        with self._session_factory() as s:
            stmt = (
                select(Task)
                .where(Task.user_id == user_id)
                .order_by(Task.created_at, Task.id)
                .options(selectinload(Task.subtasks))
            )
            return list(s.exec(stmt))

    def save(self, task: Task) -> Task:
        """Persist changes made to a detached task and its subtask collection."""

        is_new = task.id is None
        with self._session_factory() as s:
            s.add(task)
            stamp_lifecycle(s)
            s.commit()
        self._emit("after_create" if is_new else "after_update", task.id)
        return task

    def set_status(self, task_id: int, status: TaskStatus) -> Task:
        with self._session_factory() as s:
            task = self._require(s, task_id)
            task.status = TaskStatus(status)
            stamp_lifecycle(s)
            s.commit()
            self.logger.debug("Task %s status -> %s", task_id, task.status.value)
        self._emit("after_update", task_id)
        return task

    def delete(self, task_id: int) -> None:
        with self._session_factory() as s:
            task = s.get(Task, task_id)
            if not task:
                return
            s.delete(task)
            s.commit()
            self.logger.info("Task deleted: %s", task_id)
        self._emit("after_delete", task_id)

    # ----- subtasks -----
    def add_subtask(
        self,
        task_id: int,
        title: str,
        description: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> SubTask:
        with self._session_factory() as s:
            task = self._require(s, task_id)
            subtask = SubTask.create(
                title=_clean_title(title),
                description=description or None,
                start_date=start_date,
                end_date=end_date,
            )
            task.add_subtask(subtask)
            if self.rules.enforce_subtask_window and not subtask.fits_parent_window():
                raise SubTaskWindowError(
                    f"Subtask dates fall outside the window of task {task_id}"
                )
            s.add(subtask)
            stamp_lifecycle(s)
            s.commit()
            self.logger.debug("Subtask %s added to task %s", subtask.id, task_id)
        self._emit("after_update", task_id)
        return subtask

    def remove_subtask(self, task_id: int, subtask_id: int) -> bool:
        """Detach a subtask from its task; the orphaned row is deleted."""

        with self._session_factory() as s:
            task = self._require(s, task_id)
            subtask = next((st for st in task.subtasks if st.id == subtask_id), None)
            if subtask is None:
                return False
            task.remove_subtask(subtask)
            stamp_lifecycle(s)
            s.commit()
            self.logger.debug("Subtask %s removed from task %s", subtask_id, task_id)
        self._emit("after_update", task_id)
        return True

    # ------------------------------------------------------------------
    @staticmethod
    def _load(s: Session, task_id: int) -> Optional[Task]:
        stmt = (
            select(Task)
            .where(Task.id == task_id)
            .options(selectinload(Task.subtasks), selectinload(Task.user))
        )
        return s.exec(stmt).first()

    def _require(self, s: Session, task_id: int) -> Task:
        task = self._load(s, task_id)
        if not task:
            raise TaskNotFoundError(f"Task not found: {task_id}")
        return task


__all__ = ["TaskService"]
