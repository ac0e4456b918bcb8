# taskmaster/models/task.py
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship

from taskmaster.models.base_task import BaseTask
from taskmaster.models.task_status import TaskStatus

if TYPE_CHECKING:
    from taskmaster.models.subtask import SubTask
    from taskmaster.models.user import User


class Task(BaseTask, table=True):
    __tablename__ = "tasks"
    __table_args__ = (CheckConstraint("length(title) > 0", name="ck_tasks_title_not_empty"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="users.id",
        nullable=False,
        ondelete="CASCADE",
        index=True,
    )

    user: Optional["User"] = Relationship(back_populates="tasks")
    subtasks: List["SubTask"] = Relationship(
        back_populates="parent_task",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "(SubTask.created_at, SubTask.id)",
        },
    )

    @classmethod
    def create(
        cls,
        title: str,
        description: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        user: Optional["User"] = None,
        subtasks: Optional[Iterable["SubTask"]] = None,
    ) -> "Task":
        """Build a PENDING task; given subtasks are re-parented onto it."""
        task = cls(
            title=title,
            description=description,
            start_date=start_date,
            end_date=end_date,
            status=TaskStatus.PENDING,
            subtasks=[],
        )
        task.user = user
        for subtask in subtasks or ():
            task.add_subtask(subtask)
        return task

    def add_subtask(self, subtask: "SubTask") -> None:
        if subtask not in self.subtasks:
            self.subtasks.append(subtask)
        subtask.parent_task = self

    def remove_subtask(self, subtask: "SubTask") -> None:
        if subtask in self.subtasks:
            self.subtasks.remove(subtask)
        subtask.parent_task = None

    @property
    def completion_percentage(self) -> float:
        """Share of DONE subtasks, or 1.0/0.0 from the task's own status when it has none."""
        if not self.subtasks:
            return 1.0 if self.status == TaskStatus.DONE else 0.0
        done = sum(1 for subtask in self.subtasks if subtask.status == TaskStatus.DONE)
        return done / len(self.subtasks)


__all__ = ["Task"]
