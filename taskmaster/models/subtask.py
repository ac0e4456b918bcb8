# taskmaster/models/subtask.py
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship

from taskmaster.models.base_task import BaseTask
from taskmaster.models.task_status import TaskStatus
from taskmaster.utils.datetime_utils import ensure_utc

if TYPE_CHECKING:
    from taskmaster.models.task import Task


class SubTask(BaseTask, table=True):
    __tablename__ = "subtasks"
    __table_args__ = (CheckConstraint("length(title) > 0", name="ck_subtasks_title_not_empty"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    parent_task_id: Optional[int] = Field(
        default=None,
        foreign_key="tasks.id",
        nullable=False,
        ondelete="CASCADE",
        index=True,
    )

    parent_task: Optional["Task"] = Relationship(back_populates="subtasks")

    @classmethod
    def create(
        cls,
        title: str,
        description: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        parent_task: Optional["Task"] = None,
    ) -> "SubTask":
        subtask = cls(
            title=title,
            description=description,
            start_date=start_date,
            end_date=end_date,
            status=TaskStatus.PENDING,
        )
        subtask.parent_task = parent_task
        return subtask

    def fits_parent_window(self) -> bool:
        """True unless this subtask starts before or ends after its parent.

        Missing dates on either side, or no parent at all, count as fitting.
        """
        parent = self.parent_task
        if parent is None:
            return True
        if self.start_date and parent.start_date:
            if ensure_utc(self.start_date) < ensure_utc(parent.start_date):
                return False
        if self.end_date and parent.end_date:
            if ensure_utc(self.end_date) > ensure_utc(parent.end_date):
                return False
        return True


__all__ = ["SubTask"]
