"""Attribute set shared by tasks and subtasks."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel

from taskmaster.models.task_status import TaskStatus
from taskmaster.utils.datetime_utils import utc_now


class BaseTask(SQLModel):
    """Columns and lifecycle hooks common to :class:`Task` and :class:`SubTask`.

    Not a table on its own. Concrete subclasses declare an ``id`` primary key;
    equality and hashing below rely on it.

    ``mark_created`` and ``mark_updated`` are called by the persistence layer
    (see :func:`taskmaster.storage.db.stamp_lifecycle`) right before the first
    insert and before every later update.
    """

    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    status: TaskStatus = Field(default=TaskStatus.PENDING, nullable=False)
    start_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: Optional[datetime] = Field(
        default=None, nullable=False, sa_type=DateTime(timezone=True)
    )
    updated_at: Optional[datetime] = Field(
        default=None, nullable=False, sa_type=DateTime(timezone=True)
    )

    def mark_created(self, now: Optional[datetime] = None) -> None:
        if self.created_at is None:
            stamp = now or utc_now()
            self.created_at = stamp
            self.updated_at = stamp
        elif self.updated_at is None:
            self.updated_at = self.created_at

    def mark_updated(self, now: Optional[datetime] = None) -> None:
        self.updated_at = now or utc_now()

    # Unsaved rows are only equal to themselves; saved rows compare by id.
    # The hash is per class so it survives the id being assigned on insert.
    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(other) is not type(self):
            return False
        own_id = getattr(self, "id", None)
        return own_id is not None and own_id == getattr(other, "id", None)

    def __hash__(self) -> int:
        return hash(type(self))


__all__ = ["BaseTask"]
