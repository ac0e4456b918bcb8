# taskmaster/models/user.py
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field, Relationship, SQLModel

from taskmaster.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from taskmaster.models.task import Task


class User(SQLModel, table=True):
    """Account record; profile fields come from the identity provider."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, nullable=False)
    full_name: Optional[str] = None
    picture_url: Optional[str] = None
    # Raw userinfo payload, stored as received.
    google_user_info_json: Optional[str] = Field(default=None, sa_type=Text)
    created_at: Optional[datetime] = Field(
        default=None, nullable=False, sa_type=DateTime(timezone=True)
    )

    tasks: List["Task"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @classmethod
    def create(
        cls,
        email: str,
        full_name: Optional[str] = None,
        picture_url: Optional[str] = None,
        google_user_info_json: Optional[str] = None,
        tasks: Optional[Iterable["Task"]] = None,
    ) -> "User":
        user = cls(
            email=email,
            full_name=full_name,
            picture_url=picture_url,
            google_user_info_json=google_user_info_json,
            tasks=[],
        )
        for task in tasks or ():
            user.add_task(task)
        return user

    def add_task(self, task: "Task") -> None:
        if task not in self.tasks:
            self.tasks.append(task)
        task.user = self

    def remove_task(self, task: "Task") -> None:
        if task in self.tasks:
            self.tasks.remove(task)
        task.user = None

    def mark_created(self, now: Optional[datetime] = None) -> None:
        if self.created_at is None:
            self.created_at = now or utc_now()

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, User):
            return False
        return self.id is not None and self.id == other.id

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return (
            f"User(id={self.id!r}, email={self.email!r}, "
            f"full_name={self.full_name!r}, created_at={self.created_at!r})"
        )


__all__ = ["User"]
