# taskmaster/services/users.py
from __future__ import annotations

import json
import uuid
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from taskmaster.core.log import get_logger
from taskmaster.models import Task, User
from taskmaster.services.errors import DuplicateEmailError
from taskmaster.storage.db import get_session, stamp_lifecycle


def _with_tasks():
    return selectinload(User.tasks).selectinload(Task.subtasks)


class UserService:
    def __init__(self, session_factory: Callable[[], Session] = get_session):
        self._session_factory = session_factory
        self.logger = get_logger("taskmaster.services")

    def register(
        self,
        email: str,
        full_name: Optional[str] = None,
        picture_url: Optional[str] = None,
        google_user_info_json: Optional[str] = None,
    ) -> User:
        user = User.create(
            email=email.strip(),
            full_name=full_name,
            picture_url=picture_url,
            google_user_info_json=google_user_info_json,
        )
        return self.save(user)

    def get(self, user_id: uuid.UUID) -> Optional[User]:
        with self._session_factory() as session:
            stmt = select(User).where(User.id == user_id).options(_with_tasks())
            return session.exec(stmt).first()

    def get_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        with self._session_factory() as session:
            stmt = select(User).where(User.email == email.strip()).options(_with_tasks())
            return session.exec(stmt).first()

    def save(self, user: User) -> User:
        """Insert or update ``user`` together with its tasks and their subtasks."""

        with self._session_factory() as session:
            with session.no_autoflush:
                if self._email_taken(session, user):
                    self.logger.warning("Email already registered: %s", user.email)
                    raise DuplicateEmailError(user.email)
            session.add(user)
            stamp_lifecycle(session)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if self._email_taken(session, user):
                    self.logger.warning("Email already registered: %s", user.email)
                    raise DuplicateEmailError(user.email) from exc
                raise
            self.logger.debug("User saved: %s", user.id)
            return user

    def delete(self, user_id: uuid.UUID) -> None:
        with self._session_factory() as session:
            user = session.get(User, user_id)
            if not user:
                return
            session.delete(user)
            session.commit()
            self.logger.info("User deleted: %s", user_id)

    def sync_google_profile(self, userinfo: Mapping[str, Any]) -> User:
        """Create or refresh the user matching a Google userinfo payload by email."""

        email = str(userinfo.get("email") or "").strip()
        if not email:
            raise ValueError("userinfo payload has no email")
        payload = json.dumps(dict(userinfo), ensure_ascii=False, sort_keys=True)

        with self._session_factory() as session:
            stmt = select(User).where(User.email == email).options(_with_tasks())
            user = session.exec(stmt).first()
            if user is None:
                user = User.create(
                    email=email,
                    full_name=userinfo.get("name"),
                    picture_url=userinfo.get("picture"),
                    google_user_info_json=payload,
                )
                session.add(user)
                self.logger.info("New user from Google profile: %s", email)
            else:
                user.full_name = userinfo.get("name") or user.full_name
                user.picture_url = userinfo.get("picture") or user.picture_url
                user.google_user_info_json = payload
            stamp_lifecycle(session)
            session.commit()
            return user

    @staticmethod
    def _email_taken(session: Session, user: User) -> bool:
        stmt = select(User.id).where(User.email == user.email, User.id != user.id)
        return session.exec(stmt).first() is not None


__all__ = ["UserService"]
