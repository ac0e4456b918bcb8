# taskmaster/storage/db.py
from __future__ import annotations

from datetime import datetime
from functools import partial
from typing import Callable, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from taskmaster.core.log import get_logger
from taskmaster.core.settings import DATABASE
from taskmaster.utils.datetime_utils import utc_now

# Ensure SQLModel metadata is populated
import taskmaster.models  # noqa: F401


_engine: Optional[Engine] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: Optional[str] = None, **kwargs) -> Engine:
    """Build an engine; SQLite connections enforce foreign keys so ON DELETE CASCADE applies."""

    kwargs.setdefault("echo", DATABASE.echo)
    engine = create_engine(url or DATABASE.url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def init_db(engine: Optional[Engine] = None) -> None:
    actual_engine = engine or get_engine()
    SQLModel.metadata.create_all(actual_engine)
    get_logger("taskmaster.storage").info("Schema ready on %s", actual_engine.url)


def session_factory(engine: Engine) -> Callable[[], Session]:
    # Entities stay readable after the session closes.
    return partial(Session, engine, expire_on_commit=False)


def get_session() -> Session:
    return Session(get_engine(), expire_on_commit=False)


def stamp_lifecycle(session: Session, now: Optional[datetime] = None) -> None:
    """Run the entities' lifecycle hooks for everything the next flush will write.

    Pending objects get ``mark_created``; persistent objects with net changes
    get ``mark_updated``. Call right before ``commit`` with autoflush out of the
    way, otherwise new rows may be flushed before they carry timestamps.
    """

    stamp = now or utc_now()
    for obj in list(session.new):
        hook = getattr(obj, "mark_created", None)
        if hook is not None:
            hook(stamp)
    for obj in list(session.dirty):
        if not session.is_modified(obj):
            continue
        hook = getattr(obj, "mark_updated", None)
        if hook is not None:
            hook(stamp)


__all__ = [
    "create_db_engine",
    "get_engine",
    "get_session",
    "init_db",
    "session_factory",
    "stamp_lifecycle",
]
