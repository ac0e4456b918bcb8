import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep data and log files out of the real user data directory.
os.environ.setdefault("TASKMASTER_DATA_DIR", tempfile.mkdtemp(prefix="taskmaster-tests-"))

import pytest
from sqlalchemy.pool import StaticPool

from taskmaster.services.tasks import TaskService
from taskmaster.services.users import UserService
from taskmaster.storage.db import create_db_engine, init_db, session_factory


@pytest.fixture()
def engine():
    engine = create_db_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def sessions(engine):
    return session_factory(engine)


@pytest.fixture()
def users(sessions):
    return UserService(session_factory=sessions)


@pytest.fixture()
def tasks(sessions):
    return TaskService(session_factory=sessions)


@pytest.fixture()
def user(users):
    return users.register("ada@example.com", full_name="Ada Lovelace")
