import json
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from taskmaster.core.settings import TaskRules
from taskmaster.models import SubTask, Task, TaskStatus
from taskmaster.services.errors import (
    DuplicateEmailError,
    SubTaskWindowError,
    TaskNotFoundError,
    UserNotFoundError,
)
from taskmaster.services.tasks import TaskService
from taskmaster.utils.datetime_utils import ensure_utc

START = datetime(2024, 5, 1, 9, tzinfo=timezone.utc)
END = START + timedelta(days=2)


def test_register_assigns_created_at(user):
    assert user.id is not None
    assert user.created_at is not None
    assert user.tasks == []


def test_register_duplicate_email(users, user):
    with pytest.raises(DuplicateEmailError):
        users.register("ada@example.com")


def test_save_existing_user_keeps_email(users, user):
    user.full_name = "Augusta Ada King"
    users.save(user)
    assert users.get_by_email("ada@example.com").full_name == "Augusta Ada King"


def test_sync_google_profile_creates_then_updates(users):
    info = {
        "sub": "1234",
        "email": "grace@example.com",
        "name": "Grace",
        "picture": "https://example.com/grace.png",
    }
    created = users.sync_google_profile(info)
    assert created.full_name == "Grace"
    assert created.picture_url == "https://example.com/grace.png"
    assert json.loads(created.google_user_info_json) == info
    assert created.created_at is not None

    updated = users.sync_google_profile({**info, "name": "Grace Hopper"})
    assert updated.id == created.id
    assert ensure_utc(updated.created_at) == ensure_utc(created.created_at)
    assert users.get_by_email("grace@example.com").full_name == "Grace Hopper"


def test_sync_google_profile_requires_email(users):
    with pytest.raises(ValueError):
        users.sync_google_profile({"sub": "1234"})


def test_create_task_for_user(tasks, users, user):
    task = tasks.create(user.id, "  Plan  ", description="", start_date=START, end_date=END)
    assert task.id is not None
    assert task.title == "Plan"
    assert task.description is None
    assert task.status == TaskStatus.PENDING
    assert task.user_id == user.id
    assert task.subtasks == []
    assert task.created_at == task.updated_at

    loaded = users.get(user.id)
    assert [t.title for t in loaded.tasks] == ["Plan"]
    assert loaded.tasks[0].completion_percentage == 0.0


def test_create_task_unknown_user(tasks):
    import uuid

    with pytest.raises(UserNotFoundError):
        tasks.create(uuid.uuid4(), "Plan")


def test_task_without_user_is_rejected_by_database(tasks):
    with pytest.raises(IntegrityError):
        tasks.save(Task.create(title="Orphan"))


def test_set_status_refreshes_updated_at_only(tasks, user):
    task = tasks.create(user.id, "Plan")
    created_at = ensure_utc(task.created_at)

    done = tasks.set_status(task.id, TaskStatus.DONE)
    assert done.status == TaskStatus.DONE
    assert done.completion_percentage == 1.0

    loaded = tasks.get(task.id)
    assert loaded.status == TaskStatus.DONE
    assert ensure_utc(loaded.created_at) == created_at
    assert ensure_utc(loaded.updated_at) >= created_at


def test_missing_task_handling(tasks):
    assert tasks.get(999) is None
    tasks.delete(999)
    with pytest.raises(TaskNotFoundError):
        tasks.set_status(999, TaskStatus.DONE)
    with pytest.raises(TaskNotFoundError):
        tasks.add_subtask(999, "Draft")


def test_subtasks_load_in_creation_order(tasks, user):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    subtasks = []
    for title, offset in (("A", 2), ("B", 3), ("C", 1)):
        subtask = SubTask.create(title=title)
        subtask.mark_created(base + timedelta(minutes=offset))
        subtasks.append(subtask)

    task = tasks.save(Task.create(title="Plan", user=user, subtasks=subtasks))

    loaded = tasks.get(task.id)
    assert [s.title for s in loaded.subtasks] == ["C", "A", "B"]
    assert all(s.parent_task_id == task.id for s in loaded.subtasks)


def test_save_detached_task_with_new_subtask(tasks, user):
    task = tasks.create(user.id, "Plan")
    task.add_subtask(SubTask.create(title="Draft"))
    tasks.save(task)

    loaded = tasks.get(task.id)
    assert [s.title for s in loaded.subtasks] == ["Draft"]
    assert loaded.subtasks[0].created_at is not None
    assert loaded.subtasks[0].status == TaskStatus.PENDING


def test_completion_after_reload(tasks, user):
    task = tasks.create(
        user.id,
        "Plan",
        subtasks=[SubTask.create(title=t) for t in ("A", "B", "C")],
    )
    task.subtasks[0].status = TaskStatus.DONE
    task.subtasks[2].status = TaskStatus.DONE
    tasks.save(task)

    assert tasks.get(task.id).completion_percentage == 2 / 3


def test_add_and_remove_subtask_service(tasks, sessions, user):
    task = tasks.create(user.id, "Plan")
    first = tasks.add_subtask(task.id, "Draft")
    second = tasks.add_subtask(task.id, "Review")
    assert first.parent_task_id == task.id

    assert tasks.remove_subtask(task.id, first.id) is True
    assert tasks.remove_subtask(task.id, first.id) is False

    with sessions() as s:
        # Orphaned subtasks are deleted, not left without a parent.
        assert s.get(SubTask, first.id) is None
        assert s.get(SubTask, second.id) is not None
    assert [st.title for st in tasks.get(task.id).subtasks] == ["Review"]


def test_subtask_window_not_enforced_by_default(tasks, user):
    task = tasks.create(user.id, "Plan", start_date=START, end_date=END)
    early = tasks.add_subtask(task.id, "Early", start_date=START - timedelta(hours=1))
    assert early.id is not None


def test_subtask_window_enforced_when_enabled(sessions, user):
    strict = TaskService(session_factory=sessions, rules=TaskRules(enforce_subtask_window=True))
    task = strict.create(user.id, "Plan", start_date=START, end_date=END)

    with pytest.raises(SubTaskWindowError):
        strict.add_subtask(task.id, "Early", start_date=START - timedelta(hours=1))
    assert strict.get(task.id).subtasks == []

    inside = strict.add_subtask(task.id, "Inside", start_date=START + timedelta(hours=1))
    assert inside.id is not None


def test_list_for_user(tasks, users, user):
    other = users.register("grace@example.com")
    tasks.create(user.id, "First")
    tasks.create(user.id, "Second")
    tasks.create(other.id, "Not mine")

    assert [t.title for t in tasks.list_for_user(user.id)] == ["First", "Second"]


def test_delete_task_cascades_to_subtasks(tasks, sessions, user):
    task = tasks.create(user.id, "Plan", subtasks=[SubTask.create(title="A")])
    tasks.delete(task.id)

    with sessions() as s:
        assert s.exec(select(Task)).all() == []
        assert s.exec(select(SubTask)).all() == []


def test_delete_user_cascades(users, tasks, sessions, user):
    tasks.create(user.id, "Plan", subtasks=[SubTask.create(title="A"), SubTask.create(title="B")])
    tasks.create(user.id, "Other")

    users.delete(user.id)

    assert users.get(user.id) is None
    with sessions() as s:
        assert s.exec(select(Task)).all() == []
        assert s.exec(select(SubTask)).all() == []


def test_database_cascade_without_orm(tasks, sessions, user):
    task = tasks.create(user.id, "Plan", subtasks=[SubTask.create(title="A")])

    with sessions() as s:
        s.connection().execute(text("DELETE FROM tasks WHERE id = :id"), {"id": task.id})
        s.commit()

    with sessions() as s:
        assert s.exec(select(SubTask)).all() == []


def test_listeners_receive_task_ids(tasks, user):
    seen = []

    def boom(task_id):
        raise RuntimeError("listener failure")

    TaskService.subscribe("after_create", seen.append)
    TaskService.subscribe("after_create", boom)
    try:
        task = tasks.create(user.id, "Plan")
    finally:
        TaskService.unsubscribe("after_create", seen.append)
        TaskService.unsubscribe("after_create", boom)

    assert seen == [task.id]


def test_subscribe_unknown_event():
    with pytest.raises(ValueError):
        TaskService.subscribe("after_archive", print)


def test_blank_task_title_is_rejected(tasks, sessions, user):
    with pytest.raises(ValueError):
        tasks.create(user.id, "   ")
    with sessions() as s:
        assert s.exec(select(Task)).all() == []


def test_blank_subtask_title_is_rejected(tasks, user):
    task = tasks.create(user.id, "Plan")
    with pytest.raises(ValueError):
        tasks.add_subtask(task.id, "")
    assert tasks.get(task.id).subtasks == []


def test_database_rejects_empty_title(tasks, user):
    with pytest.raises(IntegrityError):
        tasks.save(Task.create(title="", user=user))


def test_subtasks_created_together_keep_insertion_order(tasks, user):
    titles = [f"step {n}" for n in range(1, 11)]
    task = tasks.create(user.id, "Plan", subtasks=[SubTask.create(title=t) for t in titles])

    loaded = tasks.get(task.id)
    assert len({s.created_at for s in loaded.subtasks}) == 1
    assert [s.title for s in loaded.subtasks] == titles
