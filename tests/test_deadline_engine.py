# tests/test_deadline_engine.py

from __future__ import annotations

import pytest

from pm_tracker.core.models import NotificationType, Priority, Project, ProjectStatus, Task, TaskStatus
from pm_tracker.core.results import ErrorKind
from pm_tracker.notifications.deadline_engine import DeadlineEngine, build_project_notices, build_task_notice
from pm_tracker.storage import keys

from .fakes import FIXED_NOW


@pytest.fixture()
def engine(notifications, tasks, projects, users) -> DeadlineEngine:
    return DeadlineEngine(notifications, tasks, projects, users, window_days=7)


def _task(deadline: str | None, status: TaskStatus = TaskStatus.TODO) -> Task:
    return Task(
        id="t", project_id="p", title="Ship it", description="", assignee_id="u1",
        priority=Priority.HIGH, status=status, created_by_id="admin",
        created_at=FIXED_NOW, assigned_at=FIXED_NOW, deadline=deadline,
    )


def _deadline_notes(notifications, user_id: str | None = None):
    return [n for n in notifications.list(user_id) if n.type == NotificationType.DEADLINE]


def test_scan_is_idempotent_for_same_now(engine: DeadlineEngine, notifications) -> None:
    first = engine.run(FIXED_NOW)
    assert first.ok

    mine = _deadline_notes(notifications, "u1")
    assert len(mine) == 1
    assert mine[0].task_id == "t-open"
    assert mine[0].deadline == "2025-06-13T00:00:00.000Z"
    assert "Write docs" in mine[0].message and "in Portal" in mine[0].message

    again = engine.run(FIXED_NOW)
    assert again.ok and again.value == []
    assert len(_deadline_notes(notifications)) == len(first.value or [])


def test_project_deadlines_notify_active_admins(engine: DeadlineEngine, notifications) -> None:
    engine.run(FIXED_NOW)

    admin_notes = _deadline_notes(notifications, "admin")
    assert [n.project_id for n in admin_notes] == ["p-hold"]
    assert admin_notes[0].message == 'Project "Legacy" deadline: 2025-06-12'


def test_project_notices_can_be_disabled(notifications, tasks, projects, users) -> None:
    engine = DeadlineEngine(notifications, tasks, projects, users, notify_admins_on_project_deadline=False)
    engine.run(FIXED_NOW)
    assert _deadline_notes(notifications, "admin") == []


def test_changed_deadline_produces_new_notice(engine: DeadlineEngine, tasks, notifications, admin_session) -> None:
    engine.run(FIXED_NOW)
    assert tasks.update("t-open", {"deadline": "2025-06-15T00:00:00.000Z"}, admin_session).ok

    created = engine.run(FIXED_NOW)
    assert created.ok and len(created.value or []) == 1
    assert len(_deadline_notes(notifications, "u1")) == 2


def test_completed_tasks_are_skipped(engine: DeadlineEngine, tasks, notifications, u1_session) -> None:
    assert tasks.move_status("t-open", TaskStatus.COMPLETED, u1_session).ok
    engine.run(FIXED_NOW)
    assert _deadline_notes(notifications, "u1") == []


def test_storage_failure_creates_nothing(engine: DeadlineEngine, backend, notifications) -> None:
    backend.fail_on.add(keys.NOTIFICATIONS)
    res = engine.run(FIXED_NOW)
    assert not res.ok and res.kind == ErrorKind.STORAGE
    assert notifications.list() == []


def test_invalid_now_is_rejected(engine: DeadlineEngine) -> None:
    res = engine.run("yesterday-ish")
    assert not res.ok and res.kind == ErrorKind.VALIDATION


@pytest.mark.parametrize(
    ("deadline", "expected"),
    [
        ("2025-06-08T12:00:00.000Z", "overdue"),
        ("2025-06-10T23:00:00.000Z", "due today"),
        ("2025-06-17T00:00:00.000Z", "due 2025-06-17"),
    ],
)
def test_task_notice_wording(deadline: str, expected: str) -> None:
    notice = build_task_notice(_task(deadline), FIXED_NOW)
    assert notice is not None
    assert expected in notice.message
    assert notice.dedupe_key == ("u1", "t", None, deadline)


@pytest.mark.parametrize(
    "task",
    [
        _task("2025-06-18T00:00:00.000Z"),
        _task(None),
        _task("2025-06-11T00:00:00.000Z", TaskStatus.COMPLETED),
    ],
)
def test_task_notice_outside_scope(task: Task) -> None:
    assert build_task_notice(task, FIXED_NOW) is None


def test_completed_project_gets_no_notice() -> None:
    project = Project(id="p", name="Done", description="", status=ProjectStatus.COMPLETED,
                      start_date="2025-06-01", end_date="2025-06-11", assigned_user_ids=["u1"])
    assert build_project_notices(project, ["admin"], FIXED_NOW) == []


def test_unreadable_notifications_do_not_duplicate_notices(engine: DeadlineEngine, backend, notifications) -> None:
    first = engine.run(FIXED_NOW)
    assert first.ok and first.value

    backend.fail_reads[keys.NOTIFICATIONS] = 1
    res = engine.run(FIXED_NOW)
    assert not res.ok and res.kind == ErrorKind.STORAGE
    assert len(_deadline_notes(notifications)) == len(first.value)

    assert engine.run(FIXED_NOW).value == []
