# tests/test_tasks.py

from __future__ import annotations

from pm_tracker.core.models import NotificationType, Priority, TaskStatus
from pm_tracker.core.results import READ_ONLY_MESSAGE, ErrorKind
from pm_tracker.notifications.repository import NotificationRepository
from pm_tracker.repositories.tasks import INELIGIBLE_ASSIGNEE, TaskRepository
from pm_tracker.storage import keys

from .fakes import FIXED_NOW


def _create(tasks: TaskRepository, session, **overrides):
    payload = {"project_id": "p-active", "title": "Fix login", "assignee_id": "u1"}
    payload.update(overrides)
    return tasks.create(payload, session)


def test_create_emits_single_assigned_notification(
        tasks: TaskRepository, notifications: NotificationRepository, admin_session
) -> None:
    res = _create(tasks, admin_session)
    assert res.ok and res.value is not None
    task = res.value
    assert task.created_by_id == "admin"
    assert task.created_at == FIXED_NOW
    assert task.assigned_at == FIXED_NOW
    assert task.priority == Priority.MEDIUM
    assert task.status == TaskStatus.TODO

    assigned = [n for n in notifications.list() if n.type == NotificationType.ASSIGNED]
    assert len(assigned) == 1
    assert assigned[0].user_id == "u1"
    assert assigned[0].task_id == task.id
    assert assigned[0].read is False


def test_create_validates_references(tasks: TaskRepository, admin_session) -> None:
    assert _create(tasks, admin_session, project_id="nope").kind == ErrorKind.INTEGRITY
    assert _create(tasks, admin_session, project_id="p-done").error == READ_ONLY_MESSAGE

    for assignee in ("admin", "gone", "ghost"):
        res = _create(tasks, admin_session, assignee_id=assignee)
        assert not res.ok and res.error == INELIGIBLE_ASSIGNEE


def test_create_rejects_bad_fields(tasks: TaskRepository, admin_session) -> None:
    assert _create(tasks, admin_session, title="  ").kind == ErrorKind.VALIDATION
    assert _create(tasks, admin_session, priority="urgent").kind == ErrorKind.VALIDATION
    assert _create(tasks, admin_session, status="DONE").kind == ErrorKind.VALIDATION
    assert _create(tasks, admin_session, deadline="next week").kind == ErrorKind.VALIDATION
    assert _create(tasks, admin_session, tags="Learning").kind == ErrorKind.VALIDATION


def test_create_requires_session(tasks: TaskRepository) -> None:
    assert _create(tasks, None).kind == ErrorKind.NO_SESSION


def test_create_keeps_task_when_notification_write_fails(
        tasks: TaskRepository, backend, admin_session
) -> None:
    backend.fail_on.add(keys.NOTIFICATIONS)
    res = _create(tasks, admin_session, tags=["Learning", "Learning", " "])
    assert res.ok and res.value is not None
    assert res.value.tags == ["Learning"]
    assert res.value.is_learning
    assert tasks.get(res.value.id) is not None


def test_storage_failure_creates_nothing(
        tasks: TaskRepository, notifications: NotificationRepository, backend, admin_session
) -> None:
    backend.fail_on.add(keys.TASKS)
    res = _create(tasks, admin_session)
    assert not res.ok and res.kind == ErrorKind.STORAGE
    assert notifications.list() == []


def test_unreadable_tasks_document_is_not_overwritten(
        tasks: TaskRepository, notifications: NotificationRepository, backend, admin_session
) -> None:
    backend.fail_reads[keys.TASKS] = 1
    res = _create(tasks, admin_session)
    assert not res.ok and res.kind == ErrorKind.STORAGE
    assert keys.TASKS not in backend.writes
    assert {t.id for t in tasks.list()} == {"t-open", "t-held"}
    assert notifications.list() == []


def test_malformed_rows_survive_a_rewrite(tasks: TaskRepository, store, admin_session) -> None:
    rows = store.load_list(keys.TASKS)
    store.save(keys.TASKS, [*rows, {"title": "no id", "projectId": "p-active"}, "stray"])

    assert {t.id for t in tasks.list()} == {"t-open", "t-held"}
    assert _create(tasks, admin_session).ok

    stored = store.load_list(keys.TASKS)
    assert {"title": "no id", "projectId": "p-active"} in stored
    assert "stray" in stored
    assert len(stored) == 5


def test_only_creator_can_delete(tasks: TaskRepository, usera_session, userb_session) -> None:
    created = _create(tasks, usera_session, assignee_id="userB")
    assert created.ok and created.value is not None
    task_id = created.value.id

    denied = tasks.remove(task_id, userb_session)
    assert not denied.ok and denied.kind == ErrorKind.AUTHORIZATION
    assert tasks.get(task_id) is not None

    assert tasks.remove(task_id, usera_session).ok
    assert tasks.get(task_id) is None


def test_admin_has_no_delete_bypass(tasks: TaskRepository, admin_session, u1_session) -> None:
    created = _create(tasks, u1_session)
    assert created.ok and created.value is not None
    assert tasks.remove(created.value.id, admin_session).kind == ErrorKind.AUTHORIZATION


def test_read_only_project_blocks_every_task_mutation(tasks: TaskRepository, store, admin_session) -> None:
    before = store.load(keys.TASKS)

    moved = tasks.move_status("t-held", "COMPLETED", admin_session)
    assert not moved.ok and moved.kind == ErrorKind.STATE_GATE
    assert not tasks.update("t-held", {"title": "x"}, admin_session).ok
    assert not tasks.remove("t-held", admin_session).ok

    assert store.load(keys.TASKS) == before


def test_move_status_any_column(tasks: TaskRepository, u1_session) -> None:
    for status in ("COMPLETED", "TODO", "in_progress"):
        res = tasks.move_status("t-open", status, u1_session)
        assert res.ok and res.value is not None
    assert tasks.get("t-open").status == TaskStatus.IN_PROGRESS

    assert tasks.move_status("t-open", "BLOCKED", u1_session).kind == ErrorKind.VALIDATION


def test_update_reassign_checks_eligibility(tasks: TaskRepository, admin_session) -> None:
    assert tasks.update("t-open", {"assignee_id": "gone"}, admin_session).error == INELIGIBLE_ASSIGNEE
    res = tasks.update("t-open", {"assignee_id": "userB", "deadline": None}, admin_session)
    assert res.ok and res.value is not None
    assert res.value.assignee_id == "userB"
    assert res.value.deadline is None


def test_update_rejects_unknown_fields(tasks: TaskRepository, admin_session) -> None:
    res = tasks.update("t-open", {"created_by_id": "u1"}, admin_session)
    assert not res.ok and res.kind == ErrorKind.VALIDATION
    assert tasks.update("missing", {"title": "x"}, admin_session).kind == ErrorKind.NOT_FOUND


def test_list_filters_and_assigned_today(tasks: TaskRepository) -> None:
    assert [t.id for t in tasks.list(project_id="p-hold")] == ["t-held"]
    assert [t.id for t in tasks.list(assignee_id="u1", status="todo")] == ["t-open"]
    assert [t.id for t in tasks.list(priority="LOW")] == ["t-held"]
    assert [t.id for t in tasks.list_assigned_today("u1", FIXED_NOW)] == ["t-open"]
    assert tasks.list_assigned_today("userA", FIXED_NOW) == []


def test_remove_by_project_and_restore(tasks: TaskRepository) -> None:
    removed = tasks.remove_by_project("p-active")
    assert removed.ok and [t.id for t in removed.value or []] == ["t-open"]
    assert tasks.list(project_id="p-active") == []

    assert tasks.restore(removed.value or []).ok
    assert tasks.get("t-open") is not None
    assert tasks.restore(removed.value or []).ok
    assert len(tasks.list(project_id="p-active")) == 1
