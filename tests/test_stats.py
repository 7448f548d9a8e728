# tests/test_stats.py

from __future__ import annotations

from pm_tracker.core import dates
from pm_tracker.core.models import Priority, Project, ProjectStatus, Task, TaskStatus
from pm_tracker.core.stats import (
    count_due_soon_tasks_by_user,
    count_open_tasks_by_user,
    count_projects_by_user,
    group_count_by,
    sort_by_deadline,
    tasks_due_soon,
)

from .fakes import FIXED_NOW


def _task(tid: str, assignee: str, status: TaskStatus, deadline: str | None) -> Task:
    return Task(
        id=tid, project_id="p", title=tid, description="", assignee_id=assignee,
        priority=Priority.MEDIUM, status=status, created_by_id="admin",
        created_at=FIXED_NOW, assigned_at=FIXED_NOW, deadline=deadline,
    )


TASKS = [
    _task("late", "u1", TaskStatus.TODO, "2025-06-01T00:00:00.000Z"),
    _task("soon", "u1", TaskStatus.IN_PROGRESS, "2025-06-12T00:00:00.000Z"),
    _task("far", "u2", TaskStatus.TODO, "2025-07-30T00:00:00.000Z"),
    _task("done", "u1", TaskStatus.COMPLETED, "2025-06-11T00:00:00.000Z"),
    _task("none", "u2", TaskStatus.TODO, None),
]


def test_tasks_due_soon_includes_overdue_and_skips_completed() -> None:
    assert [t.id for t in tasks_due_soon(TASKS, FIXED_NOW)] == ["late", "soon"]
    assert count_due_soon_tasks_by_user("u1", TASKS, FIXED_NOW) == 2
    assert count_due_soon_tasks_by_user("u2", TASKS, FIXED_NOW) == 0


def test_sort_by_deadline_puts_missing_last() -> None:
    assert [t.id for t in sort_by_deadline(TASKS)] == ["late", "done", "soon", "far", "none"]


def test_group_and_user_counts() -> None:
    assert group_count_by(TASKS, "status") == {"TODO": 3, "IN_PROGRESS": 1, "COMPLETED": 1}
    assert count_open_tasks_by_user("u1", TASKS) == 2

    projects = [
        Project(id="a", name="A", description="", status=ProjectStatus.ACTIVE,
                start_date="2025-01-01", end_date="2025-02-01", assigned_user_ids=["u1", "u2"]),
        Project(id="b", name="B", description="", status=ProjectStatus.ON_HOLD,
                start_date="2025-01-01", end_date="2025-02-01", assigned_user_ids=["u2"]),
    ]
    assert count_projects_by_user("u2", projects) == 2
    assert count_projects_by_user("u3", projects) == 0


def test_date_helpers() -> None:
    assert dates.parse_iso("2025-06-10") is not None
    assert dates.parse_iso("tomorrow") is None
    assert dates.to_day_key("2025-06-10T23:59:59Z") == "2025-06-10"
    assert dates.days_until("2025-06-09T23:00:00Z", FIXED_NOW) == -1
    assert dates.is_overdue("2025-06-09T23:00:00Z", FIXED_NOW)
    assert not dates.is_same_day("2025-06-10T00:00:00Z", "2025-06-11T00:00:00Z")


def test_date_helpers_never_raise_on_bad_input() -> None:
    assert dates.to_day_key("soon") == ""
    assert dates.days_until("soon", FIXED_NOW) is None
    assert dates.is_overdue("soon", FIXED_NOW) is False
    assert dates.is_same_day("soon", "soon") is False
