# src/pm_tracker/core/stats.py

"""Dashboard helpers: pure functions over lists of entities."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

from .dates import days_until, parse_iso
from .models import Project, Task, TaskStatus


def tasks_due_soon(tasks: Iterable[Task], now: str, days: int = 7) -> list[Task]:
    """Open tasks whose deadline is within `days` days, overdue ones included."""
    out: list[Task] = []
    for t in tasks:
        if t.status == TaskStatus.COMPLETED or not t.deadline:
            continue
        d = days_until(t.deadline, now)
        if d is not None and d <= days:
            out.append(t)
    return out


def group_count_by(items: Iterable[Any], attr: str) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for item in items:
        val = getattr(item, attr, None)
        counts[str(val) if val is not None else "unknown"] += 1
    return dict(counts)


def sort_by_deadline(tasks: Iterable[Task]) -> list[Task]:
    """Nearest deadline first; tasks without one go last."""
    def key(t: Task) -> tuple[int, float]:
        dt = parse_iso(t.deadline)
        return (0, dt.timestamp()) if dt else (1, 0.0)

    return sorted(tasks, key=key)


def count_open_tasks_by_user(user_id: str, tasks: Iterable[Task]) -> int:
    return sum(1 for t in tasks if t.assignee_id == user_id and t.status != TaskStatus.COMPLETED)


def count_due_soon_tasks_by_user(user_id: str, tasks: Iterable[Task], now: str, days: int = 7) -> int:
    return sum(1 for t in tasks_due_soon(tasks, now, days) if t.assignee_id == user_id)


def count_projects_by_user(user_id: str, projects: Iterable[Project]) -> int:
    return sum(1 for p in projects if user_id in p.assigned_user_ids)
