# src/pm_tracker/repositories/tasks.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from ..core.dates import is_same_day, is_valid_iso, now_iso
from ..core.models import NotificationType, Priority, Session, Task, TaskStatus, new_id
from ..core.ports import NotificationSink, ProjectReader, UserReader
from ..core.results import READ_ONLY_MESSAGE, ErrorKind, Result, no_session, storage_fault
from ..storage import keys
from ..storage.store import Store
from .base import JsonCollection
from .permissions import can_delete_task, project_blocks_edit

logger = logging.getLogger(__name__)

INELIGIBLE_ASSIGNEE = "Assignee must be an existing, active employee"

_PATCHABLE = {"title", "description", "assignee_id", "priority", "status", "deadline", "tags"}


def _clean_tags(raw: Any) -> list[str] | None:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple, set)):
        return None
    out: list[str] = []
    for t in raw:
        tag = str(t).strip()
        if tag and tag not in out:
            out.append(tag)
    return out


class TaskRepository:
    """
    CRUD and Kanban status moves over the Tasks collection.

    Every mutation needs a Session and is refused outright (not queued)
    while the owning project is not ACTIVE. The repository validates
    references and ownership; caller policy such as "employees may only
    touch their own tasks" lives in the coordinator.
    """

    def __init__(
            self,
            store: Store,
            projects: ProjectReader,
            users: UserReader,
            notifications: NotificationSink,
            *,
            clock: Callable[[], str] = now_iso,
    ) -> None:
        self._tasks = JsonCollection(store, keys.TASKS, Task.from_dict, Task.to_dict)
        self._projects = projects
        self._users = users
        self._notifications = notifications
        self._clock = clock

    # ---- queries ----

    def list(
            self,
            *,
            project_id: str | None = None,
            assignee_id: str | None = None,
            status: TaskStatus | str | None = None,
            priority: Priority | str | None = None,
    ) -> list[Task]:
        items = self._tasks.read()
        if project_id:
            items = [t for t in items if t.project_id == project_id]
        if assignee_id:
            items = [t for t in items if t.assignee_id == assignee_id]
        if status:
            want_status = TaskStatus.from_raw(status)
            items = [t for t in items if t.status == want_status]
        if priority:
            want_prio = Priority.from_raw(priority)
            items = [t for t in items if t.priority == want_prio]
        return items

    def get(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks.read() if t.id == task_id), None)

    def list_assigned_today(self, user_id: str, now: str | None = None) -> list[Task]:
        """Tasks assigned to `user_id` on the same UTC day as `now` ("My Tasks Today")."""
        now = now or self._clock()
        return [
            t for t in self._tasks.read()
            if t.assignee_id == user_id and t.assigned_at and is_same_day(t.assigned_at, now)
        ]

    # ---- internal ----

    def _gate(self, task: Task) -> Result[None]:
        project = self._projects.get(task.project_id)
        if project is None:
            return Result.fail(ErrorKind.INTEGRITY, "Project not found")
        if project_blocks_edit(project):
            logger.debug("Task %s blocked: project %s is %s", task.id, project.id, project.status.value)
            return Result.fail(ErrorKind.STATE_GATE, READ_ONLY_MESSAGE)
        return Result.success(None)

    @staticmethod
    def _index(tasks: list[Task], task_id: str) -> int:
        return next((i for i, t in enumerate(tasks) if t.id == task_id), -1)

    # ---- mutations ----

    def create(self, payload: dict[str, Any], session: Session | None) -> Result[Task]:
        if session is None:
            return no_session()

        project_id = str(payload.get("project_id") or "")
        title = str(payload.get("title") or "").strip()
        assignee_id = str(payload.get("assignee_id") or "")
        if not project_id:
            return Result.fail(ErrorKind.VALIDATION, "projectId is required")
        if not title:
            return Result.fail(ErrorKind.VALIDATION, "title is required")

        project = self._projects.get(project_id)
        if project is None:
            return Result.fail(ErrorKind.INTEGRITY, "Project not found")
        if project_blocks_edit(project):
            return Result.fail(ErrorKind.STATE_GATE, READ_ONLY_MESSAGE)

        if not assignee_id:
            return Result.fail(ErrorKind.VALIDATION, "assigneeId is required")
        if not self._users.is_eligible_assignee(assignee_id):
            return Result.fail(ErrorKind.INTEGRITY, INELIGIBLE_ASSIGNEE)

        priority = Priority.from_raw(payload.get("priority")) if payload.get("priority") else Priority.MEDIUM
        if priority is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unknown priority: {payload.get('priority')}")
        status = TaskStatus.from_raw(payload.get("status")) if payload.get("status") else TaskStatus.TODO
        if status is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unknown task status: {payload.get('status')}")

        deadline = payload.get("deadline") or None
        if deadline is not None and not is_valid_iso(str(deadline)):
            return Result.fail(ErrorKind.VALIDATION, "deadline must be an ISO date")

        tags = _clean_tags(payload.get("tags"))
        if tags is None:
            return Result.fail(ErrorKind.VALIDATION, "tags must be a list of strings")

        now = self._clock()
        task = Task(
            id=new_id("task"),
            project_id=project_id,
            title=title,
            description=str(payload.get("description") or ""),
            assignee_id=assignee_id,
            priority=priority,
            status=status,
            created_by_id=session.user_id,
            created_at=now,
            assigned_at=str(payload.get("assigned_at") or now),
            deadline=str(deadline) if deadline else None,
            tags=tags,
        )

        loaded = self._tasks.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        loaded.value.items.append(task)
        if not self._tasks.write(loaded.value):
            return storage_fault("tasks")
        logger.info("Task created id=%s project=%s assignee=%s by=%s", task.id, project_id, assignee_id, session.user_id)

        notified = self._notifications.create_for_user(
            assignee_id,
            NotificationType.ASSIGNED,
            f"You were assigned to task: {task.title}",
            task_id=task.id,
        )
        if not notified.ok:
            logger.error("ASSIGNED notification not stored task_id=%s: %s", task.id, notified.error)
        return Result.success(task)

    def update(self, task_id: str, patch: dict[str, Any], session: Session | None) -> Result[Task]:
        if session is None:
            return no_session()
        unknown = set(patch) - _PATCHABLE
        if unknown:
            return Result.fail(ErrorKind.VALIDATION, f"Cannot update fields: {', '.join(sorted(unknown))}")

        loaded = self._tasks.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        tasks = loaded.value.items
        idx = self._index(tasks, task_id)
        if idx == -1:
            return Result.fail(ErrorKind.NOT_FOUND, "Task not found")
        current = tasks[idx]

        gate = self._gate(current)
        if not gate.ok:
            return gate.propagate()

        changes: dict[str, Any] = {}
        if "title" in patch:
            title = str(patch["title"] or "").strip()
            if not title:
                return Result.fail(ErrorKind.VALIDATION, "title is required")
            changes["title"] = title
        if "description" in patch:
            changes["description"] = str(patch["description"] or "")
        if "assignee_id" in patch and patch["assignee_id"] != current.assignee_id:
            assignee_id = str(patch["assignee_id"] or "")
            if not self._users.is_eligible_assignee(assignee_id):
                return Result.fail(ErrorKind.INTEGRITY, INELIGIBLE_ASSIGNEE)
            changes["assignee_id"] = assignee_id
        if "priority" in patch:
            priority = Priority.from_raw(patch["priority"])
            if priority is None:
                return Result.fail(ErrorKind.VALIDATION, f"Unknown priority: {patch['priority']}")
            changes["priority"] = priority
        if "status" in patch:
            status = TaskStatus.from_raw(patch["status"])
            if status is None:
                return Result.fail(ErrorKind.VALIDATION, f"Unknown task status: {patch['status']}")
            changes["status"] = status
        if "deadline" in patch:
            deadline = patch["deadline"] or None
            if deadline is not None and not is_valid_iso(str(deadline)):
                return Result.fail(ErrorKind.VALIDATION, "deadline must be an ISO date")
            changes["deadline"] = str(deadline) if deadline else None
        if "tags" in patch:
            tags = _clean_tags(patch["tags"])
            if tags is None:
                return Result.fail(ErrorKind.VALIDATION, "tags must be a list of strings")
            changes["tags"] = tags

        tasks[idx] = replace(current, **changes)
        if not self._tasks.write(loaded.value):
            return storage_fault("tasks")
        logger.debug("Task updated id=%s fields=%s by=%s", task_id, sorted(changes), session.user_id)
        return Result.success(tasks[idx])

    def move_status(self, task_id: str, new_status: TaskStatus | str, session: Session | None) -> Result[Task]:
        """Any column to any column; blocked entirely while the project is read-only."""
        if session is None:
            return no_session()
        status = TaskStatus.from_raw(new_status)
        if status is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unknown task status: {new_status}")
        return self.update(task_id, {"status": status}, session)

    def remove(self, task_id: str, session: Session | None) -> Result[Task]:
        if session is None:
            return no_session()

        loaded = self._tasks.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        tasks = loaded.value.items
        idx = self._index(tasks, task_id)
        if idx == -1:
            return Result.fail(ErrorKind.NOT_FOUND, "Task not found")
        task = tasks[idx]

        gate = self._gate(task)
        if not gate.ok:
            return gate.propagate()
        if not can_delete_task(session, task, self._projects.get(task.project_id)):
            logger.info("Task delete denied id=%s by=%s creator=%s", task_id, session.user_id, task.created_by_id)
            return Result.fail(ErrorKind.AUTHORIZATION, "Only the task creator can delete this task")

        del tasks[idx]
        if not self._tasks.write(loaded.value):
            return storage_fault("tasks")
        logger.info("Task removed id=%s by=%s", task_id, session.user_id)
        return Result.success(task)

    # ---- cascade support (driven by the coordinator) ----

    def remove_by_project(self, project_id: str) -> Result[list[Task]]:
        loaded = self._tasks.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        rows = loaded.value
        removed = [t for t in rows.items if t.project_id == project_id]
        if not removed:
            return Result.success([])
        rows.items = [t for t in rows.items if t.project_id != project_id]
        if not self._tasks.write(rows):
            return storage_fault("tasks")
        logger.info("Removed %d task(s) of project %s", len(removed), project_id)
        return Result.success(removed)

    def restore(self, removed: list[Task]) -> Result[None]:
        """Re-insert tasks taken out by remove_by_project (rollback of a failed cascade)."""
        if not removed:
            return Result.success(None)
        loaded = self._tasks.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        tasks = loaded.value.items
        present = {t.id for t in tasks}
        tasks.extend(t for t in removed if t.id not in present)
        if not self._tasks.write(loaded.value):
            return storage_fault("tasks")
        return Result.success(None)
