# src/pm_tracker/core/coordinator.py

"""
Coordinator (facade) consumed by the presentation layer.

- wires the repositories over one Store,
- resolves the acting Session (explicit argument or the session slot),
- applies caller policy (admin-only management, employee limits on tasks),
- orchestrates cross-entity effects (project -> tasks cascade),
- keeps a disposable read snapshot, rebuilt after every successful write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from ..notifications.deadline_engine import DEFAULT_WINDOW_DAYS, DeadlineEngine
from ..notifications.repository import NotificationRepository
from ..repositories import permissions
from ..repositories.projects import ProjectRepository
from ..repositories.tasks import TaskRepository
from ..repositories.users import UserRepository
from ..storage.session import SessionStore
from ..storage.store import Store
from .dates import now_iso
from .models import Notification, Project, ProjectStatus, Session, Task, TaskStatus, User
from .results import ErrorKind, Result, no_session, storage_fault

logger = logging.getLogger(__name__)

T = TypeVar("T")

ADMIN_ONLY = "Only admins can do this"


@dataclass(slots=True, frozen=True)
class Snapshot:
    users: tuple[User, ...] = field(default_factory=tuple)
    projects: tuple[Project, ...] = field(default_factory=tuple)
    tasks: tuple[Task, ...] = field(default_factory=tuple)
    notifications: tuple[Notification, ...] = field(default_factory=tuple)


class Coordinator:
    def __init__(
            self,
            store: Store,
            *,
            window_days: int = DEFAULT_WINDOW_DAYS,
            notify_admins_on_project_deadline: bool = True,
            clock: Callable[[], str] = now_iso,
    ) -> None:
        self.store = store
        self.sessions = SessionStore(store)
        self.users = UserRepository(store)
        self.projects = ProjectRepository(store, self.users)
        self.notifications = NotificationRepository(store, clock=clock)
        self.tasks = TaskRepository(store, self.projects, self.users, self.notifications, clock=clock)
        self.deadlines = DeadlineEngine(
            self.notifications,
            self.tasks,
            self.projects,
            self.users,
            window_days=window_days,
            notify_admins_on_project_deadline=notify_admins_on_project_deadline,
        )
        self._clock = clock
        self._snapshot = Snapshot()

    # ---- snapshot ----

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def refresh(self) -> Snapshot:
        self._snapshot = Snapshot(
            users=tuple(self.users.list()),
            projects=tuple(self.projects.list()),
            tasks=tuple(self.tasks.list()),
            notifications=tuple(self.notifications.list()),
        )
        return self._snapshot

    def _after(self, result: Result[T]) -> Result[T]:
        if result.ok:
            self.refresh()
        return result

    # ---- lifecycle ----

    def seed_if_needed(self, now: datetime | None = None) -> bool:
        seeded = self.store.seed_if_needed(now)
        self.refresh()
        return seeded

    def reset_demo(self, session: Session | None = None, now: datetime | None = None) -> Result[None]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        if not self.store.reset_all_to_seed(now):
            return storage_fault("seed")
        return self._after(Result.success(None))

    def run_deadline_check(self, now: str | None = None) -> Result[list[Notification]]:
        return self._after(self.deadlines.run(now or self._clock()))

    # ---- session ----

    def current_session(self) -> Session | None:
        return self.sessions.get()

    def login(self, email: str) -> Result[Session]:
        user = self.users.find_by_email(email)
        if user is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"No user with email {email}")
        if not user.is_active:
            return Result.fail(ErrorKind.AUTHORIZATION, "This account is deactivated")
        session = Session(user_id=user.id, role=user.role, email=user.email, name=user.name)
        if not self.sessions.set(session):
            return storage_fault("session")
        return Result.success(session)

    def logout(self) -> Result[None]:
        if not self.sessions.clear():
            return storage_fault("session")
        return Result.success(None)

    def _resolve(self, session: Session | None) -> Session | None:
        return session if session is not None else self.sessions.get()

    def _admin(self, session: Session | None) -> Result[Session]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        if not acting.is_admin:
            return Result.fail(ErrorKind.AUTHORIZATION, ADMIN_ONLY)
        return Result.success(acting)

    # ---- users ----

    def create_user(self, payload: dict[str, Any], session: Session | None = None) -> Result[User]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        return self._after(self.users.create(payload))

    def update_user(self, user_id: str, patch: dict[str, Any], session: Session | None = None) -> Result[User]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        if "is_active" in patch and not patch["is_active"] and acting.value and acting.value.user_id == user_id:
            return Result.fail(ErrorKind.AUTHORIZATION, "You cannot deactivate your own account")
        return self._after(self.users.update(user_id, patch))

    def set_user_active(self, user_id: str, is_active: bool, session: Session | None = None) -> Result[User]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        return self._after(self.users.set_active(user_id, is_active, acting.value))

    def delete_user(self, user_id: str, session: Session | None = None) -> Result[None]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        if self.users.get(user_id) is None:
            return Result.fail(ErrorKind.NOT_FOUND, "User not found")
        in_tasks = any(t.assignee_id == user_id or t.created_by_id == user_id for t in self.tasks.list())
        in_projects = any(user_id in p.assigned_user_ids for p in self.projects.list())
        if in_tasks or in_projects:
            return Result.fail(
                ErrorKind.INTEGRITY, "User is still referenced by tasks or projects; deactivate instead"
            )
        return self._after(self.users.remove(user_id, acting.value))

    # ---- projects ----

    def create_project(self, payload: dict[str, Any], session: Session | None = None) -> Result[Project]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        return self._after(self.projects.create(payload))

    def update_project(self, project_id: str, patch: dict[str, Any], session: Session | None = None) -> Result[Project]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        return self._after(self.projects.update(project_id, patch))

    def set_project_status(
            self, project_id: str, status: ProjectStatus | str, session: Session | None = None
    ) -> Result[Project]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        return self._after(self.projects.set_status(project_id, status))

    def assign_members(self, project_id: str, user_ids: list[str], session: Session | None = None) -> Result[Project]:
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        return self._after(self.projects.assign_members(project_id, user_ids))

    def delete_project(self, project_id: str, session: Session | None = None) -> Result[Project]:
        """
        Delete a project together with all of its tasks.

        Tasks go first; if the project write then fails, the tasks are put
        back so neither collection is left half-updated.
        """
        acting = self._admin(session)
        if not acting.ok:
            return acting.propagate()
        if self.projects.get(project_id) is None:
            return Result.fail(ErrorKind.NOT_FOUND, "Project not found")

        removed = self.tasks.remove_by_project(project_id)
        if not removed.ok:
            return removed.propagate()

        result = self.projects.remove(project_id)
        if not result.ok:
            rollback = self.tasks.restore(removed.value or [])
            if not rollback.ok:
                logger.error("Cascade rollback failed for project %s; tasks may be lost", project_id)
            return result
        return self._after(result)

    # ---- tasks ----

    def create_task(self, payload: dict[str, Any], session: Session | None = None) -> Result[Task]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        if not acting.is_admin:
            project = self.projects.get(str(payload.get("project_id") or ""))
            if project is not None and not project.is_read_only and not permissions.can_create_task_in(acting, project):
                return Result.fail(
                    ErrorKind.AUTHORIZATION, "You can only create tasks in projects you are assigned to"
                )
        return self._after(self.tasks.create(payload, acting))

    def _employee_task_policy(self, task_id: str, acting: Session, patch: dict[str, Any]) -> Result[None]:
        task = self.tasks.get(task_id)
        if task is None:
            return Result.success(None)
        project = self.projects.get(task.project_id)
        if project is None or project.is_read_only:
            # Let the repository report the gate.
            return Result.success(None)
        reassigning = "assignee_id" in patch and patch["assignee_id"] != task.assignee_id
        if reassigning and not permissions.can_reassign_task(acting):
            return Result.fail(ErrorKind.AUTHORIZATION, "You cannot reassign tasks to others")
        if not permissions.can_edit_task(acting, task, project):
            return Result.fail(ErrorKind.AUTHORIZATION, "You can only edit tasks assigned to you")
        return Result.success(None)

    def update_task(self, task_id: str, patch: dict[str, Any], session: Session | None = None) -> Result[Task]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        if not acting.is_admin:
            policy = self._employee_task_policy(task_id, acting, patch)
            if not policy.ok:
                return policy.propagate()
        return self._after(self.tasks.update(task_id, patch, acting))

    def move_task_status(
            self, task_id: str, new_status: TaskStatus | str, session: Session | None = None
    ) -> Result[Task]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        if not acting.is_admin:
            policy = self._employee_task_policy(task_id, acting, {})
            if not policy.ok:
                return policy.propagate()
        return self._after(self.tasks.move_status(task_id, new_status, acting))

    def delete_task(self, task_id: str, session: Session | None = None) -> Result[Task]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        return self._after(self.tasks.remove(task_id, acting))

    # ---- notifications ----

    def mark_notification_read(self, notification_id: str, session: Session | None = None) -> Result[Notification]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        return self._after(self.notifications.mark_read(notification_id, acting.user_id))

    def mark_all_read(self, session: Session | None = None) -> Result[int]:
        acting = self._resolve(session)
        if acting is None:
            return no_session()
        return self._after(self.notifications.mark_all_read(acting.user_id))
