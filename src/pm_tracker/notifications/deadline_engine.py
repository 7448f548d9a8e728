# src/pm_tracker/notifications/deadline_engine.py

"""
Deadline notification engine.

A scan-and-generate pass that:
- looks at every open task with a deadline inside the window (overdue included),
- builds the DEADLINE notice its assignee should have,
- creates it only if no notification for the same task + deadline exists yet.

Optionally the same is done for project end dates, notifying every active
admin. The scan runs on demand; the only notion of time is the `now` passed in,
so running it twice with the same `now` is a no-op the second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.dates import days_until, now_iso, parse_iso, to_day_key
from ..core.models import Notification, NotificationType, Project, ProjectStatus, Role, Task, TaskStatus
from ..core.ports import ProjectReader, TaskReader, UserReader
from ..core.results import ErrorKind, Result
from .repository import NotificationDraft, NotificationRepository

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7


@dataclass(slots=True, frozen=True)
class DeadlineNotice:
    """What the engine wants to exist, keyed by (user_id, subject, deadline)."""

    user_id: str
    message: str
    deadline: str
    task_id: str | None = None
    project_id: str | None = None

    @property
    def dedupe_key(self) -> tuple[str, str | None, str | None, str]:
        return (self.user_id, self.task_id, self.project_id, self.deadline)

    def to_draft(self) -> NotificationDraft:
        return NotificationDraft(
            user_id=self.user_id,
            type=NotificationType.DEADLINE,
            message=self.message,
            task_id=self.task_id,
            project_id=self.project_id,
            deadline=self.deadline,
        )


def _in_window(deadline: str | None, now: str, window_days: int) -> int | None:
    if not deadline:
        return None
    days = days_until(deadline, now)
    if days is None or days > window_days:
        return None
    return days


def build_task_notice(
        task: Task,
        now: str,
        *,
        project: Project | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
) -> DeadlineNotice | None:
    """
    Convert a task into the notice its assignee should get, or None when the
    task is completed, has no deadline/assignee, or is not due within the window.
    """
    if task.status == TaskStatus.COMPLETED or not task.assignee_id or not task.deadline:
        return None
    days = _in_window(task.deadline, now, window_days)
    if days is None:
        return None

    day = to_day_key(task.deadline)
    if days < 0:
        text = f'Task "{task.title}" is overdue (due {day})'
    elif days == 0:
        text = f'Task "{task.title}" is due today ({day})'
    else:
        text = f'Task "{task.title}" is due {day}'
    if project is not None:
        text += f" in {project.name}"

    return DeadlineNotice(user_id=task.assignee_id, message=text, deadline=task.deadline, task_id=task.id)


def build_project_notices(
        project: Project,
        admin_ids: list[str],
        now: str,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[DeadlineNotice]:
    if project.status == ProjectStatus.COMPLETED:
        return []
    if _in_window(project.end_date, now, window_days) is None:
        return []
    text = f'Project "{project.name}" deadline: {to_day_key(project.end_date)}'
    return [
        DeadlineNotice(user_id=admin_id, message=text, deadline=project.end_date, project_id=project.id)
        for admin_id in admin_ids
    ]


class DeadlineEngine:
    def __init__(
            self,
            notifications: NotificationRepository,
            tasks: TaskReader,
            projects: ProjectReader,
            users: UserReader,
            *,
            window_days: int = DEFAULT_WINDOW_DAYS,
            notify_admins_on_project_deadline: bool = True,
    ) -> None:
        self._notifications = notifications
        self._tasks = tasks
        self._projects = projects
        self._users = users
        self._window_days = max(0, int(window_days))
        self._project_notices = notify_admins_on_project_deadline

    @property
    def window_days(self) -> int:
        return self._window_days

    def collect(self, now: str) -> list[DeadlineNotice]:
        """Every notice that should exist at `now`, before deduplication."""
        projects = {p.id: p for p in self._projects.list()}
        notices: list[DeadlineNotice] = []

        for task in self._tasks.list():
            notice = build_task_notice(
                task, now, project=projects.get(task.project_id), window_days=self._window_days
            )
            if notice is not None:
                notices.append(notice)

        if self._project_notices:
            admin_ids = [u.id for u in self._users.list() if u.role == Role.ADMIN and u.is_active]
            for project in projects.values():
                notices.extend(
                    build_project_notices(project, admin_ids, now, window_days=self._window_days)
                )
        return notices

    def run(self, now: str | None = None) -> Result[list[Notification]]:
        """
        Create the missing DEADLINE notifications for `now` (default: current time).

        Returns the notifications created by this pass (empty on a repeat run).
        """
        now = now or now_iso()
        if parse_iso(now) is None:
            return Result.fail(ErrorKind.VALIDATION, f"not an ISO instant: {now}")

        known = self._notifications.deadline_keys()
        if not known.ok or known.value is None:
            logger.error("Deadline check now=%s: stored notifications unreadable", now)
            return known.propagate()
        existing = known.value

        pending: list[DeadlineNotice] = []
        for notice in self.collect(now):
            key = notice.dedupe_key
            if key in existing:
                continue
            existing.add(key)
            pending.append(notice)

        if not pending:
            logger.debug("Deadline check now=%s: nothing new", now)
            return Result.success([])

        created = self._notifications.create_many([n.to_draft() for n in pending])
        if not created.ok:
            logger.error("Deadline check now=%s failed to store %d notice(s)", now, len(pending))
            return created.propagate()
        logger.info("Deadline check now=%s created %d notification(s)", now, len(pending))
        return created
