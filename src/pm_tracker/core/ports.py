# src/pm_tracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

Repositories depend on Protocols instead of concrete implementations.
This keeps the persistence medium swappable (JSON files, in-memory dict)
and lets each repository be tested with fakes.
"""

from typing import Any, Protocol

from .models import Notification, NotificationType, Project, Task, User
from .results import Result


class DocumentStore(Protocol):
    """
    Key-value blob store holding whole JSON documents as text.

    Synchronous, single-process and non-transactional. Implementations may
    raise OSError on I/O failures; the Store wrapper catches them.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, raw: str) -> None: ...
    def delete(self, key: str) -> None: ...


class UserReader(Protocol):
    def get(self, user_id: str) -> User | None: ...
    def list(self) -> list[User]: ...
    def is_eligible_assignee(self, user_id: str) -> bool: ...


class ProjectReader(Protocol):
    def get(self, project_id: str) -> Project | None: ...
    def list(self, status: Any = None) -> list[Project]: ...


class TaskReader(Protocol):
    def list(
            self,
            *,
            project_id: str | None = None,
            assignee_id: str | None = None,
            status: Any = None,
            priority: Any = None,
    ) -> list[Task]: ...


class NotificationSink(Protocol):
    """What the task repository needs to emit ASSIGNED notifications."""

    def create_for_user(
            self,
            user_id: str,
            type: NotificationType,
            message: str,
            *,
            task_id: str | None = None,
            project_id: str | None = None,
            deadline: str | None = None,
    ) -> Result[Notification]: ...
