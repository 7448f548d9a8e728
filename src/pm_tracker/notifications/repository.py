# src/pm_tracker/notifications/repository.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..core.dates import now_iso
from ..core.models import Notification, NotificationType, new_id
from ..core.results import ErrorKind, Result, storage_fault
from ..repositories.base import JsonCollection
from ..storage import keys
from ..storage.store import Store

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NotificationDraft:
    """A notification to be created; id, timestamp and read flag are filled in on write."""

    user_id: str
    type: NotificationType
    message: str
    task_id: str | None = None
    project_id: str | None = None
    deadline: str | None = None


class NotificationRepository:
    """
    Notifications are append-only in normal use: `read` only flips
    false -> true, and only the recipient may flip it.
    """

    def __init__(self, store: Store, *, clock: Callable[[], str] = now_iso) -> None:
        self._items = JsonCollection(store, keys.NOTIFICATIONS, Notification.from_dict, Notification.to_dict)
        self._clock = clock

    def list(self, user_id: str | None = None) -> list[Notification]:
        items = self._items.read()
        if user_id:
            items = [n for n in items if n.user_id == user_id]
        return items

    def list_unread(self, user_id: str) -> list[Notification]:
        return [n for n in self.list(user_id) if not n.read]

    def deadline_keys(self) -> Result[set[tuple[str, str | None, str | None, str]]]:
        """
        (user_id, task_id, project_id, deadline) of every stored DEADLINE
        notification. Fails when the document cannot be read, so a scan never
        mistakes an unreadable store for an empty one.
        """
        loaded = self._items.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        return Result.success({
            (n.user_id, n.task_id, n.project_id, n.deadline or "")
            for n in loaded.value.items
            if n.type == NotificationType.DEADLINE
        })

    def create_for_user(
            self,
            user_id: str,
            type: NotificationType,
            message: str,
            *,
            task_id: str | None = None,
            project_id: str | None = None,
            deadline: str | None = None,
    ) -> Result[Notification]:
        draft = NotificationDraft(user_id, type, message, task_id=task_id, project_id=project_id, deadline=deadline)
        created = self.create_many([draft])
        if not created.ok or not created.value:
            return created.propagate()
        return Result.success(created.value[0])

    def create_many(self, drafts: list[NotificationDraft]) -> Result[list[Notification]]:
        """Append several notifications in a single write."""
        if not drafts:
            return Result.success([])
        if any(not d.user_id for d in drafts):
            return Result.fail(ErrorKind.VALIDATION, "Notification recipient is required")

        now = self._clock()
        new_items = [
            Notification(
                id=new_id("notif"),
                user_id=d.user_id,
                type=d.type,
                message=d.message,
                created_at=now,
                read=False,
                task_id=d.task_id,
                project_id=d.project_id,
                deadline=d.deadline,
            )
            for d in drafts
        ]
        loaded = self._items.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        loaded.value.items.extend(new_items)
        if not self._items.write(loaded.value):
            return storage_fault("notifications")
        for n in new_items:
            logger.debug("Notification created id=%s user=%s type=%s", n.id, n.user_id, n.type.value)
        return Result.success(new_items)

    def mark_read(self, notification_id: str, user_id: str) -> Result[Notification]:
        loaded = self._items.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        items = loaded.value.items
        idx = next((i for i, n in enumerate(items) if n.id == notification_id), -1)
        if idx == -1:
            return Result.fail(ErrorKind.NOT_FOUND, "Notification not found")
        if items[idx].user_id != user_id:
            logger.info("mark_read denied id=%s user=%s", notification_id, user_id)
            return Result.fail(ErrorKind.AUTHORIZATION, "Only the recipient can mark this notification read")
        if items[idx].read:
            return Result.success(items[idx])

        items[idx].read = True
        if not self._items.write(loaded.value):
            return storage_fault("notifications")
        return Result.success(items[idx])

    def mark_all_read(self, user_id: str) -> Result[int]:
        """Returns how many notifications were flipped."""
        loaded = self._items.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        items = loaded.value.items
        flipped = 0
        for n in items:
            if n.user_id == user_id and not n.read:
                n.read = True
                flipped += 1
        if flipped and not self._items.write(loaded.value):
            return storage_fault("notifications")
        return Result.success(flipped)
