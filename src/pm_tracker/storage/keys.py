# src/pm_tracker/storage/keys.py

"""Names of the persisted documents."""

from __future__ import annotations

from typing import Final

USERS: Final = "pm_users"
PROJECTS: Final = "pm_projects"
TASKS: Final = "pm_tasks"
NOTIFICATIONS: Final = "pm_notifications"
SESSION: Final = "pm_session"

COLLECTIONS: Final = (USERS, PROJECTS, TASKS, NOTIFICATIONS)
