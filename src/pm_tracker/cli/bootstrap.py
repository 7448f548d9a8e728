# src/pm_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the JSON directory store, the Store wrapper and the Coordinator into AppState,
- seeds the demo dataset on first start (optional).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.coordinator import Coordinator
from ..core.state import AppState
from ..storage.backends import JsonDirectoryStore
from ..storage.store import Store

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = Store(JsonDirectoryStore(settings.store_dir))
    coordinator = Coordinator(
        store,
        window_days=getattr(settings, "deadline_window_days", 7),
        notify_admins_on_project_deadline=getattr(settings, "notify_admins_on_project_deadline", True),
    )

    if getattr(settings, "seed_on_start", True):
        if coordinator.seed_if_needed():
            logger.info("Seeded demo dataset into %s", settings.store_dir)
    else:
        coordinator.refresh()

    return AppState(settings=settings, store=store, coordinator=coordinator)
