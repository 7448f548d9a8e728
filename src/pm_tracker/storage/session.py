# src/pm_tracker/storage/session.py

from __future__ import annotations

import logging

from ..core.models import Session
from . import keys
from .store import Store

logger = logging.getLogger(__name__)


class SessionStore:
    """
    The session slot: who is acting right now.

    The core only reads it; logging in and out is the caller's business.
    A missing or malformed slot reads as None, which every mutating call
    treats as "no session".
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def get(self) -> Session | None:
        return Session.from_dict(self._store.load(keys.SESSION, None))

    def set(self, session: Session) -> bool:
        ok = self._store.save(keys.SESSION, session.to_dict())
        if ok:
            logger.info("Session set user_id=%s role=%s", session.user_id, session.role.value)
        return ok

    def clear(self) -> bool:
        return self._store.clear(keys.SESSION)
