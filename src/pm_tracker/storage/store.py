# src/pm_tracker/storage/store.py

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from ..core.ports import DocumentStore
from . import keys
from .seed import build_demo_seed

logger = logging.getLogger(__name__)

_UNREADABLE = object()


class Store:
    """
    JSON document store over an injected DocumentStore.

    - load() never raises: absent keys, backend read errors and malformed
      JSON yield the fallback. Use it for queries only.
    - load_list_for_write() is the read half of a read-modify-write: it
      returns None when the document exists but cannot be read, so the
      caller reports a storage fault instead of overwriting it.
    - save() never raises: I/O and serialization failures are logged and
      reported as False, so callers can surface a storage fault without
      mutating anything else.

    No business logic lives here; repositories own their collections.
    """

    def __init__(self, backend: DocumentStore) -> None:
        self._backend = backend

    @property
    def backend(self) -> DocumentStore:
        return self._backend

    def _get_raw(self, key: str) -> Any:
        """Raw text, None when absent, or _UNREADABLE when the backend failed."""
        try:
            return self._backend.get(key)
        except Exception:
            logger.exception("Store read failed key=%s", key)
            return _UNREADABLE

    def _decode(self, key: str, raw: Any, fallback: Any) -> Any:
        if raw is None or raw is _UNREADABLE:
            return fallback
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Store.load: malformed JSON under key=%s; using fallback", key)
            return fallback

    def load(self, key: str, fallback: Any = None) -> Any:
        return self._decode(key, self._get_raw(key), fallback)

    def load_list(self, key: str) -> list[Any]:
        val = self.load(key, None)
        return val if isinstance(val, list) else []

    def load_list_for_write(self, key: str) -> list[Any] | None:
        """
        Read an array that is about to be rewritten.

        An absent document is an empty list. A backend failure, malformed
        JSON or a non-array document yields None: writing over it would
        lose whatever is stored there.
        """
        raw = self._get_raw(key)
        if raw is _UNREADABLE:
            return None
        if raw is None:
            return []
        try:
            val = json.loads(raw)
        except (TypeError, ValueError):
            logger.error("Store: malformed JSON under key=%s; refusing to overwrite", key)
            return None
        if not isinstance(val, list):
            logger.error("Store: key=%s holds %s, not an array; refusing to overwrite", key, type(val).__name__)
            return None
        return val

    def save(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Store.save: failed to JSON-encode key=%s", key)
            return False
        try:
            self._backend.set(key, raw)
        except Exception:
            logger.exception("Store.save failed key=%s", key)
            return False
        return True

    def clear(self, key: str) -> bool:
        try:
            self._backend.delete(key)
        except Exception:
            logger.exception("Store.clear failed key=%s", key)
            return False
        return True

    # ---- lifecycle ----

    def is_seeded(self) -> bool:
        """Seeded iff the users document exists and is a non-empty array."""
        users = self.load(keys.USERS, None)
        return isinstance(users, list) and len(users) > 0

    def seed_if_needed(self, now: datetime | None = None) -> bool:
        """
        Write the demo baseline unless a dataset already exists.

        Also reseeds when stored users carry no employeeId at all (documents
        written before employee codes existed). A users document the backend
        fails to return is left alone. Returns True if it seeded.
        """
        raw = self._get_raw(keys.USERS)
        if raw is _UNREADABLE:
            logger.error("Users document is unreadable; skipping seed check")
            return False
        users = self._decode(keys.USERS, raw, None)
        if isinstance(users, list) and users:
            if any(isinstance(u, dict) and u.get("employeeId") for u in users):
                return False
            logger.info("Stored users have no employeeId; reseeding.")
        return self.reset_all_to_seed(now)

    def reset_all_to_seed(self, now: datetime | None = None) -> bool:
        """Overwrite all four collections with the baseline. Returns False on any write failure."""
        seed = build_demo_seed(now)
        ok = True
        for key in keys.COLLECTIONS:
            ok = self.save(key, seed[key]) and ok
        if ok:
            logger.info(
                "Store reset to seed users=%d projects=%d tasks=%d",
                len(seed[keys.USERS]),
                len(seed[keys.PROJECTS]),
                len(seed[keys.TASKS]),
            )
        return ok
