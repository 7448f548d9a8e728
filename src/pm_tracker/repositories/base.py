# src/pm_tracker/repositories/base.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..core.results import ErrorKind, Result
from ..storage.store import Store

logger = logging.getLogger(__name__)

E = TypeVar("E")


@dataclass(slots=True)
class Rows(Generic[E]):
    """
    A collection loaded for rewriting.

    `items` are the decoded entities the caller edits in place; `keep` holds
    the stored rows that failed to decode, written back untouched.
    """

    items: list[E]
    keep: list[Any] = field(default_factory=list)


class JsonCollection(Generic[E]):
    """
    One entity collection stored as a JSON array under a single key.

    Every call is a full read-modify-write: there is no cached copy, so the
    next read always observes the previous write. Queries use read();
    mutations use load() + write() so an unreadable document is reported
    rather than overwritten.
    """

    def __init__(
            self,
            store: Store,
            key: str,
            from_dict: Callable[[dict[str, Any]], E],
            to_dict: Callable[[E], dict[str, Any]],
    ) -> None:
        self._store = store
        self._key = key
        self._from_dict = from_dict
        self._to_dict = to_dict

    @property
    def key(self) -> str:
        return self._key

    def _decode(self, raw_rows: list[Any]) -> Rows[E]:
        rows: Rows[E] = Rows(items=[])
        for raw in raw_rows:
            if not isinstance(raw, dict):
                rows.keep.append(raw)
                continue
            try:
                rows.items.append(self._from_dict(raw))
            except (TypeError, ValueError):
                logger.debug("Skipping malformed record in %s: %r", self._key, raw)
                rows.keep.append(raw)
        return rows

    def read(self) -> list[E]:
        return self._decode(self._store.load_list(self._key)).items

    def load(self) -> Result[Rows[E]]:
        raw_rows = self._store.load_list_for_write(self._key)
        if raw_rows is None:
            return Result.fail(ErrorKind.STORAGE, f"Failed to read {self._key}")
        return Result.success(self._decode(raw_rows))

    def write(self, rows: Rows[E]) -> bool:
        return self._store.save(self._key, [self._to_dict(i) for i in rows.items] + rows.keep)
