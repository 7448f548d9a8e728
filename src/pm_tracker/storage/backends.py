# src/pm_tracker/storage/backends.py

from __future__ import annotations

import contextlib
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class MemoryDocumentStore:
    """Dict-backed DocumentStore. Used by tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._docs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._docs.get(key)

    def set(self, key: str, raw: str) -> None:
        self._docs[key] = raw

    def delete(self, key: str) -> None:
        self._docs.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._docs)


class JsonDirectoryStore:
    """
    One JSON file per document: <root>/<key>.json.

    Writes go through a temp file + os.replace so a crash never leaves a
    half-written document behind. Read/write errors propagate as OSError;
    the Store wrapper decides what to do with them.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info("JsonDirectoryStore ready root=%s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"invalid document key: {key!r}")
        return self._root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text("utf-8")

    def set(self, key: str, raw: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(raw, "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(OSError):
            # Best-effort: documents hold names and emails, keep them private on disk.
            os.chmod(path, 0o600)

    def delete(self, key: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path(key).unlink()
