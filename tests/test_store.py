# tests/test_store.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from pm_tracker.core.models import Role, Session
from pm_tracker.storage import keys
from pm_tracker.storage.backends import JsonDirectoryStore, MemoryDocumentStore
from pm_tracker.storage.seed import build_demo_seed
from pm_tracker.storage.session import SessionStore
from pm_tracker.storage.store import Store

from .fakes import FailingDocumentStore

NOW = datetime(2025, 6, 10, 15, 30, tzinfo=UTC)


def test_load_returns_fallback_for_missing_and_malformed() -> None:
    backend = MemoryDocumentStore({keys.TASKS: "{not json"})
    store = Store(backend)

    assert store.load(keys.USERS, []) == []
    assert store.load(keys.TASKS, "fallback") == "fallback"
    assert store.load_list(keys.TASKS) == []


def test_load_list_ignores_non_list_documents() -> None:
    store = Store(MemoryDocumentStore({keys.PROJECTS: '{"id": "p1"}'}))
    assert store.load_list(keys.PROJECTS) == []


def test_save_reports_backend_failure_without_raising() -> None:
    backend = FailingDocumentStore(fail_on={keys.USERS})
    store = Store(backend)

    assert store.save(keys.USERS, [{"id": "x"}]) is False
    assert store.load(keys.USERS) is None
    assert store.save(keys.TASKS, []) is True


def test_seed_if_needed_writes_baseline_once() -> None:
    store = Store(MemoryDocumentStore())
    assert store.is_seeded() is False

    assert store.seed_if_needed(NOW) is True
    assert len(store.load_list(keys.USERS)) == 8
    assert len(store.load_list(keys.PROJECTS)) == 6
    assert len(store.load_list(keys.TASKS)) == 25
    assert store.load_list(keys.NOTIFICATIONS) == []

    store.save(keys.TASKS, [])
    assert store.seed_if_needed(NOW) is False
    assert store.load_list(keys.TASKS) == []


def test_seed_if_needed_reseeds_users_without_employee_codes() -> None:
    store = Store(MemoryDocumentStore())
    store.save(keys.USERS, [{"id": "old", "name": "Old", "email": "old@x.io", "role": "ADMIN"}])

    assert store.seed_if_needed(NOW) is True
    assert all(u.get("employeeId") for u in store.load_list(keys.USERS))


def test_seed_if_needed_leaves_unreadable_users_alone() -> None:
    backend = FailingDocumentStore()
    store = Store(backend)
    store.save(keys.USERS, [{"id": "real", "name": "Real", "email": "real@x.io", "employeeId": "T1"}])
    store.save(keys.TASKS, [{"id": "keep-me"}])
    backend.fail_reads[keys.USERS] = 1

    assert store.seed_if_needed(NOW) is False
    assert [u["id"] for u in store.load_list(keys.USERS)] == ["real"]
    assert store.load_list(keys.TASKS) == [{"id": "keep-me"}]


def test_load_list_for_write_tells_absent_from_unreadable() -> None:
    backend = FailingDocumentStore({keys.TASKS: "{not json", keys.PROJECTS: '{"id": "p1"}'})
    store = Store(backend)
    backend.fail_reads[keys.USERS] = None

    assert store.load_list_for_write(keys.NOTIFICATIONS) == []
    assert store.load_list_for_write(keys.USERS) is None
    assert store.load_list_for_write(keys.TASKS) is None
    assert store.load_list_for_write(keys.PROJECTS) is None
    assert store.load(keys.USERS, "fallback") == "fallback"


def test_reset_all_to_seed_overwrites_changes() -> None:
    store = Store(MemoryDocumentStore())
    store.seed_if_needed(NOW)
    store.save(keys.PROJECTS, [])
    store.save(keys.NOTIFICATIONS, [{"id": "n"}])

    assert store.reset_all_to_seed(NOW) is True
    assert len(store.load_list(keys.PROJECTS)) == 6
    assert store.load_list(keys.NOTIFICATIONS) == []


def test_reset_all_to_seed_reports_partial_failure() -> None:
    store = Store(FailingDocumentStore(fail_on={keys.TASKS}))
    assert store.reset_all_to_seed(NOW) is False


def test_demo_seed_dates_are_relative_to_utc_day() -> None:
    seed = build_demo_seed(NOW)
    assert seed == build_demo_seed(NOW)

    tasks = {t["id"]: t for t in seed[keys.TASKS]}
    assert tasks["task-3"]["deadline"] == "2025-06-12T00:00:00.000Z"
    assert tasks["task-3"]["tags"] == ["Learning"]
    assert "deadline" not in tasks["task-6"]

    statuses = {p["id"]: p["status"] for p in seed[keys.PROJECTS]}
    assert statuses["proj-4"] == "ON_HOLD"
    assert statuses["proj-5"] == "COMPLETED"


def test_json_directory_store_roundtrip(tmp_path: Path) -> None:
    backend = JsonDirectoryStore(tmp_path / "docs")
    store = Store(backend)

    assert store.save(keys.USERS, [{"id": "u", "name": "Zoë"}]) is True
    assert (tmp_path / "docs" / f"{keys.USERS}.json").exists()
    assert Store(JsonDirectoryStore(tmp_path / "docs")).load_list(keys.USERS) == [{"id": "u", "name": "Zoë"}]

    assert store.clear(keys.USERS) is True
    assert store.load(keys.USERS) is None
    assert store.clear(keys.USERS) is True


def test_json_directory_store_rejects_unsafe_keys(tmp_path: Path) -> None:
    backend = JsonDirectoryStore(tmp_path)
    with pytest.raises(ValueError):
        backend.set("../escape", "[]")
    assert Store(backend).save("../escape", []) is False


def test_session_store_roundtrip_and_malformed_slot() -> None:
    store = Store(MemoryDocumentStore())
    sessions = SessionStore(store)
    assert sessions.get() is None

    session = Session(user_id="u1", role=Role.EMPLOYEE, email="u1@x.io", name="U")
    assert sessions.set(session) is True
    assert sessions.get() == session

    store.save(keys.SESSION, {"userId": "u1", "role": "ROOT"})
    assert sessions.get() is None

    assert sessions.clear() is True
    assert sessions.get() is None
