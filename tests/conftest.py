# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from pm_tracker.core.coordinator import Coordinator
from pm_tracker.core.models import Role, Session
from pm_tracker.core.state import AppState
from pm_tracker.notifications.repository import NotificationRepository
from pm_tracker.repositories.projects import ProjectRepository
from pm_tracker.repositories.tasks import TaskRepository
from pm_tracker.repositories.users import UserRepository
from pm_tracker.storage import keys
from pm_tracker.storage.store import Store

from .fakes import FailingDocumentStore, fixed_clock

BASE_USERS = [
    {"id": "admin", "name": "Ada Admin", "email": "ada@corp.test", "role": "ADMIN",
     "department": "DEV", "isActive": True, "employeeId": "CIPL1500"},
    {"id": "u1", "name": "Uma One", "email": "uma@corp.test", "role": "EMPLOYEE",
     "department": "DEV", "isActive": True, "employeeId": "T101"},
    {"id": "userA", "name": "Alan A", "email": "alan@corp.test", "role": "EMPLOYEE",
     "department": "TESTER", "isActive": True, "employeeId": "T102"},
    {"id": "userB", "name": "Bea B", "email": "bea@corp.test", "role": "EMPLOYEE",
     "department": "PRESALES", "isActive": True, "employeeId": "T103"},
    {"id": "gone", "name": "Gus Gone", "email": "gus@corp.test", "role": "EMPLOYEE",
     "department": "DEV", "isActive": False, "employeeId": "T104"},
]

BASE_PROJECTS = [
    {"id": "p-active", "name": "Portal", "description": "", "status": "ACTIVE",
     "startDate": "2025-06-01", "endDate": "2025-06-30", "assignedUserIds": ["u1", "userA"]},
    {"id": "p-hold", "name": "Legacy", "description": "", "status": "ON_HOLD",
     "startDate": "2025-05-01", "endDate": "2025-06-12", "assignedUserIds": ["u1"]},
    {"id": "p-done", "name": "Mobile", "description": "", "status": "COMPLETED",
     "startDate": "2025-01-01", "endDate": "2025-06-11", "assignedUserIds": ["userA"]},
]

BASE_TASKS = [
    {"id": "t-open", "projectId": "p-active", "title": "Write docs", "description": "",
     "assigneeId": "u1", "priority": "HIGH", "status": "TODO", "createdById": "admin",
     "createdAt": "2025-06-09T10:00:00.000Z", "assignedAt": "2025-06-10T08:00:00.000Z",
     "deadline": "2025-06-13T00:00:00.000Z", "tags": []},
    {"id": "t-held", "projectId": "p-hold", "title": "Inventory", "description": "",
     "assigneeId": "u1", "priority": "LOW", "status": "IN_PROGRESS", "createdById": "admin",
     "createdAt": "2025-05-02T10:00:00.000Z", "assignedAt": "2025-05-02T10:00:00.000Z",
     "tags": ["Learning"]},
]


def load_base(store: Store) -> None:
    store.save(keys.USERS, BASE_USERS)
    store.save(keys.PROJECTS, BASE_PROJECTS)
    store.save(keys.TASKS, BASE_TASKS)
    store.save(keys.NOTIFICATIONS, [])


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="pm-tracker-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        store_dir=tmp_path / "store",
        deadline_window_days=7,
        notify_admins_on_project_deadline=True,
        seed_on_start=False,
        console_enabled=False,
    )


@pytest.fixture()
def backend() -> FailingDocumentStore:
    return FailingDocumentStore()


@pytest.fixture()
def store(backend: FailingDocumentStore) -> Store:
    s = Store(backend)
    load_base(s)
    backend.writes.clear()
    return s


@pytest.fixture()
def users(store: Store) -> UserRepository:
    return UserRepository(store)


@pytest.fixture()
def projects(store: Store, users: UserRepository) -> ProjectRepository:
    return ProjectRepository(store, users)


@pytest.fixture()
def notifications(store: Store) -> NotificationRepository:
    return NotificationRepository(store, clock=fixed_clock)


@pytest.fixture()
def tasks(
        store: Store,
        projects: ProjectRepository,
        users: UserRepository,
        notifications: NotificationRepository,
) -> TaskRepository:
    return TaskRepository(store, projects, users, notifications, clock=fixed_clock)


@pytest.fixture()
def coordinator(store: Store) -> Coordinator:
    coord = Coordinator(store, clock=fixed_clock)
    coord.refresh()
    return coord


@pytest.fixture()
def state(settings: SimpleNamespace, store: Store, coordinator: Coordinator) -> AppState:
    return AppState(settings=settings, store=store, coordinator=coordinator)


@pytest.fixture()
def admin_session() -> Session:
    return Session(user_id="admin", role=Role.ADMIN, email="ada@corp.test", name="Ada Admin")


@pytest.fixture()
def u1_session() -> Session:
    return Session(user_id="u1", role=Role.EMPLOYEE, email="uma@corp.test", name="Uma One")


@pytest.fixture()
def usera_session() -> Session:
    return Session(user_id="userA", role=Role.EMPLOYEE, email="alan@corp.test", name="Alan A")


@pytest.fixture()
def userb_session() -> Session:
    return Session(user_id="userB", role=Role.EMPLOYEE, email="bea@corp.test", name="Bea B")
