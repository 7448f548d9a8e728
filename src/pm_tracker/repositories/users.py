# src/pm_tracker/repositories/users.py

from __future__ import annotations

import logging
import random
import re
from dataclasses import replace
from typing import Any

from ..core.models import Department, Role, Session, User, new_id
from ..core.results import ErrorKind, Result, no_session, storage_fault
from ..storage import keys
from ..storage.store import Store
from .base import JsonCollection

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_EMPLOYEE_CODE_RE = re.compile(r"^T(\d+)$")

_PATCHABLE = {"name", "email", "role", "department", "is_active", "employee_id"}


def generate_employee_id(role: Role, users: list[User], rng: random.Random | None = None) -> str:
    """
    Display code for a new user.

    Admins: CIPL + random 1000..1999 (re-rolled on collision).
    Employees: T + (highest existing T-number, floor 100) + 1.
    """
    taken = {u.employee_id for u in users}
    if role == Role.ADMIN:
        rng = rng or random.Random()
        for _ in range(1000):
            code = f"CIPL{rng.randint(1000, 1999)}"
            if code not in taken:
                return code
        return f"CIPL{1000 + len(users)}"

    highest = 100
    for u in users:
        if u.role != Role.EMPLOYEE:
            continue
        m = _EMPLOYEE_CODE_RE.match(u.employee_id or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return f"T{highest + 1}"


class UserRepository:
    """CRUD and activation over the Users collection."""

    def __init__(self, store: Store) -> None:
        self._users = JsonCollection(store, keys.USERS, User.from_dict, User.to_dict)

    # ---- queries ----

    def list(self) -> list[User]:
        return self._users.read()

    def get(self, user_id: str) -> User | None:
        return next((u for u in self._users.read() if u.id == user_id), None)

    def find_by_email(self, email: str) -> User | None:
        needle = (email or "").strip().lower()
        if not needle:
            return None
        return next((u for u in self._users.read() if u.email.lower() == needle), None)

    def is_eligible_assignee(self, user_id: str) -> bool:
        """Tasks may only be assigned to existing, active employees."""
        user = self.get(user_id) if user_id else None
        return user is not None and user.is_active and user.role == Role.EMPLOYEE

    # ---- validation ----

    @staticmethod
    def _check_email(email: str, users: list[User], *, exclude_id: str | None = None) -> str | None:
        if not _EMAIL_RE.match(email):
            return f"Invalid email: {email}"
        low = email.lower()
        for u in users:
            if u.id != exclude_id and u.email.lower() == low:
                return f"Email already in use: {email}"
        return None

    # ---- mutations ----

    def create(self, payload: dict[str, Any]) -> Result[User]:
        name = str(payload.get("name") or "").strip()
        email = str(payload.get("email") or "").strip()
        if not name:
            return Result.fail(ErrorKind.VALIDATION, "name is required")
        if not email:
            return Result.fail(ErrorKind.VALIDATION, "email is required")

        role = Role.from_raw(payload.get("role"), None) if payload.get("role") else Role.EMPLOYEE
        if role is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unknown role: {payload.get('role')}")
        department = (
            Department.from_raw(payload.get("department"), None)
            if payload.get("department")
            else Department.DEV
        )
        if department is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unknown department: {payload.get('department')}")

        loaded = self._users.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        users = loaded.value.items
        err = self._check_email(email, users)
        if err:
            return Result.fail(ErrorKind.VALIDATION, err)

        user = User(
            id=new_id("user"),
            name=name,
            email=email,
            role=role,
            department=department,
            is_active=True,
            employee_id=str(payload.get("employee_id") or "") or generate_employee_id(role, users),
        )
        users.append(user)
        if not self._users.write(loaded.value):
            return storage_fault("users")
        logger.info("User created id=%s role=%s employee_id=%s", user.id, user.role.value, user.employee_id)
        return Result.success(user)

    def update(self, user_id: str, patch: dict[str, Any]) -> Result[User]:
        unknown = set(patch) - _PATCHABLE
        if unknown:
            return Result.fail(ErrorKind.VALIDATION, f"Cannot update fields: {', '.join(sorted(unknown))}")

        loaded = self._users.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        users = loaded.value.items
        idx = next((i for i, u in enumerate(users) if u.id == user_id), -1)
        if idx == -1:
            return Result.fail(ErrorKind.NOT_FOUND, "User not found")
        current = users[idx]

        changes: dict[str, Any] = {}
        if "name" in patch:
            name = str(patch["name"] or "").strip()
            if not name:
                return Result.fail(ErrorKind.VALIDATION, "name is required")
            changes["name"] = name
        if "email" in patch:
            email = str(patch["email"] or "").strip()
            err = self._check_email(email, users, exclude_id=user_id)
            if err:
                return Result.fail(ErrorKind.VALIDATION, err)
            changes["email"] = email
        if "role" in patch:
            role = Role.from_raw(patch["role"])
            if role is None:
                return Result.fail(ErrorKind.VALIDATION, f"Unknown role: {patch['role']}")
            changes["role"] = role
        if "department" in patch:
            dept = Department.from_raw(patch["department"])
            if dept is None:
                return Result.fail(ErrorKind.VALIDATION, f"Unknown department: {patch['department']}")
            changes["department"] = dept
        if "is_active" in patch:
            changes["is_active"] = bool(patch["is_active"])
        if "employee_id" in patch:
            changes["employee_id"] = str(patch["employee_id"] or "").strip() or current.employee_id

        users[idx] = replace(current, **changes)
        if not self._users.write(loaded.value):
            return storage_fault("users")
        return Result.success(users[idx])

    def set_active(self, user_id: str, is_active: bool, session: Session | None) -> Result[User]:
        if session is None:
            return no_session()
        if not is_active and session.user_id == user_id:
            return Result.fail(ErrorKind.AUTHORIZATION, "You cannot deactivate your own account")
        return self.update(user_id, {"is_active": is_active})

    def remove(self, user_id: str, session: Session | None) -> Result[None]:
        if session is None:
            return no_session()
        if session.user_id == user_id:
            return Result.fail(ErrorKind.AUTHORIZATION, "You cannot delete your own account")

        loaded = self._users.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        rows = loaded.value
        remaining = [u for u in rows.items if u.id != user_id]
        if len(remaining) == len(rows.items):
            return Result.fail(ErrorKind.NOT_FOUND, "User not found")
        rows.items = remaining
        if not self._users.write(rows):
            return storage_fault("users")
        logger.info("User removed id=%s by=%s", user_id, session.user_id)
        return Result.success(None)
