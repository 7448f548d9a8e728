# src/pm_tracker/core/models.py

"""
Domain model.

Python attributes are snake_case; the persisted JSON keeps camelCase keys
(assignedUserIds, createdById, ...) so existing documents stay readable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

LEARNING_TAG = "Learning"


class _LenientEnum(StrEnum):
    @classmethod
    def from_raw(cls, raw: Any, default: Any = None) -> Any:
        if raw is None or raw == "":
            return default
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return default


class Role(_LenientEnum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class Department(_LenientEnum):
    DEV = "DEV"
    PRESALES = "PRESALES"
    TESTER = "TESTER"


class ProjectStatus(_LenientEnum):
    """
    Project lifecycle status.

    Only ACTIVE projects are structurally mutable; ON_HOLD and COMPLETED
    freeze the project and every task in it until the status changes back.
    """

    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"


class TaskStatus(_LenientEnum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Priority(_LenientEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class NotificationType(_LenientEnum):
    ASSIGNED = "ASSIGNED"
    DEADLINE = "DEADLINE"


def new_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4()}"


def _str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    out: list[str] = []
    for item in raw:
        if isinstance(item, str) and item and item not in out:
            out.append(item)
    return out


def _require_str(data: dict[str, Any], key: str) -> str:
    val = data.get(key)
    if not isinstance(val, str) or not val:
        raise ValueError(f"missing {key}")
    return val


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    val = data.get(key)
    return val if isinstance(val, str) and val else None


@dataclass(slots=True, frozen=True)
class Session:
    """Acting identity supplied by the session slot; never authenticated here."""

    user_id: str
    role: Role
    email: str = ""
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict[str, Any]:
        return {"userId": self.user_id, "email": self.email, "role": self.role.value, "name": self.name}

    @classmethod
    def from_dict(cls, data: Any) -> Session | None:
        if not isinstance(data, dict):
            return None
        user_id = data.get("userId")
        role = Role.from_raw(data.get("role"))
        if not isinstance(user_id, str) or not user_id or role is None:
            return None
        return cls(
            user_id=user_id,
            role=role,
            email=str(data.get("email") or ""),
            name=str(data.get("name") or ""),
        )


@dataclass(slots=True)
class User:
    id: str
    name: str
    email: str
    role: Role
    department: Department
    is_active: bool
    employee_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "department": self.department.value,
            "isActive": self.is_active,
            "employeeId": self.employee_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=_require_str(data, "id"),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            role=Role.from_raw(data.get("role"), Role.EMPLOYEE),
            department=Department.from_raw(data.get("department"), Department.DEV),
            is_active=bool(data.get("isActive", True)),
            employee_id=str(data.get("employeeId") or ""),
        )


@dataclass(slots=True)
class Project:
    id: str
    name: str
    description: str
    status: ProjectStatus
    start_date: str
    end_date: str
    assigned_user_ids: list[str] = field(default_factory=list)

    @property
    def is_read_only(self) -> bool:
        return self.status != ProjectStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "assignedUserIds": list(self.assigned_user_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            id=_require_str(data, "id"),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            status=ProjectStatus.from_raw(data.get("status"), ProjectStatus.ACTIVE),
            start_date=str(data.get("startDate") or ""),
            end_date=str(data.get("endDate") or ""),
            assigned_user_ids=_str_list(data.get("assignedUserIds")),
        )


@dataclass(slots=True)
class Task:
    id: str
    project_id: str
    title: str
    description: str
    assignee_id: str
    priority: Priority
    status: TaskStatus
    created_by_id: str
    created_at: str
    assigned_at: str
    deadline: str | None = None
    tags: list[str] = field(default_factory=list)

    @property
    def is_learning(self) -> bool:
        return LEARNING_TAG in self.tags

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "assigneeId": self.assignee_id,
            "priority": self.priority.value,
            "status": self.status.value,
            "createdById": self.created_by_id,
            "createdAt": self.created_at,
            "assignedAt": self.assigned_at,
            "tags": list(self.tags),
        }
        if self.deadline:
            out["deadline"] = self.deadline
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        created_at = str(data.get("createdAt") or "")
        return cls(
            id=_require_str(data, "id"),
            project_id=_require_str(data, "projectId"),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            assignee_id=str(data.get("assigneeId") or ""),
            priority=Priority.from_raw(data.get("priority"), Priority.MEDIUM),
            status=TaskStatus.from_raw(data.get("status"), TaskStatus.TODO),
            created_by_id=str(data.get("createdById") or ""),
            created_at=created_at,
            assigned_at=str(data.get("assignedAt") or created_at),
            deadline=_opt_str(data, "deadline"),
            tags=_str_list(data.get("tags")),
        )


@dataclass(slots=True)
class Notification:
    id: str
    user_id: str
    type: NotificationType
    message: str
    created_at: str
    read: bool = False

    # Set on DEADLINE notifications: identifies the task (or project) + deadline pairing.
    task_id: str | None = None
    project_id: str | None = None
    deadline: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type.value,
            "message": self.message,
            "createdAt": self.created_at,
            "read": self.read,
        }
        if self.task_id:
            out["taskId"] = self.task_id
        if self.project_id:
            out["projectId"] = self.project_id
        if self.deadline:
            out["deadline"] = self.deadline
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Notification:
        return cls(
            id=_require_str(data, "id"),
            user_id=_require_str(data, "userId"),
            type=NotificationType.from_raw(data.get("type"), NotificationType.ASSIGNED),
            message=str(data.get("message") or ""),
            created_at=str(data.get("createdAt") or ""),
            read=bool(data.get("read", False)),
            task_id=_opt_str(data, "taskId"),
            project_id=_opt_str(data, "projectId"),
            deadline=_opt_str(data, "deadline"),
        )
