# src/pm_tracker/repositories/projects.py

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from ..core.dates import parse_iso
from ..core.models import Project, ProjectStatus, new_id
from ..core.ports import UserReader
from ..core.results import READ_ONLY_MESSAGE, ErrorKind, Result, storage_fault
from ..storage import keys
from ..storage.store import Store
from .base import JsonCollection

logger = logging.getLogger(__name__)

MEMBERS_REQUIRED = "At least one member is required"

_PATCHABLE = {"name", "description", "start_date", "end_date", "assigned_user_ids"}


def _dedupe(ids: Any) -> list[str] | None:
    if not isinstance(ids, (list, tuple)):
        return None
    out: list[str] = []
    for i in ids:
        if isinstance(i, str) and i and i not in out:
            out.append(i)
    return out


class ProjectRepository:
    """
    CRUD, status transitions and member assignment over the Projects collection.

    Read-only gate: name/description/dates/members change only while the
    project is ACTIVE. set_status is exempt, since it is the way out of the
    read-only states. Deleting a project does not touch tasks here; the
    coordinator runs the cascade.
    """

    def __init__(self, store: Store, users: UserReader) -> None:
        self._projects = JsonCollection(store, keys.PROJECTS, Project.from_dict, Project.to_dict)
        self._users = users

    # ---- queries ----

    def list(self, status: ProjectStatus | str | None = None) -> list[Project]:
        items = self._projects.read()
        if status:
            want = ProjectStatus.from_raw(status)
            items = [p for p in items if p.status == want]
        return items

    def get(self, project_id: str) -> Project | None:
        return next((p for p in self._projects.read() if p.id == project_id), None)

    def list_for_member(self, user_id: str) -> list[Project]:
        return [p for p in self._projects.read() if user_id in p.assigned_user_ids]

    # ---- validation ----

    def _check_members(self, raw: Any) -> Result[list[str]]:
        ids = _dedupe(raw)
        if not ids:
            return Result.fail(ErrorKind.VALIDATION, MEMBERS_REQUIRED)
        missing = [i for i in ids if self._users.get(i) is None]
        if missing:
            return Result.fail(ErrorKind.INTEGRITY, f"Unknown user id(s): {', '.join(missing)}")
        return Result.success(ids)

    @staticmethod
    def _check_dates(start: str, end: str) -> Result[None]:
        s, e = parse_iso(start), parse_iso(end)
        if s is None:
            return Result.fail(ErrorKind.VALIDATION, "startDate must be an ISO date")
        if e is None:
            return Result.fail(ErrorKind.VALIDATION, "endDate must be an ISO date")
        if s > e:
            return Result.fail(ErrorKind.VALIDATION, "startDate must not be after endDate")
        return Result.success(None)

    # ---- mutations ----

    def create(self, payload: dict[str, Any]) -> Result[Project]:
        name = str(payload.get("name") or "").strip()
        if not name:
            return Result.fail(ErrorKind.VALIDATION, "name is required")

        start = str(payload.get("start_date") or "")
        end = str(payload.get("end_date") or "")
        dates = self._check_dates(start, end)
        if not dates.ok:
            return dates.propagate()

        members = self._check_members(payload.get("assigned_user_ids"))
        if not members.ok:
            return members.propagate()

        project = Project(
            id=new_id("proj"),
            name=name,
            description=str(payload.get("description") or ""),
            status=ProjectStatus.ACTIVE,
            start_date=start,
            end_date=end,
            assigned_user_ids=members.value or [],
        )
        loaded = self._projects.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        loaded.value.items.append(project)
        if not self._projects.write(loaded.value):
            return storage_fault("projects")
        logger.info("Project created id=%s members=%d", project.id, len(project.assigned_user_ids))
        return Result.success(project)

    def update(self, project_id: str, patch: dict[str, Any]) -> Result[Project]:
        unknown = set(patch) - _PATCHABLE
        if unknown:
            return Result.fail(ErrorKind.VALIDATION, f"Cannot update fields: {', '.join(sorted(unknown))}")

        loaded = self._projects.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        projects = loaded.value.items
        idx = next((i for i, p in enumerate(projects) if p.id == project_id), -1)
        if idx == -1:
            return Result.fail(ErrorKind.NOT_FOUND, "Project not found")
        current = projects[idx]
        if current.is_read_only:
            logger.debug("Project update refused id=%s status=%s", project_id, current.status.value)
            return Result.fail(ErrorKind.STATE_GATE, READ_ONLY_MESSAGE)

        changes: dict[str, Any] = {}
        if "name" in patch:
            name = str(patch["name"] or "").strip()
            if not name:
                return Result.fail(ErrorKind.VALIDATION, "name is required")
            changes["name"] = name
        if "description" in patch:
            changes["description"] = str(patch["description"] or "")
        if "start_date" in patch or "end_date" in patch:
            start = str(patch.get("start_date", current.start_date) or "")
            end = str(patch.get("end_date", current.end_date) or "")
            dates = self._check_dates(start, end)
            if not dates.ok:
                return dates.propagate()
            changes["start_date"] = start
            changes["end_date"] = end
        if "assigned_user_ids" in patch:
            members = self._check_members(patch["assigned_user_ids"])
            if not members.ok:
                return members.propagate()
            changes["assigned_user_ids"] = members.value

        projects[idx] = replace(current, **changes)
        if not self._projects.write(loaded.value):
            return storage_fault("projects")
        return Result.success(projects[idx])

    def set_status(self, project_id: str, status: ProjectStatus | str) -> Result[Project]:
        new_status = ProjectStatus.from_raw(status)
        if new_status is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unknown project status: {status}")

        loaded = self._projects.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        projects = loaded.value.items
        idx = next((i for i, p in enumerate(projects) if p.id == project_id), -1)
        if idx == -1:
            return Result.fail(ErrorKind.NOT_FOUND, "Project not found")

        old = projects[idx].status
        projects[idx] = replace(projects[idx], status=new_status)
        if not self._projects.write(loaded.value):
            return storage_fault("projects")
        logger.info("Project %s status %s -> %s", project_id, old.value, new_status.value)
        return Result.success(projects[idx])

    def assign_members(self, project_id: str, user_ids: list[str]) -> Result[Project]:
        if not _dedupe(user_ids):
            return Result.fail(ErrorKind.VALIDATION, MEMBERS_REQUIRED)
        return self.update(project_id, {"assigned_user_ids": user_ids})

    def remove(self, project_id: str) -> Result[Project]:
        loaded = self._projects.load()
        if not loaded.ok or loaded.value is None:
            return loaded.propagate()
        rows = loaded.value
        target = next((p for p in rows.items if p.id == project_id), None)
        if target is None:
            return Result.fail(ErrorKind.NOT_FOUND, "Project not found")
        rows.items = [p for p in rows.items if p.id != project_id]
        if not self._projects.write(rows):
            return storage_fault("projects")
        logger.info("Project removed id=%s", project_id)
        return Result.success(target)
