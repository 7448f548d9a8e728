# src/pm_tracker/repositories/permissions.py

"""
Permission predicates.

Pure functions over a session, a task and its project. A project that is
not ACTIVE blocks everyone; the remaining rules are role/ownership based.
"""

from __future__ import annotations

from ..core.models import Project, Role, Session, Task


def project_blocks_edit(project: Project | None) -> bool:
    return project is not None and project.is_read_only


def can_create_task_in(session: Session | None, project: Project | None) -> bool:
    """Employees create tasks only in projects they are members of."""
    if session is None or project is None or project_blocks_edit(project):
        return False
    if session.role == Role.ADMIN:
        return True
    return session.user_id in project.assigned_user_ids


def can_edit_task(session: Session | None, task: Task | None, project: Project | None) -> bool:
    if session is None or task is None or project_blocks_edit(project):
        return False
    if session.role == Role.ADMIN:
        return True
    return task.assignee_id == session.user_id


def can_reassign_task(session: Session | None) -> bool:
    return session is not None and session.role == Role.ADMIN


def can_delete_task(session: Session | None, task: Task | None, project: Project | None) -> bool:
    # Creator only; admins get no bypass.
    if session is None or task is None or project_blocks_edit(project):
        return False
    return task.created_by_id == session.user_id
