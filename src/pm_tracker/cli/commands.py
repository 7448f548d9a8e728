# src/pm_tracker/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, cast

from ..core.dates import now_iso, to_day_key
from ..core.models import Notification, Project, Role, Task
from ..core.results import Result
from ..core.state import AppState
from ..core.stats import (
    count_due_soon_tasks_by_user,
    count_open_tasks_by_user,
    count_projects_by_user,
    group_count_by,
    sort_by_deadline,
    tasks_due_soon,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /login, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----

def _fail(result: Result[Any]) -> str:
    return f"[{result.kind}] {result.error}"


def _fmt_task(t: Task) -> str:
    due = to_day_key(t.deadline) or "-"
    learning = " [Learning]" if t.is_learning else ""
    return f"{t.id}  [{t.status}] {t.title} ({t.priority}) due {due} -> {t.assignee_id}{learning}"


def _fmt_project(p: Project) -> str:
    span = f"{to_day_key(p.start_date)}..{to_day_key(p.end_date)}"
    return f"{p.id}  [{p.status}] {p.name} {span} members={len(p.assigned_user_ids)}"


def _fmt_notification(n: Notification) -> str:
    mark = " " if n.read else "*"
    return f"{mark} {n.id}  [{n.type}] {n.message}"


def _lines(title: str, rows: list[str], empty: str) -> str:
    if not rows:
        return empty
    return "\n".join([title, *(f"  {r}" for r in rows)])


# ---- session ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_login(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /login <email>"
    res = state.coordinator.login(args[0])
    if not res.ok or res.value is None:
        return _fail(res)
    return f"Logged in as {res.value.name} ({res.value.role})."


def cmd_logout(state: AppState, args: list[str]) -> str:
    res = state.coordinator.logout()
    return "Logged out." if res.ok else _fail(res)


def cmd_whoami(state: AppState, args: list[str]) -> str:
    session = state.coordinator.current_session()
    if session is None:
        return "Not logged in. Use /login <email>."
    return f"{session.name} <{session.email}> role={session.role} id={session.user_id}"


# ---- listings ----

def cmd_users(state: AppState, args: list[str]) -> str:
    users = state.coordinator.snapshot.users
    rows = [
        f"{u.id}  {u.employee_id:<9} {u.name} <{u.email}> {u.role}/{u.department}"
        + ("" if u.is_active else " (inactive)")
        for u in users
    ]
    return _lines("Users:", rows, "No users.")


def cmd_projects(state: AppState, args: list[str]) -> str:
    """
    /projects          -> every project
    /projects <status> -> filter by ACTIVE | ON_HOLD | COMPLETED
    """
    projects = list(state.coordinator.snapshot.projects)
    if args:
        want = args[0].upper()
        projects = [p for p in projects if p.status == want]
    return _lines("Projects:", [_fmt_project(p) for p in projects], "No projects.")


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks               -> all tasks (admin) or your own tasks (employee)
    /tasks <project_id>  -> tasks of one project
    """
    session = state.coordinator.current_session()
    tasks = list(state.coordinator.snapshot.tasks)
    if args:
        tasks = [t for t in tasks if t.project_id == args[0]]
    elif session is not None and session.role == Role.EMPLOYEE:
        tasks = [t for t in tasks if t.assignee_id == session.user_id]
    return _lines("Tasks:", [_fmt_task(t) for t in sort_by_deadline(tasks)], "No tasks.")


def cmd_today(state: AppState, args: list[str]) -> str:
    session = state.coordinator.current_session()
    if session is None:
        return "Not logged in. Use /login <email>."
    tasks = state.coordinator.tasks.list_assigned_today(session.user_id)
    return _lines("Assigned to you today:", [_fmt_task(t) for t in tasks], "Nothing assigned to you today.")


def cmd_notifications(state: AppState, args: list[str]) -> str:
    """
    /notifications         -> your notifications, newest first
    /notifications unread  -> unread only
    """
    session = state.coordinator.current_session()
    if session is None:
        return "Not logged in. Use /login <email>."
    items = [n for n in state.coordinator.snapshot.notifications if n.user_id == session.user_id]
    if args and args[0].lower() == "unread":
        items = [n for n in items if not n.read]
    items.sort(key=lambda n: n.created_at, reverse=True)
    return _lines("Notifications:", [_fmt_notification(n) for n in items], "No notifications.")


# ---- mutations ----

def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <task_id> <TODO|IN_PROGRESS|COMPLETED>"
    res = state.coordinator.move_task_status(args[0], args[1])
    if not res.ok or res.value is None:
        return _fail(res)
    return f"Moved: {_fmt_task(res.value)}"


def cmd_delete_task(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete-task <task_id>"
    res = state.coordinator.delete_task(args[0])
    return f"Task {args[0]} deleted." if res.ok else _fail(res)


def cmd_project_status(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /project-status <project_id> <ACTIVE|ON_HOLD|COMPLETED>"
    res = state.coordinator.set_project_status(args[0], args[1])
    if not res.ok or res.value is None:
        return _fail(res)
    return f"Updated: {_fmt_project(res.value)}"


def cmd_delete_project(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /delete-project <project_id>"
    doomed = sum(1 for t in state.coordinator.snapshot.tasks if t.project_id == args[0])
    if emit and doomed:
        emit(f"Deleting project {args[0]} and {doomed} task(s)...")
    res = state.coordinator.delete_project(args[0])
    return f"Project {args[0]} deleted." if res.ok else _fail(res)


def cmd_read(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /read <notification_id>"
    res = state.coordinator.mark_notification_read(args[0])
    return "Marked as read." if res.ok else _fail(res)


def cmd_read_all(state: AppState, args: list[str]) -> str:
    res = state.coordinator.mark_all_read()
    if not res.ok:
        return _fail(res)
    return f"Marked {res.value} notification(s) as read."


def cmd_deadline_check(state: AppState, args: list[str]) -> str:
    """
    /deadline-check         -> scan with the current time
    /deadline-check <iso>   -> scan as of the given instant
    """
    res = state.coordinator.run_deadline_check(args[0] if args else None)
    if not res.ok:
        return _fail(res)
    created = res.value or []
    return f"Deadline check created {len(created)} notification(s)."


def cmd_stats(state: AppState, args: list[str]) -> str:
    snap = state.coordinator.snapshot
    now = now_iso()
    window = int(getattr(state.settings, "deadline_window_days", 7))
    session = state.coordinator.current_session()

    if session is not None and session.role == Role.EMPLOYEE:
        uid = session.user_id
        return (
            "Your dashboard:\n"
            f"  Projects: {count_projects_by_user(uid, snap.projects)}\n"
            f"  Open tasks: {count_open_tasks_by_user(uid, snap.tasks)}\n"
            f"  Due within {window} days: {count_due_soon_tasks_by_user(uid, snap.tasks, now, window)}"
        )

    by_status = group_count_by(snap.tasks, "status")
    by_priority = group_count_by(snap.tasks, "priority")
    by_project_status = group_count_by(snap.projects, "status")
    return (
        "Dashboard:\n"
        f"  Users: {len(snap.users)}  Projects: {len(snap.projects)}  Tasks: {len(snap.tasks)}\n"
        f"  Projects by status: {by_project_status}\n"
        f"  Tasks by status: {by_status}\n"
        f"  Tasks by priority: {by_priority}\n"
        f"  Due within {window} days: {len(tasks_due_soon(snap.tasks, now, window))}"
    )


def cmd_reset(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    logger.debug("Demo reset requested")
    if emit:
        emit("Resetting every collection to the demo dataset...")
    res = state.coordinator.reset_demo()
    return "Demo data restored." if res.ok else _fail(res)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("login", cmd_login, help_text="Act as a user: /login <email>.")
registry.register("logout", cmd_logout, help_text="Clear the current session.")
registry.register("whoami", cmd_whoami, help_text="Show the current session.")
registry.register("users", cmd_users, help_text="List users.")
registry.register("projects", cmd_projects, help_text="List projects: /projects [status].")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [project_id].")
registry.register("today", cmd_today, help_text="Tasks assigned to you today.")
registry.register("move", cmd_move, help_text="Move a task: /move <task_id> <status>.")
registry.register("delete-task", cmd_delete_task, help_text="Delete a task you created.")
registry.register(
    "project-status", cmd_project_status, help_text="Admin: /project-status <project_id> <status>."
)
registry.register(
    "delete-project", cmd_delete_project, help_text="Admin: delete a project and its tasks."
)
registry.register(
    "notifications", cmd_notifications, help_text="Your notifications: /notifications [unread].",
    aliases=["n"],
)
registry.register("read", cmd_read, help_text="Mark one notification read: /read <id>.")
registry.register("read-all", cmd_read_all, help_text="Mark all your notifications read.")
registry.register(
    "deadline-check", cmd_deadline_check, help_text="Generate deadline notifications: /deadline-check [iso]."
)
registry.register("stats", cmd_stats, help_text="Dashboard counters.")
registry.register("reset", cmd_reset, help_text="Admin: restore the demo dataset.")
