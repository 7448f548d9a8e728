# src/pm_tracker/storage/seed.py

"""
Demo baseline dataset.

Dates are computed relative to the UTC day of `now`, so "today" and
"due soon" views always have something to show. For a fixed `now` the
output is fully deterministic.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from ..core.dates import day_start, to_iso
from . import keys

# id, name, email, role, department, employeeId
_USERS = [
    ("user-admin", "Admin Demo", "admin@demo.com", "ADMIN", "DEV", "CIPL1985"),
    ("user-emp", "Employee Demo", "employee@demo.com", "EMPLOYEE", "DEV", "CIPL1887"),
    ("user-2", "Jane Dev", "jane@example.com", "EMPLOYEE", "DEV", "T113"),
    ("user-3", "Bob Presales", "bob@example.com", "EMPLOYEE", "PRESALES", "T114"),
    ("user-4", "Alice Dev", "alice@example.com", "EMPLOYEE", "DEV", "T115"),
    ("user-5", "Charlie Presales", "charlie@example.com", "EMPLOYEE", "PRESALES", "T116"),
    ("user-6", "Dana Dev", "dana@example.com", "EMPLOYEE", "DEV", "T117"),
    ("user-7", "Eve Tester", "eve@example.com", "EMPLOYEE", "TESTER", "T118"),
]

# id, name, description, status, start offset, end offset, members
_PROJECTS = [
    ("proj-1", "Portal Redesign", "Customer portal UI overhaul", "ACTIVE", -3, 7, ["user-emp", "user-2"]),
    ("proj-2", "API v2", "REST API version 2", "ACTIVE", -1, 5, ["user-2", "user-4"]),
    ("proj-3", "Sales Playbook", "Presales materials and scripts", "ACTIVE", 0, 14, ["user-3", "user-5"]),
    ("proj-4", "Legacy Migration", "Migrate legacy services", "ON_HOLD", -3, 3, ["user-4"]),
    ("proj-5", "Mobile App", "React Native app", "COMPLETED", -60, -1, ["user-emp", "user-6"]),
    ("proj-6", "Learning Hub", "Internal training and docs", "ACTIVE", -1, 7, ["user-emp", "user-2", "user-4"]),
]

# id, project, title, description, assignee, priority, status, creator,
# created offset, assigned offset, deadline offset (None = no deadline), learning
_TASKS = [
    ("task-1", "proj-1", "Design system tokens", "Define colors and spacing", "user-emp", "HIGH", "IN_PROGRESS", "user-admin", -1, 0, 7, False),
    ("task-2", "proj-1", "Login page mockup", "Figma mockup for login", "user-2", "MEDIUM", "TODO", "user-admin", -1, 0, 14, False),
    ("task-3", "proj-1", "Accessibility audit", "WCAG audit for portal", "user-emp", "MEDIUM", "TODO", "user-admin", 0, 0, 2, True),
    ("task-4", "proj-1", "API integration", "Wire portal to backend", "user-2", "HIGH", "TODO", "user-admin", -3, -1, 5, False),
    ("task-5", "proj-1", "E2E tests", "Cypress tests for flows", "user-emp", "LOW", "COMPLETED", "user-admin", -3, -3, None, False),
    ("task-6", "proj-2", "OpenAPI spec", "Define OpenAPI 3 spec", "user-2", "HIGH", "IN_PROGRESS", "user-admin", -1, 0, None, False),
    ("task-7", "proj-2", "Auth middleware", "JWT validation middleware", "user-4", "HIGH", "TODO", "user-admin", -1, 0, None, False),
    ("task-8", "proj-2", "Rate limiting", "Per-client rate limits", "user-2", "MEDIUM", "TODO", "user-admin", 0, 0, None, False),
    ("task-9", "proj-2", "Documentation", "API docs and examples", "user-4", "MEDIUM", "TODO", "user-2", -1, -1, None, True),
    ("task-10", "proj-2", "Health check endpoint", "/health for load balancer", "user-4", "LOW", "COMPLETED", "user-admin", -3, -3, None, False),
    ("task-11", "proj-3", "Competitor comparison", "One-pager vs competitors", "user-3", "HIGH", "TODO", "user-admin", 0, 0, None, False),
    ("task-12", "proj-3", "Demo script", "Standard demo script", "user-5", "MEDIUM", "IN_PROGRESS", "user-3", -1, 0, None, False),
    ("task-13", "proj-3", "Pricing FAQ", "FAQ for pricing questions", "user-5", "LOW", "TODO", "user-3", 0, 0, None, False),
    ("task-14", "proj-4", "Inventory legacy APIs", "List all legacy endpoints", "user-4", "MEDIUM", "TODO", "user-admin", -3, -3, None, False),
    ("task-15", "proj-5", "Release notes", "Final release notes", "user-emp", "LOW", "COMPLETED", "user-admin", -3, -3, None, False),
    ("task-16", "proj-6", "React 19 guide", "Internal guide for React 19", "user-emp", "MEDIUM", "IN_PROGRESS", "user-admin", -1, 0, 7, True),
    ("task-17", "proj-6", "Vite setup doc", "Vite + React setup", "user-2", "MEDIUM", "TODO", "user-emp", 0, 0, None, True),
    ("task-18", "proj-6", "Code review checklist", "Team checklist for PRs", "user-4", "LOW", "TODO", "user-admin", 0, 0, None, False),
    ("task-19", "proj-1", "Responsive breakpoints", "Define breakpoints", "user-emp", "MEDIUM", "TODO", "user-2", -1, -1, None, False),
    ("task-20", "proj-2", "Error responses", "Standard error JSON schema", "user-4", "MEDIUM", "TODO", "user-admin", 0, 0, None, False),
    ("task-21", "proj-6", "Security best practices", "OWASP summary for devs", "user-emp", "HIGH", "TODO", "user-admin", -1, 0, 14, True),
    ("task-22", "proj-1", "Performance budget", "Lighthouse targets", "user-2", "LOW", "TODO", "user-admin", 0, 0, 1, False),
    ("task-23", "proj-3", "Objection handling", "Common objections and replies", "user-3", "MEDIUM", "TODO", "user-5", 0, 0, 7, False),
    ("task-24", "proj-6", "Onboarding checklist", "New hire onboarding", "user-emp", "HIGH", "TODO", "user-admin", -1, 0, 2, False),
    ("task-25", "proj-2", "Versioning strategy", "API versioning doc", "user-2", "MEDIUM", "TODO", "user-admin", 0, 0, None, True),
]


def build_demo_seed(now: datetime | None = None) -> dict[str, list[dict[str, Any]]]:
    today = day_start(now)

    def day(offset: int) -> str:
        return to_iso(today + timedelta(days=offset))

    users = [
        {
            "id": uid,
            "name": name,
            "email": email,
            "role": role,
            "department": dept,
            "isActive": True,
            "employeeId": emp_id,
        }
        for uid, name, email, role, dept, emp_id in _USERS
    ]

    projects = [
        {
            "id": pid,
            "name": name,
            "description": desc,
            "status": status,
            "startDate": day(start),
            "endDate": day(end),
            "assignedUserIds": list(members),
        }
        for pid, name, desc, status, start, end, members in _PROJECTS
    ]

    tasks: list[dict[str, Any]] = []
    for (tid, pid, title, desc, assignee, prio, status, creator,
         created, assigned, deadline, learning) in _TASKS:
        task: dict[str, Any] = {
            "id": tid,
            "projectId": pid,
            "title": title,
            "description": desc,
            "assigneeId": assignee,
            "priority": prio,
            "status": status,
            "createdById": creator,
            "createdAt": day(created),
            "assignedAt": day(assigned),
            "tags": ["Learning"] if learning else [],
        }
        if deadline is not None:
            task["deadline"] = day(deadline)
        tasks.append(task)

    return {
        keys.USERS: users,
        keys.PROJECTS: projects,
        keys.TASKS: tasks,
        keys.NOTIFICATIONS: [],
    }
