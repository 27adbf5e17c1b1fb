"""Task service: suggestion, CRUD, status changes, versions, dependencies.

Dependencies form a DAG: ``add_dependency`` refuses self-edges and any
edge that would close a cycle.
"""

from __future__ import annotations

import logging
from collections import deque

from sqlalchemy import func, select

from ideaforge.core.exceptions import NotFoundError, StateConflictError, ValidationError
from ideaforge.models import db
from ideaforge.models.feature import PRIORITIES
from ideaforge.models.task import TASK_STATUSES, Task, TaskDependency, TaskVersion
from ideaforge.services import fields, versioning
from ideaforge.services.feature_service import get_feature

logger = logging.getLogger(__name__)

INITIAL_CHANGELOG = "Initial version"
SUGGESTED_CHANGELOG = "Initial generation"
DEFAULT_UPDATE_CHANGELOG = "Task updated"
MIN_TITLE_LENGTH = 3


def _snapshot(task: Task, changelog: str):
    return versioning.snapshot(
        TaskVersion, "task_id", task.id, changelog,
        title=task.title, description=task.description, status=task.status,
    )


def _check_status(status):
    fields.check_choice(status, TASK_STATUSES, "status", sort=False)


def _check_priority(priority):
    fields.check_choice(priority, PRIORITIES, "priority", sort=False)


def _check_title(title):
    if not isinstance(title, str) or len(title.strip()) < MIN_TITLE_LENGTH:
        raise ValidationError(f"Task title must be at least {MIN_TITLE_LENGTH} characters")


def _check_order(order):
    if order is not None and (isinstance(order, bool) or not isinstance(order, int) or order < 0):
        raise ValidationError("order must be a non-negative integer")


# ── Queries ───────────────────────────────────────────────────────────────────


def get_task(task_id: str) -> Task:
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def get_task_with_dependencies(task_id: str) -> dict:
    return get_task(task_id).to_dict(include_dependencies=True)


def list_tasks_for_feature(feature_id: str) -> list[Task]:
    get_feature(feature_id)
    return db.session.execute(
        select(Task).where(Task.feature_id == feature_id).order_by(Task.order, Task.created_at)
    ).scalars().all()


def get_version_history(task_id: str) -> list[TaskVersion]:
    get_task(task_id)
    return versioning.list_versions(TaskVersion, "task_id", task_id)


# ── Commands ──────────────────────────────────────────────────────────────────


def suggest_tasks(feature_id: str, planner) -> list[Task]:
    """Ask the planner for tasks and store them in the order returned."""
    feature = get_feature(feature_id)
    items = planner.suggest(feature.title, feature.description)

    tasks = []
    for index, item in enumerate(items):
        effort = item.get("estimated_effort")
        task = Task(
            feature_id=feature.id, title=item["title"][:255], description=item["description"],
            status="planned", priority=item.get("priority") or "medium",
            estimated_effort=effort[:fields.MAX_EFFORT_LENGTH] if effort else None, order=index,
        )
        db.session.add(task)
        db.session.flush()
        _snapshot(task, SUGGESTED_CHANGELOG)
        tasks.append(task)

    db.session.commit()
    logger.info("Suggested %d task(s) for feature=%s", len(tasks), feature.id)
    return tasks


def create_task(feature_id: str, data: dict) -> Task:
    feature = get_feature(feature_id)

    title = data.get("title")
    _check_title(title)
    description = data.get("description") or ""
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    priority = data.get("priority") or "medium"
    _check_priority(priority)
    order = data.get("order")
    _check_order(order)
    effort = fields.optional_text(data, "estimated_effort", fields.MAX_EFFORT_LENGTH)
    if order is None:
        order = db.session.execute(
            select(func.count(Task.id)).where(Task.feature_id == feature.id)
        ).scalar()

    task = Task(
        feature_id=feature.id, title=title.strip(), description=description.strip(),
        status="planned", priority=priority,
        estimated_effort=effort, order=order,
    )
    db.session.add(task)
    db.session.flush()
    _snapshot(task, INITIAL_CHANGELOG)
    db.session.commit()
    logger.info("Task created id=%s feature=%s", task.id, feature.id)
    return task


def update_task(task_id: str, data: dict) -> Task:
    """Apply edits; title/description/status changes snapshot the previous triple."""
    task = get_task(task_id)

    title = data.get("title")
    description = data.get("description")
    status = data.get("status")
    if title is not None:
        _check_title(title)
        title = title.strip()
    if description is not None:
        if not isinstance(description, str):
            raise ValidationError("description must be a string")
        description = description.strip()
    _check_status(status)
    _check_priority(data.get("priority"))
    _check_order(data.get("order"))
    effort = fields.optional_text(data, "estimated_effort", fields.MAX_EFFORT_LENGTH)
    changelog = fields.changelog_from(data, DEFAULT_UPDATE_CHANGELOG)

    if (versioning.changed(task.title, title)
            or versioning.changed(task.description, description)
            or versioning.changed(task.status, status)):
        _snapshot(task, changelog)
    if title is not None:
        task.title = title
    if description is not None:
        task.description = description
    if status is not None:
        task.status = status
    if data.get("priority") is not None:
        task.priority = data["priority"]
    if "estimated_effort" in data:
        task.estimated_effort = effort
    if data.get("order") is not None:
        task.order = data["order"]

    db.session.commit()
    return task


def update_task_status(task_id: str, status) -> Task:
    task = get_task(task_id)
    if status is None:
        raise ValidationError("status is required")
    _check_status(status)

    if status != task.status:
        _snapshot(task, f"Status changed to {status}")
        task.status = status
        db.session.commit()
        logger.info("Task status id=%s -> %s", task.id, status)
    return task


def revert_to_version(task_id: str, version: int) -> Task:
    task = get_task(task_id)
    target = versioning.get_version(TaskVersion, "task_id", task_id, version)

    _snapshot(task, f"Reverted to version {version}")
    task.title = target.title
    task.description = target.description
    task.status = target.status
    db.session.commit()
    logger.info("Task reverted id=%s to v%d", task.id, version)
    return task


def delete_task(task_id: str) -> None:
    task = get_task(task_id)
    db.session.delete(task)
    db.session.commit()
    logger.info("Task deleted id=%s", task_id)


# ── Dependencies ──────────────────────────────────────────────────────────────


def would_create_cycle(task_id: str, depends_on_id: str) -> bool:
    """True when ``depends_on_id`` already reaches ``task_id`` through depends-on edges.

    Breadth-first walk from ``depends_on_id``; each task is expanded once.
    """
    visited = set()
    queue = deque([depends_on_id])
    while queue:
        current = queue.popleft()
        if current == task_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        next_ids = db.session.execute(
            select(TaskDependency.depends_on_task_id).where(TaskDependency.task_id == current)
        ).scalars().all()
        queue.extend(next_ids)
    return False


def add_dependency(task_id: str, depends_on_id: str) -> TaskDependency:
    """Record that ``task_id`` depends on ``depends_on_id``; re-adding is a no-op."""
    if task_id == depends_on_id:
        raise StateConflictError("A task cannot depend on itself")
    if db.session.get(Task, task_id) is None or db.session.get(Task, depends_on_id) is None:
        raise NotFoundError("Task", message="One or both tasks not found")

    existing = db.session.execute(
        select(TaskDependency).where(
            TaskDependency.task_id == task_id,
            TaskDependency.depends_on_task_id == depends_on_id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        return existing

    if would_create_cycle(task_id, depends_on_id):
        raise StateConflictError("Adding this dependency would create a circular dependency")

    dep = TaskDependency(task_id=task_id, depends_on_task_id=depends_on_id)
    db.session.add(dep)
    db.session.commit()
    logger.info("Task dependency %s -> %s", task_id, depends_on_id)
    return dep


def remove_dependency(task_id: str, depends_on_id: str) -> None:
    dep = db.session.execute(
        select(TaskDependency).where(
            TaskDependency.task_id == task_id,
            TaskDependency.depends_on_task_id == depends_on_id,
        )
    ).scalar_one_or_none()
    if dep is None:
        raise NotFoundError("Task dependency", message="Dependency not found")
    db.session.delete(dep)
    db.session.commit()
