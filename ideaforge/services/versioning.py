"""
Shared version-row bookkeeping for documents, diagrams, features and tasks.

Every ``*_versions`` table follows the same rules:
    - ``version`` is 1 for the first row of a parent, then max + 1;
    - rows are only ever appended (the parent's cascade is the only delete);
    - a snapshot carries the value that was live *before* a change.

Helpers here only stage rows on the session; the calling service commits
the snapshot and the live update together.
"""

import logging

from sqlalchemy import func, select

from ideaforge.core.exceptions import NotFoundError
from ideaforge.models import db

logger = logging.getLogger(__name__)


def next_version_number(version_model, parent_field: str, parent_id: str) -> int:
    parent_col = getattr(version_model, parent_field)
    current = db.session.execute(
        select(func.max(version_model.version)).where(parent_col == parent_id)
    ).scalar()
    return (current or 0) + 1


def snapshot(version_model, parent_field: str, parent_id: str, changelog: str | None, **fields):
    """Stage a new version row for ``parent_id`` holding ``fields``."""
    number = next_version_number(version_model, parent_field, parent_id)
    row = version_model(**{parent_field: parent_id}, version=number, changelog=changelog, **fields)
    db.session.add(row)
    db.session.flush()
    logger.debug("Snapshot %s %s v%d (%s)", version_model.__tablename__, parent_id[:8], number, changelog)
    return row


def list_versions(version_model, parent_field: str, parent_id: str) -> list:
    """All versions for a parent, newest first."""
    parent_col = getattr(version_model, parent_field)
    return db.session.execute(
        select(version_model)
        .where(parent_col == parent_id)
        .order_by(version_model.version.desc())
    ).scalars().all()


def get_version(version_model, parent_field: str, parent_id: str, version: int):
    parent_col = getattr(version_model, parent_field)
    row = db.session.execute(
        select(version_model).where(parent_col == parent_id, version_model.version == version)
    ).scalar_one_or_none()
    if row is None:
        raise NotFoundError("Version", str(version), message="Version not found")
    return row


def changed(current, new) -> bool:
    return new is not None and new != current
