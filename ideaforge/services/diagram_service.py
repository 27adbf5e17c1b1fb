"""Diagram service: Mermaid diagram generation and versioning.

Each requested type is generated independently: an upstream failure on
one type is logged and skipped, the others are still saved. Only when
every type fails does the request surface a 503.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from ideaforge.core.exceptions import (
    NotFoundError,
    StateConflictError,
    UpstreamUnavailableError,
    ValidationError,
)
from ideaforge.models import db
from ideaforge.models.diagram import (
    DEFAULT_DIAGRAM_TYPES,
    DIAGRAM_STATUSES,
    DIAGRAM_TYPES,
    Diagram,
    DiagramVersion,
)
from ideaforge.services import fields, versioning
from ideaforge.services.idea_service import get_idea

logger = logging.getLogger(__name__)

INITIAL_CHANGELOG = "Initial generation"
DEFAULT_UPDATE_CHANGELOG = "Previous version"
REGENERATE_CHANGELOG = "Before regeneration"


def _snapshot(diagram: Diagram, changelog: str):
    return versioning.snapshot(
        DiagramVersion, "diagram_id", diagram.id, changelog, mermaid_code=diagram.mermaid_code,
    )


def _validate_types(types) -> list[str]:
    if types is None:
        return list(DEFAULT_DIAGRAM_TYPES)
    if not isinstance(types, list) or not types:
        raise ValidationError("types must be a non-empty list")
    invalid = [t for t in types if t not in DIAGRAM_TYPES]
    if invalid:
        raise ValidationError(
            f"Unknown diagram type(s): {', '.join(map(str, invalid))}. "
            f"Allowed: {', '.join(DIAGRAM_TYPES)}"
        )
    # de-duplicate, keep request order
    return list(dict.fromkeys(types))


# ── Queries ───────────────────────────────────────────────────────────────────


def get_diagram(diagram_id: str) -> Diagram:
    diagram = db.session.get(Diagram, diagram_id)
    if diagram is None:
        raise NotFoundError("Diagram", diagram_id)
    return diagram


def get_diagram_with_versions(diagram_id: str) -> dict:
    return get_diagram(diagram_id).to_dict(include_versions=True)


def list_diagrams_for_idea(idea_id: str) -> list[Diagram]:
    get_idea(idea_id)
    return db.session.execute(
        select(Diagram).where(Diagram.idea_id == idea_id).order_by(Diagram.created_at)
    ).scalars().all()


def get_version_history(diagram_id: str) -> list[DiagramVersion]:
    get_diagram(diagram_id)
    return versioning.list_versions(DiagramVersion, "diagram_id", diagram_id)


# ── Generation ────────────────────────────────────────────────────────────────


def generate_diagrams(idea_id: str, generator, types=None) -> list[Diagram]:
    """Generate one diagram per requested type (ERD, SEQUENCE, SCHEMA by default)."""
    idea = get_idea(idea_id)
    if not idea.is_confirmed:
        raise StateConflictError("Cannot generate diagrams for unconfirmed idea")
    requested = _validate_types(types)

    diagrams = []
    failures = []
    for diagram_type in requested:
        try:
            payload = generator.generate(diagram_type, idea.working_text)
        except UpstreamUnavailableError as e:
            logger.warning("Diagram %s skipped for idea=%s: %s", diagram_type, idea.id, e)
            failures.append(diagram_type)
            continue

        diagram = Diagram(
            idea_id=idea.id, type=diagram_type,
            title=payload["title"], mermaid_code=payload["mermaidCode"], status="draft",
        )
        db.session.add(diagram)
        db.session.flush()
        _snapshot(diagram, INITIAL_CHANGELOG)
        diagrams.append(diagram)

    if not diagrams:
        raise UpstreamUnavailableError()

    db.session.commit()
    logger.info("Diagrams generated idea=%s types=%s skipped=%s",
                idea.id, [d.type for d in diagrams], failures)
    return diagrams


def regenerate_diagram(diagram_id: str, generator) -> Diagram:
    diagram = get_diagram(diagram_id)
    payload = generator.generate(diagram.type, diagram.idea.working_text)

    _snapshot(diagram, REGENERATE_CHANGELOG)
    diagram.title = payload["title"]
    diagram.mermaid_code = payload["mermaidCode"]
    db.session.commit()
    logger.info("Diagram regenerated id=%s", diagram.id)
    return diagram


# ── Edits ─────────────────────────────────────────────────────────────────────


def update_diagram(diagram_id: str, data: dict) -> Diagram:
    """Apply title/mermaid_code/status edits; a code change snapshots the previous code."""
    diagram = get_diagram(diagram_id)

    title = data.get("title")
    code = data.get("mermaid_code")
    status = data.get("status")
    if title is not None and (not isinstance(title, str) or not title.strip()):
        raise ValidationError("title must be a non-empty string")
    if code is not None and not isinstance(code, str):
        raise ValidationError("mermaid_code must be a string")
    fields.check_choice(status, DIAGRAM_STATUSES, "status")
    changelog = fields.changelog_from(data, DEFAULT_UPDATE_CHANGELOG)

    if versioning.changed(diagram.mermaid_code, code):
        _snapshot(diagram, changelog)
        diagram.mermaid_code = code
    if title is not None:
        diagram.title = title.strip()
    if status is not None:
        diagram.status = status

    db.session.commit()
    return diagram


def revert_to_version(diagram_id: str, version: int) -> Diagram:
    diagram = get_diagram(diagram_id)
    target = versioning.get_version(DiagramVersion, "diagram_id", diagram_id, version)

    _snapshot(diagram, f"Reverted to version {version}")
    diagram.mermaid_code = target.mermaid_code
    db.session.commit()
    logger.info("Diagram reverted id=%s to v%d", diagram.id, version)
    return diagram
