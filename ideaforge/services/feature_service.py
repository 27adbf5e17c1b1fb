"""Feature service: extraction from PRD/BRD, manual CRUD, versions, diagram links.

Title/description edits snapshot the previous pair before applying.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from ideaforge.core.exceptions import NotFoundError, ValidationError
from ideaforge.models import db
from ideaforge.models.diagram import Diagram
from ideaforge.models.document import Document
from ideaforge.models.feature import (
    FEATURE_SOURCES,
    FEATURE_STATUSES,
    PRIORITIES,
    Feature,
    FeatureDiagramLink,
    FeatureVersion,
)
from ideaforge.services import fields, versioning
from ideaforge.services.idea_service import get_idea

logger = logging.getLogger(__name__)

INITIAL_CHANGELOG = "Initial version"
EXTRACTED_CHANGELOG = "Initial generation"
DEFAULT_UPDATE_CHANGELOG = "Feature updated"
MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10


def _snapshot(feature: Feature, changelog: str):
    return versioning.snapshot(
        FeatureVersion, "feature_id", feature.id, changelog,
        title=feature.title, description=feature.description,
    )


def combine_documents(documents: list[Document]) -> str:
    """Join documents as ``### TYPE: title`` blocks separated by horizontal rules."""
    return "\n\n---\n\n".join(
        f"### {doc.type}: {doc.title}\n\n{doc.content}" for doc in documents
    )


# ── Queries ───────────────────────────────────────────────────────────────────


def get_feature(feature_id: str) -> Feature:
    feature = db.session.get(Feature, feature_id)
    if feature is None:
        raise NotFoundError("Feature", feature_id)
    return feature


def get_feature_with_tasks(feature_id: str) -> dict:
    """Feature dict with ordered tasks and linked diagram ids."""
    return get_feature(feature_id).to_dict(include_tasks=True)


def list_features_for_idea(idea_id: str) -> list[Feature]:
    """Features of an idea, newest first."""
    get_idea(idea_id)
    return db.session.execute(
        select(Feature).where(Feature.idea_id == idea_id).order_by(Feature.created_at.desc())
    ).scalars().all()


def get_version_history(feature_id: str) -> list[FeatureVersion]:
    get_feature(feature_id)
    return versioning.list_versions(FeatureVersion, "feature_id", feature_id)


# ── Commands ──────────────────────────────────────────────────────────────────


def extract_features(idea_id: str, extractor) -> list[Feature]:
    """Create features from the idea's PRD/BRD with source ``auto``."""
    idea = get_idea(idea_id)
    documents = db.session.execute(
        select(Document).where(Document.idea_id == idea_id).order_by(Document.type.desc())
    ).scalars().all()
    if not documents:
        raise NotFoundError(
            "Document", message="No documents found for this idea. Please generate PRD/BRD first.",
        )

    items = extractor.extract(combine_documents(documents))

    features = []
    for item in items:
        feature = Feature(
            idea_id=idea.id, title=item["title"][:255], description=item["description"],
            source="auto", priority="medium", status="active",
        )
        db.session.add(feature)
        db.session.flush()
        _snapshot(feature, EXTRACTED_CHANGELOG)
        features.append(feature)

    db.session.commit()
    logger.info("Extracted %d feature(s) for idea=%s", len(features), idea.id)
    return features


def create_feature(idea_id: str, data: dict) -> Feature:
    idea = get_idea(idea_id)

    title = (data.get("title") or "").strip() if isinstance(data.get("title"), str) else ""
    description = (
        (data.get("description") or "").strip() if isinstance(data.get("description"), str) else ""
    )
    if len(title) < MIN_TITLE_LENGTH:
        raise ValidationError(f"Feature title must be at least {MIN_TITLE_LENGTH} characters")
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Feature description must be at least {MIN_DESCRIPTION_LENGTH} characters"
        )
    source = data.get("source") or "manual"
    priority = data.get("priority") or "medium"
    fields.check_choice(source, FEATURE_SOURCES, "source")
    fields.check_choice(priority, PRIORITIES, "priority")

    feature = Feature(
        idea_id=idea.id, title=title, description=description,
        source=source, priority=priority, status="active",
    )
    db.session.add(feature)
    db.session.flush()
    _snapshot(feature, INITIAL_CHANGELOG)
    db.session.commit()
    logger.info("Feature created id=%s idea=%s", feature.id, idea.id)
    return feature


def update_feature(feature_id: str, data: dict) -> Feature:
    feature = get_feature(feature_id)

    title = data.get("title")
    description = data.get("description")
    if title is not None and (not isinstance(title, str) or len(title.strip()) < MIN_TITLE_LENGTH):
        raise ValidationError(f"Feature title must be at least {MIN_TITLE_LENGTH} characters")
    if description is not None and (
        not isinstance(description, str) or len(description.strip()) < MIN_DESCRIPTION_LENGTH
    ):
        raise ValidationError(
            f"Feature description must be at least {MIN_DESCRIPTION_LENGTH} characters"
        )
    fields.check_choice(data.get("priority"), PRIORITIES, "priority")
    fields.check_choice(data.get("status"), FEATURE_STATUSES, "status")
    changelog = fields.changelog_from(data, DEFAULT_UPDATE_CHANGELOG)

    title = title.strip() if title is not None else None
    description = description.strip() if description is not None else None
    if versioning.changed(feature.title, title) or versioning.changed(feature.description, description):
        _snapshot(feature, changelog)
    if title is not None:
        feature.title = title
    if description is not None:
        feature.description = description
    if data.get("priority") is not None:
        feature.priority = data["priority"]
    if data.get("status") is not None:
        feature.status = data["status"]

    db.session.commit()
    return feature


def revert_to_version(feature_id: str, version: int) -> Feature:
    feature = get_feature(feature_id)
    target = versioning.get_version(FeatureVersion, "feature_id", feature_id, version)

    _snapshot(feature, f"Reverted to version {version}")
    feature.title = target.title
    feature.description = target.description
    db.session.commit()
    logger.info("Feature reverted id=%s to v%d", feature.id, version)
    return feature


def delete_feature(feature_id: str) -> None:
    feature = get_feature(feature_id)
    db.session.delete(feature)
    db.session.commit()
    logger.info("Feature deleted id=%s", feature_id)


# ── Diagram links ─────────────────────────────────────────────────────────────


def link_diagram(feature_id: str, diagram_id: str) -> FeatureDiagramLink:
    """Link a diagram of the same idea; linking twice returns the existing link."""
    feature = get_feature(feature_id)
    diagram = db.session.get(Diagram, diagram_id)
    if diagram is None:
        raise NotFoundError("Diagram", diagram_id)
    if diagram.idea_id != feature.idea_id:
        raise ValidationError("Feature and diagram must belong to the same idea")

    link = db.session.execute(
        select(FeatureDiagramLink).where(
            FeatureDiagramLink.feature_id == feature_id,
            FeatureDiagramLink.diagram_id == diagram_id,
        )
    ).scalar_one_or_none()
    if link is None:
        link = FeatureDiagramLink(feature_id=feature_id, diagram_id=diagram_id)
        db.session.add(link)
        db.session.commit()
        logger.info("Linked diagram=%s to feature=%s", diagram_id, feature_id)
    return link


def unlink_diagram(feature_id: str, diagram_id: str) -> None:
    get_feature(feature_id)
    link = db.session.execute(
        select(FeatureDiagramLink).where(
            FeatureDiagramLink.feature_id == feature_id,
            FeatureDiagramLink.diagram_id == diagram_id,
        )
    ).scalar_one_or_none()
    if link is None:
        raise NotFoundError("Diagram link", message="Diagram is not linked to this feature")
    db.session.delete(link)
    db.session.commit()
