"""Document (PRD/BRD) service: generation, edits, versions, export.

Rules:
  - Generation needs a confirmed idea with no documents yet.
  - Content edits, reverts and regenerations snapshot the live content
    first, in the same commit as the change.
  - The LLM is reached through an injected ``DocumentWriter``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from ideaforge.ai.export import DocumentExporter, EXPORT_FORMATS
from ideaforge.core.exceptions import NotFoundError, StateConflictError, ValidationError
from ideaforge.models import db
from ideaforge.models.document import DOCUMENT_STATUSES, DOCUMENT_TYPES, Document, DocumentVersion
from ideaforge.services import fields, versioning
from ideaforge.services.idea_service import get_idea

logger = logging.getLogger(__name__)

INITIAL_CHANGELOG = "Initial generation"
DEFAULT_UPDATE_CHANGELOG = "Content updated"
REGENERATE_CHANGELOG = "Regenerated by AI"


def _snapshot(document: Document, changelog: str):
    return versioning.snapshot(
        DocumentVersion, "document_id", document.id, changelog, content=document.content,
    )


# ── Queries ───────────────────────────────────────────────────────────────────


def get_document(document_id: str) -> Document:
    document = db.session.get(Document, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)
    return document


def get_document_with_versions(document_id: str) -> dict:
    return get_document(document_id).to_dict(include_versions=True)


def list_documents_for_idea(idea_id: str) -> list[Document]:
    get_idea(idea_id)
    return db.session.execute(
        select(Document).where(Document.idea_id == idea_id).order_by(Document.type)
    ).scalars().all()


def get_version_history(document_id: str) -> list[DocumentVersion]:
    get_document(document_id)
    return versioning.list_versions(DocumentVersion, "document_id", document_id)


def get_version(document_id: str, version: int) -> DocumentVersion:
    get_document(document_id)
    return versioning.get_version(DocumentVersion, "document_id", document_id, version)


# ── Generation ────────────────────────────────────────────────────────────────


def generate_documents(idea_id: str, writer) -> list[Document]:
    """Create the PRD and BRD for a confirmed idea, each with version 1."""
    idea = get_idea(idea_id)
    if not idea.is_confirmed:
        raise StateConflictError("Only confirmed ideas can generate documents")

    existing = db.session.execute(
        select(Document.id).where(Document.idea_id == idea_id).limit(1)
    ).first()
    if existing:
        raise StateConflictError(
            "Documents already exist for this idea. Please edit the existing documents."
        )

    # Generate everything before touching the session so a 503 leaves nothing behind
    generated = {
        doc_type: writer.generate(doc_type, idea.working_text, idea.analysis_result)
        for doc_type in DOCUMENT_TYPES
    }

    documents = []
    for doc_type in DOCUMENT_TYPES:
        payload = generated[doc_type]
        document = Document(
            idea_id=idea.id, type=doc_type,
            title=payload["title"], content=payload["content"], status="draft",
        )
        db.session.add(document)
        db.session.flush()
        _snapshot(document, INITIAL_CHANGELOG)
        documents.append(document)

    db.session.commit()
    logger.info("Documents generated idea=%s ids=%s", idea.id, [d.id for d in documents])
    return documents


def regenerate_document(document_id: str, writer) -> Document:
    document = get_document(document_id)
    idea = document.idea
    payload = writer.generate(document.type, idea.working_text, idea.analysis_result)

    _snapshot(document, REGENERATE_CHANGELOG)
    document.title = payload["title"]
    document.content = payload["content"]
    db.session.commit()
    logger.info("Document regenerated id=%s", document.id)
    return document


# ── Edits ─────────────────────────────────────────────────────────────────────


def update_document(document_id: str, data: dict) -> Document:
    """Apply title/content/status edits; a content change snapshots the previous content.

    Args:
        data: Any of title, content, status, changelog.
    """
    document = get_document(document_id)

    title = data.get("title")
    content = data.get("content")
    status = data.get("status")
    if title is not None and (not isinstance(title, str) or not title.strip()):
        raise ValidationError("title must be a non-empty string")
    if content is not None and not isinstance(content, str):
        raise ValidationError("content must be a string")
    fields.check_choice(status, DOCUMENT_STATUSES, "status")
    changelog = fields.changelog_from(data, DEFAULT_UPDATE_CHANGELOG)

    if versioning.changed(document.content, content):
        _snapshot(document, changelog)
        document.content = content
    if title is not None:
        document.title = title.strip()
    if status is not None:
        document.status = status

    db.session.commit()
    return document


def revert_to_version(document_id: str, version: int) -> Document:
    """Make ``version``'s content live again; the current content is kept as a new version."""
    document = get_document(document_id)
    target = versioning.get_version(DocumentVersion, "document_id", document_id, version)

    _snapshot(document, f"Reverted to version {version}")
    document.content = target.content
    db.session.commit()
    logger.info("Document reverted id=%s to v%d", document.id, version)
    return document


# ── Export ────────────────────────────────────────────────────────────────────


def export_document(document_id: str, fmt: str) -> dict:
    """Render a document as Markdown or standalone HTML.

    Returns:
        dict: content, filename, mime_type
    """
    document = get_document(document_id)
    if fmt not in EXPORT_FORMATS:
        raise ValidationError("Unsupported export format")
    return DocumentExporter().export(document.title, document.content, fmt)
