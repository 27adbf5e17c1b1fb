"""
Document models: PRD / BRD generated from a confirmed idea.

Document         live row (title, HTML content, draft|published)
DocumentVersion  append-only content snapshots, version 1..N per document
"""

from ideaforge.models import _iso, _utcnow, _uuid, db

DOCUMENT_TYPES = ("PRD", "BRD")
DOCUMENT_STATUSES = {"draft", "published"}


class Document(db.Model):
    __tablename__ = "documents"
    __table_args__ = (
        db.UniqueConstraint("idea_id", "type", name="uq_document_idea_type"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    idea_id = db.Column(
        db.String(36), db.ForeignKey("ideas.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(db.String(10), nullable=False, comment="PRD | BRD")
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default="draft")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    versions = db.relationship(
        "DocumentVersion", backref="document", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="DocumentVersion.version.desc()",
    )

    def to_dict(self, include_versions=False):
        d = {
            "id": self.id,
            "idea_id": self.idea_id,
            "type": self.type,
            "title": self.title,
            "content": self.content,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_versions:
            d["versions"] = [v.to_dict() for v in self.versions]
        return d

    def __repr__(self):
        return f"<Document {self.type} {self.id[:8]}>"


class DocumentVersion(db.Model):
    __tablename__ = "document_versions"
    __table_args__ = (
        db.UniqueConstraint("document_id", "version", name="uq_document_version"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    document_id = db.Column(
        db.String(36), db.ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version = db.Column(db.Integer, nullable=False)
    content = db.Column(db.Text, nullable=False)
    changelog = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "document_id": self.document_id,
            "version": self.version,
            "content": self.content,
            "changelog": self.changelog,
            "created_at": _iso(self.created_at),
        }
