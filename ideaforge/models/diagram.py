"""
Diagram models: Mermaid diagrams generated per idea.

Diagram         live row (type, title, mermaid_code, draft|published)
DiagramVersion  append-only snapshots of mermaid_code
"""

from ideaforge.models import _iso, _utcnow, _uuid, db

DIAGRAM_TYPES = ("ERD", "SEQUENCE", "SCHEMA", "FLOWCHART")
DEFAULT_DIAGRAM_TYPES = ("ERD", "SEQUENCE", "SCHEMA")
DIAGRAM_STATUSES = {"draft", "published"}


class Diagram(db.Model):
    __tablename__ = "diagrams"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    idea_id = db.Column(
        db.String(36), db.ForeignKey("ideas.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(db.String(20), nullable=False, comment="ERD | SEQUENCE | SCHEMA | FLOWCHART")
    title = db.Column(db.String(255), nullable=False)
    mermaid_code = db.Column(db.Text, nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default="draft")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    versions = db.relationship(
        "DiagramVersion", backref="diagram", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="DiagramVersion.version.desc()",
    )

    def to_dict(self, include_versions=False):
        d = {
            "id": self.id,
            "idea_id": self.idea_id,
            "type": self.type,
            "title": self.title,
            "mermaid_code": self.mermaid_code,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_versions:
            d["versions"] = [v.to_dict() for v in self.versions]
        return d

    def __repr__(self):
        return f"<Diagram {self.type} {self.id[:8]}>"


class DiagramVersion(db.Model):
    __tablename__ = "diagram_versions"
    __table_args__ = (
        db.UniqueConstraint("diagram_id", "version", name="uq_diagram_version"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    diagram_id = db.Column(
        db.String(36), db.ForeignKey("diagrams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version = db.Column(db.Integer, nullable=False)
    mermaid_code = db.Column(db.Text, nullable=False)
    changelog = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "diagram_id": self.diagram_id,
            "version": self.version,
            "mermaid_code": self.mermaid_code,
            "changelog": self.changelog,
            "created_at": _iso(self.created_at),
        }
