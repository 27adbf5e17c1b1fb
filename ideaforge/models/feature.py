"""
Feature models.

Feature             extracted from PRD/BRD or entered manually
FeatureVersion      title/description snapshots
FeatureDiagramLink  N:M feature ↔ diagram (unordered)
"""

from ideaforge.models import _iso, _utcnow, _uuid, db

FEATURE_SOURCES = {"auto", "manual", "ai_suggested"}
FEATURE_STATUSES = {"active", "archived"}
PRIORITIES = ("low", "medium", "high", "critical")


class Feature(db.Model):
    __tablename__ = "features"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    idea_id = db.Column(
        db.String(36), db.ForeignKey("ideas.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    source = db.Column(db.String(20), nullable=False, default="manual")
    status = db.Column(db.String(20), nullable=False, default="active")
    priority = db.Column(db.String(20), nullable=False, default="medium")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    tasks = db.relationship(
        "Task", backref="feature", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Task.order",
    )
    versions = db.relationship(
        "FeatureVersion", backref="feature", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="FeatureVersion.version.desc()",
    )
    diagram_links = db.relationship(
        "FeatureDiagramLink", backref="feature", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_dict(self, include_tasks=False):
        d = {
            "id": self.id,
            "idea_id": self.idea_id,
            "title": self.title,
            "description": self.description,
            "source": self.source,
            "status": self.status,
            "priority": self.priority,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_tasks:
            d["tasks"] = [t.to_dict() for t in self.tasks]
            d["diagram_ids"] = [link.diagram_id for link in self.diagram_links]
        return d

    def __repr__(self):
        return f"<Feature {self.id[:8]} {self.title[:30]}>"


class FeatureVersion(db.Model):
    __tablename__ = "feature_versions"
    __table_args__ = (
        db.UniqueConstraint("feature_id", "version", name="uq_feature_version"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    feature_id = db.Column(
        db.String(36), db.ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    changelog = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "feature_id": self.feature_id,
            "version": self.version,
            "title": self.title,
            "description": self.description,
            "changelog": self.changelog,
            "created_at": _iso(self.created_at),
        }


class FeatureDiagramLink(db.Model):
    __tablename__ = "feature_diagram_links"
    __table_args__ = (
        db.UniqueConstraint("feature_id", "diagram_id", name="uq_fdl_feature_diagram"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    feature_id = db.Column(
        db.String(36), db.ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    diagram_id = db.Column(
        db.String(36), db.ForeignKey("diagrams.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "feature_id": self.feature_id,
            "diagram_id": self.diagram_id,
            "created_at": _iso(self.created_at),
        }
