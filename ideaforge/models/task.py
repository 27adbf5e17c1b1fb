"""
Task models.

Task            unit of work under a feature, ordered by ``order``
TaskVersion     title/description/status snapshots
TaskDependency  self-referential N:M (task depends_on task), kept acyclic
"""

from ideaforge.models import _iso, _utcnow, _uuid, db

TASK_STATUSES = ("planned", "in_progress", "completed", "blocked")


class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    feature_id = db.Column(
        db.String(36), db.ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default="planned")
    priority = db.Column(db.String(20), nullable=False, default="medium")
    estimated_effort = db.Column(db.String(50), nullable=True, comment="free-form, e.g. 4h, 2d")
    order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    versions = db.relationship(
        "TaskVersion", backref="task", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="TaskVersion.version.desc()",
    )
    dependencies = db.relationship(
        "TaskDependency", foreign_keys="TaskDependency.task_id",
        backref="task", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    dependents = db.relationship(
        "TaskDependency", foreign_keys="TaskDependency.depends_on_task_id",
        backref="depends_on_task", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_dict(self, include_dependencies=False):
        d = {
            "id": self.id,
            "feature_id": self.feature_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "estimated_effort": self.estimated_effort,
            "order": self.order,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_dependencies:
            d["depends_on"] = [dep.depends_on_task_id for dep in self.dependencies]
            d["dependents"] = [dep.task_id for dep in self.dependents]
        return d

    def __repr__(self):
        return f"<Task {self.id[:8]} #{self.order} [{self.status}]>"


class TaskVersion(db.Model):
    __tablename__ = "task_versions"
    __table_args__ = (
        db.UniqueConstraint("task_id", "version", name="uq_task_version"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False)
    changelog = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "task_id": self.task_id,
            "version": self.version,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "changelog": self.changelog,
            "created_at": _iso(self.created_at),
        }


class TaskDependency(db.Model):
    """Edge ``task_id`` depends on ``depends_on_task_id``."""

    __tablename__ = "task_dependencies"
    __table_args__ = (
        db.UniqueConstraint("task_id", "depends_on_task_id", name="uq_tdep_task_dep"),
        db.CheckConstraint("task_id != depends_on_task_id", name="ck_tdep_no_self_ref"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    depends_on_task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "task_id": self.task_id,
            "depends_on_task_id": self.depends_on_task_id,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<TaskDep {self.task_id[:8]} → {self.depends_on_task_id[:8]}>"
