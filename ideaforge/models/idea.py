"""
Idea model.

An idea is the free-text business pitch every artifact hangs off.
It starts as ``draft``; analysis may be run (and re-run) while draft,
and ``confirm`` moves it one-way to ``confirmed``.
"""

from ideaforge.models import _iso, _utcnow, _uuid, db

IDEA_STATUSES = {"draft", "confirmed"}
IDEA_MIN_LENGTH = 20
IDEA_MAX_LENGTH = 10000


class Idea(db.Model):
    __tablename__ = "ideas"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    raw_text = db.Column(db.Text, nullable=False)
    refined_text = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    analysis_result = db.Column(
        db.JSON, nullable=True,
        comment="missingDetails / complementarySuggestions / constraintsAndRisks / clarifyingQuestions",
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    documents = db.relationship(
        "Document", backref="idea", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    diagrams = db.relationship(
        "Diagram", backref="idea", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    features = db.relationship(
        "Feature", backref="idea", lazy="select",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def working_text(self) -> str:
        """Text fed to the LLM: the refined version when one exists."""
        return self.refined_text or self.raw_text

    @property
    def is_confirmed(self) -> bool:
        return self.status == "confirmed"

    def to_dict(self):
        return {
            "id": self.id,
            "raw_text": self.raw_text,
            "refined_text": self.refined_text,
            "status": self.status,
            "analysis_result": self.analysis_result,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Idea {self.id[:8]} [{self.status}]>"
