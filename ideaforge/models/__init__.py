"""
IdeaForge
Database models.

    - idea:     Idea (raw/refined text, analysis, draft → confirmed)
    - document: Document (PRD/BRD) + DocumentVersion
    - diagram:  Diagram (Mermaid) + DiagramVersion
    - feature:  Feature + FeatureVersion + FeatureDiagramLink
    - task:     Task + TaskVersion + TaskDependency
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None
