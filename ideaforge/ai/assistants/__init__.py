"""
IdeaForge
AI Assistants package.

Assistants:
    - idea_analyst: idea analysis and re-analysis with answers
    - document_writer: PRD / BRD generation
    - diagram_generator: Mermaid diagrams (ERD, SEQUENCE, SCHEMA, FLOWCHART)
    - feature_extractor: features from PRD/BRD content
    - task_planner: tasks for a feature
"""

from ideaforge.ai.assistants.idea_analyst import IdeaAnalyst
from ideaforge.ai.assistants.document_writer import DocumentWriter
from ideaforge.ai.assistants.diagram_generator import DiagramGenerator
from ideaforge.ai.assistants.feature_extractor import FeatureExtractor
from ideaforge.ai.assistants.task_planner import TaskPlanner

__all__ = [
    "IdeaAnalyst",
    "DocumentWriter",
    "DiagramGenerator",
    "FeatureExtractor",
    "TaskPlanner",
]
