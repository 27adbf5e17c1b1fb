"""
Diagram Generator Assistant.

One Mermaid diagram per call, for a single type:
    ERD        erDiagram
    SEQUENCE   sequenceDiagram
    SCHEMA     graph (architecture)
    FLOWCHART  flowchart
"""

from ideaforge.ai.assistants.base import BaseAssistant
from ideaforge.ai.fallbacks import diagram_fallback
from ideaforge.ai.parsing import DIAGRAM_SHAPE, parser_for

_TEMPLATES = {
    "ERD": "diagram_erd",
    "SEQUENCE": "diagram_sequence",
    "SCHEMA": "diagram_schema",
    "FLOWCHART": "diagram_flowchart",
}


class DiagramGenerator(BaseAssistant):

    def generate(self, diagram_type: str, idea_text: str) -> dict:
        """Return ``{"title", "mermaidCode"}``; raises UpstreamUnavailableError when every call fails."""
        template = _TEMPLATES.get(diagram_type)
        if template is None:
            raise ValueError(f"Unknown diagram type: {diagram_type}")

        outcome = self.retry.attempt(
            lambda: self._prompt(template, idea_text=idea_text),
            parser_for(DIAGRAM_SHAPE),
            lambda: diagram_fallback(diagram_type, idea_text),
            operation=template,
        )
        return outcome.value
