"""
Document Writer Assistant: PRD / BRD generation.

Returns ``{"title": ..., "content": <html>}``. When the model keeps
returning unusable output the templated skeleton from
``ideaforge.ai.fallbacks`` is used, with the idea text embedded.
"""

import json
import logging

from ideaforge.ai.assistants.base import BaseAssistant
from ideaforge.ai.fallbacks import document_fallback
from ideaforge.ai.parsing import DOCUMENT_SHAPE, parser_for

logger = logging.getLogger(__name__)

_TEMPLATES = {
    "PRD": "generate_prd",
    "BRD": "generate_brd",
}


class DocumentWriter(BaseAssistant):

    def generate(self, doc_type: str, idea_text: str, analysis: dict | None = None) -> dict:
        template = _TEMPLATES.get(doc_type)
        if template is None:
            raise ValueError(f"Unknown document type: {doc_type}")

        analysis_str = json.dumps(analysis, indent=2) if analysis else "No analysis available"
        outcome = self.retry.attempt(
            lambda: self._prompt(template, idea_text=idea_text, analysis=analysis_str),
            parser_for(DOCUMENT_SHAPE),
            lambda: document_fallback(doc_type, idea_text),
            operation=template,
        )
        if outcome.degraded:
            logger.info("%s for idea served from fallback template", doc_type)
        return outcome.value
