"""
Idea Analyst Assistant.

Produces the four-list analysis stored on an idea:
    missingDetails, complementarySuggestions, constraintsAndRisks, clarifyingQuestions

``analyze`` works from the idea text alone; ``reanalyze`` also feeds the
previous analysis and the user's answers to its clarifying questions.
"""

import json
import logging

from ideaforge.ai.assistants.base import BaseAssistant
from ideaforge.ai.fallbacks import analysis_fallback
from ideaforge.ai.parsing import ANALYSIS_SHAPE, parser_for

logger = logging.getLogger(__name__)


def format_answers(answers: list[dict]) -> str:
    lines = []
    for i, item in enumerate(answers, start=1):
        lines.append(f"Q{i}: {item.get('question', '').strip()}")
        lines.append(f"A{i}: {item.get('answer', '').strip()}")
    return "\n".join(lines) or "No answers provided"


class IdeaAnalyst(BaseAssistant):

    def analyze(self, idea_text: str) -> dict:
        outcome = self.retry.attempt(
            lambda: self._prompt("analyze_idea", idea_text=idea_text),
            parser_for(ANALYSIS_SHAPE),
            analysis_fallback,
            operation="analyze_idea",
        )
        return outcome.value

    def reanalyze(self, idea_text: str, previous_analysis: dict | None, answers: list[dict]) -> dict:
        previous = (
            json.dumps(previous_analysis, indent=2) if previous_analysis else "No analysis available"
        )
        outcome = self.retry.attempt(
            lambda: self._prompt(
                "reanalyze_idea",
                idea_text=idea_text,
                previous_analysis=previous,
                answers=format_answers(answers),
            ),
            parser_for(ANALYSIS_SHAPE),
            analysis_fallback,
            operation="reanalyze_idea",
        )
        return outcome.value
