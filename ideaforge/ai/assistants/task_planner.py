"""
Task Planner Assistant: breaks one feature into development tasks.

Same best-effort parsing as the feature extractor; priorities outside
low|medium|high|critical are coerced to ``medium``.
"""

import logging

from ideaforge.ai.assistants.base import BaseAssistant
from ideaforge.ai.fallbacks import task_fallback
from ideaforge.ai.parsing import extract_json_array
from ideaforge.core.exceptions import UpstreamUnavailableError
from ideaforge.models.feature import PRIORITIES

logger = logging.getLogger(__name__)

UNTITLED_TASK = "Untitled Task"
NO_DESCRIPTION = "No description provided"


def _text(value, default: str | None) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class TaskPlanner(BaseAssistant):

    def suggest(self, feature_title: str, feature_description: str) -> list[dict]:
        prompt = self._prompt(
            "generate_tasks",
            feature_title=feature_title,
            feature_description=feature_description,
        )
        try:
            raw = self.gateway.call_llm(prompt)
        except Exception as e:
            logger.error("Task suggestion LLM call failed: %s", e)
            raise UpstreamUnavailableError() from e

        return self.parse_tasks(raw)

    @staticmethod
    def parse_tasks(raw: str) -> list[dict]:
        items = extract_json_array(raw)
        if items is None:
            logger.warning("No task array in LLM reply, using fallback item")
            items = task_fallback(raw)

        tasks = []
        for item in items:
            priority = item.get("priority")
            tasks.append({
                "title": _text(item.get("title"), UNTITLED_TASK),
                "description": _text(item.get("description"), NO_DESCRIPTION),
                "priority": priority if priority in PRIORITIES else "medium",
                "estimated_effort": _text(item.get("estimatedEffort"), None),
            })
        return tasks
