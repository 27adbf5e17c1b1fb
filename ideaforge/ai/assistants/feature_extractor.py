"""
Feature Extractor Assistant.

Reads the combined PRD/BRD text and returns a list of
``{"title", "description"}`` items. Parsing is best-effort: the first JSON
array found in the reply is used, and when none decodes a single item
carrying the head of the raw reply is returned, so callers always get at
least one feature.
"""

import logging

from ideaforge.ai.assistants.base import BaseAssistant
from ideaforge.ai.fallbacks import feature_fallback
from ideaforge.ai.parsing import extract_json_array
from ideaforge.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

UNTITLED_FEATURE = "Untitled Feature"
NO_DESCRIPTION = "No description provided"


def _text(value, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class FeatureExtractor(BaseAssistant):

    def extract(self, documents_content: str) -> list[dict]:
        prompt = self._prompt("extract_features", documents_content=documents_content)
        try:
            raw = self.gateway.call_llm(prompt)
        except Exception as e:
            logger.error("Feature extraction LLM call failed: %s", e)
            raise UpstreamUnavailableError() from e

        return self.parse_features(raw)

    @staticmethod
    def parse_features(raw: str) -> list[dict]:
        items = extract_json_array(raw)
        if items is None:
            logger.warning("No feature array in LLM reply, using fallback item")
            return feature_fallback(raw)
        return [
            {
                "title": _text(item.get("title"), UNTITLED_FEATURE),
                "description": _text(item.get("description"), NO_DESCRIPTION),
            }
            for item in items
        ]
