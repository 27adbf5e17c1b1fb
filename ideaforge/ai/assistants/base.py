"""Shared wiring for the generation assistants."""

import logging

from ideaforge.ai.prompt_registry import PromptRegistry
from ideaforge.ai.retry import RetryController

logger = logging.getLogger(__name__)


class BaseAssistant:
    """
    Holds the gateway, prompt registry and retry controller an assistant needs.

    Pass ``retry`` to share one configured controller; otherwise a default
    one (2 attempts, 1s pause) is built around ``gateway``.
    """

    def __init__(self, gateway=None, prompt_registry=None, retry=None):
        if gateway is None and retry is None:
            raise ValueError(f"{type(self).__name__} needs a gateway or a retry controller")
        self.gateway = gateway if gateway is not None else retry.gateway
        self.prompt_registry = prompt_registry or PromptRegistry()
        self.retry = retry or RetryController(self.gateway)

    def _prompt(self, name: str, **variables) -> str:
        return self.prompt_registry.render_prompt(name, **variables)
