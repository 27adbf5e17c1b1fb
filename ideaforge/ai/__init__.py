"""
IdeaForge
AI module.

Submodules:
    - gateway: single-call LLM adapter + response normalisation
    - parsing: fenced-JSON extraction and shape validation
    - retry: bounded retry with fallback
    - fallbacks: static payloads per operation
    - prompt_registry: prompt templates (built-in + YAML overrides)
    - export: document export (Markdown / HTML)
    - assistants: per-operation generation
"""

from flask import current_app

from ideaforge.ai.gateway import LLMGateway
from ideaforge.ai.prompt_registry import PromptRegistry
from ideaforge.ai.retry import RetryController


def init_ai(app):
    """Build the process-wide gateway and prompt registry and keep them on the app."""
    app.extensions["llm_gateway"] = LLMGateway.from_config(app.config)
    app.extensions["prompt_registry"] = PromptRegistry(app.config.get("PROMPTS_DIR"))


def get_gateway() -> LLMGateway:
    return current_app.extensions["llm_gateway"]


def ai_dependencies() -> dict:
    """Keyword arguments for constructing any assistant inside a request."""
    gateway = get_gateway()
    retry = RetryController(
        gateway,
        max_attempts=current_app.config.get("LLM_MAX_ATTEMPTS", 2),
        delay_seconds=current_app.config.get("LLM_RETRY_DELAY_SECONDS", 1.0),
    )
    return {
        "gateway": gateway,
        "prompt_registry": current_app.extensions["prompt_registry"],
        "retry": retry,
    }
