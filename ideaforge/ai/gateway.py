"""
IdeaForge
LLM Gateway.

Single-call adapter in front of the chat-completion provider:
    - Provider routing by model name (Anthropic Claude, OpenAI, Gemini, local stub)
    - Lazy client creation, one client per gateway instance
    - Response normalisation: any of the shapes providers return → plain text
    - Latency / size logging

There is no retry here; ``ideaforge.ai.retry.RetryController`` owns that.

Usage:
    from ideaforge.ai.gateway import LLMGateway
    gw = LLMGateway(model="claude-sonnet-4-5")
    text = gw.call_llm("Analyze this idea ...")
"""

import json
import logging
import os
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class NoContentError(Exception):
    """The provider answered, but no text could be found in the response."""


# ── Response normalisation ────────────────────────────────────────────────────

def _field(obj, name):
    """Read ``name`` from a dict or an SDK response object."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _block_text(block) -> str | None:
    if isinstance(block, str):
        return block
    text = _field(block, "text")
    return text if isinstance(text, str) else None


def extract_text(response) -> str:
    """
    Pull plain text out of a chat-completion response.

    Tried in order:
        1. ``message.content``: list of blocks (first block, string or ``{text}``) or a string
        2. top-level ``text``
        3. top-level ``content``: a string, or a list of blocks (Anthropic Messages API)

    Raises:
        NoContentError: none of the above yields non-empty text.
    """
    if isinstance(response, str):
        if response:
            return response
        raise NoContentError("No text content in response")

    text = None

    message = _field(response, "message")
    if message is not None:
        content = _field(message, "content")
        if content:
            first = content[0] if isinstance(content, (list, tuple)) else content
            text = _block_text(first)

    if not text:
        top_text = _field(response, "text")
        if isinstance(top_text, str):
            text = top_text

    if not text:
        content = _field(response, "content")
        if isinstance(content, str):
            text = content
        elif isinstance(content, (list, tuple)) and content:
            text = _block_text(content[0])

    if not text:
        raise NoContentError("No text content in response")
    return text


# ── Provider Abstract Base ────────────────────────────────────────────────────

class LLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def chat(self, messages: list, model: str, **kwargs):
        """
        Send a chat completion request.

        Args:
            messages: List of {"role": "...", "content": "..."} dicts.
            model: Model identifier string.
            **kwargs: temperature, max_tokens, etc.

        Returns:
            The provider's response, in whatever shape it comes;
            ``extract_text`` normalises it.
        """
        ...


# ── Anthropic Provider ────────────────────────────────────────────────────────

class AnthropicProvider(LLMProvider):
    """Claude API (Anthropic) provider."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY", "")
        self._client = None

    def _get_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def chat(self, messages: list, model: str = "claude-sonnet-4-5", **kwargs):
        client = self._get_client()

        system_msg = ""
        chat_messages = []
        for m in messages:
            if m["role"] == "system":
                system_msg = m["content"]
            else:
                chat_messages.append(m)

        params = {
            "model": model,
            "messages": chat_messages,
            "max_tokens": kwargs.get("max_tokens", 8192),
            "temperature": kwargs.get("temperature", 0.3),
        }
        if system_msg:
            params["system"] = system_msg

        # Message object: .content is a list of blocks with .text
        return client.messages.create(**params)


# ── OpenAI Provider ───────────────────────────────────────────────────────────

class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider. Needs the ``providers`` extra."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self._client = None

    def _get_client(self):
        if self._client is None:
            import openai
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def chat(self, messages: list, model: str = "gpt-4o-mini", **kwargs):
        client = self._get_client()
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=kwargs.get("max_tokens", 8192),
            temperature=kwargs.get("temperature", 0.3),
        )
        return {"message": {"content": response.choices[0].message.content}}


# ── Google Gemini Provider ───────────────────────────────────────────────────

class GeminiProvider(LLMProvider):
    """
    Google Gemini API provider. Needs the ``providers`` extra.

    Environment:
        GEMINI_API_KEY: obtain at https://aistudio.google.com/apikey
    """

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def chat(self, messages: list, model: str = "gemini-2.5-flash", **kwargs):
        client = self._get_client()
        from google.genai import types

        system_parts = []
        contents = []
        for m in messages:
            if m["role"] == "system":
                system_parts.append(m["content"])
            else:
                role = "model" if m["role"] == "assistant" else "user"
                contents.append(
                    types.Content(role=role, parts=[types.Part(text=m["content"])])
                )

        config = types.GenerateContentConfig(
            temperature=kwargs.get("temperature", 0.3),
            max_output_tokens=kwargs.get("max_tokens", 8192),
        )
        if system_parts:
            config.system_instruction = "\n\n".join(system_parts)

        response = client.models.generate_content(model=model, contents=contents, config=config)
        # Response object exposes the concatenated answer as .text
        return response


# ── Local Stub Provider (for dev/test without API keys) ──────────────────────

class LocalStubProvider(LLMProvider):
    """
    Local stub that returns deterministic responses for dev/testing.
    No API key required. Picks a canned payload from markers in the prompt.
    """

    def chat(self, messages: list, model: str = "local-stub", **kwargs):
        prompt = "\n".join(m["content"] for m in messages)
        return {"message": {"content": [{"type": "text", "text": self._stub_response(prompt)}]}}

    @staticmethod
    def _stub_response(prompt: str) -> str:
        lower = prompt.lower()

        if "extract the main features" in lower:
            return json.dumps([
                {"title": "User Accounts", "description": "Sign-up, login and profile management."},
                {"title": "Catalogue", "description": "Browse and search the listed items."},
            ])

        if "actionable development tasks" in lower:
            return json.dumps([
                {"title": "Design schema", "description": "Create tables for the feature.",
                 "priority": "high", "estimatedEffort": "4h"},
                {"title": "Build API endpoints", "description": "Expose CRUD endpoints.",
                 "priority": "medium", "estimatedEffort": "1d"},
            ])

        if "structured feedback" in lower:
            return json.dumps({
                "missingDetails": ["Target platform (web, mobile, both) is not specified"],
                "complementarySuggestions": ["Offer a public portfolio page per seller"],
                "constraintsAndRisks": ["Payment handling requires PCI-compliant provider"],
                "clarifyingQuestions": ["Who are the primary buyers?"],
            })

        if "product requirements document" in lower:
            return json.dumps({
                "title": "PRD: Local Draft",
                "content": "<h2>1. Product Overview</h2><p>Locally generated draft.</p>",
            })

        if "business requirements document" in lower:
            return json.dumps({
                "title": "BRD: Local Draft",
                "content": "<h2>1. Executive Summary</h2><p>Locally generated draft.</p>",
            })

        if "erdiagram" in lower:
            return json.dumps({
                "title": "Core Entities",
                "mermaidCode": "erDiagram\n    USER {\n        string id PK\n    }",
            })
        if "sequencediagram" in lower:
            return json.dumps({
                "title": "Main Flow",
                "mermaidCode": "sequenceDiagram\n    participant User\n    participant API\n    User->>API: Request",
            })
        if "flowchart td" in lower:
            return json.dumps({
                "title": "Main Process",
                "mermaidCode": "flowchart TD\n    A[Start] --> B[End]",
            })
        if "graph tb" in lower:
            return json.dumps({
                "title": "Architecture",
                "mermaidCode": "graph TB\n    A[Web App] --> B[API Server]",
            })

        return json.dumps({"message": "local stub response"})


# ── Gateway ───────────────────────────────────────────────────────────────────

class LLMGateway:
    """
    Central gateway for all LLM calls.

    One instance is built at startup and kept in
    ``app.extensions["llm_gateway"]``; generation code receives it explicitly.

    Usage:
        gw = LLMGateway(model="claude-sonnet-4-5")
        text = gw.call_llm("Generate a PRD for ...")
    """

    # Model → provider mapping
    PROVIDER_MAP = {
        # Anthropic
        "claude-sonnet-4-5": "anthropic",
        "claude-opus-4-1": "anthropic",
        "claude-3-5-haiku-20241022": "anthropic",
        # OpenAI
        "gpt-4o-mini": "openai",
        "gpt-4o": "openai",
        # Google Gemini
        "gemini-2.5-flash": "gemini",
        "gemini-2.5-pro": "gemini",
        # Local stub (dev/test)
        "local-stub": "local",
    }

    PROVIDER_CLASSES = {
        "anthropic": AnthropicProvider,
        "openai": OpenAIProvider,
        "gemini": GeminiProvider,
        "local": LocalStubProvider,
    }

    PROVIDER_KEYS = {
        "anthropic": "ANTHROPIC_API_KEY",
        "openai": "OPENAI_API_KEY",
        "gemini": "GEMINI_API_KEY",
    }

    DEFAULT_CHAT_MODEL = "claude-sonnet-4-5"

    def __init__(self, model: str | None = None, provider: str | LLMProvider | None = None):
        self.model = model or self.DEFAULT_CHAT_MODEL
        self._providers: dict[str, LLMProvider] = {}
        if isinstance(provider, LLMProvider):
            self._provider_name = "custom"
            self._providers["custom"] = provider
        else:
            self._provider_name = provider or self.PROVIDER_MAP.get(self.model, "anthropic")

    @classmethod
    def from_config(cls, config) -> "LLMGateway":
        return cls(model=config.get("LLM_MODEL"), provider=config.get("LLM_PROVIDER") or None)

    def _get_provider(self) -> tuple[LLMProvider, str]:
        """
        Resolve the configured provider, creating it on first use.
        Falls back to the local stub when the provider has no API key.
        """
        name = self._provider_name
        if name in self._providers:
            return self._providers[name], name

        env_key = self.PROVIDER_KEYS.get(name)
        if env_key and not os.getenv(env_key):
            logger.warning(
                "Provider '%s' not available (%s unset). Falling back to local stub for model '%s'.",
                name, env_key, self.model,
            )
            name = "local"
            self._provider_name = name
            if name in self._providers:
                return self._providers[name], name

        provider_cls = self.PROVIDER_CLASSES.get(name)
        if provider_cls is None:
            raise ValueError(f"Unknown LLM provider: {name}")
        self._providers[name] = provider_cls()
        return self._providers[name], name

    @property
    def provider_name(self) -> str:
        return self._get_provider()[1]

    def call_llm(self, prompt: str, **kwargs) -> str:
        """
        Send ``prompt`` as a single user message and return the reply text.

        Raises whatever the provider raises, plus ``NoContentError`` when the
        reply holds no text. Callers decide whether to retry.
        """
        provider, provider_name = self._get_provider()
        messages = [{"role": "user", "content": prompt}]

        start_time = time.time()
        try:
            response = provider.chat(messages, self.model, **kwargs)
            text = extract_text(response)
        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.warning("LLM call failed provider=%s model=%s latency_ms=%d: %s",
                           provider_name, self.model, latency_ms, e,
                           extra={"provider": provider_name})
            raise

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info("LLM call ok provider=%s model=%s prompt_chars=%d reply_chars=%d latency_ms=%d",
                    provider_name, self.model, len(prompt), len(text), latency_ms,
                    extra={"provider": provider_name})
        return text
