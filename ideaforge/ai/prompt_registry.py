"""
IdeaForge
Prompt Registry.

Prompt template management with:
    - Built-in templates for every generation operation
    - Optional overrides loaded from YAML files in PROMPTS_DIR
    - {{variable}} substitution
    - Version tracking

Usage:
    from ideaforge.ai.prompt_registry import PromptRegistry
    registry = PromptRegistry()
    prompt = registry.render_prompt("analyze_idea", idea_text="A marketplace for ...")
"""

import logging
import re
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


class PromptTemplate:
    """A single prompt template with metadata."""

    def __init__(self, name: str, version: str, system: str, user: str,
                 description: str = "", metadata: dict | None = None):
        self.name = name
        self.version = version
        self.system = system
        self.user = user
        self.description = description
        self.metadata = metadata or {}

    def render(self, **variables) -> list[dict]:
        """
        Render template with variables, returning chat messages.

        Variables are replaced using {{variable_name}} syntax.

        Returns:
            List of message dicts: [{"role": "system", "content": "..."}, ...]
        """
        system_rendered = self._substitute(self.system, variables)
        user_rendered = self._substitute(self.user, variables)

        messages = []
        if system_rendered.strip():
            messages.append({"role": "system", "content": system_rendered})
        if user_rendered.strip():
            messages.append({"role": "user", "content": user_rendered})
        return messages

    @staticmethod
    def _substitute(template: str, variables: dict) -> str:
        """Replace {{var}} placeholders with values; unknown names are left as-is."""
        def replacer(match):
            key = match.group(1).strip()
            return str(variables.get(key, f"{{{{{key}}}}}"))
        return re.sub(r'\{\{(\s*\w+\s*)\}\}', replacer, template)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "system_preview": self.system[:200],
            "user_preview": self.user[:200],
        }


class PromptRegistry:
    """
    Registry for loading and managing prompt templates.

    Built-in templates are registered first; YAML files found in
    ``prompts_dir`` replace them by (name, version).
    """

    def __init__(self, prompts_dir: str | None = None):
        self._prompts_dir = prompts_dir
        self._templates: dict[str, dict[str, PromptTemplate]] = {}  # name → {version → template}
        self._load_defaults()
        if prompts_dir:
            self._load_from_dir()

    def _load_defaults(self):
        for tpl in _DEFAULT_TEMPLATES:
            self._register(tpl)

    def _load_from_dir(self):
        """Load prompt templates from YAML files."""
        prompts_path = Path(self._prompts_dir)
        if not prompts_path.exists():
            logger.debug("Prompts directory not found: %s. Using defaults only.", self._prompts_dir)
            return

        for yaml_file in sorted(prompts_path.glob("*.yaml")):
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.error("Failed to load prompt %s: %s", yaml_file.name, e)
                continue
            if not data or not isinstance(data, dict):
                continue

            tpl = PromptTemplate(
                name=data.get("name", yaml_file.stem),
                version=data.get("version", "v1"),
                system=data.get("system", ""),
                user=data.get("user", ""),
                description=data.get("description", ""),
                metadata=data.get("metadata", {}),
            )
            self._register(tpl)
            logger.info("Loaded prompt template: %s (%s) from %s",
                        tpl.name, tpl.version, yaml_file.name)

    def _register(self, template: PromptTemplate):
        self._templates.setdefault(template.name, {})[template.version] = template

    def get(self, name: str, version: str = "v1") -> PromptTemplate | None:
        return self._templates.get(name, {}).get(version)

    def render(self, name: str, version: str = "v1", **variables) -> list[dict]:
        """
        Render a prompt template with variables.

        Raises:
            KeyError: If template not found.
        """
        tpl = self.get(name, version)
        if not tpl:
            raise KeyError(f"Prompt template not found: {name} {version}")
        return tpl.render(**variables)

    def render_prompt(self, name: str, version: str = "v1", **variables) -> str:
        """Render to the single prompt string the gateway sends."""
        return "\n\n".join(m["content"] for m in self.render(name, version, **variables))

    def list_templates(self) -> list[dict]:
        return [tpl.to_dict() for versions in self._templates.values() for tpl in versions.values()]


# ── Built-in Default Templates ────────────────────────────────────────────────

_JSON_OBJECT_ONLY = (
    "You MUST respond with ONLY a valid JSON object in the following format. "
    "Do not include any text before or after the JSON."
)
_JSON_ARRAY_ONLY = (
    "You MUST respond with ONLY a valid JSON array in the following format. "
    "Do not include any text before or after the JSON."
)

_ANALYSIS_FORMAT = (
    "{\n"
    '  "missingDetails": ["Missing details that should be specified"],\n'
    '  "complementarySuggestions": ["Complementary features or improvements"],\n'
    '  "constraintsAndRisks": ["Potential constraints, risks, or challenges"],\n'
    '  "clarifyingQuestions": ["Questions to clarify requirements"]\n'
    "}"
)

_DIAGRAM_RULES = (
    "**Rules:**\n"
    "- Output ONLY valid JSON, no markdown code blocks\n"
    "- Escape newlines inside mermaidCode as \\n\n"
)

_DEFAULT_TEMPLATES = [
    PromptTemplate(
        name="analyze_idea",
        version="v1",
        description="First-pass analysis of a raw software idea",
        system=(
            "You are an expert software architect and product analyst. Your task is to analyze "
            "a software idea and provide structured feedback.\n\n"
            "**Instructions:**\n"
            "1. Identify missing details that would be needed for implementation\n"
            "2. Suggest complementary features that could enhance the product\n"
            "3. Identify potential constraints, risks, or challenges\n"
            "4. Generate clarifying questions to better understand the requirements\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n{_ANALYSIS_FORMAT}\n\n"
            "**Rules:**\n"
            "- Output ONLY valid JSON, no markdown code blocks\n"
            "- Each array should contain 2-5 items\n"
            "- Be specific and actionable; ask questions instead of making assumptions\n"
            "- Consider scalability, security, and user experience"
        ),
        user="**Software Idea to Analyze:**\n{{idea_text}}",
    ),
    PromptTemplate(
        name="reanalyze_idea",
        version="v1",
        description="Analysis refreshed with the user's answers to clarifying questions",
        system=(
            "You are an expert software architect and product analyst. A previous analysis of "
            "this software idea raised clarifying questions and the user has answered some of "
            "them. Re-analyze the idea taking the answers into account and provide structured "
            "feedback.\n\n"
            "**Instructions:**\n"
            "1. Drop missing details and questions the answers have resolved\n"
            "2. Keep or refine the points that remain open\n"
            "3. Add new risks or suggestions the answers reveal\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n{_ANALYSIS_FORMAT}\n\n"
            "**Rules:**\n"
            "- Output ONLY valid JSON, no markdown code blocks\n"
            "- Each array should contain 0-5 items"
        ),
        user=(
            "**Software Idea:**\n{{idea_text}}\n\n"
            "**Previous Analysis:**\n{{previous_analysis}}\n\n"
            "**Answers to Clarifying Questions:**\n{{answers}}"
        ),
    ),
    PromptTemplate(
        name="generate_prd",
        version="v1",
        description="Product Requirements Document as HTML",
        system=(
            "You are an expert software product manager. Your task is to generate a comprehensive "
            "Product Requirements Document (PRD) from the provided software idea and analysis.\n\n"
            "Format the content as HTML (<h2>, <h3>, <p>, <ul>, <li>, ...).\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n"
            "{\n"
            '  "title": "PRD: [Product Name]",\n'
            '  "content": "<h2>1. Product Overview</h2><p>...</p><h2>2. Objectives</h2>..."\n'
            "}\n\n"
            "**Required Sections in the content:**\n"
            "1. Product Overview\n2. Objectives\n3. Target Users\n"
            "4. Functional Requirements (with acceptance criteria)\n"
            "5. Non-Functional Requirements\n6. User Stories\n"
            "7. Assumptions & Dependencies\n8. Success Metrics\n\n"
            "**Rules:**\n"
            "- Output ONLY valid JSON; content must be valid HTML\n"
            "- Focus on what the product should do, not how to build it\n"
            "- Make requirements measurable where possible"
        ),
        user=(
            "**Software Idea:**\n{{idea_text}}\n\n"
            "**AI Analysis (if available):**\n{{analysis}}"
        ),
    ),
    PromptTemplate(
        name="generate_brd",
        version="v1",
        description="Business Requirements Document as HTML",
        system=(
            "You are an expert business analyst. Your task is to generate a comprehensive "
            "Business Requirements Document (BRD) from the provided software idea and analysis.\n\n"
            "Format the content as HTML (<h2>, <h3>, <p>, <ul>, <li>, ...).\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n"
            "{\n"
            '  "title": "BRD: [Product Name]",\n'
            '  "content": "<h2>1. Executive Summary</h2><p>...</p><h2>2. Business Objectives</h2>..."\n'
            "}\n\n"
            "**Required Sections in the content:**\n"
            "1. Executive Summary\n2. Business Objectives\n3. Stakeholders\n"
            "4. Current State\n5. Desired State\n6. Business Requirements\n"
            "7. Constraints & Assumptions\n8. Risk Assessment\n"
            "9. Budget & Timeline\n10. Success Criteria\n\n"
            "**Rules:**\n"
            "- Output ONLY valid JSON; content must be valid HTML\n"
            "- Focus on business value, not technical implementation\n"
            "- Include measurable success criteria"
        ),
        user=(
            "**Software Idea:**\n{{idea_text}}\n\n"
            "**AI Analysis (if available):**\n{{analysis}}"
        ),
    ),
    PromptTemplate(
        name="diagram_erd",
        version="v1",
        description="Entity-Relationship diagram in Mermaid erDiagram syntax",
        system=(
            "You are an expert database architect. Generate an Entity-Relationship Diagram in "
            "Mermaid erDiagram syntax for the software idea provided. Identify the main entities, "
            "their key attributes with PK/FK annotations, and the relationships between them "
            "(5-10 entities max).\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n"
            '{"title": "Brief title", "mermaidCode": "erDiagram\\n    USER {\\n        string id PK\\n    }"}\n\n'
            + _DIAGRAM_RULES
        ),
        user="**Software Idea:**\n{{idea_text}}",
    ),
    PromptTemplate(
        name="diagram_sequence",
        version="v1",
        description="Main user flow in Mermaid sequenceDiagram syntax",
        system=(
            "You are an expert software architect. Generate a Sequence Diagram in Mermaid "
            "sequenceDiagram syntax showing the main user flow for the software idea: actors, "
            "systems, API calls and responses, 5-15 steps, with error handling where important.\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n"
            '{"title": "Brief title", "mermaidCode": "sequenceDiagram\\n    participant User\\n    User->>Frontend: Action"}\n\n'
            + _DIAGRAM_RULES
        ),
        user="**Software Idea:**\n{{idea_text}}",
    ),
    PromptTemplate(
        name="diagram_schema",
        version="v1",
        description="High-level architecture in Mermaid graph syntax",
        system=(
            "You are an expert systems architect. Generate a high-level Architecture Diagram in "
            "Mermaid graph syntax showing system components (frontend, backend, services, "
            "databases, external APIs) and the data flow between them. Group related components "
            "with subgraphs.\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n"
            '{"title": "Brief title", "mermaidCode": "graph TB\\n    A[Web App] --> B[API Server]"}\n\n'
            + _DIAGRAM_RULES
        ),
        user="**Software Idea:**\n{{idea_text}}",
    ),
    PromptTemplate(
        name="diagram_flowchart",
        version="v1",
        description="Main business process in Mermaid flowchart syntax",
        system=(
            "You are an expert process designer. Generate a Flowchart in Mermaid syntax showing "
            "the main business process or user workflow: start and end points, decision points, "
            "alternative paths (10-20 nodes max).\n\n"
            f"**Output Format:**\n{_JSON_OBJECT_ONLY}\n\n"
            '{"title": "Brief title", "mermaidCode": "flowchart TD\\n    A([Start]) --> B{Decision}"}\n\n'
            + _DIAGRAM_RULES
        ),
        user="**Software Idea:**\n{{idea_text}}",
    ),
    PromptTemplate(
        name="extract_features",
        version="v1",
        description="Feature list from PRD/BRD content",
        system=(
            "You are an expert software architect and project planner. Your task is to analyze "
            "software requirements documents (PRD/BRD) and extract the main features that need "
            "to be implemented. Each feature is a distinct, independently developable grouping "
            "of user-facing functionality or core system capability.\n\n"
            f"**Output Format:**\n{_JSON_ARRAY_ONLY}\n\n"
            '[{"title": "Feature Title", "description": "What the feature does, 2-4 sentences"}]\n\n'
            "**Rules:**\n"
            "- Output ONLY a valid JSON array, no markdown code blocks\n"
            "- Extract 3-8 features depending on project complexity\n"
            "- Features must not overlap"
        ),
        user="**Requirements Documents:**\n{{documents_content}}",
    ),
    PromptTemplate(
        name="generate_tasks",
        version="v1",
        description="Development tasks for one feature",
        system=(
            "You are an expert software engineer and project manager. Your task is to break down "
            "a software feature into specific, actionable development tasks, each completable by "
            "a single developer, ordered by dependency, covering database, API, business logic, "
            "UI and testing work.\n\n"
            f"**Output Format:**\n{_JSON_ARRAY_ONLY}\n\n"
            '[{"title": "Task Title", "description": "What needs to be implemented", '
            '"priority": "low|medium|high|critical", "estimatedEffort": "2h|4h|1d|2d|1w"}]\n\n'
            "**Rules:**\n"
            "- Output ONLY a valid JSON array, no markdown code blocks\n"
            "- Generate 4-10 tasks per feature\n"
            "- Priority reflects importance and blocking nature"
        ),
        user=(
            "**Feature to Break Down:**\n"
            "Title: {{feature_title}}\n\n"
            "Description: {{feature_description}}"
        ),
    ),
]
