"""
Static fallback payloads, one pure function per generation operation.

Returned when the model keeps answering with output that does not parse.
Every value is freshly built so callers may mutate it.
"""

import html
import re

RAW_SNIPPET_LIMIT = 500

_MANUAL_REVIEW = "AI generation encountered an issue, please review and update manually."


def analysis_fallback() -> dict:
    return {
        "missingDetails": [
            "Unable to fully analyze the idea at this time. Please provide more details.",
        ],
        "complementarySuggestions": [],
        "constraintsAndRisks": [
            "AI analysis encountered an issue. Manual review recommended.",
        ],
        "clarifyingQuestions": [
            "Could you provide more context about your target users?",
            "What is the primary problem this software aims to solve?",
        ],
    }


def prd_fallback(idea_text: str) -> dict:
    idea = html.escape(idea_text)
    return {
        "title": "PRD: Product Requirements Document",
        "content": (
            "<h2>1. Product Overview</h2>"
            f"<p>This document outlines the product requirements based on the provided idea. {_MANUAL_REVIEW}</p>"
            f"<h2>2. Original Idea</h2><p>{idea}</p>"
            "<h2>3. Functional Requirements</h2>"
            "<p>Please define the core features required for this product.</p>"
            "<h2>4. Non-Functional Requirements</h2>"
            "<p>Please specify performance, security, and scalability requirements.</p>"
        ),
    }


def brd_fallback(idea_text: str) -> dict:
    idea = html.escape(idea_text)
    return {
        "title": "BRD: Business Requirements Document",
        "content": (
            "<h2>1. Executive Summary</h2>"
            f"<p>This document outlines the business requirements based on the provided idea. {_MANUAL_REVIEW}</p>"
            "<h2>2. Business Objectives</h2>"
            "<p>Please define the key business goals for this project.</p>"
            f"<h2>3. Original Idea</h2><p>{idea}</p>"
            "<h2>4. Stakeholders</h2>"
            "<p>Please identify key stakeholders and their interests.</p>"
        ),
    }


def document_fallback(doc_type: str, idea_text: str) -> dict:
    if doc_type == "PRD":
        return prd_fallback(idea_text)
    if doc_type == "BRD":
        return brd_fallback(idea_text)
    raise ValueError(f"Unknown document type: {doc_type}")


def _mermaid_label(text: str, limit: int = 60) -> str:
    # Mermaid labels break on quotes, brackets and newlines
    label = re.sub(r'[\"\[\]{}()<>|#;`]', " ", text)
    label = re.sub(r"\s+", " ", label).strip()
    if len(label) > limit:
        label = label[:limit].rstrip() + "..."
    return label or "Idea"


def diagram_fallback(diagram_type: str, idea_text: str) -> dict:
    label = _mermaid_label(idea_text)

    if diagram_type == "ERD":
        code = (
            "erDiagram\n"
            "    USER {\n        string id PK\n        string name\n    }\n"
            "    ITEM {\n        string id PK\n        string user_id FK\n    }\n"
            "    USER ||--o{ ITEM : owns"
        )
        title = "ERD: Placeholder"
    elif diagram_type == "SEQUENCE":
        code = (
            "sequenceDiagram\n"
            "    participant User\n    participant App\n    participant Database\n"
            f"    Note over User,App: {label}\n"
            "    User->>App: Request\n    App->>Database: Query\n"
            "    Database-->>App: Result\n    App-->>User: Response"
        )
        title = "Sequence: Placeholder"
    elif diagram_type == "SCHEMA":
        code = (
            "graph TB\n"
            f'    subgraph System["{label}"]\n'
            "        A[Web App] --> B[API Server]\n"
            "        B --> C[(Database)]\n"
            "    end"
        )
        title = "Architecture: Placeholder"
    elif diagram_type == "FLOWCHART":
        code = (
            "flowchart TD\n"
            f'    A([Start]) --> B["{label}"]\n'
            "    B --> C{Review needed?}\n"
            "    C -->|Yes| D[Edit diagram]\n"
            "    C -->|No| E([End])\n"
            "    D --> E"
        )
        title = "Flowchart: Placeholder"
    else:
        raise ValueError(f"Unknown diagram type: {diagram_type}")

    return {"title": title, "mermaidCode": code}


def feature_fallback(raw_response: str) -> list[dict]:
    return [{
        "title": "Extracted Feature",
        "description": (raw_response or "")[:RAW_SNIPPET_LIMIT],
    }]


def task_fallback(raw_response: str) -> list[dict]:
    return [{
        "title": "AI-Generated Task",
        "description": (raw_response or "")[:RAW_SNIPPET_LIMIT],
    }]
