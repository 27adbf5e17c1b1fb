"""Idea lifecycle service.

State machine:
    draft --analyze/refine--> draft (analysis_result set or replaced)
    draft --confirm-->        confirmed   (terminal; needs analysis_result)

Rules:
  - Text is validated and whitespace-collapsed before any LLM call.
  - db.session.commit() happens only in the services package.
  - The LLM is reached through an injected ``IdeaAnalyst``.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import func, select

from ideaforge.core.exceptions import NotFoundError, StateConflictError, ValidationError
from ideaforge.models import db
from ideaforge.models.idea import IDEA_MAX_LENGTH, IDEA_MIN_LENGTH, Idea

logger = logging.getLogger(__name__)

# action → allowed source statuses, target status, refusal message
IDEA_TRANSITIONS = {
    "analyze": {"from": ["draft"], "to": "draft",
                "refused": "Cannot analyze a confirmed idea"},
    "refine": {"from": ["draft"], "to": "draft",
               "refused": "Cannot refine a confirmed idea"},
    "confirm": {"from": ["draft"], "to": "confirmed",
                "refused": "Idea is already confirmed"},
}


def _check_transition(idea: Idea, action: str) -> str:
    rule = IDEA_TRANSITIONS[action]
    if idea.status not in rule["from"]:
        raise StateConflictError(rule["refused"])
    return rule["to"]


def normalize_idea_text(text) -> str:
    """Validate idea text and collapse internal whitespace to single spaces.

    Raises:
        ValidationError: missing, shorter than 20 or longer than 10000 characters.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Idea text is required")
    normalized = re.sub(r"\s+", " ", text.strip())
    if len(normalized) < IDEA_MIN_LENGTH:
        raise ValidationError(f"Idea must be at least {IDEA_MIN_LENGTH} characters")
    if len(normalized) > IDEA_MAX_LENGTH:
        raise ValidationError(f"Idea must not exceed {IDEA_MAX_LENGTH} characters")
    return normalized


def _validate_answers(answers) -> list[dict]:
    if not isinstance(answers, list) or not answers:
        raise ValidationError("answers must be a non-empty list of {question, answer} objects")
    cleaned = []
    for item in answers:
        if not isinstance(item, dict):
            raise ValidationError("Each answer must be an object with question and answer")
        question = item.get("question")
        answer = item.get("answer")
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Each answer needs a question")
        if not isinstance(answer, str) or not answer.strip():
            raise ValidationError("Each answer needs a non-empty answer")
        cleaned.append({"question": question.strip(), "answer": answer.strip()})
    return cleaned


# ── Queries ───────────────────────────────────────────────────────────────────


def get_idea(idea_id: str) -> Idea:
    idea = db.session.get(Idea, idea_id)
    if idea is None:
        raise NotFoundError("Idea", idea_id)
    return idea


def list_ideas(limit: int = 200, offset: int = 0) -> tuple[list[Idea], int]:
    """Ideas newest first, plus the unpaginated total."""
    total = db.session.execute(select(func.count(Idea.id))).scalar()
    items = db.session.execute(
        select(Idea).order_by(Idea.created_at.desc()).limit(limit).offset(offset)
    ).scalars().all()
    return items, total


# ── Commands ──────────────────────────────────────────────────────────────────


def create_idea(raw_text) -> Idea:
    idea = Idea(raw_text=normalize_idea_text(raw_text), status="draft")
    db.session.add(idea)
    db.session.commit()
    logger.info("Idea created id=%s chars=%d", idea.id, len(idea.raw_text))
    return idea


def delete_idea(idea_id: str) -> None:
    idea = get_idea(idea_id)
    db.session.delete(idea)
    db.session.commit()
    logger.info("Idea deleted id=%s", idea_id)


def analyze_idea(idea_id: str, analyst) -> Idea:
    """Run (or re-run) AI analysis on the idea's working text."""
    idea = get_idea(idea_id)
    _check_transition(idea, "analyze")

    idea.analysis_result = analyst.analyze(idea.working_text)
    db.session.commit()
    logger.info("Idea analyzed id=%s", idea.id)
    return idea


def refine_idea(idea_id: str, analyst, refined_text=None, answers=None) -> Idea:
    """Apply edited text and/or answers to clarifying questions while the idea is draft.

    Answers trigger a re-analysis that replaces ``analysis_result``.
    """
    idea = get_idea(idea_id)
    _check_transition(idea, "refine")

    if refined_text is None and answers is None:
        raise ValidationError("Provide refined_text or answers")

    new_text = normalize_idea_text(refined_text) if refined_text is not None else None
    cleaned = _validate_answers(answers) if answers is not None else None

    if new_text is not None:
        idea.refined_text = new_text

    if cleaned is not None:
        idea.analysis_result = analyst.reanalyze(idea.working_text, idea.analysis_result, cleaned)
        logger.info("Idea re-analyzed with %d answer(s) id=%s", len(cleaned), idea.id)

    db.session.commit()
    return idea


def confirm_idea(idea_id: str) -> Idea:
    idea = get_idea(idea_id)
    target = _check_transition(idea, "confirm")
    if not idea.analysis_result:
        raise StateConflictError("AI analysis is required before confirmation")

    idea.status = target
    db.session.commit()
    logger.info("Idea confirmed id=%s", idea.id)
    return idea
