"""
IdeaForge
Idea blueprint: submission, AI analysis, refinement and confirmation.

Endpoints:
    IDEA    /api/v1/ideas                    GET, POST
            /api/v1/ideas/<id>               GET, DELETE
            /api/v1/ideas/<id>/analyze       POST   (LLM)
            /api/v1/ideas/<id>/refine        POST   (LLM when answers given)
            /api/v1/ideas/<id>/confirm       POST
"""

import logging

from flask import Blueprint

from ideaforge.ai import ai_dependencies
from ideaforge.ai.assistants import IdeaAnalyst
from ideaforge.auth import require_role
from ideaforge.blueprints import get_json_body, parse_pagination
from ideaforge.services import idea_service
from ideaforge.utils.errors import api_success

logger = logging.getLogger(__name__)

idea_bp = Blueprint("idea", __name__, url_prefix="/api/v1")


@idea_bp.route("/ideas", methods=["POST"])
def create_idea():
    data = get_json_body(required=True)
    idea = idea_service.create_idea(data.get("raw_text"))
    return api_success({"idea": idea.to_dict()}, message="Idea created", status=201)


@idea_bp.route("/ideas", methods=["GET"])
def list_ideas():
    limit, offset = parse_pagination()
    ideas, total = idea_service.list_ideas(limit=limit, offset=offset)
    return api_success({"items": [i.to_dict() for i in ideas], "total": total})


@idea_bp.route("/ideas/<idea_id>", methods=["GET"])
def get_idea(idea_id):
    return api_success({"idea": idea_service.get_idea(idea_id).to_dict()})


@idea_bp.route("/ideas/<idea_id>", methods=["DELETE"])
@require_role("admin")
def delete_idea(idea_id):
    idea_service.delete_idea(idea_id)
    return api_success(message="Idea deleted")


@idea_bp.route("/ideas/<idea_id>/analyze", methods=["POST"])
def analyze_idea(idea_id):
    idea = idea_service.analyze_idea(idea_id, IdeaAnalyst(**ai_dependencies()))
    return api_success({"idea": idea.to_dict()}, message="Idea analyzed")


@idea_bp.route("/ideas/<idea_id>/refine", methods=["POST"])
def refine_idea(idea_id):
    data = get_json_body(required=True)
    idea = idea_service.refine_idea(
        idea_id,
        IdeaAnalyst(**ai_dependencies()),
        refined_text=data.get("refined_text"),
        answers=data.get("answers"),
    )
    return api_success({"idea": idea.to_dict()}, message="Idea refined")


@idea_bp.route("/ideas/<idea_id>/confirm", methods=["POST"])
def confirm_idea(idea_id):
    idea = idea_service.confirm_idea(idea_id)
    return api_success({"idea": idea.to_dict()}, message="Idea confirmed")
