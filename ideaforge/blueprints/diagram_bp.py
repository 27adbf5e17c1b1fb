"""
IdeaForge
Diagram blueprint: Mermaid diagram generation, editing and history.

Endpoints:
    DIAGRAM  /api/v1/diagrams/generate/<idea_id>          POST   (LLM) body: {"types": [...]}?
             /api/v1/diagrams/idea/<idea_id>              GET
             /api/v1/diagrams/<id>                        GET, PUT
             /api/v1/diagrams/<id>/full                   GET    (with versions)
             /api/v1/diagrams/<id>/versions               GET
             /api/v1/diagrams/<id>/revert/<version>       POST
             /api/v1/diagrams/<id>/regenerate             POST   (LLM)
"""

import logging

from flask import Blueprint

from ideaforge.ai import ai_dependencies
from ideaforge.ai.assistants import DiagramGenerator
from ideaforge.blueprints import get_json_body
from ideaforge.services import diagram_service
from ideaforge.utils.errors import api_success

logger = logging.getLogger(__name__)

diagram_bp = Blueprint("diagram", __name__, url_prefix="/api/v1")


@diagram_bp.route("/diagrams/generate/<idea_id>", methods=["POST"])
def generate_diagrams(idea_id):
    data = get_json_body()
    diagrams = diagram_service.generate_diagrams(
        idea_id, DiagramGenerator(**ai_dependencies()), types=data.get("types"),
    )
    return api_success(
        {"diagrams": [d.to_dict() for d in diagrams]},
        message=f"{len(diagrams)} diagram(s) generated", status=201,
    )


@diagram_bp.route("/diagrams/idea/<idea_id>", methods=["GET"])
def list_diagrams(idea_id):
    diagrams = diagram_service.list_diagrams_for_idea(idea_id)
    return api_success({"diagrams": [d.to_dict() for d in diagrams]})


@diagram_bp.route("/diagrams/<diagram_id>", methods=["GET"])
def get_diagram(diagram_id):
    return api_success({"diagram": diagram_service.get_diagram(diagram_id).to_dict()})


@diagram_bp.route("/diagrams/<diagram_id>/full", methods=["GET"])
def get_diagram_full(diagram_id):
    return api_success({"diagram": diagram_service.get_diagram_with_versions(diagram_id)})


@diagram_bp.route("/diagrams/<diagram_id>", methods=["PUT"])
def update_diagram(diagram_id):
    diagram = diagram_service.update_diagram(diagram_id, get_json_body(required=True))
    return api_success({"diagram": diagram.to_dict()}, message="Diagram updated")


@diagram_bp.route("/diagrams/<diagram_id>/versions", methods=["GET"])
def list_versions(diagram_id):
    versions = diagram_service.get_version_history(diagram_id)
    return api_success({"versions": [v.to_dict() for v in versions]})


@diagram_bp.route("/diagrams/<diagram_id>/revert/<int:version>", methods=["POST"])
def revert_diagram(diagram_id, version):
    diagram = diagram_service.revert_to_version(diagram_id, version)
    return api_success({"diagram": diagram.to_dict()}, message=f"Reverted to version {version}")


@diagram_bp.route("/diagrams/<diagram_id>/regenerate", methods=["POST"])
def regenerate_diagram(diagram_id):
    diagram = diagram_service.regenerate_diagram(diagram_id, DiagramGenerator(**ai_dependencies()))
    return api_success({"diagram": diagram.to_dict()}, message="Diagram regenerated")
