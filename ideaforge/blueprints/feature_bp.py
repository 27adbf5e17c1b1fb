"""
IdeaForge
Feature blueprint: extraction from PRD/BRD, manual CRUD, history, diagram links.

Endpoints:
    FEATURE  /api/v1/features/extract/<idea_id>              POST   (LLM)
             /api/v1/features                                POST   body: {idea_id, title, description, ...}
             /api/v1/features/idea/<idea_id>                 GET
             /api/v1/features/<id>                           GET, PUT, DELETE
             /api/v1/features/<id>/full                      GET    (tasks + diagram ids)
             /api/v1/features/<id>/versions                  GET
             /api/v1/features/<id>/revert/<version>          POST
             /api/v1/features/<id>/diagrams/<diagram_id>     POST, DELETE
"""

import logging

from flask import Blueprint

from ideaforge.ai import ai_dependencies
from ideaforge.ai.assistants import FeatureExtractor
from ideaforge.blueprints import get_json_body
from ideaforge.core.exceptions import ValidationError
from ideaforge.services import feature_service
from ideaforge.utils.errors import api_success

logger = logging.getLogger(__name__)

feature_bp = Blueprint("feature", __name__, url_prefix="/api/v1")


@feature_bp.route("/features/extract/<idea_id>", methods=["POST"])
def extract_features(idea_id):
    features = feature_service.extract_features(idea_id, FeatureExtractor(**ai_dependencies()))
    return api_success(
        {"features": [f.to_dict() for f in features]},
        message=f"{len(features)} feature(s) extracted", status=201,
    )


@feature_bp.route("/features", methods=["POST"])
def create_feature():
    data = get_json_body(required=True)
    if not data.get("idea_id"):
        raise ValidationError("idea_id is required")
    feature = feature_service.create_feature(data["idea_id"], data)
    return api_success({"feature": feature.to_dict()}, message="Feature created", status=201)


@feature_bp.route("/features/idea/<idea_id>", methods=["GET"])
def list_features(idea_id):
    features = feature_service.list_features_for_idea(idea_id)
    return api_success({"features": [f.to_dict() for f in features]})


@feature_bp.route("/features/<feature_id>", methods=["GET"])
def get_feature(feature_id):
    return api_success({"feature": feature_service.get_feature(feature_id).to_dict()})


@feature_bp.route("/features/<feature_id>/full", methods=["GET"])
def get_feature_full(feature_id):
    return api_success({"feature": feature_service.get_feature_with_tasks(feature_id)})


@feature_bp.route("/features/<feature_id>", methods=["PUT"])
def update_feature(feature_id):
    feature = feature_service.update_feature(feature_id, get_json_body(required=True))
    return api_success({"feature": feature.to_dict()}, message="Feature updated")


@feature_bp.route("/features/<feature_id>", methods=["DELETE"])
def delete_feature(feature_id):
    feature_service.delete_feature(feature_id)
    return api_success(message="Feature deleted")


@feature_bp.route("/features/<feature_id>/versions", methods=["GET"])
def list_versions(feature_id):
    versions = feature_service.get_version_history(feature_id)
    return api_success({"versions": [v.to_dict() for v in versions]})


@feature_bp.route("/features/<feature_id>/revert/<int:version>", methods=["POST"])
def revert_feature(feature_id, version):
    feature = feature_service.revert_to_version(feature_id, version)
    return api_success({"feature": feature.to_dict()}, message=f"Reverted to version {version}")


@feature_bp.route("/features/<feature_id>/diagrams/<diagram_id>", methods=["POST"])
def link_diagram(feature_id, diagram_id):
    link = feature_service.link_diagram(feature_id, diagram_id)
    return api_success({"link": link.to_dict()}, message="Diagram linked", status=201)


@feature_bp.route("/features/<feature_id>/diagrams/<diagram_id>", methods=["DELETE"])
def unlink_diagram(feature_id, diagram_id):
    feature_service.unlink_diagram(feature_id, diagram_id)
    return api_success(message="Diagram unlinked")
