"""
IdeaForge
Document blueprint: PRD/BRD generation, editing, history and export.

Endpoints:
    DOCUMENT  /api/v1/documents/generate/<idea_id>          POST   (LLM)
              /api/v1/documents/idea/<idea_id>              GET
              /api/v1/documents/<id>                        GET, PUT
              /api/v1/documents/<id>/full                   GET    (with versions)
              /api/v1/documents/<id>/versions               GET
              /api/v1/documents/<id>/revert/<version>       POST
              /api/v1/documents/<id>/regenerate             POST   (LLM)
              /api/v1/documents/<id>/export/<format>        GET    markdown | html
"""

import logging

from flask import Blueprint

from ideaforge.ai import ai_dependencies
from ideaforge.ai.assistants import DocumentWriter
from ideaforge.blueprints import get_json_body
from ideaforge.services import document_service
from ideaforge.utils.errors import api_success

logger = logging.getLogger(__name__)

document_bp = Blueprint("document", __name__, url_prefix="/api/v1")


@document_bp.route("/documents/generate/<idea_id>", methods=["POST"])
def generate_documents(idea_id):
    documents = document_service.generate_documents(idea_id, DocumentWriter(**ai_dependencies()))
    return api_success(
        {"documents": [d.to_dict() for d in documents]},
        message="Documents generated", status=201,
    )


@document_bp.route("/documents/idea/<idea_id>", methods=["GET"])
def list_documents(idea_id):
    documents = document_service.list_documents_for_idea(idea_id)
    return api_success({"documents": [d.to_dict() for d in documents]})


@document_bp.route("/documents/<document_id>", methods=["GET"])
def get_document(document_id):
    return api_success({"document": document_service.get_document(document_id).to_dict()})


@document_bp.route("/documents/<document_id>/full", methods=["GET"])
def get_document_full(document_id):
    return api_success({"document": document_service.get_document_with_versions(document_id)})


@document_bp.route("/documents/<document_id>", methods=["PUT"])
def update_document(document_id):
    document = document_service.update_document(document_id, get_json_body(required=True))
    return api_success({"document": document.to_dict()}, message="Document updated")


@document_bp.route("/documents/<document_id>/versions", methods=["GET"])
def list_versions(document_id):
    versions = document_service.get_version_history(document_id)
    return api_success({"versions": [v.to_dict() for v in versions]})


@document_bp.route("/documents/<document_id>/revert/<int:version>", methods=["POST"])
def revert_document(document_id, version):
    document = document_service.revert_to_version(document_id, version)
    return api_success({"document": document.to_dict()}, message=f"Reverted to version {version}")


@document_bp.route("/documents/<document_id>/regenerate", methods=["POST"])
def regenerate_document(document_id):
    document = document_service.regenerate_document(document_id, DocumentWriter(**ai_dependencies()))
    return api_success({"document": document.to_dict()}, message="Document regenerated")


@document_bp.route("/documents/<document_id>/export/<fmt>", methods=["GET"])
def export_document(document_id, fmt):
    return api_success(document_service.export_document(document_id, fmt))
