"""
IdeaForge
Task blueprint: AI task suggestion, CRUD, status, history, dependencies.

Endpoints:
    TASK  /api/v1/tasks/suggest/<feature_id>                   POST   (LLM)
          /api/v1/tasks                                        POST   body: {feature_id, title, ...}
          /api/v1/tasks/feature/<feature_id>                   GET
          /api/v1/tasks/<id>                                   GET, PUT, DELETE
          /api/v1/tasks/<id>/full                              GET    (with dependencies)
          /api/v1/tasks/<id>/status                            PATCH  body: {status}
          /api/v1/tasks/<id>/versions                          GET
          /api/v1/tasks/<id>/revert/<version>                  POST
          /api/v1/tasks/<id>/dependencies/<depends_on_id>      POST, DELETE
"""

import logging

from flask import Blueprint

from ideaforge.ai import ai_dependencies
from ideaforge.ai.assistants import TaskPlanner
from ideaforge.blueprints import get_json_body
from ideaforge.core.exceptions import ValidationError
from ideaforge.services import task_service
from ideaforge.utils.errors import api_success

logger = logging.getLogger(__name__)

task_bp = Blueprint("task", __name__, url_prefix="/api/v1")


@task_bp.route("/tasks/suggest/<feature_id>", methods=["POST"])
def suggest_tasks(feature_id):
    tasks = task_service.suggest_tasks(feature_id, TaskPlanner(**ai_dependencies()))
    return api_success(
        {"tasks": [t.to_dict() for t in tasks]},
        message=f"{len(tasks)} task(s) suggested", status=201,
    )


@task_bp.route("/tasks", methods=["POST"])
def create_task():
    data = get_json_body(required=True)
    if not data.get("feature_id"):
        raise ValidationError("feature_id is required")
    task = task_service.create_task(data["feature_id"], data)
    return api_success({"task": task.to_dict()}, message="Task created", status=201)


@task_bp.route("/tasks/feature/<feature_id>", methods=["GET"])
def list_tasks(feature_id):
    tasks = task_service.list_tasks_for_feature(feature_id)
    return api_success({"tasks": [t.to_dict() for t in tasks]})


@task_bp.route("/tasks/<task_id>", methods=["GET"])
def get_task(task_id):
    return api_success({"task": task_service.get_task(task_id).to_dict()})


@task_bp.route("/tasks/<task_id>/full", methods=["GET"])
def get_task_full(task_id):
    return api_success({"task": task_service.get_task_with_dependencies(task_id)})


@task_bp.route("/tasks/<task_id>", methods=["PUT"])
def update_task(task_id):
    task = task_service.update_task(task_id, get_json_body(required=True))
    return api_success({"task": task.to_dict()}, message="Task updated")


@task_bp.route("/tasks/<task_id>/status", methods=["PATCH"])
def update_task_status(task_id):
    data = get_json_body(required=True)
    task = task_service.update_task_status(task_id, data.get("status"))
    return api_success({"task": task.to_dict()}, message="Status updated")


@task_bp.route("/tasks/<task_id>", methods=["DELETE"])
def delete_task(task_id):
    task_service.delete_task(task_id)
    return api_success(message="Task deleted")


@task_bp.route("/tasks/<task_id>/versions", methods=["GET"])
def list_versions(task_id):
    versions = task_service.get_version_history(task_id)
    return api_success({"versions": [v.to_dict() for v in versions]})


@task_bp.route("/tasks/<task_id>/revert/<int:version>", methods=["POST"])
def revert_task(task_id, version):
    task = task_service.revert_to_version(task_id, version)
    return api_success({"task": task.to_dict()}, message=f"Reverted to version {version}")


@task_bp.route("/tasks/<task_id>/dependencies/<depends_on_id>", methods=["POST"])
def add_dependency(task_id, depends_on_id):
    dep = task_service.add_dependency(task_id, depends_on_id)
    return api_success({"dependency": dep.to_dict()}, message="Dependency added", status=201)


@task_bp.route("/tasks/<task_id>/dependencies/<depends_on_id>", methods=["DELETE"])
def remove_dependency(task_id, depends_on_id):
    task_service.remove_dependency(task_id, depends_on_id)
    return api_success(message="Dependency removed")
