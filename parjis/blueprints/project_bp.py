"""
Project Blueprint — project CRUD and the proposer/director workflow actions.

Routes:
  GET    /projects                        – list projects (?status=)
  POST   /projects                        – create a draft project with reviewers
  GET    /projects/<pid>                  – project detail
  GET    /projects/<pid>/reviewers        – assigned reviewers
  GET    /projects/<pid>/history          – history, newest first
  GET    /users/<uid>/projects            – proposed or assigned to the user
  POST   /projects/<pid>/submit           – draft -> submitted      {user_id}
  POST   /projects/<pid>/approve          – final approval          {user_id}
  POST   /projects/<pid>/reject           – final rejection         {user_id, reason}

Layer contract:
    - Blueprint: parse input, call service, return JSON.
    - Rule checks and commits live in the services.
"""

from flask import Blueprint, jsonify, request

from parjis.blueprints import MalformedRequest, json_body, require_int
from parjis.models.project import PROJECT_STATUSES
from parjis.services import history_service, project_service, workflow_service

project_bp = Blueprint("project", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects", methods=["GET"])
def list_projects():
    status = request.args.get("status")
    if status and status not in PROJECT_STATUSES:
        raise MalformedRequest(f"status must be one of {sorted(PROJECT_STATUSES)}", field="status")
    projects = project_service.list_projects(status=status)
    return jsonify([p.to_dict() for p in projects])


@project_bp.route("/projects", methods=["POST"])
def create_project():
    """Body: { name, description, objective, estimated_cost, target_time,
    proposer_id, reviewer_ids: [int] }
    """
    project = project_service.create_project(json_body())
    return jsonify(project.to_dict()), 201


@project_bp.route("/projects/<int:project_id>", methods=["GET"])
def get_project(project_id):
    project = project_service.get_project(project_id)
    data = project.to_dict()
    data["reviewer_ids"] = [a.reviewer_id for a in project.reviewer_assignments]
    return jsonify(data)


@project_bp.route("/projects/<int:project_id>/reviewers", methods=["GET"])
def list_project_reviewers(project_id):
    return jsonify([u.to_dict() for u in project_service.list_project_reviewers(project_id)])


@project_bp.route("/projects/<int:project_id>/history", methods=["GET"])
def list_project_history(project_id):
    return jsonify([h.to_dict() for h in history_service.list_project_history(project_id)])


@project_bp.route("/users/<int:user_id>/projects", methods=["GET"])
def list_user_projects(user_id):
    return jsonify([p.to_dict() for p in project_service.list_projects_by_user(user_id)])


# ═════════════════════════════════════════════════════════════════════════════
# WORKFLOW ACTIONS
# ═════════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects/<int:project_id>/submit", methods=["POST"])
def submit_project(project_id):
    user_id = require_int(json_body(), "user_id")
    project = workflow_service.submit_project(project_id, user_id)
    return jsonify(project.to_dict())


@project_bp.route("/projects/<int:project_id>/approve", methods=["POST"])
def approve_project(project_id):
    user_id = require_int(json_body(), "user_id")
    project = workflow_service.approve_project(project_id, user_id)
    return jsonify(project.to_dict())


@project_bp.route("/projects/<int:project_id>/reject", methods=["POST"])
def reject_project(project_id):
    data = json_body()
    user_id = require_int(data, "user_id")
    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        raise MalformedRequest("reason must be a string", field="reason")
    project = workflow_service.reject_project(project_id, user_id, reason)
    return jsonify(project.to_dict())
