"""
User Blueprint.

Routes:
  GET    /users                    – list users (?role=, ?is_active=true|false|all)
  POST   /users                    – create {email, name, role, is_active?}
  GET    /users/<uid>              – user detail
  PUT    /users/<uid>              – update email / name / role / is_active
  GET    /reviewers/available      – active reviewers for project assignment
"""

from flask import Blueprint, jsonify, request

from parjis.blueprints import bool_arg, json_body
from parjis.services import user_service

user_bp = Blueprint("user", __name__, url_prefix="/api/v1")


@user_bp.route("/users", methods=["GET"])
def list_users():
    if request.args.get("is_active") == "all":
        is_active = None
    else:
        is_active = bool_arg("is_active")
        if is_active is None:
            is_active = True
    users = user_service.list_users(role=request.args.get("role") or None, is_active=is_active)
    return jsonify([u.to_dict() for u in users])


@user_bp.route("/users", methods=["POST"])
def create_user():
    user = user_service.create_user(json_body())
    return jsonify(user.to_dict()), 201


@user_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id):
    return jsonify(user_service.get_user(user_id).to_dict())


@user_bp.route("/users/<int:user_id>", methods=["PUT"])
def update_user(user_id):
    return jsonify(user_service.update_user(user_id, json_body()).to_dict())


@user_bp.route("/reviewers/available", methods=["GET"])
def list_available_reviewers():
    return jsonify([u.to_dict() for u in user_service.list_available_reviewers()])
