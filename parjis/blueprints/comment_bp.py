"""
Comment Blueprint.

Routes:
  POST   /projects/<pid>/comments   – add a comment {user_id, content, parent_comment_id?}
  GET    /projects/<pid>/comments   – comments oldest first (?threaded=true nests replies)
  GET    /comments/<cid>            – comment detail
"""

from flask import Blueprint, jsonify

from parjis.blueprints import bool_arg, json_body, require_int
from parjis.services import comment_service

comment_bp = Blueprint("comment", __name__, url_prefix="/api/v1")


@comment_bp.route("/projects/<int:project_id>/comments", methods=["POST"])
def create_comment(project_id):
    data = json_body()
    require_int(data, "user_id")
    comment = comment_service.create_comment({**data, "project_id": project_id})
    return jsonify(comment.to_dict()), 201


@comment_bp.route("/projects/<int:project_id>/comments", methods=["GET"])
def list_comments(project_id):
    comments = comment_service.list_comments_by_project(project_id)
    if bool_arg("threaded"):
        return jsonify([
            c.to_dict(include_replies=True) for c in comments if c.parent_comment_id is None
        ])
    return jsonify([c.to_dict() for c in comments])


@comment_bp.route("/comments/<int:comment_id>", methods=["GET"])
def get_comment(comment_id):
    return jsonify(comment_service.get_comment(comment_id).to_dict())
