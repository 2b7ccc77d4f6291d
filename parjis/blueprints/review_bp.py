"""
Review Blueprint.

Routes:
  GET    /reviews/<rid>             – review detail
  POST   /reviews/<rid>/submit      – reviewer decision (may finalise the project)
  GET    /projects/<pid>/reviews    – all reviews of a project
  GET    /users/<uid>/reviews       – reviews assigned to a reviewer (?pending=true)
"""

from flask import Blueprint, jsonify

from parjis.blueprints import bool_arg, json_body
from parjis.services import review_service, workflow_service

review_bp = Blueprint("review", __name__, url_prefix="/api/v1")


@review_bp.route("/reviews/<int:review_id>", methods=["GET"])
def get_review(review_id):
    return jsonify(review_service.get_review(review_id).to_dict())


@review_bp.route("/reviews/<int:review_id>/submit", methods=["POST"])
def submit_review(review_id):
    """Body: { decision, justification, risk_identification, risk_assessment,
    risk_mitigation, comments? }

    Returns the submitted review and the project as it stands afterwards.
    """
    data = {**json_body(), "id": review_id}
    review = workflow_service.submit_review(data)
    return jsonify({"review": review.to_dict(), "project": review.project.to_dict()})


@review_bp.route("/projects/<int:project_id>/reviews", methods=["GET"])
def list_project_reviews(project_id):
    return jsonify([r.to_dict() for r in review_service.list_reviews_by_project(project_id)])


@review_bp.route("/users/<int:user_id>/reviews", methods=["GET"])
def list_reviewer_reviews(user_id):
    pending_only = bool_arg("pending") or False
    reviews = review_service.list_reviews_by_reviewer(user_id, pending_only=pending_only)
    return jsonify([r.to_dict() for r in reviews])
