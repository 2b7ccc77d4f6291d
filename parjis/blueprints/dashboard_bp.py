"""
Dashboard Blueprint.

Routes:
  GET    /users/<uid>/dashboard    – role-based projects, pending reviews, stats
"""

from flask import Blueprint, jsonify

from parjis.services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1")


@dashboard_bp.route("/users/<int:user_id>/dashboard", methods=["GET"])
def get_dashboard(user_id):
    return jsonify(dashboard_service.get_dashboard_data(user_id))
