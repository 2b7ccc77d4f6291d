"""
Workflow API — submit / review / approve / reject over HTTP.

Tests cover:
  - happy path through the endpoints, final status set by the last review
  - status code + error code per rule violation (403 / 409 / 422 / 400 / 404)
  - guard failures leave project status untouched
  - corrupt review data surfaces as 500 without partial writes
"""

from datetime import datetime, timezone

import pytest

from parjis.models import db as _db
from parjis.models.notification import Notification
from parjis.models.review import Review


def _review_body(decision="approve"):
    return {
        "decision": decision,
        "justification": "Clear payback within a year",
        "risk_identification": "Migration downtime",
        "risk_assessment": "low",
        "risk_mitigation": "Weekend cut-over",
    }


def _review_ids(client, project_id):
    res = client.get(f"/api/v1/projects/{project_id}/reviews")
    assert res.status_code == 200
    return {r["reviewer_id"]: r["id"] for r in res.get_json()}


def _project_status(client, project_id):
    return client.get(f"/api/v1/projects/{project_id}").get_json()["status"]


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def submitted(client, draft_project, proposer):
    res = client.post(f"/api/v1/projects/{draft_project.id}/submit", json={"user_id": proposer.id})
    assert res.status_code == 200
    return draft_project.id


@pytest.fixture()
def under_review(client, submitted, reviewer_a):
    review_id = _review_ids(client, submitted)[reviewer_a.id]
    res = client.post(f"/api/v1/reviews/{review_id}/submit", json=_review_body())
    assert res.status_code == 200
    return submitted


# ═════════════════════════════════════════════════════════════════════════
# HAPPY PATH
# ═════════════════════════════════════════════════════════════════════════


class TestHappyPath:

    def test_submit_returns_project(self, client, draft_project, proposer):
        res = client.post(f"/api/v1/projects/{draft_project.id}/submit", json={"user_id": proposer.id})
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "submitted"
        assert body["id"] == draft_project.id

    def test_reviews_drive_final_status(self, client, submitted, reviewer_a, reviewer_b):
        ids = _review_ids(client, submitted)

        res = client.post(f"/api/v1/reviews/{ids[reviewer_a.id]}/submit", json=_review_body())
        assert res.status_code == 200
        body = res.get_json()
        assert body["review"]["decision"] == "approve"
        assert body["review"]["submitted_at"] is not None
        assert body["project"]["status"] == "under_review"

        res = client.post(f"/api/v1/reviews/{ids[reviewer_b.id]}/submit", json=_review_body())
        assert res.status_code == 200
        assert res.get_json()["project"]["status"] == "approved"

        history = client.get(f"/api/v1/projects/{submitted}/history").get_json()
        assert history[0]["action"] == "Project status changed to approved"

    def test_director_rejects_with_reason(self, client, under_review, director):
        res = client.post(
            f"/api/v1/projects/{under_review}/reject",
            json={"user_id": director.id, "reason": "Budget concerns"},
        )
        assert res.status_code == 200
        assert res.get_json()["status"] == "rejected"

    def test_reviewer_sees_only_pending_reviews(self, client, under_review, reviewer_a, reviewer_b):
        assert client.get(f"/api/v1/users/{reviewer_a.id}/reviews?pending=true").get_json() == []
        pending = client.get(f"/api/v1/users/{reviewer_b.id}/reviews?pending=true").get_json()
        assert [r["project_id"] for r in pending] == [under_review]


# ═════════════════════════════════════════════════════════════════════════
# RULE VIOLATIONS
# ═════════════════════════════════════════════════════════════════════════


class TestRuleViolations:

    def test_non_proposer_submit_is_403(self, client, draft_project, reviewer_a):
        res = client.post(f"/api/v1/projects/{draft_project.id}/submit", json={"user_id": reviewer_a.id})
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"
        assert _project_status(client, draft_project.id) == "draft"
        assert Notification.query.count() == 0

    def test_approve_draft_is_409_naming_status(self, client, draft_project, director):
        res = client.post(f"/api/v1/projects/{draft_project.id}/approve", json={"user_id": director.id})
        assert res.status_code == 409
        body = res.get_json()
        assert body["code"] == "ERR_CONFLICT_STATE"
        assert "draft" in body["error"]
        assert body["details"] == {"current_status": "draft", "required": ["under_review"]}

    def test_approve_with_pending_review_is_409(self, client, under_review, reviewer_b, director):
        pending_id = _review_ids(client, under_review)[reviewer_b.id]
        res = client.post(f"/api/v1/projects/{under_review}/approve", json={"user_id": director.id})
        assert res.status_code == 409
        body = res.get_json()
        assert body["code"] == "ERR_REVIEWS_INCOMPLETE"
        assert body["details"]["pending_review_ids"] == [pending_id]

    def test_reviewer_cannot_approve(self, client, under_review, reviewer_a):
        res = client.post(f"/api/v1/projects/{under_review}/approve", json={"user_id": reviewer_a.id})
        assert res.status_code == 403
        assert _project_status(client, under_review) == "under_review"

    def test_double_review_is_409(self, client, under_review, reviewer_a):
        review_id = _review_ids(client, under_review)[reviewer_a.id]
        res = client.post(f"/api/v1/reviews/{review_id}/submit", json=_review_body("reject"))
        assert res.status_code == 409
        body = res.get_json()
        assert body["code"] == "ERR_REVIEW_ALREADY_SUBMITTED"
        assert body["details"] == {"review_id": review_id}

    def test_review_on_draft_is_409(self, client, draft_project, reviewer_a):
        review_id = _review_ids(client, draft_project.id)[reviewer_a.id]
        res = client.post(f"/api/v1/reviews/{review_id}/submit", json=_review_body())
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"

    def test_invalid_review_body_is_422(self, client, submitted, reviewer_a):
        review_id = _review_ids(client, submitted)[reviewer_a.id]
        res = client.post(
            f"/api/v1/reviews/{review_id}/submit",
            json={**_review_body(), "decision": "abstain", "risk_assessment": ""},
        )
        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_CONSTRAINT"
        assert set(body["details"]) == {"decision", "risk_assessment"}

    @pytest.mark.parametrize("body", [{}, {"user_id": "3"}, {"user_id": True}])
    def test_bad_user_id_is_400(self, client, draft_project, body):
        res = client.post(f"/api/v1/projects/{draft_project.id}/submit", json=body)
        assert res.status_code == 400
        assert res.get_json()["details"] == {"user_id": res.get_json()["error"]}

    def test_non_object_body_is_400(self, client, draft_project):
        res = client.post(f"/api/v1/projects/{draft_project.id}/submit", json=[1, 2])
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_reject_without_reason_is_422(self, client, under_review, director):
        res = client.post(f"/api/v1/projects/{under_review}/reject", json={"user_id": director.id})
        assert res.status_code == 422
        assert _project_status(client, under_review) == "under_review"

    def test_reject_with_non_string_reason_is_400(self, client, under_review, director):
        res = client.post(
            f"/api/v1/projects/{under_review}/reject", json={"user_id": director.id, "reason": 42},
        )
        assert res.status_code == 400

    def test_unknown_project_and_review_are_404(self, client, proposer):
        res = client.post("/api/v1/projects/999/submit", json={"user_id": proposer.id})
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"
        assert client.post("/api/v1/reviews/999/submit", json=_review_body()).status_code == 404

    def test_corrupt_review_data_is_500(self, client, submitted, reviewer_a, reviewer_b):
        broken = Review.query.filter_by(project_id=submitted, reviewer_id=reviewer_b.id).one()
        broken.submitted_at = datetime.now(timezone.utc)
        _db.session.commit()

        review_id = _review_ids(client, submitted)[reviewer_a.id]
        res = client.post(f"/api/v1/reviews/{review_id}/submit", json=_review_body())
        assert res.status_code == 500
        assert res.get_json()["code"] == "ERR_INTERNAL"
        assert _project_status(client, submitted) == "submitted"
        assert client.get(f"/api/v1/reviews/{review_id}").get_json()["submitted_at"] is None
