"""
Transition authority — role, identity and status guards.

Pure checks over plain objects; nothing here touches the database.

    PROJECT_TRANSITIONS
       draft        -> submitted
       submitted    -> under_review
       under_review -> approved | rejected | returned
       approved / rejected / returned -> (terminal)
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from parjis.core.exceptions import (
    AggregationIntegrityError,
    ForbiddenError,
    InvalidStateError,
    ReviewAlreadySubmittedError,
    ReviewsIncompleteError,
    ReviewsNotAllApprovedError,
    ValidationError,
)
from parjis.models.project import (
    PROJECT_TRANSITIONS,
    TERMINAL_STATUSES,
    ProjectStatus,
    validate_project_transition,
)
from parjis.models.user import UserRole
from parjis.services import transition_authority as authority

_NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)

ALL_STATUSES = [s.value for s in ProjectStatus]
TERMINAL = sorted(s.value for s in TERMINAL_STATUSES)
NON_DECIDERS = [UserRole.PROJECT_PROPOSER.value, UserRole.REVIEWER.value]
DECIDERS = [UserRole.DIRECTOR.value, UserRole.SYSTEM_ADMINISTRATOR.value]


def _project(status="draft", proposer_id=1):
    return SimpleNamespace(id=10, status=status, proposer_id=proposer_id)


def _user(uid=1, role="project_proposer"):
    return SimpleNamespace(id=uid, role=role)


def _review(rid, decision=None, submitted=True):
    return SimpleNamespace(id=rid, decision=decision, submitted_at=_NOW if submitted else None)


# ═════════════════════════════════════════════════════════════════════════════
# Transition table
# ═════════════════════════════════════════════════════════════════════════════


class TestTransitionTable:

    def test_terminal_statuses(self):
        assert TERMINAL == ["approved", "rejected", "returned"]

    @pytest.mark.parametrize("old", TERMINAL)
    @pytest.mark.parametrize("new", ALL_STATUSES)
    def test_terminal_admits_nothing(self, old, new):
        assert validate_project_transition(old, new) is False

    @pytest.mark.parametrize("old,new", [
        (src.value, dst.value) for src, targets in PROJECT_TRANSITIONS.items() for dst in targets
    ])
    def test_listed_edges_are_valid(self, old, new):
        assert validate_project_transition(old, new) is True

    @pytest.mark.parametrize("old,new", [
        ("draft", "under_review"),
        ("draft", "approved"),
        ("submitted", "approved"),
        ("submitted", "rejected"),
        ("under_review", "draft"),
        ("under_review", "submitted"),
    ])
    def test_skipped_or_backward_edges_are_invalid(self, old, new):
        assert validate_project_transition(old, new) is False


def test_final_decision_roles():
    assert [authority.can_issue_final_decision(r) for r in DECIDERS] == [True, True]
    assert [authority.can_issue_final_decision(r) for r in NON_DECIDERS] == [False, False]


# ═════════════════════════════════════════════════════════════════════════════
# submit_project
# ═════════════════════════════════════════════════════════════════════════════


class TestSubmitProject:

    def test_proposer_may_submit_draft(self):
        authority.check_can_submit_project(_project("draft"), _user(1))

    def test_other_user_is_forbidden_even_on_draft(self):
        with pytest.raises(ForbiddenError):
            authority.check_can_submit_project(_project("draft"), _user(2))

    def test_identity_checked_before_status(self):
        with pytest.raises(ForbiddenError):
            authority.check_can_submit_project(_project("approved"), _user(2))

    @pytest.mark.parametrize("status", ["submitted", "under_review", *TERMINAL])
    def test_only_from_draft(self, status):
        with pytest.raises(InvalidStateError) as exc_info:
            authority.check_can_submit_project(_project(status), _user(1))
        assert exc_info.value.current_status == status
        assert exc_info.value.required == ["draft"]


# ═════════════════════════════════════════════════════════════════════════════
# submit_review
# ═════════════════════════════════════════════════════════════════════════════


class TestSubmitReview:

    @pytest.mark.parametrize("status", ["submitted", "under_review"])
    def test_open_statuses_accept_reviews(self, status):
        authority.check_can_submit_review(_project(status), _review(1, submitted=False))

    @pytest.mark.parametrize("status", ["draft", *TERMINAL])
    def test_closed_statuses_refuse_reviews(self, status):
        with pytest.raises(InvalidStateError):
            authority.check_can_submit_review(_project(status), _review(1, submitted=False))

    def test_review_submitted_only_once(self):
        with pytest.raises(ReviewAlreadySubmittedError) as exc_info:
            authority.check_can_submit_review(_project("under_review"), _review(7, "approve"))
        assert exc_info.value.review_id == 7


# ═════════════════════════════════════════════════════════════════════════════
# approve / reject
# ═════════════════════════════════════════════════════════════════════════════


class TestApproveProject:

    @pytest.mark.parametrize("role", NON_DECIDERS)
    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_non_deciders_forbidden_in_every_state(self, role, status):
        with pytest.raises(ForbiddenError):
            authority.check_can_approve_project(
                _project(status), _user(5, role), [_review(1, "approve")],
            )

    @pytest.mark.parametrize("role", DECIDERS)
    def test_deciders_approve_when_all_approve(self, role):
        authority.check_can_approve_project(
            _project("under_review"), _user(5, role),
            [_review(1, "approve"), _review(2, "approve")],
        )

    def test_draft_names_current_status(self):
        with pytest.raises(InvalidStateError) as exc_info:
            authority.check_can_approve_project(_project("draft"), _user(5, "director"), [])
        assert "draft" in str(exc_info.value)
        assert exc_info.value.required == ["under_review"]

    def test_no_reviews(self):
        with pytest.raises(ReviewsIncompleteError) as exc_info:
            authority.check_can_approve_project(_project("under_review"), _user(5, "director"), [])
        assert "no reviews found" in str(exc_info.value)

    def test_pending_reviews_are_listed(self):
        reviews = [_review(1, "approve"), _review(2, submitted=False), _review(3, submitted=False)]
        with pytest.raises(ReviewsIncompleteError) as exc_info:
            authority.check_can_approve_project(_project("under_review"), _user(5, "director"), reviews)
        assert exc_info.value.pending_review_ids == [2, 3]

    @pytest.mark.parametrize("bad", ["reject", "return"])
    def test_cannot_override_negative_review(self, bad):
        reviews = [_review(1, "approve"), _review(2, bad)]
        with pytest.raises(ReviewsNotAllApprovedError) as exc_info:
            authority.check_can_approve_project(_project("under_review"), _user(5, "director"), reviews)
        assert exc_info.value.decisions == {"approve": 1, bad: 1}

    def test_corrupt_review_surfaces(self):
        reviews = [_review(1, "approve"), _review(2, None)]
        with pytest.raises(AggregationIntegrityError):
            authority.check_can_approve_project(_project("under_review"), _user(5, "director"), reviews)


class TestRejectProject:

    @pytest.mark.parametrize("role", NON_DECIDERS)
    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_non_deciders_forbidden_in_every_state(self, role, status):
        with pytest.raises(ForbiddenError):
            authority.check_can_reject_project(_project(status), _user(5, role), "Too costly")

    @pytest.mark.parametrize("status", ["draft", "submitted", *TERMINAL])
    def test_only_under_review(self, status):
        with pytest.raises(InvalidStateError):
            authority.check_can_reject_project(_project(status), _user(5, "director"), "Too costly")

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_required(self, reason):
        with pytest.raises(ValidationError):
            authority.check_can_reject_project(_project("under_review"), _user(5, "director"), reason)

    def test_director_rejects_regardless_of_reviews(self):
        authority.check_can_reject_project(
            _project("under_review"), _user(5, "system_administrator"), "Budget concerns",
        )
