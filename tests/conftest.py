"""
Shared pytest fixtures for the PARJIS test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / make_project: ORM row factories
    - proposer, reviewer_a, reviewer_b, director, admin: one user per role
    - draft_project: draft project proposed by ``proposer`` with two reviewers
"""

import pytest

from parjis import create_app
from parjis.models import db as _db
from parjis.models.project import Project, ProjectReviewer
from parjis.models.review import Review
from parjis.models.user import User


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Row factories ────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    counter = {"n": 0}

    def _make_user(role, name=None, *, is_active=True, email=None):
        counter["n"] += 1
        name = name or f"{role.replace('_', ' ').title()} {counter['n']}"
        user = User(
            email=email or f"{role}.{counter['n']}@example.com",
            name=name,
            role=role,
            is_active=is_active,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_project():
    def _make_project(proposer, reviewers, *, status="draft", name="Data Platform Upgrade"):
        project = Project(
            name=name,
            description="Replace the reporting warehouse",
            objective="Cut nightly batch time in half",
            estimated_cost=250000,
            target_time="6 months",
            status=status,
            proposer_id=proposer.id,
        )
        _db.session.add(project)
        _db.session.flush()
        for reviewer in reviewers:
            _db.session.add(ProjectReviewer(project_id=project.id, reviewer_id=reviewer.id))
            _db.session.add(Review(project_id=project.id, reviewer_id=reviewer.id))
        _db.session.commit()
        return project

    return _make_project


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def proposer(make_user):
    return make_user("project_proposer", "Pat Proposer")


@pytest.fixture()
def reviewer_a(make_user):
    return make_user("reviewer", "Robin Reviewer")


@pytest.fixture()
def reviewer_b(make_user):
    return make_user("reviewer", "Riley Reviewer")


@pytest.fixture()
def director(make_user):
    return make_user("director", "Dana Director")


@pytest.fixture()
def admin(make_user):
    return make_user("system_administrator", "Alex Admin")


@pytest.fixture()
def draft_project(make_project, proposer, reviewer_a, reviewer_b):
    return make_project(proposer, [reviewer_a, reviewer_b])
