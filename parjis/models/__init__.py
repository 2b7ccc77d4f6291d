"""
PARJIS — Project Approval & Review Workflow
SQLAlchemy extension instance shared by every model module.

Usage:
    from parjis.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
