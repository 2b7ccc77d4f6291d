"""
WSGI entry point.

Usage:
    flask --app wsgi run
    gunicorn wsgi:app
"""

from parjis import create_app

app = create_app()
