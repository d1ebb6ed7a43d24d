"""
WSGI entry point (gunicorn "wsgi:app") and Flask CLI target.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi create-user someone@example.com
"""

from casebook import create_app

app = create_app()
