"""
Case Study Builder
SQLAlchemy extension instance shared by every model module.

Usage:
    from casebook.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
