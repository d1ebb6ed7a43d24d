"""
Case Study Builder
Blueprint registry.
"""

from casebook.blueprints.auth_bp import auth_bp
from casebook.blueprints.health_bp import health_bp
from casebook.blueprints.pages_bp import pages_bp
from casebook.blueprints.project_bp import project_bp
from casebook.blueprints.record_bp import record_bp
from casebook.blueprints.storage_bp import storage_bp
from casebook.blueprints.wizard_bp import wizard_bp

ALL_BLUEPRINTS = (
    auth_bp,
    health_bp,
    pages_bp,
    project_bp,
    record_bp,
    storage_bp,
    wizard_bp,
)
