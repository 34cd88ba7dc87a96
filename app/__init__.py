"""
Detailboard - Application Package

This package contains the HTTP layer:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared request helpers

The app factory and core Flask setup remain in app_init.py at the project root.
Business logic lives in the top-level services package.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.auth_routes import auth_bp
from app.api.organizations import organizations_bp
from app.api.goals import goals_bp
from app.api.jobs import jobs_bp
from app.api.dashboard import dashboard_bp
from app.api.ai_chat import ai_chat_bp
from app.api.knowledge_base import knowledge_base_bp
from app.api.webhooks import webhooks_bp


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from create_app() after infrastructure setup.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(organizations_bp)
    app.register_blueprint(goals_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(ai_chat_bp)
    app.register_blueprint(knowledge_base_bp)
    app.register_blueprint(webhooks_bp)
    logger.info("API blueprints registered")


__all__ = ['register_blueprints', 'auth_bp', 'organizations_bp', 'goals_bp', 'jobs_bp',
           'dashboard_bp', 'ai_chat_bp', 'knowledge_base_bp', 'webhooks_bp']
