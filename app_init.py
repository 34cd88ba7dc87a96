"""
Application Initialization Module
Properly initializes Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from ai_service import AIService
from security import setup_security
from health_checks import register_health_checks
from database.connection import init_engine, init_db
from services.plan_cache import PlanCache
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Configuration class; defaults to the one selected by FLASK_ENV

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    config_class = config_class or get_config()
    app.config.from_object(config_class)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing Detailboard Application")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    initialize_database(app)

    app.ai_service = initialize_ai_service(app)
    app.plan_cache = PlanCache(ttl_seconds=app.config['PLAN_CACHE_TTL_SECONDS'])

    from app import register_blueprints
    register_blueprints(app)

    register_health_checks(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Create the engine and, outside production, the tables

    Args:
        app: Flask application instance
    """
    init_engine(app.config['DATABASE_URL'], app.config.get('SQLALCHEMY_ENGINE_OPTIONS'))

    # Production schema is owned by Alembic migrations
    if os.environ.get('FLASK_ENV') != 'production':
        init_db()


def initialize_ai_service(app):
    """
    Initialize centralized AI service manager

    Args:
        app: Flask application instance

    Returns:
        AIService instance
    """
    ai_service = AIService(app.config)

    available_services = []
    if ai_service.is_available('claude'):
        available_services.append('Claude')
    if ai_service.is_available('embeddings'):
        available_services.append('OpenAI embeddings')

    if available_services:
        logger.info(f"AI Services initialized: {', '.join(available_services)}")
    else:
        logger.warning("No AI services configured - check API keys")

    return ai_service
