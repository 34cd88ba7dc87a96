"""
Centralized Configuration for the Detailboard Application
Manages environment-specific settings, secrets, and service configurations.
"""
import json
import os
from datetime import timedelta


def _load_plan_ids():
    """Billing plan id -> app plan mapping, overridable via BILLING_PLAN_IDS (JSON)"""
    raw = os.environ.get('BILLING_PLAN_IDS')
    if raw:
        return json.loads(raw)
    return {
        'plan_solo': 'solo',
        'plan_pro': 'pro',
        'plan_enterprise': 'enterprise',
    }


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2MB max request body

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PATCH', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings
    DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///detailboard.db')
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # AI Service API Keys
    ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY')
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')

    # AI Model Configuration
    AI_MODELS = {
        'claude': {
            'model': 'claude-sonnet-4-20250514',
            'max_tokens': 2048,
            'temperature': 0.7,
        },
        'embedding': {
            'model': 'text-embedding-3-small',
        },
    }

    # AI Retry Configuration
    AI_RETRY_ATTEMPTS = int(os.environ.get('AI_RETRY_ATTEMPTS', '3'))
    AI_RETRY_DELAY = int(os.environ.get('AI_RETRY_DELAY', '2'))  # seconds
    AI_TIMEOUT = int(os.environ.get('AI_TIMEOUT', '120'))  # seconds

    # Action plans
    PLAN_CACHE_TTL_SECONDS = int(os.environ.get('PLAN_CACHE_TTL_SECONDS', str(24 * 60 * 60)))
    RECENT_JOBS_WINDOW_DAYS = 30
    KNOWLEDGE_BASE_TOP_K = 3

    # Webhooks
    WEBHOOK_SECRET = os.environ.get('WEBHOOK_SECRET', '')
    WEBHOOK_TOLERANCE_SECONDS = 5 * 60
    IDENTITY_ISSUER = os.environ.get('IDENTITY_ISSUER', 'https://identity.detailboard.app')
    BILLING_PLAN_IDS = _load_plan_ids()

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://app.detailboard.app').split(',')
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ANTHROPIC_API_KEY = None
    OPENAI_API_KEY = None
    AI_RETRY_ATTEMPTS = 1
    AI_RETRY_DELAY = 0
    WEBHOOK_SECRET = 'whsec_dGVzdC13ZWJob29rLXNlY3JldA=='
    IDENTITY_ISSUER = 'https://identity.test'


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
