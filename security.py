"""
Security Utilities & Middleware
Provides security hardening and error mapping for the JSON API
"""
import os
from typing import Dict, Any
from flask import Flask, request, jsonify, Response
from flask_cors import CORS
import logging

from ai_service import AIServiceError
from services.access_control import AccessError, PlanRestricted
from services.webhooks import WebhookVerificationError
from validators import ValidationError, format_validation_error

logger = logging.getLogger(__name__)

QUIET_PATHS = ('/api/health', '/api/ping')


def setup_security_headers(app: Flask):
    """
    Add security headers to all responses

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'

        # Strict Transport Security (HTTPS only in production)
        if not app.debug and not app.testing:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # JSON only: nothing to load
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the dashboard frontend

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_methods = config.get('CORS_METHODS', ['GET', 'POST', 'PATCH', 'DELETE', 'OPTIONS'])
    cors_headers = config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization'])

    if not app.debug and '*' in cors_origins:
        logger.warning("Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=cors_methods,
        allow_headers=cors_headers,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def sanitize_error_response(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    Sanitize error response to prevent information leakage

    Args:
        error: Exception object
        include_details: Whether to include detailed error info (dev only)

    Returns:
        Sanitized error response dictionary
    """
    error_response = {
        'error': 'Internal Server Error',
        'message': 'An error occurred while processing your request'
    }

    if include_details:
        error_response['details'] = str(error)
        error_response['type'] = type(error).__name__

    return error_response


ACCESS_ERROR_TITLES = {
    401: 'Unauthorized',
    403: 'Forbidden',
    404: 'Not Found',
}


def setup_error_handlers(app: Flask):
    """
    Register error handlers: domain exceptions map to JSON bodies
    {error, message} with their status code; nothing leaks a stack trace.

    Args:
        app: Flask application instance
    """
    include_details = app.debug

    @app.errorhandler(AccessError)
    def access_error(error: AccessError):
        body = {
            'error': ACCESS_ERROR_TITLES.get(error.status_code, 'Forbidden'),
            'message': error.message
        }
        if isinstance(error, PlanRestricted):
            body['code'] = 'plan_restricted'
            body['feature'] = error.feature
        return jsonify(body), error.status_code

    @app.errorhandler(ValidationError)
    def validation_error(error: ValidationError):
        return jsonify(format_validation_error(error.field, error.message)), 400

    @app.errorhandler(WebhookVerificationError)
    def webhook_error(error: WebhookVerificationError):
        logger.warning(f"Webhook rejected: {error.message}")
        return jsonify({'error': 'Webhook Error', 'message': error.message}), 400

    @app.errorhandler(AIServiceError)
    def ai_service_error(error: AIServiceError):
        logger.error(f"AI service failure: {error}")
        return jsonify({
            'error': 'Upstream Error',
            'message': 'The AI service failed to produce a usable result. Please try again.'
        }), 502

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad Request',
            'message': 'The request could not be understood or was missing required parameters'
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'error': 'Method Not Allowed',
            'message': 'The method is not allowed for the requested URL'
        }), 405

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({
            'error': 'Payload Too Large',
            'message': 'The request is too large'
        }), 413

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify(sanitize_error_response(error, include_details)), 500

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """
    Setup request/response logging for security monitoring

    Args:
        app: Flask application instance
    """
    @app.before_request
    def log_request():
        if request.path in QUIET_PATHS:
            return

        logger.info(
            f"Request: {request.method} {request.path} "
            f"from {request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path in QUIET_PATHS:
            return response

        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={response.status_code} "
            f"size={response.content_length}"
        )

        return response

    logger.info("Request logging configured")


def validate_environment_variables(required_vars: list, app: Flask):
    """
    Validate that required environment variables are set

    Args:
        required_vars: List of required environment variable names
        app: Flask application instance
    """
    missing_vars = []

    for var in required_vars:
        if not os.environ.get(var):
            missing_vars.append(var)
            logger.warning(f"Missing environment variable: {var}")

    if missing_vars and not app.debug:
        logger.error(f"Missing required environment variables in production: {missing_vars}")

    return len(missing_vars) == 0


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    logger.info("Configuring application security...")

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug and not app.testing:
        validate_environment_variables(
            ['ANTHROPIC_API_KEY', 'WEBHOOK_SECRET'],
            app
        )

    logger.info("Security configuration complete")
