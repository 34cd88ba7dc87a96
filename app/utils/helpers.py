"""
Helper utility functions shared by the route handlers.
"""

from flask import current_app, request

from validators import ValidationError


def get_json_body():
    """
    Parsed JSON object of the current request.

    Raises:
        ValidationError: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def get_ai_service():
    """AI service built by the app factory"""
    return current_app.ai_service


def get_plan_cache():
    """Process-wide plan cache built by the app factory"""
    return current_app.plan_cache
