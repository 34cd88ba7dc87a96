"""
Utilities Package

Shared helper functions used across the route handlers.
"""

from app.utils.helpers import (
    get_ai_service,
    get_json_body,
    get_plan_cache,
)

__all__ = [
    'get_ai_service',
    'get_json_body',
    'get_plan_cache',
]
