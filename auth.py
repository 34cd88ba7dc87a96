"""
Request Authentication Module
Reads the caller's identity from the Authorization header.

The identity provider issues the bearer token; this service treats it as an
opaque identity string and matches it against User.token_identifier.
"""
from functools import wraps
from typing import Optional

from flask import g, jsonify, request
import logging

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'bearer '


def get_current_identity() -> Optional[str]:
    """Identity token of the current request, or None"""
    header = request.headers.get('Authorization', '')
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def is_authenticated():
    """Check if the request carries an identity"""
    return get_current_identity() is not None


def login_required(f):
    """Decorator to require an identity for a route; stores it on flask.g"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = get_current_identity()
        if not identity:
            logger.info(f"Unauthenticated request to {request.path}")
            return jsonify({'error': 'Authentication required',
                            'message': 'User is not authenticated.'}), 401
        g.identity = identity
        return f(*args, **kwargs)
    return decorated_function
