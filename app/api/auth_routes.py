"""
Current User Routes Blueprint

- GET /api/me: caller's user record, organizations and memberships.
  Creates the user row on first contact.
"""

from flask import Blueprint, g, jsonify
import logging

from auth import login_required
from database.connection import get_db_session
from services.users_repository import UsersRepository

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/api/me', methods=['GET'])
@login_required
def get_me():
    """Current user summary"""
    with get_db_session() as session:
        repo = UsersRepository(session)
        repo.get_or_create(g.identity)
        return jsonify(repo.get_current_user_summary(g.identity))
