"""
Dashboard Routes Blueprint

- GET /api/dashboard/<org_id>: goals, jobs, analytics and chart data.
  Responds with JSON null for roles that may not read dashboard data.
"""

import logging
from flask import Blueprint, g, jsonify

from auth import login_required
from database.connection import get_db_session
from services.dashboard_service import get_dashboard

logger = logging.getLogger(__name__)

# Create blueprint
dashboard_bp = Blueprint('dashboard_bp', __name__)


@dashboard_bp.route('/api/dashboard/<org_id>', methods=['GET'])
@login_required
def dashboard(org_id):
    """Dashboard read model"""
    with get_db_session() as session:
        return jsonify(get_dashboard(session, g.identity, org_id))
