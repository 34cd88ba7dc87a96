"""
Job Log Routes Blueprint

- POST /api/jobs: log a completed job (append-only)
- POST /api/analytics: record a business metric such as marketing spend
"""

import logging
from flask import Blueprint, g, jsonify

from app.utils import get_json_body
from auth import login_required
from database.connection import get_db_session
from services.job_service import JobService

logger = logging.getLogger(__name__)

# Create blueprint
jobs_bp = Blueprint('jobs_bp', __name__)


@jobs_bp.route('/api/jobs', methods=['POST'])
@login_required
def create_job():
    """Log a job"""
    data = get_json_body()
    with get_db_session() as session:
        job_id = JobService(session, g.identity).create_job(
            data.get('orgId'),
            data.get('type'),
            data.get('value'),
            data.get('leadSource'),
            data.get('date'),
        )
    return jsonify({'id': job_id}), 201


@jobs_bp.route('/api/analytics', methods=['POST'])
@login_required
def record_analytic():
    """Record a metric entry"""
    data = get_json_body()
    with get_db_session() as session:
        analytic_id = JobService(session, g.identity).record_analytic(
            data.get('orgId'),
            data.get('dataType'),
            data.get('value'),
            data.get('date'),
            data.get('details'),
        )
    return jsonify({'id': analytic_id}), 201
