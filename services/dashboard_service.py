"""
Dashboard Service - one-call read model for the dashboard screen.
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from services.access_control import READ_ROLES, resolve_access
from services.analytics import aggregate
from services.goal_repository import GoalRepository
from services.job_service import list_analytics, list_jobs

logger = logging.getLogger(__name__)


def get_dashboard(session: Session, identity: Optional[str], org_id: str) -> Optional[Dict]:
    """
    Goals, jobs, analytics and chart data for an organization.

    Returns None when the caller's role is not allowed to read dashboard data.
    """
    access = resolve_access(session, identity, org_id)
    if access.role not in READ_ROLES:
        logger.info(f"Dashboard withheld from role '{access.role}' in organization {org_id}")
        return None

    jobs = list_jobs(session, org_id)

    return {
        'goals': GoalRepository(session).list_goals(org_id),
        'jobs': jobs,
        'analytics': list_analytics(session, org_id),
        'chartData': aggregate(jobs),
    }
