"""
Job Service - append-only job log and business metric entries.

Jobs are immutable once created; there is no update or delete path.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from database.models import Analytic, Job
from services.access_control import WRITE_ROLES, require_role, resolve_access
from validators import raise_if_invalid, sanitize_string, validate_analytic_request, validate_job_request

logger = logging.getLogger(__name__)


def list_jobs(session: Session, org_id: str) -> List[Dict]:
    """All jobs of an organization, oldest date first. Internal reader."""
    jobs = session.query(Job).filter(Job.org_id == org_id).order_by(Job.date, Job.created_at).all()
    return [job.to_dict() for job in jobs]


def list_analytics(session: Session, org_id: str) -> List[Dict]:
    """All metric entries of an organization, newest date first. Internal reader."""
    rows = session.query(Analytic).filter(Analytic.org_id == org_id).order_by(Analytic.date.desc()).all()
    return [row.to_dict() for row in rows]


class JobService:
    """Permission-gated writes to the job log."""

    def __init__(self, session: Session, identity: Optional[str]):
        self.session = session
        self.identity = identity

    def create_job(self, org_id: str, job_type: str, value: float, lead_source: str, date: str) -> str:
        """
        Log a completed job

        Args:
            org_id: Organization ID
            job_type: Service performed, e.g. 'Full Detail'
            value: Revenue, must be positive
            lead_source: Where the customer came from
            date: ISO calendar date (YYYY-MM-DD)

        Returns:
            New job ID
        """
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, WRITE_ROLES, "log jobs")

        raise_if_invalid(validate_job_request({
            'type': job_type,
            'value': value,
            'leadSource': lead_source,
            'date': date,
        }))

        job = Job(
            org_id=org_id,
            type=sanitize_string(job_type),
            value=value,
            lead_source=sanitize_string(lead_source),
            date=date,
        )
        self.session.add(job)
        self.session.flush()

        logger.info(f"Logged job {job.id} ({job.type}, {value}) for organization {org_id}")
        return job.id

    def record_analytic(self, org_id: str, data_type: str, value: float, date: str,
                        details: Optional[Dict[str, Any]] = None) -> str:
        """Record a business metric such as 'Marketing Spend'. Returns its ID."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, WRITE_ROLES, "record analytics")

        raise_if_invalid(validate_analytic_request({
            'dataType': data_type,
            'value': value,
            'date': date,
            'details': details,
        }))

        analytic = Analytic(
            org_id=org_id,
            data_type=sanitize_string(data_type),
            value=value,
            date=date,
            details=details,
        )
        self.session.add(analytic)
        self.session.flush()

        logger.info(f"Recorded {analytic.data_type} for organization {org_id}")
        return analytic.id

    def list_jobs(self, org_id: str) -> List[Dict]:
        """Job log for any member of the organization."""
        resolve_access(self.session, self.identity, org_id)
        return list_jobs(self.session, org_id)
