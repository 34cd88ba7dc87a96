"""
AI Context Service - Provides contextual data for AI interactions.

This service gathers the organization's latest business data (active goals,
recent job summary, marketing spend) into a compact text block so prompts
never carry the raw job log.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from database.models import Analytic, Goal
from services.analytics import format_job_summary, format_money, summarize_recent_jobs
from services.job_service import list_jobs

logger = logging.getLogger(__name__)

MARKETING_SPEND = 'Marketing Spend'


class AIContextService:
    """Service for gathering AI context from the database."""

    def __init__(self, session: Session, organization_id: str, window_days: int = 30,
                 now: Callable[[], datetime] = datetime.utcnow):
        self.session = session
        self.organization_id = organization_id
        self.window_days = window_days
        self._now = now

    def get_active_goals(self) -> List[Dict]:
        """Active goals of the organization."""
        goals = self.session.query(Goal).filter(
            Goal.org_id == self.organization_id,
            Goal.status == 'active'
        ).order_by(Goal.created_at).all()
        return [g.to_dict() for g in goals]

    def get_job_summary(self) -> str:
        """Markdown summary of jobs in the recent window."""
        jobs = list_jobs(self.session, self.organization_id)
        summary = summarize_recent_jobs(jobs, now=self._now(), days=self.window_days)
        return format_job_summary(summary)

    def get_marketing_spend(self, limit: int = 3) -> str:
        """Latest marketing spend entries, newest first."""
        rows = self.session.query(Analytic).filter(
            Analytic.org_id == self.organization_id,
            Analytic.data_type == MARKETING_SPEND
        ).order_by(Analytic.date.desc()).limit(limit).all()

        if not rows:
            return "No marketing spend data available."

        lines = []
        for row in rows:
            month = datetime.strptime(row.date, '%Y-%m-%d').strftime('%B %Y')
            lines.append(f"- {format_money(row.value)} in {month}")
        return '\n'.join(lines)

    def build_context_block(self) -> str:
        """
        Build the business data block prepended to every advisory turn.

        This is the main method to call when preparing context for AI.
        """
        goals = self.get_active_goals()
        formatted_goals = '\n'.join(
            f"- Goal: {g['description']} (Target: {g['targetValue']}, Current: {g['currentValue']})"
            for g in goals
        ) or "- No active goals."

        return (
            "**LATEST BUSINESS DATA:**\n---\n"
            f"**Active Goals:**\n{formatted_goals}\n---\n"
            f"**Detailed Job Data Summary (Last {self.window_days} Days):**\n{self.get_job_summary()}\n---\n"
            f"**Marketing Spend:**\n{self.get_marketing_spend()}\n---"
        )


def get_ai_context_service(session: Session, organization_id: str,
                           window_days: Optional[int] = None) -> AIContextService:
    """Factory function to create an AIContextService instance."""
    return AIContextService(session, organization_id, window_days=window_days or 30)
