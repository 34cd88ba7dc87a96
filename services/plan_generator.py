"""
Plan Generator - AI action plans for goals.

Plans are 3 to 5 concrete steps, cached per goal for PLAN_CACHE_TTL_SECONDS.
Generation is gated on the 'ai_action_plans' feature of the goal's plan tier.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ai_service import UpstreamGenerationFailure
from database.models import Goal
from services.access_control import NotFound, require_feature
from services.analytics import format_job_summary, summarize_recent_jobs
from services.job_service import list_jobs
from validators import MAX_DESCRIPTION_LENGTH, sanitize_string, validate_iso_date

logger = logging.getLogger(__name__)

MIN_PLAN_STEPS = 3
MAX_PLAN_STEPS = 5
PLACEHOLDER_DESCRIPTION = "No description provided"

PLAN_SYSTEM_PROMPT = (
    "You are a business consultant for a car detailing company. "
    "You respond with JSON only: an array of action step objects, no prose."
)


def _optional_text(value: Any, max_length: int = MAX_DESCRIPTION_LENGTH) -> Optional[str]:
    if isinstance(value, str):
        return sanitize_string(value, max_length=max_length) or None
    return None


def normalize_plan(raw: Any) -> List[Dict[str, Any]]:
    """
    Coerce model output into a list of action steps.

    Every step comes back with completed=False. Non-object items and blank
    or non-string descriptions get a placeholder. Text fields are clamped to
    MAX_DESCRIPTION_LENGTH so stored plans always pass step validation.
    Empty, non-string or malformed dueDate and notes are dropped. Output is
    capped at MAX_PLAN_STEPS.

    Raises:
        UpstreamGenerationFailure: output is not a list, or has fewer than
            MIN_PLAN_STEPS steps
    """
    if isinstance(raw, dict) and isinstance(raw.get('steps'), list):
        raw = raw['steps']
    if not isinstance(raw, list):
        raise UpstreamGenerationFailure("Model output is not a list of steps")

    steps = []
    for item in raw:
        if not isinstance(item, dict):
            item = {}

        step = {
            'description': _optional_text(item.get('description')) or PLACEHOLDER_DESCRIPTION,
            'completed': False,
        }

        due_date = _optional_text(item.get('dueDate'))
        if due_date and validate_iso_date(due_date)[0]:
            step['dueDate'] = due_date

        notes = _optional_text(item.get('notes'))
        if notes:
            step['notes'] = notes

        steps.append(step)

    if len(steps) < MIN_PLAN_STEPS:
        raise UpstreamGenerationFailure(
            f"Model returned {len(steps)} steps; at least {MIN_PLAN_STEPS} are required"
        )

    return steps[:MAX_PLAN_STEPS]


def build_plan_prompt(goal: Dict, sibling_goals: List[Dict], job_summary: str) -> str:
    """Prompt text for one goal's action plan."""
    other_goals = '\n'.join(
        f"- {g['description']} (Status: {g['status']})" for g in sibling_goals
    ) or "- None"

    return (
        f"Based on the following business data, create a concise, actionable, step-by-step plan "
        f"to achieve this specific goal: \"{goal['description']}\". "
        f"The target is {goal['targetValue']} and the current value is {goal['currentValue']}. "
        f"The plan should have between {MIN_PLAN_STEPS} and {MAX_PLAN_STEPS} steps. "
        "Each step must be a clear, simple action the business owner can take. "
        "If a step is time-sensitive, suggest a dueDate in YYYY-MM-DD format. "
        "Add brief notes for clarity.\n\n"
        "Respond with a JSON array of objects with keys: description (string), "
        "completed (boolean), dueDate (optional string), notes (optional string).\n\n"
        "**LATEST BUSINESS DATA CONTEXT:**\n---\n"
        f"**Other Goals:**\n{other_goals}\n---\n"
        f"**Detailed Job Data Summary (Last 30 Days):**\n{job_summary}\n---"
    )


class PlanGenerator:
    """Generates and caches action plans."""

    def __init__(self, session: Session, identity: Optional[str], ai_service, cache, config=None,
                 now: Callable[[], datetime] = datetime.utcnow):
        self.session = session
        self.identity = identity
        self.ai_service = ai_service
        self.cache = cache
        self.config = config or {}
        self._now = now

    def generate_plan(self, goal_id: str) -> List[Dict[str, Any]]:
        """
        Action plan for a goal, from cache when fresh.

        Raises:
            NotFound: goal missing
            PlanRestricted: organization plan lacks 'ai_action_plans'
            UpstreamGenerationFailure: model output unusable
        """
        goal = self.session.get(Goal, goal_id)
        if not goal:
            raise NotFound("Goal not found")

        require_feature(self.session, self.identity, goal.org_id, 'ai_action_plans')

        return self.cache.fetch(goal_id, lambda: self._generate(goal_id))

    def _generate(self, goal_id: str) -> List[Dict[str, Any]]:
        goal = self.session.get(Goal, goal_id)
        if not goal:
            raise NotFound("Goal not found")

        siblings = self.session.query(Goal).filter(Goal.org_id == goal.org_id).all()
        days = self.config.get('RECENT_JOBS_WINDOW_DAYS', 30)
        summary = summarize_recent_jobs(list_jobs(self.session, goal.org_id), now=self._now(), days=days)

        prompt = build_plan_prompt(
            goal.to_dict(),
            [g.to_dict() for g in siblings],
            format_job_summary(summary)
        )

        logger.info(f"Generating action plan for goal {goal_id}")
        raw = self.ai_service.complete_json(prompt, system=PLAN_SYSTEM_PROMPT)
        plan = normalize_plan(raw)
        logger.info(f"Generated {len(plan)} step action plan for goal {goal_id}")
        return plan
