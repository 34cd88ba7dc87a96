"""
Goal Service - goal lifecycle and action-step edits.

Status state machine:
    active    -> completed   (automatic when current >= target, or explicit)
    active    -> archived    (explicit)
    completed -> active      (explicit re-activation)
    archived  -> active      (explicit re-activation)

Goals are created 'active' or 'completed', never 'archived'. Value-only
updates can promote active -> completed but never demote.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from services.access_control import (
    ADMIN_ROLES, WRITE_ROLES, NotFound, require_role, resolve_access
)
from services.goal_repository import GoalRepository
from validators import (
    ValidationError, raise_if_invalid, sanitize_string,
    validate_action_step, validate_goal_create, validate_goal_update
)

logger = logging.getLogger(__name__)


def initial_status(current_value: float, target_value: float) -> str:
    """Status for a newly created goal."""
    return 'completed' if current_value >= target_value else 'active'


def next_status(goal: Dict[str, Any], updates: Dict[str, Any]) -> Optional[str]:
    """
    Status a goal should move to after applying `updates`, or None to leave it.

    An explicit status always wins. Otherwise, when a value field changes on an
    active goal whose new current reaches the new target, it completes.
    """
    if updates.get('status'):
        return updates['status']

    if 'currentValue' not in updates and 'targetValue' not in updates:
        return None

    current = updates.get('currentValue', goal['currentValue'])
    target = updates.get('targetValue', goal['targetValue'])
    if goal['status'] == 'active' and current >= target:
        return 'completed'
    return None


class GoalService:
    """Permission-gated goal operations."""

    def __init__(self, session: Session, identity: Optional[str]):
        self.session = session
        self.identity = identity
        self.repository = GoalRepository(session)

    def _load(self, goal_id: str):
        goal = self.repository.get(goal_id)
        if not goal:
            raise NotFound("Goal not found")
        return goal

    def get_goal(self, goal_id: str) -> Dict:
        """Any member of the goal's organization may read it."""
        goal = self._load(goal_id)
        resolve_access(self.session, self.identity, goal.org_id)
        return goal.to_dict()

    def create_goal(self, org_id: str, description: str, target_value: float,
                    current_value: float) -> str:
        """Create a goal (admin only). Returns the new goal id."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, ADMIN_ROLES, "create new goals")

        raise_if_invalid(validate_goal_create({
            'description': description,
            'targetValue': target_value,
            'currentValue': current_value,
        }))

        goal = self.repository.create(
            org_id=org_id,
            description=sanitize_string(description),
            target_value=target_value,
            current_value=current_value,
            status=initial_status(current_value, target_value),
        )
        return goal['id']

    def update_goal(self, goal_id: str, updates: Dict[str, Any], silent: bool = False) -> Dict:
        """
        Merge a partial update into a goal (admin or member).

        Returns a result dict; user-visible edits carry a notification message,
        silent saves (action-step toggles, plan writes) do not.
        """
        goal = self._load(goal_id)
        access = resolve_access(self.session, self.identity, goal.org_id)
        require_role(access, WRITE_ROLES, "update goals")

        raise_if_invalid(validate_goal_update(updates))

        patch = dict(updates)
        if 'description' in patch:
            patch['description'] = sanitize_string(patch['description'])

        status = next_status(goal.to_dict(), patch)
        if status is not None:
            if status != goal.status:
                logger.info(f"Goal {goal_id} status {goal.status} -> {status}")
            patch['status'] = status

        updated = self.repository.patch(goal_id, patch)

        result = {'success': True, 'goal': updated}
        if not silent:
            result['message'] = 'Goal updated'
        return result

    def delete_goal(self, goal_id: str) -> None:
        """Delete a goal (admin only)."""
        goal = self._load(goal_id)
        access = resolve_access(self.session, self.identity, goal.org_id)
        require_role(access, ADMIN_ROLES, "delete goals")
        self.repository.delete(goal_id)

    def save_action_plan(self, goal_id: str, plan) -> Dict:
        """Persist a generated plan through the generic update path."""
        return self.update_goal(goal_id, {'actionPlan': plan}, silent=True)

    def update_action_step(self, goal_id: str, index: int, changes: Dict[str, Any]) -> Dict:
        """
        Replace one step of the action plan, leaving the others untouched,
        and save it silently.
        """
        goal = self._load(goal_id)
        access = resolve_access(self.session, self.identity, goal.org_id)
        require_role(access, WRITE_ROLES, "update goals")

        plan = goal.action_plan
        if not plan:
            raise ValidationError("Goal has no action plan.", 'actionPlan')
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(plan):
            raise ValidationError(f"Action step index out of range: {index}", 'index')

        raise_if_invalid(validate_action_step(changes, require_description=False))

        new_plan = [dict(step) for step in plan]
        step = new_plan[index]
        step.update(changes)
        # Empty optional fields are cleared rather than stored blank
        for key in ('dueDate', 'notes'):
            if key in step and step[key] in (None, ''):
                del step[key]
        new_plan[index] = step

        return self.update_goal(goal_id, {'actionPlan': new_plan}, silent=True)
