"""
Goal Repository - Database operations for goals.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from database.models import Goal

logger = logging.getLogger(__name__)

# camelCase wire field -> model attribute
FIELD_MAP = {
    'description': 'description',
    'targetValue': 'target_value',
    'currentValue': 'current_value',
    'status': 'status',
    'actionPlan': 'action_plan',
}


class GoalRepository:
    """Repository for goal database operations."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, goal_id: str) -> Optional[Goal]:
        """Get a goal model by ID."""
        return self.session.get(Goal, goal_id)

    def list_goals(self, org_id: str) -> List[Dict]:
        """
        List an organization's goals: active first, then newest first.
        """
        goals = self.session.query(Goal).filter(Goal.org_id == org_id).all()
        goals.sort(key=lambda g: g.created_at or datetime.min, reverse=True)
        goals.sort(key=lambda g: 0 if g.status == 'active' else 1)
        return [g.to_dict() for g in goals]

    def create(self, org_id: str, description: str, target_value: float,
               current_value: float, status: str) -> Dict:
        """Insert a new goal."""
        goal = Goal(
            org_id=org_id,
            description=description,
            target_value=target_value,
            current_value=current_value,
            status=status,
        )
        self.session.add(goal)
        self.session.flush()
        logger.info(f"Created goal {goal.id} in organization {org_id} with status {status}")
        return goal.to_dict()

    def patch(self, goal_id: str, updates: Dict) -> Optional[Dict]:
        """Apply a single-document patch of wire fields and return a fresh read."""
        goal = self.get(goal_id)
        if not goal:
            return None

        for key, value in updates.items():
            attr = FIELD_MAP.get(key)
            if attr is None:
                continue
            if key == 'actionPlan' and value is not None:
                value = [dict(step) for step in value]
            setattr(goal, attr, value)

        goal.updated_at = datetime.utcnow()
        self.session.flush()
        return goal.to_dict()

    def delete(self, goal_id: str) -> bool:
        """Delete a goal."""
        goal = self.get(goal_id)
        if not goal:
            return False
        self.session.delete(goal)
        self.session.flush()
        logger.info(f"Deleted goal {goal_id}")
        return True
