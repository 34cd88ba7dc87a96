"""
Goal Routes Blueprint

- POST   /api/goals: create goal
- GET    /api/goals/<goal_id>: read goal
- PATCH  /api/goals/<goal_id>: partial update
- DELETE /api/goals/<goal_id>: delete goal
- PATCH  /api/goals/<goal_id>/steps/<index>: edit one action step (silent)
- POST   /api/goals/<goal_id>/plan: generate (or fetch cached) action plan
"""

import logging
from flask import Blueprint, current_app, g, jsonify

from app.utils import get_ai_service, get_json_body, get_plan_cache
from auth import login_required
from database.connection import get_db_session
from services.goal_service import GoalService
from services.plan_generator import PlanGenerator

logger = logging.getLogger(__name__)

# Create blueprint
goals_bp = Blueprint('goals_bp', __name__)


@goals_bp.route('/api/goals', methods=['POST'])
@login_required
def create_goal():
    """Create a goal; status is derived from the values"""
    data = get_json_body()
    with get_db_session() as session:
        goal_id = GoalService(session, g.identity).create_goal(
            data.get('orgId'),
            data.get('description'),
            data.get('targetValue'),
            data.get('currentValue'),
        )
    return jsonify({'id': goal_id}), 201


@goals_bp.route('/api/goals/<goal_id>', methods=['GET'])
@login_required
def get_goal(goal_id):
    """Read one goal"""
    with get_db_session() as session:
        return jsonify(GoalService(session, g.identity).get_goal(goal_id))


@goals_bp.route('/api/goals/<goal_id>', methods=['PATCH'])
@login_required
def update_goal(goal_id):
    """Merge a partial update into a goal"""
    data = get_json_body()
    with get_db_session() as session:
        return jsonify(GoalService(session, g.identity).update_goal(goal_id, data))


@goals_bp.route('/api/goals/<goal_id>', methods=['DELETE'])
@login_required
def delete_goal(goal_id):
    """Delete a goal"""
    with get_db_session() as session:
        GoalService(session, g.identity).delete_goal(goal_id)
    return jsonify({'success': True})


@goals_bp.route('/api/goals/<goal_id>/steps/<int:index>', methods=['PATCH'])
@login_required
def update_action_step(goal_id, index):
    """Edit a single action step without a user-visible notification"""
    data = get_json_body()
    with get_db_session() as session:
        return jsonify(GoalService(session, g.identity).update_action_step(goal_id, index, data))


@goals_bp.route('/api/goals/<goal_id>/plan', methods=['POST'])
@login_required
def generate_plan(goal_id):
    """Generate an action plan and store it on the goal"""
    with get_db_session() as session:
        generator = PlanGenerator(
            session, g.identity, get_ai_service(), get_plan_cache(), current_app.config
        )
        plan = generator.generate_plan(goal_id)
        GoalService(session, g.identity).save_action_plan(goal_id, plan)
    return jsonify({'actionPlan': plan})
