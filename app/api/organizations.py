"""
Organization & Membership Routes Blueprint

- POST   /api/organizations: create organization (caller becomes admin)
- GET    /api/organizations/<org_id>: details and member list
- PATCH  /api/organizations/<org_id>: rename
- POST   /api/organizations/<org_id>/members: add member
- PATCH  /api/memberships/<membership_id>: change role
- DELETE /api/memberships/<membership_id>: remove member
"""

import logging
from flask import Blueprint, g, jsonify

from app.utils import get_json_body
from auth import login_required
from database.connection import get_db_session
from services.organization_service import OrganizationService

logger = logging.getLogger(__name__)

# Create blueprint
organizations_bp = Blueprint('organizations_bp', __name__)


@organizations_bp.route('/api/organizations', methods=['POST'])
@login_required
def create_organization():
    """Create an organization on the solo plan"""
    data = get_json_body()
    with get_db_session() as session:
        organization = OrganizationService(session, g.identity).create_organization(data.get('name'))
        return jsonify({'success': True, 'organization': organization}), 201


@organizations_bp.route('/api/organizations/<org_id>', methods=['GET'])
@login_required
def get_organization(org_id):
    """Organization details with members sorted by name"""
    with get_db_session() as session:
        return jsonify(OrganizationService(session, g.identity).get_details(org_id))


@organizations_bp.route('/api/organizations/<org_id>', methods=['PATCH'])
@login_required
def update_organization(org_id):
    """Rename an organization"""
    data = get_json_body()
    with get_db_session() as session:
        OrganizationService(session, g.identity).update_name(org_id, data.get('name'))
    return jsonify({'success': True})


@organizations_bp.route('/api/organizations/<org_id>/members', methods=['POST'])
@login_required
def add_member(org_id):
    """Add an existing user as a member"""
    data = get_json_body()
    with get_db_session() as session:
        membership = OrganizationService(session, g.identity).add_member(org_id, data.get('userId'))
        return jsonify({'success': True, 'membership': membership}), 201


@organizations_bp.route('/api/memberships/<membership_id>', methods=['PATCH'])
@login_required
def update_membership(membership_id):
    """Change a member's role"""
    data = get_json_body()
    with get_db_session() as session:
        OrganizationService(session, g.identity).update_role(membership_id, data.get('role'))
    return jsonify({'success': True})


@organizations_bp.route('/api/memberships/<membership_id>', methods=['DELETE'])
@login_required
def remove_membership(membership_id):
    """Remove a member from the organization"""
    with get_db_session() as session:
        OrganizationService(session, g.identity).remove_member(membership_id)
    return jsonify({'success': True})
