"""
Organization Service - organization details, membership management and
plan changes coming from billing.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from database.models import Membership, Organization, PLANS as PLAN_NAMES
from services.access_control import (
    ADMIN_ROLES, READ_ROLES, NotFound,
    get_user_by_identity, require_feature, require_role, resolve_access
)
from services.users_repository import UsersRepository
from validators import ValidationError, raise_if_invalid, validate_role, validate_string_length

logger = logging.getLogger(__name__)


class OrganizationService:
    """Permission-gated organization and membership operations."""

    def __init__(self, session: Session, identity: Optional[str]):
        self.session = session
        self.identity = identity
        self.users = UsersRepository(session)

    def create_organization(self, name: str) -> Dict:
        """Create an organization on the solo plan; the creator becomes admin."""
        user = get_user_by_identity(self.session, self.identity)
        raise_if_invalid(validate_string_length(name, min_length=1, max_length=255), 'name')

        org = Organization(name=name.strip(), plan='solo')
        self.session.add(org)
        self.session.flush()

        self.session.add(Membership(org_id=org.id, user_id=user.id, role='admin'))
        self.users.add_org(user.id, org.id)
        self.session.flush()

        logger.info(f"Created organization {org.id} for user {user.id}")
        return org.to_dict()

    def get_details(self, org_id: str) -> Dict:
        """Organization plus its members sorted by name."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, READ_ROLES, "view organization details")

        memberships = self.session.query(Membership).filter(Membership.org_id == org_id).all()
        members = []
        for m in memberships:
            user = self.users.get_user(m.user_id)
            if user is None:
                continue
            members.append({
                'userId': user.id,
                'name': user.name,
                'membershipId': m.id,
                'role': m.role,
            })
        members.sort(key=lambda member: member['name'].lower())

        return {'organization': access.organization.to_dict(), 'members': members}

    def update_name(self, org_id: str, name: str) -> None:
        """Rename the organization (admin, role_management plans only)."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, ADMIN_ROLES, "update the organization name")
        require_feature(self.session, self.identity, org_id, 'role_management')

        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Organization name cannot be empty.", 'name')

        access.organization.name = name.strip()
        access.organization.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Renamed organization {org_id}")

    def add_member(self, org_id: str, user_id: str) -> Dict:
        """Add an existing user to the organization with the 'member' role."""
        access = resolve_access(self.session, self.identity, org_id)
        require_role(access, ADMIN_ROLES, "add members")
        require_feature(self.session, self.identity, org_id, 'role_management')

        if not self.users.get_user(user_id):
            raise NotFound("User not found.")

        existing = self.session.query(Membership).filter(
            Membership.org_id == org_id,
            Membership.user_id == user_id
        ).first()
        if existing:
            raise ValidationError("User is already a member of this organization.", 'userId')

        membership = Membership(org_id=org_id, user_id=user_id, role='member')
        self.session.add(membership)
        self.users.add_org(user_id, org_id)
        self.session.flush()

        logger.info(f"Added user {user_id} to organization {org_id}")
        return membership.to_dict()

    def _get_membership(self, membership_id: str) -> Membership:
        membership = self.session.get(Membership, membership_id)
        if not membership:
            raise NotFound("Membership not found")
        return membership

    def update_role(self, membership_id: str, role: str) -> None:
        """Change a member's role. The reserved 'client' role cannot be assigned."""
        membership = self._get_membership(membership_id)
        require_feature(self.session, self.identity, membership.org_id, 'role_management')
        access = resolve_access(self.session, self.identity, membership.org_id)
        require_role(access, ADMIN_ROLES, "change roles")

        raise_if_invalid(validate_role(role), 'role')
        if role == 'client':
            raise ValidationError("Client role cannot be assigned through this function.", 'role')

        membership.role = role
        self.session.flush()
        logger.info(f"Membership {membership_id} role set to {role}")

    def remove_member(self, membership_id: str) -> None:
        """Delete a membership and drop the org from the user's list."""
        membership = self._get_membership(membership_id)
        require_feature(self.session, self.identity, membership.org_id, 'role_management')
        access = resolve_access(self.session, self.identity, membership.org_id)
        require_role(access, ADMIN_ROLES, "remove members")

        org_id, user_id = membership.org_id, membership.user_id
        self.session.delete(membership)
        self.users.remove_org(user_id, org_id)
        self.session.flush()
        logger.info(f"Removed user {user_id} from organization {org_id}")


def update_plan_by_billing_id(session: Session, billing_id: str, plan: str) -> bool:
    """
    Patch the plan of the organization with the given external billing id.
    Idempotent. Returns False when no organization matches.
    """
    if plan not in PLAN_NAMES:
        raise ValidationError(f"Unknown plan: {plan}", 'plan')

    organization = session.query(Organization).filter(Organization.billing_id == billing_id).first()
    if not organization:
        logger.error(f"Could not find organization with billing id {billing_id} to update plan.")
        return False

    if organization.plan != plan:
        organization.plan = plan
        organization.updated_at = datetime.utcnow()
        session.flush()
        logger.info(f"Organization {organization.id} moved to plan '{plan}'")
    return True
