"""
Access Control - resolves identity -> user -> membership -> role/plan.

Every mutating operation calls resolve_access() or require_feature() before
touching state. Reads that expose cross-user data require at least the
'member' role (see READ_ROLES).
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from database.models import Membership, Organization, User

logger = logging.getLogger(__name__)

# Feature entitlements per subscription plan
PLANS: Dict[str, FrozenSet[str]] = {
    'solo': frozenset(),
    'pro': frozenset({'ai_action_plans', 'role_management'}),
    'enterprise': frozenset({'ai_action_plans', 'role_management'}),
}

FEATURES = ('ai_action_plans', 'role_management')

# Roles allowed to read organization data and log work.
# 'client' is reserved and deliberately absent.
READ_ROLES = ('admin', 'member')
WRITE_ROLES = ('admin', 'member')
ADMIN_ROLES = ('admin',)


class AccessError(Exception):
    """Base exception for access control failures"""
    status_code = 403

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Unauthenticated(AccessError):
    """No identity was supplied"""
    status_code = 401


class Forbidden(AccessError):
    """No membership, or the membership role is insufficient"""
    status_code = 403


class PlanRestricted(AccessError):
    """The organization's plan does not include a feature"""
    status_code = 403

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"Your plan does not include the feature: {feature}. Please upgrade.")


class NotFound(AccessError):
    """A referenced entity does not exist"""
    status_code = 404


@dataclass
class Access:
    """Resolved caller context for one organization"""
    user: User
    membership: Membership
    organization: Organization

    @property
    def role(self) -> str:
        return self.membership.role


def plan_has_feature(plan: str, feature: str) -> bool:
    """Check the static feature table"""
    return feature in PLANS.get(plan, frozenset())


def get_user_by_identity(session: Session, identity: Optional[str]) -> User:
    """
    Look up the user for an identity token.

    Raises:
        Unauthenticated: identity missing
        NotFound: user row missing
    """
    if not identity:
        raise Unauthenticated("User is not authenticated.")

    user = session.query(User).filter(User.token_identifier == identity).first()
    if not user:
        raise NotFound("User not found in database.")
    return user


def resolve_access(session: Session, identity: Optional[str], org_id: str) -> Access:
    """
    Resolve the caller's membership in an organization.

    Raises:
        Unauthenticated: no identity
        NotFound: user or organization missing
        Forbidden: no membership
    """
    user = get_user_by_identity(session, identity)

    organization = session.get(Organization, org_id) if org_id else None
    if not organization:
        raise NotFound("Organization not found.")

    membership = session.query(Membership).filter(
        Membership.org_id == organization.id,
        Membership.user_id == user.id
    ).first()
    if not membership:
        logger.info(f"User {user.id} denied access to organization {org_id}: no membership")
        raise Forbidden("User is not a member of this organization.")

    return Access(user=user, membership=membership, organization=organization)


def require_feature(session: Session, identity: Optional[str], org_id: str, feature: str) -> Access:
    """
    resolve_access() plus a plan entitlement check.

    Raises:
        PlanRestricted: the organization's plan lacks the feature
    """
    access = resolve_access(session, identity, org_id)
    if not plan_has_feature(access.organization.plan, feature):
        logger.info(f"Organization {org_id} on plan '{access.organization.plan}' lacks feature '{feature}'")
        raise PlanRestricted(feature)
    return access


def require_role(access: Access, roles, action: str = "perform this action") -> Access:
    """
    Ensure the resolved role is one of the allowed roles.

    Raises:
        Forbidden: role not allowed
    """
    if access.role not in roles:
        raise Forbidden(f"You do not have permission to {action} in this organization.")
    return access
