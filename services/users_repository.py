"""
Users Repository - Database access layer for user management.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from database.models import Membership, Organization, User
from services.access_control import Unauthenticated

logger = logging.getLogger(__name__)


class UsersRepository:
    """Repository for user database operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        return self.session.get(User, user_id)

    def get_user_by_token(self, token_identifier: str) -> Optional[User]:
        """Get a user by identity token."""
        return self.session.query(User).filter(User.token_identifier == token_identifier).first()

    def create_user(self, token_identifier: str, name: str = '') -> Dict:
        """Create a new user with no organizations."""
        user = User(token_identifier=token_identifier, name=name or '', org_ids=[])
        self.session.add(user)
        self.session.flush()
        logger.info(f"Created user: {user.id}")
        return user.to_dict()

    def get_or_create(self, token_identifier: str, name: str = '') -> Dict:
        """Idempotent create used by first contact and the identity webhook."""
        user = self.get_user_by_token(token_identifier)
        if user:
            return user.to_dict()
        return self.create_user(token_identifier, name)

    def add_org(self, user_id: str, org_id: str) -> None:
        """Record an organization on the user's org list."""
        user = self.get_user(user_id)
        if not user:
            raise ValueError(f"User not found: {user_id}")
        org_ids = list(user.org_ids or [])
        if org_id not in org_ids:
            user.org_ids = org_ids + [org_id]
            user.updated_at = datetime.utcnow()
            self.session.flush()

    def remove_org(self, user_id: str, org_id: str) -> None:
        """Drop an organization from the user's org list."""
        user = self.get_user(user_id)
        if not user:
            raise ValueError(f"User not found: {user_id}")
        user.org_ids = [oid for oid in (user.org_ids or []) if oid != org_id]
        user.updated_at = datetime.utcnow()
        self.session.flush()

    def list_users(self) -> List[Dict]:
        """List all users ordered by name."""
        return [u.to_dict() for u in self.session.query(User).order_by(User.name).all()]

    def get_current_user_summary(self, token_identifier: Optional[str]) -> Dict:
        """
        User plus their organizations and memberships.

        The user row may not exist yet when the identity provider webhook has
        not fired; that case returns an empty summary instead of failing.
        """
        if not token_identifier:
            raise Unauthenticated("User is not authenticated.")

        user = self.get_user_by_token(token_identifier)
        if not user:
            return {'user': None, 'organizations': [], 'memberships': []}

        memberships = self.session.query(Membership).filter(Membership.user_id == user.id).all()
        organizations = [
            org.to_dict() for org in (self.session.get(Organization, m.org_id) for m in memberships)
            if org is not None
        ]

        return {
            'user': user.to_dict(),
            'organizations': organizations,
            'memberships': [m.to_dict() for m in memberships]
        }
