"""
SQLAlchemy models for Detailboard.
Defines the multi-tenant tables for organizations, goals, jobs and the AI features.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Float, DateTime, ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# Enumerations kept as plain strings; validated in the service layer
PLANS = ('solo', 'pro', 'enterprise')
ROLES = ('admin', 'member', 'client')
GOAL_STATUSES = ('active', 'completed', 'archived')


# =============================================================================
# ORGANIZATION (Multi-tenant foundation)
# =============================================================================

class Organization(Base):
    """
    Organization/Company - the tenant every other record belongs to.
    The subscription plan decides which features are available.
    """
    __tablename__ = 'organizations'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    plan = Column(String(20), nullable=False, default='solo')
    billing_id = Column(String(255), unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    memberships = relationship("Membership", back_populates="organization", cascade="all, delete-orphan")
    jobs = relationship("Job", back_populates="organization", cascade="all, delete-orphan")
    goals = relationship("Goal", back_populates="organization", cascade="all, delete-orphan")
    articles = relationship("KnowledgeArticle", back_populates="organization", cascade="all, delete-orphan")
    threads = relationship("ChatThread", back_populates="organization", cascade="all, delete-orphan")
    analytics = relationship("Analytic", back_populates="organization", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_organizations_billing_id', 'billing_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'plan': self.plan,
            'billingId': self.billing_id,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


# =============================================================================
# USERS & MEMBERSHIPS
# =============================================================================

class User(Base):
    """Application users, keyed by the identity provider's token identifier."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    token_identifier = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False, default='')
    org_ids = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_users_token', 'token_identifier'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'tokenIdentifier': self.token_identifier,
            'orgIds': list(self.org_ids or []),
            'createdAt': _iso(self.created_at)
        }


class Membership(Base):
    """(organization, user) pair with a role. Unique per pair."""
    __tablename__ = 'memberships'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    org_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    role = Column(String(20), nullable=False, default='member')
    created_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('org_id', 'user_id', name='uq_memberships_org_user'),
        Index('ix_memberships_user', 'user_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.org_id,
            'userId': self.user_id,
            'role': self.role,
        }


# =============================================================================
# JOBS (append-only log)
# =============================================================================

class Job(Base):
    """Completed job. Immutable once created; source of all analytics."""
    __tablename__ = 'jobs'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    org_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    type = Column(String(255), nullable=False)
    value = Column(Float, nullable=False)
    lead_source = Column(String(255), nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    created_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="jobs")

    __table_args__ = (
        Index('ix_jobs_org', 'org_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.org_id,
            'type': self.type,
            'value': self.value,
            'leadSource': self.lead_source,
            'date': self.date,
        }


class Analytic(Base):
    """Free-form business metric such as monthly marketing spend."""
    __tablename__ = 'analytics'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    org_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    data_type = Column(String(255), nullable=False)
    value = Column(Float, nullable=False)
    date = Column(String(10), nullable=False)
    details = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="analytics")

    __table_args__ = (
        Index('ix_analytics_org', 'org_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.org_id,
            'dataType': self.data_type,
            'value': self.value,
            'date': self.date,
            'details': self.details,
        }


# =============================================================================
# GOALS
# =============================================================================

class Goal(Base):
    """Business goal with an optional AI-generated action plan."""
    __tablename__ = 'goals'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    org_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    description = Column(Text, nullable=False)
    target_value = Column(Float, nullable=False)
    current_value = Column(Float, nullable=False, default=0)
    status = Column(String(20), nullable=False, default='active')
    action_plan = Column(JSON)  # ordered list of action steps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization", back_populates="goals")

    __table_args__ = (
        Index('ix_goals_org', 'org_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.org_id,
            'description': self.description,
            'targetValue': self.target_value,
            'currentValue': self.current_value,
            'status': self.status,
            'actionPlan': [dict(step) for step in self.action_plan] if self.action_plan is not None else None,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at)
        }


# =============================================================================
# AI: KNOWLEDGE BASE & CHAT
# =============================================================================

class KnowledgeArticle(Base):
    """Free-text article searchable by the advisory agent."""
    __tablename__ = 'knowledge_articles'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    org_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    title = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)
    embedding = Column(JSON)  # null until indexed
    created_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="articles")

    __table_args__ = (
        Index('ix_knowledge_articles_org', 'org_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.org_id,
            'title': self.title,
            'text': self.text,
            'indexed': self.embedding is not None,
            'createdAt': _iso(self.created_at)
        }


class ChatThread(Base):
    """Conversation bound to exactly one organization."""
    __tablename__ = 'chat_threads'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    org_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    created_by = Column(String(36), ForeignKey('users.id'))
    title = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="threads")
    messages = relationship(
        "ChatMessage", back_populates="thread",
        cascade="all, delete-orphan", order_by="ChatMessage.created_at"
    )

    __table_args__ = (
        Index('ix_chat_threads_org', 'org_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'orgId': self.org_id,
            'createdBy': self.created_by,
            'title': self.title,
            'createdAt': _iso(self.created_at)
        }


class ChatMessage(Base):
    """Single message in a chat thread."""
    __tablename__ = 'chat_messages'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    thread_id = Column(String(36), ForeignKey('chat_threads.id'), nullable=False)
    role = Column(String(20), nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    thread = relationship("ChatThread", back_populates="messages")

    __table_args__ = (
        Index('ix_chat_messages_thread', 'thread_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'threadId': self.thread_id,
            'role': self.role,
            'content': self.content,
            'createdAt': _iso(self.created_at)
        }
