"""
Services package for Detailboard.
Contains repositories and permission-gated business operations.
"""

from services.access_control import (
    AccessError, Forbidden, NotFound, PlanRestricted, Unauthenticated,
    require_feature, require_role, resolve_access
)
from services.ai_chat_service import AIChatService
from services.goal_repository import GoalRepository
from services.goal_service import GoalService
from services.job_service import JobService
from services.knowledge_base import KnowledgeBaseService
from services.organization_service import OrganizationService
from services.plan_cache import PlanCache
from services.plan_generator import PlanGenerator
from services.users_repository import UsersRepository

__all__ = [
    'AccessError',
    'Forbidden',
    'NotFound',
    'PlanRestricted',
    'Unauthenticated',
    'require_feature',
    'require_role',
    'resolve_access',
    'AIChatService',
    'GoalRepository',
    'GoalService',
    'JobService',
    'KnowledgeBaseService',
    'OrganizationService',
    'PlanCache',
    'PlanGenerator',
    'UsersRepository'
]
