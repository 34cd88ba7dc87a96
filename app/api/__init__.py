"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Accounts:
- auth_routes.py    : Current user (/api/me)
- organizations.py  : Organizations, members, roles

Business data:
- goals.py          : Goals, action steps, AI action plans
- jobs.py           : Job log and business metrics
- dashboard.py      : Dashboard read model with chart data

AI advisor:
- ai_chat.py        : Chat threads, messages, question suggestions
- knowledge_base.py : Knowledge base articles and search

Inbound:
- webhooks.py       : Identity provider and billing webhooks
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
