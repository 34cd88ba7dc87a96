"""
Knowledge Base Routes Blueprint

- POST /api/knowledge-base/<org_id>/articles: add article (admin)
- GET  /api/knowledge-base/<org_id>/articles: list articles
- POST /api/knowledge-base/<org_id>/search: relevance search
"""

import logging
from flask import Blueprint, current_app, g, jsonify

from app.utils import get_ai_service, get_json_body
from auth import login_required
from database.connection import get_db_session
from services.knowledge_base import KnowledgeBaseService

logger = logging.getLogger(__name__)

# Create blueprint
knowledge_base_bp = Blueprint('knowledge_base_bp', __name__)


def _kb_service(session):
    return KnowledgeBaseService(
        session, g.identity, get_ai_service(),
        top_k=current_app.config.get('KNOWLEDGE_BASE_TOP_K', 3)
    )


@knowledge_base_bp.route('/api/knowledge-base/<org_id>/articles', methods=['POST'])
@login_required
def add_article(org_id):
    """Add an article"""
    data = get_json_body()
    with get_db_session() as session:
        article = _kb_service(session).add_article(org_id, data.get('title'), data.get('text'))
        return jsonify({'success': True, 'article': article}), 201


@knowledge_base_bp.route('/api/knowledge-base/<org_id>/articles', methods=['GET'])
@login_required
def list_articles(org_id):
    """Articles, newest first"""
    with get_db_session() as session:
        return jsonify({'articles': _kb_service(session).list_articles(org_id)})


@knowledge_base_bp.route('/api/knowledge-base/<org_id>/search', methods=['POST'])
@login_required
def search(org_id):
    """Top matches for a query"""
    data = get_json_body()
    with get_db_session() as session:
        return jsonify({'results': _kb_service(session).search(org_id, data.get('query'))})
