"""
Advisory Chat Routes Blueprint

Handles the AI business advisor:
- POST /api/threads: open a thread for an organization
- GET  /api/threads/<thread_id>/messages: message feed
- POST /api/threads/<thread_id>/messages: send a message (202)
- POST /api/threads/<thread_id>/suggest: suggest a follow-up question
"""

import logging
from flask import Blueprint, current_app, g, jsonify

from app.utils import get_ai_service, get_json_body
from auth import login_required
from database.connection import get_db_session
from services.ai_chat_service import AIChatService

logger = logging.getLogger(__name__)

# Create blueprint
ai_chat_bp = Blueprint('ai_chat_bp', __name__)


def _chat_service(session):
    return AIChatService(session, g.identity, get_ai_service(), current_app.config)


@ai_chat_bp.route('/api/threads', methods=['POST'])
@login_required
def create_thread():
    """Open a chat thread bound to an organization"""
    data = get_json_body()
    with get_db_session() as session:
        thread = _chat_service(session).create_thread(data.get('orgId'), data.get('title'))
        return jsonify({'success': True, 'thread': thread}), 201


@ai_chat_bp.route('/api/threads/<thread_id>/messages', methods=['GET'])
@login_required
def list_messages(thread_id):
    """Messages in a thread, oldest first"""
    with get_db_session() as session:
        return jsonify({'messages': _chat_service(session).list_messages(thread_id)})


@ai_chat_bp.route('/api/threads/<thread_id>/messages', methods=['POST'])
@login_required
def send_message(thread_id):
    """Send a user message; the assistant reply is stored on the thread"""
    data = get_json_body()
    with get_db_session() as session:
        result = _chat_service(session).send_message(thread_id, data.get('message'))
        return jsonify({'success': True, **result}), 202


@ai_chat_bp.route('/api/threads/<thread_id>/suggest', methods=['POST'])
@login_required
def suggest_question(thread_id):
    """One follow-up question for the user to ask"""
    with get_db_session() as session:
        question = _chat_service(session).suggest_next_question(thread_id)
    return jsonify({'question': question})
