"""
Inbound Webhook Routes Blueprint

- POST /webhooks/identity: identity provider events (user.created)
- POST /webhooks/billing: billing events (subscription.created/updated)

Both verify the Svix signature headers before touching state; a failed
verification answers 400.
"""

import logging
from flask import Blueprint, current_app, jsonify, request

from database.connection import get_db_session
from services.webhooks import handle_billing_event, handle_identity_event, verify_webhook

logger = logging.getLogger(__name__)

# Create blueprint
webhooks_bp = Blueprint('webhooks_bp', __name__)


def _verified_event():
    return verify_webhook(
        request.get_data(),
        request.headers,
        current_app.config.get('WEBHOOK_SECRET'),
        tolerance=current_app.config.get('WEBHOOK_TOLERANCE_SECONDS', 300),
    )


@webhooks_bp.route('/webhooks/identity', methods=['POST'])
def identity_webhook():
    """User lifecycle events"""
    event = _verified_event()
    with get_db_session() as session:
        handle_identity_event(session, event, current_app.config.get('IDENTITY_ISSUER', ''))
    return jsonify({'success': True})


@webhooks_bp.route('/webhooks/billing', methods=['POST'])
def billing_webhook():
    """Subscription plan changes"""
    event = _verified_event()
    with get_db_session() as session:
        handle_billing_event(session, event, current_app.config.get('BILLING_PLAN_IDS', {}))
    return jsonify({'success': True})
