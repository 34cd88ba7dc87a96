"""
Webhooks - signed events from the identity provider and the billing system.

Both senders use the Svix signing scheme:
    secret:     'whsec_' + base64 key
    signed:     '{svix-id}.{svix-timestamp}.{raw body}'
    signature:  space separated 'v1,<base64 HMAC-SHA256>' entries
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from services.organization_service import update_plan_by_billing_id
from services.users_repository import UsersRepository

logger = logging.getLogger(__name__)

SECRET_PREFIX = 'whsec_'
DEFAULT_TOLERANCE_SECONDS = 5 * 60


class WebhookVerificationError(Exception):
    """Signature, timestamp or payload of a webhook is invalid"""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _secret_bytes(secret: str) -> bytes:
    if not secret:
        raise WebhookVerificationError("Webhook secret is not configured")
    if secret.startswith(SECRET_PREFIX):
        secret = secret[len(SECRET_PREFIX):]
    try:
        return base64.b64decode(secret)
    except ValueError:
        raise WebhookVerificationError("Webhook secret is not valid base64")


def sign_payload(secret: str, msg_id: str, timestamp: str, payload: str) -> str:
    """Compute the 'v1,<signature>' entry for a payload"""
    content = f"{msg_id}.{timestamp}.{payload}".encode()
    digest = hmac.new(_secret_bytes(secret), content, hashlib.sha256).digest()
    return f"v1,{base64.b64encode(digest).decode()}"


def verify_webhook(payload, headers: Mapping[str, str], secret: str,
                   tolerance: int = DEFAULT_TOLERANCE_SECONDS, now: Optional[float] = None) -> Dict[str, Any]:
    """
    Verify a signed webhook and return the decoded event

    Args:
        payload: Raw request body (bytes or str)
        headers: Request headers containing svix-id, svix-timestamp, svix-signature
        secret: Signing secret
        tolerance: Maximum clock skew in seconds
        now: Current unix time, defaults to time.time()

    Returns:
        The event dict

    Raises:
        WebhookVerificationError: On any verification or decoding failure
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError:
            raise WebhookVerificationError("Payload is not valid UTF-8")

    msg_id = headers.get('svix-id')
    timestamp = headers.get('svix-timestamp')
    signature_header = headers.get('svix-signature')
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing required webhook headers")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookVerificationError("Invalid webhook timestamp")

    now = time.time() if now is None else now
    if abs(now - sent_at) > tolerance:
        raise WebhookVerificationError("Webhook timestamp outside tolerance")

    expected = sign_payload(secret, msg_id, timestamp, payload).split(',', 1)[1]
    for entry in signature_header.split():
        version, _, signature = entry.partition(',')
        if version == 'v1' and hmac.compare_digest(signature, expected):
            break
    else:
        raise WebhookVerificationError("No matching webhook signature")

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        raise WebhookVerificationError("Webhook payload is not valid JSON")
    if not isinstance(event, dict):
        raise WebhookVerificationError("Webhook payload must be a JSON object")
    return event


def handle_identity_event(session: Session, event: Dict[str, Any], issuer: str) -> Optional[Dict]:
    """
    Create the user for a 'user.created' event if absent. Other events are ignored.

    Returns the user dict when the event was handled.
    """
    if event.get('type') != 'user.created':
        logger.info(f"Ignoring identity event '{event.get('type')}'")
        return None

    data = event.get('data') or {}
    external_id = data.get('id')
    if not external_id:
        logger.warning("Identity webhook missing data.id")
        return None

    name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
    token = f"{issuer}|{external_id}"
    return UsersRepository(session).get_or_create(token, name)


def handle_billing_event(session: Session, event: Dict[str, Any], plan_ids: Mapping[str, str]) -> bool:
    """
    Apply a subscription change to the organization it names.

    Returns True when an organization's plan was set. Missing fields,
    unknown plan ids and unknown organizations are logged and ignored.
    """
    if event.get('type') not in ('subscription.created', 'subscription.updated'):
        logger.info(f"Ignoring billing event '{event.get('type')}'")
        return False

    data = event.get('data') or {}
    billing_org_id = data.get('organization_id')
    billing_plan_id = data.get('plan_id')
    if not billing_org_id or not billing_plan_id:
        logger.warning("Billing webhook missing organization_id or plan_id")
        return False

    plan = plan_ids.get(billing_plan_id)
    if not plan:
        logger.warning(f"Unknown billing plan ID received in webhook: {billing_plan_id}")
        return False

    return update_plan_by_billing_id(session, billing_org_id, plan)
