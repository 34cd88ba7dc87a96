"""
Tests for signed webhook verification and event handling
"""
import json

import pytest

from config import TestingConfig
from database.models import Organization, User
from services.webhooks import (
    WebhookVerificationError, handle_billing_event, handle_identity_event,
    sign_payload, verify_webhook
)

SECRET = TestingConfig.WEBHOOK_SECRET
NOW = 1_720_000_000


def signed_headers(payload, msg_id='msg_1', timestamp=NOW, secret=SECRET):
    return {
        'svix-id': msg_id,
        'svix-timestamp': str(timestamp),
        'svix-signature': sign_payload(secret, msg_id, str(timestamp), payload),
    }


@pytest.mark.unit
class TestVerifyWebhook:
    """Tests for Svix-style signature checks"""

    def test_valid_signature(self):
        payload = json.dumps({'type': 'user.created', 'data': {'id': 'user_1'}})
        event = verify_webhook(payload, signed_headers(payload), SECRET, now=NOW)
        assert event['data']['id'] == 'user_1'

    def test_accepts_bytes_payload(self):
        payload = json.dumps({'type': 'ping'})
        event = verify_webhook(payload.encode(), signed_headers(payload), SECRET, now=NOW)
        assert event == {'type': 'ping'}

    def test_one_of_several_signatures_matches(self):
        payload = '{"type": "ping"}'
        headers = signed_headers(payload)
        headers['svix-signature'] = 'v1,bm90LXRoZS1yaWdodC1vbmU= ' + headers['svix-signature']
        assert verify_webhook(payload, headers, SECRET, now=NOW) == {'type': 'ping'}

    def test_tampered_body_rejected(self):
        payload = '{"type": "ping"}'
        headers = signed_headers(payload)
        with pytest.raises(WebhookVerificationError):
            verify_webhook('{"type": "pong"}', headers, SECRET, now=NOW)

    def test_wrong_secret_rejected(self):
        payload = '{"type": "ping"}'
        headers = signed_headers(payload, secret='whsec_b3RoZXItc2VjcmV0')
        with pytest.raises(WebhookVerificationError):
            verify_webhook(payload, headers, SECRET, now=NOW)

    def test_missing_headers_rejected(self):
        with pytest.raises(WebhookVerificationError):
            verify_webhook('{}', {'svix-id': 'msg_1'}, SECRET, now=NOW)

    def test_stale_timestamp_rejected(self):
        payload = '{"type": "ping"}'
        headers = signed_headers(payload, timestamp=NOW - 301)
        with pytest.raises(WebhookVerificationError):
            verify_webhook(payload, headers, SECRET, tolerance=300, now=NOW)

    def test_non_numeric_timestamp_rejected(self):
        headers = {'svix-id': 'msg_1', 'svix-timestamp': 'yesterday', 'svix-signature': 'v1,abc'}
        with pytest.raises(WebhookVerificationError):
            verify_webhook('{}', headers, SECRET, now=NOW)

    def test_non_object_payload_rejected(self):
        payload = '[1, 2, 3]'
        with pytest.raises(WebhookVerificationError):
            verify_webhook(payload, signed_headers(payload), SECRET, now=NOW)

    def test_unconfigured_secret_rejected(self):
        payload = '{"type": "ping"}'
        with pytest.raises(WebhookVerificationError):
            verify_webhook(payload, signed_headers(payload), '', now=NOW)


@pytest.mark.unit
class TestIdentityEvents:
    """Tests for identity provider events"""

    def test_user_created(self, db_session):
        event = {'type': 'user.created', 'data': {'id': 'user_42', 'first_name': 'Maria', 'last_name': 'Lopez'}}

        user = handle_identity_event(db_session, event, 'https://identity.test')

        assert user['tokenIdentifier'] == 'https://identity.test|user_42'
        assert user['name'] == 'Maria Lopez'
        assert user['orgIds'] == []

    def test_user_created_is_idempotent(self, db_session):
        event = {'type': 'user.created', 'data': {'id': 'user_42', 'first_name': 'Maria'}}
        first = handle_identity_event(db_session, event, 'iss')
        second = handle_identity_event(db_session, event, 'iss')

        assert first['id'] == second['id']
        assert db_session.query(User).filter(User.token_identifier == 'iss|user_42').count() == 1

    def test_missing_last_name(self, db_session):
        event = {'type': 'user.created', 'data': {'id': 'user_7', 'first_name': 'Sam', 'last_name': None}}
        assert handle_identity_event(db_session, event, 'iss')['name'] == 'Sam'

    def test_other_events_ignored(self, db_session):
        assert handle_identity_event(db_session, {'type': 'user.deleted', 'data': {'id': 'x'}}, 'iss') is None


@pytest.mark.unit
class TestBillingEvents:
    """Tests for subscription events"""

    PLAN_IDS = {'plan_pro': 'pro', 'plan_enterprise': 'enterprise'}

    def test_subscription_updated_changes_plan(self, db_session, seed):
        event = {'type': 'subscription.updated',
                 'data': {'organization_id': 'org_billing_solo', 'plan_id': 'plan_enterprise'}}

        assert handle_billing_event(db_session, event, self.PLAN_IDS) is True
        assert db_session.get(Organization, seed.solo_org_id).plan == 'enterprise'

    def test_unknown_plan_ignored(self, db_session, seed):
        event = {'type': 'subscription.created',
                 'data': {'organization_id': 'org_billing_solo', 'plan_id': 'plan_platinum'}}

        assert handle_billing_event(db_session, event, self.PLAN_IDS) is False
        assert db_session.get(Organization, seed.solo_org_id).plan == 'solo'

    def test_unknown_organization_ignored(self, db_session, seed):
        event = {'type': 'subscription.created',
                 'data': {'organization_id': 'org_billing_missing', 'plan_id': 'plan_pro'}}
        assert handle_billing_event(db_session, event, self.PLAN_IDS) is False

    def test_missing_fields_ignored(self, db_session, seed):
        event = {'type': 'subscription.created', 'data': {'plan_id': 'plan_pro'}}
        assert handle_billing_event(db_session, event, self.PLAN_IDS) is False

    def test_other_events_ignored(self, db_session, seed):
        event = {'type': 'invoice.paid', 'data': {'organization_id': 'org_billing_solo', 'plan_id': 'plan_pro'}}
        assert handle_billing_event(db_session, event, self.PLAN_IDS) is False
        assert db_session.get(Organization, seed.solo_org_id).plan == 'solo'
