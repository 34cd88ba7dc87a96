"""
End-to-end tests for the HTTP API
"""
import json
import time

import pytest

from services.webhooks import sign_payload


def webhook_headers(app, payload, msg_id='msg_test'):
    timestamp = str(int(time.time()))
    return {
        'svix-id': msg_id,
        'svix-timestamp': timestamp,
        'svix-signature': sign_payload(app.config['WEBHOOK_SECRET'], msg_id, timestamp, payload),
        'Content-Type': 'application/json',
    }


@pytest.fixture
def seed(app):
    return app.seed


@pytest.fixture
def as_user(auth_headers, seed):
    def _headers(key):
        return auth_headers(getattr(seed, f"{key}_token"))
    return _headers


@pytest.mark.integration
class TestAuthentication:
    """Tests for identity handling"""

    def test_missing_token(self, client):
        response = client.get('/api/me')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Authentication required'

    def test_malformed_header(self, client):
        response = client.get('/api/me', headers={'Authorization': 'Token abc'})
        assert response.status_code == 401

    def test_me_summary(self, client, as_user):
        data = client.get('/api/me', headers=as_user('alice')).get_json()
        assert data['user']['name'] == 'Alice Admin'
        assert len(data['organizations']) == 2

    def test_me_creates_user_on_first_contact(self, client, auth_headers):
        data = client.get('/api/me', headers=auth_headers('token-newcomer')).get_json()
        assert data['user']['tokenIdentifier'] == 'token-newcomer'
        assert data['organizations'] == []


@pytest.mark.integration
class TestGoalsApi:
    """Tests for the goal endpoints"""

    def _create(self, client, as_user, seed, current=0, org='pro'):
        org_id = seed.pro_org_id if org == 'pro' else seed.solo_org_id
        response = client.post('/api/goals', headers=as_user('alice'), json={
            'orgId': org_id, 'description': 'Reach $10k', 'targetValue': 10000, 'currentValue': current
        })
        assert response.status_code == 201
        return response.get_json()['id']

    def test_create_and_read(self, client, as_user, seed):
        goal_id = self._create(client, as_user, seed)
        data = client.get(f'/api/goals/{goal_id}', headers=as_user('bob')).get_json()
        assert data['status'] == 'active'

    def test_update_completes_goal(self, client, as_user, seed):
        goal_id = self._create(client, as_user, seed)
        response = client.patch(f'/api/goals/{goal_id}', headers=as_user('bob'), json={'currentValue': 10000})
        data = response.get_json()
        assert data['goal']['status'] == 'completed'
        assert data['message'] == 'Goal updated'

    def test_member_cannot_create(self, client, as_user, seed):
        response = client.post('/api/goals', headers=as_user('bob'), json={
            'orgId': seed.pro_org_id, 'description': 'X', 'targetValue': 10, 'currentValue': 0
        })
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Forbidden'

    def test_validation_error_shape(self, client, as_user, seed):
        response = client.post('/api/goals', headers=as_user('alice'), json={
            'orgId': seed.pro_org_id, 'description': 'X', 'targetValue': -1, 'currentValue': 0
        })
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Validation Error'

    def test_non_object_body(self, client, as_user):
        response = client.post('/api/goals', headers=as_user('alice'), data='[1, 2]',
                               content_type='application/json')
        assert response.status_code == 400

    def test_missing_goal(self, client, as_user):
        response = client.get('/api/goals/nope', headers=as_user('alice'))
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Not Found'

    def test_delete(self, client, as_user, seed):
        goal_id = self._create(client, as_user, seed)
        assert client.delete(f'/api/goals/{goal_id}', headers=as_user('alice')).status_code == 200
        assert client.get(f'/api/goals/{goal_id}', headers=as_user('alice')).status_code == 404

    def test_plan_generation_and_step_edit(self, client, as_user, seed, app):
        goal_id = self._create(client, as_user, seed)
        app.ai_service.queue_json([
            {'description': 'Launch referral discount'},
            {'description': 'Post weekly photos', 'notes': 'Instagram'},
            {'description': 'Call fleet customers', 'dueDate': '2024-08-01'},
        ])

        response = client.post(f'/api/goals/{goal_id}/plan', headers=as_user('bob'))
        assert response.status_code == 200
        assert len(response.get_json()['actionPlan']) == 3

        response = client.patch(f'/api/goals/{goal_id}/steps/0', headers=as_user('bob'),
                                json={'completed': True})
        data = response.get_json()
        assert data['goal']['actionPlan'][0]['completed'] is True
        assert 'message' not in data

        stored = client.get(f'/api/goals/{goal_id}', headers=as_user('bob')).get_json()
        assert stored['actionPlan'][0]['completed'] is True
        assert stored['actionPlan'][1]['notes'] == 'Instagram'

    def test_plan_restricted_on_solo(self, client, as_user, seed, app):
        goal_id = self._create(client, as_user, seed, org='solo')
        response = client.post(f'/api/goals/{goal_id}/plan', headers=as_user('alice'))

        assert response.status_code == 403
        data = response.get_json()
        assert data['code'] == 'plan_restricted'
        assert data['feature'] == 'ai_action_plans'
        assert app.ai_service.calls == []

    def test_plan_upstream_failure(self, client, as_user, seed, app):
        goal_id = self._create(client, as_user, seed)
        app.ai_service.queue_text("not json at all")

        response = client.post(f'/api/goals/{goal_id}/plan', headers=as_user('alice'))

        assert response.status_code == 502
        stored = client.get(f'/api/goals/{goal_id}', headers=as_user('alice')).get_json()
        assert stored['actionPlan'] is None


@pytest.mark.integration
class TestJobsAndDashboardApi:
    """Tests for logging work and reading the dashboard"""

    def test_log_job_and_read_dashboard(self, client, as_user, seed):
        for job_type, value, source, date in (('Detail', 200, 'Google', '2024-06-03'),
                                              ('Wash', 50, 'Referral', '2024-07-01'),
                                              ('Wash', 100, 'Google', '2024-07-20')):
            response = client.post('/api/jobs', headers=as_user('bob'), json={
                'orgId': seed.pro_org_id, 'type': job_type, 'value': value, 'leadSource': source, 'date': date
            })
            assert response.status_code == 201

        response = client.post('/api/analytics', headers=as_user('bob'), json={
            'orgId': seed.pro_org_id, 'dataType': 'Marketing Spend', 'value': 300, 'date': '2024-07-01'
        })
        assert response.status_code == 201

        data = client.get(f'/api/dashboard/{seed.pro_org_id}', headers=as_user('bob')).get_json()
        assert len(data['jobs']) == 3
        assert data['analytics'][0]['dataType'] == 'Marketing Spend'
        assert data['chartData']['revenueByType'] == [
            {'name': 'Detail', 'value': 200},
            {'name': 'Wash', 'value': 150},
        ]

    def test_client_dashboard_is_null(self, client, as_user, seed):
        response = client.get(f'/api/dashboard/{seed.pro_org_id}', headers=as_user('carol'))
        assert response.status_code == 200
        assert response.get_json() is None

    def test_outsider_dashboard_forbidden(self, client, as_user, seed):
        response = client.get(f'/api/dashboard/{seed.pro_org_id}', headers=as_user('dave'))
        assert response.status_code == 403

    def test_bad_job_date(self, client, as_user, seed):
        response = client.post('/api/jobs', headers=as_user('bob'), json={
            'orgId': seed.pro_org_id, 'type': 'Wash', 'value': 40, 'leadSource': 'Google', 'date': '07/01/2024'
        })
        assert response.status_code == 400


@pytest.mark.integration
class TestOrganizationsApi:
    """Tests for organization and membership endpoints"""

    def test_create_organization(self, client, as_user):
        response = client.post('/api/organizations', headers=as_user('dave'), json={'name': 'Dave Wash'})
        assert response.status_code == 201
        assert response.get_json()['organization']['plan'] == 'solo'

    def test_member_management(self, client, as_user, seed):
        response = client.post(f'/api/organizations/{seed.pro_org_id}/members', headers=as_user('alice'),
                               json={'userId': seed.dave_id})
        assert response.status_code == 201
        membership_id = response.get_json()['membership']['id']

        response = client.patch(f'/api/memberships/{membership_id}', headers=as_user('alice'),
                                json={'role': 'admin'})
        assert response.status_code == 200

        details = client.get(f'/api/organizations/{seed.pro_org_id}', headers=as_user('dave')).get_json()
        assert {'name': 'Dave Nobody', 'role': 'admin'}.items() <= next(
            m for m in details['members'] if m['userId'] == seed.dave_id
        ).items()

        response = client.delete(f'/api/memberships/{membership_id}', headers=as_user('alice'))
        assert response.status_code == 200
        assert client.get(f'/api/organizations/{seed.pro_org_id}', headers=as_user('dave')).status_code == 403

    def test_rename_restricted_on_solo(self, client, as_user, seed):
        response = client.patch(f'/api/organizations/{seed.solo_org_id}', headers=as_user('alice'),
                                json={'name': 'Bigger Suds'})
        assert response.status_code == 403
        assert response.get_json()['code'] == 'plan_restricted'


@pytest.mark.integration
class TestAdvisorApi:
    """Tests for chat threads and the knowledge base endpoints"""

    def test_chat_round_trip(self, client, as_user, seed, app):
        thread = client.post('/api/threads', headers=as_user('bob'),
                             json={'orgId': seed.pro_org_id}).get_json()['thread']
        app.ai_service.queue_text("Focus on ceramic coatings.")

        response = client.post(f"/api/threads/{thread['id']}/messages", headers=as_user('bob'),
                               json={'message': 'What should I sell more of?'})

        assert response.status_code == 202
        assert response.get_json()['assistantMessage']['content'] == "Focus on ceramic coatings."
        messages = client.get(f"/api/threads/{thread['id']}/messages", headers=as_user('bob')).get_json()['messages']
        assert [m['role'] for m in messages] == ['user', 'assistant']

    def test_chat_degrades_on_upstream_error(self, client, as_user, seed, app):
        thread = client.post('/api/threads', headers=as_user('bob'),
                             json={'orgId': seed.pro_org_id}).get_json()['thread']
        app.ai_service.queue_error()

        response = client.post(f"/api/threads/{thread['id']}/messages", headers=as_user('bob'),
                               json={'message': 'Hello'})

        assert response.status_code == 202
        assert response.get_json()['assistantMessage']['content'].startswith("I encountered an error")

    def test_suggest_question(self, client, as_user, seed, app):
        thread = client.post('/api/threads', headers=as_user('bob'),
                             json={'orgId': seed.pro_org_id}).get_json()['thread']
        app.ai_service.queue_text("**Which lead source converts best?**")

        response = client.post(f"/api/threads/{thread['id']}/suggest", headers=as_user('bob'))
        assert response.get_json() == {'question': 'Which lead source converts best?'}

    def test_knowledge_base(self, client, as_user, seed):
        response = client.post(f'/api/knowledge-base/{seed.pro_org_id}/articles', headers=as_user('alice'),
                               json={'title': 'Ceramic coating pricing', 'text': 'Charge $900 per ceramic coating.'})
        assert response.status_code == 201
        assert response.get_json()['article']['indexed'] is True

        articles = client.get(f'/api/knowledge-base/{seed.pro_org_id}/articles',
                              headers=as_user('bob')).get_json()['articles']
        assert len(articles) == 1

        results = client.post(f'/api/knowledge-base/{seed.pro_org_id}/search', headers=as_user('bob'),
                              json={'query': 'ceramic coating'}).get_json()['results']
        assert results[0]['title'] == 'Ceramic coating pricing'


@pytest.mark.integration
class TestWebhooksApi:
    """Tests for signed webhook endpoints"""

    def test_identity_webhook_creates_user(self, client, app, auth_headers):
        payload = json.dumps({'type': 'user.created',
                              'data': {'id': 'user_99', 'first_name': 'Pat', 'last_name': 'Shine'}})

        response = client.post('/webhooks/identity', data=payload, headers=webhook_headers(app, payload))
        assert response.status_code == 200

        token = f"{app.config['IDENTITY_ISSUER']}|user_99"
        data = client.get('/api/me', headers=auth_headers(token)).get_json()
        assert data['user']['name'] == 'Pat Shine'

    def test_billing_webhook_upgrades_plan(self, client, app, as_user, seed):
        payload = json.dumps({'type': 'subscription.updated',
                              'data': {'organization_id': 'org_billing_solo', 'plan_id': 'plan_pro'}})

        response = client.post('/webhooks/billing', data=payload, headers=webhook_headers(app, payload))
        assert response.status_code == 200

        details = client.get(f'/api/organizations/{seed.solo_org_id}', headers=as_user('alice')).get_json()
        assert details['organization']['plan'] == 'pro'

    def test_bad_signature_rejected(self, client, app):
        payload = json.dumps({'type': 'user.created', 'data': {'id': 'user_1'}})
        headers = webhook_headers(app, payload)
        headers['svix-signature'] = 'v1,AAAA'

        response = client.post('/webhooks/identity', data=payload, headers=headers)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Webhook Error'
