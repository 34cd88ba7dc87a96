"""
Pytest configuration and shared fixtures
"""
import json
import os
import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ai_service import AIServiceError, parse_json_response  # noqa: E402


# Words the fake embedder knows; each gets its own dimension
EMBEDDING_VOCABULARY = [
    'ceramic', 'coating', 'wax', 'interior', 'vacuum', 'pricing',
    'marketing', 'google', 'upsell', 'leather', 'fleet', 'discount',
]


class FakeBlock:
    """Stand-in for an Anthropic content block"""

    def __init__(self, type, **fields):
        self.type = type
        for key, value in fields.items():
            setattr(self, key, value)


class FakeResponse:
    """Stand-in for an Anthropic Message"""

    def __init__(self, content, stop_reason='end_turn'):
        self.content = content
        self.stop_reason = stop_reason


def text_response(text):
    return FakeResponse([FakeBlock('text', text=text)])


def tool_use_response(query, tool_id='toolu_1', name='search_knowledge_base'):
    return FakeResponse(
        [FakeBlock('tool_use', id=tool_id, name=name, input={'query': query})],
        stop_reason='tool_use'
    )


class FakeAIService:
    """
    Deterministic AIService double.

    Queue Claude responses with queue_response()/queue_text(); queued
    exceptions are raised in order. Embeddings are keyword counts over
    EMBEDDING_VOCABULARY.
    """

    def __init__(self, claude=True, embeddings=True):
        self.claude = claude
        self.embeddings = embeddings
        self.responses = []
        self.calls = []
        self.embed_calls = []

    def queue_response(self, response):
        self.responses.append(response)

    def queue_text(self, text):
        self.responses.append(text_response(text))

    def queue_json(self, payload):
        self.queue_text(json.dumps(payload))

    def queue_error(self, error=None):
        self.responses.append(error or AIServiceError("upstream exploded"))

    def call_claude(self, messages, model=None, max_tokens=None, temperature=None, tools=None, system=None):
        self.calls.append({
            'messages': [dict(m) for m in messages],
            'tools': tools,
            'system': system,
        })
        if not self.responses:
            raise AIServiceError("No fake response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def complete_text(self, prompt, system=None, max_tokens=None):
        response = self.call_claude([{'role': 'user', 'content': prompt}], system=system, max_tokens=max_tokens)
        return ''.join(b.text for b in response.content if b.type == 'text').strip()

    def complete_json(self, prompt, system=None):
        return parse_json_response(self.complete_text(prompt, system=system))

    def embed(self, texts):
        self.embed_calls.append(list(texts))
        vectors = []
        for text in texts:
            words = text.lower().replace('.', ' ').replace(',', ' ').split()
            vector = [float(words.count(word)) for word in EMBEDDING_VOCABULARY]
            vectors.append(vector)
        return vectors

    def is_available(self, service):
        if service == 'claude':
            return self.claude
        if service == 'embeddings':
            return self.embeddings
        return False


class Seed:
    """Ids and tokens of the seeded fixtures"""
    pass


def seed_database(session):
    """
    Two organizations and four users:
        pro_org:  alice (admin), bob (member), carol (client)
        solo_org: alice (admin)
        dave has no memberships
    """
    from database.models import Membership, Organization, User

    seed = Seed()

    pro_org = Organization(name='Shine Bros Detailing', plan='pro', billing_id='org_billing_pro')
    solo_org = Organization(name='Solo Suds', plan='solo', billing_id='org_billing_solo')
    session.add_all([pro_org, solo_org])
    session.flush()

    users = {}
    for key, name in (('alice', 'Alice Admin'), ('bob', 'Bob Member'),
                      ('carol', 'Carol Client'), ('dave', 'Dave Nobody')):
        user = User(token_identifier=f"token-{key}", name=name, org_ids=[])
        session.add(user)
        users[key] = user
    session.flush()

    for org, user, role in ((pro_org, users['alice'], 'admin'),
                            (pro_org, users['bob'], 'member'),
                            (pro_org, users['carol'], 'client'),
                            (solo_org, users['alice'], 'admin')):
        session.add(Membership(org_id=org.id, user_id=user.id, role=role))
        user.org_ids = list(user.org_ids or []) + [org.id]
    session.flush()

    seed.pro_org_id = pro_org.id
    seed.solo_org_id = solo_org.id
    for key, user in users.items():
        setattr(seed, f"{key}_id", user.id)
        setattr(seed, f"{key}_token", user.token_identifier)

    return seed


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'
    os.environ['ANTHROPIC_API_KEY'] = 'test-anthropic-key'
    os.environ['OPENAI_API_KEY'] = 'test-openai-key'

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def db_session():
    """Fresh in-memory database session, rolled back and closed after the test"""
    from database.connection import get_session_factory, init_db, init_engine

    init_engine('sqlite://')
    init_db()
    session = get_session_factory()()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def seed(db_session):
    """Seeded organizations, users and memberships"""
    return seed_database(db_session)


@pytest.fixture
def fake_ai():
    """Fake AI service with both Claude and embeddings available"""
    return FakeAIService()


@pytest.fixture
def app(app_config, fake_ai):
    """Flask app on an in-memory database with seeded data and a fake AI service"""
    from app_init import create_app
    from database.connection import get_db_session

    flask_app = create_app(app_config)
    flask_app.ai_service = fake_ai

    with get_db_session() as session:
        flask_app.seed = seed_database(session)

    yield flask_app


@pytest.fixture
def client(app):
    """Flask test client"""
    return app.test_client()


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a seeded user token"""
    def _headers(token):
        return {'Authorization': f"Bearer {token}"}
    return _headers
