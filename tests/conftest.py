"""
Shared pytest fixtures for the IdeaForge test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - fake_llm: scripted LLM provider installed on the app gateway
    - idea / confirmed_idea / documents: pre-built pipeline stages via the API
"""

import json
from collections import deque

import pytest

from ideaforge import create_app
from ideaforge.ai.gateway import LLMGateway, LLMProvider, LocalStubProvider
from ideaforge.models import db as _db

IDEA_TEXT = (
    "Build a marketplace for freelance photographers to sell prints of their work "
    "directly to buyers, with order tracking and secure payments."
)

VALID_ANALYSIS = {
    "missingDetails": ["Which print sizes are offered?"],
    "complementarySuggestions": ["Let photographers run limited editions"],
    "constraintsAndRisks": ["Print fulfilment partners may be region-bound"],
    "clarifyingQuestions": ["Do photographers ship prints themselves?"],
}


class ScriptedProvider(LLMProvider):
    """LLM provider that replays queued replies.

    Each queued item is either a reply string or an exception instance to
    raise. When the queue is empty the local stub answers.
    """

    def __init__(self):
        self.replies = deque()
        self.prompts = []
        self._stub = LocalStubProvider()

    def queue(self, *replies):
        for reply in replies:
            if isinstance(reply, (dict, list)):
                reply = json.dumps(reply)
            self.replies.append(reply)
        return self

    def chat(self, messages, model, **kwargs):
        self.prompts.append(messages[-1]["content"])
        if not self.replies:
            return self._stub.chat(messages, model)
        reply = self.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return {"message": {"content": reply}}

    @property
    def call_count(self):
        return len(self.prompts)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def fake_llm(app):
    """Swap the app gateway for one backed by a ScriptedProvider."""
    original = app.extensions["llm_gateway"]
    provider = ScriptedProvider()
    app.extensions["llm_gateway"] = LLMGateway(model="local-stub", provider=provider)
    yield provider
    app.extensions["llm_gateway"] = original


# ── Pipeline fixtures ────────────────────────────────────────────────────


@pytest.fixture()
def idea(client):
    """Create and return a draft Idea via the API."""
    res = client.post("/api/v1/ideas", json={"raw_text": IDEA_TEXT})
    assert res.status_code == 201
    return res.get_json()["data"]["idea"]


@pytest.fixture()
def confirmed_idea(client, idea, fake_llm):
    """Analyze and confirm the draft idea."""
    fake_llm.queue(VALID_ANALYSIS)
    res = client.post(f"/api/v1/ideas/{idea['id']}/analyze")
    assert res.status_code == 200
    res = client.post(f"/api/v1/ideas/{idea['id']}/confirm")
    assert res.status_code == 200
    return res.get_json()["data"]["idea"]


@pytest.fixture()
def documents(client, confirmed_idea):
    """Generate PRD + BRD for the confirmed idea; returns {type: document}."""
    res = client.post(f"/api/v1/documents/generate/{confirmed_idea['id']}")
    assert res.status_code == 201
    return {d["type"]: d for d in res.get_json()["data"]["documents"]}
