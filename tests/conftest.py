"""
Shared fixtures and fakes for the headline agent tests.

Producers are replaced with in-process fakes so no model or network access
is needed; the FastAPI pipeline dependency is overridden per test.
"""

import pytest
from fastapi.testclient import TestClient

from headline_agent.main import app, get_pipeline
from headline_agent.pipeline import HeadlinePipeline
from headline_agent.producers import HeadlineProducer, TemplateHeadlineProducer

SCENARIO_A_TEXT = (
    "generate a headline for this post: The future of AI in healthcare "
    "is transforming patient care."
)


class StaticProducer(HeadlineProducer):
    """Returns a fixed list and records every call."""

    name = "static"

    def __init__(self, headlines):
        self.headlines = headlines
        self.calls = []

    def generate(self, request, topic, count=5):
        self.calls.append((request, topic, count))
        return self.headlines


class FailingProducer(HeadlineProducer):
    name = "failing"

    def generate(self, request, topic, count=5):
        raise RuntimeError("backend unavailable")


def a2a_request(text=None, request_id="t-1", parts=None, **message_fields):
    """Build an A2A ``message/send`` JSON-RPC request body."""
    if parts is None:
        parts = [{"kind": "text", "text": text}]
    message = {"kind": "message", "role": "user", "parts": parts}
    message.update(message_fields)
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "message/send",
        "params": {"message": message},
    }


@pytest.fixture
def client_for():
    """Return a factory building a TestClient whose pipeline uses ``producer``."""

    def _make(producer):
        app.dependency_overrides[get_pipeline] = lambda: HeadlinePipeline(
            producer=producer
        )
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_for):
    return client_for(TemplateHeadlineProducer())
