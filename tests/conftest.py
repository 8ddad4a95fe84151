"""Pytest fixtures for find-reviewer tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from find_reviewer.api.app import create_app
from find_reviewer.api.dispatcher import Dispatcher
from find_reviewer.domain.engines.authentication import Authentication
from find_reviewer.domain.engines.matching_engine import (
    MatchingEngine,
    MatchingEngineConfig,
    SequentialIdGenerator,
)
from find_reviewer.service.clock import Clock, MockClock, set_clock

USERS = {
    "token1": "coder1",
    "token2": "coder2",
    "token3": "coder3",
}


@pytest.fixture
def mock_clock():
    """Provide a mock clock for deterministic tests."""
    clock = MockClock()
    set_clock(clock)
    yield clock
    set_clock(Clock())


@pytest.fixture
def engine_config():
    """Default engine limits: 5 waiting coders, 30 second timeout."""
    return MatchingEngineConfig(timeout_in_s=30, wip_limit=5)


@pytest.fixture
def engine(engine_config, mock_clock):
    """Provide a matching engine with sequential ids starting at 1."""
    return MatchingEngine(
        engine_config,
        id_generator=SequentialIdGenerator(start=1),
        clock=mock_clock,
    )


@pytest.fixture
def authentication():
    """Provide an authentication table with three coders."""
    return Authentication(USERS)


@pytest.fixture
def dispatcher(engine, authentication):
    """Provide a dispatcher around the test engine."""
    return Dispatcher(engine, authentication)


@pytest.fixture
def client(dispatcher):
    """FastAPI TestClient for the find-reviewer app."""
    return TestClient(create_app(dispatcher))


@pytest.fixture
def login():
    """Log a client in so its session cookie carries the given token."""

    def _login(client: TestClient, token: str) -> None:
        response = client.post("/find-reviewer", json={"SendIdentity": {"token": token}})
        assert response.status_code == 200
        assert "KnownIdentity" in response.json()

    return _login
