"""Tests for process wiring (find_reviewer.service.main)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from find_reviewer.domain.engines.matching_engine import RandomSelection
from find_reviewer.service.clock import MockClock
from find_reviewer.service.errors import UserDatabaseError
from find_reviewer.service.main import Application, parse_args
from find_reviewer.service.settings import Settings


@pytest.fixture
def users_file(tmp_path):
    path = tmp_path / "users.yaml"
    path.write_text("token1: coder1\ntoken2: coder2\n")
    return path


class TestApplication:
    """Building the service from settings."""

    def test_wires_settings_into_engine(self, users_file):
        settings = Settings(wip_limit=2, timeout_in_s=10, users_file=str(users_file), static_dir="")

        app = Application(settings, clock=MockClock())

        assert app.engine.config.wip_limit == 2
        assert app.engine.config.timeout_in_s == 10
        assert len(app.authentication) == 2

    def test_serves_requests(self, users_file):
        settings = Settings(users_file=str(users_file), static_dir="")
        app = Application(settings, clock=MockClock())
        client = TestClient(app.app)

        client.post("/find-reviewer", json={"SendIdentity": {"token": "token1"}})
        response = client.post("/find-reviewer", json={"NeedReviewer": {}})

        assert response.json() == {"Accepted": {}}
        assert app.engine.waiting_coders == ("coder1",)

    def test_random_selection_policy(self, users_file):
        settings = Settings(users_file=str(users_file), static_dir="", selection_policy="random")

        app = Application(settings, clock=MockClock())

        assert isinstance(app.engine.selection, RandomSelection)

    def test_broken_user_database(self, tmp_path):
        path = tmp_path / "users.yaml"
        path.write_text("- not a mapping\n")

        with pytest.raises(UserDatabaseError):
            Application(Settings(users_file=str(path), static_dir=""))


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.config is None
        assert args.env_file is None

    def test_config_path(self):
        assert parse_args(["--config", "other.json"]).config == "other.json"
