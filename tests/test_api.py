"""Tests for the HTTP surface (find_reviewer.api.app)."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from find_reviewer.api.app import SESSION_COOKIE, create_app

ENDPOINT = "/find-reviewer"


def post(client: TestClient, payload):
    return client.post(ENDPOINT, json=payload)


class TestIdentity:
    """Session cookie handling."""

    def test_load_identity_without_session(self, client):
        response = post(client, {"LoadIdentity": {}})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"UnknownIdentity": {}}

    def test_send_identity_sets_cookie(self, client):
        response = post(client, {"SendIdentity": {"token": "token1"}})

        assert response.json() == {"KnownIdentity": {"username": "coder1"}}
        assert response.cookies.get(SESSION_COOKIE) == "token1"

    def test_session_persists(self, client, login):
        login(client, "token2")

        assert post(client, {"LoadIdentity": {}}).json() == {"KnownIdentity": {"username": "coder2"}}

    def test_unknown_token_sets_no_cookie(self, client):
        response = post(client, {"SendIdentity": {"token": "nope"}})

        assert response.json() == {"UnknownIdentity": {}}
        assert SESSION_COOKIE not in response.cookies

    def test_matching_requires_session(self, client, engine):
        assert post(client, {"NeedReviewer": {}}).json() == {"UnknownIdentity": {}}
        assert engine.waiting_coders == ()


class TestMatchingFlow:
    """End-to-end matching over HTTP."""

    def test_request_offer_accept(self, client, login, engine):
        coder = client
        reviewer = TestClient(client.app)
        login(coder, "token1")
        login(reviewer, "token2")

        assert post(coder, {"NeedReviewer": {}}).json() == {"Accepted": {}}
        assert post(coder, {"NeedReviewer": {}}).json() == {"AlreadyRegistered": {}}
        assert post(coder, {"HaveTimeForReview": {}}).json() == {"NoReviewerNeeded": {}}

        offered = post(reviewer, {"HaveTimeForReview": {}}).json()
        assert offered == {"NeedsReviewer": {"coder": "coder1", "review_id": 1}}

        assert post(reviewer, {"WillReview": {"review_id": 1}}).json() == {"Accepted": {}}
        assert post(reviewer, {"WillReview": {"review_id": 1}}).json() == {"ReviewNotFound": {}}
        assert engine.active_reviews == {}

    def test_wont_review_requeues(self, client, login, engine):
        login(client, "token1")
        other = TestClient(client.app)
        login(other, "token3")
        post(client, {"NeedReviewer": {}})
        post(other, {"HaveTimeForReview": {}})

        assert post(other, {"WontReview": {"review_id": 1}}).json() == {"Accepted": {}}
        assert engine.waiting_coders == ("coder1",)

    def test_unknown_review_id(self, client, login):
        login(client, "token1")

        assert post(client, {"WillReview": {"review_id": 999}}).json() == {"ReviewNotFound": {}}


class TestRejectedRequests:
    """Malformed input never reaches the engine."""

    def test_get_is_bad_request(self, client):
        response = client.get(ENDPOINT)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"
        assert response.json()["message"] == "Must be a POST request"

    @pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"])
    def test_non_post_with_static_mount(self, dispatcher, tmp_path, method):
        """Static files under / never shadow the endpoint."""
        (tmp_path / "index.html").write_text("<h1>find reviewer</h1>")
        client = TestClient(create_app(dispatcher, static_dir=str(tmp_path)))

        response = client.request(method, ENDPOINT)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        if method != "HEAD":
            assert response.json()["message"] == "Must be a POST request"

    def test_invalid_json(self, client):
        response = client.post(ENDPOINT, content=b"{nope", headers={"content-type": "application/json"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "MALFORMED_REQUEST"

    def test_unknown_variant(self, client):
        response = post(client, {"MakeCoffee": {}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_two_variants(self, client):
        response = post(client, {"NeedReviewer": {}, "LoadIdentity": {}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_review_id_must_be_integer(self, client, login):
        login(client, "token1")

        response = post(client, {"WillReview": {"review_id": "1"}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_negative_review_id(self, client, login):
        login(client, "token1")

        assert post(client, {"WillReview": {"review_id": -1}}).status_code == status.HTTP_400_BAD_REQUEST

    def test_client_supplied_coder_is_rejected(self, client, login, engine):
        """Identity comes from the session, never from the body."""
        login(client, "token1")

        response = post(client, {"NeedReviewer": {"coder": "someone_else"}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert engine.waiting_coders == ()


class TestHealthAndStatic:
    def test_health_reports_load(self, client, login):
        login(client, "token1")
        post(client, {"NeedReviewer": {}})

        data = client.get("/health").json()

        assert data["status"] == "ok"
        assert data["waiting"] == 1
        assert data["active_reviews"] == 0

    def test_static_files_served(self, dispatcher, tmp_path):
        (tmp_path / "index.html").write_text("<h1>find reviewer</h1>")
        client = TestClient(create_app(dispatcher, static_dir=str(tmp_path)))

        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert "find reviewer" in response.text
        assert client.post(ENDPOINT, json={"LoadIdentity": {}}).json() == {"UnknownIdentity": {}}

    def test_missing_static_dir_is_skipped(self, dispatcher, tmp_path):
        client = TestClient(create_app(dispatcher, static_dir=str(tmp_path / "www")))

        assert client.get("/health").status_code == status.HTTP_200_OK
