"""HTTP API tests with the services replaced by mocks."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from result_service.api.dependencies import (
    get_alias_service,
    get_db,
    get_match_service,
    get_redis,
    get_subscription_service,
)
from result_service.api.security import hash_api_key, is_valid_api_key
from result_service.config import Settings, get_settings
from result_service.errors import (
    MissingExternalLinkError,
    NotFoundError,
    UnprocessableContentError,
)
from result_service.main import app
from result_service.services.alias import AliasService
from result_service.services.match import MatchService
from result_service.services.subscription import SubscriptionService

API_KEY = "client-key"
SECRET_KEY = "test-secret"
AUTH = {"Authorization": API_KEY}

MATCH_BODY = {
    "starts_at": "2026-05-01T18:00:00Z",
    "alias_home": "Man Utd",
    "alias_away": "Chelsea",
}


@pytest.fixture
def match_service():
    return AsyncMock(spec=MatchService)


@pytest.fixture
def subscription_service():
    return AsyncMock(spec=SubscriptionService)


@pytest.fixture
def alias_service():
    return AsyncMock(spec=AliasService)


@pytest.fixture
def client(match_service, subscription_service, alias_service):
    api_settings = Settings(
        _env_file=None,
        secret_key=SECRET_KEY,
        hashed_api_keys=f"unused,{hash_api_key(SECRET_KEY, API_KEY)}",
    )
    app.dependency_overrides[get_settings] = lambda: api_settings
    app.dependency_overrides[get_match_service] = lambda: match_service
    app.dependency_overrides[get_subscription_service] = lambda: subscription_service
    app.dependency_overrides[get_alias_service] = lambda: alias_service

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()


class TestApiKey:
    def test_is_valid_api_key(self):
        hashed = hash_api_key(SECRET_KEY, API_KEY)

        assert is_valid_api_key(API_KEY, SECRET_KEY, [hashed])
        assert not is_valid_api_key("other-key", SECRET_KEY, [hashed])
        assert not is_valid_api_key(API_KEY, "other-secret", [hashed])
        assert not is_valid_api_key(API_KEY, SECRET_KEY, [])

    def test_missing_key(self, client, match_service):
        response = client.post("/v1/matches", json=MATCH_BODY)

        assert response.status_code == 401
        assert response.json() == {"error": "invalid api key"}
        match_service.create.assert_not_awaited()

    def test_unknown_key(self, client):
        response = client.get(
            "/v1/aliases", params={"search": "man"}, headers={"Authorization": "guess"}
        )

        assert response.status_code == 401

    def test_health_needs_no_key(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCreateMatch:
    def test_returns_match_id(self, client, match_service):
        match_service.create.return_value = 42

        response = client.post("/v1/matches", json=MATCH_BODY, headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"match_id": 42}
        match_service.create.assert_awaited_once_with(
            starts_at=datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc),
            alias_home="Man Utd",
            alias_away="Chelsea",
        )

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {**MATCH_BODY, "starts_at": "next tuesday"},
            {**MATCH_BODY, "alias_home": ""},
        ],
    )
    def test_invalid_body(self, client, match_service, body):
        response = client.post("/v1/matches", json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"
        match_service.create.assert_not_awaited()

    def test_unknown_alias(self, client, match_service):
        match_service.create.side_effect = NotFoundError("home: alias Man Utd not found")

        response = client.post("/v1/matches", json=MATCH_BODY, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {
            "error": "home: alias Man Utd not found",
            "code": "RESOURCE_NOT_FOUND",
        }

    @pytest.mark.parametrize(
        "error",
        [
            UnprocessableContentError("match not found in external API"),
            MissingExternalLinkError("away: team 2 has no external team"),
        ],
    )
    def test_unprocessable(self, client, match_service, error):
        match_service.create.side_effect = error

        response = client.post("/v1/matches", json=MATCH_BODY, headers=AUTH)

        assert response.status_code == 422
        assert response.json() == {"error": str(error), "code": "UNPROCESSABLE_CONTENT"}

    def test_unexpected_error(self, client, match_service):
        match_service.create.side_effect = RuntimeError("database is gone")

        response = client.post("/v1/matches", json=MATCH_BODY, headers=AUTH)

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_SERVER_ERROR"


class TestSubscriptions:
    def test_create(self, client, subscription_service):
        response = client.post(
            "/v1/subscriptions",
            json={
                "match_id": 42,
                "url": "https://subscriber.example.com/bets/1",
                "secret_key": "subscriber-key",
            },
            headers=AUTH,
        )

        assert response.status_code == 204
        subscription_service.create.assert_awaited_once_with(
            match_id=42,
            url="https://subscriber.example.com/bets/1",
            secret_key="subscriber-key",
        )

    def test_create_for_unscheduled_match(self, client, subscription_service):
        subscription_service.create.side_effect = UnprocessableContentError(
            "match status is not scheduled"
        )

        response = client.post(
            "/v1/subscriptions",
            json={"match_id": 42, "url": "https://a.example.com", "secret_key": "k"},
            headers=AUTH,
        )

        assert response.status_code == 422

    def test_delete(self, client, subscription_service):
        response = client.delete(
            "/v1/subscriptions",
            params={
                "starts_at": "2026-05-01T18:00:00+00:00",
                "alias_home": "Man Utd",
                "alias_away": "Chelsea",
                "base_url": "https://subscriber.example.com",
                "secret_key": "subscriber-key",
            },
            headers=AUTH,
        )

        assert response.status_code == 204
        subscription_service.delete.assert_awaited_once_with(
            starts_at=datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc),
            alias_home="Man Utd",
            alias_away="Chelsea",
            base_url="https://subscriber.example.com",
            secret_key="subscriber-key",
        )

    def test_delete_without_base_url(self, client, subscription_service):
        response = client.delete(
            "/v1/subscriptions",
            params={
                "starts_at": "2026-05-01T18:00:00+00:00",
                "alias_home": "Man Utd",
                "alias_away": "Chelsea",
                "secret_key": "subscriber-key",
            },
            headers=AUTH,
        )

        assert response.status_code == 400
        subscription_service.delete.assert_not_awaited()


class TestAliases:
    def test_search(self, client, alias_service):
        alias_service.search.return_value = ["Man City", "Man Utd"]

        response = client.get("/v1/aliases", params={"search": "man"}, headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"aliases": ["Man City", "Man Utd"]}
        alias_service.search.assert_awaited_once_with("man")

    def test_search_text_too_short(self, client, alias_service):
        response = client.get("/v1/aliases", params={"search": "ma"}, headers=AUTH)

        assert response.status_code == 400
        alias_service.search.assert_not_awaited()


class TestReady:
    @pytest.fixture
    def db(self):
        return AsyncMock()

    @pytest.fixture
    def redis_client(self):
        return AsyncMock()

    @pytest.fixture
    def ready_client(self, client, db, redis_client):
        async def override_db():
            yield db

        async def override_redis():
            yield redis_client

        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_redis] = override_redis
        return client

    def test_all_dependencies_up(self, ready_client, db, redis_client):
        response = ready_client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {
            "ready": True,
            "checks": {
                "db": {"status": "ok", "message": None},
                "redis": {"status": "ok", "message": None},
            },
        }
        db.execute.assert_awaited_once()
        redis_client.ping.assert_awaited_once()

    def test_redis_down_is_reported(self, ready_client, redis_client):
        redis_client.ping.side_effect = RedisConnectionError("connection refused")

        response = ready_client.get("/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["ready"] is False
        assert body["checks"]["db"]["status"] == "ok"
        assert body["checks"]["redis"] == {"status": "error", "message": "connection refused"}
