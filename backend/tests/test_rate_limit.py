"""
Report Come Play Backend — Rate Limiting Middleware Tests
==========================================================

What:  Sliding-window policies on a bare Starlette app with tiny limits.
How:   The main app runs with RATE_LIMIT_ENABLED=false in tests, so the
       middleware is mounted here with explicit policies and enabled=True.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from reportcomeplay.middleware.rate_limit import (
    RateLimitMiddleware,
    RateLimitPolicy,
    default_policies,
)


async def ok(request):
    return PlainTextResponse("ok")


@pytest.fixture
def limited_app():
    policies = [
        RateLimitPolicy(name="global", limit=5, window=60),
        RateLimitPolicy(
            name="auth",
            limit=2,
            window=60,
            methods=frozenset({"POST"}),
            paths=frozenset({"/api/auth/login"}),
            message="Too many authentication attempts, please try again later.",
        ),
    ]
    app = Starlette(
        routes=[
            Route("/api/auth/login", ok, methods=["POST"]),
            Route("/api/fields", ok, methods=["GET", "POST"]),
            Route("/health", ok),
        ],
        middleware=[Middleware(RateLimitMiddleware, policies=policies, enabled=True)],
    )
    return app


@pytest_asyncio.fixture
async def limited_client(limited_app):
    async with AsyncClient(transport=ASGITransport(app=limited_app), base_url="http://test") as client:
        yield client


class TestRateLimitPolicy:

    def test_matches_method_and_path(self):
        policy = RateLimitPolicy(
            name="p", limit=1, window=1,
            methods=frozenset({"POST"}), paths=frozenset({"/api/fields"}),
        )
        assert policy.matches("POST", "/api/fields")
        assert policy.matches("post", "/api/fields/")
        assert not policy.matches("GET", "/api/fields")
        assert not policy.matches("POST", "/api/reports")

    def test_empty_filters_match_everything(self):
        assert RateLimitPolicy(name="g", limit=1, window=1).matches("DELETE", "/anything")

    def test_default_policies(self):
        by_name = {p.name: p for p in default_policies()}
        assert set(by_name) == {"global", "auth", "submission"}
        assert by_name["auth"].matches("POST", "/api/auth/register")
        assert by_name["submission"].matches("POST", "/api/upload")
        assert not by_name["submission"].matches("GET", "/api/fields")


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_route_policy_rejects_with_retry_after(self, limited_client):
        for _ in range(2):
            assert (await limited_client.post("/api/auth/login")).status_code == 200

        response = await limited_client.post("/api/auth/login")

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        body = response.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["message"] == "Too many authentication attempts, please try again later."
        assert body["details"]["policy"] == "auth"

    @pytest.mark.asyncio
    async def test_route_policy_does_not_affect_other_paths(self, limited_client):
        for _ in range(2):
            await limited_client.post("/api/auth/login")
        assert (await limited_client.post("/api/auth/login")).status_code == 429
        assert (await limited_client.get("/api/fields")).status_code == 200

    @pytest.mark.asyncio
    async def test_global_policy(self, limited_client):
        for _ in range(5):
            assert (await limited_client.get("/api/fields")).status_code == 200
        response = await limited_client.get("/api/fields")
        assert response.status_code == 429
        assert response.json()["details"]["policy"] == "global"

    @pytest.mark.asyncio
    async def test_excluded_paths_never_limited(self, limited_client):
        for _ in range(10):
            assert (await limited_client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_clients_limited_separately(self, limited_app):
        def client_from(ip):
            transport = ASGITransport(app=limited_app, client=(ip, 50000))
            return AsyncClient(transport=transport, base_url="http://test")

        async with client_from("10.0.0.1") as client_a, client_from("10.0.0.2") as client_b:
            for _ in range(2):
                await client_a.post("/api/auth/login")
            assert (await client_a.post("/api/auth/login")).status_code == 429
            assert (await client_b.post("/api/auth/login")).status_code == 200
