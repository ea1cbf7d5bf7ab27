"""Tests for admin authentication middleware."""

import time
from unittest.mock import patch

import jwt
import pytest
from httpx import AsyncClient

from engagement_api.config import settings


def _admin_jwt(**claims) -> str:
    payload = {"sub": "admin-1", "exp": int(time.time()) + 300, **claims}
    return jwt.encode(payload, settings.secret_key, algorithm="HS256")


@pytest.mark.asyncio
async def test_public_paths_bypass_auth(client: AsyncClient, enable_auth):
    """Tracking, ingestion and health endpoints never require authentication."""
    with enable_auth:
        for path in ["/", "/health", "/version", "/track/open", "/openapi.json"]:
            response = await client.get(path)
            assert response.status_code != 401, path

        response = await client.post("/events", json={"event_type": "page_view"})
        assert response.status_code == 202


@pytest.mark.asyncio
async def test_auth_disabled_mode(client: AsyncClient):
    """Admin endpoints are open when AUTH_REQUIRED=false (dev mode)."""
    with patch.object(settings, "auth_required", False):
        response = await client.post("/admin/tokens/prune")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_missing_jwt_when_auth_enabled(client: AsyncClient, enable_auth):
    with enable_auth:
        response = await client.post("/admin/tokens/prune")
        assert response.status_code == 401
        assert "Authorization header" in response.json()["detail"]


@pytest.mark.asyncio
async def test_valid_jwt_accepted(client: AsyncClient, enable_auth):
    with enable_auth:
        response = await client.post(
            "/admin/tokens/prune",
            headers={"Authorization": f"Bearer {_admin_jwt()}"},
        )
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_expired_jwt_rejected(client: AsyncClient, enable_auth):
    token = _admin_jwt(exp=int(time.time()) - 10)
    with enable_auth:
        response = await client.post(
            "/admin/tokens/prune", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "JWT expired"


@pytest.mark.asyncio
async def test_wrong_secret_rejected(client: AsyncClient, enable_auth):
    token = jwt.encode({"sub": "admin-1"}, "not-the-secret", algorithm="HS256")
    with enable_auth:
        response = await client.post(
            "/admin/tokens/prune", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid JWT"


@pytest.mark.asyncio
async def test_tracking_token_is_not_an_admin_credential(client: AsyncClient, codec, enable_auth):
    """Tracking tokens are signed with a different secret."""
    with enable_auth:
        response = await client.post(
            "/admin/tokens/prune",
            headers={"Authorization": f"Bearer {codec.encode('admin-1')}"},
        )
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_sub_rejected(client: AsyncClient, enable_auth):
    token = jwt.encode({"exp": int(time.time()) + 300}, settings.secret_key, algorithm="HS256")
    with enable_auth:
        response = await client.post(
            "/admin/tokens/prune", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_issuer_and_audience_checked(client: AsyncClient, enable_auth):
    with enable_auth, patch.object(settings, "jwt_issuer", "cms"), patch.object(
        settings, "jwt_audience", "engagement-admin"
    ):
        wrong_issuer = _admin_jwt(iss="someone-else", aud="engagement-admin")
        response = await client.post(
            "/admin/tokens/prune", headers={"Authorization": f"Bearer {wrong_issuer}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid JWT issuer"

        wrong_audience = _admin_jwt(iss="cms", aud="other")
        response = await client.post(
            "/admin/tokens/prune", headers={"Authorization": f"Bearer {wrong_audience}"}
        )
        assert response.json()["detail"] == "Invalid JWT audience"

        good = _admin_jwt(iss="cms", aud="engagement-admin")
        response = await client.post(
            "/admin/tokens/prune", headers={"Authorization": f"Bearer {good}"}
        )
        assert response.status_code == 200
