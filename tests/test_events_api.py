"""Tests for the event ingestion endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestSubmitEvent:
    """POST /events."""

    async def test_event_accepted(self, client: AsyncClient, store):
        response = await client.post(
            "/events",
            json={
                "event_type": "page_view",
                "user_id": "u1",
                "newsletter_id": "2025-W01",
                "article_id": "a1",
                "session_id": "s1",
                "metadata": {"path": "/newsletters/2025-W01/a1"},
            },
        )

        assert response.status_code == 202
        data = response.json()
        assert data["accepted"] is True
        assert data["id"] == store.events[0].id

    async def test_duplicate_not_accepted(self, client: AsyncClient, clock, store):
        body = {"event_type": "scroll_50", "user_id": "u1", "article_id": "a1"}

        await client.post("/events", json=body)
        clock.advance(2)
        response = await client.post("/events", json=body)

        assert response.status_code == 202
        assert response.json() == {"accepted": False, "id": None}
        assert len(store.events) == 1

    async def test_anonymous_event(self, client: AsyncClient):
        response = await client.post("/events", json={"event_type": "session_start"})
        assert response.status_code == 202
        assert response.json()["accepted"] is True

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"event_type": "bounce"},
            {"event_type": "page_view", "metadata": "not-an-object"},
        ],
    )
    async def test_invalid_body(self, client: AsyncClient, body):
        response = await client.post("/events", json=body)
        assert response.status_code == 422

    async def test_storage_failure_still_202(self, client: AsyncClient, clock, failing_store):
        from engagement_api.api.deps import configure_services
        from engagement_api.main import app
        from engagement_api.telemetry import get_dev_logs

        configure_services(app, failing_store, clock=clock)

        response = await client.post("/events", json={"event_type": "page_view", "user_id": "u1"})

        assert response.status_code == 202
        assert response.json() == {"accepted": False, "id": None}
        assert get_dev_logs("event_record_failed")


@pytest.mark.asyncio
class TestReadArticles:
    """GET /events/read-articles."""

    async def test_read_articles(self, client: AsyncClient, clock):
        for event_type, article_id in (
            ("page_view", "a1"),
            ("scroll_90", "a2"),
            ("link_click", "a3"),
        ):
            await client.post(
                "/events",
                json={
                    "event_type": event_type,
                    "user_id": "u1",
                    "newsletter_id": "2025-W01",
                    "article_id": article_id,
                },
            )

        response = await client.get(
            "/events/read-articles", params={"user_id": "u1", "newsletter_id": "2025-W01"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "user_id": "u1",
            "newsletter_id": "2025-W01",
            "article_ids": ["a1", "a2"],
        }

    async def test_user_id_required(self, client: AsyncClient):
        response = await client.get("/events/read-articles")
        assert response.status_code == 422

    async def test_storage_failure_is_503(self, client: AsyncClient, clock, failing_store):
        from engagement_api.api.deps import configure_services
        from engagement_api.main import app

        configure_services(app, failing_store, clock=clock)

        response = await client.get("/events/read-articles", params={"user_id": "u1"})
        assert response.status_code == 503
