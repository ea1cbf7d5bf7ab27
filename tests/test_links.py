"""Tests for the click-tracking link registry."""

import pytest

from engagement_api.core import LinkResolver, StorageError


@pytest.fixture
def links(store):
    return LinkResolver(store)


@pytest.mark.asyncio
class TestLinkResolver:
    """Registering and resolving link ids."""

    async def test_register_and_resolve(self, links):
        link_id = await links.register("https://example.org/article?id=1")
        assert await links.resolve(link_id) == "https://example.org/article?id=1"

    async def test_link_ids_are_unique(self, links):
        first = await links.register("https://example.org/a")
        second = await links.register("https://example.org/a")
        assert first != second

    @pytest.mark.parametrize(
        "url",
        ["javascript:alert(1)", "ftp://example.org/file", "/relative/path", "https://"],
    )
    async def test_register_rejects_non_http(self, links, url):
        with pytest.raises(ValueError):
            await links.register(url)

    async def test_absolute_url_resolves_to_itself(self, links):
        assert await links.resolve("https://example.org/x") == "https://example.org/x"

    @pytest.mark.parametrize(
        "link_id",
        [None, "", "unknown-id", "javascript:alert(1)", "data:text/html,hi", "//evil.example"],
    )
    async def test_unresolvable(self, links, link_id):
        assert await links.resolve(link_id) is None

    async def test_storage_failure_raises(self, failing_store):
        with pytest.raises(StorageError):
            await LinkResolver(failing_store).resolve("some-id")
