"""Click-tracking link registry."""

import logging
import secrets
from urllib.parse import urlsplit

from ..storage.base import TrackingStore

logger = logging.getLogger(__name__)


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


class LinkResolver:
    """Maps link ids in click URLs to destinations."""

    def __init__(self, store: TrackingStore):
        self.store = store

    async def register(self, url: str) -> str:
        """Store ``url`` and return its new link id.

        Raises:
            ValueError: ``url`` is not an absolute http(s) URL
            StorageError: Backend failure
        """
        if not is_http_url(url):
            raise ValueError("Only absolute http(s) URLs can be tracked")
        link_id = secrets.token_urlsafe(8)
        await self.store.insert_link(link_id, url)
        return link_id

    async def resolve(self, link_id: str | None) -> str | None:
        """Destination for ``link_id``, or None when it is unknown or unsafe.

        A link id may also be the absolute http(s) destination itself.

        Raises:
            StorageError: Backend failure
        """
        if not link_id:
            return None
        if is_http_url(link_id):
            return link_id

        url = await self.store.get_link(link_id)
        if url is None or not is_http_url(url):
            logger.info("Unknown click-tracking link id")
            return None
        return url
