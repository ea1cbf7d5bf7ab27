"""Storage layer for tracking tokens, engagement events and snapshots."""

from .base import TrackingStore
from .database import Database, close_store, get_store, init_store
from .memory import InMemoryStore

__all__ = [
    "TrackingStore",
    "Database",
    "InMemoryStore",
    "init_store",
    "get_store",
    "close_store",
]
