"""Service wiring and FastAPI dependencies."""

from datetime import timedelta

from fastapi import FastAPI, Request

from ..config import Settings, settings
from ..core import (
    EventRecorder,
    LinkResolver,
    RevocationService,
    SnapshotAggregator,
    TokenCodec,
    TokenVerifier,
)
from ..core.clock import Clock, system_clock
from ..storage import TrackingStore


def configure_services(
    app: FastAPI,
    store: TrackingStore,
    config: Settings = settings,
    clock: Clock = system_clock,
) -> None:
    """Build the tracking services around ``store`` and attach them to ``app.state``."""
    codec = TokenCodec(
        config.tracking_secret,
        default_ttl=timedelta(days=config.token_ttl_days),
        clock=clock,
    )
    app.state.store = store
    app.state.codec = codec
    app.state.verifier = TokenVerifier(codec, store)
    app.state.revocations = RevocationService(codec, store)
    app.state.recorder = EventRecorder(
        store,
        dedup_window=timedelta(seconds=config.dedup_window_seconds),
        clock=clock,
    )
    app.state.aggregator = SnapshotAggregator(store, clock=clock)
    app.state.links = LinkResolver(store)


def get_tracking_store(request: Request) -> TrackingStore:
    return request.app.state.store


def get_codec(request: Request) -> TokenCodec:
    return request.app.state.codec


def get_verifier(request: Request) -> TokenVerifier:
    return request.app.state.verifier


def get_revocations(request: Request) -> RevocationService:
    return request.app.state.revocations


def get_recorder(request: Request) -> EventRecorder:
    return request.app.state.recorder


def get_aggregator(request: Request) -> SnapshotAggregator:
    return request.app.state.aggregator


def get_link_resolver(request: Request) -> LinkResolver:
    return request.app.state.links
