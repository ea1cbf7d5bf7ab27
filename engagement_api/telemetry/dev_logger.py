"""
Development Logger

Keeps recent telemetry events in a bounded in-memory buffer so they can be
inspected locally and in tests without Application Insights.
"""

import json
import logging
from collections import deque
from datetime import UTC, datetime
from typing import Any

from .config import get_telemetry_config

logger = logging.getLogger(__name__)

_debug_enabled = False
_event_buffer: deque[dict[str, Any]] = deque(maxlen=get_telemetry_config().dev_logger_max_events)


def set_debug(enabled: bool) -> None:
    """Enable or disable echoing events to the log."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


def log_dev_event(event_name: str, properties: dict[str, Any]) -> None:
    """
    Log a telemetry event for development/debugging.

    Args:
        event_name: Name of the event
        properties: Event properties dictionary
    """
    if not get_telemetry_config().enable_dev_logger:
        return

    _event_buffer.append(
        {
            "timestamp": datetime.now(UTC).isoformat(),
            "event_name": event_name,
            "properties": properties,
        }
    )

    if _debug_enabled:
        logger.info(f"[Telemetry] {event_name}: {json.dumps(properties, default=str)}")


def export_dev_logs() -> str:
    """Export all logged events as JSON Lines."""
    return "\n".join(json.dumps(event, default=str) for event in _event_buffer)


def clear_dev_logs() -> None:
    """Clear all logged events."""
    _event_buffer.clear()


def get_dev_logs(event_name: str | None = None) -> list[dict[str, Any]]:
    """
    Get logged events, optionally only those with ``event_name``.

    Returns:
        List of event dictionaries, oldest first
    """
    if event_name is None:
        return list(_event_buffer)
    return [event for event in _event_buffer if event["event_name"] == event_name]
