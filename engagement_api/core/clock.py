"""Wall-clock source injected into time-dependent components."""

import time
from collections.abc import Callable
from datetime import UTC, datetime

# Returns the current Unix time in seconds
Clock = Callable[[], float]

system_clock: Clock = time.time


def utc_from_clock(clock: Clock) -> datetime:
    """Current time of ``clock`` as an aware UTC datetime."""
    return datetime.fromtimestamp(clock(), tz=UTC)
