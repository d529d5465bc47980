from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Timezone-aware UTC now; every stored timestamp comes from here.
    """
    return datetime.now(timezone.utc)


def iso_timestamp(dt: datetime) -> str:
    return dt.isoformat()


def elapsed_ms(t0: float) -> float:
    """
    Milliseconds since a `time.perf_counter()` reading.
    """
    return (time.perf_counter() - t0) * 1000.0
