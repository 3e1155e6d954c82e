import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Server wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def iso_from_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc).isoformat()
