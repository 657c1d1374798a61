from __future__ import annotations

from datetime import datetime, timezone
from time import time


def epoch_seconds() -> int:
    return int(time())


def from_epoch_seconds(value: int | float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)
