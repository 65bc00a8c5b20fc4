"""Wall-clock helpers. ready_at values are integer epoch milliseconds."""
from __future__ import annotations

import time
from collections.abc import Callable
from datetime import timedelta

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def to_ms(duration: timedelta) -> int:
    return duration // timedelta(milliseconds=1)
