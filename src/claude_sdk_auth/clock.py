"""Millisecond wall clock used for all expiry decisions.

Every time-based decision in the package goes through an injected
:class:`Clock` instead of calling :func:`time.time` directly, so tests can
pin "now" without patching.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable returning *milliseconds* since the UNIX epoch."""

    def __call__(self) -> int: ...


def now_ms() -> int:
    """Default clock: current time in whole milliseconds."""
    return int(time.time() * 1000)
