"""
Identifier and timestamp helpers.

Ids are UUIDv7: 48 bits of Unix milliseconds followed by random bits, so
string order follows creation order. Timestamps match JavaScript's
``Date.prototype.toISOString`` so files written by either side compare equal.
"""

from __future__ import annotations

import os
import threading
import time
import uuid
from datetime import datetime, timezone

_last_ms = 0
_counter = 0
_id_lock = threading.Lock()


def generate_id() -> str:
    """Generate a time-ordered UUIDv7 string.

    Ids generated within the same millisecond use a 12-bit counter seeded
    from random bits, so they still sort in generation order.
    """
    global _last_ms, _counter

    with _id_lock:
        now_ms = time.time_ns() // 1_000_000
        if now_ms > _last_ms:
            _last_ms = now_ms
            _counter = int.from_bytes(os.urandom(2), "big") & 0x7FF
        else:
            _counter += 1
            if _counter > 0xFFF:
                # Counter exhausted: borrow the next millisecond
                _last_ms += 1
                _counter = 0
        ms = _last_ms
        counter = _counter

    rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)
    value = (ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= counter << 64
    value |= 0b10 << 62
    value |= rand_b
    return str(uuid.UUID(int=value))


def now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
