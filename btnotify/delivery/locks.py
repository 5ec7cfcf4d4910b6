"""
Per-adapter locks.

The adapter is process-wide state. Every executor holds the transport lock for
its whole attempt loop, and state changes made by a readiness gate (enable,
cancel discovery) take the same lock. The gate lock keeps a single gate active
per adapter; later gates wait for it.
"""

import asyncio
import weakref
from typing import Any

_transport_locks: "weakref.WeakKeyDictionary[Any, asyncio.Lock]" = weakref.WeakKeyDictionary()
_gate_locks: "weakref.WeakKeyDictionary[Any, asyncio.Lock]" = weakref.WeakKeyDictionary()


def transport_lock(driver: Any) -> asyncio.Lock:
    """Lock serializing sessions and adapter writes for ``driver``."""
    lock = _transport_locks.get(driver)
    if lock is None:
        lock = _transport_locks[driver] = asyncio.Lock()
    return lock


def gate_lock(driver: Any) -> asyncio.Lock:
    """Lock allowing one readiness gate at a time for ``driver``."""
    lock = _gate_locks.get(driver)
    if lock is None:
        lock = _gate_locks[driver] = asyncio.Lock()
    return lock
