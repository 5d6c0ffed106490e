"""
Per-key single-flight guard for asyncio callers.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, TypeVar


T = TypeVar("T")


class SingleFlight:
    """
    At most one in-flight call per key.

    A ``run`` for a key that is already running does not start a second call;
    it waits for the running one and gets its result (or its exception).
    Different keys never wait on each other.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[Hashable, asyncio.Future] = {}

    def is_running(self, key: Hashable) -> bool:
        return key in self._in_flight

    async def run(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        existing = self._in_flight.get(key)
        if existing is not None:
            return await asyncio.shield(existing)

        future: asyncio.Future = asyncio.ensure_future(fn())
        self._in_flight[key] = future
        future.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(future)

    def _forget(self, key: Hashable, future: asyncio.Future) -> None:
        if self._in_flight.get(key) is future:
            del self._in_flight[key]


async def run_all(
    flight: SingleFlight, calls: Dict[Hashable, Callable[[], Awaitable[Any]]]
) -> Dict[Hashable, Any]:
    """Run every keyed call through ``flight`` concurrently; exceptions are returned, not raised."""
    keys = list(calls)
    results = await asyncio.gather(
        *(flight.run(key, calls[key]) for key in keys),
        return_exceptions=True,
    )
    return dict(zip(keys, results))
