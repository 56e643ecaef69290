"""Per-key de-duplication of concurrent async work."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Coalesce concurrent calls sharing a key into one execution.

    The first caller for a key runs the work; callers arriving while it is in
    flight await the same outcome, result or exception. The key is released as
    soon as the work finishes, fails or is cancelled.
    """

    def __init__(self) -> None:
        self._flights: dict[str, asyncio.Future[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._flights

    def __len__(self) -> int:
        return len(self._flights)

    async def do(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        while (existing := self._flights.get(key)) is not None:
            try:
                return await asyncio.shield(existing)
            except asyncio.CancelledError:
                # leader cancelled: take over unless this waiter was the one cancelled
                if not existing.cancelled():
                    raise

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._flights[key] = future
        try:
            result = await func()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except BaseException as e:
            future.set_exception(e)
            # mark retrieved so an unawaited flight does not warn on collection
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            if self._flights.get(key) is future:
                del self._flights[key]


__all__ = ["SingleFlight"]
