"""Provider client abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from fmpcache.core.models import Endpoint, RawRecord


class ProviderClient(ABC):
    """Fetches raw records from an upstream provider.

    Implementations return a list of raw records; a single object answer is
    standardized to a one-element list. Failures raise
    :class:`~fmpcache.core.exceptions.ProviderError` subclasses.
    """

    name: str = "provider"

    @abstractmethod
    async def fetch_by_key(
        self,
        endpoint: Endpoint,
        key: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[RawRecord]:
        """Fetch the records of one partition key."""

    @abstractmethod
    async def fetch_all(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
    ) -> list[RawRecord]:
        """Fetch a whole collection snapshot."""

    async def close(self) -> None:
        """Release client resources."""

    async def __aenter__(self) -> ProviderClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = ["ProviderClient"]
