"""In-memory provider with canned responses."""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from fmpcache.core.data.providers.base import ProviderClient
from fmpcache.core.models import Endpoint, RawRecord


@dataclass(frozen=True)
class ProviderCall:
    """One recorded provider call."""

    path: str
    key: str | None
    params: Mapping[str, Any] = field(default_factory=dict)


class StubProviderClient(ProviderClient):
    """Serves canned responses keyed by endpoint path and partition key.

    A response may be a list of raw records or an exception instance, which is
    raised instead. Unknown keys answer with an empty list.
    """

    name = "stub"

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str | None], list[RawRecord] | Exception] = {}
        self.calls: list[ProviderCall] = []
        self.closed = False

    def set_response(
        self,
        endpoint: Endpoint | str,
        records: Sequence[Mapping[str, Any]] | Exception,
        key: str | None = None,
    ) -> None:
        path = endpoint.path if isinstance(endpoint, Endpoint) else endpoint
        if isinstance(records, Exception):
            self._responses[(path, key)] = records
        else:
            self._responses[(path, key)] = [dict(record) for record in records]

    def calls_for(self, endpoint: Endpoint | str, key: str | None = None) -> int:
        path = endpoint.path if isinstance(endpoint, Endpoint) else endpoint
        return sum(1 for call in self.calls if call.path == path and call.key == key)

    async def fetch_by_key(
        self,
        endpoint: Endpoint,
        key: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[RawRecord]:
        return self._answer(endpoint, key, params)

    async def fetch_all(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
    ) -> list[RawRecord]:
        return self._answer(endpoint, None, params)

    def _answer(self, endpoint: Endpoint, key: str | None, params: Mapping[str, Any] | None) -> list[RawRecord]:
        self.calls.append(ProviderCall(endpoint.path, key, dict(params or {})))
        response = self._responses.get((endpoint.path, key), [])
        if isinstance(response, Exception):
            raise response
        return copy.deepcopy(response)

    async def close(self) -> None:
        self.closed = True


__all__ = ["ProviderCall", "StubProviderClient"]
