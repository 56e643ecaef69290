"""Provider clients."""

from fmpcache.core.data.providers.base import ProviderClient
from fmpcache.core.data.providers.fmp import FmpProviderClient
from fmpcache.core.data.providers.stub_provider import ProviderCall, StubProviderClient

__all__ = ["ProviderClient", "FmpProviderClient", "ProviderCall", "StubProviderClient"]
