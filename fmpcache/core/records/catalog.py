"""Registry of record kind configurations."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from datetime import date, datetime, timedelta

from fmpcache.core.data.storage.base import as_utc
from fmpcache.core.models import RecordConfig
from fmpcache.core.records import earnings, grades, prices, profiles, screener, statements


class RecordCatalog:
    """Record configurations registered by kind name."""

    def __init__(self, configs: Iterable[RecordConfig] = ()) -> None:
        self._configs: dict[str, RecordConfig] = {}
        for config in configs:
            self.register(config)

    def register(self, config: RecordConfig, *, replace: bool = False) -> None:
        if config.name in self._configs and not replace:
            raise ValueError(f"Record kind {config.name!r} is already registered")
        self._configs[config.name] = config

    def get(self, name: str) -> RecordConfig:
        try:
            return self._configs[name]
        except KeyError:
            known = ", ".join(sorted(self._configs)) or "none"
            raise KeyError(f"Unknown record kind {name!r} (known: {known})") from None

    def names(self) -> list[str]:
        return list(self._configs)

    def by_key_names(self) -> list[str]:
        return [name for name, config in self._configs.items() if config.by_key]

    def with_overrides(
        self,
        ttl_overrides: Mapping[str, int] | None = None,
        list_limit: int | None = None,
    ) -> RecordCatalog:
        """Return a copy with TTLs (seconds, per kind) and list limit applied."""
        ttl_overrides = dict(ttl_overrides or {})
        unknown = set(ttl_overrides) - set(self._configs)
        if unknown:
            raise KeyError(f"TTL overrides for unknown record kinds: {sorted(unknown)}")

        configs = []
        for name, config in self._configs.items():
            if name in ttl_overrides:
                config = config.with_ttl(timedelta(seconds=ttl_overrides[name]))
            if list_limit is not None:
                config = config.with_list_limit(list_limit)
            configs.append(config)
        return RecordCatalog(configs)

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def __iter__(self) -> Iterator[RecordConfig]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)


def default_catalog(clock: Callable[[], datetime] | None = None) -> RecordCatalog:
    """Catalog holding every built-in FMP record kind.

    With ``clock`` the grades snapshot date follows that clock instead of the
    system one.
    """

    def today() -> date:
        if clock is None:
            return grades.utc_today()
        return as_utc(clock()).date()

    return RecordCatalog(
        [
            profiles.config(),
            statements.income_statements(),
            statements.balance_sheet_statements(),
            statements.cash_flow_statements(),
            grades.config(today),
            prices.config(),
            screener.config(),
            earnings.config(),
        ]
    )


__all__ = ["RecordCatalog", "default_catalog"]
