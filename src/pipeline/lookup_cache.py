"""
Secondary lookups used by the join engine.

Two strategies share the Lookup interface:

- DirectLookup calls the secondary adapter once per key; errors propagate.
- BatchLookupCache resolves all keys known upfront with one bulk query and
  serves lookups from memory; bulk failures degrade to "no enrichment".
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Mapping, TypeVar

from src.core.errors import SourceError
from src.observability.logger import get_logger
from src.observability.metrics import (
    increment_counter,
    lookup_cache_failures_total,
    lookup_cache_requests_total,
)

logger = get_logger(__name__)

V = TypeVar("V")


class Lookup(ABC, Generic[V]):
    """Resolves secondary keys to secondary records."""

    def prefetch(self, keys: Iterable[str]) -> None:
        """Called with every secondary key of one primary batch before lookups."""
        pass

    @abstractmethod
    def lookup(self, key: str) -> V | None:
        """Return the record for key, or None if there is none."""
        pass


class DirectLookup(Lookup[V]):
    """
    One adapter call per key.

    Args:
        fetch_one: Adapter operation returning the record for a key
    """

    def __init__(self, fetch_one: Callable[[str], V | None]):
        self.fetch_one = fetch_one

    def lookup(self, key: str) -> V | None:
        return self.fetch_one(key)


class BatchLookupCache(Lookup[V]):
    """
    In-memory map filled by bulk queries, one per build() call.

    Keys already looked up (found or not) are never fetched again during the
    lifetime of the cache. A failed bulk query is logged and yields no
    entries for the keys it covered; those keys may be retried by a later
    build().

    Args:
        name: Cache name used in logs and metrics
        fetch_batch: Bulk adapter operation returning {key: value}
    """

    def __init__(self, name: str, fetch_batch: Callable[[list[str]], Mapping[str, V]]):
        self.name = name
        self.fetch_batch = fetch_batch
        self._entries: dict[str, V] = {}
        self._resolved: set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def build(self, keys: Iterable[str]) -> dict[str, V]:
        """
        Resolve keys, fetching only those not resolved before.

        Returns:
            Map restricted to the requested keys that have a value
        """
        requested = list(dict.fromkeys(k for k in keys if k))

        with self._lock:
            missing = [k for k in requested if k not in self._resolved]
            hits = len(requested) - len(missing)
            if hits:
                increment_counter(lookup_cache_requests_total, hits, cache=self.name, result="hit")

            if missing:
                increment_counter(
                    lookup_cache_requests_total, len(missing), cache=self.name, result="miss"
                )
                logger.info(f"Fetching {self.name} for {len(missing)} keys in batch")
                try:
                    fetched = self.fetch_batch(missing)
                except SourceError as e:
                    increment_counter(lookup_cache_failures_total, cache=self.name)
                    logger.error(f"Error fetching {self.name} in batch: {e}")
                    fetched = None

                if fetched is not None:
                    wanted = set(missing)
                    for key, value in fetched.items():
                        if key in wanted:
                            self._entries[key] = value
                    self._resolved.update(missing)
                    logger.info(f"Found {self.name} for {len(wanted & fetched.keys())} of {len(missing)} keys")

            return {k: self._entries[k] for k in requested if k in self._entries}

    def prefetch(self, keys: Iterable[str]) -> None:
        self.build(keys)

    def get(self, key: str) -> V | None:
        """Single lookup through the cache; fetches the key if never resolved."""
        return self.build([key]).get(key)

    def lookup(self, key: str) -> V | None:
        return self.get(key)
