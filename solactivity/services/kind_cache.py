# services/kind_cache.py
from __future__ import annotations

import time
from typing import Callable

from models.activity import AddressKind


class AccountKindCache:
    """
    In-process TTL cache of address -> wallet/token.

    Readers look up in the current snapshot dict; writers build a new dict and
    swap the reference, so a reader never sees a half-updated mapping.
    """

    def __init__(self, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._snapshot: dict[str, tuple[AddressKind, float]] = {}

    def get(self, address: str) -> AddressKind | None:
        entry = self._snapshot.get(address)
        if entry is None:
            return None
        kind, stored_at = entry
        if self._clock() - stored_at > self._ttl:
            return None
        return kind

    def put(self, address: str, kind: AddressKind) -> None:
        now = self._clock()
        snapshot = {
            key: value
            for key, value in self._snapshot.items()
            if now - value[1] <= self._ttl
        }
        snapshot[address] = (kind, now)
        self._snapshot = snapshot

    def __len__(self) -> int:
        return len(self._snapshot)
