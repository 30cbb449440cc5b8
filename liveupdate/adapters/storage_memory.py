"""In-memory ``KeyValueStorePort`` implementation."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict

from liveupdate.domain.ports import KeyValueStorePort


@dataclass
class MemoryStore(KeyValueStorePort):
    """In-memory key-value store used for tests and offline development."""

    data: Dict[str, Any] = field(default_factory=dict)
    sync_count: int = 0

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self.data:
            return default
        return copy.deepcopy(self.data[key])

    def set(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def synchronize(self) -> None:
        # Nothing to flush - just count calls so tests can assert durability points.
        self.sync_count += 1


__all__ = ["MemoryStore"]
