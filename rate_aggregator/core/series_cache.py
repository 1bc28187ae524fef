"""Per-series field state cache.

The cache keeps, for every series ever seen, the last observed value,
timestamp and computed rate of each selected field. Entries are never
removed: the previous sample is needed to compute the next rate, so
state must survive every flush.

The cache is not thread-safe. Callers serialize access (see RateEngine).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

FNV64_OFFSET = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _fnv1a_64(data: bytes, h: int = FNV64_OFFSET) -> int:
    for byte in data:
        h ^= byte
        h = (h * FNV64_PRIME) & _MASK64
    return h


def series_key(name: str, tags: Mapping[str, str]) -> int:
    """Stable identity of a series: FNV-1a 64 over name and sorted tags.

    Tag order does not matter; the key is the same across processes.

    Example:
        >>> series_key("snmp", {"a": "1", "b": "2"}) == series_key("snmp", {"b": "2", "a": "1"})
        True
    """
    h = _fnv1a_64(name.encode("utf-8"))
    h = _fnv1a_64(b"\n", h)
    for key in sorted(tags):
        h = _fnv1a_64(key.encode("utf-8"), h)
        h = _fnv1a_64(b"\n", h)
        h = _fnv1a_64(str(tags[key]).encode("utf-8"), h)
        h = _fnv1a_64(b"\n", h)
    return h


@dataclass
class FieldState:
    """Last observation of one field within a series."""

    last_value: float
    last_timestamp: int  # whole wall-clock seconds
    last_rate: int = 0


@dataclass
class SeriesEntry:
    """Cached series: identity plus per-field state."""

    name: str
    tags: Mapping[str, str]
    fields: Dict[str, FieldState] = field(default_factory=dict)


class SeriesCache:
    """Keyed store of SeriesEntry, growing monotonically."""

    def __init__(self) -> None:
        self._entries: Dict[int, SeriesEntry] = {}

    def lookup(self, key: int) -> Optional[SeriesEntry]:
        return self._entries.get(key)

    def upsert(self, key: int, name: str, tags: Mapping[str, str]) -> SeriesEntry:
        """Return the entry for `key`, creating it on first sight.

        Name and tags of an existing entry are never overwritten.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = SeriesEntry(name=name, tags=MappingProxyType(dict(tags)))
            self._entries[key] = entry
        return entry

    @staticmethod
    def upsert_field(
        entry: SeriesEntry,
        field_name: str,
        value: float,
        timestamp: int,
        rate: int,
    ) -> FieldState:
        """Create or replace the state of one field."""
        state = FieldState(last_value=value, last_timestamp=timestamp, last_rate=rate)
        entry.fields[field_name] = state
        return state

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[SeriesEntry]:
        return iter(list(self._entries.values()))
