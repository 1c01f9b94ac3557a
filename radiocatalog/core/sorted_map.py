"""Sorted Map — key-ordered mapping with lower-bound lookup.

Invariants:
    - Iteration always yields keys in ascending order
    - lower_bound(k) starts at the first key >= k

Design Decisions:
    - dict + bisect-maintained key list: O(1) lookups, O(n) inserts are fine for
      catalog-sized collections (hundreds of bookmarks, a handful of units)
"""

from bisect import bisect_left, insort
from typing import Generic, Iterator, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class SortedMap(Generic[K, V]):
    """Mapping kept in key order."""

    def __init__(self) -> None:
        self._data: dict[K, V] = {}
        self._keys: list[K] = []

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __setitem__(self, key: K, value: V) -> None:
        if key not in self._data:
            insort(self._keys, key)
        self._data[key] = value

    def __delitem__(self, key: K) -> None:
        del self._data[key]
        self._keys.pop(bisect_left(self._keys, key))

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._keys))

    def get(self, key: K, default: V | None = None) -> V | None:
        return self._data.get(key, default)

    def pop(self, key: K) -> V:
        value = self._data[key]
        del self[key]
        return value

    def clear(self) -> None:
        self._data.clear()
        self._keys.clear()

    def keys(self) -> list[K]:
        return list(self._keys)

    def values(self) -> Iterator[V]:
        for key in list(self._keys):
            yield self._data[key]

    def items(self) -> Iterator[tuple[K, V]]:
        for key in list(self._keys):
            yield key, self._data[key]

    def lower_bound(self, key: K) -> Iterator[tuple[K, V]]:
        """Items from the first key >= `key` to the end."""
        start = bisect_left(self._keys, key)
        for k in self._keys[start:]:
            yield k, self._data[k]
