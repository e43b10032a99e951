#!/usr/bin/env python3
"""Prime membership index

Two interchangeable answers to "is ``v`` one of the primes generated for
this run?":

* ``ChainedHashSet`` -- a fixed bucket array of singly linked chains keyed by
  a 64-bit avalanche mix.  Memory grows with the number of primes, not with
  the largest prime, so it suits sparse or very large ranges.
* ``DenseBitTable`` -- a numpy ``bool`` array indexed by the value itself.
  One byte per integer up to the maximum, but every lookup is a single
  bounds-checked read.

Both are built once and are read-only afterwards.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

import numpy as np

from prime_source import as_prime_array

MASK64 = (1 << 64) - 1
MIN_BUCKETS = 17
DENSE_TABLE_LIMIT = 10**9
INDEX_KINDS = ("auto", "hash", "bitset")


class IndexBuildError(RuntimeError):
    """The index could not be allocated or populated."""


@runtime_checkable
class MembershipIndex(Protocol):
    kind: str

    def contains(self, value: int) -> bool: ...

    def contains_many(self, values: np.ndarray) -> np.ndarray: ...

    def __contains__(self, value: object) -> bool: ...

    def __len__(self) -> int: ...

    def close(self) -> None: ...

    def __enter__(self) -> MembershipIndex: ...

    def __exit__(self, *exc_info) -> None: ...


# ─────────────────────────────────────────────────────────────────────────────
# Avalanche hash (64-bit integer mix)
# ─────────────────────────────────────────────────────────────────────────────

def avalanche_mix(key: int) -> int:
    """Scramble the bits of a 64-bit ``key`` so consecutive odd values spread out."""
    key &= MASK64
    key = (~key + (key << 21)) & MASK64
    key ^= key >> 24
    key = (key + (key << 3) + (key << 8)) & MASK64  # key * 265
    key ^= key >> 14
    key = (key + (key << 2) + (key << 4)) & MASK64  # key * 21
    key ^= key >> 28
    key = (key + (key << 31)) & MASK64
    return key


def avalanche_hash(key: int, table_size: int) -> int:
    return avalanche_mix(key) % table_size


# ─────────────────────────────────────────────────────────────────────────────
# Chained hash set
# ─────────────────────────────────────────────────────────────────────────────

class _Entry:
    __slots__ = ("value", "next")

    def __init__(self, value: int, next: _Entry | None = None):
        self.value = value
        self.next = next


class ChainedHashSet:
    """Fixed-size hash set with bucket chaining.

    The bucket array is sized once, from the known number of primes, and is
    never grown.  ``add`` is idempotent.
    """

    kind = "hash"

    def __init__(self, table_size: int):
        if table_size < 1:
            raise ValueError("table_size must be positive")
        self.size = table_size
        self.count = 0
        self.buckets: list[_Entry | None] = [None] * table_size

    @classmethod
    def from_primes(cls, primes: Iterable[int], table_size: int | None = None) -> ChainedHashSet:
        """Build a set holding ``primes``; tears down the partial set on failure."""
        try:
            values = primes.tolist() if isinstance(primes, np.ndarray) else list(primes)
        except MemoryError as exc:
            raise IndexBuildError("cannot copy the primes into the hash set") from exc
        if table_size is None:
            table_size = 2 * len(values) if values else MIN_BUCKETS
        try:
            ht = cls(table_size)
        except MemoryError as exc:
            raise IndexBuildError(f"cannot allocate {table_size} hash buckets") from exc
        try:
            for v in values:
                ht.add(v)
        except MemoryError as exc:
            added = ht.count
            ht.close()
            raise IndexBuildError(
                f"ran out of memory after adding {added} of {len(values)} primes"
            ) from exc
        return ht

    def add(self, value: int) -> bool:
        """Insert ``value``; return ``False`` if it was already present."""
        value = int(value)
        slot = avalanche_hash(value, self.size)
        node = self.buckets[slot]
        while node is not None:
            if node.value == value:
                return False
            node = node.next
        self.buckets[slot] = _Entry(value, self.buckets[slot])
        self.count += 1
        return True

    def contains(self, value: int) -> bool:
        value = int(value)
        if value < 0 or not self.count:
            return False
        node = self.buckets[avalanche_hash(value, self.size)]
        while node is not None:
            if node.value == value:
                return True
            node = node.next
        return False

    def contains_many(self, values: np.ndarray) -> np.ndarray:
        return np.fromiter(
            (self.contains(v) for v in np.asarray(values).tolist()),
            dtype=bool,
            count=len(values),
        )

    def chain_lengths(self) -> dict[int, int]:
        """Histogram ``{chain length: number of buckets}``, empty buckets included."""
        hist: dict[int, int] = {}
        for head in self.buckets:
            n = 0
            node = head
            while node is not None:
                n += 1
                node = node.next
            hist[n] = hist.get(n, 0) + 1
        return hist

    def close(self) -> None:
        # Unlink every chain node by node.
        for i, head in enumerate(self.buckets):
            node = head
            while node is not None:
                node.next, node = None, node.next
            self.buckets[i] = None
        self.buckets = []
        self.count = 0

    def __contains__(self, value: object) -> bool:
        return isinstance(value, (int, np.integer)) and self.contains(int(value))

    def __len__(self) -> int:
        return self.count

    def __enter__(self) -> ChainedHashSet:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# ─────────────────────────────────────────────────────────────────────────────
# Dense bit-indexed table
# ─────────────────────────────────────────────────────────────────────────────

class DenseBitTable:
    """``table[v]`` is ``True`` iff ``v`` is a generated prime."""

    kind = "bitset"

    def __init__(self, max_value: int):
        if max_value < 0:
            raise ValueError("max_value must be non-negative")
        self.table = np.zeros(max_value + 1, dtype=bool)
        self.count = 0

    @classmethod
    def from_primes(cls, primes, max_value: int | None = None) -> DenseBitTable:
        primes = as_prime_array(primes)
        if max_value is None:
            max_value = int(primes[-1]) if primes.size else 0
        try:
            bt = cls(max_value)
        except (MemoryError, ValueError, OverflowError) as exc:
            raise IndexBuildError(
                f"cannot allocate a {max_value + 1}-entry membership table"
            ) from exc
        if primes.size and int(primes[-1]) > max_value:
            bt.close()
            raise IndexBuildError(f"prime {int(primes[-1])} exceeds table bound {max_value}")
        bt.table[primes] = True
        bt.count = int(np.count_nonzero(bt.table))
        return bt

    def contains(self, value: int) -> bool:
        value = int(value)
        return 0 <= value < self.table.size and bool(self.table[value])

    def contains_many(self, values: np.ndarray) -> np.ndarray:
        values = np.asarray(values, dtype=np.uint64)
        inside = values < np.uint64(self.table.size)
        found = np.zeros(values.shape, dtype=bool)
        found[inside] = self.table[values[inside]]
        return found

    def close(self) -> None:
        self.table = np.zeros(0, dtype=bool)
        self.count = 0

    def __contains__(self, value: object) -> bool:
        return isinstance(value, (int, np.integer)) and self.contains(int(value))

    def __len__(self) -> int:
        return self.count

    def __enter__(self) -> DenseBitTable:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# ─────────────────────────────────────────────────────────────────────────────
# Selection
# ─────────────────────────────────────────────────────────────────────────────

def choose_index_kind(max_value: int, kind: str = "auto") -> str:
    if kind not in INDEX_KINDS:
        raise ValueError(f"unknown index kind {kind!r}")
    if kind != "auto":
        return kind
    return "bitset" if max_value + 1 <= DENSE_TABLE_LIMIT else "hash"


def build_index(primes, kind: str = "auto", max_value: int | None = None) -> MembershipIndex:
    """Build a membership index over ``primes``.

    ``max_value`` is the top of the generated range (``10**D - 1``); it sizes
    the dense table and drives the ``auto`` choice.  Defaults to the largest
    prime.
    """
    primes = as_prime_array(primes)
    if max_value is None:
        max_value = int(primes[-1]) if primes.size else 0
    kind = choose_index_kind(max_value, kind)
    if kind == "bitset":
        return DenseBitTable.from_primes(primes, max_value)
    return ChainedHashSet.from_primes(primes)
