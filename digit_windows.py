#!/usr/bin/env python3
"""Digit-window partitioning of a sorted prime array.

A window is the half-open slice ``[start, end)`` of the prime array whose
values all have exactly ``digits`` decimal digits.  Windows are found with a
forward-only cursor, so walking every length ``1..D`` touches each prime once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from prime_source import as_prime_array

MAX_DIGITS = 19


class InvalidDigitBound(ValueError):
    """Digit bound outside ``[1, MAX_DIGITS]``."""


def validate_digit_bound(digits) -> int:
    if isinstance(digits, bool) or not isinstance(digits, (int, np.integer)):
        raise InvalidDigitBound(f"digits must be an integer, got {digits!r}")
    if not 1 <= digits <= MAX_DIGITS:
        raise InvalidDigitBound(f"digits must be between 1 and {MAX_DIGITS}.")
    return int(digits)


def digit_bounds(digits: int) -> tuple[int, int]:
    """Return ``(lo, hi)`` such that ``lo <= v < hi`` iff ``v`` has ``digits`` digits.

    For one digit ``lo`` is 2, since 0 and 1 are never prime.
    """
    digits = validate_digit_bound(digits)
    lo = 2 if digits == 1 else 10 ** (digits - 1)
    return lo, 10**digits


@dataclass(frozen=True)
class DigitWindow:
    digits: int
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def slice(self, primes: np.ndarray) -> np.ndarray:
        return primes[self.start : self.end]


def find_digit_window(primes: np.ndarray, digits: int, start: int = 0) -> DigitWindow:
    """Locate the ``digits``-digit window, searching only from index ``start`` on."""
    lo, hi = digit_bounds(digits)
    tail = as_prime_array(primes)[start:]
    first = start + int(np.searchsorted(tail, np.uint64(lo), side="left"))
    last = start + int(np.searchsorted(tail, np.uint64(hi), side="left"))
    return DigitWindow(digits, first, last)


def iter_digit_windows(primes: np.ndarray, max_digits: int) -> Iterator[DigitWindow]:
    """Yield the windows for ``1..max_digits`` in ascending order with one cursor."""
    max_digits = validate_digit_bound(max_digits)
    primes = as_prime_array(primes)
    cursor = 0
    for k in range(1, max_digits + 1):
        window = find_digit_window(primes, k, cursor)
        yield window
        cursor = window.end
