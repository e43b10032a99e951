#!/usr/bin/env python3
"""Prime source

Produces the sorted ``uint64`` array of every prime in ``[lo, hi]``.  The
default backend is a boolean Sieve of Eratosthenes held in a numpy array;
``sympy.primerange`` is kept as a slower second backend and as a cross
check for the sieve.
"""

import argparse
import math
import sys
import numpy as np
from sympy import primerange

BACKENDS = ("numpy", "sympy")


class PrimeGenerationError(RuntimeError):
    """The requested range could not be generated (no partial result)."""


# ─────────────────────────────────────────────────────────────────────────────
# Sieve
# ─────────────────────────────────────────────────────────────────────────────

def sieve_flags(limit: int) -> np.ndarray:
    """Return a bool array of length ``limit + 1`` with ``flags[i]`` set iff ``i`` is prime."""
    flags = np.ones(limit + 1, dtype=bool)
    flags[:2] = False
    flags[4::2] = False
    for p in range(3, math.isqrt(limit) + 1, 2):
        if flags[p]:
            flags[p * p :: 2 * p] = False
    return flags


def _numpy_primes(lo: int, hi: int) -> np.ndarray:
    flags = sieve_flags(hi)
    flags[:lo] = False
    return np.flatnonzero(flags).astype(np.uint64)


def _sympy_primes(lo: int, hi: int) -> np.ndarray:
    return np.fromiter(primerange(lo, hi + 1), dtype=np.uint64)


# ─────────────────────────────────────────────────────────────────────────────
# Public entry point
# ─────────────────────────────────────────────────────────────────────────────

def generate_primes(lo: int, hi: int, backend: str = "numpy") -> np.ndarray:
    """Return every prime ``p`` with ``lo <= p <= hi`` in ascending order.

    Raises ``ValueError`` for a malformed range and ``PrimeGenerationError``
    when the range cannot be materialised (allocation failure or a bound
    numpy cannot address).
    """
    if backend not in BACKENDS:
        raise ValueError(f"unknown prime backend {backend!r}")
    if lo < 0 or hi < 0:
        raise ValueError("Negative bounds not supported")
    if lo > hi:
        raise ValueError(f"empty range: lo={lo} > hi={hi}")
    if hi < 2:
        return np.empty(0, dtype=np.uint64)

    try:
        if backend == "sympy":
            return _sympy_primes(max(lo, 2), hi)
        return _numpy_primes(lo, hi)
    except (MemoryError, ValueError, OverflowError) as exc:
        raise PrimeGenerationError(
            f"cannot generate primes in [{lo}, {hi}]: {exc or type(exc).__name__}"
        ) from exc


def as_prime_array(primes) -> np.ndarray:
    """Coerce any ascending sequence of primes into a ``uint64`` array."""
    if isinstance(primes, np.ndarray) and primes.dtype == np.uint64:
        return primes
    return np.asarray(list(primes), dtype=np.uint64)


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the primes in [lo, hi]")
    parser.add_argument("lo", type=int, help="Lower bound (inclusive)")
    parser.add_argument("hi", type=int, help="Upper bound (inclusive)")
    parser.add_argument("--backend", choices=BACKENDS, default="numpy")
    parser.add_argument("--count", action="store_true", help="Only print the number of primes")
    args = parser.parse_args()

    try:
        primes = generate_primes(args.lo, args.hi, args.backend)
    except (ValueError, PrimeGenerationError) as e:
        print("Error:", e, file=sys.stderr)
        sys.exit(1)

    if args.count:
        print(primes.size)
        return
    for p in primes.tolist():
        print(p)


if __name__ == "__main__":
    main()
