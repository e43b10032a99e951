#!/usr/bin/env python3
"""Right-truncation checks against a membership index.

A prime is right-truncatable when every prefix obtained by dropping trailing
digits (``v``, ``v // 10``, ``v // 100``, ...) is itself prime.  The
candidates handed in here already come from the prime array, but ``v`` is
still checked so the loop has no special first step.
"""

import numpy as np
from sympy import isprime

try:
    import gmpy2  # type: ignore
    HAVE_GMPY2 = True
except ImportError:
    HAVE_GMPY2 = False

from membership_index import MembershipIndex

TEN = np.uint64(10)


def is_right_truncatable(value: int, index: MembershipIndex) -> bool:
    value = int(value)
    if value <= 0:
        return False
    while value > 0:
        if not index.contains(value):
            return False
        value //= 10
    return True


def _truncatable_mask(candidates: np.ndarray, index: MembershipIndex) -> np.ndarray:
    """Bool mask over ``candidates``: ``True`` where every truncation is indexed.

    Works a whole window at a time: each round tests the current prefixes of
    the surviving candidates, drops the misses, then strips one digit.
    """
    candidates = np.asarray(candidates, dtype=np.uint64)
    ok = np.zeros(candidates.shape, dtype=bool)
    alive = np.flatnonzero(candidates)
    prefixes = candidates[alive]
    while alive.size:
        hit = index.contains_many(prefixes)
        alive, prefixes = alive[hit], prefixes[hit] // TEN
        done = prefixes == 0
        ok[alive[done]] = True
        alive, prefixes = alive[~done], prefixes[~done]
    return ok


def count_right_truncatable(candidates, index: MembershipIndex) -> int:
    """Number of right-truncatable values among ``candidates``."""
    return int(np.count_nonzero(_truncatable_mask(candidates, index)))


def right_truncatable_in(candidates, index: MembershipIndex) -> list[int]:
    """The right-truncatable values themselves, in input order."""
    candidates = np.asarray(candidates, dtype=np.uint64)
    return candidates[_truncatable_mask(candidates, index)].tolist()


# ─────────────────────────────────────────────────────────────────────────────
# Index-free oracle
# ─────────────────────────────────────────────────────────────────────────────

def _is_prime(n: int) -> bool:
    if HAVE_GMPY2:
        return bool(gmpy2.is_prime(n))
    return bool(isprime(n))


def is_right_truncatable_bruteforce(value: int) -> bool:
    """Check each truncation with a primality test instead of an index."""
    value = int(value)
    if value <= 0:
        return False
    while value > 0:
        if not _is_prime(value):
            return False
        value //= 10
    return True
