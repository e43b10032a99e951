#!/usr/bin/env python3
"""Right-truncatable prime counter

Counts the primes that stay prime as their rightmost digit is removed, for
every length ``1..D``.  One prime generation pass covers ``[2, 10**D - 1]``;
the membership index is built once over it and every digit window is scanned
against that single index.

    rtp-count 8
    Number of 1-digit right-truncatable primes: 4 (n = 4)
    ...
    Total number of right-truncatable primes up to 8 digits: 83 (n = 5761455)
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import dataclass, field
from typing import Iterable

from tqdm import tqdm

from digit_windows import InvalidDigitBound, MAX_DIGITS, iter_digit_windows, validate_digit_bound
from membership_index import INDEX_KINDS, IndexBuildError, build_index
from prime_source import BACKENDS, PrimeGenerationError, generate_primes
from truncation import count_right_truncatable, right_truncatable_in

VERBOSE = False


def info(msg: str) -> None:
    if VERBOSE:
        tqdm.write(f"INFO: {msg}", file=sys.stderr)


# ─────────────────────────────────────────────────────────────────────────────
# Aggregation
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DigitCount:
    digits: int
    truncatable: int
    primes: int


@dataclass
class TruncationReport:
    digits: int
    per_digit: dict[int, DigitCount]
    prime_count: int
    index_kind: str
    total: int = 0
    found: dict[int, list[int]] = field(default_factory=dict)

    def counts(self) -> dict[int, int]:
        return {k: c.truncatable for k, c in self.per_digit.items()}

    def lines(self) -> list[str]:
        out = [
            f"Number of {c.digits}-digit right-truncatable primes: {c.truncatable} (n = {c.primes})"
            for c in self.per_digit.values()
        ]
        out.append("")
        out.append(
            f"Total number of right-truncatable primes up to {self.digits} digits: "
            f"{self.total} (n = {self.prime_count})"
        )
        return out

    def as_dict(self) -> dict:
        return {
            "digits": self.digits,
            "index": self.index_kind,
            "total": self.total,
            "primes": self.prime_count,
            "per_digit": {k: {"truncatable": c.truncatable, "primes": c.primes}
                          for k, c in self.per_digit.items()},
        }


def aggregate(counts: Iterable[DigitCount], prime_count: int, index_kind: str) -> TruncationReport:
    """Sum per-length counts into a report ordered by digit length."""
    per_digit = {c.digits: c for c in sorted(counts, key=lambda c: c.digits)}
    digits = max(per_digit, default=0)
    total = sum(c.truncatable for c in per_digit.values())
    return TruncationReport(digits, per_digit, prime_count, index_kind, total)


# ─────────────────────────────────────────────────────────────────────────────
# Pipeline
# ─────────────────────────────────────────────────────────────────────────────

def count_right_truncatable_primes(
    digits: int,
    index_kind: str = "auto",
    backend: str = "numpy",
    collect: bool = False,
    progress: bool = False,
) -> TruncationReport:
    """Generate, index, scan and aggregate for digit lengths ``1..digits``."""
    digits = validate_digit_bound(digits)
    max_value = 10**digits - 1

    info(f"Generating primes in [2, {max_value}] ({backend})")
    primes = generate_primes(2, max_value, backend)
    info(f"{primes.size} primes generated")

    counts: list[DigitCount] = []
    found: dict[int, list[int]] = {}
    with build_index(primes, index_kind, max_value) as index:
        info(f"Built {index.kind} index over {len(index)} primes")
        windows = iter_digit_windows(primes, digits)
        for window in tqdm(windows, total=digits, desc="Scanning digit windows",
                           unit="len", leave=False, disable=not progress):
            candidates = window.slice(primes)
            if collect:
                hits = right_truncatable_in(candidates, index)
                found[window.digits] = hits
                n = len(hits)
            else:
                n = count_right_truncatable(candidates, index)
            counts.append(DigitCount(window.digits, n, len(window)))
            info(f"{window.digits}-digit window [{window.start}, {window.end}): {n} truncatable")
        kind = index.kind

    report = aggregate(counts, int(primes.size), kind)
    report.found = found
    return report


# ─────────────────────────────────────────────────────────────────────────────
# Command-line interface
# ─────────────────────────────────────────────────────────────────────────────

def print_timing(elapsed: float) -> None:
    print(f"Execution time: {elapsed * 1e3:.3f} milliseconds")
    print(f"Execution time: {elapsed * 1e6:.3f} microseconds")
    print(f"Execution time: {elapsed * 1e9:.3f} nanoseconds")


def main(argv: list[str] | None = None) -> int:
    global VERBOSE
    start = time.perf_counter()

    parser = argparse.ArgumentParser(
        description="Count right-truncatable primes of every length up to N digits"
    )
    parser.add_argument("digits", type=int, help=f"Digit bound N (1..{MAX_DIGITS})")
    parser.add_argument("--index", choices=INDEX_KINDS, default="auto",
                        help="Membership index: dense bit table, chained hash set, or auto")
    parser.add_argument("--backend", choices=BACKENDS, default="numpy", help="Prime generator")
    parser.add_argument("--list", action="store_true", help="Print the right-truncatable primes")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--timing", action="store_true", help="Print elapsed time")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print phase information")
    args = parser.parse_args(argv)
    VERBOSE = args.verbose

    try:
        validate_digit_bound(args.digits)
    except InvalidDigitBound as e:
        print("Error:", e, file=sys.stderr)
        return 1

    try:
        report = count_right_truncatable_primes(
            args.digits, args.index, args.backend, collect=args.list, progress=args.progress
        )
    except (PrimeGenerationError, IndexBuildError) as e:
        print("Error:", e, file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
        return 0
    for line in report.lines():
        print(line)
    if args.list:
        print()
        for k, hits in report.found.items():
            print(f"{k}: {' '.join(map(str, hits))}")
    if args.timing:
        print()
        print_timing(time.perf_counter() - start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
