import json
import os

import pytest

import rtp_counter
from digit_windows import InvalidDigitBound
from membership_index import IndexBuildError
from prime_source import PrimeGenerationError
from rtp_counter import (
    DigitCount,
    aggregate,
    count_right_truncatable_primes,
    main,
)

A024770_BY_LENGTH = {1: 4, 2: 9, 3: 14, 4: 16, 5: 15, 6: 12, 7: 8, 8: 5}


def test_one_digit():
    report = count_right_truncatable_primes(1)
    assert report.counts() == {1: 4}
    assert report.total == 4
    assert report.prime_count == 4


@pytest.mark.parametrize("kind", ["hash", "bitset", "auto"])
def test_three_digits(kind):
    report = count_right_truncatable_primes(3, index_kind=kind)
    assert report.counts() == {1: 4, 2: 9, 3: 14}
    assert report.total == 27
    assert report.prime_count == 168
    assert [c.primes for c in report.per_digit.values()] == [4, 21, 143]


def test_index_kinds_agree():
    by_hash = count_right_truncatable_primes(5, index_kind="hash")
    by_bits = count_right_truncatable_primes(5, index_kind="bitset")
    assert by_hash.as_dict()["per_digit"] == by_bits.as_dict()["per_digit"]
    assert by_hash.index_kind == "hash"
    assert by_bits.index_kind == "bitset"


def test_sympy_backend():
    report = count_right_truncatable_primes(4, backend="sympy")
    assert report.total == 4 + 9 + 14 + 16


def test_eight_digits_matches_oeis():
    report = count_right_truncatable_primes(8)
    assert report.counts() == A024770_BY_LENGTH
    assert report.total == 83
    assert report.prime_count == 5_761_455


@pytest.mark.skipif(not os.environ.get("RTP_SLOW"), reason="needs ~2 GiB; set RTP_SLOW=1")
def test_nine_digits_adds_nothing():
    report = count_right_truncatable_primes(9)
    assert report.per_digit[9].truncatable == 0
    assert report.per_digit[9].primes > 0
    assert report.total == 83


def test_collect_lists_the_primes():
    report = count_right_truncatable_primes(3, collect=True)
    assert report.found[1] == [2, 3, 5, 7]
    assert report.found[2] == [23, 29, 31, 37, 53, 59, 71, 73, 79]
    assert len(report.found[3]) == 14
    assert 739 in report.found[3]


@pytest.mark.parametrize("bad", [0, 20])
def test_invalid_digit_bound(bad):
    with pytest.raises(InvalidDigitBound):
        count_right_truncatable_primes(bad)


def test_generation_failure_propagates(monkeypatch):
    def fail(lo, hi, backend):
        raise PrimeGenerationError("no memory")

    monkeypatch.setattr(rtp_counter, "generate_primes", fail)
    with pytest.raises(PrimeGenerationError):
        count_right_truncatable_primes(3)


def test_index_is_closed_after_scan(monkeypatch):
    built = []
    real_build = rtp_counter.build_index

    def spy(*args, **kwargs):
        idx = real_build(*args, **kwargs)
        built.append(idx)
        return idx

    monkeypatch.setattr(rtp_counter, "build_index", spy)
    count_right_truncatable_primes(2, index_kind="hash")
    assert len(built[0]) == 0


# ─────────────────────────────────────────────────────────────────────────────
# Aggregation
# ─────────────────────────────────────────────────────────────────────────────

def test_aggregate_sums_and_orders():
    report = aggregate([DigitCount(2, 9, 21), DigitCount(1, 4, 4), DigitCount(3, 0, 143)], 168, "hash")
    assert list(report.per_digit) == [1, 2, 3]
    assert report.total == 13
    assert report.digits == 3


def test_aggregate_empty():
    report = aggregate([], 0, "bitset")
    assert report.total == 0
    assert report.per_digit == {}


def test_report_lines():
    report = aggregate([DigitCount(1, 4, 4), DigitCount(2, 9, 21)], 25, "bitset")
    assert report.lines() == [
        "Number of 1-digit right-truncatable primes: 4 (n = 4)",
        "Number of 2-digit right-truncatable primes: 9 (n = 21)",
        "",
        "Total number of right-truncatable primes up to 2 digits: 13 (n = 25)",
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Command-line interface
# ─────────────────────────────────────────────────────────────────────────────

def test_cli_output(capsys):
    assert main(["3"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Number of 1-digit right-truncatable primes: 4 (n = 4)"
    assert out[2] == "Number of 3-digit right-truncatable primes: 14 (n = 143)"
    assert out[4] == "Total number of right-truncatable primes up to 3 digits: 27 (n = 168)"


def test_cli_list_and_timing(capsys):
    assert main(["2", "--list", "--timing", "--index", "hash"]) == 0
    out = capsys.readouterr().out
    assert "2: 23 29 31 37 53 59 71 73 79" in out
    assert "milliseconds" in out and "nanoseconds" in out


def test_cli_verbose_goes_to_stderr(capsys):
    assert main(["2", "-v"]) == 0
    captured = capsys.readouterr()
    assert "INFO:" in captured.err
    assert "INFO:" not in captured.out


@pytest.mark.parametrize("bad", ["0", "20", "-1"])
def test_cli_rejects_out_of_range(bad, capsys):
    assert main([bad]) == 1
    captured = capsys.readouterr()
    assert "between 1 and 19" in captured.err
    assert captured.out == ""


@pytest.mark.parametrize("argv", [[], ["3", "4"], ["three"]])
def test_cli_rejects_bad_arguments(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    assert exc_info.value.code != 0


def test_cli_reports_generation_failure(capsys):
    assert main(["19"]) == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_cli_reports_index_failure(monkeypatch, capsys):
    def fail(*args, **kwargs):
        raise IndexBuildError("cannot allocate")

    monkeypatch.setattr(rtp_counter, "build_index", fail)
    assert main(["2"]) == 1
    assert "cannot allocate" in capsys.readouterr().err


def test_cli_json(capsys):
    assert main(["3", "--json", "--index", "hash"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["total"] == 27
    assert data["index"] == "hash"
    assert data["primes"] == 168
    assert data["per_digit"]["3"] == {"truncatable": 14, "primes": 143}
