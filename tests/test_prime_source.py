import numpy as np
import pytest
from sympy import isprime, primerange

from prime_source import PrimeGenerationError, as_prime_array, generate_primes, sieve_flags


def test_small_range():
    assert generate_primes(2, 30).tolist() == [2, 3, 5, 7, 11, 13, 17, 19, 23, 29]


def test_bounds_are_inclusive():
    assert generate_primes(11, 13).tolist() == [11, 13]
    assert generate_primes(14, 16).tolist() == []


def test_below_two_is_empty():
    for hi in (0, 1):
        primes = generate_primes(0, hi)
        assert primes.size == 0
        assert primes.dtype == np.uint64


def test_dtype_and_order():
    primes = generate_primes(2, 10_000)
    assert primes.dtype == np.uint64
    assert np.all(np.diff(primes.astype(np.int64)) > 0)


@pytest.mark.parametrize("lo,hi", [(2, 2), (2, 999), (100, 1000), (9_000, 20_000)])
def test_backends_agree(lo, hi):
    assert generate_primes(lo, hi, "numpy").tolist() == generate_primes(lo, hi, "sympy").tolist()


def test_matches_sympy_primerange():
    assert generate_primes(2, 99_999).tolist() == list(primerange(2, 100_000))


def test_sieve_flags():
    flags = sieve_flags(200)
    assert flags.size == 201
    assert [i for i in range(201) if flags[i]] == [i for i in range(201) if isprime(i)]


def test_malformed_ranges():
    with pytest.raises(ValueError):
        generate_primes(10, 5)
    with pytest.raises(ValueError):
        generate_primes(-1, 5)
    with pytest.raises(ValueError):
        generate_primes(2, 10, backend="primesieve")


def test_unaddressable_range_is_a_generation_error():
    with pytest.raises(PrimeGenerationError):
        generate_primes(2, 10**19 - 1)


def test_allocation_failure_is_reported(monkeypatch):
    def boom(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(np, "ones", boom)
    with pytest.raises(PrimeGenerationError) as exc_info:
        generate_primes(2, 1000)
    assert isinstance(exc_info.value.__cause__, MemoryError)


def test_as_prime_array():
    arr = as_prime_array([2, 3, 5])
    assert arr.dtype == np.uint64
    assert as_prime_array(arr) is arr
