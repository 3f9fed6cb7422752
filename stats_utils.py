"""Numeric helper routines shared by the optimizer and the kernel model.

get_stats(rows)          -> (mean, unbiased variance) via running updates
get_min_max(rows)        -> column-wise (min, max)
quickselect(values, k)   -> k-th smallest value (1-based), random pivots
median(values)           -> median built on the same partition loop
chebyshev / hermite / legendre -> three-term polynomial recurrences
harmonic(x), factorial(n), combine(lists), log1p_exp(x)

All recurrences run as explicit loops.
"""
from __future__ import annotations
import itertools
import math
import numpy as np


def log1p_exp(x: float) -> float:
    return x + math.log1p(math.exp(-x))


# ---- Running statistics ----

def get_stats(rows):
    """Mean and unbiased variance of a sequence of equal-length vectors.

    Uses the incremental update m_{i+1} = m_i + (x - m_i)/(i+1) for the mean
    and the matching update of the biased second moment, then rescales the
    result by n/(n-1).
    """
    data = [np.asarray(r, dtype=float).ravel() for r in rows]
    n = len(data)
    if n <= 1:
        raise ValueError("To calculate stats size of data must be > 1")
    m = data[0].copy()
    s = np.zeros_like(m)
    for i, x in enumerate(data[1:], start=1):
        m_new = m + (x - m) / (i + 1)
        s = s + m * m - m_new * m_new + (x * x - s - m * m) / (i + 1)
        m = m_new
    return m, s * (n / (n - 1.0))


def get_min_max(rows):
    data = [np.asarray(r, dtype=float).ravel() for r in rows]
    if not data:
        raise ValueError("get_min_max needs at least one vector")
    lo = data[0].copy()
    hi = data[0].copy()
    for x in data[1:]:
        lo = np.minimum(lo, x)
        hi = np.maximum(hi, x)
    return lo, hi


# ---- Selection ----

def _select_rank(values, k, rng):
    # k is a 0-based rank into values
    sample = list(values)
    pivot = sample[rng.randint(len(sample))]
    while True:
        lower = [v for v in sample if v < pivot]
        upper = [v for v in sample if v >= pivot]
        s = len(lower)
        if s == k:
            return pivot
        if s == 0 and sum(sample) == pivot * len(sample):
            return pivot
        if s < k:
            sample, k = upper, k - s
        else:
            sample = lower
        pivot = sample[rng.randint(len(sample))]


def quickselect(values, k: int, random_state=None) -> float:
    """Return the k-th smallest element (1 <= k <= len(values))."""
    values = [float(v) for v in values]
    if not (0 < k <= len(values)):
        raise ValueError("In quick-select, the search index must be between 1 and length of list")
    rng = np.random.RandomState(random_state)
    return _select_rank(values, k - 1, rng)


def median(values, random_state=None) -> float:
    values = [float(v) for v in values]
    n = len(values)
    if n == 0:
        raise ValueError("median of an empty sequence")
    rng = np.random.RandomState(random_state)
    if n % 2 == 0:
        med_a = _select_rank(values, n // 2, rng)
        med_b = _select_rank(values, n // 2 - 1, rng)
        return (med_a + med_b) / 2.0
    return _select_rank(values, n // 2, rng)


# ---- Polynomial recurrences ----

def chebyshev(n: int, x: float, kind: int = 1) -> float:
    """Chebyshev polynomial of the first (T_n) or second (U_n) kind."""
    if kind not in (1, 2):
        raise ValueError("Chebyshev function can only be of the first or second kind")
    a, b = 1.0, (x if kind == 1 else 2.0 * x)
    if n == 0:
        return a
    for _ in range(n - 1):
        a, b = b, 2.0 * x * b - a
    return b


def hermite(n: int, x: float) -> float:
    """Probabilists' Hermite polynomial He_n(x)."""
    a, b = 1.0, x
    if n == 0:
        return a
    k = n
    while k > 1:
        a, b = b, x * b - (k - 1) * a
        k -= 1
    return b


def legendre(n: int, x: float) -> float:
    a, b = 1.0, x
    if n == 0:
        return a
    k = n
    while k > 1:
        a, b = b, ((2 * k - 1) * x * b - (k - 1) * a) / k
        k -= 1
    return b


# ---- Misc ----

def harmonic(x: float) -> float:
    """Harmonic number H(floor(x)) for non-negative x."""
    if x < 0:
        raise ValueError("Harmonic number function takes only non-negative arguments")
    acc = 0.0
    arg = x
    while math.floor(arg) != 0:
        acc += 1.0 / math.floor(arg)
        arg -= 1
    return acc


def factorial(n: int) -> int:
    if n < 0:
        raise ValueError(f"factorial of negative number: {n}")
    acc = 1
    for i in range(2, n + 1):
        acc *= i
    return acc


def combine(lists):
    """Cartesian product of a sequence of sequences, as a list of lists."""
    return [list(t) for t in itertools.product(*lists)]


__all__ = [
    'log1p_exp', 'get_stats', 'get_min_max', 'quickselect', 'median',
    'chebyshev', 'hermite', 'legendre', 'harmonic', 'factorial', 'combine'
]
