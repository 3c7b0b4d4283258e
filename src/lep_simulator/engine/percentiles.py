"""Nearest-rank percentiles and basic statistics over trial values.

Percentile k of n sorted values is the value at index
``min(floor(k/100 × n), n − 1)``.  No interpolation: every reported percentile
is a value some trial actually produced.  An empty input reports 0 for every
requested level.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np


def nearest_rank_index(k: float, n: int) -> int:
    return min(int(math.floor(k / 100 * n)), n - 1)


def percentiles_of(values: Sequence[float] | np.ndarray, ks: Iterable[int]) -> dict[str, float]:
    """Map ``"P<k>"`` → nearest-rank percentile for every level in ``ks``."""
    ks = list(ks)
    arr = np.sort(np.asarray(values, dtype=float))
    n = arr.size
    if n == 0:
        return {f"P{k}": 0.0 for k in ks}
    return {f"P{k}": float(arr[nearest_rank_index(k, n)]) for k in ks}


def describe(values: Sequence[float] | np.ndarray) -> dict[str, float]:
    """Mean, median, min, max and population standard deviation."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return {"mean": 0.0, "median": 0.0, "min": 0.0, "max": 0.0, "std": 0.0}
    return {
        "mean": float(arr.mean()),
        "median": float(np.median(arr)),
        "min": float(arr.min()),
        "max": float(arr.max()),
        "std": float(arr.std()),
    }
