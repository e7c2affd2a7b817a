"""Percentile calculator used for the duration box-plot."""

import math
from typing import Sequence


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Percentile by linear interpolation between closest ranks.

    Same result as numpy.percentile's default "linear" method. The input
    must already be sorted ascending; it is not sorted here.

    Args:
        sorted_values: Values in ascending order.
        p: Percentile in [0, 100].

    Returns:
        The interpolated value, or 0.0 for an empty sequence.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0

    pos = (n - 1) * (p / 100)
    lower = math.floor(pos)
    upper = math.ceil(pos)
    if lower == upper:
        return float(sorted_values[lower])

    # Same arithmetic as numpy's lerp: start from the nearer neighbour
    low = float(sorted_values[lower])
    high = float(sorted_values[upper])
    frac = pos - lower
    diff = high - low
    if frac >= 0.5:
        return high - diff * (1 - frac)
    return low + diff * frac
