"""Squared Euclidean distance between SURF-style descriptors."""

import numpy as np

from locator.types import DescriptorLengthError


def compare_descriptors(d1, d2, best: float, length: int) -> float:
    """
    Sum of squared differences, evaluated 4 components at a time.

    Stops as soon as the running sum exceeds ``best`` and returns the partial
    sum, which is then only good for comparisons against ``best``.

    Args:
        d1: First descriptor
        d2: Second descriptor
        best: Bound above which accumulation stops
        length: Number of components to compare

    Returns:
        Accumulated cost (exact when it does not exceed ``best``)
    """
    if length % 4 != 0:
        raise DescriptorLengthError(f"Descriptor length {length} is not divisible by 4")

    total_cost = 0.0
    for i in range(0, length, 4):
        t0 = d1[i] - d2[i]
        t1 = d1[i + 1] - d2[i + 1]
        t2 = d1[i + 2] - d2[i + 2]
        t3 = d1[i + 3] - d2[i + 3]
        total_cost += t0 * t0 + t1 * t1 + t2 * t2 + t3 * t3
        if total_cost > best:
            break
    return float(total_cost)


def full_distance(d1, d2) -> float:
    """Untruncated squared Euclidean distance."""
    diff = np.asarray(d1, dtype=np.float64) - np.asarray(d2, dtype=np.float64)
    return float(np.dot(diff, diff))
