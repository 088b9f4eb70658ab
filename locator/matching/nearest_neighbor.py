"""Nearest neighbor search with distance-ratio test."""

from typing import Optional, Tuple

import numpy as np

from locator.types import DescriptorLengthError, KeypointSet
from locator.matching.distance import compare_descriptors


class NearestNeighborMatcher:
    """Brute-force nearest neighbor matcher gated by keypoint polarity."""

    def __init__(self, ratio: float = 0.6, sentinel: float = 1e6):
        self.ratio = ratio
        # Stands in for "no second-best yet"; must exceed any real distance.
        self.sentinel = sentinel

    def match_with_distances(self, vec: np.ndarray, laplacian: int,
                             candidates: KeypointSet) -> Tuple[Optional[int], float, float]:
        """
        Scan candidates and track best and second-best distances.

        Returns:
            Tuple of (accepted candidate index or None, best distance, second-best distance)
        """
        length = candidates.descriptor_length
        if len(candidates) and len(vec) != length:
            raise DescriptorLengthError(
                f"Query descriptor has length {len(vec)}, candidates {length}")
        neighbor = None
        dist1 = self.sentinel
        dist2 = self.sentinel

        for i, kp in enumerate(candidates.keypoints):
            if kp.laplacian != laplacian:
                continue

            d = compare_descriptors(vec, candidates.descriptors[i], dist2, length)
            if d < dist1:
                dist2 = dist1
                dist1 = d
                neighbor = i
            elif d < dist2:
                dist2 = d

        if dist1 < self.ratio * dist2:
            return neighbor, dist1, dist2
        return None, dist1, dist2

    def match(self, vec: np.ndarray, laplacian: int,
              candidates: KeypointSet) -> Optional[int]:
        """Return the index of the accepted nearest neighbor, or None."""
        neighbor, _, _ = self.match_with_distances(vec, laplacian, candidates)
        return neighbor
