"""Correspondence search between object and scene keypoint sets."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from locator.types import CorrespondencePair, DescriptorLengthError, KeypointSet
from locator.matching.nearest_neighbor import NearestNeighborMatcher

logger = logging.getLogger(__name__)


class PairFinder:
    """Match every object descriptor against the scene set."""

    def __init__(self, matcher: Optional[NearestNeighborMatcher] = None, workers: int = 1):
        """
        Initialize pair finder.

        Args:
            matcher: Nearest neighbor matcher (default ratio 0.6)
            workers: Number of threads scanning the object set
        """
        self.matcher = matcher or NearestNeighborMatcher()
        self.workers = max(1, int(workers))

    def find_pairs(self, object_set: KeypointSet,
                   scene_set: KeypointSet) -> List[CorrespondencePair]:
        """
        Find correspondences ordered by ascending object index.

        A scene index may appear in several pairs.
        """
        n = len(object_set)
        if n == 0 or len(scene_set) == 0:
            return []
        if object_set.descriptor_length != scene_set.descriptor_length:
            raise DescriptorLengthError(
                f"Object descriptors have length {object_set.descriptor_length}, "
                f"scene descriptors {scene_set.descriptor_length}")

        if self.workers == 1 or n < self.workers:
            pairs = self._match_range(object_set, scene_set, 0, n)
        else:
            chunk = -(-n // self.workers)
            bounds = [(start, min(start + chunk, n)) for start in range(0, n, chunk)]
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(self._match_range, object_set, scene_set, lo, hi)
                           for lo, hi in bounds]
                pairs = []
                for future in futures:
                    pairs.extend(future.result())

        logger.debug("Found %d pairs among %d object features", len(pairs), n)
        return pairs

    def _match_range(self, object_set: KeypointSet, scene_set: KeypointSet,
                     start: int, stop: int) -> List[CorrespondencePair]:
        pairs = []
        for i in range(start, stop):
            kp, descriptor = object_set[i]
            neighbor = self.matcher.match(descriptor, kp.laplacian, scene_set)
            if neighbor is not None:
                pairs.append(CorrespondencePair(i, neighbor))
        return pairs
