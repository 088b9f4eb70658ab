"""Project object corners into the scene."""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from locator.types import Corner


def rectangle_corners(width: float, height: float) -> List[Tuple[float, float]]:
    """Corners of a width x height image, clockwise from the origin."""
    return [(0, 0), (width, 0), (width, height), (0, height)]


class CornerProjector:
    """Map corner points through a homography."""

    def __init__(self, eps: float = 1e-12):
        self.eps = eps

    def project(self, H: Optional[np.ndarray],
                corners: Sequence[Tuple[float, float]]) -> Optional[List[Corner]]:
        """
        Project corners and round them to pixel coordinates.

        Args:
            H: 3x3 homography, or None
            corners: Source (x, y) points

        Returns:
            Projected corners, or None if H is missing or a corner maps to infinity

        Raises:
            ValueError: if not given exactly four corners
        """
        if len(corners) != 4:
            raise ValueError(f"Expected 4 corners, got {len(corners)}")
        if H is None:
            return None

        h = np.asarray(H, dtype=np.float64)
        projected = []
        for x, y in corners:
            w = h[2, 0] * x + h[2, 1] * y + h[2, 2]
            if not math.isfinite(w) or abs(w) <= self.eps:
                return None
            px = (h[0, 0] * x + h[0, 1] * y + h[0, 2]) / w
            py = (h[1, 0] * x + h[1, 1] * y + h[1, 2]) / w
            if not (math.isfinite(px) and math.isfinite(py)):
                return None
            projected.append(Corner(math.floor(px + 0.5), math.floor(py + 0.5)))
        return projected
