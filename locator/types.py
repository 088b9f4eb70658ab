"""Data model shared by the matching and calibration stages."""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np


class DescriptorLengthError(ValueError):
    """Descriptor sets violate the uniform, multiple-of-4 length contract."""


class Keypoint(NamedTuple):
    """Detected feature position plus its polarity (sign of the laplacian)."""
    x: float
    y: float
    laplacian: int

    @property
    def pt(self) -> Tuple[float, float]:
        return (self.x, self.y)


class CorrespondencePair(NamedTuple):
    object_index: int
    scene_index: int


class Corner(NamedTuple):
    x: int
    y: int


class KeypointSet:
    """Keypoints of one image, index-aligned with their descriptors."""

    def __init__(self, keypoints: Sequence[Keypoint], descriptors: np.ndarray):
        """
        Initialize keypoint set.

        Args:
            keypoints: Ordered keypoints
            descriptors: (n, length) array, one row per keypoint

        Raises:
            DescriptorLengthError: on count mismatch or length not divisible by 4
        """
        descriptors = np.asarray(descriptors, dtype=np.float64)
        if descriptors.ndim == 1 and descriptors.size == 0:
            descriptors = descriptors.reshape(0, 0)
        if descriptors.ndim != 2:
            raise DescriptorLengthError(
                f"Descriptors must be a 2-D array, got {descriptors.ndim} dimensions")
        if len(keypoints) != descriptors.shape[0]:
            raise DescriptorLengthError(
                f"{len(keypoints)} keypoints but {descriptors.shape[0]} descriptors")
        if descriptors.shape[1] % 4 != 0:
            raise DescriptorLengthError(
                f"Descriptor length {descriptors.shape[1]} is not divisible by 4")

        self.keypoints = [Keypoint(float(k[0]), float(k[1]), int(k[2])) for k in keypoints]
        self.descriptors = descriptors

    @classmethod
    def from_arrays(cls, points: np.ndarray, laplacians: Sequence[int],
                    descriptors: np.ndarray) -> 'KeypointSet':
        """Build a set from (n, 2) positions, n polarity tags and (n, length) descriptors."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(laplacians) != len(points):
            raise DescriptorLengthError(
                f"{len(points)} points but {len(laplacians)} polarity tags")
        keypoints = [Keypoint(x, y, lap) for (x, y), lap in zip(points, laplacians)]
        return cls(keypoints, descriptors)

    @property
    def descriptor_length(self) -> int:
        return self.descriptors.shape[1]

    def points(self) -> np.ndarray:
        """Keypoint positions as an (n, 2) array."""
        if not self.keypoints:
            return np.zeros((0, 2))
        return np.array([kp.pt for kp in self.keypoints], dtype=np.float64)

    def __len__(self) -> int:
        return len(self.keypoints)

    def __getitem__(self, index: int) -> Tuple[Keypoint, np.ndarray]:
        return self.keypoints[index], self.descriptors[index]


@dataclass
class LocateResult:
    """Outcome of locating an object in a scene."""
    found: bool
    reason: str
    pairs: List[CorrespondencePair] = field(default_factory=list)
    corners: Optional[List[Corner]] = None
    homography: Optional[np.ndarray] = None
    inliers: int = 0
    reprojection: Optional[Dict[str, float]] = None
    timings: Dict[str, float] = field(default_factory=dict)
