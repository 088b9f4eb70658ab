"""Homography calculation and transformation."""

import logging
import cv2
import numpy as np
from typing import List, Optional, Sequence, Tuple

from locator.types import CorrespondencePair, KeypointSet
from locator.calibration.ransac import RANSAC
from locator.calibration.optimizer import HomographyOptimizer

logger = logging.getLogger(__name__)


def _normalization_matrix(points: np.ndarray) -> Optional[np.ndarray]:
    """Similarity moving the centroid to the origin with mean distance sqrt(2)."""
    centroid = points.mean(axis=0)
    mean_dist = np.mean(np.linalg.norm(points - centroid, axis=1))
    if mean_dist < 1e-12:
        return None
    s = np.sqrt(2) / mean_dist
    return np.array([[s, 0, -s * centroid[0]],
                     [0, s, -s * centroid[1]],
                     [0, 0, 1]])


def _has_collinear_triplet(points: np.ndarray, tol: float = 1e-9) -> bool:
    """Check whether any three of four points are (nearly) collinear."""
    scale = max(np.ptp(points[:, 0]), np.ptp(points[:, 1]), 1.0)
    for i, j, k in ((0, 1, 2), (0, 1, 3), (0, 2, 3), (1, 2, 3)):
        a, b, c = points[i], points[j], points[k]
        area = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
        if abs(area) <= tol * scale * scale:
            return True
    return False


def direct_linear_transform(src_points: np.ndarray,
                            dst_points: np.ndarray) -> Optional[np.ndarray]:
    """
    Fit a homography with the normalized DLT.
    
    Args:
        src_points: (n, 2) source points, n >= 4
        dst_points: (n, 2) destination points
        
    Returns:
        3x3 homography scaled so H[2, 2] == 1, or None for degenerate input
    """
    src = np.asarray(src_points, dtype=np.float64)
    dst = np.asarray(dst_points, dtype=np.float64)
    n = len(src)
    if n < 4:
        return None
    if n == 4 and (_has_collinear_triplet(src) or _has_collinear_triplet(dst)):
        return None
    
    T_src = _normalization_matrix(src)
    T_dst = _normalization_matrix(dst)
    if T_src is None or T_dst is None:
        return None
    
    src_n = (T_src @ np.hstack([src, np.ones((n, 1))]).T).T
    dst_n = (T_dst @ np.hstack([dst, np.ones((n, 1))]).T).T
    
    A = np.zeros((2 * n, 9))
    for i in range(n):
        x, y = src_n[i, 0], src_n[i, 1]
        u, v = dst_n[i, 0], dst_n[i, 1]
        A[2 * i] = [-x, -y, -1, 0, 0, 0, u * x, u * y, u]
        A[2 * i + 1] = [0, 0, 0, -x, -y, -1, v * x, v * y, v]
    
    try:
        _, s, Vt = np.linalg.svd(A)
    except np.linalg.LinAlgError:
        return None
    
    # A one-dimensional null space is required for a unique solution
    if s[7] <= 1e-10 * s[0]:
        return None
    
    H_n = Vt[-1].reshape(3, 3)
    H = np.linalg.inv(T_dst) @ H_n @ T_src
    if abs(H[2, 2]) > 1e-12:
        H = H / H[2, 2]
    else:
        H = H / np.linalg.norm(H)
    
    if not np.all(np.isfinite(H)) or abs(np.linalg.det(H)) < 1e-12:
        return None
    return H


class HomographyCalculator:
    """Calculate homography transformation matrix."""
    
    def __init__(self, ransac_threshold: float = 5.0, max_iters: int = 2000,
                 min_inliers: int = 4, confidence: float = 0.995,
                 method: str = "dlt", refine: bool = False, seed=None):
        if method not in ("dlt", "opencv"):
            raise ValueError(f"Unknown homography method: {method}")
        self.ransac_threshold = ransac_threshold
        self.max_iters = max_iters
        self.min_inliers = max(4, min_inliers)
        self.confidence = confidence
        self.method = method
        self.refine = refine
        self.seed = seed
        self.optimizer = HomographyOptimizer()
    
    def calculate(self, src_points: np.ndarray, 
                 dst_points: np.ndarray) -> Optional[np.ndarray]:
        """Calculate homography matrix using RANSAC."""
        H, _ = self.estimate(src_points, dst_points)
        return H
    
    def estimate(self, src_points: np.ndarray,
                 dst_points: np.ndarray) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """
        Robustly estimate the homography mapping src_points onto dst_points.
        
        Args:
            src_points: (n, 2) object-plane points
            dst_points: (n, 2) scene-plane points
            
        Returns:
            Tuple of (homography matrix or None, boolean inlier mask)
        """
        src = np.asarray(src_points, dtype=np.float64).reshape(-1, 2)
        dst = np.asarray(dst_points, dtype=np.float64).reshape(-1, 2)
        if len(src) != len(dst):
            raise ValueError(f"{len(src)} source points but {len(dst)} destination points")
        
        if len(src) < 4:
            return None, np.zeros(len(src), dtype=bool)
        
        try:
            if self.method == "opencv":
                H, mask = self._estimate_opencv(src, dst)
            else:
                H, mask = self._estimate_dlt(src, dst)
        except (cv2.error, np.linalg.LinAlgError) as e:
            logger.warning("Homography estimation failed: %s", e)
            return None, np.zeros(len(src), dtype=bool)
        
        if H is None:
            return None, np.zeros(len(src), dtype=bool)
        
        if self.refine:
            H = self.optimizer.optimize(H, src[mask], dst[mask])
            mask = self._inlier_mask(src, dst, H)
        
        if not np.all(np.isfinite(H)) or int(np.sum(mask)) < self.min_inliers:
            logger.debug("Rejected homography with %d inliers", int(np.sum(mask)))
            return None, np.zeros(len(src), dtype=bool)
        
        return H, mask
    
    def estimate_from_pairs(self, pairs: Sequence[CorrespondencePair],
                            object_set: KeypointSet,
                            scene_set: KeypointSet) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """Estimate homography from correspondence pairs between two keypoint sets."""
        src_points, dst_points = self.pair_points(pairs, object_set, scene_set)
        return self.estimate(src_points, dst_points)
    
    @staticmethod
    def pair_points(pairs: Sequence[CorrespondencePair], object_set: KeypointSet,
                    scene_set: KeypointSet) -> Tuple[np.ndarray, np.ndarray]:
        """Gather the matched object and scene positions as (n, 2) arrays."""
        if not pairs:
            return np.zeros((0, 2)), np.zeros((0, 2))
        src_points = np.array([object_set.keypoints[p.object_index].pt for p in pairs])
        dst_points = np.array([scene_set.keypoints[p.scene_index].pt for p in pairs])
        return src_points, dst_points
    
    def _estimate_dlt(self, src: np.ndarray,
                      dst: np.ndarray) -> Tuple[Optional[np.ndarray], np.ndarray]:
        ransac = RANSAC(threshold=self.ransac_threshold, max_iters=self.max_iters,
                        min_samples=4, min_inliers=self.min_inliers,
                        confidence=self.confidence, seed=self.seed)
        data = np.hstack([src, dst])
        
        def model_func(sample):
            return direct_linear_transform(sample[:, :2], sample[:, 2:])
        
        def score_func(rows, H):
            return self._transfer_errors(rows[:, :2], rows[:, 2:], H)
        
        best, inliers = ransac.fit(data, model_func, score_func)
        if best is None:
            return None, inliers
        
        H = direct_linear_transform(src[inliers], dst[inliers])
        if H is None:
            return None, inliers
        return H, self._inlier_mask(src, dst, H)
    
    def _estimate_opencv(self, src: np.ndarray,
                         dst: np.ndarray) -> Tuple[Optional[np.ndarray], np.ndarray]:
        if self.seed is not None:
            cv2.setRNGSeed(int(self.seed))
        H, mask = cv2.findHomography(src.astype(np.float32), dst.astype(np.float32),
                                     cv2.RANSAC, self.ransac_threshold,
                                     maxIters=self.max_iters, confidence=self.confidence)
        if H is None or mask is None:
            return None, np.zeros(len(src), dtype=bool)
        return H, mask.ravel().astype(bool)
    
    def _inlier_mask(self, src: np.ndarray, dst: np.ndarray, H: np.ndarray) -> np.ndarray:
        return self._transfer_errors(src, dst, H) < self.ransac_threshold
    
    @staticmethod
    def _transfer_errors(src: np.ndarray, dst: np.ndarray, H: np.ndarray) -> np.ndarray:
        """Forward reprojection error per point; inf where a point maps to infinity."""
        points_h = np.hstack([src, np.ones((src.shape[0], 1))])
        projected = (H @ points_h.T).T
        w = projected[:, 2:]
        with np.errstate(divide='ignore', invalid='ignore'):
            transformed = projected[:, :2] / w
            errors = np.linalg.norm(transformed - dst, axis=1)
        errors[~np.isfinite(errors)] = np.inf
        return errors
    
    def transform_points(self, points: np.ndarray, H: np.ndarray) -> np.ndarray:
        """Transform points using homography matrix."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        points_homogeneous = np.hstack([points, np.ones((points.shape[0], 1))])
        transformed = (H @ points_homogeneous.T).T
        transformed = transformed[:, :2] / transformed[:, 2:]
        return transformed
    
    def calculate_reprojection_error(self, src_points: np.ndarray,
                                     dst_points: np.ndarray,
                                     H: Optional[np.ndarray]) -> float:
        """
        Calculate average reprojection error.
        
        Args:
            src_points: Source points array
            dst_points: Destination points array
            H: Homography matrix
            
        Returns:
            Average reprojection error in pixels, inf without a homography
        """
        if H is None or len(src_points) == 0:
            return float('inf')
        
        transformed = self.transform_points(src_points, H)
        errors = np.linalg.norm(transformed - np.asarray(dst_points, dtype=np.float64), axis=1)
        return float(np.mean(errors))


# Alias matching the pipeline stage name
HomographyEstimator = HomographyCalculator
