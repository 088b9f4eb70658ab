"""
Locator Core
Main entry point for finding a planar object in a scene
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from locator.config import load_config
from locator.types import Corner, DescriptorLengthError, KeypointSet, LocateResult
from locator.matching.nearest_neighbor import NearestNeighborMatcher
from locator.matching.pair_finder import PairFinder
from locator.calibration.homography import HomographyEstimator
from locator.calibration.projector import CornerProjector
from locator.utils.metrics import AccuracyMetrics, PerformanceMetrics

logger = logging.getLogger(__name__)


class ObjectLocator:
    """Match descriptors, fit a homography and project the object outline"""
    
    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize locator
        
        Args:
            config: Configuration overrides merged over DEFAULT_CONFIG (optional)
        """
        self.config = load_config(overrides=config)
        matching = self.config["matching"]
        calibration = self.config["calibration"]
        
        self.min_matches = max(4, int(calibration["min_matches"]))
        
        matcher = NearestNeighborMatcher(ratio=matching["ratio"],
                                         sentinel=matching["sentinel"])
        self.pair_finder = PairFinder(matcher, workers=matching["workers"])
        self.homography_estimator = HomographyEstimator(
            ransac_threshold=calibration["ransac_threshold"],
            max_iters=calibration["ransac_iterations"],
            min_inliers=calibration["min_inliers"],
            confidence=calibration["confidence"],
            method=calibration["method"],
            refine=calibration["refine"],
            seed=calibration["seed"]
        )
        self.corner_projector = CornerProjector(eps=self.config["projection"]["eps"])
    
    def locate(self, object_set: KeypointSet, scene_set: KeypointSet,
               source_corners: Sequence[Tuple[float, float]]) -> LocateResult:
        """
        Locate the object outline in the scene
        
        Args:
            object_set: Keypoints and descriptors of the object image
            scene_set: Keypoints and descriptors of the scene image
            source_corners: Object outline in object image coordinates
            
        Returns:
            LocateResult; found is False when the object could not be placed
        """
        if len(source_corners) != 4:
            raise ValueError(f"Expected 4 source corners, got {len(source_corners)}")
        if (len(object_set) and len(scene_set)
                and object_set.descriptor_length != scene_set.descriptor_length):
            raise DescriptorLengthError(
                f"Object descriptors have length {object_set.descriptor_length}, "
                f"scene descriptors {scene_set.descriptor_length}")
        
        metrics = PerformanceMetrics()
        
        # Step 1: Match descriptors
        metrics.start_timer("matching")
        pairs = self.pair_finder.find_pairs(object_set, scene_set)
        metrics.stop_timer("matching")
        logger.info("Matched %d of %d object features", len(pairs), len(object_set))
        
        if len(pairs) < self.min_matches:
            return LocateResult(found=False, reason="insufficient_pairs", pairs=pairs,
                                timings=metrics.get_summary())
        
        # Step 2: Fit homography
        metrics.start_timer("homography")
        H, mask = self.homography_estimator.estimate_from_pairs(pairs, object_set, scene_set)
        metrics.stop_timer("homography")
        inliers = int(mask.sum())
        
        if H is None:
            logger.info("No homography supported by %d pairs", len(pairs))
            return LocateResult(found=False, reason="homography_failed", pairs=pairs,
                                timings=metrics.get_summary())
        
        src_points, dst_points = self.homography_estimator.pair_points(pairs, object_set, scene_set)
        reprojection = AccuracyMetrics.calculate_reprojection_error(
            self.homography_estimator.transform_points(src_points[mask], H), dst_points[mask])
        logger.debug("Homography has %d/%d inliers, mean error %.3f px",
                     inliers, len(pairs), reprojection["mean_error"])
        
        # Step 3: Project outline
        metrics.start_timer("projection")
        corners = self.corner_projector.project(H, source_corners)
        metrics.stop_timer("projection")
        
        if corners is None:
            logger.info("Homography maps the outline to infinity")
            return LocateResult(found=False, reason="projection_failed", pairs=pairs,
                                homography=H, inliers=inliers, reprojection=reprojection,
                                timings=metrics.get_summary())
        
        return LocateResult(found=True, reason="found", pairs=pairs, corners=corners,
                            homography=H, inliers=inliers, reprojection=reprojection,
                            timings=metrics.get_summary())


def locate(object_set: KeypointSet, scene_set: KeypointSet,
           source_corners: Sequence[Tuple[float, float]],
           config: Dict[str, Any] = None) -> Optional[List[Corner]]:
    """Return the projected corners, or None if the object was not found."""
    return ObjectLocator(config).locate(object_set, scene_set, source_corners).corners
