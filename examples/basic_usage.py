"""Basic usage example for the planar object locator."""

import numpy as np
from locator import ObjectLocator, KeypointSet
from locator.calibration.projector import rectangle_corners
from locator.utils.logger import setup_logger


def make_sets(width: int = 320, height: int = 240, n_features: int = 60):
    """Synthesize object/scene keypoint sets related by a known homography."""
    rng = np.random.default_rng(0)
    H = np.array([[0.8, 0.1, 120.0],
                  [-0.05, 0.9, 80.0],
                  [1e-4, 2e-4, 1.0]])
    
    points = rng.uniform([0, 0], [width, height], size=(n_features, 2))
    descriptors = rng.uniform(0, 1, size=(n_features, 64))
    laplacians = rng.choice([-1, 1], size=n_features)
    
    points_h = np.hstack([points, np.ones((n_features, 1))])
    projected = (H @ points_h.T).T
    scene_points = projected[:, :2] / projected[:, 2:]
    # a few features land in the wrong place
    scene_points[:6] = rng.uniform(0, 600, size=(6, 2))
    
    object_set = KeypointSet.from_arrays(points, laplacians, descriptors)
    scene_set = KeypointSet.from_arrays(scene_points, laplacians, descriptors)
    return object_set, scene_set


def main():
    """Run the locate pipeline on synthetic keypoints."""
    setup_logger('locator')
    width, height = 320, 240
    object_set, scene_set = make_sets(width, height)
    
    locator = ObjectLocator({"calibration": {"seed": 0}})
    result = locator.locate(object_set, scene_set, rectangle_corners(width, height))
    
    print(f"{len(result.pairs)} correspondences, {result.inliers} inliers")
    if result.found:
        print("Found")
        for corner in result.corners:
            print(f"  ({corner.x}, {corner.y})")
    else:
        print(f"Not found ({result.reason})")


if __name__ == "__main__":
    main()
