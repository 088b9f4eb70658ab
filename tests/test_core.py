"""Integration tests for the locate pipeline."""

import pytest
import numpy as np
from locator import ObjectLocator, locate
from locator.types import KeypointSet, DescriptorLengthError, Corner
from locator.calibration.projector import rectangle_corners
from conftest import H_TRUE, project_points, make_scene


def _identical_sets(n):
    rng = np.random.default_rng(n)
    desc = rng.uniform(0, 1, size=(n, 32))
    points = rng.uniform(0, 100, size=(n, 2))
    laps = [1] * n
    return (KeypointSet.from_arrays(points, laps, desc),
            KeypointSet.from_arrays(points, laps, desc.copy()))


class TestObjectLocator:
    """Test complete locate pipeline."""
    
    def test_locator_initialization(self):
        """Test ObjectLocator picks up configuration."""
        locator = ObjectLocator({"matching": {"ratio": 0.7, "workers": 2},
                                 "calibration": {"ransac_threshold": 3.0}})
        assert locator.pair_finder.matcher.ratio == 0.7
        assert locator.pair_finder.workers == 2
        assert locator.homography_estimator.ransac_threshold == 3.0
        assert locator.min_matches == 4
    
    def test_locate_synthetic_scene(self):
        """Test the object outline is recovered within a pixel."""
        object_set, scene_set, _ = make_scene(n_features=40, n_outliers=8, seed=3)
        corners = rectangle_corners(300, 300)
        expected = project_points(np.array(corners, dtype=float), H_TRUE)
        
        result = ObjectLocator({"calibration": {"seed": 0, "confidence": 0.99999}}).locate(
            object_set, scene_set, corners)
        
        assert result.found
        assert result.reason == "found"
        assert len(result.pairs) == 40
        assert result.inliers >= 32
        assert len(result.corners) == 4
        assert np.all(np.abs(np.array(result.corners) - expected) <= 1.0)
        assert set(result.timings) == {"matching", "homography", "projection"}
        assert result.reprojection["mean_error"] < 1.0
        assert result.reprojection["max_error"] < 5.0
    
    def test_locate_no_pairs(self):
        """Test not found with zero correspondences."""
        desc = np.zeros((5, 16))
        object_set = KeypointSet([(i, i, 1) for i in range(5)], desc)
        scene_set = KeypointSet([(i, i, -1) for i in range(5)], desc)
        result = ObjectLocator().locate(object_set, scene_set, rectangle_corners(10, 10))
        assert not result.found
        assert result.reason == "insufficient_pairs"
        assert result.pairs == []
        assert result.corners is None
    
    def test_locate_three_pairs(self):
        """Test not found with three correspondences."""
        object_set, scene_set = _identical_sets(3)
        result = ObjectLocator().locate(object_set, scene_set, rectangle_corners(10, 10))
        assert len(result.pairs) == 3
        assert not result.found
        assert result.reason == "insufficient_pairs"
    
    def test_single_identical_feature(self):
        """Test that a single trivial match is still below the 4-pair floor."""
        desc = np.linspace(0, 1, 64).reshape(1, 64)
        object_set = KeypointSet([(12.0, 7.0, 1)], desc)
        scene_set = KeypointSet([(12.0, 7.0, 1)], desc.copy())
        result = ObjectLocator().locate(object_set, scene_set, rectangle_corners(20, 20))
        assert result.pairs == [(0, 0)]
        assert not result.found
        assert locate(object_set, scene_set, rectangle_corners(20, 20)) is None
    
    def test_homography_failure(self):
        """Test not found when matched scene points are collinear."""
        rng = np.random.default_rng(9)
        n = 10
        desc = rng.uniform(0, 1, size=(n, 16))
        object_points = rng.uniform(0, 100, size=(n, 2))
        t = rng.uniform(0, 100, size=n)
        scene_points = np.column_stack([t, t])
        object_set = KeypointSet.from_arrays(object_points, [1] * n, desc)
        scene_set = KeypointSet.from_arrays(scene_points, [1] * n, desc.copy())
        
        result = ObjectLocator({"calibration": {"ransac_iterations": 50}}).locate(
            object_set, scene_set, rectangle_corners(100, 100))
        assert len(result.pairs) == n
        assert not result.found
        assert result.reason == "homography_failed"
        assert result.homography is None
        assert result.reprojection is None
    
    def test_projection_failure(self, monkeypatch, synthetic_scene):
        """Test not found when a corner maps to infinity."""
        object_set, scene_set, _ = synthetic_scene
        locator = ObjectLocator()
        H_bad = np.array([[1, 0, 0], [0, 1, 0], [-0.01, 0, 1]], dtype=float)
        monkeypatch.setattr(locator.homography_estimator, "estimate_from_pairs",
                            lambda pairs, a, b: (H_bad, np.ones(len(pairs), dtype=bool)))
        result = locator.locate(object_set, scene_set, rectangle_corners(100, 100))
        assert not result.found
        assert result.reason == "projection_failed"
        assert result.homography is H_bad
    
    def test_source_corner_count(self, synthetic_scene):
        """Test that the outline must have four corners."""
        object_set, scene_set, _ = synthetic_scene
        with pytest.raises(ValueError):
            ObjectLocator().locate(object_set, scene_set, [(0, 0), (300, 0), (300, 300)])
        with pytest.raises(ValueError):
            locate(object_set, scene_set, rectangle_corners(300, 300) + [(150, 150)])
    
    def test_descriptor_length_mismatch(self):
        """Test that sets with different descriptor lengths are rejected."""
        object_set = KeypointSet([(0, 0, 1)], np.zeros((1, 64)))
        scene_set = KeypointSet([(0, 0, 1)], np.zeros((1, 128)))
        with pytest.raises(DescriptorLengthError):
            ObjectLocator().locate(object_set, scene_set, rectangle_corners(1, 1))
    
    def test_parallel_and_opencv(self, synthetic_scene):
        """Test threaded matching with the OpenCV backend."""
        object_set, scene_set, _ = synthetic_scene
        corners = rectangle_corners(300, 300)
        expected = project_points(np.array(corners, dtype=float), H_TRUE)
        
        result = ObjectLocator({"matching": {"workers": 3},
                                "calibration": {"method": "opencv", "seed": 0}}).locate(
            object_set, scene_set, corners)
        assert result.found
        assert np.all(np.abs(np.array(result.corners) - expected) <= 1.0)
    
    def test_locate_function(self, synthetic_scene):
        """Test the functional entry point."""
        object_set, scene_set, _ = synthetic_scene
        corners = locate(object_set, scene_set, rectangle_corners(300, 300),
                         config={"calibration": {"seed": 0}})
        assert corners is not None
        assert all(isinstance(c, Corner) for c in corners)
