"""Shared synthetic keypoint sets."""

import pytest
import numpy as np
from locator.types import KeypointSet


H_TRUE = np.array([[0.9, 0.08, 40.0],
                   [-0.05, 1.1, 25.0],
                   [2e-4, -1e-4, 1.0]])


def project_points(points: np.ndarray, H: np.ndarray) -> np.ndarray:
    points_h = np.hstack([points, np.ones((points.shape[0], 1))])
    projected = (H @ points_h.T).T
    return projected[:, :2] / projected[:, 2:]


def make_scene(n_features: int = 40, n_outliers: int = 0, n_distractors: int = 20,
               length: int = 64, seed: int = 0):
    """
    Build an object set and a scene set that sees it through H_TRUE.

    Each object descriptor reappears unchanged in the scene; outlier features
    keep their descriptor but land at a random scene position.
    """
    rng = np.random.default_rng(seed)
    object_points = rng.uniform(0, 300, size=(n_features, 2))
    object_desc = rng.uniform(0, 1, size=(n_features, length))
    laplacians = rng.choice([-1, 1], size=n_features)

    scene_points = project_points(object_points, H_TRUE)
    scene_points[:n_outliers] = rng.uniform(0, 400, size=(n_outliers, 2))

    distractor_points = rng.uniform(0, 400, size=(n_distractors, 2))
    distractor_desc = rng.uniform(0, 1, size=(n_distractors, length))
    distractor_laps = rng.choice([-1, 1], size=n_distractors)

    order = rng.permutation(n_features + n_distractors)
    all_points = np.vstack([scene_points, distractor_points])[order]
    all_desc = np.vstack([object_desc, distractor_desc])[order]
    all_laps = np.concatenate([laplacians, distractor_laps])[order]

    object_set = KeypointSet.from_arrays(object_points, laplacians, object_desc)
    scene_set = KeypointSet.from_arrays(all_points, all_laps, all_desc)
    # scene index of each object feature
    scene_index = np.argsort(order)[:n_features]
    return object_set, scene_set, scene_index


@pytest.fixture
def synthetic_scene():
    return make_scene()
