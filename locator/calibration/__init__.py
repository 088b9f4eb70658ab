from .homography import HomographyCalculator, HomographyEstimator, direct_linear_transform
from .optimizer import HomographyOptimizer
from .projector import CornerProjector, rectangle_corners
from .ransac import RANSAC

__all__ = [
    'HomographyCalculator',
    'HomographyEstimator',
    'direct_linear_transform',
    'HomographyOptimizer',
    'CornerProjector',
    'rectangle_corners',
    'RANSAC',
]
