from .distance import compare_descriptors, full_distance
from .nearest_neighbor import NearestNeighborMatcher
from .pair_finder import PairFinder

__all__ = ['compare_descriptors', 'full_distance', 'NearestNeighborMatcher', 'PairFinder']
