"""
Planar object locator

Finds a known planar object in a scene from matched local descriptors.
"""

from .core import ObjectLocator, locate
from .types import (Corner, CorrespondencePair, DescriptorLengthError, Keypoint,
                    KeypointSet, LocateResult)

__all__ = [
    'ObjectLocator',
    'locate',
    'Corner',
    'CorrespondencePair',
    'DescriptorLengthError',
    'Keypoint',
    'KeypointSet',
    'LocateResult',
]
__version__ = '1.0.0'
