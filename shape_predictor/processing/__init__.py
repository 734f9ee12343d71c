"""Processing layer components"""

from .geometry import AlignmentEstimator

__all__ = [
    'AlignmentEstimator',
]
