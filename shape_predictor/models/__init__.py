"""
Model data structures for the shape predictor.
"""
from .shape_model import (
    AffineTransform,
    Rectangle,
    RegressionTree,
    ShapeModel,
    SplitFeature,
    Stage,
    Vector2,
)

__all__ = [
    'AffineTransform', 'Rectangle', 'RegressionTree',
    'ShapeModel', 'SplitFeature', 'Stage', 'Vector2',
]
