"""
Shape Predictor
dlib shape_predictor 모델 디코딩 및 회귀 트리 캐스케이드 랜드마크 예측
"""

__version__ = "0.1.0"

from .config.settings import LoaderSettings
from .core import (
    GrayImage,
    ImageQuery,
    ShapePredictor,
    decode_shape_predictor,
    deserialize,
    load_shape_predictor,
    serialize,
)
from .models import AffineTransform, Rectangle, ShapeModel, Vector2
from .processing.geometry import AlignmentEstimator
from .utils.exceptions import (
    AlignmentError,
    DecodeError,
    IoFailure,
    MalformedEncoding,
    SerializationFailure,
    ShapePredictorError,
    TruncatedInput,
    UnsupportedVersion,
)

__all__ = [
    'LoaderSettings',
    'GrayImage', 'ImageQuery', 'ShapePredictor',
    'decode_shape_predictor', 'deserialize', 'load_shape_predictor', 'serialize',
    'AffineTransform', 'Rectangle', 'ShapeModel', 'Vector2',
    'AlignmentEstimator',
    'AlignmentError', 'DecodeError', 'IoFailure', 'MalformedEncoding', 'SerializationFailure',
    'ShapePredictorError', 'TruncatedInput', 'UnsupportedVersion',
]
