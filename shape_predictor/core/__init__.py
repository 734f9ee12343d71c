"""Core components: dlib decoder, predictor, cache codec"""

from .decoder import decode_shape_predictor, parse_shape_predictor
from .image import GrayImage, ImageQuery
from .loader import load_shape_predictor
from .predictor import ShapePredictor
from .serializer import deserialize, serialize

__all__ = [
    'decode_shape_predictor', 'parse_shape_predictor',
    'GrayImage', 'ImageQuery',
    'load_shape_predictor',
    'ShapePredictor',
    'deserialize', 'serialize',
]
