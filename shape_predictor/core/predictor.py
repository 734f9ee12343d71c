"""회귀 트리 캐스케이드 기반 얼굴 랜드마크 예측기"""

import time
from pathlib import Path
from typing import List, Union

import numpy as np

from ..models import AffineTransform, Rectangle, ShapeModel, Stage, Vector2
from ..processing.geometry import AlignmentEstimator
from ..utils.exceptions import IoFailure
from ..utils.logging_config import get_logger
from .decoder import decode_shape_predictor
from .image import ImageQuery
from .serializer import deserialize, serialize

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _read_bytes(path: PathLike) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise IoFailure(e) from e


def _write_bytes(path: PathLike, data: bytes) -> None:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise IoFailure(e) from e


class ShapePredictor:
    """
    dlib shape_predictor 호환 랜드마크 예측기

    모델은 불변이므로 하나의 인스턴스를 여러 스레드에서 동시에 run() 해도 된다.
    run() 호출마다 shape 복사본과 feature 벡터를 새로 만든다.
    """

    def __init__(self, model: ShapeModel):
        """
        Args:
            model: 디코딩 및 검증이 끝난 ShapeModel
        """
        self.model = model

    @property
    def num_landmarks(self) -> int:
        return self.model.num_landmarks

    def run(self, image: ImageQuery, region: Rectangle) -> List[Vector2]:
        """
        관심 영역에서 랜드마크 예측

        Args:
            image: width(), height(), luma_intensity(x, y)를 제공하는 이미지
            region: 얼굴 영역 (이미지 픽셀 좌표)

        Returns:
            이미지 픽셀 좌표의 랜드마크 리스트 (모델 랜드마크 순서)
        """
        start_time = time.time()

        current_shape = self.model.initial_shape.copy()
        to_image = AlignmentEstimator.unnormalizing(region)

        for stage in self.model.stages:
            features = self._extract_feature_pixel_values(image, to_image, stage, current_shape)

            for tree in stage.forest:
                _, leaf = tree.find(features)
                current_shape += leaf.reshape(current_shape.shape)

        points = to_image.apply_many(current_shape.reshape(-1, 2))

        processing_time = (time.time() - start_time) * 1000  # ms
        logger.debug(f"Predicted {len(points)} landmarks in {processing_time:.2f}ms")

        return [Vector2(float(x), float(y)) for x, y in points]

    def _extract_feature_pixel_values(
        self,
        image: ImageQuery,
        to_image: AffineTransform,
        stage: Stage,
        current_shape: np.ndarray
    ) -> List[float]:
        """현재 shape 기준 샘플 위치의 픽셀 밝기값 (이미지 밖은 0.0)"""
        if stage.num_features == 0:
            return []

        landmarks = current_shape.reshape(-1, 2)
        align = self._find_tform_between(landmarks)

        # delta는 정규화 좌표계 기준 -> 현재 shape에 맞춰 회전/스케일
        sample_points = stage.deltas @ align.m.T + landmarks[stage.anchor_idx]
        image_points = to_image.apply_many(sample_points)

        width, height = image.width(), image.height()
        features = []
        for x, y in image_points:
            if 0 <= x < width and 0 <= y < height:
                features.append(float(image.luma_intensity(int(x), int(y))))
            else:
                features.append(0.0)
        return features

    def _find_tform_between(self, to_landmarks: np.ndarray) -> AffineTransform:
        if self.model.num_landmarks == 1:
            return AffineTransform.identity()
        return AlignmentEstimator.find_similarity(self.model.landmarks(), to_landmarks)

    @classmethod
    def read_from_dlib(cls, path: PathLike) -> "ShapePredictor":
        """
        dlib이 저장한 .dat 파일에서 로드

        Raises:
            IoFailure: 파일을 읽을 수 없는 경우
            TruncatedInput, MalformedEncoding, UnsupportedVersion
        """
        logger.info(f"Importing dlib shape predictor: {path}")
        return cls(decode_shape_predictor(_read_bytes(path)))

    @classmethod
    def read(cls, path: PathLike) -> "ShapePredictor":
        """
        내부 캐시 파일에서 로드

        Raises:
            IoFailure, SerializationFailure, UnsupportedVersion
        """
        logger.info(f"Loading cached shape predictor: {path}")
        return cls(deserialize(_read_bytes(path)))

    def write(self, path: PathLike) -> None:
        """내부 캐시 파일로 저장"""
        _write_bytes(path, serialize(self.model))
        logger.info(f"Shape predictor cache written: {path}")

    def __repr__(self):
        return (f"ShapePredictor(num_landmarks={self.model.num_landmarks}, "
                f"num_stages={self.model.num_stages})")
