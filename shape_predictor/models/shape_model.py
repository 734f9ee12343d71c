"""데이터 모델 정의"""

from dataclasses import dataclass, field
from typing import NamedTuple, Sequence, Tuple

import numpy as np


def _read_only(array: np.ndarray, dtype) -> np.ndarray:
    """dtype으로 변환한 읽기 전용 배열 반환"""
    array = np.array(array, dtype=dtype)
    array.flags.writeable = False
    return array


class Vector2(NamedTuple):
    """2D 좌표 (x, y)"""

    x: float
    y: float


@dataclass(frozen=True)
class SplitFeature:
    """결정 노드: feature[idx1] - feature[idx2] > thresh 이면 왼쪽 자식"""

    idx1: int
    idx2: int
    thresh: float


@dataclass(frozen=True, eq=False)
class RegressionTree:
    """
    암시적 완전 이진 트리 형태의 회귀 트리

    splits는 너비 우선 순서로 저장되며, 노드 i의 자식은 2i+1, 2i+2.
    leaf_values는 (leaf 개수, rows, cols) float32 배열.
    """

    splits: Tuple[SplitFeature, ...]
    leaf_values: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'splits', tuple(self.splits))
        object.__setattr__(self, 'leaf_values', _read_only(self.leaf_values, np.float32))

    @property
    def num_leaves(self) -> int:
        return int(self.leaf_values.shape[0])

    def find(self, feature_values: Sequence[float]) -> Tuple[int, np.ndarray]:
        """
        feature 벡터를 트리에 통과시켜 leaf 보정값 검색

        Args:
            feature_values: 현재 stage의 feature 픽셀 값

        Returns:
            (leaf 인덱스, leaf 보정 행렬)
        """
        num_splits = len(self.splits)
        i = 0
        while i < num_splits:
            split = self.splits[i]
            # 같은 값(==)은 오른쪽으로
            if feature_values[split.idx1] - feature_values[split.idx2] > split.thresh:
                i = 2 * i + 1
            else:
                i = 2 * i + 2

        leaf_index = i - num_splits
        return leaf_index, self.leaf_values[leaf_index]


@dataclass(frozen=True, eq=False)
class Stage:
    """캐스케이드 한 단계: 트리 forest + feature 샘플 위치 (anchor, delta)"""

    forest: Tuple[RegressionTree, ...]
    anchor_idx: np.ndarray
    deltas: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'forest', tuple(self.forest))
        object.__setattr__(self, 'anchor_idx', _read_only(self.anchor_idx, np.int64).reshape(-1))
        object.__setattr__(self, 'deltas', _read_only(self.deltas, np.float32).reshape(-1, 2))

    @property
    def num_features(self) -> int:
        return int(self.anchor_idx.shape[0])


@dataclass(frozen=True, eq=False)
class ShapeModel:
    """디코딩된 shape predictor 모델 (생성 후 불변)"""

    initial_shape: np.ndarray
    stages: Tuple[Stage, ...] = field(default_factory=tuple)

    def __post_init__(self):
        shape = _read_only(self.initial_shape, np.float32)
        if shape.ndim == 1:
            shape = shape.reshape(-1, 1)
        object.__setattr__(self, 'initial_shape', shape)
        object.__setattr__(self, 'stages', tuple(self.stages))

    @property
    def num_landmarks(self) -> int:
        return self.initial_shape.size // 2

    @property
    def num_stages(self) -> int:
        return len(self.stages)

    def landmarks(self) -> np.ndarray:
        """초기 shape를 (N, 2) 좌표 배열로 반환"""
        return self.initial_shape.reshape(-1, 2)

    def landmark(self, idx: int) -> Vector2:
        x, y = self.landmarks()[idx]
        return Vector2(float(x), float(y))


@dataclass(frozen=True)
class Rectangle:
    """이미지 픽셀 좌표계의 관심 영역"""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_ltrb(cls, left: float, top: float, right: float, bottom: float) -> "Rectangle":
        """dlib.rectangle 스타일 (left, top, right, bottom)에서 생성"""
        return cls(float(left), float(top), float(right - left), float(bottom - top))

    @classmethod
    def from_image(cls, image) -> "Rectangle":
        """이미지 전체 크기의 영역"""
        return cls(0.0, 0.0, float(image.width()), float(image.height()))

    def tl_corner(self) -> Vector2:
        return Vector2(self.x, self.y)

    def tr_corner(self) -> Vector2:
        return Vector2(self.x + self.width, self.y)

    def bl_corner(self) -> Vector2:
        return Vector2(self.x, self.y + self.height)

    def br_corner(self) -> Vector2:
        return Vector2(self.x + self.width, self.y + self.height)

    def contains(self, point: Sequence[float]) -> bool:
        """경계 포함 여부"""
        px, py = point[0], point[1]
        return (self.x <= px <= self.x + self.width and
                self.y <= py <= self.y + self.height)


@dataclass(frozen=True, eq=False)
class AffineTransform:
    """2x2 선형 변환 + 평행 이동"""

    m: np.ndarray
    b: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'm', _read_only(self.m, np.float64).reshape(2, 2))
        object.__setattr__(self, 'b', _read_only(self.b, np.float64).reshape(2))

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls(np.eye(2), np.zeros(2))

    def apply(self, point: Sequence[float]) -> Vector2:
        x, y = self.m @ np.asarray(point, dtype=np.float64) + self.b
        return Vector2(float(x), float(y))

    def apply_many(self, points: np.ndarray) -> np.ndarray:
        """(N, 2) 좌표 배열 일괄 변환"""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return points @ self.m.T + self.b

    __call__ = apply
