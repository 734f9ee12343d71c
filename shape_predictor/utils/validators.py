"""입력 검증 유틸리티 함수"""

import numpy as np

from .exceptions import InvalidImageError, MalformedEncoding


def validate_image(image: np.ndarray) -> None:
    """
    이미지 유효성 검증

    Args:
        image: 검증할 이미지 (numpy array)

    Raises:
        InvalidImageError: 이미지가 유효하지 않은 경우
    """
    if image is None:
        raise InvalidImageError("Image is None")

    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Image must be numpy.ndarray, got {type(image)}")

    if image.size == 0:
        raise InvalidImageError("Image is empty")

    if len(image.shape) not in [2, 3]:
        raise InvalidImageError(f"Image must be 2D or 3D, got shape {image.shape}")

    if len(image.shape) == 3 and image.shape[2] not in [1, 3, 4]:
        raise InvalidImageError(f"Image channels must be 1, 3, or 4, got {image.shape[2]}")


def validate_count(count: int, what: str) -> int:
    """디코딩된 개수 값 검증 (음수 불가)"""
    if count < 0:
        raise MalformedEncoding(f"negative {what}: {count}")
    return count


def validate_regression_tree(tree, num_features: int, shape_size: int) -> None:
    """
    단일 회귀 트리 구조 검증

    Raises:
        MalformedEncoding: leaf 개수, split 인덱스, leaf 크기가 맞지 않는 경우
    """
    num_splits = len(tree.splits)
    num_leaves = tree.num_leaves

    if num_leaves != num_splits + 1:
        raise MalformedEncoding(
            f"tree has {num_splits} splits but {num_leaves} leaves (expected {num_splits + 1})"
        )
    if num_leaves & (num_leaves - 1):
        raise MalformedEncoding(f"leaf count {num_leaves} is not a power of two")

    for split in tree.splits:
        if not (0 <= split.idx1 < num_features and 0 <= split.idx2 < num_features):
            raise MalformedEncoding(
                f"split feature ({split.idx1}, {split.idx2}) outside {num_features} features"
            )

    leaf_size = int(np.prod(tree.leaf_values.shape[1:]))
    if leaf_size != shape_size:
        raise MalformedEncoding(f"leaf size {leaf_size} does not match shape size {shape_size}")


def validate_shape_model(model) -> None:
    """
    디코딩된 모델 전체 구조 검증

    Args:
        model: ShapeModel

    Raises:
        MalformedEncoding: 구조적으로 일관되지 않은 경우
    """
    shape_size = model.initial_shape.size
    if shape_size == 0 or shape_size % 2:
        raise MalformedEncoding(f"initial shape must hold x,y pairs, got {shape_size} values")

    num_landmarks = model.num_landmarks
    for stage_idx, stage in enumerate(model.stages):
        if stage.anchor_idx.shape[0] != stage.deltas.shape[0]:
            raise MalformedEncoding(
                f"stage {stage_idx}: {stage.anchor_idx.shape[0]} anchors "
                f"but {stage.deltas.shape[0]} deltas"
            )
        if stage.anchor_idx.size and not (
                0 <= stage.anchor_idx.min() and stage.anchor_idx.max() < num_landmarks):
            raise MalformedEncoding(
                f"stage {stage_idx}: anchor index outside {num_landmarks} landmarks"
            )
        for tree in stage.forest:
            validate_regression_tree(tree, stage.num_features, shape_size)
