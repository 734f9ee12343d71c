"""Hand-rolled dlib encoders and synthetic models shared by the tests."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

from shape_predictor.models import RegressionTree, ShapeModel, SplitFeature, Stage


def encode_int(value: int) -> bytes:
    magnitude = abs(value)
    body = magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "little")
    control = len(body) | (0x80 if value < 0 else 0)
    return bytes([control]) + body


def encode_float(value: float) -> bytes:
    value = float(value)
    if math.isnan(value):
        return encode_int(0) + encode_int(32002)
    if math.isinf(value):
        return encode_int(0) + encode_int(32000 if value > 0 else 32001)
    numerator, denominator = value.as_integer_ratio()
    exponent = -(denominator.bit_length() - 1)
    return encode_int(numerator) + encode_int(exponent)


def encode_vector2(x: float, y: float) -> bytes:
    return encode_float(x) + encode_float(y)


def encode_matrix(matrix, negate_dims: bool = True) -> bytes:
    matrix = np.asarray(matrix, dtype=np.float32)
    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    rows, cols = matrix.shape
    if negate_dims:
        rows, cols = -rows, -cols
    out = encode_int(rows) + encode_int(cols)
    return out + b"".join(encode_float(v) for v in matrix.reshape(-1))


def encode_tree(splits: Sequence[tuple], leaves: Sequence) -> bytes:
    out = encode_int(len(splits))
    for idx1, idx2, thresh in splits:
        out += encode_int(idx1) + encode_int(idx2) + encode_float(thresh)
    out += encode_int(len(leaves))
    return out + b"".join(encode_matrix(leaf) for leaf in leaves)


def encode_list(items: Iterable[bytes]) -> bytes:
    items = list(items)
    return encode_int(len(items)) + b"".join(items)


def encode_model(model: ShapeModel, version: int = 1) -> bytes:
    """Encode a ShapeModel in dlib's shape_predictor layout."""
    out = encode_int(version) + encode_matrix(model.initial_shape)
    out += encode_list(
        encode_list(
            encode_tree(
                [(s.idx1, s.idx2, s.thresh) for s in tree.splits],
                list(tree.leaf_values),
            )
            for tree in stage.forest
        )
        for stage in model.stages
    )
    out += encode_list(
        encode_list(encode_int(int(a)) for a in stage.anchor_idx)
        for stage in model.stages
    )
    out += encode_list(
        encode_list(encode_vector2(float(x), float(y)) for x, y in stage.deltas)
        for stage in model.stages
    )
    return out


def make_random_model(
    seed: int = 0,
    num_landmarks: int = 5,
    num_stages: int = 2,
    trees_per_stage: int = 3,
    depth: int = 2,
    num_features: int = 6,
) -> ShapeModel:
    rng = np.random.default_rng(seed)
    initial_shape = rng.uniform(0.1, 0.9, size=(num_landmarks * 2, 1)).astype(np.float32)

    stages = []
    num_splits = 2 ** depth - 1
    for _ in range(num_stages):
        forest = []
        for _ in range(trees_per_stage):
            splits = [
                SplitFeature(
                    int(rng.integers(num_features)),
                    int(rng.integers(num_features)),
                    float(np.float32(rng.normal(0.0, 20.0))),
                )
                for _ in range(num_splits)
            ]
            leaves = rng.normal(0.0, 0.01, size=(num_splits + 1, num_landmarks * 2, 1))
            forest.append(RegressionTree(splits, leaves.astype(np.float32)))
        stages.append(Stage(
            forest=forest,
            anchor_idx=rng.integers(num_landmarks, size=num_features),
            deltas=rng.normal(0.0, 0.1, size=(num_features, 2)).astype(np.float32),
        ))
    return ShapeModel(initial_shape, stages)


def assert_models_equal(left: ShapeModel, right: ShapeModel) -> None:
    """Bit-for-bit comparison of two models."""
    assert left.initial_shape.shape == right.initial_shape.shape
    assert left.initial_shape.tobytes() == right.initial_shape.tobytes()
    assert left.num_stages == right.num_stages
    for a, b in zip(left.stages, right.stages):
        assert np.array_equal(a.anchor_idx, b.anchor_idx)
        assert a.deltas.tobytes() == b.deltas.tobytes()
        assert len(a.forest) == len(b.forest)
        for tree_a, tree_b in zip(a.forest, b.forest):
            assert tree_a.splits == tree_b.splits
            assert tree_a.leaf_values.shape == tree_b.leaf_values.shape
            assert tree_a.leaf_values.tobytes() == tree_b.leaf_values.tobytes()
