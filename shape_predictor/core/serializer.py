"""
Compact cache format for decoded shape predictors.

Layout (little-endian)::

    header   : magic b"SPRD", u16 version, u16 reserved
    shape    : u32 rows, u32 cols, f32[rows * cols]
    u32 stage count, then per stage:
        u32 tree count, then per tree:
            u32 n_splits, u32 idx1[n], u32 idx2[n], f32 thresh[n]
            u32 n_leaves, u32 rows, u32 cols, f32[n_leaves * rows * cols]
        u32 n_features, u32 anchor_idx[n], f32 deltas[n * 2]

Floats and integers are copied as raw bytes, so a round trip is bit-exact.
"""

import struct
from typing import List

import numpy as np

from ..config.constants import CACHE_MAGIC, CACHE_VERSION
from ..models import RegressionTree, ShapeModel, SplitFeature, Stage
from ..utils.exceptions import MalformedEncoding, SerializationFailure, UnsupportedVersion
from ..utils.logging_config import get_logger
from ..utils.validators import validate_shape_model

logger = get_logger(__name__)

HEADER_STRUCT = struct.Struct("<4sHH")
U32_STRUCT = struct.Struct("<I")
DIMS_STRUCT = struct.Struct("<II")
LEAF_HEADER_STRUCT = struct.Struct("<III")

_F32 = np.dtype("<f4")
_U32 = np.dtype("<u4")


def _pack_array(values, dtype: np.dtype) -> bytes:
    return np.ascontiguousarray(values, dtype=dtype).tobytes()


def _encode_stage(stage: Stage, chunks: List[bytes]) -> None:
    chunks.append(U32_STRUCT.pack(len(stage.forest)))
    for tree in stage.forest:
        chunks.append(U32_STRUCT.pack(len(tree.splits)))
        chunks.append(_pack_array([s.idx1 for s in tree.splits], _U32))
        chunks.append(_pack_array([s.idx2 for s in tree.splits], _U32))
        chunks.append(_pack_array([s.thresh for s in tree.splits], _F32))

        n_leaves, rows, cols = tree.leaf_values.shape
        chunks.append(LEAF_HEADER_STRUCT.pack(n_leaves, rows, cols))
        chunks.append(_pack_array(tree.leaf_values, _F32))

    chunks.append(U32_STRUCT.pack(stage.num_features))
    chunks.append(_pack_array(stage.anchor_idx, _U32))
    chunks.append(_pack_array(stage.deltas, _F32))


def serialize(model: ShapeModel) -> bytes:
    """
    ShapeModel -> 캐시 바이트

    Raises:
        SerializationFailure: 값이 캐시 포맷 범위를 벗어나는 경우
    """
    chunks = [HEADER_STRUCT.pack(CACHE_MAGIC, CACHE_VERSION, 0)]
    try:
        rows, cols = model.initial_shape.shape
        chunks.append(DIMS_STRUCT.pack(rows, cols))
        chunks.append(_pack_array(model.initial_shape, _F32))

        chunks.append(U32_STRUCT.pack(model.num_stages))
        for stage in model.stages:
            _encode_stage(stage, chunks)
    except (struct.error, OverflowError, ValueError) as e:
        raise SerializationFailure(e) from e

    return b"".join(chunks)


class _CacheReader:
    """캐시 버퍼 순차 읽기"""

    def __init__(self, data):
        self._view = memoryview(data).cast('B')
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._view) - self._pos

    def take(self, size: int) -> memoryview:
        if size > self.remaining:
            raise SerializationFailure(
                f"cache truncated: need {size} byte(s) at offset {self._pos}, "
                f"{self.remaining} left"
            )
        chunk = self._view[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def unpack(self, fmt: struct.Struct) -> tuple:
        return fmt.unpack(self.take(fmt.size))

    def u32(self) -> int:
        return self.unpack(U32_STRUCT)[0]

    def array(self, dtype: np.dtype, count: int) -> np.ndarray:
        return np.frombuffer(self.take(count * dtype.itemsize), dtype=dtype)


def _decode_tree(reader: _CacheReader) -> RegressionTree:
    n_splits = reader.u32()
    idx1 = reader.array(_U32, n_splits)
    idx2 = reader.array(_U32, n_splits)
    thresh = reader.array(_F32, n_splits)
    splits = [
        SplitFeature(int(a), int(b), float(t))
        for a, b, t in zip(idx1, idx2, thresh)
    ]

    n_leaves, rows, cols = reader.unpack(LEAF_HEADER_STRUCT)
    leaves = reader.array(_F32, n_leaves * rows * cols).reshape(n_leaves, rows, cols)
    return RegressionTree(splits, leaves)


def _decode_stage(reader: _CacheReader) -> Stage:
    n_trees = reader.u32()
    forest = [_decode_tree(reader) for _ in range(n_trees)]

    n_features = reader.u32()
    anchor_idx = reader.array(_U32, n_features)
    deltas = reader.array(_F32, n_features * 2).reshape(n_features, 2)
    return Stage(forest, anchor_idx, deltas)


def deserialize(data) -> ShapeModel:
    """
    캐시 바이트 -> ShapeModel

    Raises:
        UnsupportedVersion: 캐시 버전이 다른 경우
        SerializationFailure: magic 불일치, 잘린 버퍼, 잘못된 구조
    """
    reader = _CacheReader(data)

    magic, version, _reserved = reader.unpack(HEADER_STRUCT)
    if magic != CACHE_MAGIC:
        raise SerializationFailure(f"not a shape predictor cache (magic {magic!r})")
    if version != CACHE_VERSION:
        raise UnsupportedVersion(version)

    rows, cols = reader.unpack(DIMS_STRUCT)
    initial_shape = reader.array(_F32, rows * cols).reshape(rows, cols)

    n_stages = reader.u32()
    stages = [_decode_stage(reader) for _ in range(n_stages)]

    if reader.remaining:
        raise SerializationFailure(f"{reader.remaining} unexpected trailing byte(s) in cache")

    model = ShapeModel(initial_shape, stages)
    try:
        validate_shape_model(model)
    except MalformedEncoding as e:
        raise SerializationFailure(e.detail) from e

    logger.debug(f"Deserialized cached model: {model.num_landmarks} landmarks, {n_stages} stages")
    return model
