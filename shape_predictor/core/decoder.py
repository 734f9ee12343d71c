"""
dlib shape_predictor binary decoder.

dlib serializes a shape predictor as a stream of variable-length integers
and (mantissa, exponent) float pairs. Each ``parse_*`` function takes a
bytes-like buffer and returns ``(value, remaining)`` where ``remaining`` is a
zero-copy memoryview of the unconsumed bytes. The ``_read_*`` helpers do the
actual work on a (buffer, offset) pair so large models decode without slicing.
"""

import math
from typing import Callable, List, Tuple, TypeVar, Union

import numpy as np

from ..config.constants import (
    DLIB_SHAPE_PREDICTOR_VERSION,
    FLOAT_EXPONENT_INF,
    FLOAT_EXPONENT_NAN,
    FLOAT_EXPONENT_NINF,
    INT_SIGN_BIT,
    INT_SIZE_MASK,
    MAX_INT_BYTES,
)
from ..models import RegressionTree, ShapeModel, SplitFeature, Stage, Vector2
from ..utils.exceptions import MalformedEncoding, TruncatedInput, UnsupportedVersion
from ..utils.logging_config import get_logger
from ..utils.validators import validate_count, validate_shape_model

logger = get_logger(__name__)

Buffer = Union[bytes, bytearray, memoryview]
T = TypeVar('T')

_FLOAT32_MAX = float(np.finfo(np.float32).max)
_MAX_DIM = int(np.iinfo(np.intp).max)


def _as_view(data: Buffer) -> memoryview:
    view = memoryview(data)
    if view.format != 'B' or view.ndim != 1:
        view = view.cast('B')
    return view


# ---------------------------------------------------------------------------
# Primitive readers: (buffer, offset) -> (value, new offset)
# ---------------------------------------------------------------------------

def _read_int(buf: memoryview, pos: int) -> Tuple[int, int]:
    if pos >= len(buf):
        raise TruncatedInput(1)

    control = buf[pos]
    size = control & INT_SIZE_MASK
    if size > MAX_INT_BYTES:
        raise MalformedEncoding(f"integer control byte 0x{control:02x} declares {size} bytes")

    end = pos + 1 + size
    if end > len(buf):
        raise TruncatedInput(end - len(buf))

    # dlib serialize() writes the magnitude least-significant byte first.
    # Real .dat files depend on this order; do not switch to big-endian.
    value = int.from_bytes(buf[pos + 1:end], 'little')
    if control & INT_SIGN_BIT:
        value = -value
    return value, end


def _to_float(mantissa: int, exponent: int) -> float:
    if exponent == FLOAT_EXPONENT_INF:
        return math.inf
    if exponent == FLOAT_EXPONENT_NINF:
        return -math.inf
    if exponent == FLOAT_EXPONENT_NAN:
        return math.nan

    try:
        value = math.ldexp(mantissa, exponent)
    except OverflowError:
        raise MalformedEncoding(f"float {mantissa} * 2^{exponent} overflows")
    if abs(value) > _FLOAT32_MAX:
        raise MalformedEncoding(f"float {mantissa} * 2^{exponent} exceeds float32 range")
    return value


def _read_raw_float(buf: memoryview, pos: int) -> Tuple[float, int]:
    mantissa, pos = _read_int(buf, pos)
    exponent, pos = _read_int(buf, pos)
    return _to_float(mantissa, exponent), pos


def _read_float(buf: memoryview, pos: int) -> Tuple[float, int]:
    value, pos = _read_raw_float(buf, pos)
    return float(np.float32(value)), pos


def _read_count(buf: memoryview, pos: int, what: str) -> Tuple[int, int]:
    count, pos = _read_int(buf, pos)
    return validate_count(count, what), pos


def _read_many(buf: memoryview, pos: int, reader: Callable, what: str) -> Tuple[List, int]:
    count, pos = _read_count(buf, pos, what)
    items = []
    for _ in range(count):
        item, pos = reader(buf, pos)
        items.append(item)
    return items, pos


# ---------------------------------------------------------------------------
# Composite readers
# ---------------------------------------------------------------------------

def _read_vector2(buf: memoryview, pos: int) -> Tuple[Vector2, int]:
    x, pos = _read_float(buf, pos)
    y, pos = _read_float(buf, pos)
    return Vector2(x, y), pos


def _read_matrix_dims(buf: memoryview, pos: int) -> Tuple[Tuple[int, int], int]:
    rows, pos = _read_int(buf, pos)
    cols, pos = _read_int(buf, pos)

    # dlib writes (-rows, -cols); both must be negated together
    if rows < 0 or cols < 0:
        if rows > 0 or cols > 0:
            raise MalformedEncoding(f"matrix dimensions ({rows}, {cols}) have mixed signs")
        rows, cols = -rows, -cols

    if rows > _MAX_DIM or cols > _MAX_DIM:
        raise MalformedEncoding(f"matrix dimensions ({rows}, {cols}) exceed addressable size")

    return (rows, cols), pos


def _read_matrix(buf: memoryview, pos: int) -> Tuple[np.ndarray, int]:
    (rows, cols), pos = _read_matrix_dims(buf, pos)

    values = []
    for _ in range(rows * cols):
        value, pos = _read_raw_float(buf, pos)
        values.append(value)

    matrix = np.array(values, dtype=np.float32).reshape(rows, cols)
    return matrix, pos


def _read_split_feature(buf: memoryview, pos: int) -> Tuple[SplitFeature, int]:
    idx1, pos = _read_int(buf, pos)
    idx2, pos = _read_int(buf, pos)
    thresh, pos = _read_float(buf, pos)
    return SplitFeature(idx1, idx2, thresh), pos


def _read_regression_tree(buf: memoryview, pos: int) -> Tuple[RegressionTree, int]:
    splits, pos = _read_many(buf, pos, _read_split_feature, "split count")
    leaves, pos = _read_many(buf, pos, _read_matrix, "leaf count")

    if leaves:
        leaf_shape = leaves[0].shape
        if any(leaf.shape != leaf_shape for leaf in leaves):
            raise MalformedEncoding("leaf matrices within a tree differ in shape")
        leaf_values = np.stack(leaves)
    else:
        leaf_values = np.zeros((0, 0, 0), dtype=np.float32)

    return RegressionTree(splits, leaf_values), pos


def _read_forest(buf: memoryview, pos: int) -> Tuple[List[RegressionTree], int]:
    return _read_many(buf, pos, _read_regression_tree, "tree count")


def _read_anchors(buf: memoryview, pos: int) -> Tuple[List[int], int]:
    return _read_many(buf, pos, _read_int, "anchor count")


def _read_deltas(buf: memoryview, pos: int) -> Tuple[List[Vector2], int]:
    return _read_many(buf, pos, _read_vector2, "delta count")


def _read_shape_predictor(buf: memoryview, pos: int) -> Tuple[ShapeModel, int]:
    version, pos = _read_int(buf, pos)
    if version != DLIB_SHAPE_PREDICTOR_VERSION:
        raise UnsupportedVersion(version)

    initial_shape, pos = _read_matrix(buf, pos)
    forests, pos = _read_many(buf, pos, _read_forest, "forest stage count")
    anchors, pos = _read_many(buf, pos, _read_anchors, "anchor stage count")
    deltas, pos = _read_many(buf, pos, _read_deltas, "delta stage count")

    if not len(forests) == len(anchors) == len(deltas):
        raise MalformedEncoding(
            f"stage counts differ: {len(forests)} forests, "
            f"{len(anchors)} anchor sets, {len(deltas)} delta sets"
        )

    num_landmarks = initial_shape.size // 2
    stages = []
    for forest, anchor_idx, stage_deltas in zip(forests, anchors, deltas):
        if len(anchor_idx) != len(stage_deltas):
            raise MalformedEncoding(
                f"{len(anchor_idx)} anchors but {len(stage_deltas)} deltas in a stage"
            )
        if any(not 0 <= idx < num_landmarks for idx in anchor_idx):
            raise MalformedEncoding(f"anchor index outside {num_landmarks} landmarks")
        stages.append(Stage(
            forest=forest,
            anchor_idx=np.array(anchor_idx, dtype=np.int64),
            deltas=np.array(stage_deltas, dtype=np.float32).reshape(-1, 2),
        ))

    model = ShapeModel(initial_shape, stages)
    validate_shape_model(model)
    return model, pos


# ---------------------------------------------------------------------------
# Public parsers: buffer -> (value, remaining)
# ---------------------------------------------------------------------------

def _parse(reader: Callable[[memoryview, int], Tuple[T, int]], data: Buffer) -> Tuple[T, memoryview]:
    view = _as_view(data)
    value, pos = reader(view, 0)
    return value, view[pos:]


def parse_int(data: Buffer) -> Tuple[int, memoryview]:
    """
    dlib 가변 길이 정수 파싱

    Args:
        data: control byte + magnitude 바이트

    Returns:
        (정수 값, 남은 버퍼)

    Raises:
        TruncatedInput: 선언된 바이트 수보다 버퍼가 짧은 경우
        MalformedEncoding: control byte가 8바이트 초과를 선언한 경우
    """
    return _parse(_read_int, data)


def parse_float(data: Buffer) -> Tuple[float, memoryview]:
    """(mantissa, exponent) 정수 쌍 -> float32 값"""
    return _parse(_read_float, data)


def parse_vector2(data: Buffer) -> Tuple[Vector2, memoryview]:
    return _parse(_read_vector2, data)


def parse_matrix_dims(data: Buffer) -> Tuple[Tuple[int, int], memoryview]:
    return _parse(_read_matrix_dims, data)


def parse_matrix(data: Buffer) -> Tuple[np.ndarray, memoryview]:
    """행렬 파싱 (row-major float32 배열)"""
    return _parse(_read_matrix, data)


def parse_split_feature(data: Buffer) -> Tuple[SplitFeature, memoryview]:
    return _parse(_read_split_feature, data)


def parse_regression_tree(data: Buffer) -> Tuple[RegressionTree, memoryview]:
    return _parse(_read_regression_tree, data)


def parse_forest(data: Buffer) -> Tuple[List[RegressionTree], memoryview]:
    return _parse(_read_forest, data)


def parse_anchors(data: Buffer) -> Tuple[List[int], memoryview]:
    return _parse(_read_anchors, data)


def parse_deltas(data: Buffer) -> Tuple[List[Vector2], memoryview]:
    return _parse(_read_deltas, data)


def parse_shape_predictor(data: Buffer) -> Tuple[ShapeModel, memoryview]:
    """
    dlib shape_predictor 전체 파싱

    Returns:
        (검증된 ShapeModel, 남은 버퍼)

    Raises:
        UnsupportedVersion: 버전이 1이 아닌 경우
        TruncatedInput, MalformedEncoding
    """
    return _parse(_read_shape_predictor, data)


def decode_shape_predictor(data: Buffer) -> ShapeModel:
    """dlib .dat 파일 내용 전체를 ShapeModel로 변환"""
    model, remaining = parse_shape_predictor(data)
    if len(remaining):
        logger.debug(f"Ignoring {len(remaining)} trailing byte(s) after shape predictor")

    logger.info(
        f"Decoded dlib shape predictor: {model.num_landmarks} landmarks, "
        f"{model.num_stages} stages"
    )
    return model
