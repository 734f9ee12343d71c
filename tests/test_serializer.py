import struct

import numpy as np
import pytest

from shape_predictor.config.constants import CACHE_MAGIC, CACHE_VERSION
from shape_predictor.core.decoder import decode_shape_predictor
from shape_predictor.core.serializer import HEADER_STRUCT, deserialize, serialize
from shape_predictor.models import ShapeModel
from shape_predictor.utils.exceptions import SerializationFailure, UnsupportedVersion

from tests.dlib_bytes import assert_models_equal, encode_model, make_random_model


def test_round_trip_is_bit_exact():
    model = make_random_model(seed=11, num_landmarks=7, num_stages=3, depth=3)
    restored = deserialize(serialize(model))
    assert_models_equal(model, restored)


def test_round_trip_of_imported_model():
    imported = decode_shape_predictor(encode_model(make_random_model(seed=12)))
    assert_models_equal(imported, deserialize(serialize(imported)))


def test_round_trip_preserves_special_floats():
    shape = np.array([np.inf, -0.0, np.float32(1e-40), 3.0], dtype=np.float32)
    restored = deserialize(serialize(ShapeModel(shape)))
    assert restored.initial_shape.tobytes() == ShapeModel(shape).initial_shape.tobytes()


def test_round_trip_without_stages():
    model = ShapeModel(np.array([0.5, 0.5], dtype=np.float32))
    restored = deserialize(serialize(model))
    assert restored.num_stages == 0
    assert restored.num_landmarks == 1


def test_header_layout():
    data = serialize(make_random_model(seed=13))
    magic, version, reserved = HEADER_STRUCT.unpack(data[:HEADER_STRUCT.size])
    assert magic == CACHE_MAGIC
    assert version == CACHE_VERSION
    assert reserved == 0


def test_rejects_wrong_magic():
    data = bytearray(serialize(make_random_model(seed=14)))
    data[:4] = b"XXXX"
    with pytest.raises(SerializationFailure):
        deserialize(bytes(data))


def test_rejects_other_version():
    data = bytearray(serialize(make_random_model(seed=15)))
    struct.pack_into("<H", data, 4, CACHE_VERSION + 1)
    with pytest.raises(UnsupportedVersion) as excinfo:
        deserialize(bytes(data))
    assert excinfo.value.found == CACHE_VERSION + 1


def test_rejects_truncated_cache():
    data = serialize(make_random_model(seed=16))
    with pytest.raises(SerializationFailure):
        deserialize(data[:-3])
    with pytest.raises(SerializationFailure):
        deserialize(data[:2])


def test_rejects_trailing_bytes():
    data = serialize(make_random_model(seed=17))
    with pytest.raises(SerializationFailure):
        deserialize(data + b"\x00")


def test_rejects_structurally_invalid_cache():
    # odd initial shape: 1 x 3 matrix, no stages
    data = (
        HEADER_STRUCT.pack(CACHE_MAGIC, CACHE_VERSION, 0)
        + struct.pack("<II", 1, 3)
        + np.zeros(3, dtype="<f4").tobytes()
        + struct.pack("<I", 0)
    )
    with pytest.raises(SerializationFailure):
        deserialize(data)
