from __future__ import annotations

import base64

import numpy as np
import pytest

from local_plastic_recognition.errors import DecodeFailureError, InvalidInputError
from local_plastic_recognition.image_utils import (
    crop_region,
    decode_base64_image,
    image_size_kb,
    load_image,
    mime_type,
)
from local_plastic_recognition.types import DetectedRegion

from . import image_factory as factory


def test_crop_region_scales_each_axis():
    image = factory.create_blank_image(400, 200, color=(0, 0, 0))
    image[:100, :200] = (0, 0, 255)
    crop = crop_region(image, DetectedRegion(0, 0, 100, 100, 0.9), grid_extent=200)
    assert crop.shape == image.shape
    assert (crop == (0, 0, 255)).all()


def test_crop_region_rejects_empty_region():
    with pytest.raises(InvalidInputError):
        crop_region(factory.create_blank_image(), DetectedRegion(10, 10, 0, 0, 0.5), grid_extent=200)


def test_data_url_round_trip_keeps_pixels():
    image = factory.create_split_image(width=40, height=20)
    decoded = decode_base64_image(factory.to_data_url(image))
    assert np.array_equal(decoded, image)


def test_plain_base64_is_accepted():
    payload = base64.b64encode(factory.encode_png(factory.create_blank_image(8, 8))).decode("ascii")
    assert decode_base64_image(payload).shape == (8, 8, 3)


def test_oversized_payload_is_rejected():
    payload = factory.to_data_url(factory.create_noise_image(200, 200))
    assert image_size_kb(payload) > 1
    with pytest.raises(InvalidInputError):
        decode_base64_image(payload, max_kb=1)


def test_invalid_base64_raises_decode_failure():
    with pytest.raises(DecodeFailureError):
        decode_base64_image("data:image/png;base64,@@not-base64@@")


def test_mime_type_defaults_to_jpeg():
    assert mime_type("data:image/webp;base64,AAAA") == "image/webp"
    assert mime_type("AAAA") == "image/jpeg"


def test_alpha_is_kept_only_on_request():
    image = factory.create_transparent_image()
    assert load_image(image, keep_alpha=True).shape[2] == 4
    assert load_image(image).shape[2] == 3


def test_grayscale_and_float_arrays_are_normalized():
    gray = np.full((10, 10), 128, dtype=np.uint8)
    assert load_image(gray).shape == (10, 10, 3)
    floats = np.ones((10, 10, 3), dtype=np.float32)
    assert load_image(floats).max() == 255


def test_wrong_channel_count_is_invalid():
    with pytest.raises(InvalidInputError):
        load_image(np.zeros((10, 10, 2), dtype=np.uint8))


def test_load_image_accepts_long_plain_base64_string():
    image = factory.create_noise_image(64, 64)
    payload = base64.b64encode(factory.encode_png(image)).decode("ascii")
    assert len(payload) > 4096
    assert np.array_equal(load_image(payload), image)


def test_plain_base64_string_respects_size_limit():
    payload = base64.b64encode(factory.encode_png(factory.create_noise_image(200, 200))).decode("ascii")
    with pytest.raises(InvalidInputError):
        load_image(payload, max_kb=1)


def test_existing_file_path_wins_over_base64(tmp_path):
    path = tmp_path / "AAAA"
    path.write_bytes(factory.encode_png(factory.create_blank_image(8, 8)))
    assert load_image(str(path)).shape == (8, 8, 3)


def test_unknown_string_is_a_decode_failure():
    with pytest.raises(DecodeFailureError):
        load_image("no/such/image.png")


def test_non_image_mime_type_is_rejected():
    with pytest.raises(InvalidInputError):
        decode_base64_image("data:application/pdf;base64,AAAA")
