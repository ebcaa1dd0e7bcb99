"""Tests for the pixel-sample face encoder."""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from smartattend.face import DescriptorStore, EuclideanMatcher, PixelSampleEncoder


def _png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _gradient(width: int = 64, height: int = 48) -> bytes:
    row = np.linspace(20, 200, width, dtype=np.uint8)
    pixels = np.tile(row, (height, 1))
    return _png(Image.fromarray(pixels).convert("RGB"))


def test_encode_produces_normalised_fixed_length_descriptor() -> None:
    encoder = PixelSampleEncoder()

    descriptor = encoder.encode(_gradient())

    assert descriptor is not None
    assert descriptor.shape == (encoder.dimension,) == (2500,)
    assert descriptor.min() >= 0.0
    assert descriptor.max() <= 1.0
    assert descriptor.max() > descriptor.min()


def test_uniform_image_encodes_to_zeros() -> None:
    descriptor = PixelSampleEncoder(size=10, stride=1).encode(_png(Image.new("L", (30, 30), color=128)))

    assert descriptor is not None
    assert descriptor.shape == (100,)
    assert not descriptor.any()


def test_undecodable_input_is_treated_as_no_face() -> None:
    encoder = PixelSampleEncoder()

    assert encoder.encode(b"") is None
    assert encoder.encode(b"not an image") is None


def test_same_image_matches_its_enrolled_student() -> None:
    encoder = PixelSampleEncoder(size=20, stride=2)
    store = DescriptorStore()
    store.enroll("CSE001", encoder.encode(_gradient()))

    result = EuclideanMatcher(store).match(encoder.encode(_gradient()))

    assert result is not None
    assert result.student_id == "CSE001"
    assert result.confidence == 1.0
