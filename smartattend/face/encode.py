"""Face encoding helpers."""

from __future__ import annotations

import logging
from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from smartattend.face.descriptor import FaceDescriptor, as_descriptor

logger = logging.getLogger(__name__)


class FaceEncoder:
    """Interface for the face recognition backend."""

    name: str = "base"

    def encode(self, image_bytes: bytes) -> FaceDescriptor | None:
        """Return the descriptor for the face in the image, or ``None`` if there is none."""

        raise NotImplementedError


class PixelSampleEncoder(FaceEncoder):
    """
    Cheap descriptor built from raw pixels of an already cropped face.

    The crop is converted to grayscale, resized to ``size`` x ``size``, stretched
    to the full 0-255 range, and every ``stride``-th pixel is kept scaled to [0, 1].
    """

    name = "pixel-sample"

    def __init__(self, size: int = 100, stride: int = 4) -> None:
        if size <= 0 or stride <= 0:
            raise ValueError("size and stride must be positive")
        self.size = size
        self.stride = stride

    @property
    def dimension(self) -> int:
        return len(range(0, self.size * self.size, self.stride))

    def encode(self, image_bytes: bytes) -> FaceDescriptor | None:
        if not image_bytes:
            return None
        try:
            with Image.open(BytesIO(image_bytes)) as image:
                gray = image.convert("L").resize((self.size, self.size), Image.Resampling.BILINEAR)
                pixels = np.asarray(gray, dtype=np.float64).reshape(-1)
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("Could not decode face image: %s", exc)
            return None

        low, high = pixels.min(), pixels.max()
        if high > low:
            pixels = (pixels - low) * (255.0 / (high - low))
        else:
            pixels = np.zeros_like(pixels)

        return as_descriptor(pixels[:: self.stride] / 255.0)
