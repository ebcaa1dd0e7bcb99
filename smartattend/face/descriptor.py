"""Face descriptor type and distance helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

# Read-only 1-D float64 array.
FaceDescriptor = np.ndarray


class InvalidDescriptorError(ValueError):
    """Raised when a descriptor is structurally unusable (empty, wrong rank, non-finite)."""


class DescriptorDimensionError(InvalidDescriptorError):
    """Raised when a descriptor length disagrees with the store's dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Descriptor has {actual} dimensions, store expects {expected}.")


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Best enrolled student for a query descriptor."""

    student_id: str
    confidence: float


def as_descriptor(values: Iterable[float] | np.ndarray) -> FaceDescriptor:
    """Return an immutable float64 copy of ``values``, validating its shape."""

    try:
        array = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidDescriptorError("Descriptor must be a sequence of numbers.") from exc

    if array.ndim != 1:
        raise InvalidDescriptorError(f"Descriptor must be one-dimensional, got shape {array.shape}.")
    if array.size == 0:
        raise InvalidDescriptorError("Descriptor must not be empty.")
    if not np.all(np.isfinite(array)):
        raise InvalidDescriptorError("Descriptor contains NaN or infinite values.")

    array.setflags(write=False)
    return array


def euclidean_distance(a: FaceDescriptor, b: FaceDescriptor) -> float:
    """Euclidean distance between two descriptors of equal length."""

    if a.shape != b.shape:
        raise DescriptorDimensionError(expected=a.shape[0], actual=b.shape[0])
    return float(np.linalg.norm(a - b))


def distance_to_confidence(distance: float) -> float:
    """Map a distance to a confidence that falls linearly and floors at zero."""

    return max(0.0, 1.0 - distance)
