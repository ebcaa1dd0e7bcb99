"""Descriptor store, matcher and capture encoders."""

from .descriptor import (
    DescriptorDimensionError,
    FaceDescriptor,
    InvalidDescriptorError,
    MatchResult,
    as_descriptor,
    distance_to_confidence,
    euclidean_distance,
)
from .encode import FaceEncoder, PixelSampleEncoder
from .matcher import DEFAULT_THRESHOLD, EuclideanMatcher, Matcher
from .store import DescriptorStore

__all__ = [
    "DEFAULT_THRESHOLD",
    "DescriptorDimensionError",
    "DescriptorStore",
    "EuclideanMatcher",
    "FaceDescriptor",
    "FaceEncoder",
    "InvalidDescriptorError",
    "MatchResult",
    "Matcher",
    "PixelSampleEncoder",
    "as_descriptor",
    "distance_to_confidence",
    "euclidean_distance",
]
