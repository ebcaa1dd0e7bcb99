"""Nearest-descriptor classification of captured faces."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import numpy as np

from smartattend.face.descriptor import (
    MatchResult,
    as_descriptor,
    distance_to_confidence,
    euclidean_distance,
)
from smartattend.face.store import DescriptorStore
from smartattend.metrics.prometheus_exporter import face_match_attempts_total, face_match_success_total

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5


class Matcher:
    """Interface for classifying one descriptor against enrolled students."""

    def match(
        self,
        descriptor: Iterable[float] | np.ndarray | None,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> MatchResult | None:
        """Return the best match above ``threshold`` or ``None``."""

        raise NotImplementedError

    def match_all(
        self,
        descriptors: Sequence[Iterable[float] | np.ndarray | None],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> list[MatchResult]:
        """Match every face found in one frame, keeping input order and dropping misses."""

        results: list[MatchResult] = []
        for descriptor in descriptors:
            result = self.match(descriptor, threshold)
            if result is not None:
                results.append(result)
        return results


class EuclideanMatcher(Matcher):
    """
    Compares the query against every enrolled sample by Euclidean distance.

    Confidence is ``max(0, 1 - distance)``. The single highest-confidence pair
    wins; on ties the earliest enrolled student (and sample) is kept. A result is
    returned only when its confidence is strictly above the threshold. Pairs whose
    lengths differ from the query are skipped rather than aborting the scan.
    Thresholds are not range-checked: at 1 or above nothing matches, below 0
    the best comparable pair is always returned.
    """

    def __init__(self, store: DescriptorStore) -> None:
        self._store = store

    def match(
        self,
        descriptor: Iterable[float] | np.ndarray | None,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> MatchResult | None:
        if descriptor is None:
            return None
        if isinstance(descriptor, np.ndarray):
            if descriptor.size == 0:
                return None
        else:
            descriptor = list(descriptor)
            if not descriptor:
                return None

        query = as_descriptor(descriptor)
        face_match_attempts_total.inc()

        snapshot = self._store.snapshot()
        if not snapshot:
            return None

        best_id: str | None = None
        best_confidence = -1.0
        skipped = 0
        for student_id, samples in snapshot:
            for stored in samples:
                if stored.shape != query.shape:
                    skipped += 1
                    continue
                distance = euclidean_distance(query, stored)
                confidence = distance_to_confidence(distance)
                logger.debug(
                    "Student %s: distance=%.3f confidence=%.3f",
                    student_id,
                    distance,
                    confidence,
                )
                if confidence > best_confidence:
                    best_id, best_confidence = student_id, confidence

        if skipped:
            logger.debug("Skipped %d samples with mismatched dimensionality (query dim=%d)", skipped, query.shape[0])

        if best_id is None or best_confidence <= threshold:
            logger.debug("No match above threshold %.2f", threshold)
            return None

        face_match_success_total.inc()
        logger.debug("Best match: %s with confidence %.3f", best_id, best_confidence)
        return MatchResult(student_id=best_id, confidence=best_confidence)
