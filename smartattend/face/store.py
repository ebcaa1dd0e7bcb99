"""In-memory store of enrolled face descriptors."""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable

import numpy as np

from smartattend.face.descriptor import DescriptorDimensionError, FaceDescriptor, as_descriptor
from smartattend.metrics.prometheus_exporter import enrolled_descriptors

logger = logging.getLogger(__name__)

# ((student_id, (descriptor, ...)), ...) in enrollment order.
Snapshot = tuple[tuple[str, tuple[FaceDescriptor, ...]], ...]


class DescriptorStore:
    """
    Maps student ids to the descriptors captured for them during enrollment.

    Students keep the order in which they were first enrolled and each student's
    samples keep their capture order. Every descriptor shares one dimensionality,
    fixed by the first sample and released again once the store is empty.
    Mutations and snapshots share a lock, so readers never observe a partial write.
    """

    def __init__(self) -> None:
        self._samples: dict[str, list[FaceDescriptor]] = {}
        self._dimension: int | None = None
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int | None:
        """Descriptor length accepted by the store, ``None`` while empty."""

        return self._dimension

    def enroll(self, student_id: str, descriptor: Iterable[float] | np.ndarray) -> int:
        """Append a descriptor for the student and return their sample count."""

        vector = as_descriptor(descriptor)
        with self._lock:
            if self._dimension is not None and vector.shape[0] != self._dimension:
                raise DescriptorDimensionError(expected=self._dimension, actual=vector.shape[0])
            samples = self._samples.setdefault(student_id, [])
            samples.append(vector)
            self._dimension = vector.shape[0]
            count = len(samples)
            enrolled_descriptors.set(self._total_locked())

        logger.info("Enrolled sample %d for student %s (dim=%d)", count, student_id, vector.shape[0])
        return count

    def clear(self, student_id: str) -> bool:
        """Drop every descriptor of the student. Returns False if none were stored."""

        with self._lock:
            removed = self._samples.pop(student_id, None)
            if not self._samples:
                self._dimension = None
            enrolled_descriptors.set(self._total_locked())

        if removed is None:
            return False
        logger.info("Cleared %d samples for student %s", len(removed), student_id)
        return True

    def all_student_ids(self) -> set[str]:
        with self._lock:
            return set(self._samples)

    def total_sample_count(self) -> int:
        with self._lock:
            return self._total_locked()

    def samples_for(self, student_id: str) -> tuple[FaceDescriptor, ...]:
        """Return the student's descriptors in capture order."""

        with self._lock:
            return tuple(self._samples.get(student_id, ()))

    def snapshot(self) -> Snapshot:
        """Consistent, immutable view of the enrollment set."""

        with self._lock:
            return tuple((student_id, tuple(samples)) for student_id, samples in self._samples.items())

    def debug_info(self) -> dict[str, Any]:
        with self._lock:
            return {
                "registered_students": list(self._samples),
                "total_descriptors": self._total_locked(),
                "dimension": self._dimension,
            }

    def _total_locked(self) -> int:
        return sum(len(samples) for samples in self._samples.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def __contains__(self, student_id: object) -> bool:
        with self._lock:
            return student_id in self._samples
