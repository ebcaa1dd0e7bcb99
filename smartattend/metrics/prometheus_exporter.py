"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge


face_match_attempts_total = Counter(
    "face_match_attempts_total",
    "Total number of descriptors submitted for matching.",
)

face_match_success_total = Counter(
    "face_match_success_total",
    "Total number of match attempts that cleared the confidence threshold.",
)

enrolled_descriptors = Gauge(
    "enrolled_descriptors",
    "Number of face descriptors currently held in the descriptor store.",
)
