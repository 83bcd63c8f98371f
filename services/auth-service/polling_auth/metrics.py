"""Prometheus collectors exported on ``/metrics``."""

from __future__ import annotations

from prometheus_client import Counter

AUTH_OUTCOMES = Counter(
    "auth_outcomes_total",
    "Account lifecycle operations by final outcome.",
    ["operation", "outcome"],
)
