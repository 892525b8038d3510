"""
Prometheus metrics for API monitoring and goal engine tracking.

Copyright (C) 2025 Prepdeck
"""

from prometheus_client import REGISTRY, Counter, Histogram

# Request metrics - labeled by method and path
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path"],
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
    registry=REGISTRY,
)

# Goal sync - one increment per goal recomputed, labeled by outcome
GOAL_SYNC_COUNTER = Counter(
    "goal_sync_goals_total",
    "Goals recomputed by course sync, by outcome (updated, unchanged, failed)",
    ["outcome"],
    registry=REGISTRY,
)

GOAL_SYNC_LATENCY = Histogram(
    "goal_sync_duration_seconds",
    "Duration of a course-wide goal sync in seconds",
    registry=REGISTRY,
)
