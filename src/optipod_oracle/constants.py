"""Stable constants shared across the oracle: annotation keys, value pools, thresholds."""

from __future__ import annotations

from fractions import Fraction
from typing import Final

# Schema version for the oracle.toml contract.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Annotation keys written by the reconciler collaborator.
ANNOTATION_PREFIX: Final[str] = "optipod.io/"
MANAGED_ANNOTATION: Final[str] = "optipod.io/managed"
LAST_APPLIED_ANNOTATION: Final[str] = "optipod.io/last-applied"
RECOMMENDATION_TIMESTAMP_ANNOTATION: Final[str] = "optipod.io/recommendation.timestamp"
MEMORY_DECREASE_WARNING_ANNOTATION: Final[str] = "optipod.io/memory-decrease-warning"
DEFAULT_CONTAINER_NAME: Final[str] = "app"

# A clamp that removes more than this share of the current memory request is unsafe.
MEMORY_DECREASE_WARNING_THRESHOLD: Final[Fraction] = Fraction(1, 2)

# Literal label/annotation value used for boolean flags.
TRUE_STRING: Final[str] = "true"
FALSE_STRING: Final[str] = "false"

DEFAULT_WORKLOAD_NAMESPACE: Final[str] = "test-workloads"
DEFAULT_IMAGE: Final[str] = "nginx:1.25-alpine"

# Discrete pools sampled by the randomized generators.
CPU_MIN_POOL: Final[tuple[str, ...]] = ("50m", "100m", "200m", "500m")
CPU_MAX_POOL: Final[tuple[str, ...]] = ("1000m", "2000m", "4000m", "8000m")
MEMORY_MIN_POOL: Final[tuple[str, ...]] = ("64Mi", "128Mi", "256Mi", "512Mi")
MEMORY_MAX_POOL: Final[tuple[str, ...]] = ("1Gi", "2Gi", "4Gi", "8Gi")

CPU_REQUEST_POOL: Final[tuple[str, ...]] = ("100m", "200m", "500m", "1000m")
MEMORY_REQUEST_POOL: Final[tuple[str, ...]] = ("128Mi", "256Mi", "512Mi", "1Gi")
CPU_LIMIT_POOL: Final[tuple[str, ...]] = ("500m", "1000m", "2000m", "4000m")
MEMORY_LIMIT_POOL: Final[tuple[str, ...]] = ("256Mi", "512Mi", "1Gi", "2Gi")
IMAGE_POOL: Final[tuple[str, ...]] = ("nginx:1.25-alpine", "busybox:1.36", "alpine:3.18")

CONTAINER_IMAGE_POOL: Final[tuple[str, ...]] = (
    "nginx:1.25-alpine",
    "busybox:1.36",
    "alpine:3.18",
    "redis:7-alpine",
)
CONTAINER_CPU_REQUEST_POOL: Final[tuple[str, ...]] = ("50m", "100m", "200m", "300m")
CONTAINER_MEMORY_REQUEST_POOL: Final[tuple[str, ...]] = ("64Mi", "128Mi", "256Mi", "384Mi")
CONTAINER_CPU_LIMIT_POOL: Final[tuple[str, ...]] = ("200m", "500m", "1000m", "1500m")
CONTAINER_MEMORY_LIMIT_POOL: Final[tuple[str, ...]] = ("128Mi", "256Mi", "512Mi", "768Mi")

PERCENTILE_POOL: Final[tuple[str, ...]] = ("P50", "P90", "P95", "P99")

__all__ = [
    "ANNOTATION_PREFIX",
    "CONFIG_SCHEMA_VERSION",
    "CONTAINER_CPU_LIMIT_POOL",
    "CONTAINER_CPU_REQUEST_POOL",
    "CONTAINER_IMAGE_POOL",
    "CONTAINER_MEMORY_LIMIT_POOL",
    "CONTAINER_MEMORY_REQUEST_POOL",
    "CPU_LIMIT_POOL",
    "CPU_MAX_POOL",
    "CPU_MIN_POOL",
    "CPU_REQUEST_POOL",
    "DEFAULT_CONTAINER_NAME",
    "DEFAULT_IMAGE",
    "DEFAULT_WORKLOAD_NAMESPACE",
    "FALSE_STRING",
    "IMAGE_POOL",
    "LAST_APPLIED_ANNOTATION",
    "MANAGED_ANNOTATION",
    "MEMORY_DECREASE_WARNING_ANNOTATION",
    "MEMORY_DECREASE_WARNING_THRESHOLD",
    "MEMORY_LIMIT_POOL",
    "MEMORY_MAX_POOL",
    "MEMORY_MIN_POOL",
    "MEMORY_REQUEST_POOL",
    "PERCENTILE_POOL",
    "RECOMMENDATION_TIMESTAMP_ANNOTATION",
    "TRUE_STRING",
]
