"""
optipod-oracle unit tests for workload generation

File: tests/unit/generators/test_workload_generators.py
Last updated: 2026-10-18

Purpose
- Validate basic, override, random, and multi-container workload producers.
"""

from __future__ import annotations

import pytest

from optipod_oracle.constants import (
    CONTAINER_IMAGE_POOL,
    CPU_REQUEST_POOL,
    IMAGE_POOL,
    MEMORY_REQUEST_POOL,
)
from optipod_oracle.domain.models import ResourceRequirements, WorkloadKind
from optipod_oracle.domain.quantity import format_quantity
from optipod_oracle.generators.workload import (
    BASIC_RESOURCES,
    WorkloadConfigGenerator,
    replicas_for,
)


@pytest.mark.parametrize(
    ("kind", "requested", "expected"),
    [
        (WorkloadKind.DEPLOYMENT, 1, 1),
        (WorkloadKind.DEPLOYMENT, 0, 1),
        (WorkloadKind.STATEFUL_SET, 3, 3),
        (WorkloadKind.DAEMON_SET, 3, 0),
    ],
)
def test_replicas_for_kind(kind: WorkloadKind, requested: int, expected: int) -> None:
    assert replicas_for(kind, requested) == expected


@pytest.mark.parametrize("kind", list(WorkloadKind))
def test_basic_workload_per_kind(kind: WorkloadKind) -> None:
    workload = WorkloadConfigGenerator().basic_workload("basic", kind)

    assert workload.kind is kind
    assert workload.namespace == "test-workloads"
    assert workload.image == "nginx:1.25-alpine"
    assert workload.resources == BASIC_RESOURCES
    assert workload.replicas == (0 if kind is WorkloadKind.DAEMON_SET else 1)
    assert dict(workload.labels) == {"optimize": "true", "app": "basic"}


def test_workload_with_resources_merges_labels() -> None:
    resources = ResourceRequirements.of("0m", "0Mi")

    workload = WorkloadConfigGenerator().workload_with_resources(
        "zero", resources, labels={"edge-case": "zero-resources"}
    )

    assert workload.resources == resources
    assert workload.resources.limits is None
    assert dict(workload.labels) == {
        "optimize": "true",
        "app": "zero",
        "edge-case": "zero-resources",
    }


def test_random_workload_draws_from_pools() -> None:
    generator = WorkloadConfigGenerator.from_seed(11)

    for index in range(20):
        workload = generator.random_workload(f"random-{index}")
        assert workload.image in IMAGE_POOL
        assert format_quantity(workload.resources.requests.cpu) in CPU_REQUEST_POOL
        assert format_quantity(workload.resources.requests.memory) in MEMORY_REQUEST_POOL
        if workload.kind is WorkloadKind.DAEMON_SET:
            assert workload.replicas == 0
        else:
            assert 1 <= workload.replicas <= 3


def test_multi_container_workload() -> None:
    workload = WorkloadConfigGenerator.from_seed(1).multi_container_workload("multi", 3)

    assert [container.name for container in workload.containers] == [
        "multi-container-0",
        "multi-container-1",
        "multi-container-2",
    ]
    assert all(container.image in CONTAINER_IMAGE_POOL for container in workload.containers)
    assert workload.labels["multi-container"] == "true"
    assert workload.labels["container-count"] == "3"
    assert workload.kind is WorkloadKind.DEPLOYMENT


def test_multi_container_workload_rejects_bad_counts() -> None:
    generator = WorkloadConfigGenerator()

    with pytest.raises(ValueError):
        generator.multi_container_workload("none", 0)
    with pytest.raises(TypeError):
        generator.multi_container_workload("flag", True)  # type: ignore[arg-type]
