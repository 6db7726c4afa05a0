"""
optipod-oracle unit tests for scenario model value objects

File: tests/unit/domain/test_scenario_models.py
Last updated: 2026-10-18

Purpose
- Validate construction-time type checks, map freezing, and canonical serialization.

What this test file should cover
- Resource bounds generic over the quantity type.
- Frozen label/selector/annotation maps and tag sets.
- Deliberately invalid scenarios remain constructible.
- Canonical dict/json output.
"""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from optipod_oracle.domain.errors import ErrorKind
from optipod_oracle.domain.models import (
    BoundsClassification,
    ContainerConfig,
    MetricsConfig,
    MetricsProvider,
    Percentile,
    PolicyConfig,
    PolicyMode,
    ResourceBound,
    ResourceBounds,
    ResourceList,
    ResourceRequirements,
    ScenarioExpectation,
    TestScenario,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.domain.quantity import ResourceDimension, parse_cpu, parse_memory


def _scenario(**overrides: object) -> TestScenario:
    values: dict[str, object] = {
        "name": "model-scenario",
        "policy": PolicyConfig(
            name="model-policy",
            mode=PolicyMode.RECOMMEND,
            bounds=ResourceBounds.of("100m", "2000m", "128Mi", "2Gi"),
            namespace_selector={"environment": "test"},
        ),
        "workload": WorkloadConfig(
            name="model-workload",
            namespace="test-workloads",
            kind=WorkloadKind.DEPLOYMENT,
            resources=ResourceRequirements.of("500m", "512Mi", "1000m", "1Gi"),
            replicas=2,
            image="nginx:1.25-alpine",
            labels={"app": "model"},
        ),
        "expected": ScenarioExpectation(
            should_generate_recommendations=True, should_respect_bounds=True
        ),
        "tags": {"model", "unit"},
    }
    values.update(overrides)
    return TestScenario(**values)  # type: ignore[arg-type]


def test_resource_bound_is_generic_over_one_dimension() -> None:
    cpu_bound = ResourceBound.cpu("200m", "1000m")
    memory_bound = ResourceBound.memory("256Mi", "1Gi")

    assert cpu_bound.dimension is ResourceDimension.CPU
    assert memory_bound.dimension is ResourceDimension.MEMORY
    with pytest.raises(TypeError, match="ResourceBound.max"):
        ResourceBound(parse_cpu("1"), parse_memory("1Gi"))  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="ResourceBound.min"):
        ResourceBound("1", "2")  # type: ignore[arg-type]


def test_inverted_bound_is_constructible_but_invalid() -> None:
    inverted = ResourceBound.cpu("2000m", "1000m")
    degenerate = ResourceBound.memory("1Gi", "1Gi")

    assert not inverted.is_valid
    assert degenerate.is_valid


def test_resource_bounds_rejects_swapped_dimensions() -> None:
    with pytest.raises(TypeError):
        ResourceBounds(
            cpu=ResourceBound.memory("1Mi", "2Mi"),  # type: ignore[arg-type]
            memory=ResourceBound.memory("1Mi", "2Mi"),
        )


def test_resource_list_coerces_text_and_allows_zero() -> None:
    listed = ResourceList(cpu="0m", memory="0Mi")  # type: ignore[arg-type]

    assert listed.cpu.is_zero
    assert listed.memory.is_zero
    assert ResourceList.of("1", "1Gi").cpu == parse_cpu("1000m")


def test_requirements_limits_require_both_dimensions() -> None:
    assert ResourceRequirements.of("100m", "128Mi").limits is None
    assert ResourceRequirements.of("100m", "128Mi", "200m", "256Mi").limits == ResourceList.of(
        "200m", "256Mi"
    )


def test_metrics_config_defaults_and_enum_coercion() -> None:
    defaults = MetricsConfig()
    coerced = MetricsConfig(
        provider="prometheus",  # type: ignore[arg-type]
        percentile="P95",  # type: ignore[arg-type]
        safety_factor=2,
    )

    assert defaults.provider is MetricsProvider.METRICS_SERVER
    assert defaults.rolling_window == timedelta(hours=1)
    assert defaults.percentile is Percentile.P90
    assert defaults.safety_factor == pytest.approx(1.2)
    assert coerced.provider is MetricsProvider.PROMETHEUS
    assert coerced.percentile is Percentile.P95
    assert isinstance(coerced.safety_factor, float)
    with pytest.raises(ValueError, match="expected one of"):
        MetricsConfig(percentile="P75")  # type: ignore[arg-type]


def test_maps_are_copied_and_frozen() -> None:
    labels = {"app": "frozen"}
    workload = WorkloadConfig(
        name="frozen",
        namespace="ns",
        kind="StatefulSet",  # type: ignore[arg-type]
        resources=ResourceRequirements.of("100m", "128Mi"),
        replicas=1,
        image="busybox:1.36",
        labels=labels,
    )
    labels["app"] = "mutated"

    assert workload.kind is WorkloadKind.STATEFUL_SET
    assert workload.labels["app"] == "frozen"
    with pytest.raises(TypeError):
        workload.labels["app"] = "again"  # type: ignore[index]


def test_semantically_invalid_values_are_constructible() -> None:
    scenario = _scenario(
        name="",
        workload=WorkloadConfig(
            name="",
            namespace="",
            kind=WorkloadKind.DAEMON_SET,
            resources=ResourceRequirements.of("0m", "0Mi"),
            replicas=3,
            image="",
        ),
    )

    assert scenario.name == ""
    assert scenario.workload.replicas == 3


def test_type_errors_are_raised_at_construction() -> None:
    with pytest.raises(TypeError, match="WorkloadConfig.replicas"):
        WorkloadConfig(
            name="w",
            namespace="ns",
            kind=WorkloadKind.DEPLOYMENT,
            resources=ResourceRequirements.of("100m", "128Mi"),
            replicas="1",  # type: ignore[arg-type]
            image="busybox:1.36",
        )
    with pytest.raises(TypeError, match="ScenarioExpectation.should_error"):
        ScenarioExpectation(should_error=1)  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="TestScenario.tags"):
        _scenario(tags="single")


def test_workload_kind_replica_control_and_classification_positions() -> None:
    assert WorkloadKind.DEPLOYMENT.replica_controlled
    assert WorkloadKind.STATEFUL_SET.replica_controlled
    assert not WorkloadKind.DAEMON_SET.replica_controlled
    assert [item.position for item in BoundsClassification] == [0, 1, 2]
    assert BoundsClassification.WITHIN.position == 1


def test_expectation_error_kind_is_coerced() -> None:
    expectation = ScenarioExpectation(
        should_error=True,
        error_kind="permission-denied",  # type: ignore[arg-type]
    )

    assert expectation.error_kind is ErrorKind.PERMISSION_DENIED


def test_container_config_and_tags() -> None:
    container = ContainerConfig(
        name="sidecar", image="redis:7-alpine", resources=ResourceRequirements.of("50m", "64Mi")
    )
    scenario = _scenario(
        workload=WorkloadConfig(
            name="multi",
            namespace="ns",
            kind=WorkloadKind.DEPLOYMENT,
            resources=ResourceRequirements.of("100m", "128Mi"),
            replicas=1,
            image="nginx:1.25-alpine",
            containers=[container],
        )
    )

    assert scenario.workload.containers == (container,)
    assert scenario.tags == frozenset({"model", "unit"})
    assert scenario.has_any_tag(["unit", "other"])
    assert not scenario.has_any_tag(["other"])


def test_to_dict_is_canonical_and_json_safe() -> None:
    scenario = _scenario()
    payload = scenario.to_dict()

    assert payload["name"] == "model-scenario"
    assert payload["tags"] == ["model", "unit"]
    policy = payload["policy"]
    assert isinstance(policy, dict)
    assert policy["mode"] == "Recommend"
    assert policy["bounds"] == {
        "cpu": {"min": "100m", "max": "2000m"},
        "memory": {"min": "128Mi", "max": "2Gi"},
    }
    metrics = policy["metrics"]
    assert isinstance(metrics, dict)
    assert metrics["rolling_window"] == 3600.0
    assert policy["reconciliation_interval"] is None
    expected = payload["expected"]
    assert isinstance(expected, dict)
    assert expected["error_kind"] is None

    rendered = scenario.to_json()
    assert json.loads(rendered) == payload
    assert rendered == _scenario().to_json()
