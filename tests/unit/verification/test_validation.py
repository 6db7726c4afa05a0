"""
optipod-oracle unit tests for the scenario validation orchestrator

File: tests/unit/verification/test_validation.py
Last updated: 2026-10-18

Purpose
- Validate that one report lists every defect and warning of a scenario.

What this test file should cover
- Structural checks on policy, workload, containers, and expectation.
- Invalid bounds, mode consistency, and delegated expectations.
- Memory-safety warnings and configurable threshold.
- Raising entry point and structured logging per scenario.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import timedelta
from fractions import Fraction
from typing import TYPE_CHECKING

import pytest

from optipod_oracle.domain.errors import (
    DefectKind,
    ErrorKind,
    InvalidBoundError,
    ScenarioValidationError,
)
from optipod_oracle.domain.models import (
    ContainerConfig,
    MetricsConfig,
    PolicyConfig,
    PolicyMode,
    ResourceBounds,
    ResourceRequirements,
    ScenarioExpectation,
    TestScenario,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.observability.logging import (
    LoggingConfig,
    setup_structured_logging,
    shutdown_logging,
)
from optipod_oracle.verification.validation import (
    ScenarioValidator,
    ValidationOptions,
    assert_valid_scenario,
    validate_scenario,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()


def _policy(
    mode: PolicyMode = PolicyMode.RECOMMEND,
    bounds: ResourceBounds | None = None,
    **overrides: object,
) -> PolicyConfig:
    policy = PolicyConfig(
        name="validation-policy",
        mode=mode,
        bounds=bounds or ResourceBounds.of("100m", "2000m", "128Mi", "2Gi"),
        namespace_selector={"environment": "test"},
        workload_selector={"optimize": "true"},
    )
    return replace(policy, **overrides)  # type: ignore[arg-type]


def _workload(
    kind: WorkloadKind = WorkloadKind.DEPLOYMENT,
    replicas: int = 1,
    resources: ResourceRequirements | None = None,
    **overrides: object,
) -> WorkloadConfig:
    workload = WorkloadConfig(
        name="validation-workload",
        namespace="test-workloads",
        kind=kind,
        resources=resources or ResourceRequirements.of("500m", "512Mi", "1000m", "1Gi"),
        replicas=replicas,
        image="nginx:1.25-alpine",
    )
    return replace(workload, **overrides)  # type: ignore[arg-type]


def _scenario(
    policy: PolicyConfig | None = None,
    workload: WorkloadConfig | None = None,
    expected: ScenarioExpectation | None = None,
) -> TestScenario:
    return TestScenario(
        name="validation-scenario",
        policy=policy or _policy(),
        workload=workload or _workload(),
        expected=expected
        or ScenarioExpectation(should_generate_recommendations=True, should_respect_bounds=True),
    )


def test_well_formed_scenario_is_clean() -> None:
    report = validate_scenario(_scenario())

    assert report.is_valid
    assert report.is_clean
    assert report.defects == ()
    assert report.warnings == ()
    assert not report.delegated
    assert assert_valid_scenario(_scenario()) == report


def test_inverted_cpu_bound_is_an_invalid_bound_defect() -> None:
    scenario = _scenario(policy=_policy(bounds=ResourceBounds.of("2000m", "1000m", "128Mi", "2Gi")))

    report = validate_scenario(scenario)

    assert not report.is_valid
    assert report.defect_kinds == (DefectKind.INVALID_BOUND,)
    assert isinstance(report.defects[0], InvalidBoundError)
    assert report.defects[0].path == "policy.bounds.cpu"


def test_both_inverted_bounds_are_reported() -> None:
    scenario = _scenario(policy=_policy(bounds=ResourceBounds.of("2", "1", "2Gi", "1Gi")))

    paths = [defect.path for defect in validate_scenario(scenario).defects]

    assert paths == ["policy.bounds.cpu", "policy.bounds.memory"]


@pytest.mark.parametrize(
    ("kind", "replicas", "valid"),
    [
        (WorkloadKind.DAEMON_SET, 0, True),
        (WorkloadKind.DAEMON_SET, 1, False),
        (WorkloadKind.DEPLOYMENT, 0, False),
        (WorkloadKind.DEPLOYMENT, 3, True),
        (WorkloadKind.STATEFUL_SET, 0, False),
        (WorkloadKind.STATEFUL_SET, 1, True),
    ],
)
def test_replica_rule_by_kind(kind: WorkloadKind, replicas: int, valid: bool) -> None:
    report = validate_scenario(_scenario(workload=_workload(kind=kind, replicas=replicas)))

    assert report.is_valid is valid
    if not valid:
        assert [defect.path for defect in report.defects] == ["workload.replicas"]


def test_all_structural_defects_are_collected() -> None:
    policy = _policy(
        name=" ",
        metrics=MetricsConfig(rolling_window=timedelta(0), safety_factor=0.5),
        reconciliation_interval=timedelta(seconds=-1),
    )
    workload = _workload(name="", namespace="", image="")

    report = validate_scenario(_scenario(policy=policy, workload=workload))

    assert report.defect_kinds == (DefectKind.STRUCTURAL,)
    assert [defect.path for defect in report.defects] == [
        "policy.name",
        "policy.metrics.safety_factor",
        "policy.metrics.rolling_window",
        "policy.reconciliation_interval",
        "workload.name",
        "workload.namespace",
        "workload.image",
    ]


def test_container_overrides_must_be_named_and_unique() -> None:
    resources = ResourceRequirements.of("50m", "64Mi")
    workload = _workload(
        containers=(
            ContainerConfig(name="app", image="nginx:1.25-alpine", resources=resources),
            ContainerConfig(name="app", image="", resources=resources),
            ContainerConfig(name="", image="busybox:1.36", resources=resources),
        )
    )

    paths = [defect.path for defect in validate_scenario(_scenario(workload=workload)).defects]

    assert paths == [
        "workload.containers[1].image",
        "workload.containers[1].name",
        "workload.containers[2].name",
    ]


def test_mode_inconsistency_is_a_consistency_defect() -> None:
    expected = ScenarioExpectation(should_apply_updates=True, should_generate_recommendations=True)

    report = validate_scenario(_scenario(expected=expected))

    assert report.defect_kinds == (DefectKind.CONSISTENCY,)
    assert report.defects[0].field == "should_apply_updates"  # type: ignore[attr-defined]


def test_delegated_expectation_skips_mode_check() -> None:
    expected = ScenarioExpectation(
        should_apply_updates=True,
        should_generate_recommendations=True,
        contract_delegated=True,
    )

    scenario = _scenario(policy=_policy(mode=PolicyMode.DISABLED), expected=expected)
    report = validate_scenario(scenario)

    assert report.is_valid
    assert report.delegated


def test_error_expectations_require_an_error_kind() -> None:
    missing_kind = validate_scenario(_scenario(expected=ScenarioExpectation(should_error=True)))
    stray_kind = validate_scenario(
        _scenario(
            expected=ScenarioExpectation(
                should_generate_recommendations=True, error_kind=ErrorKind.CONFLICT
            )
        )
    )
    well_formed = validate_scenario(
        _scenario(expected=ScenarioExpectation(should_error=True, error_kind=ErrorKind.VALIDATION))
    )

    assert [getattr(defect, "field", None) for defect in missing_kind.defects] == ["error_kind"]
    assert [getattr(defect, "field", None) for defect in stray_kind.defects] == ["error_kind"]
    assert well_formed.is_valid


def test_error_expectation_cannot_apply_updates() -> None:
    expected = ScenarioExpectation(
        should_error=True, error_kind=ErrorKind.TRANSIENT, should_apply_updates=True
    )

    scenario = _scenario(policy=_policy(mode=PolicyMode.AUTO), expected=expected)
    report = validate_scenario(scenario)

    fields = [getattr(defect, "field", None) for defect in report.defects]
    assert fields == ["should_apply_updates"]


def test_malformed_expected_annotations_are_structural_defects() -> None:
    expected = ScenarioExpectation(
        should_generate_recommendations=True,
        annotations={"optipod.io/managed": "maybe"},
    )

    report = validate_scenario(_scenario(expected=expected))

    assert report.defect_kinds == (DefectKind.STRUCTURAL,)
    assert report.defects[0].path == "annotations.optipod.io/managed"


def test_memory_decrease_without_annotation_is_a_warning() -> None:
    scenario = _scenario(
        policy=_policy(bounds=ResourceBounds.of("100m", "2000m", "128Mi", "1Gi")),
        workload=_workload(resources=ResourceRequirements.of("500m", "4Gi", "1000m", "8Gi")),
    )

    report = validate_scenario(scenario)

    assert report.is_valid
    assert not report.is_clean
    assert len(report.warnings) == 1
    assert report.warnings[0].path == "workload.resources.requests.memory"


def test_memory_rule_covers_container_requests() -> None:
    workload = _workload(
        containers=(
            ContainerConfig(
                name="cache",
                image="redis:7-alpine",
                resources=ResourceRequirements.of("100m", "8Gi"),
            ),
        )
    )
    scenario = _scenario(
        policy=_policy(bounds=ResourceBounds.of("100m", "2000m", "128Mi", "1Gi")),
        workload=workload,
    )

    warnings = validate_scenario(scenario).warnings

    assert [warning.path for warning in warnings] == [
        "workload.containers[0].resources.requests.memory"
    ]


def test_memory_rule_skipped_when_no_recommendations_expected() -> None:
    scenario = _scenario(
        policy=_policy(
            mode=PolicyMode.DISABLED, bounds=ResourceBounds.of("100m", "2000m", "128Mi", "1Gi")
        ),
        workload=_workload(resources=ResourceRequirements.of("500m", "4Gi")),
        expected=ScenarioExpectation(),
    )

    assert validate_scenario(scenario).is_clean


def test_threshold_option_changes_the_verdict() -> None:
    scenario = _scenario(
        policy=_policy(bounds=ResourceBounds.of("100m", "2000m", "128Mi", "1Gi")),
        workload=_workload(resources=ResourceRequirements.of("500m", "1536Mi")),
    )

    assert validate_scenario(scenario).is_clean
    tight = validate_scenario(scenario, options=ValidationOptions(memory_decrease_threshold=0.25))
    assert len(tight.warnings) == 1


def test_validation_options_normalize_threshold() -> None:
    half = ValidationOptions(memory_decrease_threshold=0.5)
    assert half.memory_decrease_threshold == Fraction(1, 2)
    assert ValidationOptions(memory_decrease_threshold=1).memory_decrease_threshold == 1
    for bad in (0, 1.5, -0.1, float("nan")):
        with pytest.raises(ValueError):
            ValidationOptions(memory_decrease_threshold=bad)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        ValidationOptions(memory_decrease_threshold="0.5")  # type: ignore[arg-type]


def test_assert_valid_scenario_raises_with_full_report() -> None:
    scenario = _scenario(
        policy=_policy(bounds=ResourceBounds.of("2000m", "1000m", "128Mi", "2Gi")),
        workload=_workload(kind=WorkloadKind.DAEMON_SET, replicas=2),
    )

    with pytest.raises(ScenarioValidationError) as exc_info:
        assert_valid_scenario(scenario)

    error = exc_info.value
    assert len(error.defects) == 2
    assert error.report.scenario_name == "validation-scenario"
    assert "[invalid-bound]" in str(error)


def test_report_to_dict_is_json_safe() -> None:
    scenario = _scenario(policy=_policy(bounds=ResourceBounds.of("2000m", "1000m", "128Mi", "2Gi")))

    payload = validate_scenario(scenario).to_dict()

    assert payload["scenario"] == "validation-scenario"
    assert payload["valid"] is False
    assert payload["defects"][0]["kind"] == "invalid-bound"
    assert json.loads(json.dumps(payload)) == payload


def test_validator_logs_findings_with_scenario_correlation(tmp_path: Path) -> None:
    handle = setup_structured_logging(
        LoggingConfig(run_id="run-validation", base_log_dir=tmp_path, level="DEBUG")
    )
    validator = ScenarioValidator()
    broken = _scenario(policy=_policy(bounds=ResourceBounds.of("2000m", "1000m", "128Mi", "2Gi")))

    reports = validator.validate_all([_scenario(), broken])
    shutdown_logging(handle)

    assert [report.is_valid for report in reports] == [True, False]
    records = [
        json.loads(line) for line in handle.log_path.read_text(encoding="utf-8").splitlines()
    ]
    findings = [record for record in records if record["message"] == "scenario has findings"]
    assert len(findings) == 1
    assert findings[0]["scenario"] == "validation-scenario"
    assert findings[0]["run_id"] == "run-validation"
    assert findings[0]["fields"]["defect_kinds"] == ["invalid-bound"]
    assert logging.getLogger("optipod_oracle").handlers == []


@pytest.mark.parametrize("name", ["", "   "])
def test_blank_scenario_name_is_a_structural_defect(name: str) -> None:
    scenario = replace(_scenario(), name=name)

    report = validate_scenario(scenario)
    logged = ScenarioValidator().validate(scenario)

    assert [defect.path for defect in report.defects] == ["scenario.name"]
    assert report.defect_kinds == (DefectKind.STRUCTURAL,)
    assert logged.defect_kinds == (DefectKind.STRUCTURAL,)


def test_validator_logs_blank_named_scenario_without_correlation(tmp_path: Path) -> None:
    handle = setup_structured_logging(
        LoggingConfig(run_id="run-blank-name", base_log_dir=tmp_path)
    )

    report = ScenarioValidator().validate(replace(_scenario(), name=" "))
    shutdown_logging(handle)

    assert not report.is_valid
    (record,) = [
        json.loads(line) for line in handle.log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert record["message"] == "scenario has findings"
    assert "scenario" not in record
