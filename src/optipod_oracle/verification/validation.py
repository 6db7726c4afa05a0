"""Scenario validation orchestrator.

Every check runs even when an earlier one has failed, so a single report lists all defects
of a scenario. Structural, invalid-bound and consistency findings are defects; memory-safety
findings are warnings and do not make a scenario invalid.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from fractions import Fraction
from typing import Any

from optipod_oracle.constants import MEMORY_DECREASE_WARNING_THRESHOLD
from optipod_oracle.domain.errors import (
    ConsistencyError,
    DefectKind,
    InvalidBoundError,
    MemorySafetyWarning,
    OracleError,
    ScenarioValidationError,
    StructuralError,
    defect_kinds,
)
from optipod_oracle.domain.models import (
    PolicyConfig,
    ResourceBound,
    ScenarioExpectation,
    TestScenario,
    WorkloadConfig,
)
from optipod_oracle.domain.quantity import format_quantity
from optipod_oracle.observability.logging import correlation_scope
from optipod_oracle.verification.annotations import validate_annotation_format
from optipod_oracle.verification.memory_safety import check_memory_safety
from optipod_oracle.verification.mode_contract import consistency_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationOptions:
    memory_decrease_threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD

    def __post_init__(self) -> None:
        threshold = self.memory_decrease_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float, Fraction)):
            raise TypeError("memory_decrease_threshold must be a number")
        if isinstance(threshold, float):
            if not math.isfinite(threshold):
                raise ValueError("memory_decrease_threshold must be finite")
            threshold = Fraction(threshold).limit_denominator(10_000)
        threshold = Fraction(threshold)
        if not 0 < threshold <= 1:
            raise ValueError("memory_decrease_threshold must be in (0, 1]")
        object.__setattr__(self, "memory_decrease_threshold", threshold)


@dataclass(frozen=True, slots=True)
class ValidationReport:
    scenario_name: str
    defects: tuple[OracleError, ...] = ()
    warnings: tuple[MemorySafetyWarning, ...] = ()
    delegated: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.defects

    @property
    def is_clean(self) -> bool:
        return not self.defects and not self.warnings

    @property
    def defect_kinds(self) -> tuple[DefectKind, ...]:
        return defect_kinds(self.defects)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario_name,
            "valid": self.is_valid,
            "delegated": self.delegated,
            "defects": [item.to_dict() for item in self.defects],
            "warnings": [item.to_dict() for item in self.warnings],
        }


class _DefectCollector:
    __slots__ = ("_defects", "_warnings")

    def __init__(self) -> None:
        self._defects: list[OracleError] = []
        self._warnings: list[MemorySafetyWarning] = []

    def add(self, defect: OracleError) -> None:
        if isinstance(defect, MemorySafetyWarning):
            self._warnings.append(defect)
        else:
            self._defects.append(defect)

    def extend(self, defects: Iterable[OracleError]) -> None:
        for defect in defects:
            self.add(defect)

    def report(self, scenario_name: str, *, delegated: bool) -> ValidationReport:
        return ValidationReport(
            scenario_name=scenario_name,
            defects=tuple(self._defects),
            warnings=tuple(self._warnings),
            delegated=delegated,
        )


def _require_text(value: str, path: str, found: _DefectCollector) -> None:
    if not value.strip():
        found.add(StructuralError("must not be empty", path=path))


def _check_bound(bound: ResourceBound[Any], path: str, found: _DefectCollector) -> None:
    if not bound.is_valid:
        found.add(
            InvalidBoundError(format_quantity(bound.min), format_quantity(bound.max), path=path)
        )


def _check_positive_duration(value: timedelta, path: str, found: _DefectCollector) -> None:
    if value <= timedelta(0):
        found.add(StructuralError("must be greater than zero", path=path))


def _check_policy(policy: PolicyConfig, found: _DefectCollector) -> None:
    _require_text(policy.name, "policy.name", found)
    _check_bound(policy.bounds.cpu, "policy.bounds.cpu", found)
    _check_bound(policy.bounds.memory, "policy.bounds.memory", found)
    safety_factor = policy.metrics.safety_factor
    if not math.isfinite(safety_factor) or safety_factor < 1.0:
        found.add(
            StructuralError(
                f"safety factor must be >= 1.0, got {safety_factor}",
                path="policy.metrics.safety_factor",
            )
        )
    _check_positive_duration(policy.metrics.rolling_window, "policy.metrics.rolling_window", found)
    if policy.reconciliation_interval is not None:
        _check_positive_duration(
            policy.reconciliation_interval, "policy.reconciliation_interval", found
        )


def _check_workload(workload: WorkloadConfig, found: _DefectCollector) -> None:
    _require_text(workload.name, "workload.name", found)
    _require_text(workload.namespace, "workload.namespace", found)
    _require_text(workload.image, "workload.image", found)
    if workload.kind.replica_controlled:
        if workload.replicas < 1:
            found.add(
                StructuralError(
                    f"{workload.kind.value} replicas must be >= 1, got {workload.replicas}",
                    path="workload.replicas",
                )
            )
    elif workload.replicas != 0:
        found.add(
            StructuralError(
                f"{workload.kind.value} replicas must be 0, got {workload.replicas}",
                path="workload.replicas",
            )
        )

    seen: set[str] = set()
    for index, container in enumerate(workload.containers):
        path = f"workload.containers[{index}]"
        _require_text(container.name, f"{path}.name", found)
        _require_text(container.image, f"{path}.image", found)
        if container.name in seen:
            found.add(
                StructuralError(f"duplicate container name {container.name!r}", path=f"{path}.name")
            )
        seen.add(container.name)


def _check_expectation(
    policy: PolicyConfig, expected: ScenarioExpectation, found: _DefectCollector
) -> None:
    if expected.should_error and expected.error_kind is None:
        found.add(
            ConsistencyError(
                "error_kind",
                expected="an error kind",
                observed=None,
                reason="should_error requires an error kind",
                path="expected",
            )
        )
    if not expected.should_error and expected.error_kind is not None:
        found.add(
            ConsistencyError(
                "error_kind",
                expected=None,
                observed=expected.error_kind.value,
                reason="error kind set without should_error",
                path="expected",
            )
        )

    # Delegated outcomes are owned by the reconciler contract.
    if not expected.contract_delegated:
        if not expected.should_error:
            found.extend(consistency_errors(policy.mode, expected))
        elif expected.should_apply_updates:
            # A failing reconcile applies nothing; the mode table does not predict the rest.
            found.add(
                ConsistencyError(
                    "should_apply_updates",
                    expected=False,
                    observed=True,
                    reason="an erroring scenario cannot apply updates",
                    path="expected",
                )
            )

    for issue in validate_annotation_format(expected.annotations):
        found.add(issue.to_error())


def _check_memory_safety(
    scenario: TestScenario, options: ValidationOptions, found: _DefectCollector
) -> None:
    expected = scenario.expected
    bound = scenario.policy.bounds.memory
    if not expected.should_generate_recommendations or not bound.is_valid:
        return
    targets = [
        ("workload.resources.requests.memory", scenario.workload.resources.requests.memory)
    ]
    for index, container in enumerate(scenario.workload.containers):
        targets.append(
            (
                f"workload.containers[{index}].resources.requests.memory",
                container.resources.requests.memory,
            )
        )
    for path, current in targets:
        warning = check_memory_safety(
            bound,
            current,
            expected.annotations,
            threshold=options.memory_decrease_threshold,
            path=path,
        )
        if warning is not None:
            found.add(warning)


def validate_scenario(
    scenario: TestScenario, *, options: ValidationOptions | None = None
) -> ValidationReport:
    """Check policy, workload and expectation of ``scenario`` and report every defect."""

    resolved = options or ValidationOptions()
    found = _DefectCollector()
    _require_text(scenario.name, "scenario.name", found)
    _check_policy(scenario.policy, found)
    _check_workload(scenario.workload, found)
    _check_expectation(scenario.policy, scenario.expected, found)
    _check_memory_safety(scenario, resolved, found)
    return found.report(scenario.name, delegated=scenario.expected.contract_delegated)


def assert_valid_scenario(
    scenario: TestScenario, *, options: ValidationOptions | None = None
) -> ValidationReport:
    """Validate ``scenario`` and raise ``ScenarioValidationError`` when it has defects."""

    report = validate_scenario(scenario, options=options)
    if not report.is_valid:
        raise ScenarioValidationError(report)
    return report


class ScenarioValidator:
    """Validates scenarios with fixed options and logs one record per scenario."""

    def __init__(self, options: ValidationOptions | None = None) -> None:
        self.options = options or ValidationOptions()

    def validate(self, scenario: TestScenario) -> ValidationReport:
        with correlation_scope(scenario=scenario.name.strip() or None):
            report = validate_scenario(scenario, options=self.options)
            if report.is_clean:
                logger.debug("scenario valid", extra={"delegated": report.delegated})
            else:
                logger.info(
                    "scenario has findings",
                    extra={
                        "defect_kinds": [kind.value for kind in report.defect_kinds],
                        "defects": len(report.defects),
                        "warnings": len(report.warnings),
                    },
                )
        return report

    def validate_all(self, scenarios: Iterable[TestScenario]) -> tuple[ValidationReport, ...]:
        return tuple(self.validate(scenario) for scenario in scenarios)


__all__ = [
    "ScenarioValidator",
    "ValidationOptions",
    "ValidationReport",
    "assert_valid_scenario",
    "validate_scenario",
]
