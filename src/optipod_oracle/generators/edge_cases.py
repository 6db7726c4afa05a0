"""Edge-case scenarios: invalid configuration, zero requests, memory safety, and the
collaborator-owned concurrency and permission cases."""

from __future__ import annotations

from datetime import timedelta

from optipod_oracle.constants import (
    DEFAULT_IMAGE,
    DEFAULT_WORKLOAD_NAMESPACE,
    MEMORY_DECREASE_WARNING_ANNOTATION,
    TRUE_STRING,
)
from optipod_oracle.domain.errors import ErrorKind
from optipod_oracle.domain.models import (
    MetricsConfig,
    PolicyConfig,
    PolicyMode,
    ResourceBounds,
    ResourceRequirements,
    ScenarioExpectation,
    TestScenario,
    UpdateStrategy,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.generators.policy import BASIC_BOUNDS, basic_selectors


def _edge_policy(name: str, bounds: ResourceBounds = BASIC_BOUNDS) -> PolicyConfig:
    namespace_selector, workload_selector = basic_selectors()
    return PolicyConfig(
        name=name,
        mode=PolicyMode.RECOMMEND,
        bounds=bounds,
        namespace_selector=namespace_selector,
        workload_selector=workload_selector,
        metrics=MetricsConfig(rolling_window=timedelta(hours=1), safety_factor=1.2),
        update_strategy=UpdateStrategy(allow_in_place_resize=True, update_requests_only=True),
    )


def _edge_workload(
    name: str,
    resources: ResourceRequirements | None = None,
    labels: dict[str, str] | None = None,
) -> WorkloadConfig:
    return WorkloadConfig(
        name=name,
        namespace=DEFAULT_WORKLOAD_NAMESPACE,
        kind=WorkloadKind.DEPLOYMENT,
        labels=labels if labels is not None else {"optimize": TRUE_STRING, "app": name},
        resources=resources or ResourceRequirements.of("200m", "256Mi", "500m", "512Mi"),
        replicas=1,
        image=DEFAULT_IMAGE,
    )


class EdgeCaseScenarioGenerator:
    """Fixed edge-case scenarios. Output does not depend on any random source."""

    def invalid_configuration_scenarios(self) -> tuple[TestScenario, ...]:
        """An inverted CPU bound. Expected to fail validation with an invalid-bound defect."""

        return (
            TestScenario(
                name="invalid-min-greater-than-max-cpu",
                description="Policy with CPU min greater than max should be rejected",
                policy=PolicyConfig(
                    name="invalid-cpu-bounds",
                    mode=PolicyMode.RECOMMEND,
                    bounds=ResourceBounds.of("2000m", "1000m", "256Mi", "1Gi"),
                ),
                workload=_edge_workload("test-workload-invalid-cpu"),
                expected=ScenarioExpectation(should_error=True, error_kind=ErrorKind.VALIDATION),
                edge_case=True,
                tags=frozenset({"invalid-config", "bounds-validation"}),
            ),
        )

    def zero_resource_scenarios(self) -> tuple[TestScenario, ...]:
        return (
            TestScenario(
                name="workload-with-zero-resources",
                description="Workload with zero resource requests should be handled gracefully",
                policy=_edge_policy("zero-resources-policy"),
                workload=_edge_workload(
                    "zero-resources-workload",
                    ResourceRequirements.of("0m", "0Mi"),
                    labels={"optimize": TRUE_STRING, "edge-case": "zero-resources"},
                ),
                expected=ScenarioExpectation(
                    should_generate_recommendations=True,
                    should_respect_bounds=True,
                ),
                edge_case=True,
                tags=frozenset({"edge-case", "zero-resources"}),
            ),
        )

    def memory_safety_scenarios(self) -> tuple[TestScenario, ...]:
        """A 4Gi request clamped to a 1Gi ceiling, a 75% decrease."""

        return (
            TestScenario(
                name="unsafe-memory-decrease",
                description="Large memory decrease should be flagged as unsafe",
                policy=_edge_policy(
                    "memory-safety-policy", ResourceBounds.of("100m", "2000m", "128Mi", "1Gi")
                ),
                workload=_edge_workload(
                    "high-memory-workload",
                    ResourceRequirements.of("500m", "4Gi", "1000m", "8Gi"),
                    labels={"optimize": TRUE_STRING, "memory-test": "high"},
                ),
                expected=ScenarioExpectation(
                    should_generate_recommendations=True,
                    annotations={MEMORY_DECREASE_WARNING_ANNOTATION: TRUE_STRING},
                ),
                edge_case=True,
                tags=frozenset({"memory-safety", "unsafe-decrease"}),
            ),
        )

    def concurrent_modification_scenarios(self) -> tuple[TestScenario, ...]:
        return (
            TestScenario(
                name="concurrent-policy-updates",
                description=(
                    "Multiple policies targeting the same workload should be handled correctly"
                ),
                policy=_edge_policy("concurrent-policy-1"),
                workload=_edge_workload("concurrent-target-workload"),
                expected=ScenarioExpectation(
                    should_generate_recommendations=True,
                    should_respect_bounds=True,
                    contract_delegated=True,
                ),
                edge_case=True,
                tags=frozenset({"concurrent", "policy-conflicts"}),
            ),
        )

    def rbac_scenarios(self) -> tuple[TestScenario, ...]:
        return (
            TestScenario(
                name="restricted-service-account",
                description="Restricted permissions should surface a permission-denied error",
                policy=_edge_policy("rbac-restricted-policy"),
                workload=_edge_workload("rbac-test-workload"),
                expected=ScenarioExpectation(
                    should_error=True,
                    error_kind=ErrorKind.PERMISSION_DENIED,
                    contract_delegated=True,
                ),
                edge_case=True,
                tags=frozenset({"rbac", "security", "restricted-permissions"}),
            ),
        )

    def generate_edge_cases(self) -> tuple[TestScenario, ...]:
        return (
            self.invalid_configuration_scenarios()
            + self.zero_resource_scenarios()
            + self.memory_safety_scenarios()
            + self.concurrent_modification_scenarios()
            + self.rbac_scenarios()
        )


__all__ = ["EdgeCaseScenarioGenerator"]
