"""Canonical smoke-test scenarios, one per policy mode."""

from __future__ import annotations

from fractions import Fraction

from optipod_oracle.constants import MEMORY_DECREASE_WARNING_THRESHOLD, TRUE_STRING
from optipod_oracle.domain.models import (
    PolicyConfig,
    PolicyMode,
    ResourceBounds,
    ResourceRequirements,
    TestScenario,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.generators.base import predict_expectation
from optipod_oracle.generators.policy import PolicyConfigGenerator
from optipod_oracle.generators.workload import BASIC_RESOURCES, WorkloadConfigGenerator

_MODE_LABELS: dict[PolicyMode, dict[str, str]] = {
    PolicyMode.AUTO: {"auto-update": TRUE_STRING},
    PolicyMode.RECOMMEND: {},
    PolicyMode.DISABLED: {"test-disabled": TRUE_STRING},
}


class BasicScenarioGenerator:
    """Seed-independent baseline scenarios."""

    def __init__(self, *, threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD) -> None:
        self._policies = PolicyConfigGenerator()
        self._workloads = WorkloadConfigGenerator()
        self._threshold = threshold

    def policy_mode_pair(self, mode: PolicyMode) -> tuple[PolicyConfig, WorkloadConfig]:
        suffix = mode.value.lower()
        policy = self._policies.basic_policy(f"test-policy-{suffix}", mode)
        workload = self._workloads.workload_with_resources(
            f"test-workload-{suffix}",
            BASIC_RESOURCES,
            labels=_MODE_LABELS[mode],
        )
        return policy, workload

    def generate_for_mode(self, mode: PolicyMode) -> TestScenario:
        policy, workload = self.policy_mode_pair(mode)
        suffix = mode.value.lower()
        return TestScenario(
            name=f"policy-mode-{suffix}",
            description=f"Baseline {mode.value} policy against a basic Deployment",
            policy=policy,
            workload=workload,
            expected=predict_expectation(policy, workload, threshold=self._threshold),
            tags=frozenset({"policy-mode", suffix}),
        )

    def generate_basic(self) -> tuple[TestScenario, ...]:
        return tuple(self.generate_for_mode(mode) for mode in PolicyMode)

    def generate_with_overrides(
        self,
        name: str,
        *,
        mode: PolicyMode = PolicyMode.RECOMMEND,
        kind: WorkloadKind = WorkloadKind.DEPLOYMENT,
        bounds: ResourceBounds | None = None,
        resources: ResourceRequirements | None = None,
    ) -> TestScenario:
        """Baseline scenario with explicit bounds and/or workload resources."""

        policy = self._policies.basic_policy(f"{name}-policy", mode)
        if bounds is not None:
            policy = self._policies.policy_with_bounds(f"{name}-policy", bounds, mode=mode)
        workload = self._workloads.basic_workload(f"{name}-workload", kind)
        if resources is not None:
            workload = self._workloads.workload_with_resources(
                f"{name}-workload", resources, kind=kind
            )
        return TestScenario(
            name=name,
            description=f"{mode.value} policy with explicit overrides against a {kind.value}",
            policy=policy,
            workload=workload,
            expected=predict_expectation(policy, workload, threshold=self._threshold),
            tags=frozenset({"overrides", mode.value.lower()}),
        )


__all__ = ["BasicScenarioGenerator"]
