"""Bounds-edge scenarios whose classification is known by construction."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from fractions import Fraction
from typing import Final

from optipod_oracle.constants import MEMORY_DECREASE_WARNING_THRESHOLD, TRUE_STRING
from optipod_oracle.domain.models import (
    BoundsClassification,
    PolicyMode,
    ResourceBounds,
    ResourceList,
    ResourceRequirements,
    TestScenario,
)
from optipod_oracle.generators.base import RandomizedGenerator, predict_expectation
from optipod_oracle.generators.policy import PolicyConfigGenerator
from optipod_oracle.generators.workload import WorkloadConfigGenerator
from optipod_oracle.verification.bounds import DimensionVerdicts, classify_requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _CasePool:
    bounds: ResourceBounds
    cpu_requests: tuple[str, ...]
    memory_requests: tuple[str, ...]


# Every request in a pool lands in the pool's classification for both dimensions.
_RANDOM_CASE_POOLS: Final[dict[BoundsClassification, _CasePool]] = {
    BoundsClassification.WITHIN: _CasePool(
        bounds=ResourceBounds.of("200m", "1000m", "256Mi", "1Gi"),
        cpu_requests=("300m", "500m", "800m"),
        memory_requests=("384Mi", "512Mi", "768Mi"),
    ),
    BoundsClassification.CLAMPED_TO_MIN: _CasePool(
        bounds=ResourceBounds.of("500m", "2000m", "512Mi", "2Gi"),
        cpu_requests=("100m", "200m", "300m"),
        memory_requests=("128Mi", "256Mi", "384Mi"),
    ),
    BoundsClassification.CLAMPED_TO_MAX: _CasePool(
        bounds=ResourceBounds.of("100m", "500m", "128Mi", "512Mi"),
        cpu_requests=("1000m", "2000m", "4000m"),
        memory_requests=("1Gi", "2Gi", "4Gi"),
    ),
}

_FIXED_CASES: Final[dict[BoundsClassification, tuple[str, ResourceBounds, ResourceList]]] = {
    BoundsClassification.WITHIN: (
        "within-bounds",
        ResourceBounds.of("200m", "1000m", "256Mi", "1Gi"),
        ResourceList.of("500m", "512Mi"),
    ),
    BoundsClassification.CLAMPED_TO_MIN: (
        "below-min-bounds",
        ResourceBounds.of("500m", "2000m", "512Mi", "2Gi"),
        ResourceList.of("100m", "128Mi"),
    ),
    BoundsClassification.CLAMPED_TO_MAX: (
        "above-max-bounds",
        ResourceBounds.of("100m", "500m", "128Mi", "512Mi"),
        ResourceList.of("2000m", "2Gi"),
    ),
}


@dataclass(frozen=True, slots=True)
class BoundsCase:
    name: str
    bounds: ResourceBounds
    requests: ResourceList
    expected: BoundsClassification

    def verdicts(self) -> DimensionVerdicts:
        return classify_requests(self.bounds, self.requests)


class BoundsScenarioGenerator(RandomizedGenerator):
    """Three fixed cases plus randomized cases drawn target-first from fixed pools."""

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD,
    ) -> None:
        super().__init__(rng=rng)
        self._policies = PolicyConfigGenerator()
        self._workloads = WorkloadConfigGenerator()
        self._threshold = threshold

    def case_for(self, classification: BoundsClassification) -> BoundsCase:
        name, bounds, requests = _FIXED_CASES[BoundsClassification(classification)]
        return BoundsCase(name=name, bounds=bounds, requests=requests, expected=classification)

    def within_case(self) -> BoundsCase:
        return self.case_for(BoundsClassification.WITHIN)

    def below_min_case(self) -> BoundsCase:
        return self.case_for(BoundsClassification.CLAMPED_TO_MIN)

    def above_max_case(self) -> BoundsCase:
        return self.case_for(BoundsClassification.CLAMPED_TO_MAX)

    def random_case(self, name: str) -> BoundsCase:
        target = self._pick(tuple(BoundsClassification))
        pool = _RANDOM_CASE_POOLS[target]
        requests = ResourceList.of(self._pick(pool.cpu_requests), self._pick(pool.memory_requests))
        return BoundsCase(name=name, bounds=pool.bounds, requests=requests, expected=target)

    def random_cases(self, count: int) -> tuple[BoundsCase, ...]:
        if count < 0:
            raise ValueError("count must be >= 0")
        return tuple(self.random_case(f"random-bounds-{index}") for index in range(count))

    def to_scenario(self, case: BoundsCase) -> TestScenario:
        policy = self._policies.policy_with_bounds(
            f"bounds-policy-{case.name}", case.bounds, mode=PolicyMode.RECOMMEND
        )
        workload = self._workloads.workload_with_resources(
            f"bounds-workload-{case.name}",
            ResourceRequirements(requests=case.requests),
            labels={"test-bounds": TRUE_STRING},
        )
        return TestScenario(
            name=case.name,
            description=f"Requests expected to be {case.expected.value} under policy bounds",
            policy=policy,
            workload=workload,
            expected=predict_expectation(policy, workload, threshold=self._threshold),
            tags=frozenset({"bounds", case.expected.value}),
        )

    def generate_basic(self) -> tuple[TestScenario, ...]:
        return tuple(
            self.to_scenario(self.case_for(classification))
            for classification in BoundsClassification
        )

    def generate_random(self, count: int) -> tuple[TestScenario, ...]:
        scenarios = tuple(self.to_scenario(case) for case in self.random_cases(count))
        logger.debug("generated random bounds scenarios", extra={"count": len(scenarios)})
        return scenarios


__all__ = ["BoundsCase", "BoundsScenarioGenerator"]
