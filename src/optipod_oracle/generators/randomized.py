"""Randomized scenarios sampled from fixed discrete pools."""

from __future__ import annotations

import logging
import random
from fractions import Fraction

from optipod_oracle.constants import MEMORY_DECREASE_WARNING_THRESHOLD
from optipod_oracle.domain.models import PolicyMode, TestScenario, WorkloadKind
from optipod_oracle.generators.base import RandomizedGenerator, child_rng, predict_expectation
from optipod_oracle.generators.policy import PolicyConfigGenerator
from optipod_oracle.generators.workload import WorkloadConfigGenerator

logger = logging.getLogger(__name__)


class RandomizedScenarioGenerator(RandomizedGenerator):
    """Samples mode, workload kind and magnitudes; expectations follow the mode contract.

    Sub-generators draw from sources derived from this generator's ``rng``, so one seed
    reproduces the whole sequence.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD,
    ) -> None:
        super().__init__(rng=rng)
        self._policies = PolicyConfigGenerator(rng=child_rng(self._rng))
        self._workloads = WorkloadConfigGenerator(rng=child_rng(self._rng))
        self._threshold = threshold

    def random_scenario(self, name: str) -> TestScenario:
        mode = self._pick(tuple(PolicyMode))
        kind = self._pick(tuple(WorkloadKind))
        policy = self._policies.random_policy(f"{name}-policy", mode=mode)
        workload = self._workloads.random_workload(f"{name}-workload", kind=kind)
        return TestScenario(
            name=name,
            description=f"Random test scenario with {mode.value} mode and {kind.value} workload",
            policy=policy,
            workload=workload,
            expected=predict_expectation(policy, workload, threshold=self._threshold),
            tags=frozenset({"random", "comprehensive"}),
        )

    def generate_random(self, count: int) -> tuple[TestScenario, ...]:
        if count < 0:
            raise ValueError("count must be >= 0")
        scenarios = tuple(
            self.random_scenario(f"random-scenario-{index}") for index in range(count)
        )
        logger.debug("generated random scenarios", extra={"count": len(scenarios)})
        return scenarios

    def multi_container_scenario(self, name: str, container_count: int) -> TestScenario:
        mode = self._pick(tuple(PolicyMode))
        policy = self._policies.random_policy(f"{name}-policy", mode=mode)
        workload = self._workloads.multi_container_workload(f"{name}-workload", container_count)
        return TestScenario(
            name=name,
            description=f"{mode.value} policy against a {container_count}-container Deployment",
            policy=policy,
            workload=workload,
            expected=predict_expectation(policy, workload, threshold=self._threshold),
            tags=frozenset({"random", "multi-container"}),
        )


__all__ = ["RandomizedScenarioGenerator"]
