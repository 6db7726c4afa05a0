"""Shared generator plumbing: capability protocols, the injected random source, and
expectation prediction from the mode contract.

Generator instances are not safe for concurrent use. Give each worker its own instance,
built from its own ``random.Random`` or seed.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from fractions import Fraction
from typing import Final, Protocol, TypeVar, runtime_checkable

from optipod_oracle.constants import (
    MEMORY_DECREASE_WARNING_ANNOTATION,
    MEMORY_DECREASE_WARNING_THRESHOLD,
    TRUE_STRING,
)
from optipod_oracle.domain.models import (
    PolicyConfig,
    PolicyMode,
    ResourceBounds,
    ResourceRequirements,
    ScenarioExpectation,
    TestScenario,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.verification.memory_safety import predict_memory_decrease
from optipod_oracle.verification.mode_contract import expected_behavior

DEFAULT_SEED: Final[int] = 0

T = TypeVar("T")
TGenerator = TypeVar("TGenerator", bound="RandomizedGenerator")


@runtime_checkable
class SupportsBasic(Protocol):
    def generate_basic(self) -> tuple[TestScenario, ...]: ...


@runtime_checkable
class SupportsOverrides(Protocol):
    def generate_with_overrides(
        self,
        name: str,
        *,
        mode: PolicyMode = ...,
        kind: WorkloadKind = ...,
        bounds: ResourceBounds | None = ...,
        resources: ResourceRequirements | None = ...,
    ) -> TestScenario: ...


@runtime_checkable
class SupportsRandom(Protocol):
    def generate_random(self, count: int) -> tuple[TestScenario, ...]: ...


@runtime_checkable
class SupportsEdgeCases(Protocol):
    def generate_edge_cases(self) -> tuple[TestScenario, ...]: ...


class RandomizedGenerator:
    """Base for generators that own a private pseudo-random source."""

    def __init__(self, *, rng: random.Random | None = None) -> None:
        if rng is not None and not isinstance(rng, random.Random):
            raise TypeError(f"rng must be a random.Random, got {type(rng).__name__}")
        self._rng = rng if rng is not None else random.Random(DEFAULT_SEED)

    @classmethod
    def from_seed(cls: type[TGenerator], seed: int) -> TGenerator:
        return cls(rng=random.Random(seed))

    @property
    def rng(self) -> random.Random:
        return self._rng

    def _pick(self, pool: Sequence[T]) -> T:
        return self._rng.choice(pool)


def child_rng(parent: random.Random) -> random.Random:
    """Independent random source derived from ``parent``."""

    return random.Random(parent.getrandbits(64))


def predict_expectation(
    policy: PolicyConfig,
    workload: WorkloadConfig,
    *,
    should_respect_bounds: bool = True,
    threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD,
) -> ScenarioExpectation:
    """Expectation implied by the policy mode, with the memory-decrease warning when due."""

    behavior = expected_behavior(policy.mode)
    annotations: dict[str, str] = {}
    if behavior.should_recommend and policy.bounds.memory.is_valid:
        currents = [workload.resources.requests.memory]
        currents.extend(container.resources.requests.memory for container in workload.containers)
        if any(
            predict_memory_decrease(policy.bounds.memory, current).exceeds(threshold)
            for current in currents
        ):
            annotations[MEMORY_DECREASE_WARNING_ANNOTATION] = TRUE_STRING
    return ScenarioExpectation(
        should_apply_updates=behavior.should_apply,
        should_generate_recommendations=behavior.should_recommend,
        should_respect_bounds=should_respect_bounds,
        annotations=annotations,
    )


__all__ = [
    "DEFAULT_SEED",
    "RandomizedGenerator",
    "SupportsBasic",
    "SupportsEdgeCases",
    "SupportsOverrides",
    "SupportsRandom",
    "child_rng",
    "predict_expectation",
]
