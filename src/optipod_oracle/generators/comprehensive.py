"""Comprehensive scenario batches: every generator combined, validated, and filtered."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from optipod_oracle.domain.models import TestScenario
from optipod_oracle.generators.base import DEFAULT_SEED, child_rng
from optipod_oracle.generators.basic import BasicScenarioGenerator
from optipod_oracle.generators.bounds import BoundsScenarioGenerator
from optipod_oracle.generators.edge_cases import EdgeCaseScenarioGenerator
from optipod_oracle.generators.randomized import RandomizedScenarioGenerator
from optipod_oracle.observability.logging import correlation_scope
from optipod_oracle.verification.validation import (
    ScenarioValidator,
    ValidationOptions,
    ValidationReport,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchSettings:
    random_scenario_count: int = 5
    random_bounds_count: int = 3
    multi_container_count: int = 3
    drop_warnings: bool = False

    def __post_init__(self) -> None:
        for name in ("random_scenario_count", "random_bounds_count", "multi_container_count"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"BatchSettings.{name} must be a non-negative integer")


@dataclass(frozen=True, slots=True)
class ScenarioBatch:
    """Scenarios that passed validation, plus the reports of those that were dropped."""

    scenarios: tuple[TestScenario, ...]
    dropped: tuple[ValidationReport, ...] = ()

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)

    def __len__(self) -> int:
        return len(self.scenarios)

    def names(self) -> tuple[str, ...]:
        return tuple(scenario.name for scenario in self.scenarios)

    def filter_by_tags(self, tags: Iterable[str]) -> ScenarioBatch:
        wanted = frozenset(tags)
        return ScenarioBatch(
            scenarios=tuple(item for item in self.scenarios if item.has_any_tag(wanted)),
            dropped=self.dropped,
        )


class ComprehensiveScenarioGenerator:
    """Runs the basic, edge-case, bounds and randomized generators and keeps valid output.

    A scenario with validation defects is dropped and counted. With ``drop_warnings`` a
    scenario that only has memory-safety warnings is dropped too.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        settings: BatchSettings | None = None,
        options: ValidationOptions | None = None,
    ) -> None:
        parent = rng if rng is not None else random.Random(DEFAULT_SEED)
        self.settings = settings or BatchSettings()
        self.validator = ScenarioValidator(options)
        threshold = self.validator.options.memory_decrease_threshold
        self._basic = BasicScenarioGenerator(threshold=threshold)
        self._edge_cases = EdgeCaseScenarioGenerator()
        self._bounds = BoundsScenarioGenerator(rng=child_rng(parent), threshold=threshold)
        self._randomized = RandomizedScenarioGenerator(rng=child_rng(parent), threshold=threshold)

    @classmethod
    def from_seed(cls, seed: int, **kwargs: Any) -> ComprehensiveScenarioGenerator:
        return cls(rng=random.Random(seed), **kwargs)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ComprehensiveScenarioGenerator:
        """Build from a validated config mapping (``generation`` and ``validation`` sections)."""

        generation = config.get("generation", {})
        validation = config.get("validation", {})
        settings = BatchSettings(
            random_scenario_count=generation.get("random_scenario_count", 5),
            random_bounds_count=generation.get("random_bounds_count", 3),
            multi_container_count=generation.get("multi_container_count", 3),
            drop_warnings=validation.get("drop_warnings", False),
        )
        options = ValidationOptions(
            memory_decrease_threshold=validation.get("memory_decrease_threshold", 0.5)
        )
        seed = generation.get("seed", DEFAULT_SEED)
        return cls.from_seed(seed, settings=settings, options=options)

    def candidates(self) -> tuple[TestScenario, ...]:
        """Every generated scenario before validation."""

        settings = self.settings
        produced = (
            self._basic.generate_basic()
            + self._edge_cases.generate_edge_cases()
            + self._bounds.generate_basic()
            + self._bounds.generate_random(settings.random_bounds_count)
            + self._randomized.generate_random(settings.random_scenario_count)
        )
        if settings.multi_container_count > 0:
            produced += (
                self._randomized.multi_container_scenario(
                    "multi-container-scenario", settings.multi_container_count
                ),
            )
        return produced

    def generate_all(self) -> ScenarioBatch:
        kept: list[TestScenario] = []
        dropped: list[ValidationReport] = []
        with correlation_scope(generator="comprehensive"):
            for scenario in self.candidates():
                report = self.validator.validate(scenario)
                if not report.is_valid or (self.settings.drop_warnings and not report.is_clean):
                    dropped.append(report)
                else:
                    kept.append(scenario)
            logger.info(
                "scenario batch generated",
                extra={"kept": len(kept), "dropped": len(dropped)},
            )
        return ScenarioBatch(scenarios=tuple(kept), dropped=tuple(dropped))

    def generate_by_tags(self, tags: Iterable[str]) -> ScenarioBatch:
        return self.generate_all().filter_by_tags(tags)


__all__ = ["BatchSettings", "ComprehensiveScenarioGenerator", "ScenarioBatch"]
