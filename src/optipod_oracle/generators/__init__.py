"""Deterministic and randomized producers of test scenarios."""

from optipod_oracle.generators.base import (
    DEFAULT_SEED,
    RandomizedGenerator,
    SupportsBasic,
    SupportsEdgeCases,
    SupportsOverrides,
    SupportsRandom,
    predict_expectation,
)
from optipod_oracle.generators.basic import BasicScenarioGenerator
from optipod_oracle.generators.bounds import BoundsCase, BoundsScenarioGenerator
from optipod_oracle.generators.comprehensive import (
    BatchSettings,
    ComprehensiveScenarioGenerator,
    ScenarioBatch,
)
from optipod_oracle.generators.edge_cases import EdgeCaseScenarioGenerator
from optipod_oracle.generators.policy import PolicyConfigGenerator
from optipod_oracle.generators.randomized import RandomizedScenarioGenerator
from optipod_oracle.generators.workload import WorkloadConfigGenerator

__all__ = [
    "DEFAULT_SEED",
    "BasicScenarioGenerator",
    "BatchSettings",
    "BoundsCase",
    "BoundsScenarioGenerator",
    "ComprehensiveScenarioGenerator",
    "EdgeCaseScenarioGenerator",
    "PolicyConfigGenerator",
    "RandomizedGenerator",
    "RandomizedScenarioGenerator",
    "ScenarioBatch",
    "SupportsBasic",
    "SupportsEdgeCases",
    "SupportsOverrides",
    "SupportsRandom",
    "WorkloadConfigGenerator",
    "predict_expectation",
]
