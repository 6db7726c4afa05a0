"""
optipod-oracle: domain layer

File: src/optipod_oracle/domain/__init__.py
Last updated: 2026-10-18

Purpose
- Value objects shared by the verification and generation layers: quantities, policy and
  workload configurations, scenarios and the typed error taxonomy.

Non-functional requirements
- Domain layer is pure: no IO and no logging.
"""

from optipod_oracle.domain.errors import (
    CollaboratorError,
    ConsistencyError,
    DefectKind,
    ErrorKind,
    InvalidBoundError,
    MemorySafetyWarning,
    OracleError,
    ParseError,
    ScenarioValidationError,
    StructuralError,
    check_error_kind,
)
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
    UpdateStrategy,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.domain.quantity import (
    CpuQuantity,
    MemoryQuantity,
    ResourceDimension,
    compare,
    cpu,
    format_quantity,
    memory,
    parse_cpu,
    parse_memory,
    parse_quantity,
)

__all__ = [
    "BoundsClassification",
    "CollaboratorError",
    "ConsistencyError",
    "ContainerConfig",
    "CpuQuantity",
    "DefectKind",
    "ErrorKind",
    "InvalidBoundError",
    "MemoryQuantity",
    "MemorySafetyWarning",
    "MetricsConfig",
    "MetricsProvider",
    "OracleError",
    "ParseError",
    "Percentile",
    "PolicyConfig",
    "PolicyMode",
    "ResourceBound",
    "ResourceBounds",
    "ResourceDimension",
    "ResourceList",
    "ResourceRequirements",
    "ScenarioExpectation",
    "ScenarioValidationError",
    "StructuralError",
    "TestScenario",
    "UpdateStrategy",
    "WorkloadConfig",
    "WorkloadKind",
    "check_error_kind",
    "compare",
    "cpu",
    "format_quantity",
    "memory",
    "parse_cpu",
    "parse_memory",
    "parse_quantity",
]
