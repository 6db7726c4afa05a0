"""Scenario model value objects with canonical serialization.

Construction only checks types. Semantic defects such as empty names, inverted bounds or a
replica count that does not fit the workload kind are deliberately constructible so that
negative scenarios can be expressed; the validation orchestrator reports them.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, StrEnum
from types import MappingProxyType
from typing import Final, Generic, NoReturn

from optipod_oracle.domain.errors import ErrorKind
from optipod_oracle.domain.quantity import (
    CpuQuantity,
    MemoryQuantity,
    Q,
    ResourceDimension,
    cpu,
    format_quantity,
    memory,
)

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_EMPTY_MAP: Final[Mapping[str, str]] = MappingProxyType({})


class PolicyMode(StrEnum):
    AUTO = "Auto"
    RECOMMEND = "Recommend"
    DISABLED = "Disabled"


class WorkloadKind(StrEnum):
    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    DAEMON_SET = "DaemonSet"

    @property
    def replica_controlled(self) -> bool:
        return self is not WorkloadKind.DAEMON_SET


class BoundsClassification(StrEnum):
    CLAMPED_TO_MIN = "clamped-to-min"
    WITHIN = "within"
    CLAMPED_TO_MAX = "clamped-to-max"

    @property
    def position(self) -> int:
        return _CLASSIFICATION_POSITION[self]


_CLASSIFICATION_POSITION: Final[dict[BoundsClassification, int]] = {
    BoundsClassification.CLAMPED_TO_MIN: 0,
    BoundsClassification.WITHIN: 1,
    BoundsClassification.CLAMPED_TO_MAX: 2,
}


class MetricsProvider(StrEnum):
    PROMETHEUS = "prometheus"
    METRICS_SERVER = "metrics-server"
    CUSTOM = "custom"


class Percentile(StrEnum):
    P50 = "P50"
    P90 = "P90"
    P95 = "P95"
    P99 = "P99"


def _fail(path: str, message: str) -> NoReturn:
    raise TypeError(f"{path}: {message}")


def _as_str(value: object, path: str) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    return value


def _as_bool(value: object, path: str) -> bool:
    if isinstance(value, bool):
        return value
    _fail(path, f"expected boolean, got {type(value).__name__}")


def _as_int(value: object, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(path, f"expected integer, got {type(value).__name__}")
    return value


def _as_enum(enum_type: type[StrEnum], value: object, path: str) -> StrEnum:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        _fail(path, f"expected string enum value, got {type(value).__name__}")
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(item.value for item in enum_type)
        raise ValueError(f"{path}: invalid value {value!r}; expected one of: {allowed}") from None


def _frozen_str_map(value: object, path: str) -> Mapping[str, str]:
    if value is None:
        return _EMPTY_MAP
    if not isinstance(value, Mapping):
        _fail(path, f"expected mapping, got {type(value).__name__}")
    copied: dict[str, str] = {}
    for key, item in value.items():
        copied[_as_str(key, f"{path}.<key>")] = _as_str(item, f"{path}.{key}")
    return MappingProxyType(copied)


def _frozen_tags(value: object, path: str) -> frozenset[str]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        _fail(path, f"expected iterable of strings, got {type(value).__name__}")
    return frozenset(_as_str(item, f"{path}[]") for item in value)


def _serialize(value: object) -> JSONValue:
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, str, float)):
        return value
    if isinstance(value, (CpuQuantity, MemoryQuantity)):
        return format_quantity(value)
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, frozenset):
        return sorted(_serialize(item) for item in value)  # type: ignore[type-var]
    if isinstance(value, (tuple, list)):
        return [_serialize(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _serialize(item) for key, item in sorted(value.items())}
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"value is not serializable ({type(value).__name__})")


class CanonicalModel:
    """Mixin for canonical dict/json serialization of slotted dataclasses."""

    __slots__ = ()

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            name: _serialize(getattr(self, name))
            for name in self.__dataclass_fields__  # type: ignore[attr-defined]
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ResourceBound(CanonicalModel, Generic[Q]):
    """Inclusive ``[min, max]`` range for one resource dimension."""

    min: Q
    max: Q

    def __post_init__(self) -> None:
        if not isinstance(self.min, (CpuQuantity, MemoryQuantity)):
            _fail("ResourceBound.min", f"expected quantity, got {type(self.min).__name__}")
        if self.max.__class__ is not self.min.__class__:
            _fail(
                "ResourceBound.max",
                f"expected {type(self.min).__name__}, got {type(self.max).__name__}",
            )

    @property
    def dimension(self) -> ResourceDimension:
        return self.min.dimension

    @property
    def is_valid(self) -> bool:
        return self.min <= self.max

    @classmethod
    def cpu(
        cls, minimum: str | CpuQuantity, maximum: str | CpuQuantity
    ) -> ResourceBound[CpuQuantity]:
        return ResourceBound(cpu(minimum), cpu(maximum))

    @classmethod
    def memory(
        cls, minimum: str | MemoryQuantity, maximum: str | MemoryQuantity
    ) -> ResourceBound[MemoryQuantity]:
        return ResourceBound(memory(minimum), memory(maximum))


@dataclass(frozen=True, slots=True)
class ResourceBounds(CanonicalModel):
    cpu: ResourceBound[CpuQuantity]
    memory: ResourceBound[MemoryQuantity]

    def __post_init__(self) -> None:
        if (
            not isinstance(self.cpu, ResourceBound)
            or self.cpu.dimension is not ResourceDimension.CPU
        ):
            _fail("ResourceBounds.cpu", "expected a CPU ResourceBound")
        if (
            not isinstance(self.memory, ResourceBound)
            or self.memory.dimension is not ResourceDimension.MEMORY
        ):
            _fail("ResourceBounds.memory", "expected a memory ResourceBound")

    @classmethod
    def of(cls, cpu_min: str, cpu_max: str, memory_min: str, memory_max: str) -> ResourceBounds:
        return cls(
            cpu=ResourceBound.cpu(cpu_min, cpu_max),
            memory=ResourceBound.memory(memory_min, memory_max),
        )


@dataclass(frozen=True, slots=True)
class ResourceList(CanonicalModel):
    """Per-dimension amounts. Zero is a legal value."""

    cpu: CpuQuantity
    memory: MemoryQuantity

    def __post_init__(self) -> None:
        object.__setattr__(self, "cpu", cpu(self.cpu))
        object.__setattr__(self, "memory", memory(self.memory))

    @classmethod
    def of(cls, cpu_text: str, memory_text: str) -> ResourceList:
        return cls(cpu=cpu(cpu_text), memory=memory(memory_text))


@dataclass(frozen=True, slots=True)
class ResourceRequirements(CanonicalModel):
    requests: ResourceList
    limits: ResourceList | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.requests, ResourceList):
            _fail("ResourceRequirements.requests", "expected ResourceList")
        if self.limits is not None and not isinstance(self.limits, ResourceList):
            _fail("ResourceRequirements.limits", "expected ResourceList or None")

    @classmethod
    def of(
        cls,
        cpu_request: str,
        memory_request: str,
        cpu_limit: str | None = None,
        memory_limit: str | None = None,
    ) -> ResourceRequirements:
        limits = None
        if cpu_limit is not None and memory_limit is not None:
            limits = ResourceList.of(cpu_limit, memory_limit)
        return cls(requests=ResourceList.of(cpu_request, memory_request), limits=limits)


@dataclass(frozen=True, slots=True)
class MetricsConfig(CanonicalModel):
    provider: MetricsProvider = MetricsProvider.METRICS_SERVER
    rolling_window: timedelta = timedelta(hours=1)
    percentile: Percentile = Percentile.P90
    safety_factor: float = 1.2

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "provider", _as_enum(MetricsProvider, self.provider, "MetricsConfig.provider")
        )
        object.__setattr__(
            self, "percentile", _as_enum(Percentile, self.percentile, "MetricsConfig.percentile")
        )
        if not isinstance(self.rolling_window, timedelta):
            _fail("MetricsConfig.rolling_window", "expected timedelta")
        if isinstance(self.safety_factor, bool) or not isinstance(self.safety_factor, (int, float)):
            _fail("MetricsConfig.safety_factor", "expected number")
        object.__setattr__(self, "safety_factor", float(self.safety_factor))


@dataclass(frozen=True, slots=True)
class UpdateStrategy(CanonicalModel):
    allow_in_place_resize: bool = True
    allow_recreate: bool = False
    update_requests_only: bool = True

    def __post_init__(self) -> None:
        for name in ("allow_in_place_resize", "allow_recreate", "update_requests_only"):
            _as_bool(getattr(self, name), f"UpdateStrategy.{name}")


@dataclass(frozen=True, slots=True)
class PolicyConfig(CanonicalModel):
    name: str
    mode: PolicyMode
    bounds: ResourceBounds
    namespace_selector: Mapping[str, str] = field(default_factory=dict)
    workload_selector: Mapping[str, str] = field(default_factory=dict)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    update_strategy: UpdateStrategy = field(default_factory=UpdateStrategy)
    reconciliation_interval: timedelta | None = None

    def __post_init__(self) -> None:
        _as_str(self.name, "PolicyConfig.name")
        object.__setattr__(self, "mode", _as_enum(PolicyMode, self.mode, "PolicyConfig.mode"))
        if not isinstance(self.bounds, ResourceBounds):
            _fail("PolicyConfig.bounds", "expected ResourceBounds")
        object.__setattr__(
            self,
            "namespace_selector",
            _frozen_str_map(self.namespace_selector, "PolicyConfig.namespace_selector"),
        )
        object.__setattr__(
            self,
            "workload_selector",
            _frozen_str_map(self.workload_selector, "PolicyConfig.workload_selector"),
        )
        if self.reconciliation_interval is not None and not isinstance(
            self.reconciliation_interval, timedelta
        ):
            _fail("PolicyConfig.reconciliation_interval", "expected timedelta or None")


@dataclass(frozen=True, slots=True)
class ContainerConfig(CanonicalModel):
    """Per-container resource override."""

    name: str
    image: str
    resources: ResourceRequirements

    def __post_init__(self) -> None:
        _as_str(self.name, "ContainerConfig.name")
        _as_str(self.image, "ContainerConfig.image")
        if not isinstance(self.resources, ResourceRequirements):
            _fail("ContainerConfig.resources", "expected ResourceRequirements")


@dataclass(frozen=True, slots=True)
class WorkloadConfig(CanonicalModel):
    name: str
    namespace: str
    kind: WorkloadKind
    resources: ResourceRequirements
    replicas: int
    image: str
    labels: Mapping[str, str] = field(default_factory=dict)
    containers: tuple[ContainerConfig, ...] = ()

    def __post_init__(self) -> None:
        _as_str(self.name, "WorkloadConfig.name")
        _as_str(self.namespace, "WorkloadConfig.namespace")
        _as_str(self.image, "WorkloadConfig.image")
        _as_int(self.replicas, "WorkloadConfig.replicas")
        object.__setattr__(self, "kind", _as_enum(WorkloadKind, self.kind, "WorkloadConfig.kind"))
        if not isinstance(self.resources, ResourceRequirements):
            _fail("WorkloadConfig.resources", "expected ResourceRequirements")
        object.__setattr__(self, "labels", _frozen_str_map(self.labels, "WorkloadConfig.labels"))
        containers = tuple(self.containers)
        for index, container in enumerate(containers):
            if not isinstance(container, ContainerConfig):
                _fail(f"WorkloadConfig.containers[{index}]", "expected ContainerConfig")
        object.__setattr__(self, "containers", containers)


@dataclass(frozen=True, slots=True)
class ScenarioExpectation(CanonicalModel):
    """Behaviour a test must observe.

    ``contract_delegated`` marks expectations whose outcome is defined by the external
    reconciler (concurrent modification, permission denial) rather than computed here.
    """

    should_apply_updates: bool = False
    should_generate_recommendations: bool = False
    should_respect_bounds: bool = False
    should_error: bool = False
    error_kind: ErrorKind | None = None
    annotations: Mapping[str, str] = field(default_factory=dict)
    contract_delegated: bool = False

    def __post_init__(self) -> None:
        for name in (
            "should_apply_updates",
            "should_generate_recommendations",
            "should_respect_bounds",
            "should_error",
            "contract_delegated",
        ):
            _as_bool(getattr(self, name), f"ScenarioExpectation.{name}")
        if self.error_kind is not None:
            object.__setattr__(
                self,
                "error_kind",
                _as_enum(ErrorKind, self.error_kind, "ScenarioExpectation.error_kind"),
            )
        object.__setattr__(
            self,
            "annotations",
            _frozen_str_map(self.annotations, "ScenarioExpectation.annotations"),
        )


@dataclass(frozen=True, slots=True)
class TestScenario(CanonicalModel):
    __test__ = False

    name: str
    policy: PolicyConfig
    workload: WorkloadConfig
    expected: ScenarioExpectation
    description: str = ""
    edge_case: bool = False
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        _as_str(self.name, "TestScenario.name")
        _as_str(self.description, "TestScenario.description")
        _as_bool(self.edge_case, "TestScenario.edge_case")
        if not isinstance(self.policy, PolicyConfig):
            _fail("TestScenario.policy", "expected PolicyConfig")
        if not isinstance(self.workload, WorkloadConfig):
            _fail("TestScenario.workload", "expected WorkloadConfig")
        if not isinstance(self.expected, ScenarioExpectation):
            _fail("TestScenario.expected", "expected ScenarioExpectation")
        object.__setattr__(self, "tags", _frozen_tags(self.tags, "TestScenario.tags"))

    def has_any_tag(self, tags: Iterable[str]) -> bool:
        return not self.tags.isdisjoint(tags)


__all__ = [
    "BoundsClassification",
    "CanonicalModel",
    "ContainerConfig",
    "JSONValue",
    "MetricsConfig",
    "MetricsProvider",
    "Percentile",
    "PolicyConfig",
    "PolicyMode",
    "ResourceBound",
    "ResourceBounds",
    "ResourceList",
    "ResourceRequirements",
    "ScenarioExpectation",
    "TestScenario",
    "UpdateStrategy",
    "WorkloadConfig",
    "WorkloadKind",
]
