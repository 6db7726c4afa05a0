"""Workload configuration producers."""

from __future__ import annotations

from optipod_oracle.constants import (
    CONTAINER_CPU_LIMIT_POOL,
    CONTAINER_CPU_REQUEST_POOL,
    CONTAINER_IMAGE_POOL,
    CONTAINER_MEMORY_LIMIT_POOL,
    CONTAINER_MEMORY_REQUEST_POOL,
    CPU_LIMIT_POOL,
    CPU_REQUEST_POOL,
    DEFAULT_IMAGE,
    DEFAULT_WORKLOAD_NAMESPACE,
    IMAGE_POOL,
    MEMORY_LIMIT_POOL,
    MEMORY_REQUEST_POOL,
    TRUE_STRING,
)
from optipod_oracle.domain.models import (
    ContainerConfig,
    ResourceRequirements,
    WorkloadConfig,
    WorkloadKind,
)
from optipod_oracle.generators.base import RandomizedGenerator

BASIC_RESOURCES = ResourceRequirements.of("500m", "512Mi", "1000m", "1Gi")


def replicas_for(kind: WorkloadKind, requested: int = 1) -> int:
    """DaemonSets are not replica-controlled and always carry 0."""

    if not kind.replica_controlled:
        return 0
    return max(requested, 1)


class WorkloadConfigGenerator(RandomizedGenerator):
    """Builds ``WorkloadConfig`` values.

    ``basic_*`` and ``*_with_resources`` are seed-independent.
    """

    def basic_workload(
        self, name: str, kind: WorkloadKind = WorkloadKind.DEPLOYMENT
    ) -> WorkloadConfig:
        return WorkloadConfig(
            name=name,
            namespace=DEFAULT_WORKLOAD_NAMESPACE,
            kind=kind,
            labels={"optimize": TRUE_STRING, "app": name},
            resources=BASIC_RESOURCES,
            replicas=replicas_for(kind),
            image=DEFAULT_IMAGE,
        )

    def workload_with_resources(
        self,
        name: str,
        resources: ResourceRequirements,
        *,
        kind: WorkloadKind = WorkloadKind.DEPLOYMENT,
        labels: dict[str, str] | None = None,
    ) -> WorkloadConfig:
        base = self.basic_workload(name, kind)
        merged_labels = dict(base.labels)
        merged_labels.update(labels or {})
        return WorkloadConfig(
            name=base.name,
            namespace=base.namespace,
            kind=base.kind,
            labels=merged_labels,
            resources=resources,
            replicas=base.replicas,
            image=base.image,
        )

    def random_workload(self, name: str, *, kind: WorkloadKind | None = None) -> WorkloadConfig:
        rng = self._rng
        chosen_kind = kind if kind is not None else self._pick(tuple(WorkloadKind))
        replicas = replicas_for(chosen_kind, 1 + rng.randrange(3))
        return WorkloadConfig(
            name=name,
            namespace=DEFAULT_WORKLOAD_NAMESPACE,
            kind=chosen_kind,
            labels={"optimize": TRUE_STRING, "app": name, "tier": f"tier-{rng.randrange(3)}"},
            resources=ResourceRequirements.of(
                self._pick(CPU_REQUEST_POOL),
                self._pick(MEMORY_REQUEST_POOL),
                self._pick(CPU_LIMIT_POOL),
                self._pick(MEMORY_LIMIT_POOL),
            ),
            replicas=replicas,
            image=self._pick(IMAGE_POOL),
        )

    def multi_container_workload(self, name: str, container_count: int) -> WorkloadConfig:
        if isinstance(container_count, bool) or not isinstance(container_count, int):
            raise TypeError("container_count must be an integer")
        if container_count < 1:
            raise ValueError("container_count must be >= 1")
        base = self.basic_workload(name, WorkloadKind.DEPLOYMENT)
        containers = tuple(
            ContainerConfig(
                name=f"{name}-container-{index}",
                image=self._pick(CONTAINER_IMAGE_POOL),
                resources=ResourceRequirements.of(
                    self._pick(CONTAINER_CPU_REQUEST_POOL),
                    self._pick(CONTAINER_MEMORY_REQUEST_POOL),
                    self._pick(CONTAINER_CPU_LIMIT_POOL),
                    self._pick(CONTAINER_MEMORY_LIMIT_POOL),
                ),
            )
            for index in range(container_count)
        )
        labels = dict(base.labels)
        labels["multi-container"] = TRUE_STRING
        labels["container-count"] = str(container_count)
        return WorkloadConfig(
            name=base.name,
            namespace=base.namespace,
            kind=base.kind,
            labels=labels,
            resources=base.resources,
            replicas=base.replicas,
            image=base.image,
            containers=containers,
        )


__all__ = ["BASIC_RESOURCES", "WorkloadConfigGenerator", "replicas_for"]
