"""Policy configuration producers."""

from __future__ import annotations

from datetime import timedelta

from optipod_oracle.constants import (
    CPU_MAX_POOL,
    CPU_MIN_POOL,
    MEMORY_MAX_POOL,
    MEMORY_MIN_POOL,
    PERCENTILE_POOL,
    TRUE_STRING,
)
from optipod_oracle.domain.models import (
    MetricsConfig,
    MetricsProvider,
    Percentile,
    PolicyConfig,
    PolicyMode,
    ResourceBounds,
    UpdateStrategy,
)
from optipod_oracle.generators.base import RandomizedGenerator

BASIC_BOUNDS = ResourceBounds.of("100m", "2000m", "128Mi", "2Gi")


def basic_selectors() -> tuple[dict[str, str], dict[str, str]]:
    return {"environment": "test"}, {"optimize": TRUE_STRING}


class PolicyConfigGenerator(RandomizedGenerator):
    """Builds ``PolicyConfig`` values. Only ``random_policy`` draws from the random source."""

    def basic_policy(self, name: str, mode: PolicyMode = PolicyMode.RECOMMEND) -> PolicyConfig:
        namespace_selector, workload_selector = basic_selectors()
        return PolicyConfig(
            name=name,
            mode=mode,
            bounds=BASIC_BOUNDS,
            namespace_selector=namespace_selector,
            workload_selector=workload_selector,
            metrics=MetricsConfig(
                provider=MetricsProvider.METRICS_SERVER,
                rolling_window=timedelta(hours=1),
                percentile=Percentile.P90,
                safety_factor=1.2,
            ),
            update_strategy=UpdateStrategy(
                allow_in_place_resize=True,
                allow_recreate=False,
                update_requests_only=True,
            ),
            reconciliation_interval=timedelta(minutes=1),
        )

    def policy_with_bounds(
        self,
        name: str,
        bounds: ResourceBounds,
        *,
        mode: PolicyMode = PolicyMode.RECOMMEND,
    ) -> PolicyConfig:
        base = self.basic_policy(name, mode)
        return PolicyConfig(
            name=base.name,
            mode=base.mode,
            bounds=bounds,
            namespace_selector=base.namespace_selector,
            workload_selector=base.workload_selector,
            metrics=base.metrics,
            update_strategy=base.update_strategy,
            reconciliation_interval=base.reconciliation_interval,
        )

    def random_policy(self, name: str, *, mode: PolicyMode | None = None) -> PolicyConfig:
        """Sample a policy from the fixed pools. Every pooled min is below every pooled max."""

        rng = self._rng
        chosen_mode = mode if mode is not None else self._pick(tuple(PolicyMode))
        return PolicyConfig(
            name=name,
            mode=chosen_mode,
            bounds=ResourceBounds.of(
                self._pick(CPU_MIN_POOL),
                self._pick(CPU_MAX_POOL),
                self._pick(MEMORY_MIN_POOL),
                self._pick(MEMORY_MAX_POOL),
            ),
            namespace_selector={"environment": "test", "team": f"team-{rng.randrange(5)}"},
            workload_selector={"optimize": TRUE_STRING, "tier": f"tier-{rng.randrange(3)}"},
            metrics=MetricsConfig(
                provider=MetricsProvider.METRICS_SERVER,
                rolling_window=timedelta(minutes=30 + rng.randrange(90)),
                percentile=Percentile(self._pick(PERCENTILE_POOL)),
                safety_factor=round(1.1 + rng.random() * 0.4, 3),
            ),
            update_strategy=UpdateStrategy(
                allow_in_place_resize=rng.random() < 0.5,
                allow_recreate=rng.random() < 0.5,
                update_requests_only=rng.random() < 0.5,
            ),
            reconciliation_interval=timedelta(minutes=1 + rng.randrange(5)),
        )


__all__ = ["BASIC_BOUNDS", "PolicyConfigGenerator", "basic_selectors"]
