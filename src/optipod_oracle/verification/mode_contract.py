"""Policy mode contract.

Each policy is pinned to one mode for its lifetime; the table below is the full behaviour
the mode permits. Applying updates always implies recommending.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from optipod_oracle.domain.errors import ConsistencyError
from optipod_oracle.domain.models import PolicyMode, ScenarioExpectation


@dataclass(frozen=True, slots=True)
class ExpectedBehavior:
    should_recommend: bool
    should_apply: bool

    def __post_init__(self) -> None:
        if self.should_apply and not self.should_recommend:
            raise ValueError("ExpectedBehavior: applying updates requires recommending")


_MODE_TABLE: Final = MappingProxyType(
    {
        PolicyMode.AUTO: ExpectedBehavior(should_recommend=True, should_apply=True),
        PolicyMode.RECOMMEND: ExpectedBehavior(should_recommend=True, should_apply=False),
        PolicyMode.DISABLED: ExpectedBehavior(should_recommend=False, should_apply=False),
    }
)


def expected_behavior(mode: PolicyMode | str) -> ExpectedBehavior:
    return _MODE_TABLE[PolicyMode(mode)]


def consistency_errors(
    mode: PolicyMode | str, expectation: ScenarioExpectation, *, path: str = "expected"
) -> tuple[ConsistencyError, ...]:
    """Every expectation field that disagrees with what ``mode`` permits."""

    resolved = PolicyMode(mode)
    behavior = expected_behavior(resolved)
    found: list[ConsistencyError] = []
    if expectation.should_apply_updates != behavior.should_apply:
        found.append(
            ConsistencyError(
                "should_apply_updates",
                expected=behavior.should_apply,
                observed=expectation.should_apply_updates,
                reason=f"{resolved.value} mode",
                path=path,
            )
        )
    if expectation.should_generate_recommendations != behavior.should_recommend:
        found.append(
            ConsistencyError(
                "should_generate_recommendations",
                expected=behavior.should_recommend,
                observed=expectation.should_generate_recommendations,
                reason=f"{resolved.value} mode",
                path=path,
            )
        )
    return tuple(found)


def is_consistent(mode: PolicyMode | str, expectation: ScenarioExpectation) -> bool:
    return not consistency_errors(mode, expectation)


def expectation_for_mode(
    mode: PolicyMode | str,
    *,
    should_respect_bounds: bool = True,
    annotations: dict[str, str] | None = None,
) -> ScenarioExpectation:
    """Build the expectation the mode contract predicts."""

    behavior = expected_behavior(mode)
    return ScenarioExpectation(
        should_apply_updates=behavior.should_apply,
        should_generate_recommendations=behavior.should_recommend,
        should_respect_bounds=should_respect_bounds,
        annotations=annotations or {},
    )


__all__ = [
    "ExpectedBehavior",
    "consistency_errors",
    "expectation_for_mode",
    "expected_behavior",
    "is_consistent",
]
