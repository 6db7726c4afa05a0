"""Memory-decrease safety rule."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from fractions import Fraction

from optipod_oracle.constants import (
    MEMORY_DECREASE_WARNING_ANNOTATION,
    MEMORY_DECREASE_WARNING_THRESHOLD,
    TRUE_STRING,
)
from optipod_oracle.domain.errors import MemorySafetyWarning
from optipod_oracle.domain.models import ResourceBound
from optipod_oracle.domain.quantity import MemoryQuantity, format_quantity
from optipod_oracle.verification.bounds import clamp_to_bounds


@dataclass(frozen=True, slots=True)
class MemoryDecrease:
    current: MemoryQuantity
    predicted: MemoryQuantity

    @property
    def ratio(self) -> Fraction:
        """Share of ``current`` removed by the change; zero for increases or a zero request."""

        if self.current.is_zero or self.predicted >= self.current:
            return Fraction(0)
        return (self.current.value - self.predicted.value) / self.current.value

    def exceeds(self, threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD) -> bool:
        return self.ratio > threshold


def predict_memory_decrease(
    bound: ResourceBound[MemoryQuantity], current: MemoryQuantity
) -> MemoryDecrease:
    return MemoryDecrease(current=current, predicted=clamp_to_bounds(bound, current))


def has_decrease_warning(annotations: Mapping[str, str]) -> bool:
    return annotations.get(MEMORY_DECREASE_WARNING_ANNOTATION) == TRUE_STRING


def check_memory_safety(
    bound: ResourceBound[MemoryQuantity],
    current: MemoryQuantity,
    annotations: Mapping[str, str],
    *,
    threshold: Fraction = MEMORY_DECREASE_WARNING_THRESHOLD,
    path: str = "expected.annotations",
) -> MemorySafetyWarning | None:
    """Flag a clamp that removes more than ``threshold`` of memory without a warning annotation.

    ``bound`` must be valid; inverted bounds are reported by the structural checks.
    """

    decrease = predict_memory_decrease(bound, current)
    if not decrease.exceeds(threshold) or has_decrease_warning(annotations):
        return None
    return MemorySafetyWarning(
        f"memory decrease {format_quantity(decrease.current)} -> "
        f"{format_quantity(decrease.predicted)} ({float(decrease.ratio):.0%}) requires "
        f"{MEMORY_DECREASE_WARNING_ANNOTATION}={TRUE_STRING}",
        path=path,
    )


__all__ = [
    "MemoryDecrease",
    "check_memory_safety",
    "has_decrease_warning",
    "predict_memory_decrease",
]
