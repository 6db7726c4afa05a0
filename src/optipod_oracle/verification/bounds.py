"""Bounds classifier: where a requested amount falls relative to an inclusive range."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from optipod_oracle.domain.errors import InvalidBoundError, OracleError, ParseError, StructuralError
from optipod_oracle.domain.models import (
    BoundsClassification,
    ResourceBound,
    ResourceBounds,
    ResourceList,
)
from optipod_oracle.domain.quantity import (
    CpuQuantity,
    MemoryQuantity,
    Q,
    ResourceDimension,
    format_quantity,
    parse_quantity,
)

logger = logging.getLogger(__name__)


def ensure_valid_bound(bound: ResourceBound[Q], *, path: str = "") -> None:
    if not bound.is_valid:
        raise InvalidBoundError(format_quantity(bound.min), format_quantity(bound.max), path=path)


def _check_operand(bound: ResourceBound[Q], requested: Q) -> None:
    if requested.__class__ is not bound.min.__class__:
        raise TypeError(
            f"cannot classify {type(requested).__name__} against a "
            f"{bound.dimension.value} bound"
        )


def classify(bound: ResourceBound[Q], requested: Q) -> BoundsClassification:
    """Classify ``requested`` against ``bound``. Both edges are inclusive.

    Raises ``InvalidBoundError`` when ``bound.min > bound.max``.
    """

    _check_operand(bound, requested)
    ensure_valid_bound(bound)
    if requested < bound.min:
        return BoundsClassification.CLAMPED_TO_MIN
    if requested > bound.max:
        return BoundsClassification.CLAMPED_TO_MAX
    return BoundsClassification.WITHIN


def clamp_to_bounds(bound: ResourceBound[Q], requested: Q) -> Q:
    """Value a conforming recommender emits for ``requested`` after bound enforcement."""

    classification = classify(bound, requested)
    if classification is BoundsClassification.CLAMPED_TO_MIN:
        return bound.min
    if classification is BoundsClassification.CLAMPED_TO_MAX:
        return bound.max
    return requested


@dataclass(frozen=True, slots=True)
class DimensionVerdicts:
    cpu: BoundsClassification
    memory: BoundsClassification

    def __iter__(self) -> Iterator[tuple[ResourceDimension, BoundsClassification]]:
        yield ResourceDimension.CPU, self.cpu
        yield ResourceDimension.MEMORY, self.memory

    @property
    def uniform(self) -> BoundsClassification | None:
        """The shared verdict when both dimensions agree, else ``None``."""

        return self.cpu if self.cpu is self.memory else None


def classify_requests(bounds: ResourceBounds, requests: ResourceList) -> DimensionVerdicts:
    return DimensionVerdicts(
        cpu=classify(bounds.cpu, requests.cpu),
        memory=classify(bounds.memory, requests.memory),
    )


def clamp_requests(bounds: ResourceBounds, requests: ResourceList) -> ResourceList:
    return ResourceList(
        cpu=clamp_to_bounds(bounds.cpu, requests.cpu),
        memory=clamp_to_bounds(bounds.memory, requests.memory),
    )


def check_bounds_enforcement(
    bound: ResourceBound[Q],
    recommended: Q,
    *,
    expect_clamped: bool = False,
    path: str = "",
) -> tuple[OracleError, ...]:
    """Check a recommender's output against ``bound``.

    The recommendation must lie inside the bound. When clamping is expected it must also sit
    exactly on one of the edges.
    """

    _check_operand(bound, recommended)
    if not bound.is_valid:
        low, high = format_quantity(bound.min), format_quantity(bound.max)
        return (InvalidBoundError(low, high, path=path),)

    found: list[OracleError] = []
    rendered = format_quantity(recommended)
    if recommended < bound.min:
        found.append(
            StructuralError(
                f"recommendation {rendered} is below minimum {format_quantity(bound.min)}",
                path=path,
            )
        )
    elif recommended > bound.max:
        found.append(
            StructuralError(
                f"recommendation {rendered} is above maximum {format_quantity(bound.max)}",
                path=path,
            )
        )
    elif expect_clamped and recommended != bound.min and recommended != bound.max:
        found.append(
            StructuralError(
                f"expected recommendation to be clamped to {format_quantity(bound.min)} "
                f"or {format_quantity(bound.max)}, got {rendered}",
                path=path,
            )
        )
    return tuple(found)


@dataclass(frozen=True, slots=True)
class RoundTripIssue:
    text: str
    formatted: str | None
    error: OracleError | None = None

    def __str__(self) -> str:
        if self.error is not None:
            return f"{self.text!r}: {self.error}"
        return f"{self.text!r}: reformatted as {self.formatted!r} which does not reparse equal"


def verify_quantity_round_trip(
    texts: Iterable[str], dimension: ResourceDimension | str
) -> Sequence[RoundTripIssue]:
    """Parse, format and reparse every literal, collecting each inconsistency."""

    issues: list[RoundTripIssue] = []
    for text in texts:
        try:
            parsed: CpuQuantity | MemoryQuantity = parse_quantity(text, dimension)
        except ParseError as exc:
            issues.append(RoundTripIssue(text=text, formatted=None, error=exc))
            continue
        formatted = format_quantity(parsed)
        try:
            reparsed = parse_quantity(formatted, dimension)
        except ParseError as exc:
            issues.append(RoundTripIssue(text=text, formatted=formatted, error=exc))
            continue
        if reparsed != parsed:
            issues.append(RoundTripIssue(text=text, formatted=formatted))
    if issues:
        logger.debug("quantity round-trip found %d issue(s)", len(issues))
    return tuple(issues)


__all__ = [
    "DimensionVerdicts",
    "RoundTripIssue",
    "check_bounds_enforcement",
    "clamp_requests",
    "clamp_to_bounds",
    "classify",
    "classify_requests",
    "ensure_valid_bound",
    "verify_quantity_round_trip",
]
