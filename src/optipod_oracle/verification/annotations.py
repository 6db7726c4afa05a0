"""Shape checks for the annotation bag written by the reconciler.

Only keys under the ``optipod.io/`` prefix are inspected. Every issue is collected, so one
call reports all malformed annotations at once.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from optipod_oracle.constants import (
    ANNOTATION_PREFIX,
    DEFAULT_CONTAINER_NAME,
    FALSE_STRING,
    RECOMMENDATION_TIMESTAMP_ANNOTATION,
    TRUE_STRING,
)
from optipod_oracle.domain.errors import OracleError, ParseError, StructuralError
from optipod_oracle.domain.models import ResourceBounds
from optipod_oracle.domain.quantity import ResourceDimension, parse_cpu, parse_memory
from optipod_oracle.verification.bounds import check_bounds_enforcement

_TIMESTAMP_RE: Final = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z?")


@dataclass(frozen=True, slots=True)
class AnnotationIssue:
    key: str
    value: str
    message: str

    def __str__(self) -> str:
        return f"{self.key}={self.value!r}: {self.message}"

    def to_error(self) -> StructuralError:
        return StructuralError(self.message, path=f"annotations.{self.key}")


def is_valid_timestamp(value: str) -> bool:
    return _TIMESTAMP_RE.fullmatch(value) is not None


def recommendation_key(container: str, dimension: ResourceDimension | str) -> str:
    return f"{ANNOTATION_PREFIX}recommendation.{container}.{ResourceDimension(dimension).value}"


def _recommendation_dimension(key: str) -> ResourceDimension | None:
    if "recommendation" not in key:
        return None
    if key.endswith(".cpu"):
        return ResourceDimension.CPU
    if key.endswith(".memory"):
        return ResourceDimension.MEMORY
    return None


def validate_annotation_format(annotations: Mapping[str, str]) -> tuple[AnnotationIssue, ...]:
    issues: list[AnnotationIssue] = []
    for key in sorted(annotations):
        if not key.startswith(ANNOTATION_PREFIX):
            continue
        value = annotations[key]
        dimension = _recommendation_dimension(key)
        if dimension is not None:
            parser = parse_cpu if dimension is ResourceDimension.CPU else parse_memory
            try:
                parser(value)
            except ParseError as exc:
                message = f"invalid {dimension.value} quantity: {exc.reason}"
                issues.append(AnnotationIssue(key, value, message))
        if ("timestamp" in key or "last-applied" in key) and not is_valid_timestamp(value):
            issues.append(AnnotationIssue(key, value, "invalid timestamp format"))
        if ("managed" in key or "enabled" in key) and value not in (TRUE_STRING, FALSE_STRING):
            message = "boolean annotation must be 'true' or 'false'"
            issues.append(AnnotationIssue(key, value, message))
    return tuple(issues)


def validate_recommendations(
    annotations: Mapping[str, str], *, container: str = DEFAULT_CONTAINER_NAME
) -> tuple[AnnotationIssue, ...]:
    """Require parseable CPU and memory recommendations for ``container``."""

    issues: list[AnnotationIssue] = []
    for dimension, parser in (
        (ResourceDimension.CPU, parse_cpu),
        (ResourceDimension.MEMORY, parse_memory),
    ):
        key = recommendation_key(container, dimension)
        value = annotations.get(key)
        if value is None:
            issues.append(
                AnnotationIssue(key, "", "required recommendation annotation not found")
            )
            continue
        try:
            parser(value)
        except ParseError as exc:
            message = f"invalid {dimension.value} quantity: {exc.reason}"
            issues.append(AnnotationIssue(key, value, message))
    timestamp = annotations.get(RECOMMENDATION_TIMESTAMP_ANNOTATION)
    if timestamp is not None and not is_valid_timestamp(timestamp):
        issues.append(
            AnnotationIssue(
                RECOMMENDATION_TIMESTAMP_ANNOTATION, timestamp, "invalid timestamp format"
            )
        )
    return tuple(issues)


def validate_recommendation_bounds(
    annotations: Mapping[str, str],
    bounds: ResourceBounds,
    *,
    container: str = DEFAULT_CONTAINER_NAME,
) -> tuple[OracleError, ...]:
    """Recommended values must exist, parse, and lie inside ``bounds``."""

    shape_issues = validate_recommendations(annotations, container=container)
    if shape_issues:
        return tuple(issue.to_error() for issue in shape_issues)
    cpu_key = recommendation_key(container, ResourceDimension.CPU)
    memory_key = recommendation_key(container, ResourceDimension.MEMORY)
    return check_bounds_enforcement(
        bounds.cpu, parse_cpu(annotations[cpu_key]), path=f"annotations.{cpu_key}"
    ) + check_bounds_enforcement(
        bounds.memory, parse_memory(annotations[memory_key]), path=f"annotations.{memory_key}"
    )


__all__ = [
    "AnnotationIssue",
    "is_valid_timestamp",
    "recommendation_key",
    "validate_annotation_format",
    "validate_recommendation_bounds",
    "validate_recommendations",
]
