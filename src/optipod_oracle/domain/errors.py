"""Typed error taxonomy for the oracle.

Every finding the oracle produces is an instance of one of these classes. Callers and tests
assert on the class or on ``kind``; message text is for humans only.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from optipod_oracle.verification.validation import ValidationReport


class DefectKind(StrEnum):
    """Category of an oracle finding."""

    PARSE = "parse"
    STRUCTURAL = "structural"
    INVALID_BOUND = "invalid-bound"
    CONSISTENCY = "consistency"
    MEMORY_SAFETY = "memory-safety"
    COLLABORATOR = "collaborator"


class ErrorKind(StrEnum):
    """Failure tags a scenario may expect from the reconciler collaborator."""

    VALIDATION = "validation-error"
    INVALID_BOUNDS = "invalid-bounds"
    PERMISSION_DENIED = "permission-denied"
    CONFLICT = "conflict"
    NOT_FOUND = "not-found"
    METRICS_UNAVAILABLE = "metrics-unavailable"
    RECOVERABLE = "recoverable"
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    MISSING_SELECTOR = "missing-selector"
    INVALID_SAFETY_FACTOR = "invalid-safety-factor"
    ZERO_RESOURCE = "zero-resource"
    UNKNOWN = "unknown"


class OracleError(Exception):
    """Base class for all oracle findings and failures."""

    kind: DefectKind = DefectKind.STRUCTURAL

    def __init__(self, message: str, *, path: str = "") -> None:
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "path": self.path, "message": self.message}


class ParseError(OracleError, ValueError):
    """Malformed quantity literal."""

    kind = DefectKind.PARSE

    def __init__(self, text: object, reason: str, *, path: str = "") -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"cannot parse quantity {text!r}: {reason}", path=path)


class StructuralError(OracleError):
    """A configuration field is missing or has an impossible value."""

    kind = DefectKind.STRUCTURAL


class InvalidBoundError(StructuralError):
    """A resource bound has ``min > max``."""

    kind = DefectKind.INVALID_BOUND

    def __init__(self, minimum: object, maximum: object, *, path: str = "") -> None:
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"min ({minimum}) must be less than or equal to max ({maximum})",
            path=path,
        )


class ConsistencyError(OracleError):
    """An expectation disagrees with what the configuration implies."""

    kind = DefectKind.CONSISTENCY

    def __init__(
        self,
        field: str,
        *,
        expected: object,
        observed: object,
        reason: str = "",
        path: str = "",
    ) -> None:
        self.field = field
        self.expected = expected
        self.observed = observed
        detail = f"{field}: expected {expected!r}, observed {observed!r}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail, path=path)

    def to_dict(self) -> dict[str, str]:
        payload = super().to_dict()
        payload["field"] = self.field
        payload["expected"] = repr(self.expected)
        payload["observed"] = repr(self.observed)
        return payload


class MemorySafetyWarning(OracleError):
    """A large memory decrease is predicted without the decrease-warning annotation."""

    kind = DefectKind.MEMORY_SAFETY


class CollaboratorError(OracleError):
    """Failure reported by an external collaborator, tagged with its ``ErrorKind``."""

    kind = DefectKind.COLLABORATOR

    def __init__(self, error_kind: ErrorKind, message: str, *, path: str = "") -> None:
        self.error_kind = error_kind
        super().__init__(message, path=path)


class ScenarioValidationError(OracleError):
    """Aggregate of every defect found in one scenario."""

    kind = DefectKind.STRUCTURAL

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        self.defects: tuple[OracleError, ...] = tuple(report.defects)
        if self.defects:
            rendered = "\n".join(f"- [{item.kind.value}] {item}" for item in self.defects)
        else:
            rendered = "unknown validation failure"
        super().__init__(f"invalid scenario {report.scenario_name!r}:\n{rendered}")


def check_error_kind(error: BaseException | None, expected: ErrorKind) -> ConsistencyError | None:
    """Compare an observed collaborator failure with the expected tag.

    Returns ``None`` when the error matches. ``ErrorKind.UNKNOWN`` accepts any raised error.
    """

    if error is None:
        return ConsistencyError(
            "error_kind",
            expected=expected.value,
            observed=None,
            reason="expected an error but none was raised",
        )
    if expected is ErrorKind.UNKNOWN:
        return None
    observed = error.error_kind if isinstance(error, CollaboratorError) else None
    if observed is expected:
        return None
    return ConsistencyError(
        "error_kind",
        expected=expected.value,
        observed=observed.value if observed is not None else type(error).__name__,
    )


def defect_kinds(errors: Sequence[OracleError]) -> tuple[DefectKind, ...]:
    """Deterministically ordered unique kinds of ``errors``."""

    return tuple(sorted({item.kind for item in errors}, key=lambda kind: kind.value))


__all__ = [
    "CollaboratorError",
    "ConsistencyError",
    "DefectKind",
    "ErrorKind",
    "InvalidBoundError",
    "MemorySafetyWarning",
    "OracleError",
    "ParseError",
    "ScenarioValidationError",
    "StructuralError",
    "check_error_kind",
    "defect_kinds",
]
