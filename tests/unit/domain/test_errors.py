"""
optipod-oracle unit tests for the error taxonomy

File: tests/unit/domain/test_errors.py
Last updated: 2026-10-18

Purpose
- Validate error kinds, structured payloads, and collaborator error-kind matching.

What this test file should cover
- Class hierarchy and ``kind`` of every finding type.
- ``check_error_kind`` matching by tag, never by message text.
- Deterministic ordering of defect kinds.
"""

from __future__ import annotations

import pytest

from optipod_oracle.domain.errors import (
    CollaboratorError,
    ConsistencyError,
    DefectKind,
    ErrorKind,
    InvalidBoundError,
    MemorySafetyWarning,
    OracleError,
    ParseError,
    StructuralError,
    check_error_kind,
    defect_kinds,
)


def test_invalid_bound_is_a_structural_error_with_its_own_kind() -> None:
    error = InvalidBoundError("2000m", "1000m", path="policy.bounds.cpu")

    assert isinstance(error, StructuralError)
    assert error.kind is DefectKind.INVALID_BOUND
    assert error.minimum == "2000m"
    assert str(error).startswith("policy.bounds.cpu: ")
    assert error.to_dict() == {
        "kind": "invalid-bound",
        "path": "policy.bounds.cpu",
        "message": "min (2000m) must be less than or equal to max (1000m)",
    }


def test_parse_error_is_value_error_and_keeps_reason() -> None:
    error = ParseError("12x", "unrecognized cpu suffix 'x'")

    assert isinstance(error, ValueError)
    assert isinstance(error, OracleError)
    assert error.reason == "unrecognized cpu suffix 'x'"
    assert error.text == "12x"


def test_consistency_error_payload_names_field_and_values() -> None:
    error = ConsistencyError(
        "should_apply_updates", expected=False, observed=True, reason="Recommend mode"
    )

    payload = error.to_dict()
    assert payload["kind"] == "consistency"
    assert payload["field"] == "should_apply_updates"
    assert payload["expected"] == "False"
    assert payload["observed"] == "True"
    assert "Recommend mode" in payload["message"]


def test_memory_safety_warning_kind() -> None:
    assert MemorySafetyWarning("decrease").kind is DefectKind.MEMORY_SAFETY


def test_recoverable_and_transient_are_distinct_tags() -> None:
    assert ErrorKind.RECOVERABLE is not ErrorKind.TRANSIENT
    assert ErrorKind("recoverable") is ErrorKind.RECOVERABLE
    assert ErrorKind("transient") is ErrorKind.TRANSIENT


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_check_error_kind_matches_collaborator_tag(kind: ErrorKind) -> None:
    error = CollaboratorError(kind, "reconcile failed")

    assert check_error_kind(error, kind) is None


def test_check_error_kind_compares_tags_not_messages() -> None:
    error = CollaboratorError(ErrorKind.CONFLICT, "permission-denied while updating")

    mismatch = check_error_kind(error, ErrorKind.PERMISSION_DENIED)

    assert isinstance(mismatch, ConsistencyError)
    assert mismatch.expected == "permission-denied"
    assert mismatch.observed == "conflict"


def test_check_error_kind_missing_error_is_always_a_mismatch() -> None:
    for kind in (ErrorKind.VALIDATION, ErrorKind.UNKNOWN):
        mismatch = check_error_kind(None, kind)
        assert mismatch is not None
        assert mismatch.observed is None


def test_unknown_accepts_any_raised_error() -> None:
    assert check_error_kind(RuntimeError("boom"), ErrorKind.UNKNOWN) is None
    not_found = CollaboratorError(ErrorKind.NOT_FOUND, "gone")
    assert check_error_kind(not_found, ErrorKind.UNKNOWN) is None


def test_untagged_error_does_not_match_specific_kind() -> None:
    mismatch = check_error_kind(RuntimeError("boom"), ErrorKind.TRANSIENT)

    assert mismatch is not None
    assert mismatch.observed == "RuntimeError"


def test_defect_kinds_are_unique_and_sorted() -> None:
    errors = [
        StructuralError("a"),
        InvalidBoundError("2", "1"),
        StructuralError("b"),
        ConsistencyError("x", expected=1, observed=2),
    ]

    assert defect_kinds(errors) == (
        DefectKind.CONSISTENCY,
        DefectKind.INVALID_BOUND,
        DefectKind.STRUCTURAL,
    )
    assert defect_kinds([]) == ()
