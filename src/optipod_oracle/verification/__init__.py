"""Bounds classification, mode contract, annotation checks and scenario validation."""

from optipod_oracle.verification.annotations import (
    AnnotationIssue,
    validate_annotation_format,
    validate_recommendation_bounds,
    validate_recommendations,
)
from optipod_oracle.verification.bounds import (
    check_bounds_enforcement,
    clamp_to_bounds,
    classify,
    classify_requests,
    ensure_valid_bound,
    verify_quantity_round_trip,
)
from optipod_oracle.verification.memory_safety import check_memory_safety, predict_memory_decrease
from optipod_oracle.verification.mode_contract import (
    ExpectedBehavior,
    consistency_errors,
    expectation_for_mode,
    expected_behavior,
    is_consistent,
)
from optipod_oracle.verification.validation import (
    ScenarioValidator,
    ValidationOptions,
    ValidationReport,
    assert_valid_scenario,
    validate_scenario,
)

__all__ = [
    "AnnotationIssue",
    "ExpectedBehavior",
    "ScenarioValidator",
    "ValidationOptions",
    "ValidationReport",
    "assert_valid_scenario",
    "check_bounds_enforcement",
    "check_memory_safety",
    "clamp_to_bounds",
    "classify",
    "classify_requests",
    "consistency_errors",
    "ensure_valid_bound",
    "expectation_for_mode",
    "expected_behavior",
    "is_consistent",
    "predict_memory_decrease",
    "validate_annotation_format",
    "validate_recommendation_bounds",
    "validate_recommendations",
    "validate_scenario",
    "verify_quantity_round_trip",
]
