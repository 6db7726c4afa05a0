"""
optipod-oracle property tests for quantities, bounds, and the mode contract

File: tests/unit/verification/test_oracle_properties.py
Last updated: 2026-10-18

Purpose
- Check the algebraic laws the oracle relies on over generated inputs.

What this test file should cover
- Exact parse/format round-trip for both dimensions.
- Classification position is monotone in the requested amount.
- Clamping lands inside the bound and is idempotent.
- Predicted expectations never apply without recommending.

Non-functional requirements
- Deterministic: derandomized with bounded example counts.
"""

from __future__ import annotations

from fractions import Fraction

import pytest

from optipod_oracle.domain.models import (
    BoundsClassification,
    PolicyMode,
    ResourceBound,
    ScenarioExpectation,
)
from optipod_oracle.domain.quantity import (
    CpuQuantity,
    MemoryQuantity,
    format_quantity,
    parse_cpu,
    parse_memory,
)
from optipod_oracle.generators.randomized import RandomizedScenarioGenerator
from optipod_oracle.verification.bounds import clamp_to_bounds, classify
from optipod_oracle.verification.mode_contract import expectation_for_mode, is_consistent
from optipod_oracle.verification.validation import validate_scenario

try:
    from hypothesis import given, settings
    from hypothesis import strategies as st

    HYPOTHESIS_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - fallback path
    HYPOTHESIS_AVAILABLE = False


if HYPOTHESIS_AVAILABLE:
    _millicores = st.builds(
        lambda whole, tenths: Fraction(whole) + Fraction(tenths, 10),
        st.integers(min_value=0, max_value=64_000),
        st.integers(min_value=0, max_value=9),
    )
    _byte_counts = st.one_of(
        st.integers(min_value=0, max_value=2**40),
        st.builds(lambda mib: mib * 1024**2, st.integers(min_value=0, max_value=65_536)),
        st.builds(lambda mega: mega * 1000**2, st.integers(min_value=0, max_value=65_536)),
    )

    @settings(max_examples=25, derandomize=True, deadline=None)
    @given(value=_millicores)
    def test_property_cpu_round_trip_is_exact(value: Fraction) -> None:
        quantity = CpuQuantity(value)
        rendered = format_quantity(quantity)

        assert rendered.endswith("m")
        assert parse_cpu(rendered) == quantity

    @settings(max_examples=25, derandomize=True, deadline=None)
    @given(value=_byte_counts)
    def test_property_memory_round_trip_is_exact(value: int) -> None:
        quantity = MemoryQuantity(value)

        assert parse_memory(format_quantity(quantity)) == quantity

    @settings(max_examples=25, derandomize=True, deadline=None)
    @given(
        edges=st.lists(_millicores, min_size=2, max_size=2).map(sorted),
        amounts=st.lists(_millicores, min_size=2, max_size=2).map(sorted),
    )
    def test_property_classification_is_monotone(
        edges: list[Fraction], amounts: list[Fraction]
    ) -> None:
        bound = ResourceBound(CpuQuantity(edges[0]), CpuQuantity(edges[1]))
        smaller, larger = (CpuQuantity(amount) for amount in amounts)

        assert classify(bound, smaller).position <= classify(bound, larger).position

    @settings(max_examples=25, derandomize=True, deadline=None)
    @given(
        edges=st.lists(_byte_counts, min_size=2, max_size=2).map(sorted),
        requested=_byte_counts,
    )
    def test_property_clamp_is_within_and_idempotent(edges: list[int], requested: int) -> None:
        bound = ResourceBound(MemoryQuantity(edges[0]), MemoryQuantity(edges[1]))

        clamped = clamp_to_bounds(bound, MemoryQuantity(requested))

        assert classify(bound, clamped) is BoundsClassification.WITHIN
        assert clamp_to_bounds(bound, clamped) == clamped

    @settings(max_examples=25, derandomize=True, deadline=None)
    @given(
        mode=st.sampled_from(list(PolicyMode)),
        apply=st.booleans(),
        recommend=st.booleans(),
    )
    def test_property_consistent_expectations_never_apply_without_recommending(
        mode: PolicyMode, apply: bool, recommend: bool
    ) -> None:
        expectation = ScenarioExpectation(
            should_apply_updates=apply, should_generate_recommendations=recommend
        )

        if is_consistent(mode, expectation):
            assert not apply or recommend
            assert expectation == expectation_for_mode(mode, should_respect_bounds=False)

    @settings(max_examples=10, derandomize=True, deadline=None)
    @given(seed=st.integers(min_value=0, max_value=2**32))
    def test_property_random_scenarios_validate(seed: int) -> None:
        generator = RandomizedScenarioGenerator.from_seed(seed)

        for scenario in generator.generate_random(3):
            report = validate_scenario(scenario)
            assert report.is_clean, report.to_dict()
            assert (
                not scenario.expected.should_apply_updates
                or scenario.expected.should_generate_recommendations
            )

else:

    @pytest.mark.skip(reason="hypothesis is not installed")
    def test_property_suite_requires_hypothesis() -> None:
        pass
