"""Unit tests for keyframe range validation and repair."""

from collections.abc import Callable

import pytest

from frameshift.models import SourceModule
from frameshift.transforms.keyframes import (
    detect_color_values,
    format_number,
    is_color_value,
    is_valid_range,
    repair_interpolation_source,
    repair_interpolations,
    validate_interpolation_range,
    validate_range_pair,
)


class TestIsValidRange:
    """Tests for strict monotonicity checks."""

    def test_increasing_range_is_valid(self) -> None:
        """Test that a strictly increasing range is valid."""
        assert is_valid_range([0, 30, 60, 90])

    def test_repeated_value_is_invalid(self) -> None:
        """Test that equal neighbours make a range invalid."""
        assert not is_valid_range([0, 30, 30, 60])

    def test_decreasing_value_is_invalid(self) -> None:
        """Test that a drop makes a range invalid."""
        assert not is_valid_range([60, 90, 70])

    def test_empty_and_single_are_valid(self) -> None:
        """Test that trivial ranges are valid."""
        assert is_valid_range([])
        assert is_valid_range([42])


class TestValidateInterpolationRange:
    """Tests for left-to-right range repair."""

    @pytest.mark.parametrize(
        ("domain", "expected"),
        [
            ([60, 90, 70, 90], [60, 90, 91, 92]),
            ([0, 50, 40, 40, 100], [0, 50, 51, 52, 100]),
            ([30, 30, 30, 30], [30, 31, 32, 33]),
            ([], []),
            ([42], [42]),
            ([2, 1], [2, 3]),
        ],
    )
    def test_known_repairs(self, domain: list[int], expected: list[int]) -> None:
        """Test repairs of known broken ranges."""
        assert validate_interpolation_range(domain) == expected

    def test_valid_range_unchanged(self) -> None:
        """Test that a valid range comes back equal."""
        domain = [0, 15.5, 30, 120]

        assert validate_interpolation_range(domain) == domain

    def test_first_element_never_changes(self) -> None:
        """Test that the first element is kept even when large."""
        result = validate_interpolation_range([500, 10, 20])

        assert result[0] == 500
        assert result == [500, 501, 502]

    def test_result_is_always_valid(self) -> None:
        """Test that repaired ranges are strictly increasing."""
        for domain in ([5, 4, 3, 2, 1], [0, 0, 0], [-10, -20, 5, 5], [1.5, 1.5, 0.5]):
            assert is_valid_range(validate_interpolation_range(domain))

    def test_repair_is_idempotent(self) -> None:
        """Test that repairing twice changes nothing more."""
        once = validate_interpolation_range([10, 5, 5, 40, 20])

        assert validate_interpolation_range(once) == once

    def test_input_not_mutated(self) -> None:
        """Test that the caller's list is left alone."""
        domain = [0, 0, 0]
        validate_interpolation_range(domain)

        assert domain == [0, 0, 0]


class TestValidateRangePair:
    """Tests for domain/codomain reconciliation."""

    def test_short_codomain_repeats_last_value(self) -> None:
        """Test that missing outputs repeat the last output."""
        sequence = validate_range_pair([0, 30, 60], [0, 1])

        assert sequence.domain == [0, 30, 60]
        assert sequence.codomain == [0, 1, 1]

    def test_long_codomain_truncated(self) -> None:
        """Test that excess outputs are dropped."""
        sequence = validate_range_pair([0, 30], [0, 1, 2, 3])

        assert sequence.codomain == [0, 1]

    def test_empty_codomain_padded_with_zero(self) -> None:
        """Test that an empty output range is filled with 0."""
        sequence = validate_range_pair([0, 10], [])

        assert sequence.codomain == [0, 0]

    def test_domain_repaired(self) -> None:
        """Test that the domain is repaired alongside."""
        sequence = validate_range_pair([0, 30, 30], ["a", "b", "c"])

        assert sequence.domain == [0, 30, 31]
        assert sequence.codomain == ["a", "b", "c"]

    def test_to_dict(self) -> None:
        """Test serialization of the sequence."""
        sequence = validate_range_pair([0, 1], [0, 1])

        assert sequence.to_dict() == {"domain": [0, 1], "codomain": [0, 1]}


class TestColorDetection:
    """Tests for colour value detection."""

    @pytest.mark.parametrize(
        "value",
        ["#fff", "#ff0000", "#ff000080", "rgb(0, 0, 0)", "rgba(1, 2, 3, 0.5)", "hsl(0, 50%, 50%)",
         "red", "Transparent"],
    )
    def test_colors_detected(self, value: str) -> None:
        """Test that colour strings are recognised."""
        assert is_color_value(value)

    @pytest.mark.parametrize("value", ["10px", "#zzz", "scale(1)", 12, None])
    def test_non_colors_rejected(self, value: object) -> None:
        """Test that other values are not colours."""
        assert not is_color_value(value)

    def test_detect_any_color(self) -> None:
        """Test that one colour in the list is enough."""
        assert detect_color_values([0, "#000"])
        assert not detect_color_values([0, 1])


class TestFormatNumber:
    """Tests for number rendering."""

    def test_integral_float_rendered_as_int(self) -> None:
        """Test that 31.0 renders as 31."""
        assert format_number(31.0) == "31"

    def test_fraction_kept(self) -> None:
        """Test that fractions are kept."""
        assert format_number(0.5) == "0.5"


class TestRepairInterpolations:
    """Tests for source-level interpolate() repair."""

    def test_domain_repaired_in_source(self) -> None:
        """Test that a duplicated breakpoint is bumped in place."""
        text, repairs = repair_interpolation_source(
            "const o = interpolate(frame, [0, 30, 30, 60], [0, 1, 1, 0]);\n"
        )

        assert "[0, 30, 31, 60]" in text
        assert len(repairs) == 1
        assert repairs[0].original_domain == [0, 30, 30, 60]
        assert repairs[0].domain == [0, 30, 31, 60]
        assert repairs[0].line == 1

    def test_valid_call_untouched(self) -> None:
        """Test that valid calls produce no repairs."""
        source = "const o = interpolate(frame, [0, 30], [0, 1]);\n"

        text, repairs = repair_interpolation_source(source)

        assert text == source
        assert repairs == []

    def test_codomain_resized(self) -> None:
        """Test that a short output range is padded."""
        text, repairs = repair_interpolation_source(
            "const o = interpolate(frame, [0, 30, 60], [0, 1]);\n"
        )

        assert "[0, 1, 1]" in text
        assert repairs[0].codomain_resized

    def test_colors_switch_to_interpolate_colors(self) -> None:
        """Test that colour outputs switch the call and the import."""
        text, repairs = repair_interpolation_source(
            "import { interpolate } from 'remotion';\n"
            "const c = interpolate(frame, [0, 60], ['#ff0000', '#0000ff']);\n"
        )

        assert "interpolateColors(frame, [0, 60]" in text
        assert "import { interpolate, interpolateColors } from 'remotion';" in text
        assert repairs[0].switched_to_colors

    def test_non_literal_domain_skipped(self) -> None:
        """Test that computed ranges are left alone."""
        source = "const o = interpolate(frame, range, [0, 1]);\n"

        text, repairs = repair_interpolation_source(source)

        assert text == source
        assert repairs == []

    def test_module_edited_in_place(self, make_module: Callable[[str], SourceModule]) -> None:
        """Test the module-level entry point."""
        module = make_module("const o = interpolate(f, [10, 5], [0, 1]);\n")

        repairs = repair_interpolations(module)

        assert "[10, 11]" in module.text
        assert repairs[0].to_dict()["domain"] == [10, 11]

    def test_nested_calls_both_repaired(self) -> None:
        """Test that an inner call's repair survives the outer call's resize."""
        text, repairs = repair_interpolation_source(
            "const o = interpolate(frame, [0, 10], "
            "[interpolate(frame, [5, 5], [0, 1]), 1, 2]);\n"
        )

        assert text == (
            "const o = interpolate(frame, [0, 10], [interpolate(frame, [5, 6], [0, 1]), 1]);\n"
        )
        assert [r.domain for r in repairs] == [[5, 6], None]
        assert repairs[1].codomain_resized

    def test_every_reported_repair_is_applied(self) -> None:
        """Test that repaired domains appear in the output text."""
        text, repairs = repair_interpolation_source(
            "const o = interpolate(\n"
            "  frame,\n"
            "  [interpolate(frame, [3, 1], [0, 1]), 20, 20],\n"
            "  [0, 1],\n"
            ");\n"
        )

        assert "[3, 4]" in text
        assert "[0, 1, 1]" in text
        assert len(repairs) == 2
