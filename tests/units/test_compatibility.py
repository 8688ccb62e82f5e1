"""Tests for core version constraint checks."""

import pytest

from site_insight.units.compatibility import (
    COMPATIBLE,
    INCOMPATIBLE,
    UNKNOWN,
    check_compatibility,
    parse_constraint,
)


class TestCheckCompatibility:
    @pytest.mark.parametrize(
        "requirement,target,expected",
        [
            ("^9 || ^10", "11", INCOMPATIBLE),
            ("^9 || ^10", "10", COMPATIBLE),
            ("^9 || ^10", "10.3", COMPATIBLE),
            ("^10.3 || ^11", "11", COMPATIBLE),
            ("^11.1", "11", COMPATIBLE),
            ("^11.1", "11.0", INCOMPATIBLE),
            (">=9.3 <11", "11", INCOMPATIBLE),
            (">=9.3 <11", "10.2", COMPATIBLE),
            (">= 10", "11", COMPATIBLE),
            ("~10.1", "10.4", COMPATIBLE),
            ("~10.1", "11", INCOMPATIBLE),
            ("~10.1.2", "10.2", INCOMPATIBLE),
            ("8.x", "10", INCOMPATIBLE),
            ("10.x", "10.3", COMPATIBLE),
            ("^10 | ^11", "11", COMPATIBLE),
        ],
    )
    def test_constraints(self, requirement, target, expected):
        assert check_compatibility(requirement, target) == expected

    @pytest.mark.parametrize("requirement", [None, "", "   ", "whatever", "^ten"])
    def test_missing_or_unparsable_is_unknown(self, requirement):
        assert check_compatibility(requirement, "11") == UNKNOWN

    def test_unparsable_target_is_unknown(self):
        assert check_compatibility("^10", "latest") == UNKNOWN


class TestParseConstraint:
    def test_alternatives_are_half_open_ranges(self):
        assert parse_constraint("^9 || ^10") == [((9, 0, 0), (10, 0, 0)), ((10, 0, 0), (11, 0, 0))]

    def test_conditions_intersect(self):
        assert parse_constraint(">=9.3, <11") == [((9, 3, 0), (11, 0, 0))]
