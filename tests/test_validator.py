"""White-box tests for the validator.

Each class targets one decision of the validator: committed values,
committed text, step enablement, the repair policy and keystroke
verdicts.
"""
from __future__ import annotations

import pytest

from limits import UNBOUNDED, NumericLimits
from models import OK, DecisionKind, ErrorKind, ValidationResult
from validator import Validator, apply_edit, strip_leading_zeros

CROSSED_MAX = ValidationResult.failure(ErrorKind.CROSSED_MAX)
CROSSED_MIN = ValidationResult.failure(ErrorKind.CROSSED_MIN)
NON_MULTIPLE = ValidationResult.failure(ErrorKind.NON_MULTIPLE)
INCORRECT_SYMBOLS = ValidationResult.failure(ErrorKind.INCORRECT_SYMBOLS)


# ===================================================================
# Construction
# ===================================================================

class TestConstruction:

    @pytest.mark.parametrize("step", [0, -1, float("inf"), float("nan")])
    def test_bad_step_rejected(self, step):
        with pytest.raises(ValueError, match="step"):
            Validator(UNBOUNDED, step)

    def test_precision_follows_step_and_anchor(self):
        assert Validator(UNBOUNDED, 0.05).precision == 2
        assert Validator(NumericLimits(min=0.5), 1).precision == 1


# ===================================================================
# check_value
# ===================================================================

class TestCheckValue:

    def test_ok(self, validator):
        assert validator.check_value(50) == OK

    def test_limits_inclusive(self, validator):
        assert validator.check_value(0) == OK
        assert validator.check_value(200) == OK

    def test_crossed_max(self, validator):
        assert validator.check_value(205) == CROSSED_MAX

    def test_crossed_min(self, validator):
        assert validator.check_value(-10) == CROSSED_MIN

    def test_max_checked_before_multiple(self, validator):
        assert validator.check_value(213) == CROSSED_MAX

    def test_non_multiple(self, validator):
        assert validator.check_value(55) == NON_MULTIPLE

    def test_grid_anchored_at_min(self):
        v = Validator(NumericLimits(min=5, max=100), 10)
        assert v.check_value(15) == OK
        assert v.check_value(20) == NON_MULTIPLE

    def test_unbounded_grid_anchored_at_zero(self):
        v = Validator(UNBOUNDED, 0.5)
        assert v.check_value(-1.5) == OK
        assert v.check_value(1.25) == NON_MULTIPLE

    def test_float_noise_tolerated(self):
        v = Validator(NumericLimits(min=0), 0.1)
        assert v.check_value(0.1 + 0.2) == OK

    def test_half_step_is_off_grid(self):
        v = Validator(NumericLimits(min=0), 0.001)
        assert v.check_value(0.0005) == NON_MULTIPLE


# ===================================================================
# check_text
# ===================================================================

class TestCheckText:

    def test_plain_number(self, validator):
        assert validator.check_text("120") == OK

    def test_grouped_number(self):
        v = Validator(NumericLimits(min=0, max=10_000), 10)
        assert v.check_text("1,250") == OK

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank_counts_as_zero(self, validator, text):
        assert validator.check_text(text) == OK

    def test_blank_can_cross_min(self):
        v = Validator(NumericLimits(min=10, max=20), 1)
        assert v.check_text("") == CROSSED_MIN

    @pytest.mark.parametrize("text", ["abc", "12-3", "1.2.3", "-", "."])
    def test_incorrect_symbols(self, validator, text):
        assert validator.check_text(text) == INCORRECT_SYMBOLS

    def test_delegates_to_check_value(self, validator):
        assert validator.check_text("201") == CROSSED_MAX
        assert validator.check_text("-1") == CROSSED_MIN
        assert validator.check_text("15") == NON_MULTIPLE


# ===================================================================
# Step enablement
# ===================================================================

class TestCanStep:

    def test_room_both_ways(self, validator):
        assert validator.can_step_up(100)
        assert validator.can_step_down(100)

    def test_at_max(self, validator):
        assert not validator.can_step_up(200)
        assert validator.can_step_up(190)

    def test_at_min(self, validator):
        assert not validator.can_step_down(0)
        assert validator.can_step_down(10)

    def test_unbounded_always_steps(self):
        v = Validator(UNBOUNDED, 1)
        assert v.can_step_up(1e12)
        assert v.can_step_down(-1e12)

    def test_decimal_step_reaches_max(self):
        v = Validator(NumericLimits(0, 0.3), 0.1)
        assert v.can_step_up(0.2)          # 0.2 + 0.1 == 0.30000000000000004
        assert not v.can_step_up(0.3)

    def test_decimal_step_reaches_min(self):
        v = Validator(NumericLimits(0.2, 1), 0.1)
        assert v.can_step_down(0.3)        # 0.3 - 0.1 == 0.19999999999999998
        assert not v.can_step_down(0.2)


class TestLargeValues:

    def test_grid_check_past_float_range(self):
        v = Validator(UNBOUNDED, 0.01)
        assert v.check_value(1e308) == OK

    def test_snap_past_float_range_keeps_value(self):
        v = Validator(UNBOUNDED, 0.01)
        assert v.correct_value(1e308, ErrorKind.NON_MULTIPLE) == 1e308

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_is_incorrect(self, value):
        assert Validator(UNBOUNDED, 1).check_value(value) == INCORRECT_SYMBOLS

    def test_storage_digits_follow_tiny_step(self):
        v = Validator(UNBOUNDED, 1e-5)
        assert v.storage_digits == 5
        assert v.round_value(2e-5) == 2e-5


# ===================================================================
# correct_value
# ===================================================================

class TestCorrectValue:

    def test_crossed_max_returns_max(self, validator):
        assert validator.correct_value(205, ErrorKind.CROSSED_MAX) == 200

    def test_crossed_min_returns_min(self, validator):
        assert validator.correct_value(-5, ErrorKind.CROSSED_MIN) == 0

    def test_non_multiple_snaps_down(self, validator):
        assert validator.correct_value(57, ErrorKind.NON_MULTIPLE) == 50

    def test_non_multiple_snaps_down_for_negatives(self):
        v = Validator(UNBOUNDED, 10)
        assert v.correct_value(-57, ErrorKind.NON_MULTIPLE) == -60

    def test_snap_relative_to_min(self):
        v = Validator(NumericLimits(min=5, max=100), 10)
        assert v.correct_value(27, ErrorKind.NON_MULTIPLE) == 25

    def test_snap_small_step(self):
        v = Validator(NumericLimits(min=0), 0.001)
        assert v.correct_value(0.0005, ErrorKind.NON_MULTIPLE) == 0.0

    def test_snap_keeps_value_within_noise(self):
        v = Validator(NumericLimits(min=0), 0.1)
        assert v.correct_value(0.30000000000000004, ErrorKind.NON_MULTIPLE) == 0.3

    def test_incorrect_symbols_returns_min(self):
        v = Validator(NumericLimits(min=7, max=100), 1)
        assert v.correct_value(999, ErrorKind.INCORRECT_SYMBOLS) == 7

    def test_incorrect_symbols_without_min_returns_zero(self):
        assert Validator(UNBOUNDED, 1).correct_value(3, ErrorKind.INCORRECT_SYMBOLS) == 0

    def test_crossed_max_without_max_is_a_caller_error(self):
        with pytest.raises(ValueError, match="max"):
            Validator(UNBOUNDED, 1).correct_value(5, ErrorKind.CROSSED_MAX)

    def test_crossed_min_without_min_is_a_caller_error(self):
        with pytest.raises(ValueError, match="min"):
            Validator(UNBOUNDED, 1).correct_value(5, ErrorKind.CROSSED_MIN)

    @pytest.mark.parametrize(
        "value, error",
        [
            (205, ErrorKind.CROSSED_MAX),
            (-5, ErrorKind.CROSSED_MIN),
            (57, ErrorKind.NON_MULTIPLE),
            (57, ErrorKind.INCORRECT_SYMBOLS),
        ],
    )
    def test_correction_is_valid(self, validator, value, error):
        assert validator.check_value(validator.correct_value(value, error)) == OK


# ===================================================================
# should_accept_edit
# ===================================================================

class TestShouldAcceptEdit:

    def _decide(self, validator, text, start, stop, inserted):
        return validator.should_accept_edit(text, range(start, stop), inserted)

    def test_append_digit(self, validator):
        d = self._decide(validator, "12", 2, 2, "0")
        assert d.kind is DecisionKind.ALLOW

    def test_invalid_shape_denied(self, validator):
        d = self._decide(validator, "12", 2, 2, "-3")
        assert d.kind is DecisionKind.DENY
        assert d.error is ErrorKind.INCORRECT_SYMBOLS

    def test_letters_denied(self, validator):
        d = self._decide(validator, "1", 1, 1, "a")
        assert d.error is ErrorKind.INCORRECT_SYMBOLS

    def test_second_point_denied(self, validator):
        d = self._decide(validator, "1.5", 3, 3, ".")
        assert d.error is ErrorKind.INCORRECT_SYMBOLS

    def test_grouping_separator_denied(self, validator):
        d = self._decide(validator, "1", 1, 1, ",000")
        assert d.error is ErrorKind.INCORRECT_SYMBOLS

    def test_above_max_denied(self, validator):
        d = self._decide(validator, "20", 2, 2, "1")
        assert d.kind is DecisionKind.DENY
        assert d.error is ErrorKind.CROSSED_MAX

    def test_below_min_allowed(self):
        v = Validator(NumericLimits(min=10, max=200), 10)
        assert self._decide(v, "", 0, 0, "1").allowed

    def test_off_grid_allowed(self, validator):
        assert self._decide(validator, "1", 1, 1, "5").allowed

    @pytest.mark.parametrize("text", ["-", ".", "-.", "12."])
    def test_intermediate_states_allowed(self, validator, text):
        assert self._decide(validator, "", 0, 0, text).allowed

    def test_deleting_everything_allowed(self, validator):
        assert self._decide(validator, "120", 0, 3, "").allowed

    def test_replace_middle(self, validator):
        assert self._decide(validator, "150", 1, 2, "9").allowed   # "190"

    def test_replace_leading_digit_over_max(self, validator):
        d = self._decide(validator, "150", 0, 1, "9")              # "950"
        assert d.error is ErrorKind.CROSSED_MAX

    def test_leading_zeros_substituted(self, validator):
        d = self._decide(validator, "0", 1, 1, "7")
        assert d.kind is DecisionKind.SUBSTITUTE
        assert d.replacement == "7"

    def test_negative_leading_zeros_substituted(self):
        d = Validator(UNBOUNDED, 1).should_accept_edit("-0", range(2, 2), "5")
        assert d.kind is DecisionKind.SUBSTITUTE
        assert d.replacement == "-5"

    def test_zero_point_kept(self, validator):
        assert self._decide(validator, "0", 1, 1, ".").allowed


class TestTextHelpers:

    def test_apply_edit_insert(self):
        assert apply_edit("125", range(1, 1), "0") == "1025"

    def test_apply_edit_replace(self):
        assert apply_edit("125", range(0, 2), "9") == "95"

    def test_apply_edit_past_end(self):
        assert apply_edit("12", range(5, 5), "3") == "123"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("007", "7"),
            ("-05", "-5"),
            ("00", "0"),
            ("00.5", "0.5"),
            ("0", "0"),
            ("0.5", "0.5"),
            ("120", "120"),
        ],
    )
    def test_strip_leading_zeros(self, text, expected):
        assert strip_leading_zeros(text) == expected
