"""Tests for reply aggregation policies."""

import pytest

from group_planner.aggregation import (
	BudgetTier,
	budget_tier,
	first_valid_choice,
	numeric_mean_choice,
	parse_choice,
	preference_list,
	round_half_up,
	valid_choices,
)


class TestParseChoice:
	@pytest.mark.parametrize("text,expected", [
		("2", 2),
		(" 3 please", 3),
		("1st", 1),
		("-1", -1),
		("+2", 2),
		("two", None),
		("", None),
		("option 2", None),
	])
	def test_leading_integer(self, text, expected):
		assert parse_choice(text) == expected

	def test_valid_choices_drop_out_of_range(self):
		assert valid_choices(["1", "4", "0", "abc", "3"], option_count=3) == [1, 3]


class TestNumericMean:
	def test_half_rounds_up(self):
		# mean 2.5 -> 3 -> index 2
		assert numeric_mean_choice(["2", "3"], option_count=3) == 2

	def test_mean_of_one_and_two(self):
		# mean 1.5 -> 2 -> index 1
		assert numeric_mean_choice(["1", "2"], option_count=3) == 1

	def test_rounds_down_below_half(self):
		# mean 1.33 -> 1 -> index 0
		assert numeric_mean_choice(["1", "1", "2"], option_count=3) == 0

	def test_invalid_values_discarded(self):
		assert numeric_mean_choice(["7", "3", "nope"], option_count=3) == 2

	def test_no_valid_values_uses_default(self):
		assert numeric_mean_choice(["9", "hello"], option_count=3) == 0
		assert numeric_mean_choice([], option_count=3, default=1) == 1

	@pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2)])
	def test_round_half_up(self, value, expected):
		assert round_half_up(value) == expected


class TestFirstValid:
	def test_first_valid_in_arrival_order(self):
		assert first_valid_choice(["5", "lol", "2", "1"], option_count=3) == 1

	def test_default_when_nothing_valid(self):
		assert first_valid_choice(["0", "4"], option_count=3) == 0
		assert first_valid_choice([], option_count=3, default=2) == 2


class TestPreferenceList:
	def test_replies_verbatim(self):
		assert preference_list(["Museums", " parks "], default=["outdoor"]) == ["Museums", " parks "]

	def test_default_when_empty(self):
		default = ["outdoor", "park"]
		result = preference_list([], default=default)
		assert result == ["outdoor", "park"]
		result.append("x")
		assert default == ["outdoor", "park"]


class TestBudgetTier:
	def test_high_wins_over_low(self):
		assert budget_tier(["low", "HIGH"]) is BudgetTier.HIGH

	def test_low(self):
		assert budget_tier(["Low please", "whatever"]) is BudgetTier.LOW

	def test_medium_by_default(self):
		assert budget_tier(["medium"]) is BudgetTier.MEDIUM
		assert budget_tier([]) is BudgetTier.MEDIUM
