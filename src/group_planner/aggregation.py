"""
Aggregation rules that turn a stage's replies into one resolved value.

Unparseable or out-of-range replies are dropped one at a time; a stage only
falls back to its default when no reply survives.
"""

import logging
import math
import re
from enum import Enum
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class AggregationPolicy(str, Enum):
	"""How a stage reduces its replies."""
	NUMERIC_MEAN = "numeric_mean"
	FIRST_VALID = "first_valid"
	PREFERENCE_LIST = "preference_list"
	BUDGET_TIER = "budget_tier"


class BudgetTier(str, Enum):
	LOW = "low"
	MEDIUM = "medium"
	HIGH = "high"


def parse_choice(text: str) -> Optional[int]:
	"""Parse the leading integer of a reply ("2", " 3 please"). None if there is none."""
	match = _LEADING_INT.match(text)
	if not match:
		return None
	return int(match.group(1))


def valid_choices(texts: Iterable[str], option_count: int) -> list[int]:
	"""1-based choices within [1, option_count], in reply order."""
	choices = []
	for text in texts:
		choice = parse_choice(text)
		if choice is None or not 1 <= choice <= option_count:
			logger.debug("Discarding invalid choice %r (options 1..%d)", text, option_count)
			continue
		choices.append(choice)
	return choices


def round_half_up(value: float) -> int:
	return math.floor(value + 0.5)


def numeric_mean_choice(texts: Sequence[str], option_count: int, default: int = 0) -> int:
	"""0-based index of the rounded mean of valid choices."""
	choices = valid_choices(texts, option_count)
	if not choices:
		return default
	return round_half_up(sum(choices) / len(choices)) - 1


def first_valid_choice(texts: Sequence[str], option_count: int, default: int = 0) -> int:
	"""0-based index of the earliest reply holding a valid choice."""
	choices = valid_choices(texts, option_count)
	if not choices:
		return default
	return choices[0] - 1


def preference_list(texts: Sequence[str], default: Sequence[str]) -> list[str]:
	"""Replies verbatim, or the default list when nobody answered."""
	if texts:
		return list(texts)
	return list(default)


def budget_tier(texts: Sequence[str]) -> BudgetTier:
	"""HIGH if any reply mentions high, else LOW if any mentions low, else MEDIUM."""
	lowered = [t.lower() for t in texts]
	if any("high" in t for t in lowered):
		return BudgetTier.HIGH
	if any("low" in t for t in lowered):
		return BudgetTier.LOW
	return BudgetTier.MEDIUM
