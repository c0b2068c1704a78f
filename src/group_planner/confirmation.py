"""Yes/no group decisions decided by a majority of the whole roster."""

import logging
import math
from dataclasses import dataclass, field

from .collector import ResponseCollector
from .models import Participant

logger = logging.getLogger(__name__)

CONFIRMATION_SUFFIX = "\n\nReply with YES or NO"
AFFIRMATIVE_SYMBOLS = ("👍",)


def is_affirmative(text: str) -> bool:
	"""A reply counts as yes if it contains "yes", is exactly "y", or has a thumbs-up."""
	normalized = text.strip().lower()
	if "yes" in normalized or normalized == "y":
		return True
	return any(symbol in normalized for symbol in AFFIRMATIVE_SYMBOLS)


def required_votes(roster_size: int) -> int:
	"""Yes votes needed: half the roster, rounded up."""
	return math.ceil(roster_size / 2)


@dataclass
class Confirmation:
	"""Result of a confirmation vote."""
	confirmed: bool
	responses: dict[Participant, bool] = field(default_factory=dict)
	yes_count: int = 0
	required: int = 0


class ConfirmationResolver:
	"""
	Asks the group a yes/no question.

	The decision counts yes votes against the full roster size, not against
	the number of people who replied: anyone who stays silent counts as a no.
	"""

	def __init__(self, collector: ResponseCollector):
		self.collector = collector

	async def confirm(self, prompt: str, roster_size: int, timeout: float) -> Confirmation:
		if roster_size < 1:
			raise ValueError("roster_size must be at least 1")

		response_set = await self.collector.collect(
			prompt + CONFIRMATION_SUFFIX,
			timeout=timeout,
			min_responses=1,
		)

		votes = {r.sender: is_affirmative(r.text) for r in response_set}
		yes_count = sum(1 for v in votes.values() if v)
		required = required_votes(roster_size)
		confirmed = yes_count >= required

		logger.info(
			"%d/%d said YES (need %d): %s",
			yes_count, roster_size, required,
			"confirmed" if confirmed else "not confirmed",
		)
		return Confirmation(
			confirmed=confirmed,
			responses=votes,
			yes_count=yes_count,
			required=required,
		)
