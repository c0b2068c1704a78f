"""Planning collaborator interface."""

from datetime import date
from typing import Optional, Protocol, Sequence, runtime_checkable

from ..aggregation import BudgetTier
from .models import (
	LocationOption,
	Recommendation,
	RestaurantOption,
	TransportOption,
	WeatherReport,
)


@runtime_checkable
class Planner(Protocol):
	"""
	Source of recommendations for each planning stage.

	Implementations may call out to anything; the stage pipeline only uses
	the returned options in order and never inspects how they were ranked.
	List-returning calls raise CollaboratorError when they have nothing to
	offer.
	"""

	async def find_locations(
		self,
		city: str,
		group_size: int,
		preferences: Sequence[str],
		budget: BudgetTier,
	) -> Recommendation[LocationOption]:
		...

	async def find_restaurants(
		self,
		city: str,
		near: str,
		group_size: int,
		cuisines: Sequence[str],
		budget: BudgetTier,
	) -> Recommendation[RestaurantOption]:
		...

	async def find_transport(
		self,
		city: str,
		origin: str,
		destination: str,
		group_size: int,
		budget: BudgetTier,
	) -> Recommendation[TransportOption]:
		...

	async def forecast(self, city: str, day: date) -> Optional[WeatherReport]:
		...
