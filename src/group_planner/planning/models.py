"""
Planning Models - Pydantic schemas for recommendations and the final plan.

Collaborators return ordered option lists; the planner core only ever looks
at the canonical ("best") element or the option a participant picked.
"""

from datetime import date as Date
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field


class PlanOption(BaseModel):
	"""Something the group could do, eat at, or ride."""
	name: str = Field(description="Display name")
	estimated_cost_per_person: float = Field(default=0.0, ge=0, description="Estimated USD per person")
	description: str = Field(default="")


class LocationOption(PlanOption):
	"""A place to spend the outing."""
	type: str = Field(default="", description="park, museum, beach, ...")
	address: str = Field(default="")
	activities: list[str] = Field(default_factory=list)
	rating: Optional[float] = Field(default=None, ge=0, le=5)


class RestaurantOption(PlanOption):
	"""A place to eat near the chosen location."""
	cuisine: str = Field(default="")
	address: str = Field(default="")
	rating: Optional[float] = Field(default=None, ge=0, le=5)


class TransportOption(PlanOption):
	"""A way to get between two points."""
	method: str = Field(default="", description="bus, rideshare, walk, ...")
	duration: str = Field(default="")

	def model_post_init(self, __context) -> None:
		if not self.method:
			self.method = self.name


class WeatherReport(BaseModel):
	"""Forecast for the outing day."""
	condition: str
	temp_min: float
	temp_max: float
	humidity: Optional[float] = None
	recommendation: str = ""

	@property
	def temp_avg(self) -> float:
		return (self.temp_min + self.temp_max) / 2


OptionT = TypeVar("OptionT", bound=PlanOption)


class Recommendation(BaseModel, Generic[OptionT]):
	"""Ordered options from a collaborator."""
	options: list[OptionT] = Field(default_factory=list)
	best_index: Optional[int] = Field(default=None, description="Explicitly recommended option")
	reasoning: str = Field(default="")

	@property
	def best(self) -> Optional[OptionT]:
		if not self.options:
			return None
		if self.best_index is not None and 0 <= self.best_index < len(self.options):
			return self.options[self.best_index]
		return self.options[0]

	def top(self, count: int) -> "Recommendation[OptionT]":
		"""Keep the first count options; the best option moves to the front if cut."""
		options = list(self.options)
		best = self.best
		if best is not None and options.index(best) >= count:
			options.remove(best)
			options.insert(0, best)
		return self.model_copy(update={"options": options[:count], "best_index": 0 if best else None})


class DateOption(BaseModel):
	"""A candidate day for the outing."""
	date: Date
	label: str
	start: str = "10:00"
	end: str = "16:00"

	@property
	def date_str(self) -> str:
		return self.date.isoformat()


class CostBreakdown(BaseModel):
	"""Per-person costs for each leg of the outing."""
	transport_to: float = 0.0
	location: float = 0.0
	restaurant: float = 0.0
	transport_from: float = 0.0
	group_size: int = Field(default=1, ge=1)

	@property
	def total_per_person(self) -> float:
		return self.transport_to + self.location + self.restaurant + self.transport_from

	@property
	def total_for_group(self) -> float:
		return self.total_per_person * self.group_size


class OutingPlan(BaseModel):
	"""The final artifact delivered to the group."""
	city: str
	origin: str
	date: DateOption
	weather: Optional[WeatherReport] = None
	activity_preferences: list[str] = Field(default_factory=list)
	location: LocationOption
	restaurant: RestaurantOption
	transport_to: Optional[TransportOption] = None
	transport_from: Optional[TransportOption] = None
	costs: CostBreakdown
	confirmed: Optional[bool] = None
	adjustments: list[str] = Field(default_factory=list)
