"""
Outing pipeline - the group outing conversation as a list of stages.

date -> weather -> activity -> location -> cuisine -> budget -> restaurant
-> transport -> confirmation -> adjustments

Each stage's prompt is rendered from what earlier stages resolved, so the
pipeline itself holds no state between stages apart from its context.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from ..aggregation import AggregationPolicy, BudgetTier
from ..models import SessionState
from ..orchestrator.stages import StageDefinition, StageKind
from .base import Planner
from .models import (
	CostBreakdown,
	DateOption,
	LocationOption,
	OutingPlan,
	Recommendation,
	RestaurantOption,
	WeatherReport,
)

logger = logging.getLogger(__name__)

MAX_OPTIONS = 3
DEFAULT_ACTIVITIES = ["outdoor", "park"]
DEFAULT_CUISINES = ["American"]
SECTION_RULE = "━" * 30

Notify = Callable[[str], Awaitable[None]]


@dataclass
class OutingContext:
	"""Fixed facts about the outing being planned."""
	city: str
	group_size: int
	date_options: list[DateOption]
	origin: Optional[str] = None

	def __post_init__(self) -> None:
		if not self.date_options:
			raise ValueError("At least one candidate date is required")
		self.date_options = list(self.date_options[:MAX_OPTIONS])
		if not self.origin:
			self.origin = f"Downtown {self.city}"


@dataclass
class StageTimeouts:
	"""Seconds each kind of question stays open."""
	stage: float = 180
	confirmation: float = 180


def choice_hint(count: int) -> str:
	"""'1, 2, or 3' style hint for numbered options."""
	numbers = [str(i) for i in range(1, count + 1)]
	if len(numbers) == 1:
		return numbers[0]
	if len(numbers) == 2:
		return f"{numbers[0]} or {numbers[1]}"
	return ", ".join(numbers[:-1]) + f", or {numbers[-1]}"


def _money(value: float) -> str:
	return f"${value:.2f}"


def format_weather(weather: Optional[WeatherReport]) -> str:
	if weather is None:
		return "🌤️ No forecast available"
	lines = [
		f"🌤️ {weather.condition}",
		f"🌡️ Temperature: {weather.temp_min:g}°C - {weather.temp_max:g}°C",
	]
	if weather.humidity is not None:
		lines.append(f"💧 Humidity: {weather.humidity:g}%")
	if weather.recommendation:
		lines.append(f"💡 {weather.recommendation}")
	return "\n".join(lines)


def format_locations(recommendation: Recommendation[LocationOption]) -> str:
	blocks = []
	for i, loc in enumerate(recommendation.options, 1):
		activities = ", ".join(loc.activities[:3]) or "Various activities"
		blocks.append(
			f"{i}. {loc.name}\n"
			f"   📍 {loc.address or 'Address TBD'}\n"
			f"   🎯 Activities: {activities}\n"
			f"   💰 Cost: {_money(loc.estimated_cost_per_person)}/person"
		)
	return "\n\n".join(blocks)


def format_restaurants(recommendation: Recommendation[RestaurantOption]) -> str:
	blocks = []
	for i, rest in enumerate(recommendation.options, 1):
		rating = f"{rest.rating:g}/5" if rest.rating is not None else "N/A"
		blocks.append(
			f"{i}. {rest.name}\n"
			f"   🍴 Cuisine: {rest.cuisine or 'Various'}\n"
			f"   ⭐ Rating: {rating}\n"
			f"   💰 Cost: {_money(rest.estimated_cost_per_person)}/person"
		)
	return "\n\n".join(blocks)


def format_plan(plan: OutingPlan) -> str:
	"""Full timeline shown to the group before the confirmation vote."""
	to = plan.transport_to
	back = plan.transport_from
	costs = plan.costs
	activities = ", ".join(plan.location.activities[:4]) or "Various activities"
	rating = f"{plan.restaurant.rating:g}/5" if plan.restaurant.rating is not None else "N/A"
	sections = [
		"🎉 YOUR COMPLETE OUTING PLAN",
		(
			f"📅 DATE & TIME\n{SECTION_RULE}\n"
			f"📆 {plan.date.date_str} ({plan.date.label})\n"
			f"⏰ {plan.date.start} - {plan.date.end}\n"
			f"👥 {costs.group_size} people"
		),
		f"🌤️ WEATHER FORECAST\n{SECTION_RULE}\n{format_weather(plan.weather)}",
		(
			f"🚗 OUTBOUND TRANSPORTATION\n{SECTION_RULE}\n"
			f"From: {plan.origin}\nTo: {plan.location.name}\n"
			f"Method: {to.method if to else 'TBD'}\n"
			f"Duration: {(to.duration if to else '') or 'TBD'}\n"
			f"💰 Cost: {_money(costs.transport_to)}/person"
		),
		(
			f"📍 MAIN LOCATION\n{SECTION_RULE}\n"
			f"🎯 {plan.location.name}\n"
			f"📍 {plan.location.address or 'Address TBD'}\n"
			f"🎪 Activities: {activities}\n"
			f"💰 Entry: {_money(costs.location)}/person"
		),
		(
			f"🍽️ RESTAURANT\n{SECTION_RULE}\n"
			f"🍴 {plan.restaurant.name}\n"
			f"🌮 Cuisine: {plan.restaurant.cuisine or 'Various'}\n"
			f"⭐ Rating: {rating}\n"
			f"💰 Cost: {_money(costs.restaurant)}/person"
		),
		(
			f"🚗 RETURN TRANSPORTATION\n{SECTION_RULE}\n"
			f"From: {plan.location.name}\nTo: {plan.origin}\n"
			f"Method: {back.method if back else 'TBD'}\n"
			f"Duration: {(back.duration if back else '') or 'TBD'}\n"
			f"💰 Cost: {_money(costs.transport_from)}/person"
		),
		(
			f"💰 COMPLETE COST BREAKDOWN\n{SECTION_RULE}\n"
			f"🚗 Outbound transport: {_money(costs.transport_to)}/person\n"
			f"📍 Location & entry: {_money(costs.location)}/person\n"
			f"🍽️ Restaurant & food: {_money(costs.restaurant)}/person\n"
			f"🚗 Return transport: {_money(costs.transport_from)}/person\n"
			f"{SECTION_RULE}\n"
			f"💵 TOTAL PER PERSON: {_money(costs.total_per_person)}\n"
			f"💰 TOTAL FOR GROUP: {_money(costs.total_for_group)}"
		),
	]
	return "\n\n".join(sections)


class OutingPipeline:
	"""
	Builds the outing stages and the closing message.

	Args:
		planner: Source of locations, restaurants, transport and weather
		context: City, group size, candidate dates and meeting point
		notify: Posts a progress message to the group chat
		timeouts: How long each question stays open
	"""

	def __init__(
		self,
		planner: Planner,
		context: OutingContext,
		notify: Notify,
		timeouts: Optional[StageTimeouts] = None,
	):
		self.planner = planner
		self.context = context
		self.notify = notify
		self.timeouts = timeouts or StageTimeouts()

	def stages(self) -> list[StageDefinition]:
		stage_timeout = self.timeouts.stage
		return [
			StageDefinition(
				id="date",
				prompt=self._date_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.NUMERIC_MEAN,
				option_count=lambda state: len(self.context.date_options),
				collaborator=self._forecast,
				announce=self._announce_date,
			),
			StageDefinition(
				id="activity",
				prompt=self._activity_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.PREFERENCE_LIST,
				default=DEFAULT_ACTIVITIES,
				collaborator=self._find_locations,
			),
			StageDefinition(
				id="location",
				prompt=self._location_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.FIRST_VALID,
				option_count=lambda state: len(state.result("activity").options),
				announce=self._announce_location,
			),
			StageDefinition(
				id="cuisine",
				prompt=self._cuisine_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.PREFERENCE_LIST,
				default=DEFAULT_CUISINES,
			),
			StageDefinition(
				id="budget",
				prompt=self._budget_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.BUDGET_TIER,
				collaborator=self._find_restaurants,
			),
			StageDefinition(
				id="restaurant",
				prompt=self._restaurant_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.FIRST_VALID,
				option_count=lambda state: len(state.result("budget").options),
				collaborator=self._assemble_plan,
				announce=self._announce_restaurant,
			),
			StageDefinition(
				id="confirmation",
				prompt=self._confirmation_prompt,
				timeout=self.timeouts.confirmation,
				kind=StageKind.CONFIRM,
			),
			StageDefinition(
				id="adjustments",
				prompt=self._adjustments_prompt,
				timeout=stage_timeout,
				policy=AggregationPolicy.PREFERENCE_LIST,
				default=[],
				when=lambda state: state.value("confirmation") is False,
			),
		]

	# Resolved values

	def chosen_date(self, state: SessionState) -> DateOption:
		return self.context.date_options[state.value("date", 0)]

	def chosen_location(self, state: SessionState) -> LocationOption:
		return state.result("activity").options[state.value("location", 0)]

	def chosen_restaurant(self, state: SessionState) -> RestaurantOption:
		return state.result("budget").options[state.value("restaurant", 0)]

	# Prompts

	def _date_prompt(self, state: SessionState) -> str:
		lines = [
			f"{i}. {option.date_str} ({option.label})"
			for i, option in enumerate(self.context.date_options, 1)
		]
		count = len(self.context.date_options)
		return (
			"📅 AVAILABLE DATES\n\n" + "\n".join(lines)
			+ f"\n\n⏳ Please reply with {choice_hint(count)} to choose your preferred date..."
		)

	def _activity_prompt(self, state: SessionState) -> str:
		return (
			"📍 What type of activity would you prefer?\n\n"
			"Examples:\n"
			"- Outdoor (parks, beaches, hiking)\n"
			"- Indoor (museums, galleries, shopping)\n"
			"- Mixed (botanical gardens, zoos)\n"
			"- Adventure (water sports, climbing)\n\n"
			"⏳ Reply with your preference..."
		)

	def _location_prompt(self, state: SessionState) -> str:
		locations = state.result("activity")
		return (
			"📍 TOP LOCATION OPTIONS\n\n" + format_locations(locations)
			+ f"\n\n⏳ Reply with {choice_hint(len(locations.options))} to choose your location..."
		)

	def _cuisine_prompt(self, state: SessionState) -> str:
		return (
			"🍽️ Now let's find a great place to eat!\n\n"
			"What type of cuisine would you prefer?\n\n"
			"Examples: Italian, Mexican, Chinese, Japanese, Indian, Mediterranean\n\n"
			"⏳ Reply with your preference..."
		)

	def _budget_prompt(self, state: SessionState) -> str:
		return (
			"💰 What's your budget for food per person?\n\n"
			"Reply with:\n"
			"• LOW ($15-30)\n"
			"• MEDIUM ($30-60)\n"
			"• HIGH ($60+)"
		)

	def _restaurant_prompt(self, state: SessionState) -> str:
		restaurants = state.result("budget")
		return (
			"🍽️ TOP RESTAURANT OPTIONS\n\n" + format_restaurants(restaurants)
			+ f"\n\n⏳ Reply with {choice_hint(len(restaurants.options))} to choose your restaurant..."
		)

	def _confirmation_prompt(self, state: SessionState) -> str:
		return format_plan(state.result("restaurant")) + "\n\n✅ Does this plan work for everyone?"

	def _adjustments_prompt(self, state: SessionState) -> str:
		return (
			"📝 No problem! Let me know what you'd like to change:\n"
			"• Date\n"
			"• Location\n"
			"• Restaurant\n"
			"• Transportation\n"
			"• Budget"
		)

	# Collaborators

	async def _forecast(self, index: int, state: SessionState) -> Optional[WeatherReport]:
		return await self.planner.forecast(self.context.city, self.context.date_options[index].date)

	async def _find_locations(self, preferences: list[str], state: SessionState) -> Recommendation[LocationOption]:
		await self.notify(
			"🔍 Finding best locations based on:\n"
			f"   • Your preferences: {', '.join(preferences)}\n"
			f"   • Group size: {self.context.group_size}\n\n"
			"⏳ Searching..."
		)
		found = await self.planner.find_locations(
			self.context.city,
			self.context.group_size,
			preferences,
			BudgetTier.MEDIUM,
		)
		return found.top(MAX_OPTIONS)

	async def _find_restaurants(self, budget: BudgetTier, state: SessionState) -> Recommendation[RestaurantOption]:
		location = self.chosen_location(state)
		cuisines = state.value("cuisine", DEFAULT_CUISINES)
		await self.notify(
			f"🔍 Finding restaurants near {location.name}...\n"
			f"   • Cuisine: {', '.join(cuisines)}\n"
			f"   • Budget: {budget.value.upper()}\n\n"
			"⏳ Searching..."
		)
		found = await self.planner.find_restaurants(
			self.context.city,
			location.name,
			self.context.group_size,
			cuisines,
			budget,
		)
		return found.top(MAX_OPTIONS)

	async def _assemble_plan(self, index: int, state: SessionState) -> OutingPlan:
		location = self.chosen_location(state)
		restaurant = self.chosen_restaurant(state)
		budget = state.value("budget", BudgetTier.MEDIUM)
		city = self.context.city
		origin = self.context.origin

		outbound = await self.planner.find_transport(city, origin, location.name, self.context.group_size, budget)
		inbound = await self.planner.find_transport(city, location.name, origin, self.context.group_size, budget)
		transport_to = outbound.best
		transport_from = inbound.best

		costs = CostBreakdown(
			transport_to=transport_to.estimated_cost_per_person if transport_to else 0.0,
			location=location.estimated_cost_per_person,
			restaurant=restaurant.estimated_cost_per_person,
			transport_from=transport_from.estimated_cost_per_person if transport_from else 0.0,
			group_size=self.context.group_size,
		)
		logger.info("Plan assembled: %s + %s, %.2f per person", location.name, restaurant.name, costs.total_per_person)
		return OutingPlan(
			city=city,
			origin=origin,
			date=self.chosen_date(state),
			weather=state.result("date"),
			activity_preferences=state.value("activity", []),
			location=location,
			restaurant=restaurant,
			transport_to=transport_to,
			transport_from=transport_from,
			costs=costs,
		)

	# Announcements

	def _announce_date(self, index: int, state: SessionState) -> str:
		option = self.context.date_options[index]
		return (
			f"✅ Great! Selected: {option.date_str} ({option.label})\n"
			f"⏰ Time: {option.start} - {option.end}\n\n"
			+ format_weather(state.result("date"))
		)

	def _announce_location(self, index: int, state: SessionState) -> str:
		return f"🎯 Perfect! You've chosen: {self.chosen_location(state).name}"

	def _announce_restaurant(self, index: int, state: SessionState) -> str:
		return f"🎯 Excellent choice! {self.chosen_restaurant(state).name}"

	# Final artifact

	async def conclude(self, state: SessionState) -> OutingPlan:
		"""Send the closing message and return the finished plan."""
		plan: OutingPlan = state.result("restaurant")
		confirmed = bool(state.value("confirmation"))
		adjustments: Sequence[str] = state.value("adjustments", [])
		plan = plan.model_copy(update={"confirmed": confirmed, "adjustments": list(adjustments)})

		if confirmed:
			await self.notify(
				"🎉 PLAN CONFIRMED!\n\n"
				"✅ Everyone has approved the plan!\n"
				f"📅 Mark your calendars for {plan.date.date_str}!\n"
				f"📍 Meeting point: {plan.origin} at {plan.date.start}\n\n"
				"See you all there! 🚀"
			)
		else:
			requested = "\n".join(f"• {a}" for a in adjustments) or "• (no changes suggested)"
			await self.notify(
				"📝 Thanks! These changes were requested:\n"
				f"{requested}\n\n"
				"Start a new planning session to build a revised plan."
			)
		return plan


def build_outing_stages(
	planner: Planner,
	context: OutingContext,
	notify: Notify,
	timeouts: Optional[StageTimeouts] = None,
) -> list[StageDefinition]:
	return OutingPipeline(planner, context, notify, timeouts).stages()
