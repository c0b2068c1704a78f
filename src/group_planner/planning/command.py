"""
Command planner - recommendations from an external text-completion command.

The command (for example ``claude --print`` or ``llm -m gemini-2.5-flash``)
receives the prompt on stdin and must print JSON on stdout. Output is parsed
with one repair attempt; anything still malformed aborts the session.
"""

import asyncio
import json
import logging
import shlex
from datetime import date
from typing import Any, Optional, Sequence, Type

from pydantic import ValidationError

from ..aggregation import BudgetTier
from ..errors import CollaboratorError, CollaboratorParseError
from .models import (
	LocationOption,
	PlanOption,
	Recommendation,
	RestaurantOption,
	TransportOption,
	WeatherReport,
)
from .parsing import parse_json_payload

logger = logging.getLogger(__name__)

LOCATIONS_PROMPT = """You are a local outing expert. Suggest places for a group outing.

City: {city}
Group size: {group_size} people
Preferences: {preferences}
Budget level: {budget}

Suggest 3-5 options of different kinds with realistic per-person costs.
Return ONLY JSON in this shape:
{schema}
"""

RESTAURANTS_PROMPT = """You are a restaurant expert. Suggest restaurants for a group.

City: {city}
Near: {near}
Group size: {group_size} people
Cuisines: {cuisines}
Budget level: {budget}

Suggest 3-5 restaurants with realistic per-person costs.
Return ONLY JSON in this shape:
{schema}
"""

TRANSPORT_PROMPT = """You are a transportation planner.

City: {city}
From: {origin}
To: {destination}
Group size: {group_size} people
Budget level: {budget}

Suggest 2-3 ways to travel, cheapest first, with per-person costs.
Return ONLY JSON in this shape:
{schema}
"""

WEATHER_PROMPT = """Give the typical weather for {city} on {day}.
Return ONLY JSON in this shape:
{schema}
"""

_SCHEMAS = {
	"locations": {
		"options": [{
			"name": "str", "type": "str", "description": "str", "address": "str",
			"estimated_cost_per_person": 0, "activities": ["str"], "rating": 4.5,
		}],
		"best_index": 0,
		"reasoning": "str",
	},
	"restaurants": {
		"options": [{
			"name": "str", "cuisine": "str", "description": "str", "address": "str",
			"estimated_cost_per_person": 0, "rating": 4.5,
		}],
		"best_index": 0,
		"reasoning": "str",
	},
	"transport": {
		"options": [{"name": "str", "method": "str", "duration": "str", "estimated_cost_per_person": 0}],
		"best_index": 0,
	},
	"weather": {
		"condition": "str", "temp_min": 0, "temp_max": 0, "humidity": 0, "recommendation": "str",
	},
}


def _schema(name: str) -> str:
	return json.dumps(_SCHEMAS[name], indent=2)


class CommandCompletion:
	"""Runs a completion command: prompt on stdin, text on stdout."""

	def __init__(self, command: str | Sequence[str], timeout: float = 120):
		self.argv = shlex.split(command) if isinstance(command, str) else list(command)
		if not self.argv:
			raise ValueError("Completion command is empty")
		self.timeout = timeout

	async def complete(self, prompt: str) -> str:
		"""
		Run the command once.

		Raises:
			CollaboratorError: If the command is missing, fails, or times out
		"""
		logger.info("Running %s (%d chars prompt)", self.argv[0], len(prompt))
		try:
			process = await asyncio.create_subprocess_exec(
				*self.argv,
				stdin=asyncio.subprocess.PIPE,
				stdout=asyncio.subprocess.PIPE,
				stderr=asyncio.subprocess.PIPE,
			)
		except FileNotFoundError as e:
			raise CollaboratorError(f"Completion command not found: {self.argv[0]}") from e

		try:
			stdout, stderr = await asyncio.wait_for(
				process.communicate(input=prompt.encode()),
				timeout=self.timeout,
			)
		except asyncio.TimeoutError:
			process.kill()
			await process.wait()
			raise CollaboratorError(f"Completion timed out after {self.timeout:.0f} seconds")

		if process.returncode != 0:
			error = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
			raise CollaboratorError(f"Completion command failed: {error[:500]}")

		text = stdout.decode(errors="replace")
		logger.info("Completion returned %d chars", len(text))
		return text


class CommandPlanner:
	"""Planner that asks a completion command for JSON recommendations."""

	def __init__(self, completion: CommandCompletion):
		self.completion = completion

	async def _recommend(
		self,
		prompt: str,
		option_type: Type[PlanOption],
		what: str,
	) -> Recommendation[Any]:
		data = parse_json_payload(await self.completion.complete(prompt))
		if isinstance(data, list):
			data = {"options": data}
		try:
			recommendation = Recommendation[option_type].model_validate(data)
		except ValidationError as e:
			raise CollaboratorParseError(f"Unexpected {what} format: {e}", payload=str(data)[:500]) from e
		if not recommendation.options:
			raise CollaboratorError(f"No {what} suggested")
		return recommendation

	async def find_locations(
		self,
		city: str,
		group_size: int,
		preferences: Sequence[str],
		budget: BudgetTier,
	) -> Recommendation[LocationOption]:
		prompt = LOCATIONS_PROMPT.format(
			city=city,
			group_size=group_size,
			preferences=", ".join(preferences) or "No specific preferences",
			budget=budget.value,
			schema=_schema("locations"),
		)
		return await self._recommend(prompt, LocationOption, "locations")

	async def find_restaurants(
		self,
		city: str,
		near: str,
		group_size: int,
		cuisines: Sequence[str],
		budget: BudgetTier,
	) -> Recommendation[RestaurantOption]:
		prompt = RESTAURANTS_PROMPT.format(
			city=city,
			near=near,
			group_size=group_size,
			cuisines=", ".join(cuisines) or "Any",
			budget=budget.value,
			schema=_schema("restaurants"),
		)
		return await self._recommend(prompt, RestaurantOption, "restaurants")

	async def find_transport(
		self,
		city: str,
		origin: str,
		destination: str,
		group_size: int,
		budget: BudgetTier,
	) -> Recommendation[TransportOption]:
		prompt = TRANSPORT_PROMPT.format(
			city=city,
			origin=origin,
			destination=destination,
			group_size=group_size,
			budget=budget.value,
			schema=_schema("transport"),
		)
		return await self._recommend(prompt, TransportOption, "transport options")

	async def forecast(self, city: str, day: date) -> Optional[WeatherReport]:
		prompt = WEATHER_PROMPT.format(city=city, day=day.isoformat(), schema=_schema("weather"))
		data = parse_json_payload(await self.completion.complete(prompt))
		try:
			return WeatherReport.model_validate(data)
		except ValidationError as e:
			raise CollaboratorParseError(f"Unexpected weather format: {e}", payload=str(data)[:500]) from e
