"""
Catalog planner - recommendations from a curated TOML file.

Catalog layout (one table per city):

	[cities."San Francisco".weather]
	condition = "Mild, morning fog"
	temp_min = 12
	temp_max = 19

	[[cities."San Francisco".locations]]
	name = "Golden Gate Park"
	type = "park"
	tags = ["outdoor", "nature"]
	estimated_cost_per_person = 0

	[[cities."San Francisco".restaurants]]
	name = "Park Chow"
	cuisine = "American"
	near = ["Golden Gate Park"]
	budget = ["low", "medium"]

	[[cities."San Francisco".transport]]
	name = "Muni bus"
	duration = "35 min"
	budget = ["low", "medium"]
"""

import logging
import re
import tomllib
from datetime import date
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Sequence

from ..aggregation import BudgetTier
from ..errors import CollaboratorError
from .models import (
	LocationOption,
	Recommendation,
	RestaurantOption,
	TransportOption,
	WeatherReport,
)

logger = logging.getLogger(__name__)

BUNDLED_CATALOG = "catalog.example.toml"
_WORD = re.compile(r"[a-z0-9]+")


def _keywords(phrases: Sequence[str]) -> set[str]:
	words: set[str] = set()
	for phrase in phrases:
		words.update(w for w in _WORD.findall(phrase.lower()) if len(w) >= 3)
	return words


def _haystack(entry: dict[str, Any], keys: Sequence[str]) -> str:
	parts: list[str] = []
	for key in keys:
		value = entry.get(key)
		if isinstance(value, list):
			parts.extend(str(v) for v in value)
		elif value is not None:
			parts.append(str(value))
	return " ".join(parts).lower()


def _fits_budget(entry: dict[str, Any], budget: BudgetTier) -> bool:
	tiers = entry.get("budget")
	if not tiers:
		return True
	if isinstance(tiers, str):
		tiers = [tiers]
	return budget.value in [t.lower() for t in tiers]


class CatalogPlanner:
	"""Planner that ranks catalog entries by keyword overlap with the group's answers."""

	def __init__(self, catalog: dict[str, Any]):
		self.cities: dict[str, dict[str, Any]] = {
			name.lower(): data for name, data in catalog.get("cities", {}).items()
		}

	@classmethod
	def from_file(cls, path: Path) -> "CatalogPlanner":
		with open(path, "rb") as f:
			return cls(tomllib.load(f))

	@classmethod
	def bundled(cls) -> "CatalogPlanner":
		"""The example catalog shipped with the package."""
		data = resources.files("group_planner").joinpath("data", BUNDLED_CATALOG).read_text(encoding="utf-8")
		return cls(tomllib.loads(data))

	def _city(self, city: str) -> dict[str, Any]:
		data = self.cities.get(city.lower())
		if data is None:
			raise CollaboratorError(f"No catalog entries for {city}")
		return data

	def _entries(self, city: str, section: str) -> list[dict[str, Any]]:
		entries = self._city(city).get(section, [])
		if not entries:
			raise CollaboratorError(f"Catalog has no {section} for {city}")
		return entries

	async def find_locations(
		self,
		city: str,
		group_size: int,
		preferences: Sequence[str],
		budget: BudgetTier,
	) -> Recommendation[LocationOption]:
		wanted = _keywords(preferences)

		def score(entry: dict[str, Any]) -> int:
			text = _haystack(entry, ("name", "type", "description", "tags", "activities"))
			matches = sum(1 for w in wanted if w in text)
			return matches * 2 + (1 if _fits_budget(entry, budget) else 0)

		ranked = sorted(self._entries(city, "locations"), key=score, reverse=True)
		logger.debug("Ranked %d locations for %s", len(ranked), sorted(wanted))
		return Recommendation[LocationOption](
			options=[LocationOption.model_validate(e) for e in ranked],
			reasoning=f"Matched against: {', '.join(preferences) or 'no preferences'}",
		)

	async def find_restaurants(
		self,
		city: str,
		near: str,
		group_size: int,
		cuisines: Sequence[str],
		budget: BudgetTier,
	) -> Recommendation[RestaurantOption]:
		wanted = _keywords(cuisines)

		def score(entry: dict[str, Any]) -> int:
			text = _haystack(entry, ("name", "cuisine", "description", "tags"))
			nearby = [n.lower() for n in entry.get("near", [])]
			total = 2 * sum(1 for w in wanted if w in text)
			if near.lower() in nearby:
				total += 2
			if _fits_budget(entry, budget):
				total += 1
			return total

		ranked = sorted(self._entries(city, "restaurants"), key=score, reverse=True)
		return Recommendation[RestaurantOption](
			options=[RestaurantOption.model_validate(e) for e in ranked],
			reasoning=f"Near {near}, {budget.value} budget",
		)

	async def find_transport(
		self,
		city: str,
		origin: str,
		destination: str,
		group_size: int,
		budget: BudgetTier,
	) -> Recommendation[TransportOption]:
		entries = self._entries(city, "transport")
		affordable = [e for e in entries if _fits_budget(e, budget)] or entries
		options = [
			TransportOption.model_validate({**e, "description": f"{origin} → {destination}"})
			for e in affordable
		]
		return Recommendation[TransportOption](options=options)

	async def forecast(self, city: str, day: date) -> Optional[WeatherReport]:
		weather = self._city(city).get("weather")
		if not weather:
			return None
		return WeatherReport.model_validate(weather)
