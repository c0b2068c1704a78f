"""Tests for planning collaborators: payload parsing, catalog and command planners."""

import json
from pathlib import Path

import pytest

from group_planner.aggregation import BudgetTier
from group_planner.config import Config
from group_planner.errors import CollaboratorError, CollaboratorParseError
from group_planner.planning import (
	CatalogPlanner,
	CommandCompletion,
	CommandPlanner,
	LocationOption,
	Recommendation,
	build_planner,
)
from group_planner.planning.parsing import parse_json_payload, strip_code_fences, truncate_to_structure

# ---------------------------------------------------------------------------
# parse_json_payload
# ---------------------------------------------------------------------------


class TestParseJsonPayload:
	def test_plain_json(self):
		assert parse_json_payload('{"a": 1}') == {"a": 1}

	def test_code_fences_stripped(self):
		raw = '```json\n{"options": []}\n```'
		assert strip_code_fences(raw) == '{"options": []}'
		assert parse_json_payload(raw) == {"options": []}

	def test_trailing_text_repaired(self):
		assert parse_json_payload('{"a": 1} trailing') == {"a": 1}

	def test_leading_text_repaired(self):
		assert parse_json_payload('Here you go: [1, 2] hope that helps') == [1, 2]

	def test_not_json_raises(self):
		with pytest.raises(CollaboratorParseError):
			parse_json_payload("not json")

	def test_repair_is_attempted_once(self):
		with pytest.raises(CollaboratorParseError) as exc:
			parse_json_payload('{"a": [1, 2} oops')
		assert exc.value.payload.startswith('{"a"')

	def test_truncate_to_structure(self):
		assert truncate_to_structure('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'
		assert truncate_to_structure("no braces") is None
		assert truncate_to_structure("} backwards {") is None


# ---------------------------------------------------------------------------
# Recommendation
# ---------------------------------------------------------------------------


class TestRecommendation:
	def test_best_defaults_to_first(self):
		rec = Recommendation[LocationOption](options=[LocationOption(name="A"), LocationOption(name="B")])
		assert rec.best.name == "A"

	def test_explicit_best_index(self):
		rec = Recommendation[LocationOption](
			options=[LocationOption(name="A"), LocationOption(name="B")],
			best_index=1,
		)
		assert rec.best.name == "B"

	def test_top_keeps_best_when_cut(self):
		rec = Recommendation[LocationOption](
			options=[LocationOption(name=n) for n in "ABCD"],
			best_index=3,
		)
		top = rec.top(3)
		assert [o.name for o in top.options] == ["D", "A", "B"]
		assert top.best.name == "D"

	def test_empty_has_no_best(self):
		assert Recommendation[LocationOption]().best is None


# ---------------------------------------------------------------------------
# CatalogPlanner
# ---------------------------------------------------------------------------


@pytest.fixture
def catalog() -> CatalogPlanner:
	return CatalogPlanner.bundled()


class TestCatalogPlanner:
	@pytest.mark.asyncio
	async def test_locations_ranked_by_preferences(self, catalog: CatalogPlanner):
		rec = await catalog.find_locations("San Francisco", 4, ["science"], BudgetTier.MEDIUM)
		assert rec.best.name == "California Academy of Sciences"
		assert len(rec.options) == 5

	@pytest.mark.asyncio
	async def test_city_lookup_is_case_insensitive(self, catalog: CatalogPlanner):
		rec = await catalog.find_locations("san francisco", 4, [], BudgetTier.MEDIUM)
		assert rec.options

	@pytest.mark.asyncio
	async def test_restaurants_near_location(self, catalog: CatalogPlanner):
		rec = await catalog.find_restaurants("San Francisco", "Lands End Trail", 4, ["seafood"], BudgetTier.HIGH)
		assert rec.best.name == "Cliff House Bistro"

	@pytest.mark.asyncio
	async def test_transport_filtered_by_budget(self, catalog: CatalogPlanner):
		rec = await catalog.find_transport("San Francisco", "Downtown San Francisco", "Lands End Trail", 4, BudgetTier.LOW)
		assert [o.name for o in rec.options] == ["Muni bus", "Bike share"]
		assert rec.best.description == "Downtown San Francisco → Lands End Trail"

	@pytest.mark.asyncio
	async def test_forecast(self, catalog: CatalogPlanner):
		from datetime import date

		weather = await catalog.forecast("San Francisco", date(2026, 10, 24))
		assert weather.temp_min == 12
		assert weather.temp_avg == 15.5

	@pytest.mark.asyncio
	async def test_unknown_city(self, catalog: CatalogPlanner):
		with pytest.raises(CollaboratorError):
			await catalog.find_locations("Atlantis", 4, [], BudgetTier.MEDIUM)

	@pytest.mark.asyncio
	async def test_from_file(self, tmp_path: Path):
		path = tmp_path / "catalog.toml"
		path.write_text(
			'[[cities.Lisbon.locations]]\n'
			'name = "Belém Tower"\n'
			'estimated_cost_per_person = 8\n',
			encoding="utf-8",
		)
		planner = CatalogPlanner.from_file(path)

		rec = await planner.find_locations("Lisbon", 2, [], BudgetTier.LOW)
		assert rec.best.name == "Belém Tower"
		assert await planner.forecast("Lisbon", None) is None
		with pytest.raises(CollaboratorError):
			await planner.find_restaurants("Lisbon", "Belém Tower", 2, [], BudgetTier.LOW)


# ---------------------------------------------------------------------------
# CommandCompletion / CommandPlanner
# ---------------------------------------------------------------------------


class FakeCompletion:
	def __init__(self, *outputs: str):
		self.outputs = list(outputs)
		self.prompts: list[str] = []

	async def complete(self, prompt: str) -> str:
		self.prompts.append(prompt)
		return self.outputs.pop(0)


class TestCommandCompletion:
	@pytest.mark.asyncio
	async def test_prompt_on_stdin_text_on_stdout(self):
		completion = CommandCompletion("cat", timeout=5)
		assert await completion.complete("hello planner") == "hello planner"

	@pytest.mark.asyncio
	async def test_missing_command(self):
		completion = CommandCompletion("definitely-not-a-real-command-xyz", timeout=5)
		with pytest.raises(CollaboratorError):
			await completion.complete("hi")

	@pytest.mark.asyncio
	async def test_non_zero_exit(self):
		completion = CommandCompletion(["sh", "-c", "echo broken >&2; exit 3"], timeout=5)
		with pytest.raises(CollaboratorError, match="broken"):
			await completion.complete("hi")

	@pytest.mark.asyncio
	async def test_timeout(self):
		completion = CommandCompletion("sleep 5", timeout=0.2)
		with pytest.raises(CollaboratorError, match="timed out"):
			await completion.complete("hi")

	def test_empty_command_rejected(self):
		with pytest.raises(ValueError):
			CommandCompletion("")


class TestCommandPlanner:
	@pytest.mark.asyncio
	async def test_locations_parsed(self):
		payload = {
			"options": [
				{"name": "Dolores Park", "type": "park", "estimated_cost_per_person": 0},
				{"name": "SFMOMA", "type": "museum", "estimated_cost_per_person": 25},
			],
			"best_index": 1,
		}
		completion = FakeCompletion("```json\n" + json.dumps(payload) + "\n```")
		planner = CommandPlanner(completion)

		rec = await planner.find_locations("San Francisco", 3, ["art"], BudgetTier.MEDIUM)

		assert rec.best.name == "SFMOMA"
		assert "Preferences: art" in completion.prompts[0]
		assert "Group size: 3 people" in completion.prompts[0]

	@pytest.mark.asyncio
	async def test_bare_list_accepted(self):
		completion = FakeCompletion('[{"name": "Muni", "estimated_cost_per_person": 2.5}] done')
		rec = await CommandPlanner(completion).find_transport("SF", "A", "B", 2, BudgetTier.LOW)
		assert rec.best.method == "Muni"

	@pytest.mark.asyncio
	async def test_wrong_shape_is_parse_error(self):
		completion = FakeCompletion('{"options": [{"cost": "free"}]}')
		with pytest.raises(CollaboratorParseError):
			await CommandPlanner(completion).find_restaurants("SF", "Park", 2, ["Thai"], BudgetTier.LOW)

	@pytest.mark.asyncio
	async def test_malformed_is_parse_error(self):
		completion = FakeCompletion("Sorry, I can't help with that.")
		with pytest.raises(CollaboratorParseError):
			await CommandPlanner(completion).find_locations("SF", 2, [], BudgetTier.LOW)

	@pytest.mark.asyncio
	async def test_no_options(self):
		completion = FakeCompletion('{"options": []}')
		with pytest.raises(CollaboratorError):
			await CommandPlanner(completion).find_locations("SF", 2, [], BudgetTier.LOW)

	@pytest.mark.asyncio
	async def test_forecast(self):
		from datetime import date

		completion = FakeCompletion('{"condition": "Sunny", "temp_min": 15, "temp_max": 24}')
		weather = await CommandPlanner(completion).forecast("SF", date(2026, 10, 24))
		assert weather.condition == "Sunny"
		assert "2026-10-24" in completion.prompts[0]


class TestBuildPlanner:
	def test_command_planner_when_configured(self, tmp_path: Path):
		config = Config(config_dir=tmp_path, data_dir=tmp_path, completion_command="llm -m test")
		planner = build_planner(config)
		assert isinstance(planner, CommandPlanner)
		assert planner.completion.argv == ["llm", "-m", "test"]

	def test_bundled_catalog_by_default(self, tmp_path: Path):
		config = Config(config_dir=tmp_path, data_dir=tmp_path)
		assert isinstance(build_planner(config), CatalogPlanner)

	def test_catalog_file_preferred(self, tmp_path: Path):
		(tmp_path / "catalog.toml").write_text('[[cities.Oslo.locations]]\nname = "Vigeland Park"\n')
		planner = build_planner(Config(config_dir=tmp_path, data_dir=tmp_path))
		assert "oslo" in planner.cities
