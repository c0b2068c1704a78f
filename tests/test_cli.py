"""Tests for the CLI module and the rich session views."""

import argparse
import sys
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from group_planner.cli import _apply_args, main
from group_planner.config import Config
from group_planner.models import SessionResult, SessionState
from group_planner.planning import (
	CostBreakdown,
	DateOption,
	LocationOption,
	OutingPlan,
	RestaurantOption,
	TransportOption,
)
from group_planner.render import render_config, render_plan, render_session


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch):
	"""Point config at tmp dirs and clear anything that would start a real bot."""
	monkeypatch.setenv("GROUP_PLANNER_CONFIG_DIR", str(tmp_path / "config"))
	monkeypatch.setenv("GROUP_PLANNER_DATA_DIR", str(tmp_path / "data"))
	for key in ("TELEGRAM_BOT_TOKEN", "GROUP_PLANNER_CHAT_ID", "GROUP_PLANNER_ROSTER"):
		monkeypatch.delenv(key, raising=False)
	with patch("group_planner.cli.load_dotenv"):
		yield tmp_path


def run_main(*argv: str) -> None:
	with patch.object(sys, "argv", ["group-planner", *argv]):
		main()


def make_plan(**overrides) -> OutingPlan:
	fields = dict(
		city="San Francisco",
		origin="Downtown San Francisco",
		date=DateOption(date=date(2026, 10, 24), label="Next Saturday"),
		location=LocationOption(name="Lands End", estimated_cost_per_person=0),
		restaurant=RestaurantOption(name="Cliff House Bistro", estimated_cost_per_person=40),
		transport_to=TransportOption(name="Muni bus", estimated_cost_per_person=2.5),
		transport_from=TransportOption(name="Muni bus", estimated_cost_per_person=2.5),
		costs=CostBreakdown(transport_to=2.5, restaurant=40, transport_from=2.5, group_size=4),
	)
	fields.update(overrides)
	return OutingPlan(**fields)


class TestMain:
	def test_no_command_prints_help(self, isolated_env, capsys):
		with pytest.raises(SystemExit) as exc:
			run_main()
		assert exc.value.code == 1
		assert "group-planner" in capsys.readouterr().out

	def test_run_without_token(self, isolated_env, capsys):
		with pytest.raises(SystemExit) as exc:
			run_main("run", "--roster", "@ana,@ben", "--chat-id", "-100")
		assert exc.value.code == 1
		out = capsys.readouterr().out
		assert "Missing telegram_token" in out
		assert "Missing roster" not in out

	def test_auth_server_needs_roster(self, isolated_env, capsys):
		with pytest.raises(SystemExit):
			run_main("auth-server")
		assert "Missing roster" in capsys.readouterr().out

	def test_config_command(self, isolated_env, capsys):
		run_main("config")
		out = capsys.readouterr().out
		assert "group-planner configuration" in out
		assert "San Francisco" in out
		assert (isolated_env / "data" / "logs").exists()


class TestApplyArgs:
	def test_flags_override_config(self, tmp_path: Path):
		config = Config(config_dir=tmp_path, data_dir=tmp_path)
		args = argparse.Namespace(city="Oslo", roster="@ana, @ben", chat_id="-100", oauth=True, port=None)

		_apply_args(config, args)

		assert config.city == "Oslo"
		assert config.roster == ["@ana", "@ben"]
		assert config.chat_id == "-100"
		assert config.use_oauth is True
		assert config.auth_port == 3000

	def test_missing_flags_keep_config(self, tmp_path: Path):
		config = Config(config_dir=tmp_path, data_dir=tmp_path, city="Austin")
		_apply_args(config, argparse.Namespace())
		assert config.city == "Austin"


class TestRender:
	def test_plan(self):
		console = Console(record=True, width=120)
		render_plan(make_plan(confirmed=True), console)
		text = console.export_text()
		assert "Outing in San Francisco" in text
		assert "Cliff House Bistro" in text
		assert "$45.00" in text
		assert "4 people: $180.00" in text
		assert "confirmed" in text

	def test_adjustments_panel(self):
		console = Console(record=True, width=120)
		render_plan(make_plan(confirmed=False, adjustments=["earlier start"]), console)
		text = console.export_text()
		assert "Requested changes" in text
		assert "- earlier start" in text
		assert "needs changes" in text

	def test_session_table(self):
		state = SessionState(roster_size=2, stage_index=1)
		state.accumulated["date"] = 1
		state.responses["date"] = {"@ana": "[2]"}
		console = Console(record=True, width=120)

		render_session(SessionResult(state=state, artifact=make_plan()), console)

		text = console.export_text()
		assert "@ana: [2]" in text
		assert "Lands End" in text

	def test_config_hides_token(self, tmp_path: Path):
		config = Config(config_dir=tmp_path, data_dir=tmp_path, telegram_token="123:secret")
		console = Console(record=True, width=200)
		render_config(config, console)
		text = console.export_text()
		assert "123:secret" not in text
		assert "bundled example" in text
