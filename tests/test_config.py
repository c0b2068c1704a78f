"""Tests for the configuration system."""

import os
from pathlib import Path
from unittest.mock import patch

from group_planner.config import Config, _apply_env_overrides, load_config, parse_roster


def test_config_defaults():
	"""Config should have sensible defaults."""
	config = Config()
	assert config.config_dir.is_absolute()
	assert config.data_dir.is_absolute()
	assert config.client_secrets_file == config.config_dir / "client_secret.json"
	assert config.catalog_file == config.config_dir / "catalog.toml"
	assert config.log_dir == config.data_dir / "logs"
	assert config.stage_timeout == 180
	assert config.confirmation_timeout == 180
	assert config.quorum_timeout == 300
	assert config.quorum_fraction == 0.5
	assert config.use_oauth is False


def test_auth_urls():
	config = Config(auth_port=3100)
	assert config.auth_url == "http://localhost:3100"
	assert config.redirect_uri == "http://localhost:3100/oauth/callback"

	config.public_url = "https://planner.example.com/"
	assert config.auth_url == "https://planner.example.com"
	assert config.redirect_uri == "https://planner.example.com/oauth/callback"


def test_parse_roster():
	assert parse_roster("@ana, @ben,,@cy ") == ["@ana", "@ben", "@cy"]
	assert parse_roster("") == []


def test_config_env_overrides():
	"""Environment variables should override defaults."""
	config = Config()
	with patch.dict(os.environ, {
		"GROUP_PLANNER_DATA_DIR": "/tmp/test-data",
		"GROUP_PLANNER_CONFIG_DIR": "/tmp/test-config",
		"GROUP_PLANNER_CITY": "Lisbon",
		"GROUP_PLANNER_ROSTER": "@ana,@ben",
		"GROUP_PLANNER_USE_OAUTH": "true",
		"GROUP_PLANNER_AUTH_PORT": "3100",
		"GROUP_PLANNER_STAGE_TIMEOUT": "45",
		"GROUP_PLANNER_QUORUM_FRACTION": "0.75",
		"TELEGRAM_BOT_TOKEN": "123:abc",
	}):
		config = _apply_env_overrides(config)
		assert config.data_dir == Path("/tmp/test-data")
		assert config.config_dir == Path("/tmp/test-config")
		# Derived paths should be recomputed
		assert config.client_secrets_file == Path("/tmp/test-config/client_secret.json")
		assert config.log_dir == Path("/tmp/test-data/logs")
		assert config.city == "Lisbon"
		assert config.roster == ["@ana", "@ben"]
		assert config.use_oauth is True
		assert config.auth_port == 3100
		assert config.stage_timeout == 45.0
		assert config.quorum_fraction == 0.75
		assert config.telegram_token == "123:abc"


def test_use_oauth_false_values():
	config = Config()
	with patch.dict(os.environ, {"GROUP_PLANNER_USE_OAUTH": "no"}):
		assert _apply_env_overrides(config).use_oauth is False


def test_config_ensure_dirs(tmp_path: Path):
	"""ensure_dirs should create all required directories."""
	config = Config(
		config_dir=tmp_path / "config",
		data_dir=tmp_path / "data",
	)
	assert not config.config_dir.exists()
	assert not config.data_dir.exists()

	config.ensure_dirs()

	assert config.config_dir.exists()
	assert config.data_dir.exists()
	assert config.log_dir.exists()


def test_load_config_creates_dirs(tmp_path: Path):
	"""load_config should create directories."""
	with patch.dict(os.environ, {
		"GROUP_PLANNER_DATA_DIR": str(tmp_path / "data"),
		"GROUP_PLANNER_CONFIG_DIR": str(tmp_path / "config"),
	}):
		config = load_config()
		assert config.data_dir.exists()
		assert config.config_dir.exists()


def test_load_config_reads_toml(tmp_path: Path):
	"""config.toml in the config dir applies, env vars still win."""
	config_dir = tmp_path / "config"
	config_dir.mkdir()
	(config_dir / "config.toml").write_text(
		'city = "Oslo"\n'
		'roster = "@ana, @ben"\n'
		'quorum_timeout = 60\n'
		'stage_timeout = 30\n'
	)
	with patch.dict(os.environ, {
		"GROUP_PLANNER_DATA_DIR": str(tmp_path / "data"),
		"GROUP_PLANNER_CONFIG_DIR": str(config_dir),
		"GROUP_PLANNER_STAGE_TIMEOUT": "20",
	}):
		config = load_config()
		assert config.city == "Oslo"
		assert config.roster == ["@ana", "@ben"]
		assert config.quorum_timeout == 60
		assert config.stage_timeout == 20.0
		assert config.catalog_file == config_dir / "catalog.toml"
