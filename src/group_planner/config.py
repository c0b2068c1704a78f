"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import platformdirs

APP_NAME = "group-planner"
APP_AUTHOR = "group-planner"


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	client_secrets_file: Path = field(init=False)
	catalog_file: Path = field(init=False)
	log_dir: Path = field(init=False)

	# Session
	city: str = "San Francisco"
	roster: list[str] = field(default_factory=list)
	chat_id: Optional[str] = None
	telegram_token: Optional[str] = None

	# Calendar authorization
	use_oauth: bool = False
	auth_host: str = "127.0.0.1"
	auth_port: int = 3000
	public_url: Optional[str] = None

	# Waits, in seconds
	stage_timeout: float = 180
	confirmation_timeout: float = 180
	quorum_timeout: float = 300
	quorum_fraction: float = 0.5

	# Planning collaborators
	completion_command: Optional[str] = None
	completion_timeout: float = 120

	log_level: str = "INFO"

	def __post_init__(self) -> None:
		self.client_secrets_file = self.config_dir / "client_secret.json"
		self.catalog_file = self.config_dir / "catalog.toml"
		self.log_dir = self.data_dir / "logs"

	@property
	def redirect_uri(self) -> str:
		return f"{self.auth_url}/oauth/callback"

	@property
	def auth_url(self) -> str:
		"""Base URL participants open to connect their calendars."""
		if self.public_url:
			return self.public_url.rstrip("/")
		return f"http://localhost:{self.auth_port}"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)


PATH_FIELDS = {"config_dir", "data_dir"}
FLOAT_FIELDS = {
	"stage_timeout",
	"confirmation_timeout",
	"quorum_timeout",
	"quorum_fraction",
	"completion_timeout",
}


def parse_roster(value: str) -> list[str]:
	return [p.strip() for p in value.split(",") if p.strip()]


def _apply_env_overrides(config: Config) -> Config:
	"""Apply GROUP_PLANNER_* environment variable overrides."""
	env_map = {
		"GROUP_PLANNER_CONFIG_DIR": "config_dir",
		"GROUP_PLANNER_DATA_DIR": "data_dir",
		"GROUP_PLANNER_CITY": "city",
		"GROUP_PLANNER_CHAT_ID": "chat_id",
		"GROUP_PLANNER_ROSTER": "roster",
		"GROUP_PLANNER_USE_OAUTH": "use_oauth",
		"GROUP_PLANNER_AUTH_HOST": "auth_host",
		"GROUP_PLANNER_AUTH_PORT": "auth_port",
		"GROUP_PLANNER_PUBLIC_URL": "public_url",
		"GROUP_PLANNER_STAGE_TIMEOUT": "stage_timeout",
		"GROUP_PLANNER_CONFIRMATION_TIMEOUT": "confirmation_timeout",
		"GROUP_PLANNER_QUORUM_TIMEOUT": "quorum_timeout",
		"GROUP_PLANNER_QUORUM_FRACTION": "quorum_fraction",
		"GROUP_PLANNER_COMPLETION_COMMAND": "completion_command",
		"GROUP_PLANNER_LOG_LEVEL": "log_level",
		"TELEGRAM_BOT_TOKEN": "telegram_token",
	}
	for env_key, attr in env_map.items():
		val = os.getenv(env_key)
		if not val:
			continue
		if attr in PATH_FIELDS:
			setattr(config, attr, Path(val))
		elif attr == "roster":
			config.roster = parse_roster(val)
		elif attr == "use_oauth":
			config.use_oauth = val.strip().lower() in ("1", "true", "yes", "on")
		elif attr == "auth_port":
			config.auth_port = int(val)
		elif attr in FLOAT_FIELDS:
			setattr(config, attr, float(val))
		else:
			setattr(config, attr, val)
	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	for key, val in data.items():
		if hasattr(config, key):
			if key in PATH_FIELDS:
				setattr(config, key, Path(os.path.expanduser(val)))
			elif key == "roster" and isinstance(val, str):
				config.roster = parse_roster(val)
			else:
				setattr(config, key, val)

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	# First pass lets GROUP_PLANNER_CONFIG_DIR locate config.toml
	config = _apply_env_overrides(config)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.ensure_dirs()
	return config
