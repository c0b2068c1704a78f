"""Planning collaborators and the group outing pipeline."""

import logging

from ..config import Config
from .base import Planner
from .calendar import CalendarAvailability, next_saturdays, saturday_options
from .catalog import CatalogPlanner
from .command import CommandCompletion, CommandPlanner
from .models import (
	CostBreakdown,
	DateOption,
	LocationOption,
	OutingPlan,
	PlanOption,
	Recommendation,
	RestaurantOption,
	TransportOption,
	WeatherReport,
)
from .outing import OutingContext, OutingPipeline, StageTimeouts, build_outing_stages, format_plan

logger = logging.getLogger(__name__)


def build_planner(config: Config) -> Planner:
	"""Command planner when a completion command is configured, else the catalog."""
	if config.completion_command:
		logger.info("Using completion command: %s", config.completion_command)
		return CommandPlanner(CommandCompletion(config.completion_command, timeout=config.completion_timeout))
	if config.catalog_file.exists():
		logger.info("Using catalog: %s", config.catalog_file)
		return CatalogPlanner.from_file(config.catalog_file)
	logger.info("Using bundled example catalog")
	return CatalogPlanner.bundled()


__all__ = [
	"CalendarAvailability",
	"CatalogPlanner",
	"CommandCompletion",
	"CommandPlanner",
	"CostBreakdown",
	"DateOption",
	"LocationOption",
	"OutingContext",
	"OutingPipeline",
	"OutingPlan",
	"PlanOption",
	"Planner",
	"Recommendation",
	"RestaurantOption",
	"StageTimeouts",
	"TransportOption",
	"WeatherReport",
	"build_outing_stages",
	"build_planner",
	"format_plan",
	"next_saturdays",
	"saturday_options",
]
