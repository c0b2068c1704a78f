"""
PlanningSession - one group outing planned in one chat.

Wires the channel, the optional calendar connection step, date selection,
the planning collaborator and the stage orchestrator together.
"""

import logging
from typing import Callable, Iterable, Optional

from .channel.base import MessageChannel
from .config import Config
from .models import ConnectionRecord, Participant, Roster, SessionResult
from .orchestrator import StageOrchestrator, apologize
from .planning import (
	CalendarAvailability,
	OutingContext,
	OutingPipeline,
	Planner,
	StageTimeouts,
	build_planner,
)
from .quorum import ConnectionQuorumTracker, QuorumOutcome
from .web import AuthorizationServer, create_server

logger = logging.getLogger(__name__)

ServerFactory = Callable[[ConnectionQuorumTracker], AuthorizationServer]


class PlanningSession:
	"""Runs the full outing conversation for a roster in one chat."""

	def __init__(
		self,
		config: Config,
		channel: MessageChannel,
		chat_id: str,
		planner: Optional[Planner] = None,
		availability: Optional[CalendarAvailability] = None,
		server_factory: Optional[ServerFactory] = None,
	):
		self.config = config
		self.channel = channel
		self.chat_id = chat_id
		self.planner = planner or build_planner(config)
		self.availability = availability or CalendarAvailability()
		self.server_factory = server_factory or (lambda tracker: create_server(config, tracker))

	async def notify(self, text: str) -> None:
		await self.channel.send(self.chat_id, text)

	async def run(self, roster: Roster | Iterable[Participant]) -> SessionResult:
		"""
		Plan an outing with the roster.

		Returns:
			SessionResult whose artifact is the OutingPlan

		Raises:
			ChannelSendError, CollaboratorError: After one apology in the chat
		"""
		roster = roster if isinstance(roster, Roster) else Roster(roster)
		logger.info("Planning %s outing for %d people in chat %s", self.config.city, roster.size, self.chat_id)

		try:
			await self.notify(
				"🎉 Welcome to Group Planner!\n\n"
				f"Let's plan a day out in {self.config.city} for {roster.size} people."
			)
			connections: dict[Participant, ConnectionRecord] = {}
			if self.config.use_oauth:
				connections = await self.connect_calendars(roster)
			dates = await self.availability.candidate_dates(connections.values())
		except Exception as e:
			logger.exception("Session setup failed: %s", e)
			await apologize(self.channel, self.chat_id)
			raise

		pipeline = OutingPipeline(
			self.planner,
			OutingContext(city=self.config.city, group_size=roster.size, date_options=dates),
			notify=self.notify,
			timeouts=StageTimeouts(
				stage=self.config.stage_timeout,
				confirmation=self.config.confirmation_timeout,
			),
		)
		orchestrator = StageOrchestrator(self.channel, self.chat_id)
		return await orchestrator.run(pipeline.stages(), roster, conclude=pipeline.conclude)

	async def connect_calendars(self, roster: Roster) -> dict[Participant, ConnectionRecord]:
		"""Serve the connection page and wait for enough of the roster to connect."""
		tracker = ConnectionQuorumTracker(self.channel, self.chat_id)
		tracker.register_expected(roster)
		server = self.server_factory(tracker)
		await server.start()
		try:
			minutes = self.config.quorum_timeout / 60
			await self.notify(
				"📱 Connect your calendar for smart scheduling\n"
				f"Link: {server.public_url}\n\n"
				f"⏳ Waiting up to {minutes:g} minutes for calendar connections...\n"
				"(You can skip this and I'll suggest dates automatically)"
			)
			connections = await tracker.wait_for_quorum(
				self.config.quorum_timeout,
				min_fraction=self.config.quorum_fraction,
			)
		finally:
			await server.stop()

		if tracker.last_outcome is QuorumOutcome.QUORUM_REACHED:
			await self.notify(f"✅ {len(connections)}/{roster.size} calendars connected. Finding free days...")
		elif tracker.last_outcome is QuorumOutcome.TIMED_OUT_PARTIAL:
			await self.notify(f"⏰ Continuing with {len(connections)}/{roster.size} connected calendars.")
		else:
			await self.notify("⏰ No calendars connected, I'll suggest dates automatically.")
		return connections
