"""
StageOrchestrator - runs planning stages one after another.

Each stage posts its prompt, waits on a collector (or a confirmation vote),
reduces the replies to a single value, and optionally hands that value to a
planning collaborator before the next stage starts. Exactly one stage is
waiting on the chat at any time.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from ..aggregation import (
	AggregationPolicy,
	budget_tier,
	first_valid_choice,
	numeric_mean_choice,
	preference_list,
)
from ..channel.base import MessageChannel
from ..collector import ResponseCollector
from ..confirmation import ConfirmationResolver
from ..errors import ChannelSendError
from ..models import Participant, Roster, SessionResult, SessionState
from .stages import StageDefinition, StageKind

logger = logging.getLogger(__name__)

APOLOGY = "❌ Sorry, something went wrong. Please try again."

Conclusion = Callable[[SessionState], Awaitable[Any]]


class StageOrchestrator:
	"""Drives a group chat through an ordered list of stages."""

	def __init__(
		self,
		channel: MessageChannel,
		channel_id: str,
		collector: Optional[ResponseCollector] = None,
		resolver: Optional[ConfirmationResolver] = None,
	):
		self.channel = channel
		self.channel_id = channel_id
		self.collector = collector or ResponseCollector(channel, channel_id)
		self.resolver = resolver or ConfirmationResolver(self.collector)

	async def run(
		self,
		stages: Sequence[StageDefinition],
		roster: Roster | Iterable[Participant],
		conclude: Optional[Conclusion] = None,
	) -> SessionResult:
		"""
		Run every stage in order, then build the final artifact.

		Args:
			stages: Ordered stage definitions
			roster: Participants expected to answer
			conclude: Builds and delivers the final artifact from the state

		Returns:
			SessionResult with the final state and artifact

		Raises:
			Any error that aborts the session (failed send, collaborator
			failure), after one apology has been posted to the chat.
		"""
		roster = roster if isinstance(roster, Roster) else Roster(roster)
		state = SessionState(roster_size=roster.size)
		confirmed: Optional[bool] = None
		logger.info("Starting %d-stage session for %d participants", len(stages), roster.size)

		try:
			for stage in stages:
				decision = await self._run_stage(stage, state, roster)
				if decision is not None:
					confirmed = decision
			artifact = await conclude(state) if conclude else None
		except Exception as e:
			logger.exception("Session aborted at stage %d: %s", state.stage_index, e)
			state.record(f"Session aborted: {e}")
			await self._apologize()
			raise

		state.record("Session complete")
		logger.info("Session complete after %d stages", state.stage_index)
		return SessionResult(state=state, artifact=artifact, confirmed=confirmed)

	async def _run_stage(
		self,
		stage: StageDefinition,
		state: SessionState,
		roster: Roster,
	) -> Optional[bool]:
		"""Run one stage. Returns the decision for confirmation stages."""
		if stage.when is not None and not stage.when(state):
			logger.info("Skipping stage %s", stage.id)
			state.record(f"Stage {stage.id} skipped")
			state.stage_index += 1
			return None

		logger.info("Stage %d: %s", state.stage_index + 1, stage.id)
		state.record(f"Stage {stage.id}: asking group")
		prompt = stage.prompt(state)

		decision: Optional[bool] = None
		if stage.kind is StageKind.CONFIRM:
			confirmation = await self.resolver.confirm(prompt, roster.size, stage.timeout)
			state.responses[stage.id] = dict(confirmation.responses)
			value: Any = confirmation.confirmed
			decision = confirmation.confirmed
		else:
			response_set = await self.collector.collect(
				prompt,
				timeout=stage.timeout,
				min_responses=stage.min_responses,
			)
			state.responses[stage.id] = response_set.as_dict()
			value = self._aggregate(stage, response_set.texts(), state)

		state.accumulated[stage.id] = value
		state.stage_index += 1
		state.record(f"Stage {stage.id} resolved to {value!r}")
		logger.info("Stage %s resolved to %r", stage.id, value)

		if stage.collaborator is not None:
			state.results[stage.id] = await stage.collaborator(value, state)

		if stage.announce is not None:
			text = stage.announce(value, state)
			if text:
				await self.channel.send(self.channel_id, text)

		return decision

	def _aggregate(self, stage: StageDefinition, texts: list[str], state: SessionState) -> Any:
		policy = stage.policy
		if policy is AggregationPolicy.NUMERIC_MEAN:
			return numeric_mean_choice(texts, stage.option_count(state), stage.default_index)
		if policy is AggregationPolicy.FIRST_VALID:
			return first_valid_choice(texts, stage.option_count(state), stage.default_index)
		if policy is AggregationPolicy.PREFERENCE_LIST:
			return preference_list(texts, stage.default or [])
		if policy is AggregationPolicy.BUDGET_TIER:
			return budget_tier(texts)
		raise ValueError(f"Unknown aggregation policy: {policy}")

	async def _apologize(self) -> None:
		await apologize(self.channel, self.channel_id)


async def apologize(channel: MessageChannel, channel_id: str) -> None:
	"""Post the session-failure apology. Delivery failures are only logged."""
	try:
		await channel.send(channel_id, APOLOGY)
	except ChannelSendError as e:
		logger.error("Could not deliver apology: %s", e)
