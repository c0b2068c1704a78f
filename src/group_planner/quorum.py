"""
Connection quorum for the calendar authorization step.

Participants authorize out of band (through the web surface). Each completed
callback records a ConnectionRecord; the session waits until a fraction of
the roster has connected or the wait times out, and proceeds with whoever
connected either way.
"""

import asyncio
import logging
import math
from enum import Enum
from typing import Any, Iterable, Optional

from .channel.base import MessageChannel
from .deadline import Clock, Deadline
from .errors import ChannelSendError
from .models import ConnectionRecord, Participant, Roster

logger = logging.getLogger(__name__)

# Upper bound on a single wait before the connection map is re-checked
CONNECTION_POLL_INTERVAL = 2.0


class QuorumOutcome(str, Enum):
	"""How a wait_for_quorum call ended."""
	QUORUM_REACHED = "quorum_reached"
	TIMED_OUT_PARTIAL = "timed_out_partial"
	TIMED_OUT_EMPTY = "timed_out_empty"


class ConnectionQuorumTracker:
	"""
	Tracks which roster members completed authorization.

	A participant only ever moves from unconnected to connected; a repeated
	callback for the same participant replaces the stored credential.
	"""

	def __init__(
		self,
		channel: Optional[MessageChannel] = None,
		channel_id: Optional[str] = None,
		poll_interval: float = CONNECTION_POLL_INTERVAL,
		clock: Optional[Clock] = None,
	):
		self.channel = channel
		self.channel_id = channel_id
		self.poll_interval = poll_interval
		self._clock = clock

		self._roster: Optional[Roster] = None
		self._connections: dict[Participant, ConnectionRecord] = {}
		self._changed = asyncio.Event()
		self.last_outcome: Optional[QuorumOutcome] = None

	def register_expected(self, roster: Roster | Iterable[Participant]) -> None:
		"""Record the participants eligible to authorize."""
		self._roster = roster if isinstance(roster, Roster) else Roster(roster)
		logger.info("Expecting connections from %s", ", ".join(self._roster))

	@property
	def roster(self) -> Optional[Roster]:
		return self._roster

	async def record_connection(self, participant: Participant, credential: Any) -> ConnectionRecord:
		"""
		Store (or replace) a participant's credential and tell the group.

		Participants outside the roster are recorded but never count toward
		the quorum.
		"""
		record = ConnectionRecord(participant=participant, credential=credential)
		reauthorized = participant in self._connections
		self._connections[participant] = record
		self._changed.set()

		if reauthorized:
			logger.info("Calendar re-authorized: %s", participant)
		else:
			logger.info("Calendar connected: %s", participant)
		if self._roster is not None and participant not in self._roster:
			logger.warning("Connection from %s who is not on the roster", participant)

		if self._roster is not None:
			count = f"{len(self._connected_roster())}/{self._roster.size}"
		else:
			count = str(len(self._connections))
		await self._notify(f"✅ {participant} connected their calendar! ({count} connected)")
		return record

	async def wait_for_quorum(
		self,
		timeout: float,
		min_fraction: float = 0.5,
	) -> dict[Participant, ConnectionRecord]:
		"""
		Wait until enough roster members have connected.

		Args:
			timeout: Seconds to wait at most
			min_fraction: Fraction of the roster required (0..1), rounded up

		Returns:
			Connection records for connected roster members, in roster order.
			Returned on timeout too; partial and empty results are valid.
		"""
		if self._roster is None:
			raise RuntimeError("register_expected() must be called before wait_for_quorum()")
		if not 0 <= min_fraction <= 1:
			raise ValueError(f"min_fraction must be within [0, 1], got {min_fraction}")

		roster = self._roster
		min_required = math.ceil(roster.size * min_fraction)
		deadline = Deadline(timeout, self._clock)
		logger.info(
			"Waiting for at least %d/%d connections (timeout %.0fs)",
			min_required, roster.size, timeout,
		)

		while True:
			connected = self._connected_roster()
			if len(connected) >= min_required:
				self.last_outcome = QuorumOutcome.QUORUM_REACHED
				missing = roster.size - len(connected)
				logger.info("Connection quorum reached (%d/%d)", len(connected), roster.size)
				if missing:
					logger.info("Proceeding without %d participant(s)", missing)
				return connected

			if deadline.expired:
				if connected:
					self.last_outcome = QuorumOutcome.TIMED_OUT_PARTIAL
					logger.warning(
						"Timed out after %.1fs with %d/%d connected (needed %d), proceeding with partial data",
						deadline.elapsed(), len(connected), roster.size, min_required,
					)
				else:
					self.last_outcome = QuorumOutcome.TIMED_OUT_EMPTY
					logger.warning("Timed out after %.1fs with no connections", deadline.elapsed())
				return connected

			# Nothing awaits between the check above and clear(), so no wakeup is lost
			self._changed.clear()
			try:
				await asyncio.wait_for(
					self._changed.wait(),
					timeout=deadline.next_wait(self.poll_interval),
				)
			except asyncio.TimeoutError:
				pass

	def connections(self) -> dict[Participant, ConnectionRecord]:
		"""All recorded connections, including participants off the roster."""
		return dict(self._connections)

	@property
	def connected_count(self) -> int:
		return len(self._connections)

	def credential_for(self, participant: Participant) -> Optional[Any]:
		record = self._connections.get(participant)
		return record.credential if record else None

	def _connected_roster(self) -> dict[Participant, ConnectionRecord]:
		assert self._roster is not None
		return {
			p: self._connections[p]
			for p in self._roster
			if p in self._connections
		}

	async def _notify(self, text: str) -> None:
		if not self.channel or not self.channel_id:
			return
		try:
			await self.channel.send(self.channel_id, text)
		except ChannelSendError as e:
			logger.warning("Could not post connection update: %s", e)
