"""Core dataclasses shared by collectors, trackers and the stage orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Optional

# Sender identity as reported by the channel. Equal only on exact string match.
Participant = str


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InboundMessage:
	"""A message observed on a chat channel."""
	channel_id: str
	sender: Participant
	text: str
	is_self: bool = False
	received_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Response:
	"""The reply a participant gave to one stage's prompt."""
	sender: Participant
	text: str
	received_at: datetime = field(default_factory=utcnow)


@dataclass
class ResponseSet:
	"""
	Deduplicated replies for a single stage.

	Holds at most one Response per sender: the first one received is kept
	and later messages from the same sender are ignored for this stage.
	Iteration order is arrival order.
	"""
	expected_minimum: int
	timeout: float
	responses: dict[Participant, Response] = field(default_factory=dict)

	def add(self, response: Response) -> bool:
		"""Record a response. Returns False when the sender already replied."""
		if response.sender in self.responses:
			return False
		self.responses[response.sender] = response
		return True

	@property
	def reached_minimum(self) -> bool:
		return len(self.responses) >= self.expected_minimum

	def senders(self) -> list[Participant]:
		return list(self.responses)

	def texts(self) -> list[str]:
		return [r.text for r in self.responses.values()]

	def as_dict(self) -> dict[Participant, str]:
		return {sender: r.text for sender, r in self.responses.items()}

	def __len__(self) -> int:
		return len(self.responses)

	def __iter__(self) -> Iterator[Response]:
		return iter(self.responses.values())


@dataclass
class ConnectionRecord:
	"""Evidence that a participant completed the calendar authorization step."""
	participant: Participant
	credential: Any
	connected_at: datetime = field(default_factory=utcnow)


class Roster:
	"""Fixed, ordered set of participants expected in a session."""

	def __init__(self, participants: Iterable[Participant]):
		members: list[Participant] = []
		for p in participants:
			if p not in members:
				members.append(p)
		if not members:
			raise ValueError("Roster needs at least one participant")
		self._members = tuple(members)

	@property
	def members(self) -> tuple[Participant, ...]:
		return self._members

	@property
	def size(self) -> int:
		return len(self._members)

	def __contains__(self, participant: object) -> bool:
		return participant in self._members

	def __iter__(self) -> Iterator[Participant]:
		return iter(self._members)

	def __len__(self) -> int:
		return len(self._members)

	def __repr__(self) -> str:
		return f"Roster({list(self._members)!r})"


@dataclass
class SessionState:
	"""Everything resolved so far in a planning session."""
	roster_size: int
	stage_index: int = 0
	accumulated: dict[str, Any] = field(default_factory=dict)
	results: dict[str, Any] = field(default_factory=dict)
	# Raw replies per stage (votes as booleans for confirmation stages).
	# Only the console summary reads these; later stages read `accumulated` and `results`.
	responses: dict[str, dict[Participant, Any]] = field(default_factory=dict)
	log: list[str] = field(default_factory=list)

	def value(self, stage_id: str, default: Any = None) -> Any:
		return self.accumulated.get(stage_id, default)

	def result(self, stage_id: str, default: Any = None) -> Any:
		return self.results.get(stage_id, default)

	def record(self, message: str) -> None:
		"""Append a timestamped entry to the conversation log."""
		self.log.append(f"[{utcnow().isoformat()}] {message}")


@dataclass
class SessionResult:
	"""Outcome of a completed stage pipeline."""
	state: SessionState
	artifact: Optional[Any] = None
	# Decision of the last confirmation stage that ran, if any
	confirmed: Optional[bool] = None
