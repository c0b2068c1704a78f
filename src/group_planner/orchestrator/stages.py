"""Static stage definitions for the planning pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from ..aggregation import AggregationPolicy
from ..models import SessionState

PromptRenderer = Callable[[SessionState], str]
OptionCounter = Callable[[SessionState], int]
Collaborator = Callable[[Any, SessionState], Awaitable[Any]]
Announcer = Callable[[Any, SessionState], Optional[str]]
Condition = Callable[[SessionState], bool]


class StageKind(str, Enum):
	"""Which waiting primitive a stage suspends on."""
	COLLECT = "collect"
	CONFIRM = "confirm"


@dataclass(frozen=True)
class StageDefinition:
	"""
	One question in the pipeline.

	Attributes:
		id: Key under which the resolved value is stored
		prompt: Renders the question from everything resolved so far
		timeout: Seconds to wait for replies
		policy: Aggregation rule (COLLECT stages only)
		kind: COLLECT for free replies, CONFIRM for a yes/no vote
		min_responses: Return early once this many people replied
		default: Fallback when no reply is usable (index for numeric policies,
			list for preference lists)
		option_count: Number of numbered options offered (numeric policies)
		collaborator: Called with the resolved value; its result is stored
		announce: Message to post once the stage is resolved, or None
		when: Stage runs only if this returns True
	"""
	id: str
	prompt: PromptRenderer
	timeout: float
	policy: Optional[AggregationPolicy] = None
	kind: StageKind = StageKind.COLLECT
	min_responses: int = 1
	default: Any = None
	option_count: Optional[OptionCounter] = None
	collaborator: Optional[Collaborator] = None
	announce: Optional[Announcer] = None
	when: Optional[Condition] = None

	def __post_init__(self) -> None:
		if self.timeout < 0:
			raise ValueError(f"Stage {self.id}: timeout must be >= 0")
		if self.kind is StageKind.COLLECT and self.policy is None:
			raise ValueError(f"Stage {self.id}: collect stages need an aggregation policy")
		if self.policy in (AggregationPolicy.NUMERIC_MEAN, AggregationPolicy.FIRST_VALID):
			if self.option_count is None:
				raise ValueError(f"Stage {self.id}: numeric choices need option_count")

	@property
	def default_index(self) -> int:
		return self.default if isinstance(self.default, int) else 0
