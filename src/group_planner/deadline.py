"""Deadline-bounded waiting shared by the collector and the quorum tracker."""

import time
from typing import Callable, Optional

Clock = Callable[[], float]


class Deadline:
	"""
	A point in time after which a wait must give up.

	The clock is injectable so waits can be driven by a fake clock in tests.
	"""

	def __init__(self, timeout: float, clock: Optional[Clock] = None):
		if timeout < 0:
			raise ValueError(f"timeout must be >= 0, got {timeout}")
		self._clock = clock or time.monotonic
		self.timeout = timeout
		self.started_at = self._clock()
		self.expires_at = self.started_at + timeout

	def remaining(self) -> float:
		"""Seconds left, never negative."""
		return max(0.0, self.expires_at - self._clock())

	def next_wait(self, interval: float) -> float:
		"""How long the next bounded wait may block: the re-check interval or less."""
		return min(interval, self.remaining())

	def elapsed(self) -> float:
		return self._clock() - self.started_at

	@property
	def expired(self) -> bool:
		return self.remaining() <= 0
