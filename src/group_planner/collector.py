"""
Response collection for a single stage.

A collector posts one prompt to the group chat and gathers the first reply
from each sender until enough senders have answered or the stage times out.
Inbound messages reach the collector through a queue owned by the call, so
the drain loop is the only writer into the stage's ResponseSet.
"""

import asyncio
import logging
from typing import Optional

from .channel.base import MessageChannel
from .deadline import Clock, Deadline
from .models import InboundMessage, Response, ResponseSet

logger = logging.getLogger(__name__)

# Upper bound on a single queue wait before the deadline is re-checked
MESSAGE_POLL_INTERVAL = 1.0


class ResponseCollector:
	"""Collects deduplicated replies to a prompt from one chat."""

	def __init__(
		self,
		channel: MessageChannel,
		channel_id: str,
		poll_interval: float = MESSAGE_POLL_INTERVAL,
		clock: Optional[Clock] = None,
	):
		self.channel = channel
		self.channel_id = channel_id
		self.poll_interval = poll_interval
		self._clock = clock

	async def collect(
		self,
		prompt_text: str,
		timeout: float,
		min_responses: int = 1,
	) -> ResponseSet:
		"""
		Send a prompt and collect replies.

		Args:
			prompt_text: Message sent to the chat, exactly once
			timeout: Seconds to wait before returning what was collected
			min_responses: Return early once this many senders have replied

		Returns:
			ResponseSet with one Response per replying sender. Fewer than
			min_responses (possibly none) after a timeout is a normal result.

		Raises:
			ChannelSendError: If the prompt could not be sent
		"""
		response_set = ResponseSet(expected_minimum=min_responses, timeout=timeout)
		queue: asyncio.Queue[InboundMessage] = asyncio.Queue()

		# Subscribe before sending so a fast reply can't slip past
		subscription = self.channel.subscribe(self.channel_id, queue.put_nowait)
		try:
			deadline = Deadline(timeout, self._clock)
			await self.channel.send(self.channel_id, prompt_text)
			logger.info(
				"Waiting for replies in %s (need %d, timeout %.0fs)",
				self.channel_id, min_responses, timeout,
			)

			while not response_set.reached_minimum and not deadline.expired:
				try:
					message = await asyncio.wait_for(
						queue.get(),
						timeout=deadline.next_wait(self.poll_interval),
					)
				except asyncio.TimeoutError:
					continue
				self._accept(response_set, message)

			# Replies already queued when the wait ends still count for this stage
			while not queue.empty():
				self._accept(response_set, queue.get_nowait())
		finally:
			self.channel.unsubscribe(subscription)

		if response_set.reached_minimum:
			logger.info("Collected %d reply(ies)", len(response_set))
		else:
			logger.warning(
				"Timed out after %.1fs with %d/%d reply(ies)",
				deadline.elapsed(), len(response_set), min_responses,
			)
		return response_set

	def _accept(self, response_set: ResponseSet, message: InboundMessage) -> bool:
		if message.is_self:
			return False

		added = response_set.add(Response(
			sender=message.sender,
			text=message.text,
			received_at=message.received_at,
		))
		if added:
			logger.info("Reply from %s: %r", message.sender, message.text[:50])
		else:
			logger.debug("Ignoring repeat message from %s", message.sender)
		return added
