"""Message channel interface consumed by the planning core."""

import uuid
from dataclasses import dataclass, field
from typing import Callable, Protocol, runtime_checkable

from ..models import InboundMessage

MessageCallback = Callable[[InboundMessage], None]


@dataclass(frozen=True)
class Subscription:
	"""Disposable handle returned by MessageChannel.subscribe."""
	channel_id: str
	callback: MessageCallback = field(compare=False, repr=False)
	id: str = field(default_factory=lambda: uuid.uuid4().hex)


@runtime_checkable
class MessageChannel(Protocol):
	"""
	Transport for a group chat.

	The core never interprets channel-specific addressing: channel ids are
	passed through as opaque strings.
	"""

	async def send(self, channel_id: str, text: str) -> None:
		"""Deliver text to the chat. Raises ChannelSendError on failure."""
		...

	def subscribe(self, channel_id: str, on_message: MessageCallback) -> Subscription:
		"""Start delivering inbound messages for channel_id to on_message."""
		...

	def unsubscribe(self, subscription: Subscription) -> None:
		"""Stop delivering messages to a subscription. Unknown handles are ignored."""
		...


class SubscriptionRegistry:
	"""Per-chat subscription bookkeeping for channel implementations."""

	def __init__(self) -> None:
		self._subscriptions: dict[str, Subscription] = {}

	def add(self, channel_id: str, on_message: MessageCallback) -> Subscription:
		subscription = Subscription(channel_id=channel_id, callback=on_message)
		self._subscriptions[subscription.id] = subscription
		return subscription

	def remove(self, subscription: Subscription) -> None:
		self._subscriptions.pop(subscription.id, None)

	def dispatch(self, message: InboundMessage) -> int:
		"""Hand a message to every subscription for its chat. Returns the count."""
		targets = [
			s for s in self._subscriptions.values()
			if s.channel_id == message.channel_id
		]
		for subscription in targets:
			subscription.callback(message)
		return len(targets)

	def __len__(self) -> int:
		return len(self._subscriptions)
