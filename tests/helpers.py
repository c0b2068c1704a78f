"""Shared test fixtures and helpers for group-planner tests."""

import asyncio
from datetime import date
from typing import Callable, Optional, Sequence

from group_planner.aggregation import BudgetTier
from group_planner.channel.base import MessageCallback, Subscription, SubscriptionRegistry
from group_planner.errors import ChannelSendError
from group_planner.models import InboundMessage
from group_planner.planning.models import (
	LocationOption,
	Recommendation,
	RestaurantOption,
	TransportOption,
	WeatherReport,
)

CHAT = "chat-1"

Reply = tuple[str, str]
Responder = Callable[[str], Sequence[Reply]]


class FakeChannel:
	"""
	In-memory MessageChannel.

	Every send is recorded. A responder may return (sender, text) replies for
	a sent message; they are delivered on the next loop iteration, after the
	send has returned.
	"""

	def __init__(
		self,
		responder: Optional[Responder] = None,
		fail_when: Optional[Callable[[str], bool]] = None,
	):
		self.responder = responder
		self.fail_when = fail_when
		self.sent: list[tuple[str, str]] = []
		self.registry = SubscriptionRegistry()
		self.subscribe_calls = 0

	@property
	def texts(self) -> list[str]:
		return [text for _, text in self.sent]

	async def send(self, channel_id: str, text: str) -> None:
		if self.fail_when and self.fail_when(text):
			raise ChannelSendError(channel_id, "send refused")
		self.sent.append((channel_id, text))
		if self.responder:
			replies = list(self.responder(text))
			if replies:
				asyncio.get_running_loop().call_soon(self._deliver_all, channel_id, replies)

	def subscribe(self, channel_id: str, on_message: MessageCallback) -> Subscription:
		self.subscribe_calls += 1
		return self.registry.add(channel_id, on_message)

	def unsubscribe(self, subscription: Subscription) -> None:
		self.registry.remove(subscription)

	def deliver(self, sender: str, text: str, channel_id: str = CHAT, is_self: bool = False) -> int:
		return self.registry.dispatch(InboundMessage(
			channel_id=channel_id,
			sender=sender,
			text=text,
			is_self=is_self,
		))

	def _deliver_all(self, channel_id: str, replies: Sequence[Reply]) -> None:
		for sender, text in replies:
			self.deliver(sender, text, channel_id=channel_id)


def scripted(script: dict[str, Sequence[Reply]]) -> Responder:
	"""Responder that answers any message starting with one of the script's prefixes."""
	def responder(text: str) -> Sequence[Reply]:
		for prefix, replies in script.items():
			if text.startswith(prefix):
				return replies
		return []
	return responder


class FakeClock:
	"""Monotonic clock that only moves when a test advances `now`."""

	def __init__(self, now: float = 100.0):
		self.now = now

	def __call__(self) -> float:
		return self.now


class StaticPlanner:
	"""Planner returning fixed options and recording what it was asked."""

	def __init__(self, weather: Optional[WeatherReport] = None):
		self.weather = weather
		self.calls: list[tuple] = []
		self.locations = [
			LocationOption(name="Golden Gate Park", estimated_cost_per_person=0, activities=["picnic", "walk"]),
			LocationOption(name="de Young Museum", estimated_cost_per_person=15, address="50 Hagiwara Tea Garden Dr"),
			LocationOption(name="Lands End", estimated_cost_per_person=0),
			LocationOption(name="Alcatraz", estimated_cost_per_person=45),
		]
		self.restaurants = [
			RestaurantOption(name="Park Chow", cuisine="American", estimated_cost_per_person=25, rating=4.3),
			RestaurantOption(name="Nopalito", cuisine="Mexican", estimated_cost_per_person=30, rating=4.5),
			RestaurantOption(name="Pasta Pomodoro", cuisine="Italian", estimated_cost_per_person=22),
		]

	async def find_locations(self, city, group_size, preferences, budget):
		self.calls.append(("find_locations", city, group_size, list(preferences), budget))
		return Recommendation[LocationOption](options=self.locations)

	async def find_restaurants(self, city, near, group_size, cuisines, budget):
		self.calls.append(("find_restaurants", city, near, group_size, list(cuisines), budget))
		return Recommendation[RestaurantOption](options=self.restaurants)

	async def find_transport(self, city, origin, destination, group_size, budget):
		self.calls.append(("find_transport", origin, destination, budget))
		cost = 10.0 if budget is BudgetTier.HIGH else 3.0
		return Recommendation[TransportOption](options=[
			TransportOption(name="Muni bus", estimated_cost_per_person=cost, duration="30 min"),
		])

	async def forecast(self, city: str, day: date) -> Optional[WeatherReport]:
		self.calls.append(("forecast", city, day))
		return self.weather
