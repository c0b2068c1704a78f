"""Chat transports the planner talks through."""

from .base import MessageCallback, MessageChannel, Subscription, SubscriptionRegistry

__all__ = [
	"MessageCallback",
	"MessageChannel",
	"Subscription",
	"SubscriptionRegistry",
]
