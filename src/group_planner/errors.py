"""Exceptions raised by the planning session.

Collection timeouts and malformed replies are not errors: collectors return
whatever arrived, and aggregation falls back to stage defaults.
"""


class GroupPlannerError(Exception):
	"""Base exception for group-planner errors."""
	pass


class ChannelSendError(GroupPlannerError):
	"""Raised when an outbound message could not be delivered to the chat."""

	def __init__(self, channel_id: str, reason: str):
		self.channel_id = channel_id
		self.reason = reason
		super().__init__(f"Failed to send to {channel_id}: {reason}")


class CollaboratorError(GroupPlannerError):
	"""Raised when a planning collaborator cannot produce a recommendation."""
	pass


class CollaboratorParseError(CollaboratorError):
	"""Raised when a collaborator payload stays malformed after repair."""

	def __init__(self, message: str, payload: str = ""):
		self.payload = payload
		super().__init__(message)


class AuthorizationExchangeError(GroupPlannerError):
	"""Raised when an authorization code cannot be exchanged for a credential."""

	def __init__(self, participant: str, reason: str):
		self.participant = participant
		self.reason = reason
		super().__init__(f"Authorization exchange failed for {participant}: {reason}")
