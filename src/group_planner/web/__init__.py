"""Web surface for the calendar connection step."""

from __future__ import annotations

import asyncio
import logging

from ..config import Config
from ..models import Participant
from ..oauth import GoogleTokenExchanger
from ..quorum import ConnectionQuorumTracker
from .app import AuthorizationServer, build_app

logger = logging.getLogger(__name__)


def create_server(config: Config, tracker: ConnectionQuorumTracker) -> AuthorizationServer:
	"""Authorization server wired to Google with the configured client secrets."""
	exchanger = GoogleTokenExchanger(config.client_secrets_file, config.redirect_uri)
	return AuthorizationServer(
		build_app(tracker, exchanger),
		host=config.auth_host,
		port=config.auth_port,
		public_url=config.auth_url,
	)


async def serve_until_cancelled(config: Config, roster: list[Participant]) -> None:
	"""Run the authorization surface on its own until cancelled."""
	tracker = ConnectionQuorumTracker()
	tracker.register_expected(roster)
	server = create_server(config, tracker)
	await server.start()
	try:
		await asyncio.Event().wait()
	finally:
		await server.stop()


def run_auth_server(config: Config, roster: list[Participant]) -> None:
	"""Run the authorization server standalone (Ctrl+C to stop)."""
	print(f"Calendar connection page at {config.auth_url}")
	print("Press Ctrl+C to stop.")
	try:
		asyncio.run(serve_until_cancelled(config, roster))
	except KeyboardInterrupt:
		logger.info("Authorization server interrupted")


__all__ = [
	"AuthorizationServer",
	"build_app",
	"create_server",
	"run_auth_server",
	"serve_until_cancelled",
]
