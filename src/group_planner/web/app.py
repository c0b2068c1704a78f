"""Starlette app with route assembly, and the in-loop uvicorn server."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import uvicorn
from starlette.applications import Starlette
from starlette.routing import Route

from ..oauth import TokenExchanger
from ..quorum import ConnectionQuorumTracker
from .routes import auth_google, index, oauth_callback, status

logger = logging.getLogger(__name__)

STARTUP_CHECK_INTERVAL = 0.05


def build_app(tracker: ConnectionQuorumTracker, exchanger: TokenExchanger) -> Starlette:
	"""Build and return the Starlette ASGI app."""
	routes = [
		Route("/", index),
		Route("/auth/google", auth_google),
		Route("/oauth/callback", oauth_callback),
		Route("/status", status),
	]

	app = Starlette(routes=routes)
	app.state.tracker = tracker
	app.state.exchanger = exchanger
	return app


class AuthorizationServer:
	"""
	Serves the connection pages inside the running event loop.

	Callbacks record connections on the same loop that waits for quorum, so
	the tracker is never touched from another thread.
	"""

	def __init__(
		self,
		app: Starlette,
		host: str = "127.0.0.1",
		port: int = 3000,
		public_url: Optional[str] = None,
	):
		self.host = host
		self.port = port
		self.public_url = (public_url or f"http://localhost:{port}").rstrip("/")
		self._server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	async def start(self) -> None:
		if self.running:
			return
		self._server.should_exit = False
		self._task = asyncio.create_task(self._serve())
		while not self._server.started:
			if self._task.done():
				task, self._task = self._task, None
				# Re-raises the startup failure
				await task
				raise RuntimeError(f"Authorization server stopped during startup on {self.host}:{self.port}")
			await asyncio.sleep(STARTUP_CHECK_INTERVAL)
		logger.info("Authorization server listening on %s:%d (%s)", self.host, self.port, self.public_url)

	async def _serve(self) -> None:
		try:
			await self._server.serve()
		except SystemExit as e:
			# uvicorn exits the process when it cannot bind
			raise RuntimeError(
				f"Authorization server failed to start on {self.host}:{self.port} (exit code {e.code})"
			) from e

	async def stop(self) -> None:
		if self._task is None:
			return
		self._server.should_exit = True
		await self._task
		self._task = None
		logger.info("Authorization server stopped")
