"""Google OAuth for the calendar connection step."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

from google_auth_oauthlib.flow import Flow

from .errors import AuthorizationExchangeError
from .models import Participant

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = [
	"https://www.googleapis.com/auth/calendar.readonly",
	"https://www.googleapis.com/auth/userinfo.email",
]

# Google adds "openid" to granted scopes; oauthlib would otherwise reject the token
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")


class TokenExchanger(Protocol):
	"""Turns a participant claim into a provider URL and a callback code into a credential."""

	def authorization_url(self, participant: Participant) -> str:
		...

	async def exchange(self, code: str, state: str) -> Any:
		...


class GoogleTokenExchanger:
	"""
	Web-server OAuth flow against a Google client secrets file.

	The participant name travels as the OAuth state. It is whatever the
	browser sent and is not verified against the Google account.
	"""

	def __init__(
		self,
		client_secrets_file: Path,
		redirect_uri: str,
		scopes: Optional[Sequence[str]] = None,
	):
		self.client_secrets_file = Path(client_secrets_file)
		self.redirect_uri = redirect_uri
		self.scopes = list(scopes or CALENDAR_SCOPES)
		# PKCE verifiers by state, needed again when the callback arrives
		self._verifiers: dict[str, Optional[str]] = {}

	def _flow(self, code_verifier: Optional[str] = None) -> Flow:
		if not self.client_secrets_file.exists():
			raise FileNotFoundError(f"Client secrets file not found: {self.client_secrets_file}")
		return Flow.from_client_secrets_file(
			str(self.client_secrets_file),
			scopes=self.scopes,
			redirect_uri=self.redirect_uri,
			code_verifier=code_verifier,
		)

	def authorization_url(self, participant: Participant) -> str:
		flow = self._flow()
		url, _ = flow.authorization_url(
			access_type="offline",
			prompt="consent",
			state=participant,
		)
		self._verifiers[participant] = flow.code_verifier
		logger.info("Authorization started for %s", participant)
		return url

	async def exchange(self, code: str, state: str) -> Any:
		"""
		Exchange an authorization code for credentials.

		Raises:
			AuthorizationExchangeError: If the provider rejects the code
		"""
		verifier = self._verifiers.pop(state, None)
		try:
			flow = self._flow(code_verifier=verifier)
			await asyncio.to_thread(flow.fetch_token, code=code)
		except Exception as e:
			raise AuthorizationExchangeError(state, str(e)) from e
		return flow.credentials
