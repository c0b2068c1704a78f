"""Route handlers for the calendar connection flow."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse

from ..errors import AuthorizationExchangeError
from ..oauth import TokenExchanger
from ..quorum import ConnectionQuorumTracker
from .templates import error_page, select_page, success_page

logger = logging.getLogger(__name__)


def get_tracker(request: Request) -> ConnectionQuorumTracker:
	"""Get the ConnectionQuorumTracker from app state."""
	return request.app.state.tracker


def get_exchanger(request: Request) -> TokenExchanger:
	return request.app.state.exchanger


async def index(request: Request) -> HTMLResponse:
	"""Serve the participant selection page."""
	tracker = get_tracker(request)
	roster = list(tracker.roster) if tracker.roster is not None else []
	return HTMLResponse(select_page(roster))


async def auth_google(request: Request) -> HTMLResponse | RedirectResponse:
	"""Redirect to Google with the claimed participant as the OAuth state."""
	participant = request.query_params.get("participant", "").strip()
	if not participant:
		return HTMLResponse(error_page("Please pick your name first."), status_code=400)

	try:
		url = get_exchanger(request).authorization_url(participant)
	except FileNotFoundError as e:
		logger.error("Cannot start authorization: %s", e)
		return HTMLResponse(error_page("Calendar connection is not configured."), status_code=500)
	return RedirectResponse(url, status_code=302)


async def oauth_callback(request: Request) -> HTMLResponse:
	"""Exchange the authorization code and record the connection."""
	code = request.query_params.get("code")
	state = request.query_params.get("state")
	if request.query_params.get("error"):
		logger.warning("Authorization declined for %s: %s", state, request.query_params["error"])
		return HTMLResponse(error_page("Authorization was cancelled."), status_code=400)
	if not code or not state:
		return HTMLResponse(error_page("Missing authorization code."), status_code=400)

	try:
		credential = await get_exchanger(request).exchange(code, state)
	except AuthorizationExchangeError as e:
		logger.error("Token exchange failed: %s", e)
		return HTMLResponse(error_page("Google did not accept the authorization. Please try again."), status_code=502)

	await get_tracker(request).record_connection(state, credential)
	return HTMLResponse(success_page(state))


async def status(request: Request) -> JSONResponse:
	"""Connections recorded so far."""
	records = get_tracker(request).connections()
	return JSONResponse({
		"total_connections": len(records),
		"connections": [
			{
				"participant": r.participant,
				"connected_at": r.connected_at.isoformat(),
			}
			for r in records.values()
		],
	})
