"""Google Calendar availability - candidate outing dates for connected participants."""

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Callable, Iterable, Optional

from google.auth.exceptions import RefreshError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..models import ConnectionRecord
from .models import DateOption

logger = logging.getLogger(__name__)

SATURDAY = 5
OUTING_START = time(10, 0)
OUTING_END = time(16, 0)

Busy = list[tuple[datetime, datetime]]


def _saturday_label(position: int) -> str:
	if position == 0:
		return "This Saturday"
	if position == 1:
		return "Next Saturday"
	return f"In {position} Saturdays"


def next_saturdays(start: date, count: int) -> list[date]:
	"""The next count Saturdays strictly after start."""
	offset = (SATURDAY - start.weekday()) % 7 or 7
	first = start + timedelta(days=offset)
	return [first + timedelta(weeks=i) for i in range(count)]


def saturday_options(start: date, count: int = 3) -> list[DateOption]:
	return [
		DateOption(date=day, label=_saturday_label(i), start=OUTING_START.strftime("%H:%M"), end=OUTING_END.strftime("%H:%M"))
		for i, day in enumerate(next_saturdays(start, count))
	]


def _parse_timestamp(value: str) -> datetime:
	return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _build_calendar(credentials: Any) -> Any:
	return build("calendar", "v3", credentials=credentials, cache_discovery=False)


class CalendarAvailability:
	"""Finds Saturdays when every connected participant is free."""

	def __init__(
		self,
		build_service: Callable[[Any], Any] = _build_calendar,
		tz: Optional[tzinfo] = None,
	):
		self.build_service = build_service
		self.tz = tz or datetime.now().astimezone().tzinfo or timezone.utc

	def _window(self, day: date) -> tuple[datetime, datetime]:
		return (
			datetime.combine(day, OUTING_START, tzinfo=self.tz),
			datetime.combine(day, OUTING_END, tzinfo=self.tz),
		)

	def _query_busy(self, credentials: Any, time_min: datetime, time_max: datetime) -> Busy:
		"""Blocking free/busy lookup of one participant's primary calendar."""
		service = self.build_service(credentials)
		result = service.freebusy().query(body={
			"timeMin": time_min.isoformat(),
			"timeMax": time_max.isoformat(),
			"items": [{"id": "primary"}],
		}).execute()

		busy: Busy = []
		for calendar in result.get("calendars", {}).values():
			for slot in calendar.get("busy", []):
				busy.append((_parse_timestamp(slot["start"]), _parse_timestamp(slot["end"])))
		return busy

	async def _busy_for(self, record: ConnectionRecord, time_min: datetime, time_max: datetime) -> Optional[Busy]:
		try:
			return await asyncio.to_thread(self._query_busy, record.credential, time_min, time_max)
		except (HttpError, RefreshError) as e:
			logger.warning("Calendar lookup failed for %s, ignoring: %s", record.participant, e)
			return None

	async def candidate_dates(
		self,
		connections: Iterable[ConnectionRecord],
		start: Optional[date] = None,
		count: int = 3,
		horizon_weeks: int = 6,
	) -> list[DateOption]:
		"""
		Pick up to count Saturdays for the outing.

		Args:
			connections: Participants who connected a calendar
			start: Search after this day (default: today)
			count: Number of dates to offer
			horizon_weeks: How many Saturdays to check

		Returns:
			Saturdays free for every readable calendar, or the next plain
			Saturdays when there are no calendars or no common free day.
		"""
		start = start or date.today()
		fallback = saturday_options(start, count)
		records = list(connections)
		if not records:
			return fallback

		saturdays = next_saturdays(start, max(horizon_weeks, count))
		time_min = self._window(saturdays[0])[0]
		time_max = self._window(saturdays[-1])[1]

		lookups = await asyncio.gather(*(self._busy_for(r, time_min, time_max) for r in records))
		busy_lists = [b for b in lookups if b is not None]
		if not busy_lists:
			logger.warning("No readable calendars, offering the next %d Saturdays", count)
			return fallback

		free: list[date] = []
		for day in saturdays:
			window_start, window_end = self._window(day)
			clash = any(
				busy_start < window_end and busy_end > window_start
				for busy in busy_lists
				for busy_start, busy_end in busy
			)
			if not clash:
				free.append(day)

		if not free:
			logger.warning("No Saturday free for all %d calendars, offering defaults", len(busy_lists))
			return fallback

		logger.info("%d of %d Saturdays free for %d calendars", len(free), len(saturdays), len(busy_lists))
		position = {day: i for i, day in enumerate(saturdays)}
		return [
			DateOption(
				date=day,
				label=_saturday_label(position[day]),
				start=OUTING_START.strftime("%H:%M"),
				end=OUTING_END.strftime("%H:%M"),
			)
			for day in free[:count]
		]
