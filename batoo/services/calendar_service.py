"""Calendar provider client used for listing availability.

Availability checks are best-effort: any failure to reach the calendar is
logged and reported as "no busy events", never raised to the booking flow.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from batoo.domain.availability import normalize_calendar_event
from batoo.domain.models import Booking, BusyEvent, Listing
from batoo.utils.config import Settings, get_settings
from batoo.utils.logger import get_logger


logger = get_logger(__name__)


def _events_path(calendar_id: str) -> str:
    return f"/calendars/{quote(calendar_id, safe='')}/events"


class CalendarService:
    """Thin wrapper over the calendar events REST API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._timezone = self._resolve_timezone(self._settings.calendar_timezone)

    @staticmethod
    def _resolve_timezone(name: Optional[str]) -> Optional[ZoneInfo]:
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError:
            logger.warning("Unknown calendar timezone %s; using event offsets", name)
            return None

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.calendar_api_key or self._settings.calendar_access_token)

    def _client(self) -> httpx.Client:
        headers: dict[str, str] = {}
        if self._settings.calendar_access_token:
            headers["Authorization"] = f"Bearer {self._settings.calendar_access_token}"
        return httpx.Client(
            base_url=self._settings.calendar_api_base_url,
            headers=headers,
            timeout=self._settings.calendar_timeout_seconds,
            transport=self._transport,
        )

    def _auth_params(self) -> dict[str, str]:
        if self._settings.calendar_api_key:
            return {"key": self._settings.calendar_api_key}
        return {}

    def list_upcoming_events(
        self,
        calendar_id: Optional[str] = None,
        *,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        if not self.is_configured:
            return []

        target_calendar = calendar_id or self._settings.calendar_default_id
        params: dict[str, Any] = {
            **self._auth_params(),
            "timeMin": (time_min or datetime.now(timezone.utc)).isoformat(),
            "showDeleted": "false",
            "singleEvents": "true",
            "maxResults": max_results or self._settings.calendar_max_results,
            "orderBy": "startTime",
        }
        if time_max is not None:
            params["timeMax"] = time_max.isoformat()

        try:
            with self._client() as client:
                response = client.get(_events_path(target_calendar), params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Calendar fetch failed for %s: %s", target_calendar, exc)
            return []

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            if items is not None:
                logger.warning("Ignoring calendar items of type %s", type(items).__name__)
            return []
        return items

    def fetch_busy_events(self, calendar_id: Optional[str] = None) -> list[BusyEvent]:
        """Busy events for the configured lookahead window starting now."""
        now = datetime.now(timezone.utc)
        raw_events = self.list_upcoming_events(
            calendar_id,
            time_min=now,
            time_max=now + timedelta(days=self._settings.calendar_lookahead_days),
        )
        events: list[BusyEvent] = []
        for raw in raw_events:
            if not isinstance(raw, dict):
                logger.warning("Skipping calendar item of type %s", type(raw).__name__)
                continue
            event = normalize_calendar_event(raw, self._timezone)
            if event is None:
                logger.warning("Skipping malformed calendar event %s", raw.get("id"))
                continue
            events.append(event)
        return events

    def create_event(
        self,
        details: dict[str, Any],
        calendar_id: Optional[str] = None,
    ) -> Optional[dict[str, Any]]:
        if not self.is_configured:
            return None

        target_calendar = calendar_id or self._settings.calendar_default_id
        try:
            with self._client() as client:
                response = client.post(
                    _events_path(target_calendar),
                    params=self._auth_params(),
                    json=details,
                )
                response.raise_for_status()
                created = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Calendar event creation failed for %s: %s", target_calendar, exc)
            return None

        if not isinstance(created, dict):
            return None
        logger.info("Calendar event created: %s", created.get("htmlLink"))
        return created


def build_booking_event(listing: Listing, booking: Booking, guest_label: str) -> dict[str, Any]:
    """All-day calendar event covering a booking; the end date is exclusive."""
    return {
        "summary": f"Booking for {listing.name}",
        "description": (
            f"Booked by {guest_label}.\n"
            f"Guests: {booking.num_guests}.\n"
            f"BATOO Booking ID: {booking.booking_id}"
        ),
        "start": {"date": booking.start_date.isoformat()},
        "end": {"date": (booking.end_date + timedelta(days=1)).isoformat()},
        "location": listing.location or "",
    }
