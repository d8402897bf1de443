"""Busy-day derivation, clash detection and pricing for booking windows.

Every function here is pure: results are recomputed from the full inputs on
each call and nothing is cached or mutated.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from batoo.domain.models import (
    AvailabilityCheckResult,
    BookingWindow,
    BusyEvent,
    EventBound,
    PriceTerm,
    PricingResult,
    as_calendar_day,
)


DAY_UNIT = "day"

REASON_END_BEFORE_START = "end before start"
REASON_NON_POSITIVE_TOTAL = "total price is not positive"
REASON_ZERO_LENGTH = "zero-length window"


def expand_range(start: EventBound, end: EventBound) -> list[date]:
    """Return every calendar day from ``start`` to ``end`` inclusive."""
    first = as_calendar_day(start)
    last = as_calendar_day(end)
    # Offsets from ``first`` never step past ``last``, so date.max is safe.
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def derive_busy_dates(events: Iterable[BusyEvent]) -> frozenset[date]:
    """Union of every event's effective day range."""
    busy: set[date] = set()
    for event in events:
        busy.update(expand_range(event.effective_start, event.effective_end))
    return frozenset(busy)


def check_clash(window: BookingWindow, busy: frozenset[date]) -> AvailabilityCheckResult:
    """Report busy days inside the window.

    Booking windows are literal stay days, so both ends are inclusive here
    regardless of how the busy set was derived.
    """
    clashing = tuple(
        day for day in expand_range(window.start_date, window.end_date) if day in busy
    )
    return AvailabilityCheckResult(has_clash=bool(clashing), clashing_dates=clashing)


def compute_price(window: BookingWindow, term: PriceTerm) -> PricingResult:
    """Price a window by whole days; a same-day ``day`` rental counts as one night."""
    start = as_calendar_day(window.start_date)
    end = as_calendar_day(window.end_date)
    unit_price = Decimal(term.unit_price)

    if end < start:
        return PricingResult(
            nights=0,
            total_price=Decimal("0"),
            is_valid=False,
            reason=REASON_END_BEFORE_START,
        )
    if end == start and term.unit == DAY_UNIT:
        # Same-day rental is charged as a single unit.
        return PricingResult(nights=1, total_price=unit_price, is_valid=True)
    if end > start:
        nights = (end - start).days
        total = nights * unit_price
        if total > 0:
            return PricingResult(nights=nights, total_price=total, is_valid=True)
        return PricingResult(
            nights=nights,
            total_price=total,
            is_valid=False,
            reason=REASON_NON_POSITIVE_TOTAL,
        )
    return PricingResult(
        nights=0,
        total_price=Decimal("0"),
        is_valid=False,
        reason=REASON_ZERO_LENGTH,
    )


def _parse_bound(raw: Any, timezone: Optional[tzinfo]) -> Optional[EventBound]:
    if not isinstance(raw, Mapping):
        return None
    if raw.get("dateTime"):
        text = str(raw["dateTime"])
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
        if timezone is not None and moment.tzinfo is not None:
            moment = moment.astimezone(timezone)
        return moment
    if raw.get("date"):
        return date.fromisoformat(str(raw["date"]))
    return None


def normalize_calendar_event(
    raw: Mapping[str, Any],
    timezone: Optional[tzinfo] = None,
) -> Optional[BusyEvent]:
    """Convert a calendar-provider event payload into a BusyEvent.

    Returns None when the payload is not an object or either bound is missing
    or unparseable. Aware timestamps are shifted into ``timezone`` before
    their day is taken.
    """
    if not isinstance(raw, Mapping):
        return None
    try:
        start = _parse_bound(raw.get("start"), timezone)
        end = _parse_bound(raw.get("end"), timezone)
    except (ValueError, OverflowError):
        return None
    if start is None or end is None:
        return None
    return BusyEvent(
        start=start,
        end=end,
        summary=raw.get("summary"),
        event_id=raw.get("id"),
    )


def busy_date_strings(busy: Iterable[date]) -> frozenset[str]:
    return frozenset(day.isoformat() for day in busy)


def format_busy_dates(busy: Iterable[date]) -> list[str]:
    """Sorted long-form labels such as ``Sun, Jun 1, 2025``."""
    return [f"{day:%a}, {day:%b} {day.day}, {day.year}" for day in sorted(busy)]


def format_short_dates(days: Iterable[date]) -> str:
    return ", ".join(f"{day:%b} {day.day}" for day in days)
