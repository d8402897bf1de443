"""Per-interaction booking form state.

A session owns one listing's price term, the busy set derived from that
listing's calendar, and the currently selected dates. Every input change
triggers a full recompute of price and clash results.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, Optional

from batoo.domain.availability import (
    busy_date_strings,
    check_clash,
    compute_price,
    derive_busy_dates,
    format_busy_dates,
    format_short_dates,
)
from batoo.domain.models import (
    AvailabilityCheckResult,
    BookingSubmission,
    BookingWindow,
    BusyEvent,
    PriceTerm,
    PricingResult,
)


MESSAGE_END_BEFORE_START_LIVE = "End date must be after start date."
MESSAGE_MISSING_DATES = "Please select start and end dates."
MESSAGE_END_BEFORE_START = "End date cannot be before start date."
MESSAGE_INVALID_DATES = "Please ensure dates are valid for price calculation."
MESSAGE_INVALID_GUESTS = "Please enter at least one guest."


class SessionState(str, Enum):
    EMPTY = "empty"
    DATES_SELECTED = "dates_selected"
    PRICE_COMPUTED = "price_computed"
    CLASH_WARNED = "clash_warned"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


_DATE_STATES = (
    SessionState.DATES_SELECTED,
    SessionState.PRICE_COMPUTED,
    SessionState.CLASH_WARNED,
)


class InvalidSessionTransitionError(Exception):
    """Raised when the caller drives the session out of order."""


ConfirmCallback = Callable[[str], bool]


class BookingFormSession:
    """Booking form state machine for a single listing view."""

    def __init__(
        self,
        listing_id: int,
        price_term: PriceTerm,
        busy_events: Optional[Iterable[BusyEvent]] = None,
    ) -> None:
        self._listing_id = listing_id
        self._price_term = price_term
        self._busy: frozenset[date] = frozenset()
        self._start: Optional[date] = None
        self._end: Optional[date] = None
        self._num_guests = 1
        self._state = SessionState.EMPTY
        self._pricing: Optional[PricingResult] = None
        self._availability = AvailabilityCheckResult(has_clash=False, clashing_dates=())
        self._form_message = ""
        self.update_busy_events(busy_events)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy_dates(self) -> frozenset[date]:
        return self._busy

    @property
    def busy_date_strings(self) -> frozenset[str]:
        return busy_date_strings(self._busy)

    @property
    def displayable_busy_dates(self) -> list[str]:
        return format_busy_dates(self._busy)

    @property
    def pricing(self) -> Optional[PricingResult]:
        return self._pricing

    @property
    def availability(self) -> AvailabilityCheckResult:
        return self._availability

    @property
    def total_price(self) -> Decimal:
        if self._pricing is None:
            return Decimal("0")
        return self._pricing.total_price

    @property
    def form_message(self) -> str:
        return self._form_message

    @property
    def availability_warning(self) -> str:
        if not self._availability.has_clash:
            return ""
        return (
            "Warning: The following date(s) in your selection are busy: "
            f"{format_short_dates(self._availability.clashing_dates)}."
        )

    @property
    def num_guests(self) -> int:
        return self._num_guests

    def update_busy_events(self, events: Optional[Iterable[BusyEvent]]) -> None:
        """Replace the busy set; ``None`` means no calendar data is available."""
        self._busy = derive_busy_dates(events or ())
        self._recompute()

    def set_dates(self, start: Optional[date], end: Optional[date]) -> None:
        self._start = start
        self._end = end
        if start is None or end is None:
            self._state = SessionState.EMPTY
        else:
            self._state = SessionState.DATES_SELECTED
        self._recompute()

    def set_num_guests(self, num_guests: int) -> None:
        self._num_guests = num_guests

    def _recompute(self) -> None:
        if self._start is None or self._end is None:
            self._pricing = None
            self._availability = AvailabilityCheckResult(has_clash=False, clashing_dates=())
            self._form_message = ""
            return

        window = BookingWindow(self._start, self._end, self._num_guests)
        self._pricing = compute_price(window, self._price_term)
        self._availability = check_clash(window, self._busy)
        self._form_message = (
            MESSAGE_END_BEFORE_START_LIVE if self._end < self._start else ""
        )
        if self._state not in _DATE_STATES:
            # Busy data arriving mid-submit refreshes results but not progress.
            return
        self._state = (
            SessionState.CLASH_WARNED
            if self._availability.has_clash
            else SessionState.PRICE_COMPUTED
        )

    def _blocking_message(self) -> Optional[str]:
        if self._start is None or self._end is None:
            return MESSAGE_MISSING_DATES
        if self._num_guests < 1:
            return MESSAGE_INVALID_GUESTS
        if self._pricing is None or not self._pricing.is_valid:
            if self._end < self._start:
                return MESSAGE_END_BEFORE_START
            return MESSAGE_INVALID_DATES
        return None

    def submit(self, confirm: Optional[ConfirmCallback] = None) -> Optional[BookingSubmission]:
        """Gate a submit action.

        Returns the submission payload, or None when blocked by invalid
        dates or by a declined clash confirmation.
        """
        if self._state in (SessionState.SUBMITTING, SessionState.CONFIRMED):
            raise InvalidSessionTransitionError(
                f"Cannot submit while session is {self._state.value}"
            )

        blocking = self._blocking_message()
        if blocking is not None:
            self._form_message = blocking
            return None

        warning = self.availability_warning
        if warning:
            prompt = f"{warning}\nDo you want to proceed with the booking request anyway?"
            if confirm is None or not confirm(prompt):
                return None

        self._form_message = ""
        self._state = SessionState.SUBMITTING
        return BookingSubmission(
            listing_id=self._listing_id,
            start_date=self._start,
            end_date=self._end,
            num_guests=self._num_guests,
            total_price=self.total_price,
        )

    def resolve(self, succeeded: bool) -> SessionState:
        if self._state is not SessionState.SUBMITTING:
            raise InvalidSessionTransitionError(
                f"Cannot resolve a booking from state {self._state.value}"
            )
        self._state = SessionState.CONFIRMED if succeeded else SessionState.FAILED
        return self._state
