"""Booking quote and creation workflow for a listing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from batoo.domain.booking_session import BookingFormSession
from batoo.domain.constraints import validate_booking_window, validate_price_term
from batoo.domain.models import Booking, BookingWindow, BusyEvent, Listing, OwnerBooking, PriceTerm
from batoo.repository.data_repository import DataRepository
from batoo.services.calendar_service import CalendarService, build_booking_event
from batoo.services.listing_service import ListingNotFoundError
from batoo.utils.config import Settings, get_settings
from batoo.utils.logger import get_logger


logger = get_logger(__name__)


class BookingError(Exception):
    """Base exception for booking workflow failures."""


class BookingValidationError(BookingError):
    """Raised when the booking window or guest count is not bookable."""


class BookingClashError(BookingError):
    """Raised when busy days overlap the window and no confirmation was given."""


class ListingUnavailableError(BookingError):
    """Raised when the listing is switched off for booking."""


@dataclass(frozen=True)
class BookingOutcome:
    booking: Booking
    message: str
    calendar_event_link: Optional[str]


class BookingService:
    """Computes quotes and creates bookings against calendar availability."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        calendar_service: Optional[CalendarService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._calendar_service = calendar_service or CalendarService(self._settings)

    def _get_listing(self, listing_id: int) -> Listing:
        listing = self._repository.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError("Listing not found.")
        return listing

    def _calendar_id(self, listing: Listing) -> str:
        return listing.google_calendar_id or self._settings.calendar_default_id

    def _busy_events(self, listing: Listing) -> list[BusyEvent]:
        return self._calendar_service.fetch_busy_events(self._calendar_id(listing))

    def _open_session(self, listing: Listing) -> BookingFormSession:
        term = PriceTerm.from_listing(listing)
        try:
            validate_price_term(term)
        except ValueError as exc:
            raise BookingValidationError(str(exc)) from exc
        return BookingFormSession(
            listing_id=listing.listing_id,
            price_term=term,
            busy_events=self._busy_events(listing),
        )

    def _prepare(
        self,
        listing: Listing,
        start_date: Optional[date],
        end_date: Optional[date],
        num_guests: int,
    ) -> BookingFormSession:
        if start_date is not None and end_date is not None:
            try:
                validate_booking_window(BookingWindow(start_date, end_date, num_guests))
            except ValueError as exc:
                raise BookingValidationError(str(exc)) from exc
        session = self._open_session(listing)
        session.set_num_guests(num_guests)
        session.set_dates(start_date, end_date)
        return session

    def get_availability(self, listing_id: int) -> dict[str, Any]:
        listing = self._get_listing(listing_id)
        session = self._open_session(listing)
        return {
            "listing_id": listing.listing_id,
            "calendar_connected": self._calendar_service.is_configured,
            "busy_dates": sorted(session.busy_date_strings),
            "displayable_busy_dates": session.displayable_busy_dates,
        }

    def quote(
        self,
        listing_id: int,
        start_date: Optional[date],
        end_date: Optional[date],
        num_guests: int = 1,
    ) -> dict[str, Any]:
        listing = self._get_listing(listing_id)
        session = self._prepare(listing, start_date, end_date, num_guests)
        pricing = session.pricing
        return {
            "listing_id": listing.listing_id,
            "state": session.state.value,
            "nights": pricing.nights if pricing else 0,
            "total_price": session.total_price,
            "is_valid": bool(pricing and pricing.is_valid),
            "reason": pricing.reason if pricing else None,
            "has_clash": session.availability.has_clash,
            "clashing_dates": [day.isoformat() for day in session.availability.clashing_dates],
            "form_message": session.form_message,
            "availability_warning": session.availability_warning,
        }

    def create_booking(
        self,
        *,
        user_id: str,
        listing_id: int,
        start_date: Optional[date],
        end_date: Optional[date],
        num_guests: int = 1,
        confirm_clash: bool = False,
        guest_label: Optional[str] = None,
    ) -> BookingOutcome:
        listing = self._get_listing(listing_id)
        if not listing.available:
            raise ListingUnavailableError(
                "This listing is currently not available for booking."
            )

        session = self._prepare(listing, start_date, end_date, num_guests)
        submission = session.submit(confirm=lambda _prompt: confirm_clash)
        if submission is None:
            if session.form_message:
                raise BookingValidationError(session.form_message)
            raise BookingClashError(session.availability_warning)

        try:
            booking = self._repository.create_booking(
                listing_id=submission.listing_id,
                user_id=user_id,
                start_date=submission.start_date,
                end_date=submission.end_date,
                total_price=submission.total_price,
                num_guests=submission.num_guests,
            )
        except Exception:
            session.resolve(False)
            raise
        session.resolve(True)
        logger.info("Booking %s created for listing %s", booking.booking_id, listing_id)

        message = f"Booking successful! Confirmation ID: {booking.booking_id}."
        event_link = None
        if self._calendar_service.is_configured:
            created = self._calendar_service.create_event(
                build_booking_event(listing, booking, guest_label or "a user"),
                self._calendar_id(listing),
            )
            if created and created.get("htmlLink"):
                event_link = str(created["htmlLink"])
                message += " Also added to Google Calendar."
            else:
                message += (
                    " (Failed to add to Google Calendar - please check permissions"
                    " or try again later)"
                )
        elif listing.google_calendar_id:
            message += (
                " (Sign in to Google to add this booking to your calendar"
                " automatically next time!)"
            )

        return BookingOutcome(booking=booking, message=message, calendar_event_link=event_link)

    def list_owner_bookings(self, owner_id: str) -> list[OwnerBooking]:
        return self._repository.list_bookings_for_owner(owner_id)
