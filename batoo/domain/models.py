"""Domain models for listings, bookings and availability computation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union


# A bound is a date for all-day events and a datetime for timed events.
EventBound = Union[date, datetime]


def as_calendar_day(value: EventBound) -> date:
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class BusyEvent:
    start: EventBound
    end: EventBound
    summary: Optional[str] = None
    event_id: Optional[str] = None

    @property
    def is_all_day(self) -> bool:
        return not isinstance(self.end, datetime)

    @property
    def effective_start(self) -> date:
        return as_calendar_day(self.start)

    @property
    def effective_end(self) -> date:
        # All-day ends are exclusive; timed ends cover the day they fall on.
        if self.is_all_day:
            return self.end - timedelta(days=1)
        return as_calendar_day(self.end)


@dataclass(frozen=True)
class BookingWindow:
    start_date: date
    end_date: date
    num_guests: int = 1


@dataclass(frozen=True)
class PriceTerm:
    unit_price: Decimal
    unit: str = "day"

    @classmethod
    def from_listing(cls, listing: "Listing") -> "PriceTerm":
        return cls(unit_price=listing.price, unit=listing.price_per_unit)


@dataclass(frozen=True)
class PricingResult:
    nights: int
    total_price: Decimal
    is_valid: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityCheckResult:
    has_clash: bool
    clashing_dates: tuple[date, ...]


@dataclass(frozen=True)
class BookingSubmission:
    listing_id: int
    start_date: date
    end_date: date
    num_guests: int
    total_price: Decimal


@dataclass(frozen=True)
class Listing:
    listing_id: int
    owner_id: str
    name: str
    listing_type: str
    description: str
    price: Decimal
    price_per_unit: str
    location: str
    image_url: Optional[str]
    available: bool
    google_calendar_id: Optional[str]
    created_at: str


@dataclass(frozen=True)
class Booking:
    booking_id: int
    listing_id: int
    user_id: str
    start_date: date
    end_date: date
    total_price: Decimal
    num_guests: int
    status: str
    created_at: str


@dataclass(frozen=True)
class OwnerBooking:
    booking: Booking
    listing_name: str
    listing_type: str


@dataclass(frozen=True)
class Review:
    review_id: int
    listing_id: int
    user_id: str
    rating: int
    comment: str
    created_at: str


@dataclass(frozen=True)
class RatingSummary:
    average_rating: float
    review_count: int


@dataclass(frozen=True)
class Message:
    message_id: int
    sender_id: str
    receiver_id: str
    content: str
    created_at: str


@dataclass(frozen=True)
class Conversation:
    peer_id: str
