"""Domain-level validation rules for listings, bookings, reviews and messages."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from batoo.domain.models import BookingWindow, PriceTerm


def validate_booking_window(window: BookingWindow) -> None:
    if window.num_guests < 1:
        raise ValueError("num_guests must be >= 1")


def validate_price_term(term: PriceTerm) -> None:
    if Decimal(term.unit_price) < 0:
        raise ValueError("unit_price must be >= 0")
    if not term.unit.strip():
        raise ValueError("price unit must be non-empty")


def validate_listing_fields(
    *,
    name: str,
    location: str,
    price: Optional[Decimal],
    listing_type: str,
    allowed_types: Iterable[str],
) -> None:
    if not name.strip() or not location.strip() or price is None:
        raise ValueError("Name, price, and location are required.")
    if price < 0:
        raise ValueError("price must be >= 0")
    if listing_type not in set(allowed_types):
        raise ValueError(f"Unsupported listing type: {listing_type}")


def validate_review_fields(*, rating: int, comment: str) -> None:
    if not 1 <= rating <= 5:
        raise ValueError("Please select a rating.")
    if not comment.strip():
        raise ValueError("Please enter a comment.")


def validate_message_fields(*, sender_id: str, receiver_id: str, content: str) -> None:
    if not content.strip():
        raise ValueError("Message content must be non-empty")
    if sender_id == receiver_id:
        raise ValueError("Cannot start a conversation with yourself")
