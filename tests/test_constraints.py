"""Tests for domain validation rules.

Covers every rejection branch of the validators in batoo.domain.constraints.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from batoo.domain.constraints import (
    validate_booking_window,
    validate_listing_fields,
    validate_message_fields,
    validate_price_term,
    validate_review_fields,
)
from batoo.domain.models import BookingWindow, PriceTerm


LISTING_TYPES = ("yacht", "jetski", "experience", "other")


def listing_fields(**overrides) -> dict:
    """Return valid baseline listing fields, optionally overriding some."""
    defaults = {
        "name": "Sunset Yacht",
        "location": "Marina Bay",
        "price": Decimal("1500"),
        "listing_type": "yacht",
        "allowed_types": LISTING_TYPES,
    }
    defaults.update(overrides)
    return defaults


# --- Booking window ---

def test_single_guest_window_passes() -> None:
    validate_booking_window(BookingWindow(date(2025, 7, 1), date(2025, 7, 2), num_guests=1))


def test_zero_guests_raises() -> None:
    with pytest.raises(ValueError):
        validate_booking_window(BookingWindow(date(2025, 7, 1), date(2025, 7, 2), num_guests=0))


# --- Price term ---

def test_zero_unit_price_passes() -> None:
    """Exact lower boundary must pass."""
    validate_price_term(PriceTerm(unit_price=Decimal("0")))


def test_negative_unit_price_raises() -> None:
    with pytest.raises(ValueError):
        validate_price_term(PriceTerm(unit_price=Decimal("-1")))


def test_blank_unit_raises() -> None:
    with pytest.raises(ValueError):
        validate_price_term(PriceTerm(unit_price=Decimal("10"), unit="  "))


# --- Listing fields ---

def test_valid_listing_fields_pass() -> None:
    validate_listing_fields(**listing_fields())


@pytest.mark.parametrize("field", ["name", "location"])
def test_blank_required_text_raises(field: str) -> None:
    with pytest.raises(ValueError, match="required"):
        validate_listing_fields(**listing_fields(**{field: " "}))


def test_missing_price_raises() -> None:
    with pytest.raises(ValueError, match="required"):
        validate_listing_fields(**listing_fields(price=None))


def test_negative_price_raises() -> None:
    with pytest.raises(ValueError):
        validate_listing_fields(**listing_fields(price=Decimal("-0.01")))


def test_unknown_listing_type_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported"):
        validate_listing_fields(**listing_fields(listing_type="submarine"))


# --- Reviews ---

@pytest.mark.parametrize("rating", [1, 5])
def test_rating_boundaries_pass(rating: int) -> None:
    validate_review_fields(rating=rating, comment="Great trip")


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range_raises(rating: int) -> None:
    with pytest.raises(ValueError, match="rating"):
        validate_review_fields(rating=rating, comment="Great trip")


def test_blank_comment_raises() -> None:
    with pytest.raises(ValueError, match="comment"):
        validate_review_fields(rating=4, comment="   ")


# --- Messages ---

def test_blank_message_raises() -> None:
    with pytest.raises(ValueError):
        validate_message_fields(sender_id="a", receiver_id="b", content="  ")


def test_message_to_self_raises() -> None:
    with pytest.raises(ValueError):
        validate_message_fields(sender_id="a", receiver_id="a", content="hello")
