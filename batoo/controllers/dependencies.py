"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from batoo.services.booking_service import BookingService
from batoo.services.listing_service import ListingService
from batoo.services.messaging_service import MessagingService


def _service_from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_listing_service(request: Request) -> ListingService:
    return _service_from_state(request, "listing_service", "Listing")


def get_booking_service(request: Request) -> BookingService:
    return _service_from_state(request, "booking_service", "Booking")


def get_messaging_service(request: Request) -> MessagingService:
    return _service_from_state(request, "messaging_service", "Messaging")
