"""HTTP controller layer for availability, quotes and bookings."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from batoo.controllers.dependencies import get_booking_service
from batoo.services.booking_service import (
    BookingClashError,
    BookingService,
    BookingValidationError,
    ListingUnavailableError,
)
from batoo.services.listing_service import ListingNotFoundError
from batoo.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


class AvailabilityResponse(BaseModel):
    listing_id: int
    calendar_connected: bool
    busy_dates: list[date]
    displayable_busy_dates: list[str]


class QuoteRequest(BaseModel):
    """Dates are optional so a half-filled form can still be quoted."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    num_guests: int = Field(default=1, ge=1)


class QuoteResponse(BaseModel):
    listing_id: int
    state: str
    nights: int = Field(ge=0)
    total_price: float = Field(ge=0.0)
    is_valid: bool
    reason: Optional[str] = None
    has_clash: bool
    clashing_dates: list[date]
    form_message: str
    availability_warning: str


class CreateBookingRequest(BaseModel):
    user_id: str = Field(min_length=1)
    listing_id: int = Field(gt=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    num_guests: int = Field(default=1, ge=1)
    confirm_clash: bool = False
    guest_label: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    listing_id: int
    user_id: str
    start_date: date
    end_date: date
    total_price: float = Field(ge=0.0)
    num_guests: int = Field(ge=1)
    status: str
    created_at: str


class CreateBookingResponse(BaseModel):
    booking: BookingResponse
    message: str
    calendar_event_link: Optional[str] = None


class OwnerBookingResponse(BookingResponse):
    listing_name: str
    listing_type: str


@router.get("/listings/{listing_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    listing_id: int,
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityResponse:
    try:
        return AvailabilityResponse(**service.get_availability(listing_id))
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability lookup failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load availability",
        ) from exc


@router.post("/listings/{listing_id}/quote", response_model=QuoteResponse)
async def quote(
    listing_id: int,
    payload: QuoteRequest,
    service: BookingService = Depends(get_booking_service),
) -> QuoteResponse:
    """Recompute price and clash results for the current form inputs."""
    try:
        result = service.quote(
            listing_id=listing_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            num_guests=payload.num_guests,
        )
        result["total_price"] = float(result["total_price"])
        return QuoteResponse(**result)
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected quote failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute quote",
        ) from exc


@router.post(
    "/bookings",
    response_model=CreateBookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> CreateBookingResponse:
    try:
        outcome = service.create_booking(
            user_id=payload.user_id,
            listing_id=payload.listing_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            num_guests=payload.num_guests,
            confirm_clash=payload.confirm_clash,
            guest_label=payload.guest_label,
        )
        booking = outcome.booking
        return CreateBookingResponse(
            booking=BookingResponse(
                id=booking.booking_id,
                listing_id=booking.listing_id,
                user_id=booking.user_id,
                start_date=booking.start_date,
                end_date=booking.end_date,
                total_price=float(booking.total_price),
                num_guests=booking.num_guests,
                status=booking.status,
                created_at=booking.created_at,
            ),
            message=outcome.message,
            calendar_event_link=outcome.calendar_event_link,
        )
    except (BookingValidationError, ListingUnavailableError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except BookingClashError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Booking failed",
        ) from exc


@router.get("/owners/{owner_id}/bookings", response_model=list[OwnerBookingResponse])
async def list_owner_bookings(
    owner_id: str,
    service: BookingService = Depends(get_booking_service),
) -> list[OwnerBookingResponse]:
    try:
        return [
            OwnerBookingResponse(
                id=item.booking.booking_id,
                listing_id=item.booking.listing_id,
                user_id=item.booking.user_id,
                start_date=item.booking.start_date,
                end_date=item.booking.end_date,
                total_price=float(item.booking.total_price),
                num_guests=item.booking.num_guests,
                status=item.booking.status,
                created_at=item.booking.created_at,
                listing_name=item.listing_name,
                listing_type=item.listing_type,
            )
            for item in service.list_owner_bookings(owner_id)
        ]
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected owner bookings lookup failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load bookings",
        ) from exc
