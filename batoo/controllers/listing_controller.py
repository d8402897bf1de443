"""HTTP controller layer for listings and reviews."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from batoo.controllers.dependencies import get_listing_service
from batoo.domain.models import Listing, Review
from batoo.services.listing_service import (
    ListingNotFoundError,
    ListingPermissionError,
    ListingService,
    ListingValidationError,
    ReviewValidationError,
)
from batoo.utils.config import get_settings
from batoo.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["listings"])


class ListingFields(BaseModel):
    name: str = Field(min_length=1)
    type: str = "yacht"
    description: str = ""
    price: Decimal = Field(ge=0)
    price_per_unit: str = Field(default=settings.default_price_unit, min_length=1)
    location: str = Field(min_length=1)
    image_url: Optional[str] = None
    available: bool = True
    google_calendar_id: Optional[str] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        if value not in settings.listing_types:
            raise ValueError(f"type must be one of {', '.join(settings.listing_types)}")
        return value


class CreateListingRequest(ListingFields):
    owner_id: str = Field(min_length=1)


class UpdateListingRequest(BaseModel):
    owner_id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    price_per_unit: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    image_url: Optional[str] = None
    available: Optional[bool] = None
    google_calendar_id: Optional[str] = None


class ListingResponse(BaseModel):
    id: int
    owner_id: str
    name: str
    type: str
    description: str
    price: float = Field(ge=0.0)
    price_per_unit: str
    location: str
    image_url: Optional[str] = None
    available: bool
    google_calendar_id: Optional[str] = None
    created_at: str


class ReviewRequest(BaseModel):
    user_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1)


class ReviewResponse(BaseModel):
    id: int
    listing_id: int
    user_id: str
    rating: int = Field(ge=1, le=5)
    comment: str
    created_at: str


class RatingSummaryResponse(BaseModel):
    average_rating: float = Field(ge=0.0, le=5.0)
    review_count: int = Field(ge=0)


def _listing_response(listing: Listing) -> ListingResponse:
    return ListingResponse(
        id=listing.listing_id,
        owner_id=listing.owner_id,
        name=listing.name,
        type=listing.listing_type,
        description=listing.description,
        price=float(listing.price),
        price_per_unit=listing.price_per_unit,
        location=listing.location,
        image_url=listing.image_url,
        available=listing.available,
        google_calendar_id=listing.google_calendar_id,
        created_at=listing.created_at,
    )


def _review_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.review_id,
        listing_id=review.listing_id,
        user_id=review.user_id,
        rating=review.rating,
        comment=review.comment,
        created_at=review.created_at,
    )


@router.get("/listings/search", response_model=list[ListingResponse])
async def search_listings(
    q: str = Query(default=""),
    service: ListingService = Depends(get_listing_service),
) -> list[ListingResponse]:
    try:
        return [_listing_response(item) for item in service.search(q)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing search failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again.",
        ) from exc


@router.post(
    "/listings",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_listing(
    payload: CreateListingRequest,
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    try:
        fields = payload.model_dump(exclude={"owner_id"})
        return _listing_response(service.create_listing(payload.owner_id, fields))
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create listing.",
        ) from exc


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: int,
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    try:
        return _listing_response(service.get_listing(listing_id))
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.put("/listings/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: int,
    payload: UpdateListingRequest,
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    try:
        fields = payload.model_dump(exclude={"owner_id"}, exclude_unset=True)
        return _listing_response(service.update_listing(listing_id, payload.owner_id, fields))
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ListingPermissionError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update listing.",
        ) from exc


@router.delete("/listings/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: int,
    owner_id: str = Query(min_length=1),
    service: ListingService = Depends(get_listing_service),
) -> None:
    try:
        service.delete_listing(listing_id, owner_id)
    except ListingPermissionError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.get("/owners/{owner_id}/listings", response_model=list[ListingResponse])
async def list_owner_listings(
    owner_id: str,
    service: ListingService = Depends(get_listing_service),
) -> list[ListingResponse]:
    return [_listing_response(item) for item in service.list_owner_listings(owner_id)]


@router.get("/listings/{listing_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    listing_id: int,
    service: ListingService = Depends(get_listing_service),
) -> list[ReviewResponse]:
    try:
        return [_review_response(item) for item in service.list_reviews(listing_id)]
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.post(
    "/listings/{listing_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_review(
    listing_id: int,
    payload: ReviewRequest,
    service: ListingService = Depends(get_listing_service),
) -> ReviewResponse:
    try:
        review = service.submit_review(
            listing_id=listing_id,
            user_id=payload.user_id,
            rating=payload.rating,
            comment=payload.comment,
        )
        return _review_response(review)
    except ReviewValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected review submission failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit review.",
        ) from exc


@router.get("/listings/{listing_id}/rating", response_model=RatingSummaryResponse)
async def rating_summary(
    listing_id: int,
    service: ListingService = Depends(get_listing_service),
) -> RatingSummaryResponse:
    try:
        summary = service.rating_summary(listing_id)
        return RatingSummaryResponse(
            average_rating=summary.average_rating,
            review_count=summary.review_count,
        )
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
