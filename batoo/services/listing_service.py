"""Listing catalogue and review workflows."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from batoo.domain.constraints import validate_listing_fields, validate_review_fields
from batoo.domain.models import Listing, RatingSummary, Review
from batoo.repository.data_repository import DataRepository
from batoo.utils.config import Settings, get_settings
from batoo.utils.logger import get_logger


logger = get_logger(__name__)


class ListingError(Exception):
    """Base exception for listing workflow failures."""


class ListingValidationError(ListingError):
    """Raised when listing input is invalid."""


class ListingNotFoundError(ListingError):
    """Raised when a listing id does not exist."""


class ListingPermissionError(ListingError):
    """Raised when a user modifies a listing they do not own."""


class ReviewValidationError(ListingError):
    """Raised when a review cannot be accepted."""


class ListingService:
    """Owner listing management, search and reviews."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_listing(self, listing_id: int) -> Listing:
        listing = self._repository.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError("Listing not found.")
        return listing

    def search(self, term: str) -> list[Listing]:
        if not term.strip():
            return []
        return self._repository.search_listings(term.strip())

    def list_owner_listings(self, owner_id: str) -> list[Listing]:
        return self._repository.list_listings_by_owner(owner_id)

    def _validated_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        normalized = dict(fields)
        normalized.setdefault("type", "yacht")
        normalized.setdefault("price_per_unit", self._settings.default_price_unit)
        price = normalized.get("price")
        if price is not None:
            normalized["price"] = Decimal(str(price))
        try:
            validate_listing_fields(
                name=str(normalized.get("name") or ""),
                location=str(normalized.get("location") or ""),
                price=normalized.get("price"),
                listing_type=str(normalized["type"]),
                allowed_types=self._settings.listing_types,
            )
        except ValueError as exc:
            raise ListingValidationError(str(exc)) from exc
        return normalized

    def create_listing(self, owner_id: str, fields: dict[str, Any]) -> Listing:
        listing = self._repository.create_listing(owner_id, self._validated_fields(fields))
        logger.info("Listing %s created by %s", listing.listing_id, owner_id)
        return listing

    def _owned_listing(self, listing_id: int, owner_id: str) -> Listing:
        listing = self.get_listing(listing_id)
        if listing.owner_id != owner_id:
            raise ListingPermissionError("Only the listing owner can modify this listing.")
        return listing

    def update_listing(self, listing_id: int, owner_id: str, fields: dict[str, Any]) -> Listing:
        current = self._owned_listing(listing_id, owner_id)
        merged = {
            "name": current.name,
            "type": current.listing_type,
            "description": current.description,
            "price": current.price,
            "price_per_unit": current.price_per_unit,
            "location": current.location,
            "image_url": current.image_url,
            "available": current.available,
            "google_calendar_id": current.google_calendar_id,
        }
        merged.update(fields)
        updated = self._repository.update_listing(listing_id, self._validated_fields(merged))
        if updated is None:
            raise ListingNotFoundError("Listing not found.")
        return updated

    def delete_listing(self, listing_id: int, owner_id: str) -> None:
        self._owned_listing(listing_id, owner_id)
        self._repository.delete_listing(listing_id)
        logger.info("Listing %s deleted by %s", listing_id, owner_id)

    def submit_review(self, listing_id: int, user_id: str, rating: int, comment: str) -> Review:
        listing = self.get_listing(listing_id)
        if listing.owner_id == user_id:
            raise ReviewValidationError("Owners cannot review their own listing.")
        try:
            validate_review_fields(rating=rating, comment=comment)
        except ValueError as exc:
            raise ReviewValidationError(str(exc)) from exc
        return self._repository.create_review(
            listing_id=listing_id,
            user_id=user_id,
            rating=rating,
            comment=comment.strip(),
        )

    def list_reviews(self, listing_id: int) -> list[Review]:
        self.get_listing(listing_id)
        return self._repository.list_reviews(listing_id)

    def rating_summary(self, listing_id: int) -> RatingSummary:
        self.get_listing(listing_id)
        return self._repository.get_rating_summary(listing_id)
