from __future__ import annotations

import json
from dataclasses import replace

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from batoo.controllers.booking_controller import router as booking_router
from batoo.controllers.listing_controller import router as listing_router
from batoo.repository.data_repository import DataRepository
from batoo.services.booking_service import BookingService
from batoo.services.calendar_service import CalendarService
from batoo.services.listing_service import ListingService
from batoo.utils.config import get_settings


BUSY_AUG_10 = {
    "items": [
        {
            "id": "busy-1",
            "summary": "Owner trip",
            "start": {"date": "2025-08-10"},
            "end": {"date": "2025-08-11"},
        }
    ]
}


class FakeCalendar:
    """Records calendar traffic and serves a fixed events payload."""

    def __init__(self, events_payload=None, fail_reads: bool = False) -> None:
        self.events_payload = events_payload or {"items": []}
        self.fail_reads = fail_reads
        self.created: list[dict] = []
        self.read_paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            self.created.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "evt-new", "htmlLink": "https://calendar/evt-new"})
        self.read_paths.append(request.url.path)
        if self.fail_reads:
            return httpx.Response(503)
        return httpx.Response(200, json=self.events_payload)


def _build_test_settings(tmp_path, filename: str, **overrides):
    get_settings.cache_clear()
    base = get_settings()
    values = {
        "database_path": tmp_path / filename,
        "calendar_api_base_url": "https://www.googleapis.com/calendar/v3",
        "calendar_api_key": "test-key",
        "calendar_access_token": None,
        "calendar_timezone": None,
    }
    values.update(overrides)
    return replace(base, **values)


def _build_test_app(tmp_path, calendar: FakeCalendar, **overrides) -> tuple[FastAPI, DataRepository]:
    settings = _build_test_settings(tmp_path, "booking_flow.db", **overrides)
    repository = DataRepository(settings)
    repository.initialize_database()

    calendar_service = CalendarService(settings=settings, transport=httpx.MockTransport(calendar))
    app = FastAPI()
    app.include_router(listing_router)
    app.include_router(booking_router)
    app.state.repository = repository
    app.state.listing_service = ListingService(repository=repository, settings=settings)
    app.state.booking_service = BookingService(
        repository=repository,
        calendar_service=calendar_service,
        settings=settings,
    )
    return app, repository


def _create_listing(client: TestClient, **overrides) -> int:
    payload = {
        "owner_id": "owner-1",
        "name": "Sunset Yacht",
        "type": "yacht",
        "price": 200,
        "price_per_unit": "day",
        "location": "Marina Bay",
        "google_calendar_id": "yacht-calendar",
    }
    payload.update(overrides)
    response = client.post("/listings", json=payload)
    assert response.status_code == 201
    return response.json()["id"]


def test_booking_end_to_end_with_clash_confirmation(tmp_path):
    calendar = FakeCalendar(events_payload=BUSY_AUG_10)
    app, repository = _build_test_app(tmp_path, calendar)
    client = TestClient(app)
    listing_id = _create_listing(client)

    availability = client.get(f"/listings/{listing_id}/availability")
    assert availability.status_code == 200
    availability_payload = availability.json()
    assert availability_payload["calendar_connected"] is True
    assert availability_payload["busy_dates"] == ["2025-08-10"]
    assert availability_payload["displayable_busy_dates"] == ["Sun, Aug 10, 2025"]
    assert calendar.read_paths[0].endswith("/calendars/yacht-calendar/events")

    quote = client.post(
        f"/listings/{listing_id}/quote",
        json={"start_date": "2025-08-09", "end_date": "2025-08-11", "num_guests": 2},
    )
    assert quote.status_code == 200
    quote_payload = quote.json()
    assert quote_payload["nights"] == 2
    assert quote_payload["total_price"] == 400
    assert quote_payload["is_valid"] is True
    assert quote_payload["has_clash"] is True
    assert quote_payload["clashing_dates"] == ["2025-08-10"]
    assert quote_payload["state"] == "clash_warned"
    assert "Aug 10" in quote_payload["availability_warning"]

    booking_request = {
        "user_id": "guest-1",
        "listing_id": listing_id,
        "start_date": "2025-08-09",
        "end_date": "2025-08-11",
        "num_guests": 2,
    }
    unconfirmed = client.post("/bookings", json=booking_request)
    assert unconfirmed.status_code == 409
    assert "Aug 10" in unconfirmed.json()["detail"]
    assert repository.count_bookings() == 0

    confirmed = client.post("/bookings", json={**booking_request, "confirm_clash": True})
    assert confirmed.status_code == 201
    confirmed_payload = confirmed.json()
    assert confirmed_payload["booking"]["total_price"] == 400
    assert confirmed_payload["booking"]["status"] == "confirmed"
    assert confirmed_payload["message"].endswith("Also added to Google Calendar.")
    assert confirmed_payload["calendar_event_link"] == "https://calendar/evt-new"
    assert repository.count_bookings() == 1

    assert calendar.created[0]["start"] == {"date": "2025-08-09"}
    assert calendar.created[0]["end"] == {"date": "2025-08-12"}

    owner_bookings = client.get("/owners/owner-1/bookings")
    assert owner_bookings.status_code == 200
    rows = owner_bookings.json()
    assert len(rows) == 1
    assert rows[0]["listing_name"] == "Sunset Yacht"
    assert rows[0]["listing_type"] == "yacht"


def test_booking_without_clash_needs_no_confirmation(tmp_path):
    app, _ = _build_test_app(tmp_path, FakeCalendar(events_payload=BUSY_AUG_10))
    client = TestClient(app)
    listing_id = _create_listing(client)

    response = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-01",
            "end_date": "2025-08-04",
        },
    )
    assert response.status_code == 201
    assert response.json()["booking"]["total_price"] == 600


def test_invalid_windows_are_rejected_with_form_messages(tmp_path):
    app, repository = _build_test_app(tmp_path, FakeCalendar())
    client = TestClient(app)
    listing_id = _create_listing(client)

    reversed_dates = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-04",
            "end_date": "2025-08-01",
        },
    )
    assert reversed_dates.status_code == 400
    assert reversed_dates.json()["detail"] == "End date cannot be before start date."

    missing_dates = client.post(
        "/bookings",
        json={"user_id": "guest-1", "listing_id": listing_id, "start_date": "2025-08-04"},
    )
    assert missing_dates.status_code == 400
    assert missing_dates.json()["detail"] == "Please select start and end dates."

    no_guests = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-01",
            "end_date": "2025-08-02",
            "num_guests": 0,
        },
    )
    assert no_guests.status_code == 422
    assert repository.count_bookings() == 0


def test_quote_reports_reversed_window(tmp_path):
    app, _ = _build_test_app(tmp_path, FakeCalendar())
    client = TestClient(app)
    listing_id = _create_listing(client)

    response = client.post(
        f"/listings/{listing_id}/quote",
        json={"start_date": "2025-07-04", "end_date": "2025-07-01"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["is_valid"] is False
    assert payload["reason"] == "end before start"
    assert payload["total_price"] == 0
    assert payload["form_message"] == "End date must be after start date."


def test_calendar_failure_is_treated_as_no_busy_days(tmp_path):
    calendar = FakeCalendar(events_payload=BUSY_AUG_10, fail_reads=True)
    app, _ = _build_test_app(tmp_path, calendar)
    client = TestClient(app)
    listing_id = _create_listing(client)

    quote = client.post(
        f"/listings/{listing_id}/quote",
        json={"start_date": "2025-08-09", "end_date": "2025-08-11"},
    )
    assert quote.status_code == 200
    assert quote.json()["has_clash"] is False

    booking = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-09",
            "end_date": "2025-08-11",
        },
    )
    assert booking.status_code == 201


def test_garbled_calendar_items_are_treated_as_no_busy_days(tmp_path):
    calendar = FakeCalendar(events_payload={"items": [None, "x"]})
    app, _ = _build_test_app(tmp_path, calendar)
    client = TestClient(app)
    listing_id = _create_listing(client)

    availability = client.get(f"/listings/{listing_id}/availability")
    assert availability.status_code == 200
    assert availability.json()["busy_dates"] == []

    booking = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-09",
            "end_date": "2025-08-11",
        },
    )
    assert booking.status_code == 201


def test_quote_on_last_representable_days(tmp_path):
    app, _ = _build_test_app(tmp_path, FakeCalendar())
    client = TestClient(app)
    listing_id = _create_listing(client)

    response = client.post(
        f"/listings/{listing_id}/quote",
        json={"start_date": "9999-12-30", "end_date": "9999-12-31"},
    )
    assert response.status_code == 200
    assert response.json()["nights"] == 1
    assert response.json()["total_price"] == 200


def test_unconfigured_calendar_suggests_sign_in(tmp_path):
    app, _ = _build_test_app(tmp_path, FakeCalendar(), calendar_api_key=None)
    client = TestClient(app)
    listing_id = _create_listing(client)

    availability = client.get(f"/listings/{listing_id}/availability")
    assert availability.json()["calendar_connected"] is False
    assert availability.json()["busy_dates"] == []

    booking = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-09",
            "end_date": "2025-08-11",
        },
    )
    assert booking.status_code == 201
    assert "Sign in to Google" in booking.json()["message"]
    assert booking.json()["calendar_event_link"] is None


def test_unavailable_listing_cannot_be_booked(tmp_path):
    app, _ = _build_test_app(tmp_path, FakeCalendar())
    client = TestClient(app)
    listing_id = _create_listing(client, available=False)

    response = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": listing_id,
            "start_date": "2025-08-01",
            "end_date": "2025-08-02",
        },
    )
    assert response.status_code == 400
    assert "not available" in response.json()["detail"]


def test_unknown_listing_returns_404(tmp_path):
    app, _ = _build_test_app(tmp_path, FakeCalendar())
    client = TestClient(app)

    assert client.get("/listings/999/availability").status_code == 404
    assert client.post("/listings/999/quote", json={}).status_code == 404
    response = client.post(
        "/bookings",
        json={
            "user_id": "guest-1",
            "listing_id": 999,
            "start_date": "2025-08-01",
            "end_date": "2025-08-02",
        },
    )
    assert response.status_code == 404


def test_missing_service_returns_503():
    app = FastAPI()
    app.include_router(booking_router)
    client = TestClient(app)

    response = client.get("/listings/1/availability")
    assert response.status_code == 503
