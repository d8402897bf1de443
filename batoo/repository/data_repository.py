"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from batoo.domain.models import (
    Booking,
    Listing,
    Message,
    OwnerBooking,
    RatingSummary,
    Review,
)
from batoo.utils.config import Settings, get_settings
from batoo.utils.logger import get_logger


logger = get_logger(__name__)


_LISTING_COLUMNS = (
    "name",
    "type",
    "description",
    "price",
    "price_per_unit",
    "location",
    "image_url",
    "available",
    "google_calendar_id",
)


def _to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def _row_to_listing(row: sqlite3.Row) -> Listing:
    return Listing(
        listing_id=int(row["id"]),
        owner_id=str(row["owner_id"]),
        name=str(row["name"]),
        listing_type=str(row["type"]),
        description=str(row["description"] or ""),
        price=_to_decimal(row["price"]),
        price_per_unit=str(row["price_per_unit"]),
        location=str(row["location"]),
        image_url=row["image_url"],
        available=bool(row["available"]),
        google_calendar_id=row["google_calendar_id"],
        created_at=str(row["created_at"]),
    )


def _row_to_booking(row: sqlite3.Row) -> Booking:
    return Booking(
        booking_id=int(row["id"]),
        listing_id=int(row["listing_id"]),
        user_id=str(row["user_id"]),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(str(row["end_date"])),
        total_price=_to_decimal(row["total_price"]),
        num_guests=int(row["num_guests"]),
        status=str(row["status"]),
        created_at=str(row["created_at"]),
    )


def _row_to_review(row: sqlite3.Row) -> Review:
    return Review(
        review_id=int(row["id"]),
        listing_id=int(row["listing_id"]),
        user_id=str(row["user_id"]),
        rating=int(row["rating"]),
        comment=str(row["comment"]),
        created_at=str(row["created_at"]),
    )


def _row_to_message(row: sqlite3.Row) -> Message:
    return Message(
        message_id=int(row["id"]),
        sender_id=str(row["sender_id"]),
        receiver_id=str(row["receiver_id"]),
        content=str(row["content"]),
        created_at=str(row["created_at"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all tables and indexes before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Listings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        owner_id TEXT NOT NULL,
                        name TEXT NOT NULL,
                        type TEXT NOT NULL DEFAULT 'yacht',
                        description TEXT NOT NULL DEFAULT '',
                        price REAL NOT NULL CHECK (price >= 0),
                        price_per_unit TEXT NOT NULL DEFAULT 'day',
                        location TEXT NOT NULL,
                        image_url TEXT,
                        available INTEGER NOT NULL DEFAULT 1 CHECK (available IN (0,1)),
                        google_calendar_id TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        listing_id INTEGER NOT NULL,
                        user_id TEXT NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        total_price REAL NOT NULL CHECK (total_price >= 0),
                        num_guests INTEGER NOT NULL CHECK (num_guests >= 1),
                        status TEXT NOT NULL DEFAULT 'confirmed',
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (listing_id) REFERENCES Listings(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reviews (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        listing_id INTEGER NOT NULL,
                        user_id TEXT NOT NULL,
                        rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
                        comment TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (listing_id) REFERENCES Listings(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Messages (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        sender_id TEXT NOT NULL,
                        receiver_id TEXT NOT NULL,
                        content TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_listings_owner
                    ON Listings(owner_id);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_listing
                    ON Bookings(listing_id);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reviews_listing
                    ON Reviews(listing_id);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_messages_sender_receiver
                    ON Messages(sender_id, receiver_id);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_listings_if_empty(self) -> int:
        """Insert a small demo catalogue only when no listings exist."""
        demo_listings = [
            ("demo-owner", "Sunset Yacht", "yacht", "Sunset cruise along the coast.", 1500.0, "day", "Marina Bay", None, 1, None),
            ("demo-owner", "Harbour Jetski", "jetski", "Two-seater jetski rental.", 200.0, "day", "North Harbour", None, 1, None),
            ("demo-owner", "Reef Snorkel Trip", "experience", "Guided reef snorkelling.", 90.0, "person", "Coral Point", None, 1, None),
        ]
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Listings;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Listings already present; skipping demo seed")
                    return 0
                cursor.executemany(
                    """
                    INSERT INTO Listings (
                        owner_id, name, type, description, price, price_per_unit,
                        location, image_url, available, google_calendar_id
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    demo_listings,
                )
                conn.commit()
            logger.info("Seeded %s demo listings", len(demo_listings))
            return len(demo_listings)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo listing seeding failed: {exc}") from exc

    # --- Listings ---

    def create_listing(self, owner_id: str, fields: dict[str, Any]) -> Listing:
        columns = ["owner_id"] + [column for column in _LISTING_COLUMNS if column in fields]
        values = [owner_id] + [self._to_db_value(fields[column]) for column in columns[1:]]
        placeholders = ", ".join("?" for _ in columns)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO Listings ({', '.join(columns)}) VALUES ({placeholders});",
                values,
            )
            conn.commit()
            listing_id = int(cursor.lastrowid)
        listing = self.get_listing(listing_id)
        if listing is None:
            raise RuntimeError("Listing creation did not return expected data.")
        return listing

    def get_listing(self, listing_id: int) -> Optional[Listing]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Listings WHERE id = ?;", (listing_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_listing(row)

    def update_listing(self, listing_id: int, fields: dict[str, Any]) -> Optional[Listing]:
        columns = [column for column in _LISTING_COLUMNS if column in fields]
        if columns:
            assignments = ", ".join(f"{column} = ?" for column in columns)
            values = [self._to_db_value(fields[column]) for column in columns]
            with self._connect() as conn:
                conn.execute(
                    f"UPDATE Listings SET {assignments} WHERE id = ?;",
                    (*values, listing_id),
                )
                conn.commit()
        return self.get_listing(listing_id)

    def delete_listing(self, listing_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Listings WHERE id = ?;", (listing_id,))
            conn.commit()
            return cursor.rowcount > 0

    def list_listings_by_owner(self, owner_id: str) -> list[Listing]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM Listings
                WHERE owner_id = ?
                ORDER BY created_at DESC, id DESC;
                """,
                (owner_id,),
            )
            return [_row_to_listing(row) for row in cursor.fetchall()]

    def search_listings(self, term: str) -> list[Listing]:
        """Case-insensitive substring match on name or description."""
        pattern = f"%{term.lower()}%"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM Listings
                WHERE LOWER(name) LIKE ? OR LOWER(description) LIKE ?
                ORDER BY id ASC;
                """,
                (pattern, pattern),
            )
            return [_row_to_listing(row) for row in cursor.fetchall()]

    # --- Bookings ---

    def create_booking(
        self,
        *,
        listing_id: int,
        user_id: str,
        start_date: date,
        end_date: date,
        total_price: Decimal,
        num_guests: int,
        status: str = "confirmed",
    ) -> Booking:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Bookings (
                    listing_id, user_id, start_date, end_date,
                    total_price, num_guests, status
                )
                VALUES (?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    listing_id,
                    user_id,
                    start_date.isoformat(),
                    end_date.isoformat(),
                    float(total_price),
                    num_guests,
                    status,
                ),
            )
            conn.commit()
            cursor.execute("SELECT * FROM Bookings WHERE id = ?;", (cursor.lastrowid,))
            row = cursor.fetchone()
        if row is None:
            raise RuntimeError("Booking creation did not return expected data.")
        return _row_to_booking(row)

    def list_bookings_for_owner(self, owner_id: str) -> list[OwnerBooking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    b.*,
                    l.name AS listing_name,
                    l.type AS listing_type
                FROM Bookings AS b
                INNER JOIN Listings AS l ON l.id = b.listing_id
                WHERE l.owner_id = ?
                ORDER BY b.created_at DESC, b.id DESC;
                """,
                (owner_id,),
            )
            return [
                OwnerBooking(
                    booking=_row_to_booking(row),
                    listing_name=str(row["listing_name"]),
                    listing_type=str(row["listing_type"]),
                )
                for row in cursor.fetchall()
            ]

    def count_bookings(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Bookings;")
            return int(cursor.fetchone()["count"])

    # --- Reviews ---

    def create_review(self, *, listing_id: int, user_id: str, rating: int, comment: str) -> Review:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Reviews (listing_id, user_id, rating, comment)
                VALUES (?, ?, ?, ?);
                """,
                (listing_id, user_id, rating, comment),
            )
            conn.commit()
            cursor.execute("SELECT * FROM Reviews WHERE id = ?;", (cursor.lastrowid,))
            return _row_to_review(cursor.fetchone())

    def list_reviews(self, listing_id: int) -> list[Review]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM Reviews
                WHERE listing_id = ?
                ORDER BY created_at DESC, id DESC;
                """,
                (listing_id,),
            )
            return [_row_to_review(row) for row in cursor.fetchall()]

    def get_rating_summary(self, listing_id: int) -> RatingSummary:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT AVG(rating) AS average_rating, COUNT(*) AS review_count
                FROM Reviews
                WHERE listing_id = ?;
                """,
                (listing_id,),
            )
            row = cursor.fetchone()
            count = int(row["review_count"])
            if count == 0:
                return RatingSummary(average_rating=0.0, review_count=0)
            return RatingSummary(
                average_rating=float(row["average_rating"]),
                review_count=count,
            )

    # --- Messages ---

    def create_message(self, *, sender_id: str, receiver_id: str, content: str) -> Message:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Messages (sender_id, receiver_id, content)
                VALUES (?, ?, ?);
                """,
                (sender_id, receiver_id, content),
            )
            conn.commit()
            cursor.execute("SELECT * FROM Messages WHERE id = ?;", (cursor.lastrowid,))
            return _row_to_message(cursor.fetchone())

    def list_messages_between(self, user_id: str, peer_id: str) -> list[Message]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM Messages
                WHERE (sender_id = ? AND receiver_id = ?)
                   OR (sender_id = ? AND receiver_id = ?)
                ORDER BY created_at ASC, id ASC;
                """,
                (user_id, peer_id, peer_id, user_id),
            )
            return [_row_to_message(row) for row in cursor.fetchall()]

    def list_receiver_ids_for_sender(self, sender_id: str) -> list[str]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT receiver_id FROM Messages WHERE sender_id = ?;",
                (sender_id,),
            )
            return [str(row["receiver_id"]) for row in cursor.fetchall()]

    def list_sender_ids_for_receiver(self, receiver_id: str) -> list[str]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT sender_id FROM Messages WHERE receiver_id = ?;",
                (receiver_id,),
            )
            return [str(row["sender_id"]) for row in cursor.fetchall()]

    @staticmethod
    def _to_db_value(value: Any) -> Any:
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, bool):
            return int(value)
        return value
