"""
Booking persistence on PostgreSQL

Every method except ``transaction`` runs on a connection handed in by the
caller so the booking pipeline can scope its availability checks and its
writes inside one transaction.
"""
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import RealDictCursor

from database import (
    Booking, BookingStatus, Destination, Flight,
    row_to_booking, row_to_destination, row_to_flight
)
from backend.date_window import to_utc
from backend.deadline import check_deadline, remaining
from backend.errors import (
    BookingNotFound, PersistenceFailure, RequestTimeout
)
from backend.pagination import decode_cursor, encode_cursor

logger = logging.getLogger(__name__)

BOOKING_COLUMNS = """
    B.id, B.status, B.created_at,
    U.id AS p_id, U.first_name, U.last_name, U.gender, U.birthday,
    F.id AS f_id, F.launchpad_id, F.launch_date,
    D.id AS d_id, D.name AS d_name
"""

BOOKING_JOINS = """
    FROM bookings B
    JOIN users U ON U.id = B.user_id
    JOIN flights F ON F.id = B.flight_id
    JOIN destinations D ON D.id = F.destination_id
"""

# filter name -> SQL predicate for find_flights
FLIGHT_FILTERS = {
    'launchpad_id': "F.launchpad_id = %s",
    'destination_id': "F.destination_id = %s",
    'launch_date': "(F.launch_date AT TIME ZONE 'UTC')::date = %s",
    'status': "B.status = %s",
}


@contextmanager
def translate_db_errors(action: str):
    """Re-raise psycopg2 failures as booking errors"""
    try:
        yield
    except pg_errors.QueryCanceled as e:
        raise RequestTimeout(f"{action} cancelled: statement timeout") from e
    except psycopg2.Error as e:
        logger.error("database error while %s: %s", action, e)
        raise PersistenceFailure(f"failed to {action}") from e


class BookingRepository:
    """Persistence port for bookings, flights, passengers and destinations"""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    @contextmanager
    def transaction(self, deadline: Optional[float] = None):
        """
        Open one transaction for a request

        The remaining time before ``deadline`` becomes the statement timeout,
        so a slow query aborts the whole unit of work.
        """
        check_deadline(deadline, "opening transaction")
        left = remaining(deadline)
        timeout_ms = None if left is None else left * 1000
        try:
            with self.db_manager.transaction(statement_timeout_ms=timeout_ms) as conn:
                yield conn
        except pg_errors.QueryCanceled as e:
            raise RequestTimeout("transaction cancelled: statement timeout") from e
        except psycopg2.Error as e:
            logger.error("transaction failed: %s", e)
            raise PersistenceFailure("transaction failed") from e

    # ------------------------------------------------------------------ #
    # Booking creation
    # ------------------------------------------------------------------ #

    def create_booking(self, conn, booking: Booking) -> Booking:
        """
        Write passenger, flight and booking on the caller's transaction

        Passenger and flight inserts are idempotent by id. The booking is
        always stored as CONFIRMED and stamped with the current UTC time.

        Args:
            conn: Open connection from ``transaction``
            booking: Booking graph with passenger, flight and destination

        Returns:
            The stored booking (same object, identifiers filled in)

        Raises:
            PersistenceFailure: If any of the three writes fails
        """
        passenger = booking.passenger
        flight = booking.flight

        with translate_db_errors("create booking"):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                if passenger.id is None:
                    passenger.id = uuid.uuid4()
                cursor.execute("""
                    INSERT INTO users (id, first_name, last_name, gender, birthday)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                """, (passenger.id, passenger.first_name, passenger.last_name,
                      passenger.gender, passenger.birthday))

                if flight.id is None:
                    flight.id = uuid.uuid4()
                cursor.execute("""
                    INSERT INTO flights (id, launchpad_id, destination_id, launch_date)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                """, (flight.id, flight.launchpad_id, flight.destination.id,
                      flight.launch_date))

                if booking.id is None:
                    booking.id = uuid.uuid4()
                booking.status = BookingStatus.CONFIRMED
                booking.created_at = datetime.now(timezone.utc)
                cursor.execute("""
                    INSERT INTO bookings (id, user_id, flight_id, status, created_at)
                    VALUES (%s, %s, %s, %s, %s)
                """, (booking.id, passenger.id, flight.id,
                      booking.status.value, booking.created_at))

        return booking

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_booking_by_id(self, conn, booking_id: uuid.UUID) -> Booking:
        """
        Load one booking with passenger, flight and destination

        Raises:
            BookingNotFound: If no booking has this id
        """
        with translate_db_errors("get booking"):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"SELECT {BOOKING_COLUMNS} {BOOKING_JOINS} WHERE B.id = %s",
                    (booking_id,)
                )
                row = cursor.fetchone()

        if not row:
            raise BookingNotFound(f"booking {booking_id} not found")
        return row_to_booking(row)

    def list_bookings_after(self, conn, after_cursor: str, limit: int) -> Tuple[List[Booking], str]:
        """
        Page through bookings in (created_at, id) order

        Args:
            conn: Open connection
            after_cursor: Cursor of the previous page's last booking, or ""
            limit: Page size

        Returns:
            (bookings, next_cursor); next_cursor is "" unless the page is full

        Raises:
            MalformedCursor: If after_cursor cannot be decoded
        """
        params = []
        where_sql = ""
        if after_cursor:
            after_time, after_id = decode_cursor(after_cursor)
            where_sql = "WHERE (B.created_at, B.id) > (%s, %s)"
            params.extend([after_time, after_id])
        params.append(limit)

        with translate_db_errors("list bookings"):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(f"""
                    SELECT {BOOKING_COLUMNS}
                    {BOOKING_JOINS}
                    {where_sql}
                    ORDER BY B.created_at, B.id
                    LIMIT %s
                """, params)
                rows = cursor.fetchall()

        bookings = [row_to_booking(row) for row in rows]

        # a full page may be followed by more rows; the last page can come back empty
        next_cursor = ""
        if bookings and len(bookings) == limit:
            last = bookings[-1]
            next_cursor = encode_cursor(last.created_at, last.id)

        return bookings, next_cursor

    def get_destination_by_id(self, conn, destination_id: uuid.UUID) -> Optional[Destination]:
        """Load a destination, None when it does not exist"""
        with translate_db_errors("get destination"):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("SELECT id, name FROM destinations WHERE id = %s",
                               (destination_id,))
                return row_to_destination(cursor.fetchone())

    def find_flights(self, conn, filters: dict) -> List[Flight]:
        """
        Find flights matching all filters

        Args:
            conn: Open connection
            filters: Any of ``launchpad_id``, ``destination_id``,
                ``launch_date`` (matched on the UTC calendar date) and
                ``status`` (flights with a booking in that status)

        Returns:
            List of flights with their destinations
        """
        unknown = set(filters) - set(FLIGHT_FILTERS)
        if unknown:
            raise ValueError(f"unsupported flight filters: {sorted(unknown)}")

        where_clauses = []
        params = []
        for name, value in filters.items():
            if name == 'launch_date' and isinstance(value, datetime):
                value = to_utc(value).date()
            elif name == 'status' and isinstance(value, BookingStatus):
                value = value.value
            where_clauses.append(FLIGHT_FILTERS[name])
            params.append(value)

        join_sql = "JOIN bookings B ON B.flight_id = F.id" if 'status' in filters else ""
        where_sql = "WHERE " + " AND ".join(where_clauses) if where_clauses else ""

        with translate_db_errors("find flights"):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(f"""
                    SELECT DISTINCT F.id, F.launchpad_id, F.launch_date,
                           D.id AS destination_id, D.name AS destination_name
                    FROM flights F
                    JOIN destinations D ON D.id = F.destination_id
                    {join_sql}
                    {where_sql}
                    ORDER BY F.launch_date, F.id
                """, params)
                return [row_to_flight(row) for row in cursor.fetchall()]

    def is_site_week_taken(self, conn, launchpad_id: str, destination_id: uuid.UUID,
                           launch_date: datetime) -> bool:
        """True when the pad already flies to the destination in the ISO week of launch_date"""
        with translate_db_errors("check weekly availability"):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    "SELECT launch_in_same_week(%s, %s, %s) AS taken",
                    (launchpad_id, destination_id, to_utc(launch_date))
                )
                return bool(cursor.fetchone()['taken'])

    # ------------------------------------------------------------------ #
    # Removal
    # ------------------------------------------------------------------ #

    def delete_booking(self, conn, booking_id: uuid.UUID) -> None:
        """
        Hard-delete a booking

        Raises:
            BookingNotFound: If no row was removed
        """
        with translate_db_errors("delete booking"):
            with conn.cursor() as cursor:
                cursor.execute("DELETE FROM bookings WHERE id = %s", (booking_id,))
                deleted = cursor.rowcount

        if deleted == 0:
            raise BookingNotFound(f"booking {booking_id} not found")
