"""Pytest configuration and fixtures."""
import copy
import os
import sys
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Booking, BookingStatus, Destination, Flight, Passenger
from backend.booking_service import BookingRequest, BookingService
from backend.date_window import to_utc
from backend.errors import BookingNotFound
from backend.pagination import decode_cursor, encode_cursor
from backend.spacex_client import Launch, LaunchSite

MARS = Destination(id=uuid.UUID('6a1c0f3e-4b57-4f0e-9a37-2f1f6e0c0001'), name='Mars')
MOON = Destination(id=uuid.UUID('6a1c0f3e-4b57-4f0e-9a37-2f1f6e0c0002'), name='Moon')

LAUNCHPAD = '5e9e4502f509094188566f88'


class FakeRepository:
    """In-memory persistence port; a failed transaction restores the previous state"""

    def __init__(self, destinations=(MARS, MOON)):
        self.destinations = {d.id: d for d in destinations}
        self.flights = {}
        self.bookings = {}
        self.fail_on_create = None
        self.transactions = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self, deadline=None):
        self.transactions += 1
        snapshot = (copy.deepcopy(self.flights), copy.deepcopy(self.bookings))
        try:
            yield object()
        except BaseException:
            self.rollbacks += 1
            self.flights, self.bookings = snapshot
            raise

    def add_booking(self, launchpad_id, destination, launch_date,
                    status=BookingStatus.CONFIRMED, created_at=None, booking_id=None):
        flight = Flight(id=uuid.uuid4(), launchpad_id=launchpad_id,
                        destination=destination, launch_date=to_utc(launch_date))
        booking = Booking(
            id=booking_id or uuid.uuid4(),
            passenger=Passenger(id=uuid.uuid4(), first_name='Ada', last_name='Lovelace',
                                gender='female', birthday=date(1990, 1, 1)),
            flight=flight,
            status=status,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.flights[flight.id] = flight
        self.bookings[booking.id] = booking
        return booking

    def create_booking(self, conn, booking):
        if self.fail_on_create:
            raise self.fail_on_create
        booking.id = booking.id or uuid.uuid4()
        booking.passenger.id = booking.passenger.id or uuid.uuid4()
        booking.flight.id = booking.flight.id or uuid.uuid4()
        booking.status = BookingStatus.CONFIRMED
        booking.created_at = datetime.now(timezone.utc)
        self.flights.setdefault(booking.flight.id, booking.flight)
        self.bookings[booking.id] = booking
        return booking

    def get_booking_by_id(self, conn, booking_id):
        try:
            return self.bookings[booking_id]
        except KeyError:
            raise BookingNotFound(f"booking {booking_id} not found") from None

    def list_bookings_after(self, conn, after_cursor, limit):
        ordered = sorted(self.bookings.values(), key=lambda b: (b.created_at, b.id))
        if after_cursor:
            position = decode_cursor(after_cursor)
            ordered = [b for b in ordered if (b.created_at, b.id) > position]
        page = ordered[:limit]
        cursor = ""
        if page and len(page) == limit:
            cursor = encode_cursor(page[-1].created_at, page[-1].id)
        return page, cursor

    def get_destination_by_id(self, conn, destination_id):
        return self.destinations.get(destination_id)

    def find_flights(self, conn, filters):
        flights = list(self.flights.values())
        if 'launchpad_id' in filters:
            flights = [f for f in flights if f.launchpad_id == filters['launchpad_id']]
        if 'launch_date' in filters:
            day = to_utc(filters['launch_date']).date()
            flights = [f for f in flights if to_utc(f.launch_date).date() == day]
        return flights

    def is_site_week_taken(self, conn, launchpad_id, destination_id, launch_date):
        week = to_utc(launch_date).isocalendar()[:2]
        return any(
            b.flight.launchpad_id == launchpad_id
            and b.flight.destination.id == destination_id
            and to_utc(b.flight.launch_date).isocalendar()[:2] == week
            for b in self.bookings.values()
        )

    def delete_booking(self, conn, booking_id):
        if self.bookings.pop(booking_id, None) is None:
            raise BookingNotFound(f"booking {booking_id} not found")


class FakeManifest:
    """Launch manifest port returning canned answers"""

    def __init__(self, status='active', launches=(), error=None):
        self.site = LaunchSite(id=LAUNCHPAD, status=status)
        self.launches = list(launches)
        self.error = error
        self.calls = []

    def get_launch_site(self, site_id, timeout=None):
        self.calls.append(('get_launch_site', site_id, timeout))
        if self.error:
            raise self.error
        return self.site

    def get_upcoming_launches(self, site_id, timeout=None):
        self.calls.append(('get_upcoming_launches', site_id, timeout))
        return self.launches

    def launch_on(self, when: datetime, precision='day'):
        self.launches.append(Launch(launchpad_id=LAUNCHPAD,
                                    date_unix=int(to_utc(when).timestamp()),
                                    date_precision=precision))


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def manifest():
    return FakeManifest()


@pytest.fixture
def service(repository, manifest):
    return BookingService(repository=repository, manifest=manifest)


@pytest.fixture
def launch_date():
    """Noon UTC thirty days from now"""
    day = datetime.now(timezone.utc).date() + timedelta(days=30)
    return datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def booking_request(launch_date):
    return BookingRequest(
        first_name='John',
        last_name='Doe',
        gender='male',
        birthday=date(1990, 5, 17),
        launchpad_id=LAUNCHPAD,
        destination_id=MARS.id,
        launch_date=launch_date,
    )


# ---------------------------------------------------------------------- #
# PostgreSQL-backed fixtures
# ---------------------------------------------------------------------- #

def pytest_configure(config):
    """Declare custom markers to avoid pytest warnings."""
    config.addinivalue_line(
        "markers",
        "database: tests that need a reachable PostgreSQL (TEST_DATABASE_URL)",
    )


@pytest.fixture(scope='function')
def db_manager():
    """Create a test database manager with PostgreSQL test database."""
    from database.database import DatabaseManager, set_db_manager

    test_db_url = os.getenv('TEST_DATABASE_URL', 'postgresql://localhost/space_test')
    try:
        db = DatabaseManager(database_url=test_db_url, min_connections=1, max_connections=20)
    except RuntimeError as e:
        pytest.skip(f"PostgreSQL test database unavailable: {e}")

    db.drop_tables()  # Clean slate for each test
    db.create_tables()
    set_db_manager(db)
    yield db
    set_db_manager(None)
    db.drop_tables()  # Cleanup after test
    db.close_all_connections()


@pytest.fixture(scope='function')
def db_repository(db_manager):
    from backend.booking_repository import BookingRepository
    return BookingRepository(db_manager)


@pytest.fixture(scope='function')
def db_service(db_repository, manifest):
    """Booking service on the test database with a canned manifest"""
    return BookingService(repository=db_repository, manifest=manifest)
