"""
Booking service: admission control for launch bookings
Availability checks and writes of one request share a single transaction
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from database import Booking, BookingStatus, Destination, Flight, Passenger
from backend.date_window import resolve_window, to_utc
from backend.deadline import check_deadline, deadline_after, remaining
from backend.errors import (
    BookingError, DestinationNotFound, InvalidIdentifier, InvalidStateForDeletion,
    SiteBookedForOtherDestination, SiteReservedExternally, SiteScheduledThisWeek
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100


@dataclass
class BookingRequest:
    """Validated request to book one passenger on one launch"""
    first_name: str
    last_name: str
    gender: str
    birthday: date
    launchpad_id: str
    destination_id: uuid.UUID
    launch_date: datetime


@dataclass
class BookingPage:
    """One page of the booking listing"""
    bookings: List[Booking] = field(default_factory=list)
    limit: int = DEFAULT_PAGE_LIMIT
    cursor: str = ""

    def to_dict(self) -> dict:
        return {
            'bookings': [booking.to_dict() for booking in self.bookings],
            'limit': self.limit,
            'cursor': self.cursor,
        }


def parse_booking_id(value) -> uuid.UUID:
    """Parse a booking identifier, raising InvalidIdentifier when malformed"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InvalidIdentifier(f"invalid booking id: {value!r}") from None


class BookingService:
    """Service for booking operations with transaction safety"""

    def __init__(self, repository, manifest, default_limit: int = DEFAULT_PAGE_LIMIT,
                 max_limit: int = MAX_PAGE_LIMIT, request_timeout: Optional[float] = None):
        """
        Args:
            repository: Persistence port (see BookingRepository)
            manifest: External launch manifest port (see SpaceXClient)
            default_limit: Page size used when the caller gives none
            max_limit: Largest page size served
            request_timeout: Budget in seconds applied when a caller passes no deadline
        """
        self.repository = repository
        self.manifest = manifest
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.request_timeout = request_timeout

    def _deadline(self, deadline: Optional[float]) -> Optional[float]:
        return deadline if deadline is not None else deadline_after(self.request_timeout)

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    def check_availability(self, conn, launchpad_id: str, destination_id: uuid.UUID,
                           launch_date: datetime, deadline: Optional[float] = None) -> Destination:
        """
        Run the admission checks in order, stopping at the first failure

        Args:
            conn: Connection of the request's transaction
            launchpad_id: External launch site key
            destination_id: Requested destination
            launch_date: Proposed launch date
            deadline: Absolute monotonic deadline

        Returns:
            The requested destination

        Raises:
            DestinationNotFound: Unknown destination
            SiteBookedForOtherDestination: Site flies elsewhere that day
            SiteScheduledThisWeek: Site already flies there this ISO week
            SiteReservedExternally: SpaceX launch window covers the date
            SiteNotFound, UpstreamFailure: Manifest could not confirm availability
            RequestTimeout: Deadline passed between steps
        """
        check_deadline(deadline, "destination lookup")
        destination = self.repository.get_destination_by_id(conn, destination_id)
        if destination is None:
            raise DestinationNotFound(f"destination {destination_id} not found")

        check_deadline(deadline, "same-day check")
        flights = self.repository.find_flights(conn, {
            'launchpad_id': launchpad_id,
            'launch_date': launch_date,
        })
        # several flights to the same destination may share a site and date
        if any(flight.destination.id != destination.id for flight in flights):
            raise SiteBookedForOtherDestination()

        check_deadline(deadline, "weekly check")
        if self.repository.is_site_week_taken(conn, launchpad_id, destination.id, launch_date):
            raise SiteScheduledThisWeek()

        check_deadline(deadline, "launch manifest check")
        self._check_manifest(launchpad_id, launch_date, deadline)

        return destination

    def _check_manifest(self, launchpad_id: str, launch_date: datetime,
                        deadline: Optional[float]) -> None:
        site = self.manifest.get_launch_site(launchpad_id, timeout=remaining(deadline))
        if not site.is_active:
            # TODO: decide whether inactive pads should reject bookings (DESIGN.md, open questions)
            logger.info("launchpad %s is %s, skipping manifest conflicts", launchpad_id,
                        site.status, extra={'launchpad_id': launchpad_id})
            return

        check_deadline(deadline, "upcoming launch lookup")
        launches = self.manifest.get_upcoming_launches(launchpad_id, timeout=remaining(deadline))
        for launch in launches:
            window = resolve_window(launch.date_unix, launch.date_precision)
            if not window.is_available(launch_date):
                raise SiteReservedExternally()

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    def create_booking(self, request: BookingRequest, deadline: Optional[float] = None) -> Booking:
        """
        Book a passenger on a launch

        Checks and writes run on one transaction: any rejection, failure or
        expired deadline rolls everything back. Two concurrent requests for
        the same slot may both pass the checks (see DESIGN.md).

        Args:
            request: Validated booking request
            deadline: Absolute monotonic deadline (defaults to request_timeout)

        Returns:
            The confirmed booking
        """
        deadline = self._deadline(deadline)
        launch_date = to_utc(request.launch_date)

        try:
            with self.repository.transaction(deadline) as conn:
                destination = self.check_availability(
                    conn, request.launchpad_id, request.destination_id, launch_date, deadline
                )

                booking = Booking(
                    id=uuid.uuid4(),
                    passenger=Passenger(
                        id=uuid.uuid4(),
                        first_name=request.first_name,
                        last_name=request.last_name,
                        gender=request.gender,
                        birthday=request.birthday,
                    ),
                    flight=Flight(
                        id=uuid.uuid4(),
                        launchpad_id=request.launchpad_id,
                        destination=destination,
                        launch_date=launch_date,
                    ),
                    status=BookingStatus.ACTIVE,
                )

                check_deadline(deadline, "booking write")
                booking = self.repository.create_booking(conn, booking)
                check_deadline(deadline, "commit")
        except BookingError as e:
            logger.info("booking rejected: %s", e.message,
                        extra={'error_code': e.code, 'launchpad_id': request.launchpad_id,
                               'destination_id': request.destination_id})
            raise

        logger.info("booking %s confirmed", booking.id,
                    extra={'booking_id': booking.id, 'launchpad_id': request.launchpad_id})
        return booking

    # ------------------------------------------------------------------ #
    # Listing
    # ------------------------------------------------------------------ #

    def effective_limit(self, limit: Optional[int]) -> int:
        """Missing or non-positive limits fall back to the default, large ones are capped"""
        if limit is None or limit <= 0:
            return self.default_limit
        return min(limit, self.max_limit)

    def list_bookings(self, after_cursor: str = "", limit: Optional[int] = None,
                      deadline: Optional[float] = None) -> BookingPage:
        """
        List bookings in creation order

        Args:
            after_cursor: Cursor returned by the previous page, "" for the first page
            limit: Page size

        Returns:
            BookingPage with the bookings, effective limit and next cursor

        Raises:
            MalformedCursor: If after_cursor cannot be decoded
        """
        limit = self.effective_limit(limit)
        with self.repository.transaction(self._deadline(deadline)) as conn:
            bookings, next_cursor = self.repository.list_bookings_after(
                conn, after_cursor or "", limit
            )
        return BookingPage(bookings=bookings, limit=limit, cursor=next_cursor)

    def get_booking(self, booking_id, deadline: Optional[float] = None) -> Booking:
        """Get booking by ID"""
        booking_uuid = parse_booking_id(booking_id)
        with self.repository.transaction(self._deadline(deadline)) as conn:
            return self.repository.get_booking_by_id(conn, booking_uuid)

    # ------------------------------------------------------------------ #
    # Removal
    # ------------------------------------------------------------------ #

    def delete_booking(self, booking_id, deadline: Optional[float] = None) -> None:
        """
        Permanently remove an ACTIVE or CONFIRMED booking

        Raises:
            InvalidIdentifier: If booking_id is not a UUID
            BookingNotFound: If the booking does not exist
            InvalidStateForDeletion: If the booking is in any other status
        """
        booking_uuid = parse_booking_id(booking_id)

        with self.repository.transaction(self._deadline(deadline)) as conn:
            booking = self.repository.get_booking_by_id(conn, booking_uuid)

            if booking.status is None or not booking.status.is_deletable:
                status = booking.status.value if booking.status else None
                raise InvalidStateForDeletion(f"cannot delete booking with status {status}")

            self.repository.delete_booking(conn, booking_uuid)

        logger.info("booking %s deleted", booking_uuid, extra={'booking_id': booking_uuid})
