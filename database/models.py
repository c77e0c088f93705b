"""
Database models for the space launch booking service
Plain Python classes and enums (no ORM)
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
import enum
import uuid


class BookingStatus(enum.Enum):
    """Booking status enumeration"""
    ACTIVE = "ACTIVE"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    @property
    def is_deletable(self) -> bool:
        return self in (BookingStatus.ACTIVE, BookingStatus.CONFIRMED)


@dataclass
class Passenger:
    """Passenger travelling on a single booking"""
    id: Optional[uuid.UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    birthday: Optional[date] = None

    def __repr__(self):
        return f"<Passenger(id={self.id}, name='{self.first_name} {self.last_name}')>"


@dataclass
class Destination:
    """Destination reference data (read-only)"""
    id: Optional[uuid.UUID] = None
    name: Optional[str] = None

    def __repr__(self):
        return f"<Destination(id={self.id}, name='{self.name}')>"


@dataclass
class Flight:
    """Flight from an external launch site to a destination"""
    id: Optional[uuid.UUID] = None
    launchpad_id: Optional[str] = None
    destination: Optional[Destination] = None
    launch_date: Optional[datetime] = None

    def __repr__(self):
        dest = self.destination.name if self.destination else None
        return f"<Flight(id={self.id}, launchpad='{self.launchpad_id}', destination='{dest}')>"


@dataclass
class Booking:
    """Booking linking one passenger to one flight"""
    id: Optional[uuid.UUID] = None
    passenger: Passenger = field(default_factory=Passenger)
    flight: Flight = field(default_factory=Flight)
    status: Optional[BookingStatus] = None
    created_at: Optional[datetime] = None

    def __repr__(self):
        return f"<Booking(id={self.id}, status={self.status.value if self.status else None})>"

    def to_dict(self) -> dict:
        """Serialize booking with its passenger, flight and destination"""
        destination = self.flight.destination or Destination()
        return {
            'id': str(self.id) if self.id else None,
            'user': {
                'id': str(self.passenger.id) if self.passenger.id else None,
                'first_name': self.passenger.first_name,
                'last_name': self.passenger.last_name,
                'gender': self.passenger.gender,
                'birthday': self.passenger.birthday.isoformat() if self.passenger.birthday else None,
            },
            'flight': {
                'id': str(self.flight.id) if self.flight.id else None,
                'launchpad_id': self.flight.launchpad_id,
                'destination': {
                    'id': str(destination.id) if destination.id else None,
                    'name': destination.name,
                },
                'launch_date': self.flight.launch_date.isoformat() if self.flight.launch_date else None,
            },
            'status': self.status.value if self.status else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


def row_to_destination(row) -> Destination:
    """Convert database row to Destination object"""
    if not row:
        return None
    return Destination(
        id=row['id'],
        name=row['name']
    )


def row_to_flight(row) -> Flight:
    """Convert flight row (joined with its destination) to Flight object"""
    if not row:
        return None
    return Flight(
        id=row['id'],
        launchpad_id=row['launchpad_id'],
        launch_date=row['launch_date'],
        destination=Destination(
            id=row['destination_id'],
            name=row.get('destination_name')
        )
    )


def row_to_booking(row) -> Booking:
    """Convert fully joined booking row to Booking object

    Expects the column aliases produced by the booking repository
    (``p_*`` for the passenger, ``f_*`` for the flight, ``d_*`` for the
    destination).
    """
    if not row:
        return None
    return Booking(
        id=row['id'],
        status=BookingStatus(row['status']) if row['status'] else None,
        created_at=row.get('created_at'),
        passenger=Passenger(
            id=row['p_id'],
            first_name=row['first_name'],
            last_name=row['last_name'],
            gender=row['gender'],
            birthday=row['birthday']
        ),
        flight=Flight(
            id=row['f_id'],
            launchpad_id=row['launchpad_id'],
            launch_date=row['launch_date'],
            destination=Destination(
                id=row['d_id'],
                name=row['d_name']
            )
        )
    )
