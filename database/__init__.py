"""Database package initialization"""
from .models import (
    Passenger, Destination, Flight, Booking, BookingStatus,
    row_to_destination, row_to_flight, row_to_booking
)
from .database import DatabaseManager, get_db_manager, set_db_manager

__all__ = [
    'Passenger', 'Destination', 'Flight', 'Booking', 'BookingStatus',
    'row_to_destination', 'row_to_flight', 'row_to_booking',
    'DatabaseManager', 'get_db_manager', 'set_db_manager'
]
