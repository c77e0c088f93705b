"""
Test data generator for populating the database with valid bookings
Respects the local scheduling rules (same day / same week); the SpaceX
manifest is not consulted, so generated rows are sample data only
"""
from datetime import datetime, time, timedelta, timezone
import argparse
import logging
import random
import sys
import os
from typing import Optional

from faker import Faker

# Add parent directory to path for imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.database import get_db_manager
from database import Booking, BookingStatus, Flight, Passenger
from backend.booking_repository import BookingRepository
from backend.validators import GENDERS

logger = logging.getLogger(__name__)

# SpaceX launch pads (24-character manifest ids)
LAUNCHPADS = [
    '5e9e4501f509094ba4566f84',  # CCSFS SLC 40
    '5e9e4502f509092b78566f87',  # VAFB SLC 4E
    '5e9e4502f509094188566f88',  # KSC LC 39A
    '5e9e4502f5090995de566f86',  # Kwajalein Atoll
    '5e9e4501f5090910d4566f83',  # VAFB SLC 3W
    '5e9e3032383ecb6bb234e7ca',  # STLS
]


class DataGenerator:
    """Generate realistic sample bookings"""

    def __init__(self, repository: BookingRepository, seed: Optional[int] = None):
        """
        Initialize data generator

        Args:
            repository: Booking repository bound to the target database
            seed: Random seed for reproducibility
        """
        if seed:
            random.seed(seed)
            Faker.seed(seed)

        self.faker = Faker()
        self.repository = repository

    def load_destinations(self, conn):
        with conn.cursor() as cursor:
            cursor.execute("SELECT id FROM destinations ORDER BY name")
            return [row[0] for row in cursor.fetchall()]

    def random_passenger(self) -> Passenger:
        return Passenger(
            first_name=self.faker.first_name()[:50],
            last_name=self.faker.last_name()[:50],
            gender=random.choice(GENDERS),
            birthday=self.faker.date_of_birth(minimum_age=18, maximum_age=75),
        )

    def random_launch_date(self, days_ahead: int) -> datetime:
        day = datetime.now(timezone.utc).date() + timedelta(days=random.randint(1, days_ahead))
        hour = random.choice([6, 12, 18])
        return datetime.combine(day, time(hour, 0), tzinfo=timezone.utc)

    def generate_bookings(self, count: int = 100, days_ahead: int = 365, max_attempts: int = None):
        """
        Generate bookings on random pads, destinations and dates

        Picks that would break the same-day or same-week rules are skipped.

        Args:
            count: Number of bookings to generate
            days_ahead: Horizon for launch dates
            max_attempts: Give up after this many picks (defaults to 10 * count)

        Returns:
            List of created bookings
        """
        bookings = []
        max_attempts = max_attempts or count * 10
        attempts = 0

        logger.info("Generating %d bookings...", count)

        while len(bookings) < count and attempts < max_attempts:
            attempts += 1
            with self.repository.transaction() as conn:
                destination_id = random.choice(self.load_destinations(conn))
                launchpad_id = random.choice(LAUNCHPADS)
                launch_date = self.random_launch_date(days_ahead)

                flights = self.repository.find_flights(conn, {
                    'launchpad_id': launchpad_id,
                    'launch_date': launch_date,
                })
                if any(f.destination.id != destination_id for f in flights):
                    continue
                if self.repository.is_site_week_taken(conn, launchpad_id, destination_id, launch_date):
                    continue

                destination = self.repository.get_destination_by_id(conn, destination_id)
                booking = self.repository.create_booking(conn, Booking(
                    passenger=self.random_passenger(),
                    flight=Flight(launchpad_id=launchpad_id, destination=destination,
                                  launch_date=launch_date),
                    status=BookingStatus.ACTIVE,
                ))
                bookings.append(booking)

            if len(bookings) % 100 == 0:
                logger.info("  Created %d/%d bookings", len(bookings), count)

        logger.info("Generated %d bookings in %d attempts", len(bookings), attempts)
        return bookings


def main(argv=None):
    parser = argparse.ArgumentParser(description="Populate the booking database with sample data")
    parser.add_argument('--bookings', type=int, default=100)
    parser.add_argument('--days-ahead', type=int, default=365)
    parser.add_argument('--seed', type=int, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    db_manager = get_db_manager()
    db_manager.create_tables()

    generator = DataGenerator(BookingRepository(db_manager), seed=args.seed)
    generator.generate_bookings(count=args.bookings, days_ahead=args.days_ahead)


if __name__ == "__main__":
    main()
