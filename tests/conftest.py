"""Pytest configuration and fixtures."""
import os
import sys
from decimal import Decimal

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import (
    InMemoryBookingStore, InMemoryFlightDirectory, InMemoryTravelerDirectory,
    Passenger, SeatPreference
)
from database.database import DatabaseManager, set_db_manager
from backend.booking_service import BookingService
from backend.flight_service import FlightService
from backend.seat_inventory import LockingSeatInventory
from backend.traveler_service import TravelerService


def pytest_addoption(parser):
    """Register custom CLI options for the test suite."""
    parser.addoption(
        "--performance",
        action="store_true",
        default=False,
        help="Run the performance test suite",
    )
    parser.addoption(
        "--performance-bookings",
        type=int,
        default=20000,
        help="Number of bookings to create in performance tests",
    )
    parser.addoption(
        "--performance-flights",
        type=int,
        default=50,
        help="Number of flights to spread performance bookings over",
    )


def pytest_configure(config):
    """Declare custom markers to avoid pytest warnings."""
    config.addinivalue_line(
        "markers",
        "performance: marks performance tests that only run when --performance is supplied",
    )


def pytest_collection_modifyitems(config, items):
    """Skip performance tests unless the dedicated flag is present."""
    if config.getoption("--performance"):
        return

    skip_marker = pytest.mark.skip(
        reason="Performance tests only run when --performance flag is provided",
    )
    for item in items:
        if "performance" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture(scope='function')
def flight_directory():
    return InMemoryFlightDirectory()


@pytest.fixture(scope='function')
def traveler_directory():
    return InMemoryTravelerDirectory()


@pytest.fixture(scope='function')
def booking_store():
    return InMemoryBookingStore()


@pytest.fixture(scope='function')
def seat_inventory(flight_directory):
    return LockingSeatInventory(flight_directory)


@pytest.fixture(scope='function')
def flight_service(flight_directory, seat_inventory):
    return FlightService(flight_directory, seat_inventory)


@pytest.fixture(scope='function')
def traveler_service(traveler_directory):
    return TravelerService(traveler_directory)


@pytest.fixture(scope='function')
def booking_service(flight_directory, traveler_directory, booking_store, seat_inventory):
    return BookingService(flight_directory, traveler_directory, booking_store, seat_inventory)


@pytest.fixture(scope='function')
def test_flight(flight_service):
    """Create the TX101 test flight"""
    return flight_service.create_flight(
        flight_number='TX101',
        capacity=150,
        base_price=Decimal('199.99'),
        origin='Dallas',
        destination='Austin',
        departure_time='08:00 AM'
    )


@pytest.fixture(scope='function')
def small_flight(flight_service):
    """Create a flight with only two seats"""
    return flight_service.create_flight(
        flight_number='TX900',
        capacity=2,
        base_price=Decimal('100.00'),
        origin='El Paso',
        destination='Lubbock'
    )


@pytest.fixture(scope='function')
def regular_traveler(traveler_service):
    """Create a regular traveler"""
    return traveler_service.register_traveler('John Doe', 'john@example.com')


@pytest.fixture(scope='function')
def gold_flyer(traveler_service):
    """Create a frequent flyer with 30,000 miles (GOLD)"""
    return traveler_service.register_traveler(
        'Jane Smith', 'jane@example.com', miles=30000, frequent_flyer=True
    )


@pytest.fixture(scope='function')
def test_passenger():
    """Passenger details for a booking"""
    return Passenger(first_name='John', last_name='Doe', age=34, seat_preference=SeatPreference.WINDOW)


@pytest.fixture(scope='function')
def db_manager():
    """PostgreSQL test database; skipped when it cannot be reached."""
    test_db_url = os.getenv('TEST_DATABASE_URL', 'postgresql://localhost/seat_ledger_test')
    try:
        db = DatabaseManager(database_url=test_db_url, echo=False)
    except RuntimeError as e:
        pytest.skip(f"PostgreSQL test database unavailable: {e}")
    db.drop_tables()  # Clean slate for each test
    db.create_tables()
    set_db_manager(db)
    yield db
    set_db_manager(None)
    db.drop_tables()  # Cleanup after test
    db.close_all_connections()
