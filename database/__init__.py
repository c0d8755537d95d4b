"""Database package initialization"""
from .models import (
    Flight, Traveler, Passenger, Booking, BookingStats,
    CustomerType, MembershipLevel, BookingStatus, SeatPreference,
    row_to_flight, row_to_traveler, row_to_passenger, row_to_booking
)
from .database import DatabaseManager, get_db_manager, set_db_manager
from .directories import FlightDirectory, TravelerDirectory, BookingStore
from .memory import InMemoryFlightDirectory, InMemoryTravelerDirectory, InMemoryBookingStore
from .repositories import PostgresFlightDirectory, PostgresTravelerDirectory, PostgresBookingStore

__all__ = [
    'Flight', 'Traveler', 'Passenger', 'Booking', 'BookingStats',
    'CustomerType', 'MembershipLevel', 'BookingStatus', 'SeatPreference',
    'row_to_flight', 'row_to_traveler', 'row_to_passenger', 'row_to_booking',
    'DatabaseManager', 'get_db_manager', 'set_db_manager',
    'FlightDirectory', 'TravelerDirectory', 'BookingStore',
    'InMemoryFlightDirectory', 'InMemoryTravelerDirectory', 'InMemoryBookingStore',
    'PostgresFlightDirectory', 'PostgresTravelerDirectory', 'PostgresBookingStore',
]
