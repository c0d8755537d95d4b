"""
Flight management service
Handles flight creation, lookups and availability listings
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from database import DatabaseManager, Flight, FlightDirectory, PostgresFlightDirectory
from backend.errors import DuplicateFlightError, FlightNotFoundError
from backend.seat_inventory import PostgresSeatInventory, SeatInventory

logger = logging.getLogger(__name__)


def _parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid base price: {value}") from e
    if price <= 0:
        raise ValueError("Base price must be positive")
    return price


class FlightService:
    """Service for flight management operations"""

    def __init__(self, flights: FlightDirectory, inventory: SeatInventory):
        self.flights = flights
        self.inventory = inventory

    @classmethod
    def from_database(cls, db_manager: Optional[DatabaseManager] = None) -> 'FlightService':
        return cls(PostgresFlightDirectory(db_manager), PostgresSeatInventory(db_manager))

    def create_flight(self, flight_number: str, capacity: int, base_price,
                      origin: Optional[str] = None, destination: Optional[str] = None,
                      departure_time: Optional[str] = None) -> Flight:
        """
        Create a new flight with every seat available

        Args:
            flight_number: Unique flight number
            capacity: Number of seats, fixed for the life of the flight
            base_price: Fare before loyalty discounts
            origin: Origin airport/city
            destination: Destination airport/city
            departure_time: Departure time as displayed to travelers

        Returns:
            Created flight object
        """
        if not flight_number:
            raise ValueError("Flight number is required")
        if capacity is None or capacity < 1:
            raise ValueError("Capacity must be at least 1")
        base_price = _parse_price(base_price)

        if self.flights.find_flight(flight_number) is not None:
            raise DuplicateFlightError(flight_number)

        flight = self.flights.save_flight(Flight(
            flight_number=flight_number,
            capacity=capacity,
            available_seats=capacity,
            base_price=base_price,
            origin=origin,
            destination=destination,
            departure_time=departure_time,
        ))
        logger.info("Created flight %s (%s -> %s) with %d seats at %s",
                    flight.flight_number, origin, destination, capacity, base_price)
        return flight

    def update_flight(self, flight_number: str, origin: Optional[str] = None,
                      destination: Optional[str] = None, departure_time: Optional[str] = None,
                      base_price=None) -> Flight:
        """
        Change the descriptive fields of a flight

        Only the arguments given are changed. Capacity and the seat counter
        are never touched, and a new base price applies to future bookings
        only.
        """
        flight = self.flights.find_flight(flight_number)
        if flight is None:
            raise FlightNotFoundError(flight_number)

        if origin is not None:
            flight.origin = origin
        if destination is not None:
            flight.destination = destination
        if departure_time is not None:
            flight.departure_time = departure_time
        if base_price is not None:
            flight.base_price = _parse_price(base_price)

        flight = self.flights.save_flight(flight)
        logger.info("Updated flight %s (%s -> %s, %s) at %s", flight_number, flight.origin,
                    flight.destination, flight.departure_time, flight.base_price)
        return flight

    def get_flight(self, flight_number: str) -> Optional[Flight]:
        """Get flight by number"""
        return self.flights.find_flight(flight_number)

    def list_flights(self) -> List[Flight]:
        return self.flights.list_flights()

    def list_available_flights(self) -> List[Flight]:
        """Flights with at least one free seat at the time of the call"""
        return [f for f in self.flights.list_flights() if f.has_available_seats()]

    def search_flights(self, origin: Optional[str] = None, destination: Optional[str] = None,
                       available_only: bool = False) -> List[Flight]:
        """
        Search flights by route

        Origin and destination match case-insensitively; omitted criteria
        match everything.
        """
        def matches(value, wanted):
            return wanted is None or (value or '').lower() == wanted.lower()

        results = [
            f for f in self.flights.list_flights()
            if matches(f.origin, origin) and matches(f.destination, destination)
        ]
        if available_only:
            results = [f for f in results if f.has_available_seats()]
        return results

    def has_availability(self, flight_number: str) -> bool:
        """Snapshot of whether a seat is free; not a reservation"""
        return self.inventory.has_availability(flight_number)
