"""
Storage interfaces consumed by the reservation core

The core only ever holds identifiers and asks these directories for records.
PostgreSQL implementations live in ``database.repositories`` and in-process
ones in ``database.memory``.
"""
from typing import Callable, List, Optional, Protocol

from .models import Booking, Flight, Traveler


class FlightDirectory(Protocol):
    def find_flight(self, flight_number: str) -> Optional[Flight]: ...

    def save_flight(self, flight: Flight) -> Flight:
        """Insert a flight, or update the descriptive fields of an existing one"""
        ...

    def set_available_seats(self, flight_number: str, available_seats: int) -> None: ...

    def list_flights(self) -> List[Flight]: ...


class TravelerDirectory(Protocol):
    def find_traveler(self, traveler_id: int) -> Optional[Traveler]: ...

    def find_traveler_by_email(self, email: str) -> Optional[Traveler]: ...

    def save_traveler(self, traveler: Traveler) -> Traveler: ...

    def update_traveler(self, traveler_id: int,
                        change: Callable[[Traveler], Traveler]) -> Optional[Traveler]:
        """
        Apply ``change`` to the stored traveler as one atomic read-modify-write

        Returns None when the traveler does not exist.
        """
        ...


class BookingStore(Protocol):
    def find_booking(self, booking_id: int) -> Optional[Booking]: ...

    def find_booking_by_reference(self, booking_reference: str) -> Optional[Booking]: ...

    def save_booking(self, booking: Booking) -> Booking: ...

    def mark_cancelled(self, booking_id: int) -> Optional[Booking]:
        """
        Move a CONFIRMED booking to CANCELLED

        Returns None, changing nothing, when the booking is not CONFIRMED at
        the moment of the update.
        """
        ...

    def list_bookings_by_traveler(self, traveler_id: int) -> List[Booking]: ...

    def next_reference_number(self) -> int:
        """Return a number never handed out before by this store"""
        ...
