"""
In-process directories backed by dictionaries

Records are copied on the way in and out so callers never share state with the
store, the same as rows fetched from a database. Each store guards its maps
with a lock and is safe to use from many threads.
"""
import copy
import itertools
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from backend.errors import IdentityCollisionError

from .models import Booking, BookingStatus, Flight, Traveler


class InMemoryFlightDirectory:
    """Flight records keyed by flight number"""

    def __init__(self):
        self._lock = threading.Lock()
        self._flights: Dict[str, Flight] = {}
        self._ids = itertools.count(1)

    def find_flight(self, flight_number: str) -> Optional[Flight]:
        with self._lock:
            flight = self._flights.get(flight_number)
            return copy.deepcopy(flight) if flight else None

    def save_flight(self, flight: Flight) -> Flight:
        now = datetime.now()
        with self._lock:
            stored = copy.deepcopy(flight)
            existing = self._flights.get(flight.flight_number)
            if existing:
                # Capacity and the seat counter belong to the seat inventory
                stored.id = existing.id
                stored.created_at = existing.created_at
                stored.capacity = existing.capacity
                stored.available_seats = existing.available_seats
            else:
                stored.id = stored.id or next(self._ids)
                stored.created_at = stored.created_at or now
            stored.updated_at = now
            self._flights[stored.flight_number] = stored
            return copy.deepcopy(stored)

    def set_available_seats(self, flight_number: str, available_seats: int) -> None:
        with self._lock:
            flight = self._flights[flight_number]
            flight.available_seats = available_seats
            flight.updated_at = datetime.now()

    def list_flights(self) -> List[Flight]:
        with self._lock:
            return [copy.deepcopy(f) for f in sorted(self._flights.values(), key=lambda f: f.id)]


class InMemoryTravelerDirectory:
    """Traveler records keyed by id"""

    def __init__(self):
        self._lock = threading.Lock()
        self._travelers: Dict[int, Traveler] = {}
        self._ids = itertools.count(1)

    def find_traveler(self, traveler_id: int) -> Optional[Traveler]:
        with self._lock:
            traveler = self._travelers.get(traveler_id)
            return copy.deepcopy(traveler) if traveler else None

    def find_traveler_by_email(self, email: str) -> Optional[Traveler]:
        with self._lock:
            for traveler in self._travelers.values():
                if traveler.email == email:
                    return copy.deepcopy(traveler)
            return None

    def save_traveler(self, traveler: Traveler) -> Traveler:
        now = datetime.now()
        with self._lock:
            stored = copy.deepcopy(traveler)
            if stored.id is None:
                stored.id = next(self._ids)
                stored.created_at = now
            stored.updated_at = now
            self._travelers[stored.id] = stored
            return copy.deepcopy(stored)

    def update_traveler(self, traveler_id: int,
                        change: Callable[[Traveler], Traveler]) -> Optional[Traveler]:
        with self._lock:
            existing = self._travelers.get(traveler_id)
            if existing is None:
                return None
            stored = change(copy.deepcopy(existing))
            stored.updated_at = datetime.now()
            self._travelers[traveler_id] = stored
            return copy.deepcopy(stored)


class InMemoryBookingStore:
    """Booking records keyed by id with a unique reference index"""

    def __init__(self, first_reference_number: int = 100000):
        self._lock = threading.Lock()
        self._bookings: Dict[int, Booking] = {}
        self._by_reference: Dict[str, int] = {}
        self._ids = itertools.count(1)
        self._reference_numbers = itertools.count(first_reference_number)

    def find_booking(self, booking_id: int) -> Optional[Booking]:
        with self._lock:
            booking = self._bookings.get(booking_id)
            return copy.deepcopy(booking) if booking else None

    def find_booking_by_reference(self, booking_reference: str) -> Optional[Booking]:
        with self._lock:
            booking_id = self._by_reference.get(booking_reference)
            if booking_id is None:
                return None
            return copy.deepcopy(self._bookings[booking_id])

    def save_booking(self, booking: Booking) -> Booking:
        now = datetime.now()
        with self._lock:
            owner = self._by_reference.get(booking.booking_reference)
            if owner is not None and owner != booking.id:
                raise IdentityCollisionError(booking.booking_reference)

            stored = copy.deepcopy(booking)
            if stored.id is None:
                stored.id = next(self._ids)
                stored.booking_date = stored.booking_date or now
                if stored.passenger is not None and stored.passenger.id is None:
                    stored.passenger.id = stored.id
            stored.updated_at = now
            self._bookings[stored.id] = stored
            self._by_reference[stored.booking_reference] = stored.id
            return copy.deepcopy(stored)

    def mark_cancelled(self, booking_id: int) -> Optional[Booking]:
        with self._lock:
            stored = self._bookings.get(booking_id)
            if stored is None or stored.status != BookingStatus.CONFIRMED:
                return None
            stored.status = BookingStatus.CANCELLED
            stored.updated_at = datetime.now()
            return copy.deepcopy(stored)

    def list_bookings_by_traveler(self, traveler_id: int) -> List[Booking]:
        with self._lock:
            return [
                copy.deepcopy(b) for b in sorted(self._bookings.values(), key=lambda b: b.id)
                if b.traveler_id == traveler_id
            ]

    def next_reference_number(self) -> int:
        with self._lock:
            return next(self._reference_numbers)
