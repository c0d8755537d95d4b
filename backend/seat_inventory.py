"""
Seat inventory with atomic per-flight reserve and release
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Optional, Protocol

from database import DatabaseManager, FlightDirectory, get_db_manager
from backend.errors import FlightNotFoundError

logger = logging.getLogger(__name__)


class SeatInventory(Protocol):
    def reserve(self, flight_number: str) -> bool: ...

    def release(self, flight_number: str) -> bool: ...

    def has_availability(self, flight_number: str) -> bool: ...

    def available_seats(self, flight_number: str) -> int: ...


class KeyedLocks:
    """One lock per key, created on first use; keys are flight numbers, a bounded set"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: Hashable):
        with self.lock_for(key):
            yield


class LockingSeatInventory:
    """
    Seat counters kept in a flight directory, mutated under a per-flight lock

    Every read-modify-save of a flight's counter happens while holding that
    flight's lock, so two callers racing for the last seat see exactly one
    success. Flights never share a lock.
    """

    def __init__(self, flights: FlightDirectory):
        self.flights = flights
        self._locks = KeyedLocks()

    def _load(self, flight_number: str):
        flight = self.flights.find_flight(flight_number)
        if flight is None:
            raise FlightNotFoundError(flight_number)
        return flight

    def reserve(self, flight_number: str) -> bool:
        """Take one seat; False when the flight is full"""
        with self._locks.hold(flight_number):
            flight = self._load(flight_number)
            if flight.available_seats <= 0:
                logger.info("Reserve refused on %s: no seats left", flight_number)
                return False
            flight.available_seats -= 1
            self.flights.set_available_seats(flight_number, flight.available_seats)
        logger.debug("Reserved seat on %s, %d left", flight_number, flight.available_seats)
        return True

    def release(self, flight_number: str) -> bool:
        """Give one seat back; the counter never exceeds capacity"""
        with self._locks.hold(flight_number):
            flight = self._load(flight_number)
            if flight.available_seats >= flight.capacity:
                logger.warning("Release ignored on %s: already at capacity %d",
                               flight_number, flight.capacity)
                return False
            flight.available_seats += 1
            self.flights.set_available_seats(flight_number, flight.available_seats)
        logger.debug("Released seat on %s, %d left", flight_number, flight.available_seats)
        return True

    def available_seats(self, flight_number: str) -> int:
        return self._load(flight_number).available_seats

    def has_availability(self, flight_number: str) -> bool:
        """Snapshot only; use reserve() to actually take a seat"""
        return self.available_seats(flight_number) > 0


class PostgresSeatInventory:
    """
    Seat counters in the ``flights`` table

    Reserve is one conditional UPDATE, so PostgreSQL's row lock makes the
    check and the decrement a single step across all connections.
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self._db_manager = db_manager

    @property
    def db(self) -> DatabaseManager:
        return self._db_manager or get_db_manager()

    def _ensure_exists(self, cursor, flight_number: str):
        cursor.execute("SELECT 1 FROM flights WHERE flight_number = %s", (flight_number,))
        if cursor.fetchone() is None:
            raise FlightNotFoundError(flight_number)

    def reserve(self, flight_number: str) -> bool:
        with self.db.get_cursor() as cursor:
            cursor.execute("""
                UPDATE flights
                SET available_seats = available_seats - 1, updated_at = NOW()
                WHERE flight_number = %s AND available_seats > 0
                RETURNING available_seats
            """, (flight_number,))
            row = cursor.fetchone()
            if row is None:
                self._ensure_exists(cursor, flight_number)
                logger.info("Reserve refused on %s: no seats left", flight_number)
                return False
        logger.debug("Reserved seat on %s, %d left", flight_number, row['available_seats'])
        return True

    def release(self, flight_number: str) -> bool:
        with self.db.get_cursor() as cursor:
            cursor.execute("""
                UPDATE flights
                SET available_seats = LEAST(available_seats + 1, capacity), updated_at = NOW()
                WHERE flight_number = %s AND available_seats < capacity
                RETURNING available_seats
            """, (flight_number,))
            row = cursor.fetchone()
            if row is None:
                self._ensure_exists(cursor, flight_number)
                logger.warning("Release ignored on %s: already at capacity", flight_number)
                return False
        logger.debug("Released seat on %s, %d left", flight_number, row['available_seats'])
        return True

    def available_seats(self, flight_number: str) -> int:
        with self.db.get_cursor() as cursor:
            cursor.execute("SELECT available_seats FROM flights WHERE flight_number = %s",
                           (flight_number,))
            row = cursor.fetchone()
            if row is None:
                raise FlightNotFoundError(flight_number)
            return row['available_seats']

    def has_availability(self, flight_number: str) -> bool:
        return self.available_seats(flight_number) > 0
