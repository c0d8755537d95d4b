"""
PostgreSQL implementations of the flight, traveler and booking directories
"""
import logging
from typing import Callable, List, Optional

from psycopg2.errors import UniqueViolation
from psycopg2.extras import RealDictCursor

from backend.errors import IdentityCollisionError

from .database import DatabaseManager, get_db_manager
from .models import (
    Booking, BookingStatus, Flight, Traveler,
    row_to_booking, row_to_flight, row_to_traveler
)

logger = logging.getLogger(__name__)

_FLIGHT_COLS = """id, flight_number, origin, destination, departure_time, capacity,
    available_seats, base_price, created_at, updated_at"""

_TRAVELER_COLS = """id, name, email, customer_type, miles, membership_level,
    created_at, updated_at"""

# Booking with passenger query template
_BOOKING_WITH_PASSENGER_QUERY = """
    SELECT b.id, b.booking_reference, b.flight_number, b.traveler_id, b.seat_number,
           b.total_price, b.discount_amount, b.status, b.booking_date, b.updated_at,
           p.id as p_id, p.first_name, p.last_name, p.age, p.seat_preference
    FROM bookings b
    LEFT JOIN passengers p ON b.passenger_id = p.id
"""


class _Repository:
    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self._db_manager = db_manager

    @property
    def db(self) -> DatabaseManager:
        return self._db_manager or get_db_manager()


class PostgresFlightDirectory(_Repository):
    """Flight records in the ``flights`` table"""

    def find_flight(self, flight_number: str) -> Optional[Flight]:
        with self.db.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_FLIGHT_COLS}
                FROM flights
                WHERE flight_number = %s
            """, (flight_number,))
            return row_to_flight(cursor.fetchone())

    def save_flight(self, flight: Flight) -> Flight:
        """
        Insert a flight, or update the descriptive columns of an existing one

        Capacity and the seat counter are written only on insert; afterwards
        the counter belongs to the seat inventory.
        """
        with self.db.get_cursor() as cursor:
            cursor.execute(f"""
                INSERT INTO flights (flight_number, origin, destination, departure_time,
                                     capacity, available_seats, base_price)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (flight_number) DO UPDATE
                SET origin = EXCLUDED.origin,
                    destination = EXCLUDED.destination,
                    departure_time = EXCLUDED.departure_time,
                    base_price = EXCLUDED.base_price,
                    updated_at = NOW()
                RETURNING {_FLIGHT_COLS}
            """, (flight.flight_number, flight.origin, flight.destination, flight.departure_time,
                  flight.capacity, flight.available_seats, flight.base_price))
            return row_to_flight(cursor.fetchone())

    def set_available_seats(self, flight_number: str, available_seats: int) -> None:
        with self.db.get_cursor() as cursor:
            cursor.execute("""
                UPDATE flights
                SET available_seats = %s, updated_at = NOW()
                WHERE flight_number = %s
            """, (available_seats, flight_number))

    def list_flights(self) -> List[Flight]:
        with self.db.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_FLIGHT_COLS}
                FROM flights
                ORDER BY id
            """)
            return [row_to_flight(row) for row in cursor.fetchall()]


class PostgresTravelerDirectory(_Repository):
    """Traveler loyalty records in the ``travelers`` table"""

    def find_traveler(self, traveler_id: int) -> Optional[Traveler]:
        with self.db.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_TRAVELER_COLS}
                FROM travelers
                WHERE id = %s
            """, (traveler_id,))
            return row_to_traveler(cursor.fetchone())

    def find_traveler_by_email(self, email: str) -> Optional[Traveler]:
        with self.db.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_TRAVELER_COLS}
                FROM travelers
                WHERE email = %s
            """, (email,))
            return row_to_traveler(cursor.fetchone())

    def save_traveler(self, traveler: Traveler) -> Traveler:
        with self.db.get_cursor() as cursor:
            if traveler.id is None:
                cursor.execute(f"""
                    INSERT INTO travelers (name, email, customer_type, miles, membership_level)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING {_TRAVELER_COLS}
                """, (traveler.name, traveler.email, traveler.customer_type.value,
                      traveler.miles, traveler.membership_level.value))
            else:
                cursor.execute(f"""
                    UPDATE travelers
                    SET name = %s, email = %s, customer_type = %s, miles = %s,
                        membership_level = %s, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_TRAVELER_COLS}
                """, (traveler.name, traveler.email, traveler.customer_type.value,
                      traveler.miles, traveler.membership_level.value, traveler.id))
            return row_to_traveler(cursor.fetchone())

    def update_traveler(self, traveler_id: int,
                        change: Callable[[Traveler], Traveler]) -> Optional[Traveler]:
        """
        Read the traveler row under FOR UPDATE, apply ``change`` and write it back

        Concurrent updates of the same traveler queue on the row lock, so mileage
        credits from separate processes are never lost.
        """
        with self.db.transaction() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(f"""
                    SELECT {_TRAVELER_COLS}
                    FROM travelers
                    WHERE id = %s
                    FOR UPDATE
                """, (traveler_id,))
                traveler = row_to_traveler(cursor.fetchone())
                if traveler is None:
                    return None

                traveler = change(traveler)
                cursor.execute(f"""
                    UPDATE travelers
                    SET name = %s, email = %s, customer_type = %s, miles = %s,
                        membership_level = %s, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_TRAVELER_COLS}
                """, (traveler.name, traveler.email, traveler.customer_type.value,
                      traveler.miles, traveler.membership_level.value, traveler_id))
                return row_to_traveler(cursor.fetchone())


class PostgresBookingStore(_Repository):
    """Booking records in ``bookings`` with passenger details in ``passengers``"""

    def find_booking(self, booking_id: int) -> Optional[Booking]:
        with self.db.get_cursor() as cursor:
            cursor.execute(_BOOKING_WITH_PASSENGER_QUERY + " WHERE b.id = %s", (booking_id,))
            return row_to_booking(cursor.fetchone())

    def find_booking_by_reference(self, booking_reference: str) -> Optional[Booking]:
        with self.db.get_cursor() as cursor:
            cursor.execute(_BOOKING_WITH_PASSENGER_QUERY + " WHERE b.booking_reference = %s",
                           (booking_reference,))
            return row_to_booking(cursor.fetchone())

    def list_bookings_by_traveler(self, traveler_id: int) -> List[Booking]:
        with self.db.get_cursor() as cursor:
            cursor.execute(_BOOKING_WITH_PASSENGER_QUERY + " WHERE b.traveler_id = %s ORDER BY b.id",
                           (traveler_id,))
            return [row_to_booking(row) for row in cursor.fetchall()]

    def next_reference_number(self) -> int:
        with self.db.get_cursor() as cursor:
            cursor.execute("SELECT nextval('booking_reference_seq') AS value")
            return cursor.fetchone()['value']

    def save_booking(self, booking: Booking) -> Booking:
        """
        Insert a new booking with its passenger, or persist a status change

        Raises:
            IdentityCollisionError: If the booking reference is already taken
        """
        if booking.id is not None:
            return self._update_status(booking)

        try:
            with self.db.transaction() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                    passenger_id = None
                    if booking.passenger is not None:
                        passenger = booking.passenger
                        cursor.execute("""
                            INSERT INTO passengers (first_name, last_name, age, seat_preference)
                            VALUES (%s, %s, %s, %s)
                            RETURNING id
                        """, (passenger.first_name, passenger.last_name, passenger.age,
                              passenger.seat_preference.value))
                        passenger_id = cursor.fetchone()['id']

                    cursor.execute("""
                        INSERT INTO bookings
                        (booking_reference, flight_number, traveler_id, passenger_id, seat_number,
                         total_price, discount_amount, status, booking_date, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
                        RETURNING id
                    """, (booking.booking_reference, booking.flight_number, booking.traveler_id,
                          passenger_id, booking.seat_number, booking.total_price,
                          booking.discount_amount, booking.status.value))
                    booking_id = cursor.fetchone()['id']

                    cursor.execute(_BOOKING_WITH_PASSENGER_QUERY + " WHERE b.id = %s", (booking_id,))
                    return row_to_booking(cursor.fetchone())
        except UniqueViolation as e:
            logger.error("Booking reference %s rejected by unique constraint", booking.booking_reference)
            raise IdentityCollisionError(booking.booking_reference) from e

    def _update_status(self, booking: Booking) -> Booking:
        with self.db.get_cursor() as cursor:
            cursor.execute("""
                UPDATE bookings
                SET status = %s, updated_at = NOW()
                WHERE id = %s
            """, (booking.status.value, booking.id))
            cursor.execute(_BOOKING_WITH_PASSENGER_QUERY + " WHERE b.id = %s", (booking.id,))
            return row_to_booking(cursor.fetchone())

    def mark_cancelled(self, booking_id: int) -> Optional[Booking]:
        """Compare-and-set CONFIRMED -> CANCELLED; None when another caller got there first"""
        with self.db.get_cursor() as cursor:
            cursor.execute("""
                UPDATE bookings
                SET status = %s, updated_at = NOW()
                WHERE id = %s AND status = %s
                RETURNING id
            """, (BookingStatus.CANCELLED.value, booking_id, BookingStatus.CONFIRMED.value))
            if cursor.fetchone() is None:
                return None
            cursor.execute(_BOOKING_WITH_PASSENGER_QUERY + " WHERE b.id = %s", (booking_id,))
            return row_to_booking(cursor.fetchone())
