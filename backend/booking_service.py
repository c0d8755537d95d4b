"""
Booking service: seat reservation, fare pricing and booking lifecycle
Composes the seat inventory and fare policy over the storage directories
"""
import logging
from decimal import Decimal
from typing import List, Optional

from database import (
    Booking, BookingStats, BookingStatus, Passenger,
    BookingStore, FlightDirectory, TravelerDirectory,
    PostgresBookingStore, PostgresFlightDirectory, PostgresTravelerDirectory,
    DatabaseManager
)
from backend import fare_policy
from backend.errors import (
    AlreadyCancelledError, BookingNotFoundError, FlightNotFoundError,
    IdentityCollisionError, InvalidStateError, LoyaltyUpdateError,
    NoSeatsAvailableError, TravelerNotFoundError
)
from backend.seat_inventory import PostgresSeatInventory, SeatInventory

logger = logging.getLogger(__name__)

BOOKING_REFERENCE_PREFIX = 'TXR'


class BookingService:
    """Service for booking operations with seat and loyalty consistency"""

    def __init__(self, flights: FlightDirectory, travelers: TravelerDirectory,
                 bookings: BookingStore, inventory: SeatInventory):
        self.flights = flights
        self.travelers = travelers
        self.bookings = bookings
        self.inventory = inventory

    @classmethod
    def from_database(cls, db_manager: Optional[DatabaseManager] = None) -> 'BookingService':
        """Wire the service to the PostgreSQL directories"""
        return cls(
            flights=PostgresFlightDirectory(db_manager),
            travelers=PostgresTravelerDirectory(db_manager),
            bookings=PostgresBookingStore(db_manager),
            inventory=PostgresSeatInventory(db_manager),
        )

    def _generate_booking_reference(self) -> str:
        """
        Generate a booking reference from the store's reference counter

        Raises:
            IdentityCollisionError: If the reference is already on record
        """
        reference = f"{BOOKING_REFERENCE_PREFIX}{self.bookings.next_reference_number():08d}"
        if self.bookings.find_booking_by_reference(reference) is not None:
            raise IdentityCollisionError(reference)
        return reference

    def create_booking(self, traveler_id: int, flight_number: str, passenger: Passenger,
                       seat_number: Optional[str] = None) -> Booking:
        """
        Reserve a seat and record a confirmed booking

        Args:
            traveler_id: Traveler making (and paying for) the booking
            flight_number: Flight to book
            passenger: Details of the person flying
            seat_number: Seat label, stored as given

        Returns:
            The persisted booking in CONFIRMED status

        Raises:
            FlightNotFoundError: Unknown flight
            TravelerNotFoundError: Unknown traveler
            NoSeatsAvailableError: Flight is full; nothing was changed
            IdentityCollisionError: Reference generation failed; seat released
            LoyaltyUpdateError: Booking committed but miles could not be credited
        """
        flight = self.flights.find_flight(flight_number)
        if flight is None:
            raise FlightNotFoundError(flight_number)

        traveler = self.travelers.find_traveler(traveler_id)
        if traveler is None:
            raise TravelerNotFoundError(traveler_id)

        if not self.inventory.reserve(flight_number):
            raise NoSeatsAvailableError(flight_number)

        try:
            rate = fare_policy.traveler_discount_rate(traveler)
            total_price, discount_amount = fare_policy.price_fare(flight.base_price, rate)

            booking = Booking(
                booking_reference=self._generate_booking_reference(),
                flight_number=flight_number,
                traveler_id=traveler_id,
                passenger=passenger,
                seat_number=seat_number,
                total_price=total_price,
                discount_amount=discount_amount,
                status=BookingStatus.CONFIRMED,
            )
            booking = self.bookings.save_booking(booking)
        except Exception:
            # Give the seat back before the error reaches the caller
            logger.exception("Booking on %s for traveler %s failed after reserving a seat; releasing it",
                             flight_number, traveler_id)
            self.inventory.release(flight_number)
            raise

        logger.info("Booking %s confirmed on %s for traveler %s at %s (discount %s)",
                    booking.booking_reference, flight_number, traveler_id,
                    booking.total_price, booking.discount_amount)

        if traveler.is_frequent_flyer:
            try:
                self._award_miles(traveler_id, fare_policy.MILES_PER_BOOKING)
            except Exception as e:
                logger.error("Mileage credit for booking %s failed: %s", booking.booking_reference, e)
                raise LoyaltyUpdateError(booking, e) from e

        return booking

    def _award_miles(self, traveler_id: int, miles: int):
        # Atomic at the store: concurrent credits from other processes are not lost
        traveler = self.travelers.update_traveler(
            traveler_id, lambda t: fare_policy.apply_miles(t, miles))
        if traveler is None:
            raise TravelerNotFoundError(traveler_id)
        logger.debug("Credited %d miles to traveler %s, now %d (%s)",
                     miles, traveler_id, traveler.miles, traveler.membership_level.value)
        return traveler

    def cancel_booking(self, booking_id: int) -> Booking:
        """
        Cancel a booking and give its seat back to the flight

        Mileage credited at booking time is kept.

        Raises:
            BookingNotFoundError: Unknown booking
            AlreadyCancelledError: Booking was cancelled before
            InvalidStateError: Booking is already completed
        """
        booking = self.bookings.find_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return self._cancel(booking)

    def cancel_booking_by_reference(self, booking_reference: str) -> Booking:
        """Cancel a booking identified by its reference"""
        booking = self.bookings.find_booking_by_reference(booking_reference)
        if booking is None:
            raise BookingNotFoundError(booking_reference)
        return self._cancel(booking)

    @staticmethod
    def _check_cancellable(booking: Booking):
        if booking.status == BookingStatus.CANCELLED:
            raise AlreadyCancelledError(booking.booking_reference)
        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidStateError(
                f"Cannot cancel {booking.status.value} booking {booking.booking_reference}")

    def _cancel(self, booking: Booking) -> Booking:
        self._check_cancellable(booking)

        # Only the caller whose status change lands releases the seat
        cancelled = self.bookings.mark_cancelled(booking.id)
        if cancelled is None:
            self._check_cancellable(self.bookings.find_booking(booking.id))
            raise AlreadyCancelledError(booking.booking_reference)
        booking = cancelled

        try:
            self.inventory.release(booking.flight_number)
        except Exception:
            logger.exception("Seat release for cancelled booking %s failed; restoring it",
                             booking.booking_reference)
            booking.status = BookingStatus.CONFIRMED
            self.bookings.save_booking(booking)
            raise

        logger.info("Booking %s cancelled, seat returned to %s",
                    booking.booking_reference, booking.flight_number)
        return booking

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.bookings.find_booking(booking_id)

    def get_booking_by_reference(self, booking_reference: str) -> Optional[Booking]:
        return self.bookings.find_booking_by_reference(booking_reference)

    def list_bookings(self, traveler_id: int) -> List[Booking]:
        """All bookings made by a traveler, oldest first"""
        return self.bookings.list_bookings_by_traveler(traveler_id)

    def list_active_bookings(self, traveler_id: int) -> List[Booking]:
        return [b for b in self.list_bookings(traveler_id) if b.status == BookingStatus.CONFIRMED]

    def get_booking_stats(self, traveler_id: int) -> BookingStats:
        """
        Booking statistics for a traveler

        ``total_spent`` sums the price of every booking that is not cancelled.
        """
        bookings = self.list_bookings(traveler_id)
        return BookingStats(
            total=len(bookings),
            confirmed=sum(1 for b in bookings if b.status == BookingStatus.CONFIRMED),
            cancelled=sum(1 for b in bookings if b.status == BookingStatus.CANCELLED),
            total_spent=sum((b.total_price for b in bookings if b.status != BookingStatus.CANCELLED),
                            Decimal('0.00')),
        )
