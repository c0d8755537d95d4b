"""
Command-line entry point for the seat inventory and booking ledger
Operates on the PostgreSQL database named by $DATABASE_URL
"""
from __future__ import annotations

import argparse
import logging
import sys

from backend.booking_service import BookingService
from backend.errors import LoyaltyUpdateError
from backend.flight_service import FlightService
from backend.logging_config import setup_logging
from backend.traveler_service import TravelerService
from database import Passenger, SeatPreference
from database.database import get_db_manager

logger = logging.getLogger(__name__)


def _cmd_init_db(args) -> None:
    db_manager = get_db_manager()
    if args.reset:
        db_manager.drop_tables()
    db_manager.create_tables()
    print("Database ready!")


def _cmd_add_flight(args) -> None:
    flight = FlightService.from_database().create_flight(
        flight_number=args.flight_number,
        capacity=args.capacity,
        base_price=args.price,
        origin=args.origin,
        destination=args.destination,
        departure_time=args.departure,
    )
    print(f"Created {flight.flight_number}: {flight.capacity} seats at ${flight.base_price}")


def _cmd_update_flight(args) -> None:
    flight = FlightService.from_database().update_flight(
        flight_number=args.flight_number,
        origin=args.origin,
        destination=args.destination,
        departure_time=args.departure,
        base_price=args.price,
    )
    print(f"Updated {flight.flight_number}: {flight.origin or '-'} -> {flight.destination or '-'} "
          f"{flight.departure_time or ''} ${flight.base_price}")


def _cmd_add_traveler(args) -> None:
    traveler = TravelerService.from_database().register_traveler(
        name=args.name,
        email=args.email,
        miles=args.miles,
        frequent_flyer=args.frequent_flyer,
    )
    print(f"Traveler {traveler.id}: {traveler.customer_type.value}, "
          f"{traveler.miles} miles, level {traveler.membership_level.value}")


def _cmd_flights(args) -> None:
    flights = FlightService.from_database().search_flights(
        origin=args.origin,
        destination=args.destination,
        available_only=args.available,
    )
    for flight in flights:
        print(f"{flight.flight_number:<8} {flight.origin or '-':<16} -> {flight.destination or '-':<16} "
              f"{flight.departure_time or '':<10} {flight.available_seats:>4}/{flight.capacity:<4} "
              f"${flight.base_price}")
    print(f"{len(flights)} flights")


def _cmd_book(args) -> None:
    passenger = Passenger(
        first_name=args.first_name,
        last_name=args.last_name,
        age=args.age,
        seat_preference=SeatPreference(args.preference),
    )
    try:
        booking = BookingService.from_database().create_booking(
            traveler_id=args.traveler_id,
            flight_number=args.flight_number,
            passenger=passenger,
            seat_number=args.seat,
        )
    except LoyaltyUpdateError as e:
        # The booking itself is committed; only the mileage credit is missing
        booking = e.booking
        print(f"Warning: miles were not credited to traveler {args.traveler_id}: {e.cause}",
              file=sys.stderr)
    print(f"Booked {booking.booking_reference}: seat {booking.seat_number or '-'}, "
          f"${booking.total_price} (saved ${booking.discount_amount})")


def _cmd_cancel(args) -> None:
    service = BookingService.from_database()
    booking = service.cancel_booking_by_reference(args.reference)
    print(f"Cancelled {booking.booking_reference}")


def _cmd_stats(args) -> None:
    stats = BookingService.from_database().get_booking_stats(args.traveler_id)
    print(f"Total: {stats.total}  Confirmed: {stats.confirmed}  "
          f"Cancelled: {stats.cancelled}  Spent: ${stats.total_spent}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seat inventory and booking ledger")
    parser.add_argument("--log-level", default=None, help="Logging level (defaults to $LOG_LEVEL or INFO)")
    commands = parser.add_subparsers(dest="command", required=True)

    init_db = commands.add_parser("init-db", help="Create the database schema")
    init_db.add_argument("--reset", action="store_true", help="Drop all tables first")
    init_db.set_defaults(handler=_cmd_init_db)

    add_flight = commands.add_parser("add-flight", help="Create a flight")
    add_flight.add_argument("flight_number")
    add_flight.add_argument("--capacity", type=int, required=True)
    add_flight.add_argument("--price", required=True, help="Base fare, e.g. 199.99")
    add_flight.add_argument("--origin")
    add_flight.add_argument("--destination")
    add_flight.add_argument("--departure", help="Departure time, e.g. '08:00 AM'")
    add_flight.set_defaults(handler=_cmd_add_flight)

    update_flight = commands.add_parser("update-flight", help="Change route, departure or fare of a flight")
    update_flight.add_argument("flight_number")
    update_flight.add_argument("--price", help="New base fare for future bookings")
    update_flight.add_argument("--origin")
    update_flight.add_argument("--destination")
    update_flight.add_argument("--departure")
    update_flight.set_defaults(handler=_cmd_update_flight)

    add_traveler = commands.add_parser("add-traveler", help="Register a traveler")
    add_traveler.add_argument("name")
    add_traveler.add_argument("email")
    add_traveler.add_argument("--miles", type=int, default=0)
    add_traveler.add_argument("--frequent-flyer", action="store_true")
    add_traveler.set_defaults(handler=_cmd_add_traveler)

    flights = commands.add_parser("flights", help="List flights")
    flights.add_argument("--origin")
    flights.add_argument("--destination")
    flights.add_argument("--available", action="store_true", help="Only flights with free seats")
    flights.set_defaults(handler=_cmd_flights)

    book = commands.add_parser("book", help="Book a seat")
    book.add_argument("traveler_id", type=int)
    book.add_argument("flight_number")
    book.add_argument("--first-name", required=True)
    book.add_argument("--last-name", required=True)
    book.add_argument("--age", type=int)
    book.add_argument("--seat")
    book.add_argument("--preference", default="none", choices=[p.value for p in SeatPreference])
    book.set_defaults(handler=_cmd_book)

    cancel = commands.add_parser("cancel", help="Cancel a booking by reference")
    cancel.add_argument("reference")
    cancel.set_defaults(handler=_cmd_cancel)

    stats = commands.add_parser("stats", help="Booking statistics for a traveler")
    stats.add_argument("traveler_id", type=int)
    stats.set_defaults(handler=_cmd_stats)

    return parser


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        args.handler(args)
    except ValueError as e:
        # Reservation errors and input validation both subclass ValueError
        logger.debug("Command %s rejected", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
