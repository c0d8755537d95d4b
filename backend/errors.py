"""
Error taxonomy for seat inventory and booking operations

Every error subclasses ValueError so callers that already treat business-rule
failures as ValueError keep working; the subclasses let an outer layer map each
outcome to its own response.
"""


class ReservationError(ValueError):
    """Base class for all reservation core errors"""


class NotFoundError(ReservationError):
    """A flight, traveler or booking does not exist"""


class FlightNotFoundError(NotFoundError):
    def __init__(self, flight_number):
        self.flight_number = flight_number
        super().__init__(f"Flight {flight_number} not found")


class TravelerNotFoundError(NotFoundError):
    def __init__(self, traveler_id):
        self.traveler_id = traveler_id
        super().__init__(f"Traveler with ID {traveler_id} not found")


class BookingNotFoundError(NotFoundError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"Booking {key} not found")


class CapacityExhaustedError(ReservationError):
    """No seat could be reserved"""


class NoSeatsAvailableError(CapacityExhaustedError):
    def __init__(self, flight_number):
        self.flight_number = flight_number
        super().__init__(f"No available seats on flight {flight_number}")


class InvalidStateError(ReservationError):
    """Operation is not allowed from the booking's current status"""


class AlreadyCancelledError(InvalidStateError):
    def __init__(self, booking_reference):
        self.booking_reference = booking_reference
        super().__init__(f"Booking {booking_reference} is already cancelled")


class IdentityCollisionError(ReservationError):
    """A generated booking reference is already taken"""

    def __init__(self, booking_reference):
        self.booking_reference = booking_reference
        super().__init__(f"Booking reference {booking_reference} already exists")


class DuplicateFlightError(ReservationError):
    def __init__(self, flight_number):
        self.flight_number = flight_number
        super().__init__(f"Flight number {flight_number} already exists")


class DuplicateTravelerError(ReservationError):
    def __init__(self, email):
        self.email = email
        super().__init__(f"Traveler with email {email} already exists")


class LoyaltyUpdateError(ReservationError):
    """The booking was committed but its mileage credit could not be saved.

    ``booking`` holds the committed booking so the caller can still report it.
    """

    def __init__(self, booking, cause):
        self.booking = booking
        self.cause = cause
        super().__init__(
            f"Booking {booking.booking_reference} confirmed but mileage credit failed: {cause}"
        )
