"""
Data models for the seat inventory and booking ledger
Plain Python classes and enums (no ORM)
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional
import enum


class CustomerType(enum.Enum):
    """Traveler classification enumeration"""
    REGULAR = "regular"
    FREQUENT_FLYER = "frequent_flyer"


class MembershipLevel(enum.Enum):
    """Loyalty membership level enumeration"""
    NONE = "none"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class BookingStatus(enum.Enum):
    """Booking status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class SeatPreference(enum.Enum):
    """Passenger seat preference enumeration"""
    WINDOW = "window"
    AISLE = "aisle"
    MIDDLE = "middle"
    NONE = "none"


@dataclass
class Flight:
    """Flight inventory record: fixed capacity and a live seat counter"""
    flight_number: Optional[str] = None
    capacity: Optional[int] = None
    available_seats: Optional[int] = None
    base_price: Optional[Decimal] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    departure_time: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self):
        return (f"<Flight(number='{self.flight_number}', route='{self.origin}->{self.destination}', "
                f"available={self.available_seats}/{self.capacity})>")

    def has_available_seats(self) -> bool:
        return (self.available_seats or 0) > 0


@dataclass
class Traveler:
    """Traveler loyalty state"""
    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    customer_type: CustomerType = CustomerType.REGULAR
    miles: int = 0
    membership_level: MembershipLevel = MembershipLevel.NONE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self):
        return (f"<Traveler(id={self.id}, email='{self.email}', type={self.customer_type.value}, "
                f"miles={self.miles}, level={self.membership_level.value})>")

    @property
    def is_frequent_flyer(self) -> bool:
        return self.customer_type == CustomerType.FREQUENT_FLYER


@dataclass
class Passenger:
    """Details of the person occupying the booked seat"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = None
    seat_preference: SeatPreference = SeatPreference.NONE
    id: Optional[int] = None

    def __repr__(self):
        return f"<Passenger(id={self.id}, name='{self.full_name}', age={self.age})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass
class Booking:
    """Booking record linking a traveler and passenger to a flight seat"""
    id: Optional[int] = None
    booking_reference: Optional[str] = None
    flight_number: Optional[str] = None
    traveler_id: Optional[int] = None
    passenger: Optional[Passenger] = None
    seat_number: Optional[str] = None
    total_price: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    status: Optional[BookingStatus] = None
    booking_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self):
        return (f"<Booking(id={self.id}, ref='{self.booking_reference}', flight='{self.flight_number}', "
                f"status={self.status.value if self.status else None})>")


@dataclass
class BookingStats:
    """Aggregated booking figures for one traveler"""
    total: int = 0
    confirmed: int = 0
    cancelled: int = 0
    total_spent: Decimal = field(default_factory=lambda: Decimal("0.00"))


def row_to_flight(row) -> Optional[Flight]:
    """Convert database row to Flight object"""
    if not row:
        return None
    return Flight(
        id=row.get('id'),
        flight_number=row['flight_number'],
        capacity=row['capacity'],
        available_seats=row['available_seats'],
        base_price=Decimal(row['base_price']),
        origin=row.get('origin'),
        destination=row.get('destination'),
        departure_time=row.get('departure_time'),
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at')
    )


def row_to_traveler(row) -> Optional[Traveler]:
    """Convert database row to Traveler object"""
    if not row:
        return None
    return Traveler(
        id=row['id'],
        name=row['name'],
        email=row['email'],
        customer_type=CustomerType(row['customer_type']),
        miles=row['miles'],
        membership_level=MembershipLevel(row['membership_level']),
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at')
    )


def row_to_passenger(row) -> Optional[Passenger]:
    """Convert a booking row carrying ``p_`` prefixed columns to a Passenger"""
    if not row or row.get('p_id') is None:
        return None
    return Passenger(
        id=row['p_id'],
        first_name=row['first_name'],
        last_name=row['last_name'],
        age=row.get('age'),
        seat_preference=SeatPreference(row['seat_preference']) if row.get('seat_preference') else SeatPreference.NONE
    )


def row_to_booking(row) -> Optional[Booking]:
    """Convert database row to Booking object"""
    if not row:
        return None
    return Booking(
        id=row['id'],
        booking_reference=row['booking_reference'],
        flight_number=row['flight_number'],
        traveler_id=row['traveler_id'],
        passenger=row_to_passenger(row),
        seat_number=row.get('seat_number'),
        total_price=Decimal(row['total_price']),
        discount_amount=Decimal(row['discount_amount']),
        status=BookingStatus(row['status']) if row['status'] else None,
        booking_date=row.get('booking_date'),
        updated_at=row.get('updated_at')
    )
