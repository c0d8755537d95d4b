"""
Concurrency tests for simultaneous booking scenarios
Tests overbooking prevention, reference uniqueness and cancellation races
"""
from __future__ import annotations

import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.booking_service import BookingService
from backend.errors import AlreadyCancelledError, CapacityExhaustedError
from database import (
    BookingStatus, CustomerType, InMemoryTravelerDirectory, MembershipLevel, Passenger, Traveler
)


def _passenger(i):
    return Passenger(first_name=f'User{i}', last_name='Test', age=20 + i % 50)


class SlowReadTravelerDirectory(InMemoryTravelerDirectory):
    """Traveler directory with a slow lookup, widening the read-then-write window"""

    def find_traveler(self, traveler_id):
        traveler = super().find_traveler(traveler_id)
        time.sleep(0.01)
        return traveler


def _services(count, flight_directory, traveler_directory, booking_store, seat_inventory):
    """Independent service instances over the same stores, like separate request handlers"""
    return [
        BookingService(flight_directory, traveler_directory, booking_store, seat_inventory)
        for _ in range(count)
    ]


class TestConcurrentBooking:
    """Test concurrent booking operations"""

    def create_multiple_travelers(self, traveler_service, count=10, frequent_flyer=False):
        """Helper to register several travelers"""
        return [
            traveler_service.register_traveler(f'User{i}', f'user{i}@test.com',
                                               miles=1000 if frequent_flyer else 0,
                                               frequent_flyer=frequent_flyer)
            for i in range(count)
        ]

    def test_no_overbooking(self, flight_service, traveler_service, booking_service, seat_inventory):
        """50 travelers racing for 5 seats: exactly 5 bookings succeed"""
        flight_service.create_flight('TEST004', capacity=5, base_price='100.00')
        travelers = self.create_multiple_travelers(traveler_service, count=50)

        successful = []
        failed = []

        def attempt_booking(index, traveler_id):
            try:
                booking = booking_service.create_booking(traveler_id, 'TEST004', _passenger(index), f'{index}A')
                return ('success', booking)
            except CapacityExhaustedError as e:
                return ('failed', str(e))

        with ThreadPoolExecutor(max_workers=50) as executor:
            futures = [executor.submit(attempt_booking, i, t.id) for i, t in enumerate(travelers)]

            for future in as_completed(futures):
                status, result = future.result()
                if status == 'success':
                    successful.append(result)
                else:
                    failed.append(result)

        assert len(successful) == 5, f"Expected 5 successful bookings, got {len(successful)}"
        assert len(failed) == 45, f"Expected 45 failed bookings, got {len(failed)}"
        assert seat_inventory.available_seats('TEST004') == 0

    def test_unique_references_under_load(self, flight_service, traveler_service, booking_service,
                                          seat_inventory):
        """1,000 concurrent creations produce 1,000 distinct references"""
        flight_service.create_flight('BULK01', capacity=1000, base_price='59.99')
        travelers = self.create_multiple_travelers(traveler_service, count=20)

        def create(index):
            traveler = travelers[index % len(travelers)]
            return booking_service.create_booking(traveler.id, 'BULK01', _passenger(index), f'R{index}')

        with ThreadPoolExecutor(max_workers=50) as executor:
            bookings = list(executor.map(create, range(1000)))

        references = [b.booking_reference for b in bookings]
        assert len(set(references)) == 1000
        assert len({b.id for b in bookings}) == 1000
        assert seat_inventory.available_seats('BULK01') == 0

    def test_concurrent_booking_and_cancellation(self, flight_service, traveler_service,
                                                 booking_service, seat_inventory):
        """Seat counter matches confirmed bookings after mixed traffic"""
        flight_service.create_flight('TEST003', capacity=20, base_price='100.00')
        travelers = self.create_multiple_travelers(traveler_service, count=30)

        initial_bookings = [
            booking_service.create_booking(t.id, 'TEST003', _passenger(i), f'{i}C')
            for i, t in enumerate(travelers[:10])
        ]

        def cancel_booking(booking_id):
            booking_service.cancel_booking(booking_id)
            return ('cancelled', booking_id)

        def create_booking(index, traveler_id):
            try:
                booking = booking_service.create_booking(traveler_id, 'TEST003', _passenger(index), None)
                return ('created', booking)
            except CapacityExhaustedError as e:
                return ('create_failed', str(e))

        results = []
        with ThreadPoolExecutor(max_workers=20) as executor:
            cancel_futures = [executor.submit(cancel_booking, b.id) for b in initial_bookings[:5]]
            create_futures = [executor.submit(create_booking, i, t.id)
                              for i, t in enumerate(travelers[10:], start=10)]

            for future in as_completed(cancel_futures + create_futures):
                results.append(future.result())

        assert len([r for r in results if r[0] == 'cancelled']) == 5

        confirmed = sum(
            1 for t in travelers for b in booking_service.list_bookings(t.id)
            if b.status == BookingStatus.CONFIRMED
        )
        assert seat_inventory.available_seats('TEST003') == 20 - confirmed
        assert 0 <= seat_inventory.available_seats('TEST003') <= 20

    @pytest.mark.parametrize("service_count", [1, 2, 10])
    def test_concurrent_cancel_same_booking(self, service_count, flight_service, traveler_service,
                                            flight_directory, traveler_directory, booking_store,
                                            seat_inventory):
        """Only one of many simultaneous cancellations releases the seat"""
        flight_service.create_flight('TEST006', capacity=3, base_price='75.00')
        traveler = traveler_service.register_traveler('Solo', 'solo@test.com')
        services = _services(service_count, flight_directory, traveler_directory, booking_store,
                             seat_inventory)
        services[0].create_booking(traveler.id, 'TEST006', _passenger(0), '1A')
        target = services[0].create_booking(traveler.id, 'TEST006', _passenger(1), '1B')
        assert seat_inventory.available_seats('TEST006') == 1

        start = threading.Barrier(10)

        def cancel(index):
            start.wait()
            try:
                services[index % service_count].cancel_booking(target.id)
                return 'cancelled'
            except AlreadyCancelledError:
                return 'rejected'

        with ThreadPoolExecutor(max_workers=10) as executor:
            outcomes = list(executor.map(cancel, range(10)))

        assert outcomes.count('cancelled') == 1
        assert outcomes.count('rejected') == 9
        assert seat_inventory.available_seats('TEST006') == 2
        assert booking_store.find_booking(target.id).status == BookingStatus.CANCELLED

    @pytest.mark.parametrize("service_count", [1, 2, 8])
    def test_concurrent_miles_credit(self, service_count, flight_service, flight_directory,
                                     booking_store, seat_inventory):
        """Parallel bookings by one frequent flyer credit every 500 miles"""
        travelers = SlowReadTravelerDirectory()
        flight_service.create_flight('TEST007', capacity=40, base_price='120.00')
        flyer = travelers.save_traveler(
            Traveler(name='Busy', email='busy@test.com', miles=24000,
                     customer_type=CustomerType.FREQUENT_FLYER, membership_level=MembershipLevel.SILVER))
        services = _services(service_count, flight_directory, travelers, booking_store, seat_inventory)

        def book(index):
            return services[index % service_count].create_booking(
                flyer.id, 'TEST007', _passenger(index), f'{index}D')

        with ThreadPoolExecutor(max_workers=20) as executor:
            list(executor.map(book, range(40)))

        credited = travelers.find_traveler(flyer.id)
        assert credited.miles == 24000 + 40 * 500
        assert credited.membership_level == MembershipLevel.GOLD
