"""
Fare policy: loyalty discounts and membership levels
Pure functions only; nothing here touches storage
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from database import CustomerType, MembershipLevel, Traveler

MILES_PER_BOOKING = 500

PLATINUM_MILES = 50000
GOLD_MILES = 25000

CENT = Decimal('0.01')

_FREQUENT_FLYER_RATES = {
    MembershipLevel.NONE: Decimal('0.00'),
    MembershipLevel.SILVER: Decimal('0.10'),
    MembershipLevel.GOLD: Decimal('0.15'),
    MembershipLevel.PLATINUM: Decimal('0.20'),
}


def discount_rate(customer_type: CustomerType, membership_level: MembershipLevel) -> Decimal:
    """
    Discount rate for a traveler's loyalty state

    Args:
        customer_type: REGULAR or FREQUENT_FLYER
        membership_level: Membership level (ignored for regular travelers)

    Returns:
        One of 0.00, 0.10, 0.15, 0.20
    """
    if customer_type != CustomerType.FREQUENT_FLYER:
        return Decimal('0.00')
    return _FREQUENT_FLYER_RATES.get(membership_level, Decimal('0.00'))


def membership_level_for(miles: int) -> MembershipLevel:
    """Membership level earned by ``miles``"""
    if miles >= PLATINUM_MILES:
        return MembershipLevel.PLATINUM
    elif miles >= GOLD_MILES:
        return MembershipLevel.GOLD
    elif miles > 0:
        return MembershipLevel.SILVER
    else:
        return MembershipLevel.NONE


def traveler_discount_rate(traveler: Traveler) -> Decimal:
    return discount_rate(traveler.customer_type, traveler.membership_level)


def price_fare(base_price: Decimal, rate: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Apply a discount rate to a base fare

    Both amounts are rounded half-up to cents independently, so
    199.99 at 15% gives (169.99, 30.00).

    Returns:
        (total_price, discount_amount)
    """
    base_price = Decimal(base_price)
    total_price = (base_price * (Decimal('1') - rate)).quantize(CENT, rounding=ROUND_HALF_UP)
    discount_amount = (base_price * rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return total_price, discount_amount


def apply_miles(traveler: Traveler, miles: int) -> Traveler:
    """
    Credit miles to a traveler in place

    Frequent flyers get their membership level recomputed from the new total;
    regular travelers accumulate miles but stay at their current level.
    """
    if miles < 0:
        raise ValueError("Miles to credit must not be negative")
    traveler.miles += miles
    if traveler.is_frequent_flyer:
        traveler.membership_level = membership_level_for(traveler.miles)
    return traveler
