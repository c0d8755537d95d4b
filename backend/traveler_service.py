"""
Traveler management service
Handles traveler registration and frequent flyer accounts
"""
import logging
from typing import Optional

from database import (
    CustomerType, DatabaseManager, MembershipLevel, Traveler,
    TravelerDirectory, PostgresTravelerDirectory
)
from backend import fare_policy
from backend.errors import DuplicateTravelerError, TravelerNotFoundError

logger = logging.getLogger(__name__)


class TravelerService:
    """Service for traveler management operations"""

    def __init__(self, travelers: TravelerDirectory):
        self.travelers = travelers

    @classmethod
    def from_database(cls, db_manager: Optional[DatabaseManager] = None) -> 'TravelerService':
        return cls(PostgresTravelerDirectory(db_manager))

    def register_traveler(self, name: str, email: str, miles: int = 0,
                          frequent_flyer: bool = False) -> Traveler:
        """
        Register a new traveler

        Args:
            name: Full name
            email: Unique email address
            miles: Miles already flown
            frequent_flyer: Whether to enrol in the frequent flyer program

        Returns:
            Created traveler object
        """
        if miles < 0:
            raise ValueError("Miles must not be negative")
        if self.travelers.find_traveler_by_email(email) is not None:
            raise DuplicateTravelerError(email)

        traveler = Traveler(name=name, email=email, miles=miles)
        if frequent_flyer:
            traveler.customer_type = CustomerType.FREQUENT_FLYER
            traveler.membership_level = fare_policy.membership_level_for(miles)

        traveler = self.travelers.save_traveler(traveler)
        logger.info("Registered %s traveler %s (%s)", traveler.customer_type.value,
                    traveler.id, traveler.membership_level.value)
        return traveler

    def get_traveler(self, traveler_id: int) -> Optional[Traveler]:
        """Get traveler by ID"""
        return self.travelers.find_traveler(traveler_id)

    def _require(self, traveler_id: int) -> Traveler:
        traveler = self.travelers.find_traveler(traveler_id)
        if traveler is None:
            raise TravelerNotFoundError(traveler_id)
        return traveler

    def upgrade_to_frequent_flyer(self, traveler_id: int) -> Traveler:
        """Enrol a regular traveler; the level follows the miles already flown"""
        def enrol(traveler):
            if not traveler.is_frequent_flyer:
                traveler.customer_type = CustomerType.FREQUENT_FLYER
                traveler.membership_level = fare_policy.membership_level_for(traveler.miles)
            return traveler

        traveler = self.travelers.update_traveler(traveler_id, enrol)
        if traveler is None:
            raise TravelerNotFoundError(traveler_id)
        logger.info("Traveler %s is a frequent flyer (%s)", traveler_id,
                    traveler.membership_level.value)
        return traveler

    def add_miles(self, traveler_id: int, miles: int) -> Traveler:
        if miles < 0:
            raise ValueError("Miles to credit must not be negative")
        traveler = self.travelers.update_traveler(
            traveler_id, lambda t: fare_policy.apply_miles(t, miles))
        if traveler is None:
            raise TravelerNotFoundError(traveler_id)
        return traveler

    def membership_level(self, traveler_id: int) -> MembershipLevel:
        return self._require(traveler_id).membership_level
