"""
Placeholder dataset for running without a configured mirror.

Holds a small fixed set of donations, requirements and matches (timestamps
relative to construction time so nothing looks expired) plus the listener
lists used to push changes to subscribers. All operations are in-memory.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from donation_sync.exceptions import RecordNotFoundError
from donation_sync.schemas import (
    ActivityEntry,
    ActivityType,
    AnalyticsData,
    DonationCreate,
    DonationStatus,
    FoodDonation,
    FoodRequirement,
    Location,
    Match,
    MatchCreate,
    MatchStatus,
    RequirementCreate,
    RequirementStatus,
    Urgency,
)
from donation_sync.services.dual_write import donation_message, match_message, requirement_message
from donation_sync.services.subscriptions import Subscription, deliver
from donation_sync.utils.helpers import generate_push_id, utcnow

logger = logging.getLogger(__name__)


def placeholder_donations(now: datetime) -> List[FoodDonation]:
    return [
        FoodDonation(
            id="1",
            donor_id="current-user",
            donor_name="Local Restaurant",
            food_type="Fresh Vegetables",
            quantity="50",
            unit="kg",
            description="Fresh organic vegetables from our garden",
            location=Location(address="123 Main St, Downtown", lat=37.7749, lng=-122.4194),
            pickup_time=now + timedelta(hours=2),
            expiry_date=now + timedelta(hours=24),
            status=DonationStatus.PENDING,
            created_at=now - timedelta(days=3),
            updated_at=now - timedelta(days=3),
        ),
        FoodDonation(
            id="2",
            donor_id="donor2",
            donor_name="Community Bakery",
            food_type="Bread and Pastries",
            quantity="100",
            unit="pieces",
            description="Freshly baked bread and pastries",
            location=Location(address="456 Oak Ave, Midtown", lat=37.7849, lng=-122.4094),
            pickup_time=now + timedelta(hours=4),
            expiry_date=now + timedelta(hours=8),
            status=DonationStatus.PENDING,
            created_at=now - timedelta(days=2),
            updated_at=now - timedelta(days=2),
        ),
        FoodDonation(
            id="3",
            donor_id="donor3",
            donor_name="Neighborhood Canteen",
            food_type="Cooked Meals",
            quantity="60",
            unit="portions",
            description="Daily meal surplus from canteen",
            location=Location(address="789 Market St, Central", lat=37.7689, lng=-122.4312),
            pickup_time=now + timedelta(hours=1),
            expiry_date=now + timedelta(hours=12),
            status=DonationStatus.PENDING,
            created_at=now - timedelta(days=1),
            updated_at=now - timedelta(days=1),
        ),
    ]


def placeholder_requirements(now: datetime) -> List[FoodRequirement]:
    return [
        FoodRequirement(
            id="1",
            receiver_id="current-user",
            receiver_name="John Smith",
            organization_name="Community Shelter",
            title="Daily Meal Program",
            food_type="Vegetables and Grains",
            quantity="30",
            unit="kg",
            urgency=Urgency.HIGH,
            description="Need fresh vegetables for our daily meal program",
            location=Location(address="789 Pine St, Uptown", lat=37.7649, lng=-122.4294),
            needed_by=now + timedelta(hours=48),
            serving_size="150",
            status=RequirementStatus.ACTIVE,
            created_at=now - timedelta(days=1),
            updated_at=now - timedelta(days=1),
        ),
        FoodRequirement(
            id="2",
            receiver_id="receiver2",
            receiver_name="Jane Doe",
            organization_name="Food Bank",
            title="Weekly Food Distribution",
            food_type="Any Food Type",
            quantity="100",
            unit="portions",
            urgency=Urgency.MEDIUM,
            description="Weekly food distribution for families in need",
            location=Location(address="321 Elm St, Downtown", lat=37.7749, lng=-122.4194),
            needed_by=now + timedelta(days=5),
            serving_size="100",
            status=RequirementStatus.ACTIVE,
            created_at=now - timedelta(days=2),
            updated_at=now - timedelta(days=2),
        ),
        FoodRequirement(
            id="3",
            receiver_id="receiver3",
            receiver_name="Shelter Manager",
            organization_name="Night Shelter",
            title="Emergency Dinner Request",
            food_type="Cooked Meals",
            quantity="80",
            unit="portions",
            urgency=Urgency.HIGH,
            description="Short notice need for dinner service",
            location=Location(address="55 Harbor Rd, Bayside", lat=37.7600, lng=-122.4350),
            needed_by=now + timedelta(hours=6),
            serving_size="80",
            status=RequirementStatus.ACTIVE,
            created_at=now - timedelta(hours=6),
            updated_at=now - timedelta(hours=6),
        ),
    ]


def placeholder_matches(now: datetime) -> List[Match]:
    return [
        Match(
            id="1",
            donation_id="1",
            requirement_id="1",
            donor_id="donor1",
            receiver_id="receiver1",
            status=MatchStatus.CONFIRMED,
            distance=2.5,
            match_score=95,
            created_at=now - timedelta(days=2),
            updated_at=now - timedelta(days=2),
        ),
        Match(
            id="2",
            donation_id="3",
            requirement_id="3",
            donor_id="donor3",
            receiver_id="receiver3",
            status=MatchStatus.PENDING,
            distance=1.2,
            match_score=88,
            created_at=now - timedelta(hours=6),
            updated_at=now - timedelta(hours=6),
        ),
    ]


class _Listener:
    def __init__(self, predicate: Callable, callback: Callable):
        self.predicate = predicate
        self.callback = callback


class PlaceholderStore:
    """In-memory stand-in for both stores, with its own listener lists"""

    def __init__(self, clock: Callable[[], datetime] = utcnow, lead_days: int = 7):
        self.clock = clock
        self.lead = timedelta(days=lead_days)
        now = clock()
        self.donations: List[FoodDonation] = placeholder_donations(now)
        self.requirements: List[FoodRequirement] = placeholder_requirements(now)
        self.matches: List[Match] = placeholder_matches(now)
        self.activity: List[ActivityEntry] = []
        self.user_roles: Dict[str, str] = {}

        self.donation_listeners: List[_Listener] = []
        self.requirement_listeners: List[_Listener] = []

    # --- reads ---

    def snapshot(self) -> AnalyticsData:
        return AnalyticsData(
            donations=list(self.donations),
            requirements=list(self.requirements),
            matches=list(self.matches),
        )

    @staticmethod
    def _newest_first(records: list, predicate: Callable) -> list:
        selected = [r for r in records if predicate(r)]
        return sorted(selected, key=lambda r: r.created_at, reverse=True)

    def query_donations(self, predicate: Callable[[FoodDonation], bool]) -> List[FoodDonation]:
        return self._newest_first(self.donations, predicate)

    def query_requirements(self, predicate: Callable[[FoodRequirement], bool]) -> List[FoodRequirement]:
        return self._newest_first(self.requirements, predicate)

    # --- listeners ---

    async def _listen(self, listeners: List[_Listener], name: str, records: list, predicate, callback) -> Subscription:
        await deliver(callback, self._newest_first(records, predicate))

        listener = _Listener(predicate, callback)
        listeners.append(listener)

        def release():
            if listener in listeners:
                listeners.remove(listener)

        return Subscription(name, callback, release)

    async def listen_donations(self, name: str, predicate, callback) -> Subscription:
        return await self._listen(self.donation_listeners, name, self.donations, predicate, callback)

    async def listen_requirements(self, name: str, predicate, callback) -> Subscription:
        return await self._listen(self.requirement_listeners, name, self.requirements, predicate, callback)

    async def _notify(self, listeners: List[_Listener], records: list) -> None:
        logger.debug(f"Notifying {len(listeners)} placeholder listeners")
        for listener in list(listeners):
            try:
                await deliver(listener.callback, self._newest_first(records, listener.predicate))
            except Exception as e:
                logger.error(f"Error in listener callback: {e}")

    # --- writes ---

    def _append_activity(self, **fields) -> None:
        self.activity.append(ActivityEntry(id=generate_push_id(), timestamp=self.clock(), **fields))

    @staticmethod
    def _find(records: list, record_id: str, table: str):
        for record in records:
            if record.id == record_id:
                return record
        raise RecordNotFoundError(table, record_id)

    def _stamp(self, record, status, matched_with: Optional[str]) -> None:
        now = self.clock()
        record.status = status
        record.updated_at = now
        if matched_with:
            record.matched_with = matched_with
            record.matched_at = now

    async def create_donation(self, donation: DonationCreate) -> str:
        now = self.clock()
        record = FoodDonation(
            **donation.model_dump(exclude={"pickup_time", "expiry_date"}),
            id=str(uuid.uuid4()),
            pickup_time=donation.pickup_time or now,
            expiry_date=donation.expiry_date or now + self.lead,
            status=DonationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.donations.append(record)
        self._append_activity(
            type=ActivityType.DONATION_CREATED,
            donation_id=record.id,
            donor_id=record.donor_id,
            donor_name=record.donor_name,
            food_type=record.food_type,
            quantity=record.quantity,
            unit=record.unit,
            location=record.location.address,
            message=donation_message(record.quantity, record.unit, record.food_type),
        )
        logger.info(f"Placeholder donation created: {record.id}")
        await self._notify(self.donation_listeners, self.donations)
        return record.id

    async def create_requirement(self, requirement: RequirementCreate) -> str:
        now = self.clock()
        record = FoodRequirement(
            **requirement.model_dump(exclude={"needed_by"}),
            id=str(uuid.uuid4()),
            needed_by=requirement.needed_by or now + self.lead,
            status=RequirementStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.requirements.append(record)
        self._append_activity(
            type=ActivityType.REQUIREMENT_CREATED,
            requirement_id=record.id,
            receiver_id=record.receiver_id,
            receiver_name=record.receiver_name,
            organization_name=record.organization_name,
            title=record.title,
            food_type=record.food_type,
            quantity=record.quantity,
            unit=record.unit,
            urgency=record.urgency,
            location=record.location.address,
            message=requirement_message(record.quantity, record.unit, record.food_type, record.urgency.value),
        )
        logger.info(f"Placeholder requirement created: {record.id}")
        await self._notify(self.requirement_listeners, self.requirements)
        return record.id

    async def create_match(self, match: MatchCreate) -> str:
        now = self.clock()
        record = Match(**match.model_dump(), id=str(uuid.uuid4()), created_at=now, updated_at=now)
        self.matches.append(record)
        self._append_activity(
            type=ActivityType.MATCH_CREATED,
            match_id=record.id,
            donation_id=record.donation_id,
            requirement_id=record.requirement_id,
            donor_id=record.donor_id,
            receiver_id=record.receiver_id,
            match_score=record.match_score,
            distance=record.distance,
            status=record.status.value,
            message=match_message(record.status.value, record.match_score, record.distance),
        )
        logger.info(f"Placeholder match created: {record.id}")
        return record.id

    async def update_donation_status(self, donation_id: str, status, matched_with: Optional[str] = None) -> str:
        record = self._find(self.donations, donation_id, "donations")
        self._stamp(record, DonationStatus(status), matched_with)
        self._append_activity(
            type=ActivityType.DONATION_STATUS_UPDATED,
            donation_id=donation_id,
            match_id=matched_with,
            status=record.status.value,
            message=f"Donation {donation_id} is now {record.status.value}",
        )
        await self._notify(self.donation_listeners, self.donations)
        return donation_id

    async def update_requirement_status(self, requirement_id: str, status, matched_with: Optional[str] = None) -> str:
        record = self._find(self.requirements, requirement_id, "requirements")
        self._stamp(record, RequirementStatus(status), matched_with)
        self._append_activity(
            type=ActivityType.REQUIREMENT_STATUS_UPDATED,
            requirement_id=requirement_id,
            match_id=matched_with,
            status=record.status.value,
            message=f"Requirement {requirement_id} is now {record.status.value}",
        )
        await self._notify(self.requirement_listeners, self.requirements)
        return requirement_id

    async def update_match_status(self, match_id: str, status) -> str:
        record = self._find(self.matches, match_id, "matches")
        self._stamp(record, MatchStatus(status), None)
        self._append_activity(
            type=ActivityType.MATCH_STATUS_UPDATED,
            match_id=match_id,
            status=record.status.value,
            message=f"Match {match_id} is now {record.status.value}",
        )
        logger.info(f"Placeholder match updated: {match_id}")
        return match_id

    async def update_user_role(self, user_id: str, role: str) -> None:
        self.user_roles[user_id] = role
        logger.info(f"Placeholder role for user {user_id} set to {role}")
