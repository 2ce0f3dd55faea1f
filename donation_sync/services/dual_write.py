"""
Dual-write orchestrator.

Relational store first (must succeed, errors propagate), mirror second
(best effort). Each mutation:

    1. fills in default timestamps
    2. writes the relational row and takes its id / created_at
    3. writes the mirror copy keyed by that id
    4. appends one activity_feed entry

Steps 3 and 4 are independent: a failure in either is logged and dropped.
There is no rollback of the relational write, so the stores can diverge.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from donation_sync.exceptions import MirrorWriteError, RelationalWriteError
from donation_sync.schemas import (
    ActivityEntry,
    ActivityType,
    DonationCreate,
    DonationStatus,
    FoodDonation,
    FoodRequirement,
    Match,
    MatchCreate,
    MatchStatus,
    RequirementCreate,
    RequirementStatus,
)
from donation_sync.services import translator
from donation_sync.services.mirror_store import MirrorStore
from donation_sync.services.relational_store import RelationalStore
from donation_sync.utils.helpers import isoformat_utc, utcnow

logger = logging.getLogger(__name__)

ACTIVITY_PATH = "activity_feed"
DONATIONS_PATH = "donations"
REQUIREMENTS_PATH = "requirements"
MATCHES_PATH = "matches"
USERS_PATH = "users"


def donation_message(quantity: str, unit: str, food_type: str) -> str:
    return f"New donation: {quantity} {unit} of {food_type}"


def requirement_message(quantity: str, unit: str, food_type: str, urgency: str) -> str:
    return f"New request: {quantity} {unit} of {food_type} ({urgency} priority)"


def match_message(status: str, match_score: float, distance: float) -> str:
    return f"Match {status} ({match_score:g}% match, {distance:g}km distance)"


class DualWriteOrchestrator:
    def __init__(
        self,
        relational: RelationalStore,
        mirror: MirrorStore,
        clock: Callable[[], datetime] = utcnow,
        lead_days: int = 7,
    ):
        self.relational = relational
        self.mirror = mirror
        self.clock = clock
        self.lead = timedelta(days=lead_days)

    # --- best-effort mirror helpers ---

    async def _mirror_set(self, path: str, value: Dict[str, Any]) -> bool:
        try:
            await self.mirror.set(path, value)
        except Exception as e:
            logger.warning(f"Mirror sync failed for {path} (non-critical): {e}")
            return False
        logger.info(f"Synced {path} to mirror")
        return True

    async def _mirror_update(self, path: str, values: Dict[str, Any]) -> bool:
        try:
            await self.mirror.update(path, values)
        except Exception as e:
            logger.warning(f"Mirror update failed for {path} (non-critical): {e}")
            return False
        logger.info(f"Synced {path} update to mirror")
        return True

    async def _log_activity(self, entry: ActivityEntry) -> Optional[str]:
        try:
            key = await self.mirror.push(ACTIVITY_PATH)
            entry.id = key
            await self.mirror.set(f"{ACTIVITY_PATH}/{key}", entry.to_mirror())
        except Exception as e:
            logger.warning(f"Activity log failed for {entry.type.value} (non-critical): {e}")
            return None
        logger.info(f"Activity logged: {entry.message}")
        return key

    def _status_update(self, status: str, matched_with: Optional[str]) -> Dict[str, Any]:
        now = self.clock()
        values = {"status": status, "updatedAt": isoformat_utc(now)}
        if matched_with:
            values["matchedWith"] = matched_with
            values["matchedAt"] = isoformat_utc(now)
        return values

    # --- creates ---

    async def create_donation(self, donation: DonationCreate) -> str:
        logger.info(f"Creating donation for donor {donation.donor_id}: "
                    f"{donation.quantity} {donation.unit} of {donation.food_type}")
        now = self.clock()
        pickup_time = donation.pickup_time or now
        expiry_date = donation.expiry_date or now + self.lead

        row = await self.relational.food_items.create(
            translator.donation_row(donation, pickup_time, expiry_date)
        )
        if not row:
            raise RelationalWriteError("Failed to save donation to the relational store")

        record = FoodDonation(
            **donation.model_dump(exclude={"pickup_time", "expiry_date"}),
            id=row.id,
            pickup_time=pickup_time,
            expiry_date=expiry_date,
            status=DonationStatus.PENDING,
            created_at=row.created_at,
            updated_at=row.created_at,
        )
        await self._mirror_set(f"{DONATIONS_PATH}/{row.id}", record.to_mirror())

        await self._log_activity(ActivityEntry(
            type=ActivityType.DONATION_CREATED,
            donation_id=row.id,
            donor_id=donation.donor_id,
            donor_name=donation.donor_name,
            food_type=donation.food_type,
            quantity=donation.quantity,
            unit=donation.unit,
            location=donation.location.address,
            timestamp=self.clock(),
            message=donation_message(donation.quantity, donation.unit, donation.food_type),
        ))
        return row.id

    async def create_requirement(self, requirement: RequirementCreate) -> str:
        logger.info(f"Creating requirement for receiver {requirement.receiver_id}: {requirement.title}")
        now = self.clock()
        needed_by = requirement.needed_by or now + self.lead

        row = await self.relational.requests.create(
            translator.requirement_row(requirement, needed_by)
        )
        if not row:
            raise RelationalWriteError("Failed to save requirement to the relational store")

        record = FoodRequirement(
            **requirement.model_dump(exclude={"needed_by"}),
            id=row.id,
            needed_by=needed_by,
            status=RequirementStatus.ACTIVE,
            created_at=row.created_at,
            updated_at=row.created_at,
        )
        await self._mirror_set(f"{REQUIREMENTS_PATH}/{row.id}", record.to_mirror())

        await self._log_activity(ActivityEntry(
            type=ActivityType.REQUIREMENT_CREATED,
            requirement_id=row.id,
            receiver_id=requirement.receiver_id,
            receiver_name=requirement.receiver_name,
            organization_name=requirement.organization_name,
            title=requirement.title,
            food_type=requirement.food_type,
            quantity=requirement.quantity,
            unit=requirement.unit,
            urgency=requirement.urgency,
            location=requirement.location.address,
            timestamp=self.clock(),
            message=requirement_message(
                requirement.quantity, requirement.unit, requirement.food_type, requirement.urgency.value
            ),
        ))
        return row.id

    async def create_match(self, match: MatchCreate, actual_quantity: Optional[float] = None) -> str:
        logger.info(f"Creating match: donation {match.donation_id} -> requirement {match.requirement_id}")
        now = self.clock()

        row = await self.relational.transactions.create(
            translator.transaction_row(match, now, actual_quantity)
        )
        if not row:
            raise RelationalWriteError("Failed to save transaction to the relational store")

        record = Match(
            **match.model_dump(),
            id=row.id,
            created_at=row.created_at,
            updated_at=row.created_at,
        )
        await self._mirror_set(f"{MATCHES_PATH}/{row.id}", record.to_mirror())

        await self._log_activity(ActivityEntry(
            type=ActivityType.MATCH_CREATED,
            match_id=row.id,
            donation_id=match.donation_id,
            requirement_id=match.requirement_id,
            donor_id=match.donor_id,
            receiver_id=match.receiver_id,
            match_score=match.match_score,
            distance=match.distance,
            status=match.status.value,
            timestamp=self.clock(),
            message=match_message(match.status.value, match.match_score, match.distance),
        ))
        return row.id

    # --- status updates ---

    async def update_donation_status(
        self,
        donation_id: str,
        status: DonationStatus,
        matched_with: Optional[str] = None,
    ) -> str:
        status = DonationStatus(status)
        logger.info(f"Updating donation {donation_id} status to {status.value}")
        await self.relational.food_items.update_status(
            donation_id, translator.to_canonical_donation_status(status)
        )

        await self._mirror_update(
            f"{DONATIONS_PATH}/{donation_id}", self._status_update(status.value, matched_with)
        )
        await self._log_activity(ActivityEntry(
            type=ActivityType.DONATION_STATUS_UPDATED,
            donation_id=donation_id,
            match_id=matched_with,
            status=status.value,
            timestamp=self.clock(),
            message=f"Donation {donation_id} is now {status.value}",
        ))
        return donation_id

    async def update_requirement_status(
        self,
        requirement_id: str,
        status: RequirementStatus,
        matched_with: Optional[str] = None,
    ) -> str:
        status = RequirementStatus(status)
        logger.info(f"Updating requirement {requirement_id} status to {status.value}")
        await self.relational.requests.update_status(
            requirement_id, translator.to_canonical_requirement_status(status)
        )

        await self._mirror_update(
            f"{REQUIREMENTS_PATH}/{requirement_id}", self._status_update(status.value, matched_with)
        )
        await self._log_activity(ActivityEntry(
            type=ActivityType.REQUIREMENT_STATUS_UPDATED,
            requirement_id=requirement_id,
            match_id=matched_with,
            status=status.value,
            timestamp=self.clock(),
            message=f"Requirement {requirement_id} is now {status.value}",
        ))
        return requirement_id

    async def update_match_status(self, match_id: str, status: MatchStatus) -> str:
        status = MatchStatus(status)
        logger.info(f"Updating match {match_id} status to {status.value}")
        await self.relational.transactions.update_status(
            match_id, translator.to_canonical_match_status(status)
        )

        await self._mirror_update(
            f"{MATCHES_PATH}/{match_id}", self._status_update(status.value, None)
        )
        await self._log_activity(ActivityEntry(
            type=ActivityType.MATCH_STATUS_UPDATED,
            match_id=match_id,
            status=status.value,
            timestamp=self.clock(),
            message=f"Match {match_id} is now {status.value}",
        ))
        return match_id

    # --- mirror-only ---

    async def update_user_role(self, user_id: str, role: str) -> None:
        """Roles live only in the mirror, so a failure here is not swallowed"""
        logger.info(f"Updating role for user {user_id} to {role}")
        try:
            await self.mirror.update(f"{USERS_PATH}/{user_id}", {"role": role})
        except Exception as e:
            raise MirrorWriteError(f"Failed to update role for user {user_id}: {e}") from e
        logger.info(f"Role updated for user {user_id}")
