"""
DonationSyncService - the public entry point.

One explicitly constructed object owns everything that would otherwise be
process-wide state: the analytics cache, the placeholder dataset and its
listener lists, and the store clients. In live mode writes go through the
dual-write orchestrator and reads through the subscription manager; in
placeholder mode (no mirror configured) every operation stays in memory.
"""
import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from fastapi.requests import HTTPConnection

from donation_sync.config import Settings, get_settings
from donation_sync.schemas import (
    AnalyticsData,
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
from donation_sync.services import subscriptions
from donation_sync.services.dual_write import (
    DONATIONS_PATH,
    MATCHES_PATH,
    REQUIREMENTS_PATH,
    DualWriteOrchestrator,
)
from donation_sync.services.mirror_store import FirebaseMirror, MirrorStore
from donation_sync.services.placeholder import PlaceholderStore
from donation_sync.services.relational_store import RelationalStore
from donation_sync.services.subscriptions import (
    AnalyticsCache,
    Callback,
    Subscription,
    SubscriptionManager,
)
from donation_sync.utils.helpers import utcnow

logger = logging.getLogger(__name__)


def _parse_children(snapshot, model) -> list:
    """Mirror collections come back as {key: record}; bad records are skipped"""
    if not snapshot:
        return []
    if not isinstance(snapshot, (dict, list)):
        raise ValueError(f"Expected a collection of {model.__name__} records, got {type(snapshot).__name__}")
    # Firebase returns objects with sequential integer keys as arrays
    items = enumerate(snapshot) if isinstance(snapshot, list) else snapshot.items()
    records = []
    for key, value in items:
        if value is None:
            continue
        try:
            records.append(model.model_validate(value))
        except ValueError as e:
            logger.warning(f"Skipping malformed mirror record {key}: {e}")
    return records


class DonationSyncService:
    def __init__(
        self,
        relational: Optional[RelationalStore] = None,
        mirror: Optional[MirrorStore] = None,
        *,
        cache_ttl_seconds: float = 30.0,
        lead_days: int = 7,
        clock: Callable[[], datetime] = utcnow,
        wall_clock: Callable[[], float] = time.time,
    ):
        if mirror is not None and relational is None:
            raise ValueError("A relational store is required when a mirror is configured")

        self.relational = relational
        self.mirror = mirror
        self.placeholder = PlaceholderStore(clock=clock, lead_days=lead_days)
        self.analytics_cache: AnalyticsCache[AnalyticsData] = AnalyticsCache(cache_ttl_seconds, wall_clock)

        if self.placeholder_mode:
            logger.info("Mirror not configured, using placeholder data mode")
            self.orchestrator = None
            self.subscriptions = None
        else:
            self.orchestrator = DualWriteOrchestrator(relational, mirror, clock=clock, lead_days=lead_days)
            self.subscriptions = SubscriptionManager(relational)

    @property
    def placeholder_mode(self) -> bool:
        return self.mirror is None

    async def aclose(self) -> None:
        if self.mirror is not None:
            await self.mirror.aclose()

    # --- writes ---

    async def create_donation(self, donation: DonationCreate) -> str:
        if self.placeholder_mode:
            return await self.placeholder.create_donation(donation)
        return await self.orchestrator.create_donation(donation)

    async def create_requirement(self, requirement: RequirementCreate) -> str:
        if self.placeholder_mode:
            return await self.placeholder.create_requirement(requirement)
        return await self.orchestrator.create_requirement(requirement)

    async def create_match(self, match: MatchCreate, actual_quantity: Optional[float] = None) -> str:
        if self.placeholder_mode:
            return await self.placeholder.create_match(match)
        return await self.orchestrator.create_match(match, actual_quantity)

    async def update_donation_status(
        self, donation_id: str, status: DonationStatus, matched_with: Optional[str] = None
    ) -> str:
        if self.placeholder_mode:
            return await self.placeholder.update_donation_status(donation_id, status, matched_with)
        return await self.orchestrator.update_donation_status(donation_id, status, matched_with)

    async def update_requirement_status(
        self, requirement_id: str, status: RequirementStatus, matched_with: Optional[str] = None
    ) -> str:
        if self.placeholder_mode:
            return await self.placeholder.update_requirement_status(requirement_id, status, matched_with)
        return await self.orchestrator.update_requirement_status(requirement_id, status, matched_with)

    async def update_match_status(self, match_id: str, status: MatchStatus) -> str:
        if self.placeholder_mode:
            return await self.placeholder.update_match_status(match_id, status)
        return await self.orchestrator.update_match_status(match_id, status)

    async def update_user_role(self, user_id: str, role: str) -> None:
        if self.placeholder_mode:
            return await self.placeholder.update_user_role(user_id, role)
        return await self.orchestrator.update_user_role(user_id, role)

    # --- subscriptions ---

    async def get_donations_by_donor(self, donor_id: str, callback: Callback) -> Subscription:
        spec = subscriptions.donations_by_donor(donor_id)
        if self.placeholder_mode:
            return await self.placeholder.listen_donations(
                spec.name, lambda d: d.donor_id == donor_id, callback
            )
        return await self.subscriptions.subscribe(spec, callback)

    async def get_requirements_by_receiver(self, receiver_id: str, callback: Callback) -> Subscription:
        spec = subscriptions.requirements_by_receiver(receiver_id)
        if self.placeholder_mode:
            return await self.placeholder.listen_requirements(
                spec.name, lambda r: r.receiver_id == receiver_id, callback
            )
        return await self.subscriptions.subscribe(spec, callback)

    async def listen_to_available_donations(self, callback: Callback) -> Subscription:
        spec = subscriptions.available_donations()
        if self.placeholder_mode:
            return await self.placeholder.listen_donations(
                spec.name, lambda d: d.status == DonationStatus.PENDING, callback
            )
        return await self.subscriptions.subscribe(spec, callback)

    async def listen_to_active_requirements(self, callback: Callback) -> Subscription:
        spec = subscriptions.active_requirements()
        if self.placeholder_mode:
            return await self.placeholder.listen_requirements(
                spec.name, lambda r: r.status == RequirementStatus.ACTIVE, callback
            )
        return await self.subscriptions.subscribe(spec, callback)

    def remove_listener(self, handle: Optional[Subscription], callback: Optional[Callback]) -> None:
        """Detach callback from handle; ignored when either is missing or they don't belong together"""
        if handle and callback and handle.callback is callback:
            handle.unsubscribe()

    # --- one-shot reads ---

    async def list_donations_by_donor(self, donor_id: str) -> list[FoodDonation]:
        if self.placeholder_mode:
            return self.placeholder.query_donations(lambda d: d.donor_id == donor_id)
        return await self.subscriptions.fetch(subscriptions.donations_by_donor(donor_id))

    async def list_available_donations(self) -> list[FoodDonation]:
        if self.placeholder_mode:
            return self.placeholder.query_donations(lambda d: d.status == DonationStatus.PENDING)
        return await self.subscriptions.fetch(subscriptions.available_donations())

    async def list_requirements_by_receiver(self, receiver_id: str) -> list[FoodRequirement]:
        if self.placeholder_mode:
            return self.placeholder.query_requirements(lambda r: r.receiver_id == receiver_id)
        return await self.subscriptions.fetch(subscriptions.requirements_by_receiver(receiver_id))

    async def list_active_requirements(self) -> list[FoodRequirement]:
        if self.placeholder_mode:
            return self.placeholder.query_requirements(lambda r: r.status == RequirementStatus.ACTIVE)
        return await self.subscriptions.fetch(subscriptions.active_requirements())

    # --- analytics ---

    async def get_analytics_data(self) -> AnalyticsData:
        cached = self.analytics_cache.get()
        if cached is not None:
            return cached
        return self.analytics_cache.put(await self._load_analytics())

    async def _load_analytics(self) -> AnalyticsData:
        if self.placeholder_mode:
            return self.placeholder.snapshot()

        if not await self.mirror.is_connected():
            logger.info("Mirror unreachable, serving placeholder analytics")
            return self.placeholder.snapshot()

        try:
            donations, requirements, matches = await asyncio.gather(
                self.mirror.get(DONATIONS_PATH),
                self.mirror.get(REQUIREMENTS_PATH),
                self.mirror.get(MATCHES_PATH),
            )
            return AnalyticsData(
                donations=_parse_children(donations, FoodDonation),
                requirements=_parse_children(requirements, FoodRequirement),
                matches=_parse_children(matches, Match),
            )
        except Exception as e:
            logger.error(f"Error fetching analytics data: {e}")
            return self.placeholder.snapshot()


def build_sync_service(settings: Optional[Settings] = None, session_factory=None) -> DonationSyncService:
    """Live service when both Firebase flags are real values, placeholder service otherwise"""
    settings = settings or get_settings()
    common = {
        "cache_ttl_seconds": settings.ANALYTICS_CACHE_SECONDS,
        "lead_days": settings.DEFAULT_LEAD_DAYS,
    }
    if not settings.mirror_configured:
        return DonationSyncService(**common)

    if session_factory is None:
        from donation_sync.database import AsyncSessionLocal
        session_factory = AsyncSessionLocal

    return DonationSyncService(
        RelationalStore(session_factory),
        FirebaseMirror.from_settings(settings),
        **common,
    )


def get_sync_service(conn: HTTPConnection) -> DonationSyncService:
    """FastAPI dependency; works for both HTTP and WebSocket routes"""
    return conn.app.state.sync_service
