"""
Subscription manager - refetch-on-change read paths over the relational store.

A subscription runs the full query once, hands the translated result set to
the callback, then re-runs the same query for every change event on the
table that touches a matching row. Callbacks always receive the complete
current result set, never a delta.
"""
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from donation_sync.models import FoodItemStatus, RequestStatus
from donation_sync.services import translator
from donation_sync.services.relational_store import ChangeEvent, RelationalStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[list], Any]


async def deliver(callback: Callback, records: list) -> None:
    """Invoke a plain or coroutine callback with a result set"""
    result = callback(records)
    if inspect.isawaitable(result):
        await result


class Subscription:
    """Handle returned by subscribe(); unsubscribe() is safe to call repeatedly"""

    def __init__(self, name: str, callback: Callback, release: Optional[Callable[[], None]] = None):
        self.name = name
        self.callback = callback
        self._release = release
        self.active = release is not None

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._release()
        logger.info(f"Unsubscribed from {self.name}")


@dataclass
class SubscriptionSpec:
    """What to query and how to translate it"""
    name: str
    table: str
    criteria: Dict[str, Any] = field(default_factory=dict)
    translate: Optional[Callable] = None


def donations_by_donor(donor_id: str) -> SubscriptionSpec:
    return SubscriptionSpec(
        name=f"donations-{donor_id}",
        table="food_items",
        criteria={"donor_id": donor_id},
        translate=translator.food_item_to_donation,
    )


def requirements_by_receiver(receiver_id: str) -> SubscriptionSpec:
    return SubscriptionSpec(
        name=f"requirements-{receiver_id}",
        table="requests",
        criteria={"ngo_id": receiver_id},
        translate=translator.request_to_requirement,
    )


def available_donations() -> SubscriptionSpec:
    return SubscriptionSpec(
        name="available-donations",
        table="food_items",
        criteria={"status": FoodItemStatus.AVAILABLE},
        translate=translator.food_item_to_donation,
    )


def active_requirements() -> SubscriptionSpec:
    return SubscriptionSpec(
        name="active-requirements",
        table="requests",
        criteria={"status": RequestStatus.ACTIVE},
        translate=translator.request_to_requirement,
    )


class SubscriptionManager:
    def __init__(self, relational: RelationalStore):
        self.relational = relational

    async def fetch(self, spec: SubscriptionSpec) -> list:
        """Run the subscription query and translate every row"""
        rows = await self.relational.table(spec.table).get_by_filter(spec.criteria)
        records = [spec.translate(row) for row in rows]
        logger.debug(f"Fetched {len(records)} rows for {spec.name}")
        return records

    async def subscribe(self, spec: SubscriptionSpec, callback: Callback) -> Subscription:
        logger.info(f"Setting up listener for {spec.name}")
        try:
            records = await self.fetch(spec)
        except Exception as e:
            logger.error(f"Error setting up {spec.name} listener: {e}")
            await deliver(callback, [])
            return Subscription(spec.name, callback)

        await deliver(callback, records)

        async def on_change(event: ChangeEvent) -> None:
            logger.debug(f"Change on {event.table} ({event.event_type}), refetching {spec.name}")
            try:
                refreshed = await self.fetch(spec)
            except Exception as e:
                logger.error(f"Error refetching {spec.name}: {e}")
                refreshed = []
            await deliver(callback, refreshed)

        try:
            channel = self.relational.feed.subscribe(spec.table, spec.criteria, on_change)
        except Exception as e:
            logger.error(f"Error opening change channel for {spec.name}: {e}")
            await deliver(callback, [])
            return Subscription(spec.name, callback)

        return Subscription(spec.name, callback, channel.unsubscribe)


class AnalyticsCache(Generic[T]):
    """Single-slot cache with a wall-clock time-to-live"""

    def __init__(self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._value: Optional[T] = None
        self._stored_at = 0.0

    def get(self) -> Optional[T]:
        if self._value is not None and self.clock() - self._stored_at < self.ttl_seconds:
            return self._value
        return None

    def put(self, value: T) -> T:
        self._value = value
        self._stored_at = self.clock()
        return value

    def clear(self) -> None:
        self._value = None
        self._stored_at = 0.0
