"""
Subscription manager tests - initial delivery, refetch on change, teardown.
"""
import pytest
from unittest.mock import AsyncMock, patch

from donation_sync.schemas import DonationStatus, RequirementStatus
from donation_sync.services import subscriptions
from donation_sync.services.subscriptions import AnalyticsCache, Subscription, SubscriptionManager


class Recorder:
    """Callback that keeps every result set it is given"""

    def __init__(self):
        self.calls = []

    def __call__(self, records):
        self.calls.append(records)

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture()
def manager(relational):
    return SubscriptionManager(relational)


# ===================== INITIAL DELIVERY =====================


class TestInitialDelivery:

    @pytest.mark.asyncio
    async def test_donor_subscription_gets_current_rows(self, service, manager, donation_payload):
        first = await service.create_donation(donation_payload)
        second = await service.create_donation(donation_payload)
        donation_payload.donor_id = "donor-2"
        await service.create_donation(donation_payload)

        recorder = Recorder()
        await manager.subscribe(subscriptions.donations_by_donor("donor-1"), recorder)

        assert len(recorder.calls) == 1
        assert [d.id for d in recorder.last] == [second, first]
        assert all(d.status == DonationStatus.PENDING for d in recorder.last)

    @pytest.mark.asyncio
    async def test_empty_result_is_still_delivered(self, manager):
        recorder = Recorder()
        await manager.subscribe(subscriptions.active_requirements(), recorder)

        assert recorder.calls == [[]]

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self, manager):
        callback = AsyncMock()
        await manager.subscribe(subscriptions.available_donations(), callback)

        callback.assert_awaited_once_with([])


# ===================== REFETCH ON CHANGE =====================


class TestRefetchOnChange:

    @pytest.mark.asyncio
    async def test_insert_triggers_full_refetch(self, service, manager, donation_payload):
        recorder = Recorder()
        await manager.subscribe(subscriptions.available_donations(), recorder)

        donation_id = await service.create_donation(donation_payload)

        assert len(recorder.calls) == 2
        assert [d.id for d in recorder.last] == [donation_id]

    @pytest.mark.asyncio
    async def test_status_change_removes_from_filtered_set(self, service, manager, donation_payload):
        donation_id = await service.create_donation(donation_payload)
        recorder = Recorder()
        await manager.subscribe(subscriptions.available_donations(), recorder)

        await service.update_donation_status(donation_id, DonationStatus.MATCHED)

        assert recorder.last == []

    @pytest.mark.asyncio
    async def test_delete_triggers_refetch(self, service, relational, manager, donation_payload):
        donation_id = await service.create_donation(donation_payload)
        recorder = Recorder()
        await manager.subscribe(subscriptions.donations_by_donor("donor-1"), recorder)

        await relational.food_items.delete(donation_id)

        assert len(recorder.calls) == 2
        assert recorder.last == []

    @pytest.mark.asyncio
    async def test_unrelated_rows_do_not_notify(self, service, manager, requirement_payload):
        recorder = Recorder()
        await manager.subscribe(subscriptions.requirements_by_receiver("ngo-1"), recorder)

        requirement_payload.receiver_id = "ngo-2"
        await service.create_requirement(requirement_payload)

        assert len(recorder.calls) == 1

    @pytest.mark.asyncio
    async def test_two_subscriptions_are_independent(self, service, manager, requirement_payload):
        active = Recorder()
        mine = Recorder()
        first = await manager.subscribe(subscriptions.active_requirements(), active)
        await manager.subscribe(subscriptions.requirements_by_receiver("ngo-1"), mine)

        first.unsubscribe()
        requirement_id = await service.create_requirement(requirement_payload)

        assert len(active.calls) == 1
        assert len(mine.calls) == 2
        assert mine.last[0].id == requirement_id
        assert mine.last[0].status == RequirementStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_refetch_failure_delivers_empty_list(self, service, relational, manager, donation_payload):
        recorder = Recorder()
        await manager.subscribe(subscriptions.available_donations(), recorder)

        with patch.object(manager, "fetch", new_callable=AsyncMock) as fetch:
            fetch.side_effect = RuntimeError("connection reset")
            await service.create_donation(donation_payload)

        assert recorder.last == []


# ===================== TEARDOWN =====================


class TestTeardown:

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self, relational, manager):
        handle = await manager.subscribe(subscriptions.available_donations(), Recorder())
        assert relational.feed.channel_count == 1
        assert handle.active

        handle.unsubscribe()
        handle.unsubscribe()

        assert relational.feed.channel_count == 0
        assert not handle.active

    @pytest.mark.asyncio
    async def test_no_delivery_after_unsubscribe(self, service, manager, donation_payload):
        recorder = Recorder()
        handle = await manager.subscribe(subscriptions.available_donations(), recorder)
        handle.unsubscribe()

        await service.create_donation(donation_payload)

        assert len(recorder.calls) == 1

    @pytest.mark.asyncio
    async def test_setup_failure_delivers_empty_and_noop_handle(self, relational, manager):
        recorder = Recorder()

        with patch.object(manager, "fetch", new_callable=AsyncMock) as fetch:
            fetch.side_effect = RuntimeError("database unavailable")
            handle = await manager.subscribe(subscriptions.available_donations(), recorder)

        assert recorder.calls == [[]]
        assert isinstance(handle, Subscription)
        assert not handle.active
        assert relational.feed.channel_count == 0
        handle.unsubscribe()


# ===================== ANALYTICS CACHE =====================


class TestAnalyticsCache:

    def test_value_within_ttl(self, wall_clock):
        cache = AnalyticsCache(30, wall_clock)
        value = object()
        cache.put(value)

        wall_clock.advance(seconds=29)

        assert cache.get() is value

    def test_value_expires(self, wall_clock):
        cache = AnalyticsCache(30, wall_clock)
        cache.put(object())

        wall_clock.advance(seconds=30)

        assert cache.get() is None

    def test_clear(self, wall_clock):
        cache = AnalyticsCache(30, wall_clock)
        cache.put(object())
        cache.clear()

        assert cache.get() is None
