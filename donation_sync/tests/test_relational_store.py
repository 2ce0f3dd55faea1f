"""
Relational store adapter tests - table wrappers and change feed.
"""
import pytest
from datetime import datetime

from donation_sync.database import async_database_url, create_engine_from_url, create_session_factory, create_tables
from donation_sync.exceptions import RecordNotFoundError
from donation_sync.models import FoodItemStatus
from donation_sync.services.relational_store import DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed, RelationalStore


NOW = datetime(2026, 3, 14, 12, 0, 0)


def food_item_values(donor_id="donor-1", **overrides):
    values = {
        "donor_id": donor_id,
        "food_type": "Bread",
        "quantity": 10.0,
        "unit": "loaves",
        "pickup_address": "1 Baker St",
        "pickup_time": NOW,
        "expiry_date": NOW,
        "status": FoodItemStatus.AVAILABLE,
    }
    values.update(overrides)
    return values


# ===================== TABLES =====================


class TestRelationalTable:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, relational):
        row = await relational.food_items.create(food_item_values())

        assert row.id
        assert row.created_at is not None
        assert row.status == FoodItemStatus.AVAILABLE

        stored = await relational.food_items.get(row.id)
        assert stored.food_type == "Bread"

    @pytest.mark.asyncio
    async def test_get_by_filter_newest_first(self, relational):
        first = await relational.food_items.create(food_item_values())
        second = await relational.food_items.create(food_item_values())
        await relational.food_items.create(food_item_values(donor_id="someone-else"))

        rows = await relational.food_items.get_by_owner("donor-1")

        assert [r.id for r in rows] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_filter_on_status(self, relational):
        await relational.food_items.create(food_item_values())
        await relational.food_items.create(food_item_values(status=FoodItemStatus.COLLECTED))

        rows = await relational.food_items.get_by_filter({"status": FoodItemStatus.AVAILABLE})

        assert len(rows) == 1
        assert rows[0].status == FoodItemStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_update_status(self, relational):
        row = await relational.food_items.create(food_item_values())

        updated = await relational.food_items.update_status(row.id, FoodItemStatus.RESERVED)

        assert updated.status == FoodItemStatus.RESERVED
        assert updated.updated_at >= row.created_at

    @pytest.mark.asyncio
    async def test_update_missing_row_raises(self, relational):
        with pytest.raises(RecordNotFoundError) as exc:
            await relational.requests.update_status("missing", "matched")
        assert exc.value.table == "requests"
        assert exc.value.record_id == "missing"

    @pytest.mark.asyncio
    async def test_delete(self, relational):
        row = await relational.food_items.create(food_item_values())

        await relational.food_items.delete(row.id)

        assert await relational.food_items.get(row.id) is None
        with pytest.raises(RecordNotFoundError):
            await relational.food_items.delete(row.id)

    def test_table_lookup(self, relational):
        assert relational.table("food_items") is relational.food_items
        assert relational.table("requests") is relational.requests
        assert relational.table("transactions") is relational.transactions
        with pytest.raises(ValueError, match="Unknown table"):
            relational.table("donations")


# ===================== CHANGE FEED =====================


class TestChangeFeed:

    @pytest.mark.asyncio
    async def test_insert_update_delete_are_published(self, relational):
        events = []

        async def handler(event):
            events.append(event)

        relational.feed.subscribe("food_items", {"donor_id": "donor-1"}, handler)

        row = await relational.food_items.create(food_item_values())
        await relational.food_items.update_status(row.id, FoodItemStatus.RESERVED)
        await relational.food_items.delete(row.id)

        assert [e.event_type for e in events] == [INSERT, UPDATE, DELETE]
        assert events[0].new["id"] == row.id
        assert events[1].old["status"] == FoodItemStatus.AVAILABLE
        assert events[1].new["status"] == FoodItemStatus.RESERVED
        assert events[2].new is None
        assert events[2].old["id"] == row.id

    @pytest.mark.asyncio
    async def test_filter_matches_old_or_new_row(self):
        feed = ChangeFeed()
        seen = []

        async def handler(event):
            seen.append(event)

        feed.subscribe("food_items", {"status": "available"}, handler)

        # Row leaving the filtered set
        await feed.publish(ChangeEvent("food_items", UPDATE, new={"status": "reserved"}, old={"status": "available"}))
        # Unrelated row
        await feed.publish(ChangeEvent("food_items", UPDATE, new={"status": "collected"}, old={"status": "reserved"}))
        # Other table
        await feed.publish(ChangeEvent("requests", INSERT, new={"status": "available"}))

        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self):
        feed = ChangeFeed()

        async def handler(event):
            raise AssertionError("should not be called")

        channel = feed.subscribe("requests", {}, handler)
        assert feed.channel_count == 1

        channel.unsubscribe()
        channel.unsubscribe()

        assert feed.channel_count == 0
        await feed.publish(ChangeEvent("requests", INSERT, new={"id": "1"}))

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        feed = ChangeFeed()
        seen = []

        async def broken(event):
            raise RuntimeError("boom")

        async def healthy(event):
            seen.append(event)

        feed.subscribe("requests", {}, broken)
        feed.subscribe("requests", {}, healthy)

        await feed.publish(ChangeEvent("requests", INSERT, new={"id": "1"}))

        assert len(seen) == 1


# ===================== ENGINE =====================


class TestDatabaseUrl:

    @pytest.mark.parametrize("url,expected", [
        ("sqlite:///./food_donation.db", "sqlite+aiosqlite:///./food_donation.db"),
        ("postgresql://u:p@db/food", "postgresql+asyncpg://u:p@db/food"),
        ("postgres://u:p@db/food", "postgresql+asyncpg://u:p@db/food"),
        ("postgresql+asyncpg://u:p@db/food", "postgresql+asyncpg://u:p@db/food"),
    ])
    def test_async_database_url(self, url, expected):
        assert async_database_url(url) == expected

    @pytest.mark.asyncio
    async def test_create_tables_reset_drops_rows(self):
        engine = create_engine_from_url("sqlite:///:memory:")
        await create_tables(engine)
        store = RelationalStore(create_session_factory(engine))
        await store.food_items.create(food_item_values())

        await create_tables(engine)
        assert len(await store.food_items.get_all()) == 1

        await create_tables(engine, drop_existing=True)
        assert await store.food_items.get_all() == []

        await engine.dispose()
