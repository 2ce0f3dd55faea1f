"""
Relational store adapter - canonical food items, requests and transactions.

Each table wrapper opens its own session per call and, after a successful
commit, publishes a change event on the shared ChangeFeed. The feed is the
store's notification channel: subscribers register for a table plus an
equality filter and are called for every insert/update/delete whose old or
new row matches the filter.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from donation_sync.exceptions import RecordNotFoundError
from donation_sync.models import FoodItem, FoodRequest, Transaction
from donation_sync.utils.helpers import utcnow

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass
class ChangeEvent:
    table: str
    event_type: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


def _row_matches(row: Optional[Dict[str, Any]], criteria: Dict[str, Any]) -> bool:
    if row is None:
        return False
    return all(row.get(key) == value for key, value in criteria.items())


class ChangeChannel:
    """A single registration on the ChangeFeed"""

    def __init__(self, feed: "ChangeFeed", table: str, criteria: Dict[str, Any], handler: ChangeHandler):
        self.feed = feed
        self.table = table
        self.criteria = dict(criteria)
        self.handler = handler
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        return _row_matches(event.new, self.criteria) or _row_matches(event.old, self.criteria)

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.feed._remove(self)


class ChangeFeed:
    def __init__(self):
        self._channels: List[ChangeChannel] = []

    def subscribe(self, table: str, criteria: Dict[str, Any], handler: ChangeHandler) -> ChangeChannel:
        channel = ChangeChannel(self, table, criteria, handler)
        self._channels.append(channel)
        logger.debug(f"Change channel opened on {table} {criteria}")
        return channel

    def _remove(self, channel: ChangeChannel) -> None:
        if channel in self._channels:
            self._channels.remove(channel)
        logger.debug(f"Change channel closed on {channel.table} {channel.criteria}")

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching channel, in registration order"""
        for channel in list(self._channels):
            if channel.closed or not channel.matches(event):
                continue
            try:
                await channel.handler(event)
            except Exception as e:
                logger.error(f"Change handler failed for {event.table} {event.event_type}: {e}")


def _as_dict(record) -> Dict[str, Any]:
    return {column.key: getattr(record, column.key) for column in record.__table__.columns}


class RelationalTable:
    """create / update_status / delete / queries for one ORM model"""

    def __init__(
        self,
        model,
        owner_column: str,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed,
    ):
        self.model = model
        self.owner_column = owner_column
        self.table_name = model.__tablename__
        self._session_factory = session_factory
        self._feed = feed

    async def create(self, values: Dict[str, Any]):
        async with self._session_factory() as session:
            record = self.model(**values)
            session.add(record)
            await session.commit()
            await session.refresh(record)

        logger.info(f"Inserted {self.table_name} row {record.id}")
        await self._feed.publish(ChangeEvent(self.table_name, INSERT, new=_as_dict(record)))
        return record

    async def update_status(self, record_id: str, status):
        async with self._session_factory() as session:
            record = await session.get(self.model, record_id)
            if record is None:
                raise RecordNotFoundError(self.table_name, record_id)

            old = _as_dict(record)
            record.status = status
            record.updated_at = utcnow()
            await session.commit()
            await session.refresh(record)

        logger.info(f"Updated {self.table_name} row {record_id} status to {status}")
        await self._feed.publish(ChangeEvent(self.table_name, UPDATE, new=_as_dict(record), old=old))
        return record

    async def delete(self, record_id: str) -> None:
        async with self._session_factory() as session:
            record = await session.get(self.model, record_id)
            if record is None:
                raise RecordNotFoundError(self.table_name, record_id)

            old = _as_dict(record)
            await session.delete(record)
            await session.commit()

        logger.info(f"Deleted {self.table_name} row {record_id}")
        await self._feed.publish(ChangeEvent(self.table_name, DELETE, old=old))

    async def get(self, record_id: str):
        async with self._session_factory() as session:
            return await session.get(self.model, record_id)

    async def get_by_filter(self, criteria: Dict[str, Any]) -> list:
        """Rows matching every key == value in criteria, newest first"""
        query = (
            select(self.model)
            .filter_by(**criteria)
            .order_by(self.model.created_at.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_by_owner(self, owner_id: str) -> list:
        return await self.get_by_filter({self.owner_column: owner_id})

    async def get_all(self) -> list:
        return await self.get_by_filter({})


class RelationalStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], feed: Optional[ChangeFeed] = None):
        self.feed = feed or ChangeFeed()
        self.food_items = RelationalTable(FoodItem, "donor_id", session_factory, self.feed)
        self.requests = RelationalTable(FoodRequest, "ngo_id", session_factory, self.feed)
        self.transactions = RelationalTable(Transaction, "donor_id", session_factory, self.feed)
        self._tables = {
            table.table_name: table
            for table in (self.food_items, self.requests, self.transactions)
        }

    def table(self, name: str) -> RelationalTable:
        try:
            return self._tables[name]
        except KeyError:
            raise ValueError(f"Unknown table: {name}. Available: {list(self._tables.keys())}")
