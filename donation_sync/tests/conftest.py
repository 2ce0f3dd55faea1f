"""
Test fixtures - in-memory SQLite relational store, mocked mirror, frozen clocks
"""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from donation_sync.database import create_engine_from_url, create_session_factory, create_tables
from donation_sync.main import app
from donation_sync.schemas import DonationCreate, Location, MatchCreate, RequirementCreate
from donation_sync.services.mirror_store import MirrorStore
from donation_sync.services.relational_store import RelationalStore
from donation_sync.services.sync_service import DonationSyncService, get_sync_service


class FrozenClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        if isinstance(self.now, datetime):
            self.now = self.now + timedelta(**kwargs)
        else:
            self.now = self.now + timedelta(**kwargs).total_seconds()


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2026, 3, 14, 12, 0, 0))


@pytest.fixture()
def wall_clock():
    return FrozenClock(1_000_000.0)


@pytest_asyncio.fixture()
async def session_factory():
    """Fresh in-memory SQLite database shared by every session of one test"""
    engine = create_engine_from_url("sqlite:///:memory:")
    await create_tables(engine)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture()
def relational(session_factory):
    return RelationalStore(session_factory)


@pytest.fixture()
def mirror():
    mock = AsyncMock(spec=MirrorStore)
    mock.push.side_effect = [f"-Activity{i:03d}" for i in range(100)]
    mock.is_connected.return_value = True
    mock.get.return_value = None
    return mock


@pytest.fixture()
def service(relational, mirror, clock, wall_clock):
    return DonationSyncService(relational, mirror, clock=clock, wall_clock=wall_clock)


@pytest.fixture()
def placeholder_service(clock, wall_clock):
    return DonationSyncService(clock=clock, wall_clock=wall_clock)


@pytest.fixture()
def donation_payload():
    return DonationCreate(
        donor_id="donor-1",
        donor_name="Corner Bistro",
        food_type="Fresh Vegetables",
        quantity="50",
        unit="kg",
        description="End of day produce",
        location=Location(address="12 Harbour St", lat=37.77, lng=-122.41),
    )


@pytest.fixture()
def requirement_payload():
    return RequirementCreate(
        receiver_id="ngo-1",
        receiver_name="Sam Rivera",
        organization_name="Eastside Shelter",
        title="Evening Meals",
        food_type="Cooked Meals",
        quantity="80",
        unit="portions",
        urgency="high",
        description="Dinner service for residents",
        location=Location(address="8 Dock Rd", lat=37.76, lng=-122.43),
        serving_size="80",
    )


@pytest.fixture()
def match_payload():
    return MatchCreate(
        donation_id="don-1",
        requirement_id="req-1",
        donor_id="donor-1",
        receiver_id="ngo-1",
        status="pending",
        distance=2.5,
        match_score=95,
    )


@pytest_asyncio.fixture()
async def client(service):
    """httpx AsyncClient bound to the FastAPI app with a live-mode service"""
    app.dependency_overrides[get_sync_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def placeholder_client(placeholder_service):
    app.dependency_overrides[get_sync_service] = lambda: placeholder_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
