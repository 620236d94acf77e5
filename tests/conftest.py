import os
from datetime import date, time, timedelta

# Settings are read at import time; point them at test values first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("SERVICE_ROLE_KEY", "test-service-key")
os.environ.setdefault("FUNCTIONS_BASE_URL", "http://testserver/functions/v1")
os.environ.setdefault("ENV", "test")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from cbrc.api.deps import get_relay_transport  # noqa: E402
from cbrc.core.config import BusinessHours  # noqa: E402
from cbrc.core.db import get_session  # noqa: E402
from cbrc.main import app  # noqa: E402
from cbrc.models.appointment import Appointment  # noqa: E402
from cbrc.models.busy_slot import BusySlot  # noqa: E402
from cbrc.models.service import Service  # noqa: E402


@pytest.fixture
def hours() -> BusinessHours:
    return BusinessHours.from_hours(9, 18, 30)


@pytest.fixture
def booking_date() -> date:
    return date.today() + timedelta(days=7)


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest_asyncio.fixture
async def services(session_maker) -> dict[str, Service]:
    cut = Service(name="Haarschnitt", duration_minutes=30, price_euros=35.0)
    colour = Service(name="Färben", duration_minutes=90, price_euros=80.0)
    retired = Service(name="Dauerwelle", duration_minutes=60, is_active=False)
    async with session_maker() as s:
        s.add_all([cut, colour, retired])
        await s.commit()
    return {"cut": cut, "colour": colour, "retired": retired}


@pytest_asyncio.fixture
async def book(session_maker):
    """Insert an appointment directly, bypassing the creation rules."""

    async def _book(service: Service, d: date, hh_mm: str, status: str = "pending") -> Appointment:
        appointment = Appointment(
            first_name="Anna",
            last_name="Muster",
            email="anna@salon-muster.at",
            phone="+43 660 1234567",
            service_id=service.id,
            gender="DAMEN",
            appointment_date=d,
            appointment_time=time.fromisoformat(hh_mm),
            status=status,
        )
        async with session_maker() as s:
            s.add(appointment)
            await s.commit()
        return appointment

    return _book


@pytest_asyncio.fixture
async def block(session_maker):
    """Insert an owner busy slot covering [start, end) on each day from d to end_date."""

    async def _block(d: date, start: str, end: str, end_date: date | None = None) -> BusySlot:
        slot = BusySlot(
            busy_date=d,
            end_date=end_date,
            start_time=time.fromisoformat(start),
            end_time=time.fromisoformat(end),
            title="Fortbildung",
        )
        async with session_maker() as s:
            s.add(slot)
            await s.commit()
        return slot

    return _block


@pytest_asyncio.fixture
async def client(session_maker):
    """App client whose relays loop back into the same app's function host."""

    async def _session_override():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_relay_transport] = lambda: httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()
