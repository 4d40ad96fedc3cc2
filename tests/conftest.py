"""
Shared fixtures for the roadside service tests.

Every test gets its own file-backed SQLite database so that separate
sessions really run concurrently against the same data. Collaborators
(notifier, geocoder, image store) are replaced with in-memory fakes.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./roadside-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret")

from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roadside.database import Base, build_engine, get_db
from roadside.models import (
    User, UserRole, FuelStation, Mechanic, ServiceRequest, ServiceType, FuelType,
    RequestStatus, PaymentStatus,
)
from roadside.services.auth_service import AuthService
from roadside.utils.geo import format_fallback_address

ORIGIN = (17.40, 78.40)

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class RecordingNotifier:
    """Collects notify() calls instead of delivering them"""

    def __init__(self):
        self.sent: List[Dict] = []

    def notify(self, user_id, kind, payload, email=None, phone=None):
        self.sent.append({"user_id": user_id, "kind": kind, "payload": payload, "email": email, "phone": phone})

    def notify_provider(self, provider_id, kind, payload):
        self.sent.append({"provider_id": provider_id, "kind": kind, "payload": payload})

    def kinds_for(self, user_id) -> List:
        return [n["kind"] for n in self.sent if n.get("user_id") == user_id]

    def kinds_for_provider(self, provider_id) -> List:
        return [n["kind"] for n in self.sent if n.get("provider_id") == provider_id]


class FakeGeocoder:
    def __init__(self, address: Optional[str] = "12 Test Road, Hyderabad"):
        self.address = address
        self.calls = []

    async def reverse_geocode(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        return self.address or format_fallback_address(latitude, longitude)


class FakeImageStore:
    def __init__(self):
        self.uploaded = []
        self.deleted = []

    async def upload_photos(self, buffers, suffix=".png"):
        result = []
        for data in buffers:
            public_id = f"img-{len(self.uploaded)}{suffix}"
            self.uploaded.append(public_id)
            result.append({"url": f"/uploads/{public_id}", "public_id": public_id})
        return result

    async def delete(self, public_id):
        self.deleted.append(public_id)
        return True

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'roadside.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session

# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

async def make_user(session: AsyncSession, email: str, role: UserRole = UserRole.TRAVELLER,
                    phone: str = "+919800000001", name: str = None) -> User:
    user = User(email=email, phone=phone, name=name or email.split("@")[0], role=role)
    session.add(user)
    await session.commit()
    return user


async def make_provider(session: AsyncSession, user: User, latitude: float, longitude: float,
                        available: bool = True, verified: bool = True, **fields):
    variant = FuelStation if user.role == UserRole.FUEL_STATION else Mechanic
    provider = variant(
        user_id=user.id,
        business_name=fields.pop("business_name", f"{user.name} Services"),
        address=fields.pop("address", "1 Provider Street"),
        phone=fields.pop("phone", user.phone),
        email=fields.pop("email", user.email),
        latitude=latitude,
        longitude=longitude,
        assistance_fee=fields.pop("assistance_fee", Decimal("100")),
        travel_fee_per_km=fields.pop("travel_fee_per_km", Decimal("10")),
        is_available=available,
        is_verified=verified,
        **fields
    )
    session.add(provider)
    await session.commit()
    return provider


async def make_request(session: AsyncSession, requester: User, request_id: str,
                       service_type: ServiceType = ServiceType.FUEL,
                       status: RequestStatus = RequestStatus.PENDING,
                       provider=None, **fields) -> ServiceRequest:
    is_fuel = service_type == ServiceType.FUEL
    service_request = ServiceRequest(
        request_id=request_id,
        user_id=requester.id,
        service_type=service_type,
        fuel_type=fields.pop("fuel_type", FuelType.PETROL if is_fuel else None),
        quantity=fields.pop("quantity", 5 if is_fuel else None),
        problem_description=fields.pop("problem_description", None if is_fuel else "Flat tyre"),
        latitude=fields.pop("latitude", ORIGIN[0]),
        longitude=fields.pop("longitude", ORIGIN[1]),
        user_address=fields.pop("user_address", "Highway 44"),
        user_phone=fields.pop("user_phone", requester.phone),
        status=status,
        provider_id=provider.id if provider else None,
        provider_phone=provider.phone if provider else None,
        **fields
    )
    session.add(service_request)
    await session.commit()
    return service_request


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {AuthService.issue_token(user.id)}"}

# ---------------------------------------------------------------------------
# Seeded accounts
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def traveller(db) -> User:
    return await make_user(db, "traveller@example.com", UserRole.TRAVELLER, phone="+919800000010")


@pytest_asyncio.fixture
async def other_traveller(db) -> User:
    return await make_user(db, "other@example.com", UserRole.TRAVELLER, phone="+919800000011")


@pytest_asyncio.fixture
async def station_user(db) -> User:
    return await make_user(db, "station@example.com", UserRole.FUEL_STATION, phone="+919800000020")


@pytest_asyncio.fixture
async def second_station_user(db) -> User:
    return await make_user(db, "station2@example.com", UserRole.FUEL_STATION, phone="+919800000021")


@pytest_asyncio.fixture
async def mechanic_user(db) -> User:
    return await make_user(db, "mechanic@example.com", UserRole.MECHANIC, phone="+919800000030")


@pytest_asyncio.fixture
async def station(db, station_user) -> FuelStation:
    # About 1.1 km north of ORIGIN
    return await make_provider(db, station_user, ORIGIN[0] + 0.01, ORIGIN[1])


@pytest_asyncio.fixture
async def second_station(db, second_station_user) -> FuelStation:
    return await make_provider(db, second_station_user, ORIGIN[0] + 0.03, ORIGIN[1])


@pytest_asyncio.fixture
async def mechanic(db, mechanic_user) -> Mechanic:
    return await make_provider(db, mechanic_user, ORIGIN[0], ORIGIN[1] + 0.02, services=["tyre change"])


@pytest_asyncio.fixture
async def completed_request(db, traveller, station) -> ServiceRequest:
    return await make_request(db, traveller, "REQ-DONE-00001", status=RequestStatus.COMPLETED,
                              provider=station, total_cost=634)


@pytest_asyncio.fixture
async def paid_request(db, traveller, station) -> ServiceRequest:
    return await make_request(db, traveller, "REQ-PAID-00001", status=RequestStatus.COMPLETED,
                              provider=station, payment_status=PaymentStatus.PAID,
                              actual_cost=Decimal("634"))

# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def image_store() -> FakeImageStore:
    return FakeImageStore()


@pytest_asyncio.fixture
async def client(session_factory, notifier, geocoder, image_store) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient on the real app; each request gets its own session"""
    from roadside.main import app
    from roadside.dependencies import get_notifier, get_geocoder, get_image_store

    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_image_store] = lambda: image_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
