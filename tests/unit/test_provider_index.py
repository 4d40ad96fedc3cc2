"""
Provider index tests against a real SQLite database.
"""
import pytest
from sqlalchemy import select

from conftest import ORIGIN, make_provider, make_user
from roadside.models import Provider, ServiceType, UserRole
from roadside.services.provider_index import ProviderIndex
from roadside.utils.geo import calculate_distance

pytestmark = pytest.mark.asyncio


async def _station(db, n, lat, lng, **kwargs):
    user = await make_user(db, f"station{n}@example.com", UserRole.FUEL_STATION)
    return await make_provider(db, user, lat, lng, **kwargs)


async def _mechanic(db, n, lat, lng, **kwargs):
    user = await make_user(db, f"mechanic{n}@example.com", UserRole.MECHANIC)
    return await make_provider(db, user, lat, lng, **kwargs)


class TestFindNearest:

    async def test_empty_when_no_providers(self, db):
        assert await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL) == []

    async def test_sorted_by_distance(self, db):
        far = await _station(db, 1, ORIGIN[0] + 0.05, ORIGIN[1])
        near = await _station(db, 2, ORIGIN[0] + 0.01, ORIGIN[1])
        middle = await _station(db, 3, ORIGIN[0], ORIGIN[1] - 0.03)

        matches = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL)

        assert [m.provider.id for m in matches] == [near.id, middle.id, far.id]
        distances = [m.distance_km for m in matches]
        assert distances == sorted(distances)

    async def test_distance_rounded_to_one_decimal(self, db):
        provider = await _station(db, 1, ORIGIN[0] + 0.01, ORIGIN[1])
        [match] = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL)

        exact = calculate_distance(ORIGIN, (provider.latitude, provider.longitude))
        assert match.distance_km == round(exact * 10) / 10 == 1.1
        assert match.eta_minutes >= 1

    async def test_radius_is_exact(self, db):
        # 0.18 degrees of latitude is ~20.0 km; 0.17 is ~18.9 km
        inside = await _station(db, 1, ORIGIN[0] + 0.17, ORIGIN[1])
        await _station(db, 2, ORIGIN[0] + 0.185, ORIGIN[1])

        matches = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL, max_distance_meters=20000)
        assert [m.provider.id for m in matches] == [inside.id]

    async def test_filters_by_variant(self, db):
        station = await _station(db, 1, ORIGIN[0] + 0.01, ORIGIN[1])
        mechanic = await _mechanic(db, 1, ORIGIN[0] + 0.01, ORIGIN[1])

        fuel = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL)
        repair = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.MECHANIC)

        assert [m.provider.id for m in fuel] == [station.id]
        assert [m.provider.id for m in repair] == [mechanic.id]

    async def test_skips_unavailable_and_unverified(self, db):
        await _station(db, 1, ORIGIN[0] + 0.01, ORIGIN[1], available=False)
        await _station(db, 2, ORIGIN[0] + 0.01, ORIGIN[1], verified=False)
        ok = await _station(db, 3, ORIGIN[0] + 0.02, ORIGIN[1])

        matches = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL)
        assert [m.provider.id for m in matches] == [ok.id]

    async def test_limit(self, db):
        for n in range(7):
            await _station(db, n, ORIGIN[0] + 0.01 * (n + 1), ORIGIN[1])

        matches = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL, limit=5)
        assert len(matches) == 5
        assert matches[0].distance_km < matches[-1].distance_km

    async def test_ties_broken_by_id(self, db):
        a = await _station(db, 1, ORIGIN[0] + 0.01, ORIGIN[1])
        b = await _station(db, 2, ORIGIN[0] + 0.01, ORIGIN[1])

        matches = await ProviderIndex(db).find_nearest(ORIGIN, ServiceType.FUEL)
        assert [m.provider.id for m in matches] == sorted([a.id, b.id], key=str)

    async def test_across_antimeridian(self, db):
        origin = (0.0, 179.95)
        across = await _station(db, 1, 0.0, -179.95)

        matches = await ProviderIndex(db).find_nearest(origin, ServiceType.FUEL)
        assert [m.provider.id for m in matches] == [across.id]
        assert matches[0].distance_km == pytest.approx(11.1, abs=0.1)


class TestLocationColumn:

    async def read_location(self, db, provider_id):
        result = await db.execute(select(Provider.location).where(Provider.id == provider_id))
        return result.scalar_one()

    async def test_written_on_insert(self, db):
        provider = await _station(db, 1, 17.4, 78.4)
        assert await self.read_location(db, provider.id) == "SRID=4326;POINT(78.4 17.4)"

    async def test_follows_coordinate_changes(self, db):
        provider = await _station(db, 1, 17.4, 78.4)
        provider.latitude = 17.5
        provider.longitude = 78.25
        await db.commit()

        assert await self.read_location(db, provider.id) == "SRID=4326;POINT(78.25 17.5)"

    async def test_sqlite_uses_bounding_box_path(self, db):
        assert ProviderIndex(db).uses_postgis is False
