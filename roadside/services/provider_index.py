from dataclasses import dataclass
from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from roadside.config import settings
from roadside.models import Provider, ServiceType
from roadside.utils.geo import calculate_distance, round_distance, calculate_eta, get_bounds

@dataclass
class ProviderMatch:
    provider: Provider
    distance_km: float
    eta_minutes: int

def nearest_query(variant, origin: Tuple[float, float], max_distance_meters: float, limit: int):
    """
    PostGIS proximity search: radius, ordering and limit all run in the
    database against the GiST-indexed ``location`` column. Distances use the
    sphere (``use_spheroid=false``) to agree with the haversine figures
    reported to clients.
    """
    lat, lng = origin
    point = func.ST_GeogFromText(f"SRID=4326;POINT({lng} {lat})")
    distance = func.ST_Distance(variant.location, point, False)

    return (
        select(variant)
        .where(
            variant.is_available.is_(True),
            variant.is_verified.is_(True),
            variant.location.isnot(None),
            func.ST_DWithin(variant.location, point, max_distance_meters, False)
        )
        .order_by(distance, variant.id)
        .limit(limit)
    )

def bounding_box_query(variant, origin: Tuple[float, float], radius_km: float):
    """Coordinate-box prefilter for databases without PostGIS"""
    bounds = get_bounds(origin, radius_km)
    query = select(variant).where(
        variant.is_available.is_(True),
        variant.is_verified.is_(True),
        variant.latitude.between(bounds["south"], bounds["north"]),
    )
    # Skip the longitude window when it wraps the antimeridian
    if -180.0 <= bounds["west"] and bounds["east"] <= 180.0:
        query = query.where(variant.longitude.between(bounds["west"], bounds["east"]))
    return query

class ProviderIndex:
    """Proximity search over available, verified providers"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def uses_postgis(self) -> bool:
        return self.db.get_bind().dialect.name == "postgresql"

    async def find_nearest(
        self,
        origin: Tuple[float, float],  # (lat, lng)
        service_type: ServiceType,
        max_distance_meters: float = None,
        limit: int = None
    ) -> List[ProviderMatch]:
        """
        Find available providers of the variant serving ``service_type``
        within ``max_distance_meters`` of ``origin``, nearest first.

        On PostgreSQL the search runs in PostGIS. Elsewhere rows are narrowed
        with a bounding box and cut, ordered and limited here. Either way the
        reported distance is the haversine distance from the stored
        coordinates, rounded to one decimal.
        """
        if max_distance_meters is None:
            max_distance_meters = settings.DEFAULT_SEARCH_RADIUS_METERS
        if limit is None:
            limit = settings.DEFAULT_PROVIDER_LIMIT
        if limit <= 0 or max_distance_meters < 0:
            return []

        variant = Provider.variant_for_service(service_type)
        radius_km = max_distance_meters / 1000.0

        if self.uses_postgis:
            query = nearest_query(variant, origin, max_distance_meters, limit)
        else:
            query = bounding_box_query(variant, origin, radius_km)
        result = await self.db.execute(query)

        matches = []
        for provider in result.scalars().all():
            distance = calculate_distance(origin, (provider.latitude, provider.longitude))
            if distance > radius_km:
                continue
            matches.append((distance, str(provider.id), provider))

        matches.sort(key=lambda m: (m[0], m[1]))

        return [
            ProviderMatch(
                provider=provider,
                distance_km=round_distance(distance),
                eta_minutes=calculate_eta(distance)
            )
            for distance, _, provider in matches[:limit]
        ]
