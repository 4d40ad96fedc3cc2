"""
Reverse geocoding (coordinates to a human-readable address).

Uses OpenStreetMap Nominatim by default, or Mapbox when an access token is
configured. Lookups are best-effort: any failure degrades to the
``Near {lat}, {lon}`` fallback string instead of failing the caller.
"""
import logging
from typing import Optional

import httpx

from roadside.config import Settings
from roadside.errors import UpstreamUnavailable
from roadside.utils.geo import format_fallback_address

logger = logging.getLogger(__name__)

_MAPBOX_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{lng},{lat}.json"

class Geocoder:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.GEOCODER_TIMEOUT_SECONDS,
            headers={"User-Agent": self.settings.GEOCODER_USER_AGENT},
            transport=self._transport,
        )

    async def lookup(self, latitude: float, longitude: float) -> str:
        """Resolve an address or raise ``UpstreamUnavailable``"""
        try:
            async with self._client() as client:
                if self.settings.MAPBOX_ACCESS_TOKEN:
                    address = await self._mapbox(client, latitude, longitude)
                else:
                    address = await self._nominatim(client, latitude, longitude)
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailable(f"Reverse geocoding service unavailable: {e}") from e

        if not address:
            raise UpstreamUnavailable("Could not determine address from coordinates")
        return address

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        try:
            address = await self.lookup(latitude, longitude)
            logger.info("Reverse geocoded %.6f, %.6f: %s", latitude, longitude, address)
            return address
        except UpstreamUnavailable as e:
            logger.warning("Reverse geocoding failed for %.6f, %.6f: %s", latitude, longitude, e)
            return format_fallback_address(latitude, longitude)

    async def _nominatim(self, client: httpx.AsyncClient, latitude: float, longitude: float) -> Optional[str]:
        response = await client.get(
            self.settings.GEOCODER_URL,
            params={
                "format": "json",
                "lat": latitude,
                "lon": longitude,
                "zoom": 18,
                "addressdetails": 1,
            },
        )
        response.raise_for_status()
        data = response.json()
        return data.get("display_name") if isinstance(data, dict) else None

    async def _mapbox(self, client: httpx.AsyncClient, latitude: float, longitude: float) -> Optional[str]:
        response = await client.get(
            _MAPBOX_URL.format(lat=latitude, lng=longitude),
            params={
                "access_token": self.settings.MAPBOX_ACCESS_TOKEN,
                "limit": 1,
                "types": "address,place,poi",
            },
        )
        response.raise_for_status()
        features = response.json().get("features") or []
        if not features:
            return None
        return features[0].get("place_name")
