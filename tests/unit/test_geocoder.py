"""
Reverse geocoding against mocked HTTP backends.
"""
import httpx
import pytest

from roadside.config import Settings
from roadside.errors import UpstreamUnavailable
from roadside.services.geocoding_service import Geocoder

pytestmark = pytest.mark.asyncio


def geocoder_for(handler, **overrides) -> Geocoder:
    settings = Settings(MAPBOX_ACCESS_TOKEN=None, **overrides)
    return Geocoder(settings, transport=httpx.MockTransport(handler))


class TestNominatim:

    async def test_display_name(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            seen["agent"] = request.headers["user-agent"]
            return httpx.Response(200, json={"display_name": "Banjara Hills, Hyderabad"})

        address = await geocoder_for(handler).reverse_geocode(17.4, 78.4)

        assert address == "Banjara Hills, Hyderabad"
        assert seen["params"]["lat"] == "17.4"
        assert seen["params"]["format"] == "json"
        assert seen["agent"] == "roadside-assistance/1.0"

    async def test_server_error_falls_back(self):
        geocoder = geocoder_for(lambda request: httpx.Response(503))
        assert await geocoder.reverse_geocode(17.4, 78.4) == "Near 17.400000, 78.400000"

    async def test_empty_result_falls_back(self):
        geocoder = geocoder_for(lambda request: httpx.Response(200, json={"error": "Unable to geocode"}))
        assert await geocoder.reverse_geocode(17.4, 78.4) == "Near 17.400000, 78.400000"

    async def test_network_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert await geocoder_for(handler).reverse_geocode(-33.5, 151.25) == "Near -33.500000, 151.250000"

    async def test_lookup_raises_upstream_unavailable(self):
        geocoder = geocoder_for(lambda request: httpx.Response(500))
        with pytest.raises(UpstreamUnavailable):
            await geocoder.lookup(17.4, 78.4)


class TestMapbox:

    async def test_place_name(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "api.mapbox.com"
            assert request.url.path.endswith("/78.4,17.4.json")
            assert request.url.params["access_token"] == "pk.test"
            return httpx.Response(200, json={"features": [{"place_name": "Road No. 12, Hyderabad"}]})

        settings = Settings(MAPBOX_ACCESS_TOKEN="pk.test")
        geocoder = Geocoder(settings, transport=httpx.MockTransport(handler))
        assert await geocoder.reverse_geocode(17.4, 78.4) == "Road No. 12, Hyderabad"

    async def test_no_features_falls_back(self):
        settings = Settings(MAPBOX_ACCESS_TOKEN="pk.test")
        geocoder = Geocoder(settings, transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"features": []})))
        assert await geocoder.reverse_geocode(17.4, 78.4) == "Near 17.400000, 78.400000"
