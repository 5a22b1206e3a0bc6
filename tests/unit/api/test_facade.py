# tests/unit/api/test_facade.py — v3
"""Tests for api.facade — public entry point over mocked registries."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Union
from datetime import datetime

import httpx
import pytest

from vehicledata.api.facade import VehicleDataClient
from vehicledata.config.settings import Settings
from vehicledata.core.errors import ExternalServiceError, VinValidationError
from vehicledata.logging.context import LogContext, bound_context, get_context

VIN = "1C4PJMBS9HW664582"

NCAP_MODELS = {"Count": 1, "Results": [{"VehicleId": 11916}]}
NCAP_DETAILS = {
    "Count": 1,
    "Results": [{"OverallRating": "4", "RolloverPossibility": 0.169, "VehicleId": 11916}],
}


# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------

Route = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class Registry:
    """Routes requests by host and path prefix and counts them."""

    def __init__(self, routes: dict[str, Route]) -> None:
        self.routes = routes
        self.calls: Counter[str] = Counter()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        target = request.url.host + request.url.raw_path.decode().split("?")[0]
        for prefix, result in self.routes.items():
            if target.startswith(prefix):
                self.calls[prefix] += 1
                if isinstance(result, Exception):
                    raise result
                if callable(result):
                    return result(request)
                # Response objects bind to a single request
                return httpx.Response(
                    result.status_code, headers=result.headers, content=result.content
                )
        return httpx.Response(404)


@pytest.fixture
def registry(vpic_row, epa_menu, epa_vehicle):
    return Registry({
        "vpic.test/api/vehicles/DecodeVinValues/": httpx.Response(200, json={"Results": [vpic_row]}),
        "nhtsa.test/recalls/": httpx.Response(
            200, json={"Count": 1, "results": [{"NHTSACampaignNumber": "17V123000"}]}
        ),
        "nhtsa.test/complaints/": httpx.Response(200, json={"count": 0, "results": []}),
        "nhtsa.test/SafetyRatings/VehicleId/": httpx.Response(200, json=NCAP_DETAILS),
        "nhtsa.test/SafetyRatings/modelyear/": httpx.Response(200, json=NCAP_MODELS),
        "epa.test/ws/rest/vehicle/menu/": epa_menu,
        "epa.test/ws/rest/vehicle/37850": httpx.Response(200, json=epa_vehicle),
    })


@pytest.fixture
def client(settings, registry, make_http_client):
    return VehicleDataClient(settings, http_client=make_http_client(registry))


# ---------------------------------------------------------------------------
# VIN decode
# ---------------------------------------------------------------------------

class TestDecodeVin:
    @pytest.mark.asyncio
    async def test_decode_and_cache(self, client, registry):
        first = await client.decode_vin(VIN)
        second = await client.decode_vin(VIN)
        assert first.engine.cylinders == 6
        assert second == first
        assert registry.calls["vpic.test/api/vehicles/DecodeVinValues/"] == 1

    @pytest.mark.asyncio
    async def test_input_is_normalized(self, client, registry):
        spec = await client.decode_vin("1c4pj-mbs9h-w664582")
        assert spec.vin == VIN
        await client.decode_vin(VIN)
        assert registry.calls["vpic.test/api/vehicles/DecodeVinValues/"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "vin, message",
        [
            ("", "VIN is required"),
            ("1C4PJ", "VIN must be exactly 17 characters (got 5)"),
            ("1FTFW1ET7BFA5137I", "VIN cannot contain the letters I, O, or Q"),
            ("1FTFW1ET7BFA51375", "Invalid VIN check digit"),
        ],
    )
    async def test_invalid_vin_before_network(self, client, registry, vin, message):
        with pytest.raises(VinValidationError) as exc_info:
            await client.decode_vin(vin)
        assert exc_info.value.message == message
        assert sum(registry.calls.values()) == 0

    @pytest.mark.asyncio
    async def test_log_context_bound_during_call(self, settings, registry, make_http_client):
        seen: list[LogContext] = []

        def handler(request):
            seen.append(get_context())
            return registry(request)

        client = VehicleDataClient(settings, http_client=make_http_client(handler))
        before = get_context()
        await client.decode_vin(VIN)
        assert seen[0].source == "NHTSA vPIC"
        assert seen[0].cache_key == f"vin:{VIN}"
        assert seen[0].request_id is not None
        assert get_context() == before

    @pytest.mark.asyncio
    async def test_each_call_gets_its_own_request_id(self, settings, registry, make_http_client):
        seen: list[LogContext] = []

        def handler(request):
            seen.append(get_context())
            return registry(request)

        client = VehicleDataClient(settings, http_client=make_http_client(handler))
        await client.get_recalls("Jeep", "Cherokee", 2017)
        await client.get_complaints("Jeep", "Cherokee", 2017)
        assert [ctx.source for ctx in seen] == ["NHTSA Recalls", "NHTSA Complaints"]
        assert seen[0].request_id != seen[1].request_id

    @pytest.mark.asyncio
    async def test_caller_request_id_kept(self, settings, registry, make_http_client):
        seen: list[LogContext] = []

        def handler(request):
            seen.append(get_context())
            return registry(request)

        client = VehicleDataClient(settings, http_client=make_http_client(handler))
        with bound_context(request_id="outer"):
            await client.get_recalls("Jeep", "Cherokee", 2017)
            assert get_context().request_id == "outer"
        assert seen[0].request_id == "outer"


# ---------------------------------------------------------------------------
# Recalls / complaints / ratings
# ---------------------------------------------------------------------------

class TestSafetyData:
    @pytest.mark.asyncio
    async def test_recalls_cached_per_vehicle(self, client, registry):
        await client.get_recalls("Jeep", "Cherokee", 2017)
        await client.get_recalls("Jeep", "Cherokee", 2017)
        recalls = await client.get_recalls("Jeep", "Cherokee", 2018)
        assert recalls[0].campaign_number == "17V123000"
        assert registry.calls["nhtsa.test/recalls/"] == 2

    @pytest.mark.asyncio
    async def test_empty_complaints(self, client):
        assert await client.get_complaints("Jeep", "Cherokee", 2017) == []

    @pytest.mark.asyncio
    async def test_safety_ratings(self, client, registry):
        rating = await client.get_safety_ratings(2017, "Jeep", "Cherokee")
        assert rating is not None
        assert rating.overall == 4
        assert rating.rollover_possibility == pytest.approx(16.9)
        await client.get_safety_ratings(2017, "Jeep", "Cherokee")
        assert registry.calls["nhtsa.test/SafetyRatings/VehicleId/"] == 1

    @pytest.mark.asyncio
    async def test_missing_ratings_cached_as_none(self, settings, make_http_client):
        registry = Registry({"nhtsa.test/SafetyRatings/": httpx.Response(200, json={"Count": 0, "Results": []})})
        client = VehicleDataClient(settings, http_client=make_http_client(registry))
        assert await client.get_safety_ratings(1990, "Jeep", "Cherokee") is None
        assert await client.get_safety_ratings(1990, "Jeep", "Cherokee") is None
        assert registry.calls["nhtsa.test/SafetyRatings/"] == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, settings, make_http_client):
        registry = Registry({"nhtsa.test/recalls/": httpx.Response(500)})
        client = VehicleDataClient(settings, http_client=make_http_client(registry))
        for _ in range(2):
            with pytest.raises(ExternalServiceError) as exc_info:
                await client.get_recalls("Jeep", "Cherokee", 2017)
            assert exc_info.value.service == "NHTSA Recalls"
        assert registry.calls["nhtsa.test/recalls/"] == 2


# ---------------------------------------------------------------------------
# Fuel economy
# ---------------------------------------------------------------------------

class TestFuelEconomy:
    @pytest.mark.asyncio
    async def test_search_yields_four_and_six_cylinder_variants(self, client):
        candidates = await client.search_fuel_economy(2017, "Jeep", "Cherokee")
        assert len(candidates) >= 2
        descriptions = " ".join(c.description for c in candidates)
        assert "4 cyl" in descriptions
        assert "6 cyl" in descriptions

    @pytest.mark.asyncio
    async def test_match_by_cylinders_equals_match_by_displacement(self, client, registry):
        by_cylinders = await client.match_vehicle_to_fuel_economy(2017, "Jeep", "Cherokee", cylinders=6)
        by_displacement = await client.match_vehicle_to_fuel_economy(
            2017, "Jeep", "Cherokee", displacement=3.2
        )
        assert by_cylinders == by_displacement == 37850
        # one model menu plus one options menu per Cherokee model, searched once
        assert registry.calls["epa.test/ws/rest/vehicle/menu/"] == 4

    @pytest.mark.asyncio
    async def test_match_without_attributes_takes_first(self, client):
        assert await client.match_vehicle_to_fuel_economy(2017, "Jeep", "Cherokee") == 37846

    @pytest.mark.asyncio
    async def test_no_candidates(self, settings, make_http_client):
        registry = Registry({"epa.test/ws/rest/vehicle/menu/": httpx.Response(200, text="")})
        client = VehicleDataClient(settings, http_client=make_http_client(registry))
        assert await client.match_vehicle_to_fuel_economy(1901, "Nope", "Nope", cylinders=6) is None

    @pytest.mark.asyncio
    async def test_get_fuel_economy(self, client, registry):
        record = await client.get_fuel_economy(37850)
        assert record.combined_mpg == 24
        assert isinstance(record.last_updated, datetime)
        await client.get_fuel_economy(37850)
        assert registry.calls["epa.test/ws/rest/vehicle/37850"] == 1


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, client, registry):
        await client.decode_vin(VIN)
        await client.clear_cache()
        await client.decode_vin(VIN)
        assert registry.calls["vpic.test/api/vehicles/DecodeVinValues/"] == 2

    @pytest.mark.asyncio
    async def test_injected_http_client_left_open(self, settings, registry, make_http_client):
        http = make_http_client(registry)
        async with VehicleDataClient(settings, http_client=http) as client:
            await client.get_complaints("Jeep", "Cherokee", 2017)
        assert not http.is_closed
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_http_client_closed(self, settings):
        client = VehicleDataClient(settings)
        await client.aclose()
        assert client._http.is_closed

    @pytest.mark.asyncio
    async def test_durable_tier_survives_new_client(self, tmp_path, registry, make_http_client):
        settings = Settings(
            _env_file=None,
            cache_backend="json",
            cache_root=tmp_path,
            http_retry_enabled=False,
            nhtsa_vpic_base_url="https://vpic.test/api/vehicles",
        )
        async with VehicleDataClient(settings, http_client=make_http_client(registry)) as first:
            original = await first.decode_vin(VIN)

        async with VehicleDataClient(settings, http_client=make_http_client(registry)) as second:
            restored = await second.decode_vin(VIN)

        assert registry.calls["vpic.test/api/vehicles/DecodeVinValues/"] == 1
        assert restored == original
        assert isinstance(restored.decoded_at, datetime)
