# tests/integration/api/test_int_api.py — v3
"""Integration tests for the facade with a real durable tier and stubbed registries.

Two clients share one SQLite file, standing in for two processes. Durable
entries are written only for data classes with a configured TTL.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from vehicledata.api.facade import VehicleDataClient
from vehicledata.config.settings import Settings


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        cache_backend="sqlite",
        cache_root=tmp_path,
        http_retry_enabled=False,
        nhtsa_api_base_url="https://nhtsa.test",
        fuel_economy_base_url="https://epa.test/ws/rest",
    )


def _handler(calls: list[str], epa_menu):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.startswith("/recalls/"):
            return httpx.Response(
                200, json={"Count": 1, "results": [{"NHTSACampaignNumber": "17V123000"}]}
            )
        if "/menu/" in request.url.path:
            return epa_menu(request)
        return httpx.Response(404)

    return handler


class TestSharedDurableTier:

    @pytest.mark.asyncio
    async def test_recalls_shared_between_clients(self, tmp_path, make_http_client, epa_menu):
        calls: list[str] = []
        handler = _handler(calls, epa_menu)

        async with VehicleDataClient(_settings(tmp_path), http_client=make_http_client(handler)) as a:
            first = await a.get_recalls("Jeep", "Cherokee", 2017)
        async with VehicleDataClient(_settings(tmp_path), http_client=make_http_client(handler)) as b:
            second = await b.get_recalls("Jeep", "Cherokee", 2017)

        assert first == second
        assert calls == ["/recalls/recallsByVehicle"]

    @pytest.mark.asyncio
    async def test_fuel_search_is_process_local(self, tmp_path, make_http_client, epa_menu):
        calls: list[str] = []
        handler = _handler(calls, epa_menu)

        async with VehicleDataClient(_settings(tmp_path), http_client=make_http_client(handler)) as a:
            assert await a.match_vehicle_to_fuel_economy(2017, "Jeep", "Cherokee", cylinders=6) == 37850
            assert await a.match_vehicle_to_fuel_economy(2017, "Jeep", "Cherokee", displacement=3.2) == 37850
        async with VehicleDataClient(_settings(tmp_path), http_client=make_http_client(handler)) as b:
            assert await b.match_vehicle_to_fuel_economy(2017, "Jeep", "Cherokee", cylinders=6) == 37850

        assert calls.count("/ws/rest/vehicle/menu/model") == 2
        assert calls.count("/ws/rest/vehicle/menu/options") == 6

    @pytest.mark.asyncio
    async def test_clear_cache_empties_durable_tier(self, tmp_path, make_http_client, epa_menu):
        calls: list[str] = []
        handler = _handler(calls, epa_menu)

        async with VehicleDataClient(_settings(tmp_path), http_client=make_http_client(handler)) as a:
            await a.get_recalls("Jeep", "Cherokee", 2017)
            await a.clear_cache()
        async with VehicleDataClient(_settings(tmp_path), http_client=make_http_client(handler)) as b:
            await b.get_recalls("Jeep", "Cherokee", 2017)

        assert calls.count("/recalls/recallsByVehicle") == 2
