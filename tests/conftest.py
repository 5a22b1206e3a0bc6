# tests/conftest.py — v3
"""Shared test fixtures for all unit and integration tests.

Provides settings without a durable tier, canned registry payloads and an
httpx client backed by MockTransport. No network access: every request is
answered by a handler function.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from vehicledata.config.settings import Settings
from vehicledata.logging.context import clear_context

VALID_VIN = "1C4PJMBS9HW664582"

Handler = Callable[[httpx.Request], httpx.Response]


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Memory-only cache, no retries, test-local base URLs."""
    return Settings(
        _env_file=None,
        cache_backend="none",
        http_retry_enabled=False,
        nhtsa_vpic_base_url="https://vpic.test/api/vehicles",
        nhtsa_api_base_url="https://nhtsa.test",
        fuel_economy_base_url="https://epa.test/ws/rest",
    )


@pytest.fixture(autouse=True)
def _reset_log_context():
    yield
    clear_context()


# === FIXTURES: Sample registry payloads ===


@pytest.fixture
def vpic_row() -> dict[str, Any]:
    """One DecodeVinValues row for a 2017 Jeep Cherokee."""
    return {
        "ErrorCode": "0",
        "ErrorText": "0 - VIN decoded clean. Check Digit (9th position) is correct",
        "Make": "JEEP",
        "Model": "Cherokee",
        "ModelYear": "2017",
        "Trim": "Limited",
        "EngineCylinders": "6",
        "DisplacementL": "3.2",
        "FuelTypePrimary": "Gasoline",
        "EngineHP": "271",
        "EngineManufacturer": "FCA",
        "BodyClass": "Sport Utility Vehicle (SUV)/Multi-Purpose Vehicle (MPV)",
        "Doors": "4",
        "ABS": "Yes",
        "ESC": "",
        "TransmissionStyle": "Automatic",
        "TransmissionSpeeds": "9",
        "GVWR": "Class 1D: 5,001 - 6,000 lb (2,268 - 2,722 kg)",
        "CurbWeightLB": "",
    }


@pytest.fixture
def cherokee_models() -> dict[str, Any]:
    """EPA model menu for 2017 Jeep: Cherokee is split by drivetrain and trim."""
    return {
        "menuItem": [
            {"text": "Cherokee FWD", "value": "Cherokee FWD"},
            {"text": "Cherokee 4WD", "value": "Cherokee 4WD"},
            {"text": "Cherokee Trailhawk 4WD", "value": "Cherokee Trailhawk 4WD"},
            {"text": "Compass 4WD", "value": "Compass 4WD"},
            {"text": "Grand Cherokee 4WD", "value": "Grand Cherokee 4WD"},
        ]
    }


@pytest.fixture
def cherokee_options() -> dict[str, dict[str, Any]]:
    """EPA options per model: four V6 3.2L and two I4 2.4L Cherokees in total."""
    return {
        "Cherokee FWD": {"menuItem": [
            {"text": "Auto 9-spd, 4 cyl, 2.4 L", "value": "37846"},
            {"text": "Auto 9-spd, 6 cyl, 3.2 L", "value": "37850"},
        ]},
        "Cherokee 4WD": {"menuItem": [
            {"text": "Auto 9-spd, 4 cyl, 2.4 L, FFV", "value": "37847"},
            {"text": "Auto 9-spd, 6 cyl, 3.2 L, 4WD", "value": "37851"},
            {"text": "Auto 9-spd, 6 cyl, 3.2 L, SS", "value": "37852"},
        ]},
        "Cherokee Trailhawk 4WD": {"menuItem": {"text": "Auto 9-spd, 6 cyl, 3.2 L, 4WD SS", "value": "37853"}},
        "Compass 4WD": {"menuItem": [{"text": "Auto 6-spd, 4 cyl, 2.4 L", "value": "37900"}]},
        "Grand Cherokee 4WD": {"menuItem": [{"text": "Auto 8-spd, 8 cyl, 5.7 L", "value": "37960"}]},
    }


@pytest.fixture
def epa_menu(cherokee_models, cherokee_options) -> Handler:
    """Answers EPA menu requests like the registry: options only for exact model names."""
    def _handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if request.url.path.endswith("/vehicle/menu/model"):
            if (params.get("year"), params.get("make")) == ("2017", "Jeep"):
                return httpx.Response(200, json=cherokee_models)
            return httpx.Response(200, text="")
        if request.url.path.endswith("/vehicle/menu/options"):
            options = cherokee_options.get(params.get("model", ""))
            if options is None or params.get("year") != "2017":
                return httpx.Response(200, text="")
            return httpx.Response(200, json=options)
        return httpx.Response(404)

    return _handler


@pytest.fixture
def epa_vehicle() -> dict[str, Any]:
    return {
        "id": 37850,
        "city08": 21,
        "highway08": 29,
        "comb08": 24,
        "fuelCost08": 1650,
        "co2TailpipeGpm": 370.5,
        "co2": -1,
    }


# === FIXTURES: HTTP ===


@pytest.fixture
def make_http_client():
    """Factory building an AsyncClient whose requests go to ``handler``."""
    def _factory(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _factory
