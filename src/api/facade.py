# src/api/facade.py — v3
"""Public API facade: one client for every vehicle-data capability.

Usage:
    from vehicledata.api.facade import VehicleDataClient

    async with VehicleDataClient() as client:
        specs = await client.decode_vin("1C4PJMBS9HW664582")
        recalls = await client.get_recalls("Jeep", "Cherokee", 2017)

Construct one client at process start and share it: its layered cache is
the process-wide memory tier.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from vehicledata.cache.cache_factory import create_layered_cache
from vehicledata.cache.layered_cache import LayeredCache
from vehicledata.config.settings import Settings
from vehicledata.core.errors import VinValidationError
from vehicledata.core.models import (
    ComplaintRecord,
    FuelEconomyCandidate,
    FuelEconomyRecord,
    RecallRecord,
    SafetyRatingRecord,
    VehicleSpecification,
)
from vehicledata.logging.context import bound_context, get_context
from vehicledata.matching.disambiguation import select_candidate
from vehicledata.sources.fuel_economy import FuelEconomySource
from vehicledata.sources.ncap import SafetyRatingSource
from vehicledata.sources.nhtsa_safety import ComplaintSource, RecallSource
from vehicledata.sources.vpic import VpicSource
from vehicledata.version import __version__
from vehicledata.vin.validator import get_vin_validation_error, normalize_vin

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VehicleDataClient:
    """Cached access to the VIN, recall, complaint, NCAP and EPA registries.

    Every method either returns a fully populated record (or collection, or
    None where "nothing published" is a legitimate answer) or raises:
    VinValidationError for malformed input, ExternalServiceError for
    registry failures. Cache-tier problems are never raised.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: LayeredCache | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._cache = cache if cache is not None else create_layered_cache(self._settings)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=self._settings.http_timeout_seconds,
            headers={"User-Agent": self._settings.http_user_agent or f"vehicledata/{__version__}"},
            follow_redirects=True,
        )

        s = self._settings
        source_kwargs: dict[str, Any] = {
            "timeout": s.http_timeout_seconds,
            "retry_configs": None if s.http_retry_enabled else {},
        }
        self._vpic = VpicSource(self._http, s.nhtsa_vpic_base_url, **source_kwargs)
        self._recalls = RecallSource(self._http, s.nhtsa_api_base_url, **source_kwargs)
        self._complaints = ComplaintSource(self._http, s.nhtsa_api_base_url, **source_kwargs)
        self._ncap = SafetyRatingSource(self._http, s.nhtsa_api_base_url, **source_kwargs)
        self._fuel = FuelEconomySource(self._http, s.fuel_economy_base_url, **source_kwargs)

    @property
    def cache(self) -> LayeredCache:
        return self._cache

    # --- Capabilities ---

    async def decode_vin(self, vin: str) -> VehicleSpecification:
        """Decode a VIN. Validated locally before any network call.

        Raises:
            VinValidationError: If the VIN fails format or check-digit checks.
            ExternalServiceError: If the registry call fails.
        """
        error = get_vin_validation_error(vin)
        if error is not None:
            raise VinValidationError(vin, error)
        vin = normalize_vin(vin)

        return await self._cached(
            self._vpic.service_name,
            f"vin:{vin}",
            lambda: self._vpic.decode(vin),
            self._settings.vin_decode_ttl_seconds,
            VehicleSpecification,
        )

    async def get_recalls(self, make: str, model: str, year: int) -> list[RecallRecord]:
        return await self._cached(
            self._recalls.service_name,
            f"recalls:{make}:{model}:{year}",
            lambda: self._recalls.get_recalls(make, model, year),
            self._settings.recalls_ttl_seconds,
            list[RecallRecord],
        )

    async def get_complaints(self, make: str, model: str, year: int) -> list[ComplaintRecord]:
        return await self._cached(
            self._complaints.service_name,
            f"complaints:{make}:{model}:{year}",
            lambda: self._complaints.get_complaints(make, model, year),
            self._settings.complaints_ttl_seconds,
            list[ComplaintRecord],
        )

    async def get_safety_ratings(
        self, year: int, make: str, model: str
    ) -> SafetyRatingRecord | None:
        """NCAP ratings, or None when the registry has none for this vehicle."""
        return await self._cached(
            self._ncap.service_name,
            f"ncap:{year}:{make}:{model}",
            lambda: self._ncap.get_ratings(year, make, model),
            self._settings.safety_ratings_ttl_seconds,
            SafetyRatingRecord | None,
        )

    async def search_fuel_economy(
        self, year: int, make: str, model: str
    ) -> list[FuelEconomyCandidate]:
        return await self._cached(
            self._fuel.service_name,
            f"epa:search:{year}:{make}:{model}",
            lambda: self._fuel.search(year, make, model),
            self._settings.fuel_economy_ttl_seconds,
            list[FuelEconomyCandidate],
        )

    async def match_vehicle_to_fuel_economy(
        self,
        year: int,
        make: str,
        model: str,
        cylinders: int | None = None,
        displacement: float | None = None,
    ) -> int | None:
        """Resolve a vehicle to one fuel-economy id.

        The first candidate consistent with the given engine attributes wins;
        this is "a" matching variant, not necessarily the exact trim. None
        only when the search finds nothing.
        """
        candidates = await self.search_fuel_economy(year, make, model)
        chosen = select_candidate(candidates, cylinders=cylinders, displacement=displacement)
        if chosen is None:
            logger.info("No fuel economy candidates for %s %s %s", year, make, model)
            return None
        return chosen.fuel_economy_id

    async def get_fuel_economy(self, fuel_economy_id: int) -> FuelEconomyRecord:
        return await self._cached(
            self._fuel.service_name,
            f"epa:vehicle:{fuel_economy_id}",
            lambda: self._fuel.get_record(fuel_economy_id),
            self._settings.fuel_economy_ttl_seconds,
            FuelEconomyRecord,
        )

    # --- Lifecycle ---

    async def clear_cache(self) -> None:
        """Reset every cache tier to empty (test isolation)."""
        await self._cache.clear()

    async def aclose(self) -> None:
        await self._cache.aclose()
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> VehicleDataClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Internals ---

    async def _cached(
        self,
        service: str,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl_seconds: int | None,
        schema: Any,
    ) -> T:
        # A caller-bound request id is kept; otherwise each call gets its own
        request_id = get_context().request_id or uuid.uuid4().hex[:12]
        with bound_context(request_id, service, key):
            return await self._cache.get(key, fetch, ttl_seconds, schema=schema)
