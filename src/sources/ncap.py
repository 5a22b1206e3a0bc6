# src/sources/ncap.py — v1
"""NHTSA NCAP crash-rating registry.

Two steps: (year, make, model) resolves to registry vehicle ids, then the
first id's ratings are fetched. Star values arrive as strings ("4",
"Not Rated") and are passed through without clamping; rollover possibility
arrives as a fraction and is reported in percent.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from vehicledata.core.models import SafetyFeatures, SafetyRatingRecord
from vehicledata.sources.base_source import BaseSource, embedded_error
from vehicledata.sources.parsing import clean_text, parse_float, parse_int

logger = logging.getLogger(__name__)


class SafetyRatingSource(BaseSource):
    service_name = "NHTSA NCAP"

    async def get_ratings(self, year: int, make: str, model: str) -> SafetyRatingRecord | None:
        """Ratings for the first registry variant, or None if none are published."""
        vehicles = await self._results(
            f"/SafetyRatings/modelyear/{year}/make/{quote(make, safe='')}"
            f"/model/{quote(model, safe='')}"
        )
        vehicle_ids = [v["VehicleId"] for v in vehicles if v.get("VehicleId") is not None]
        if not vehicle_ids:
            logger.info("No NCAP vehicle for %s %s %s", year, make, model)
            return None

        details = await self._results(f"/SafetyRatings/VehicleId/{vehicle_ids[0]}")
        if not details:
            return None
        return map_ratings(details[0])

    async def _results(self, path: str) -> list[dict[str, Any]]:
        data = await self.get_json(path, params={"format": "json"}, allow_empty=True)
        if data is None:
            return []
        error = embedded_error(data)
        if error:
            raise self.fail(error)
        if not isinstance(data, dict):
            raise self.fail("Unexpected response shape")
        return data.get("Results") or []


def _stars(value: Any) -> int:
    return parse_int(value) or 0


def map_ratings(raw: dict[str, Any]) -> SafetyRatingRecord:
    possibility = parse_float(raw.get("RolloverPossibility")) or 0.0
    return SafetyRatingRecord(
        overall=_stars(raw.get("OverallRating")),
        front_driver=_stars(raw.get("FrontCrashDriversideRating")),
        front_passenger=_stars(raw.get("FrontCrashPassengersideRating")),
        side=_stars(raw.get("OverallSideCrashRating")),
        rollover=_stars(raw.get("RolloverRating")),
        rollover_possibility=possibility * 100,
        features=SafetyFeatures(
            electronic_stability_control=clean_text(raw.get("NHTSAElectronicStabilityControl")),
            forward_collision_warning=clean_text(raw.get("NHTSAForwardCollisionWarning")),
            lane_departure_warning=clean_text(raw.get("NHTSALaneDepartureWarning")),
        ),
        vehicle_id=parse_int(raw.get("VehicleId")) or 0,
        vehicle_description=clean_text(raw.get("VehicleDescription")),
        last_updated=datetime.now(timezone.utc),
    )
