# src/sources/nhtsa_safety.py — v1
"""NHTSA recall and complaint registries, both keyed by (make, model, year).

Both answer ``{"Count": n, "Message": ..., "results": [...]}``. An empty
``results`` list is a legitimate outcome; a body without ``results`` is not.
"""

from __future__ import annotations

import logging
from typing import Any

from vehicledata.core.models import ComplaintRecord, RecallRecord
from vehicledata.sources.base_source import BaseSource, embedded_error

logger = logging.getLogger(__name__)


class _NhtsaListSource(BaseSource):
    endpoint: str = ""

    async def _fetch_results(self, make: str, model: str, year: int) -> list[dict[str, Any]]:
        data = await self.get_json(
            self.endpoint, params={"make": make, "model": model, "modelYear": year}
        )
        error = embedded_error(data)
        if error:
            raise self.fail(error)
        results = data.get("results") if isinstance(data, dict) else None
        if results is None:
            raise self.fail(f"No results returned from {self.service_name} API")
        logger.debug("%s: %d results for %s %s %s", self.service_name, len(results), year, make, model)
        return results


class RecallSource(_NhtsaListSource):
    service_name = "NHTSA Recalls"
    endpoint = "/recalls/recallsByVehicle"

    async def get_recalls(self, make: str, model: str, year: int) -> list[RecallRecord]:
        return [map_recall(r) for r in await self._fetch_results(make, model, year)]


class ComplaintSource(_NhtsaListSource):
    service_name = "NHTSA Complaints"
    endpoint = "/complaints/complaintsByVehicle"

    async def get_complaints(self, make: str, model: str, year: int) -> list[ComplaintRecord]:
        return [map_complaint(c) for c in await self._fetch_results(make, model, year)]


def map_recall(raw: dict[str, Any]) -> RecallRecord:
    return RecallRecord(
        manufacturer=raw.get("Manufacturer") or "",
        campaign_number=raw.get("NHTSACampaignNumber") or "",
        report_received_date=raw.get("ReportReceivedDate") or "",
        component=raw.get("Component") or "",
        summary=raw.get("Summary") or "",
        consequence=raw.get("Consequence") or "",
        remedy=raw.get("Remedy") or "",
        notes=raw.get("Notes") or "",
        model_year=str(raw.get("ModelYear") or ""),
        make=raw.get("Make") or "",
        model=raw.get("Model") or "",
        park_it=raw.get("parkIt"),
        park_outside=raw.get("parkOutSide"),
        over_the_air_update=raw.get("overTheAirUpdate"),
    )


def map_complaint(raw: dict[str, Any]) -> ComplaintRecord:
    return ComplaintRecord(
        odi_number=raw.get("odiNumber") or 0,
        manufacturer=raw.get("manufacturer") or "",
        crash=bool(raw.get("crash")),
        fire=bool(raw.get("fire")),
        number_of_injuries=raw.get("numberOfInjuries") or 0,
        number_of_deaths=raw.get("numberOfDeaths") or 0,
        date_of_incident=raw.get("dateOfIncident") or "",
        date_complaint_filed=raw.get("dateComplaintFiled") or "",
        vin=raw.get("vin") or "",
        components=raw.get("components") or "",
        summary=raw.get("summary") or "",
    )
