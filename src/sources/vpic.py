# src/sources/vpic.py — v1
"""NHTSA vPIC adapter: decode a VIN into a VehicleSpecification.

API Documentation:
    https://vpic.nhtsa.dot.gov/api/

The flat ``DecodeVinValues`` endpoint returns one result row with every
variable as a string. The registry answers HTTP 200 even for VINs it cannot
decode and reports the problem in ``ErrorCode``/``ErrorText``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from vehicledata.core.models import (
    BodySpec,
    EngineSpec,
    SafetyEquipment,
    TransmissionSpec,
    VehicleSpecification,
    WeightSpec,
)
from vehicledata.sources.base_source import BaseSource
from vehicledata.sources.parsing import clean_text, contains_yes, parse_float, parse_int

logger = logging.getLogger(__name__)


class VpicSource(BaseSource):
    """Identity/specification registry."""

    service_name = "NHTSA vPIC"

    async def decode(self, vin: str) -> VehicleSpecification:
        data = await self.get_json(
            f"/DecodeVinValues/{vin}", params={"format": "json"}
        )
        results = data.get("Results") if isinstance(data, dict) else None
        if not results:
            raise self.fail("No results returned from API")

        row = results[0]
        error_code = clean_text(row.get("ErrorCode"))
        if error_code and error_code != "0":
            logger.warning("vPIC error %s for %s", error_code, vin)
            raise self.fail(clean_text(row.get("ErrorText")) or "Unknown error")

        return map_vpic_result(vin, row)


def map_vpic_result(vin: str, row: dict[str, Any]) -> VehicleSpecification:
    """Map one vPIC result row.

    Cylinders, displacement and doors fall back to 0; horsepower, speeds and
    weights fall back to None.
    """
    transmission_style = clean_text(row.get("TransmissionStyle"))
    transmission = None
    if transmission_style:
        transmission = TransmissionSpec(
            type=transmission_style,
            speeds=parse_int(clean_text(row.get("TransmissionSpeeds"))),
        )

    return VehicleSpecification(
        vin=vin,
        make=clean_text(row.get("Make")),
        model=clean_text(row.get("Model")),
        model_year=parse_int(clean_text(row.get("ModelYear"))),
        trim=clean_text(row.get("Trim")),
        engine=EngineSpec(
            cylinders=parse_int(row.get("EngineCylinders")) or 0,
            displacement_l=parse_float(row.get("DisplacementL")) or 0.0,
            fuel_type=clean_text(row.get("FuelTypePrimary")) or "Unknown",
            horsepower=parse_int(clean_text(row.get("EngineHP"))),
            manufacturer=clean_text(row.get("EngineManufacturer")),
        ),
        body=BodySpec(
            type=clean_text(row.get("BodyClass")) or "Unknown",
            doors=parse_int(row.get("Doors")) or 0,
        ),
        safety=SafetyEquipment(
            abs=contains_yes(row.get("ABS")),
            esc=contains_yes(row.get("ESC")),
        ),
        transmission=transmission,
        weights=WeightSpec(
            gvwr=parse_int(clean_text(row.get("GVWR"))),
            curb=parse_int(clean_text(row.get("CurbWeightLB"))),
        ),
        decoded_at=datetime.now(timezone.utc),
    )
