# src/sources/fuel_economy.py — v2
"""EPA fuel-economy registry (fueleconomy.gov web services).

EPA lists models under drivetrain and trim names ("Cherokee FWD",
"Cherokee Trailhawk 4WD"), so a search first reads the model menu for
(year, make), keeps every EPA model that names the requested one, then
reads the options menu of each. Menus return ``{"text", "value"}`` items;
a single item comes back as an object instead of a list, and an empty menu
as an empty body.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from vehicledata.core.models import FuelEconomyCandidate, FuelEconomyRecord
from vehicledata.sources.base_source import BaseSource, embedded_error
from vehicledata.sources.parsing import parse_float, parse_int

logger = logging.getLogger(__name__)


class FuelEconomySource(BaseSource):
    service_name = "EPA Fuel Economy"

    async def search(self, year: int, make: str, model: str) -> list[FuelEconomyCandidate]:
        """Candidates of every matching EPA model, in registry order.

        Empty when the make has no model naming ``model`` for that year.
        """
        available = [
            str(item.get("value") or item.get("text") or "")
            for item in await self._menu("/vehicle/menu/model", {"year": year, "make": make})
        ]
        models = resolve_models(available, model)
        if not models:
            logger.info("No EPA model matching %r among %d for %s %s", model, len(available), year, make)
            return []

        candidates: list[FuelEconomyCandidate] = []
        seen: set[int] = set()
        for epa_model in models:
            items = await self._menu(
                "/vehicle/menu/options", {"year": year, "make": make, "model": epa_model}
            )
            for item in items:
                fuel_economy_id = parse_int(item.get("value"))
                if fuel_economy_id is None:
                    logger.debug("Skipping menu item without id: %r", item)
                    continue
                if fuel_economy_id in seen:
                    continue
                seen.add(fuel_economy_id)
                candidates.append(
                    FuelEconomyCandidate(
                        fuel_economy_id=fuel_economy_id,
                        description=str(item.get("text") or ""),
                    )
                )
        logger.debug("%d candidates from EPA models %s", len(candidates), models)
        return candidates

    async def _menu(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        data = await self.get_json(path, params=params, allow_empty=True)
        if data is None:
            return []
        error = embedded_error(data)
        if error:
            raise self.fail(error)
        if not isinstance(data, dict):
            raise self.fail("Unexpected response shape")

        items = data.get("menuItem") or []
        if isinstance(items, dict):
            items = [items]
        return [item for item in items if isinstance(item, dict)]

    async def get_record(self, fuel_economy_id: int) -> FuelEconomyRecord:
        data = await self.get_json(f"/vehicle/{fuel_economy_id}")
        error = embedded_error(data)
        if error:
            raise self.fail(error)
        if not isinstance(data, dict) or parse_float(data.get("comb08")) is None:
            raise self.fail(f"No fuel economy data for id {fuel_economy_id}")
        return map_record(fuel_economy_id, data)


def _model_key(name: str) -> str:
    # "F-150" and "F150" name the same model
    return " ".join(name.replace("-", "").lower().split())


def resolve_models(available: list[str], model: str) -> list[str]:
    """EPA model names that stand for ``model``, best first.

    An exact (case-insensitive) name comes first, then names starting with
    the model as whole words ("Cherokee" -> "Cherokee FWD", never "Grand
    Cherokee"). Only when neither exists are names containing the model as
    whole words accepted ("1500" -> "Ram 1500 2WD"). Registry order is kept
    within each group.
    """
    target = _model_key(model)
    if not target:
        return []
    word = re.compile(rf"(?:^|\s){re.escape(target)}(?:\s|$)")

    exact = [name for name in available if _model_key(name) == target]
    prefixed = [
        name for name in available
        if name not in exact and _model_key(name).startswith(target + " ")
    ]
    if exact or prefixed:
        return exact + prefixed
    return [name for name in available if word.search(_model_key(name))]


def map_record(fuel_economy_id: int, raw: dict[str, Any]) -> FuelEconomyRecord:
    # co2 is -1 when EPA has no measured figure; the tailpipe estimate is always set
    co2 = parse_float(raw.get("co2TailpipeGpm"))
    if co2 is None or co2 < 0:
        co2 = max(parse_float(raw.get("co2")) or 0.0, 0.0)
    return FuelEconomyRecord(
        fuel_economy_id=fuel_economy_id,
        city_mpg=parse_float(raw.get("city08")) or 0.0,
        highway_mpg=parse_float(raw.get("highway08")) or 0.0,
        combined_mpg=parse_float(raw.get("comb08")) or 0.0,
        annual_fuel_cost=parse_float(raw.get("fuelCost08")) or 0.0,
        co2_grams_per_mile=co2,
        last_updated=datetime.now(timezone.utc),
    )
