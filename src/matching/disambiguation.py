# src/matching/disambiguation.py — v1
"""Pick one fuel-economy candidate using optional engine attributes.

Search hits only carry a description such as "Auto 9-spd, 6 cyl, 3.2 L", so
engine attributes are read from that text. Filters narrow the set but never
empty it: a filter that would drop every candidate is skipped and the
previous set is kept. The first survivor in registry order wins, so several
trims sharing the same engine text resolve to the earliest one.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from vehicledata.core.models import FuelEconomyCandidate

logger = logging.getLogger(__name__)

# "6 cyl", "6-cyl", "6 Cylinder"
_CYLINDER_COUNT = re.compile(r"\b(\d{1,2})\s*-?\s*cyl", re.IGNORECASE)
# "V6", "I4", "H4", "W12"
_CYLINDER_LAYOUT = re.compile(r"\b[VIHW](\d{1,2})\b", re.IGNORECASE)
# "3.2 L", "3.2L", "2L"
_DISPLACEMENT = re.compile(r"(\d+(?:\.\d+)?)\s*L\b", re.IGNORECASE)

DISPLACEMENT_TOLERANCE_L = 0.05


def parse_cylinders(description: str) -> int | None:
    match = _CYLINDER_COUNT.search(description) or _CYLINDER_LAYOUT.search(description)
    return int(match.group(1)) if match else None


def parse_displacement(description: str) -> float | None:
    match = _DISPLACEMENT.search(description)
    return float(match.group(1)) if match else None


def matches_cylinders(candidate: FuelEconomyCandidate, cylinders: int) -> bool:
    return parse_cylinders(candidate.description) == cylinders


def matches_displacement(candidate: FuelEconomyCandidate, displacement: float) -> bool:
    found = parse_displacement(candidate.description)
    return found is not None and abs(found - displacement) < DISPLACEMENT_TOLERANCE_L


def select_candidate(
    candidates: Sequence[FuelEconomyCandidate],
    cylinders: int | None = None,
    displacement: float | None = None,
) -> FuelEconomyCandidate | None:
    """Best-effort match; None only when there are no candidates at all."""
    if not candidates:
        return None

    survivors = list(candidates)

    if cylinders is not None:
        narrowed = [c for c in survivors if matches_cylinders(c, cylinders)]
        if narrowed:
            survivors = narrowed
        else:
            logger.debug("No candidate with %d cylinders, keeping %d", cylinders, len(survivors))

    if displacement is not None:
        narrowed = [c for c in survivors if matches_displacement(c, displacement)]
        if narrowed:
            survivors = narrowed
        else:
            logger.debug("No candidate at %.1fL, keeping %d", displacement, len(survivors))

    chosen = survivors[0]
    if len(survivors) > 1:
        logger.debug(
            "%d candidates remain, taking first: %s (%s)",
            len(survivors), chosen.fuel_economy_id, chosen.description,
        )
    return chosen
