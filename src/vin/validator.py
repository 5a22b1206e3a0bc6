# src/vin/validator.py — v1
"""Vehicle Identification Number validation (ISO 3779).

Usage:
    from vehicledata.vin.validator import get_vin_validation_error, normalize_vin

    vin = normalize_vin(" 1c4pj-mbs9h-w664582 ")
    error = get_vin_validation_error(vin)  # None when valid
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

VIN_LENGTH = 17
CHECK_DIGIT_INDEX = 8

# Letter values cycle 1-9; I, O and Q are never assigned.
TRANSLITERATION: dict[str, int] = {
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6, "G": 7, "H": 8,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "P": 7, "R": 9,
    "S": 2, "T": 3, "U": 4, "V": 5, "W": 6, "X": 7, "Y": 8, "Z": 9,
    **{str(d): d for d in range(10)},
}

WEIGHTS: tuple[int, ...] = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)

_FORBIDDEN = re.compile(r"[IOQ]", re.IGNORECASE)
_STRIP = re.compile(r"[\s-]")

# Position-10 year codes, first cycle 1980-2009.
_YEAR_CODES = "ABCDEFGHJKLMNPRSTVWXY123456789"

MSG_REQUIRED = "VIN is required"
MSG_FORBIDDEN = "VIN cannot contain the letters I, O, or Q"
MSG_CHECK_DIGIT = "Invalid VIN check digit"


@dataclass(frozen=True)
class VinStructure:
    """Positional sections of a valid VIN."""

    wmi: str
    vds: str
    check_digit: str
    model_year_code: str
    plant_code: str
    serial: str


def normalize_vin(raw: str) -> str:
    """Remove whitespace and hyphens, uppercase. Never fails."""
    return _STRIP.sub("", raw or "").upper()


def calculate_check_digit(vin: str) -> str | None:
    """Expected check character for a 17-character VIN.

    Weighted sum of transliterated values modulo 11; remainder 10 is 'X'.
    Returns None when the input has the wrong length or a character
    outside the transliteration table.
    """
    vin = vin.upper()
    if len(vin) != VIN_LENGTH:
        return None

    total = 0
    for char, weight in zip(vin, WEIGHTS):
        value = TRANSLITERATION.get(char)
        if value is None:
            return None
        total += value * weight

    remainder = total % 11
    return "X" if remainder == 10 else str(remainder)


def get_vin_validation_error(raw: str) -> str | None:
    """First failing check as a literal message, or None if valid.

    Checks run in a fixed order: empty, length, forbidden letters, check digit.
    """
    vin = normalize_vin(raw)

    if not vin:
        return MSG_REQUIRED
    if len(vin) != VIN_LENGTH:
        return f"VIN must be exactly {VIN_LENGTH} characters (got {len(vin)})"
    if _FORBIDDEN.search(vin):
        return MSG_FORBIDDEN
    if calculate_check_digit(vin) != vin[CHECK_DIGIT_INDEX]:
        return MSG_CHECK_DIGIT
    return None


def is_valid_vin(raw: str) -> bool:
    return get_vin_validation_error(raw) is None


def parse_vin_structure(raw: str) -> VinStructure | None:
    """Slice a valid VIN into its sections; None if the VIN is invalid."""
    vin = normalize_vin(raw)
    if not is_valid_vin(vin):
        return None
    return VinStructure(
        wmi=vin[0:3],
        vds=vin[3:8],
        check_digit=vin[8],
        model_year_code=vin[9],
        plant_code=vin[10],
        serial=vin[11:17],
    )


def decode_model_year(code: str, current_year: int | None = None) -> int | None:
    """Model year for a position-10 code on the 30-year cycle.

    The code alone is ambiguous (A is 1980 or 2010); a base year more than
    20 years before ``current_year`` is moved to the next cycle.
    """
    index = _YEAR_CODES.find(code.upper()) if len(code) == 1 else -1
    if index == -1:
        return None

    year = 1980 + index
    now = current_year or date.today().year
    if now - year > 20:
        year += 30
    return year
