# src/core/models.py — v2
"""Normalized vehicle records shared across modules.

Registry payloads never leak past the adapters in ``sources``; every adapter
maps its raw JSON into one of these shapes. Records are frozen once produced.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# === IDENTITY / SPECIFICATION ===


class EngineSpec(_Record):
    """Engine attributes. Cylinders and displacement default to 0 when unknown."""

    cylinders: int = 0
    displacement_l: float = 0.0
    fuel_type: str = "Unknown"
    horsepower: int | None = None
    manufacturer: str | None = None


class BodySpec(_Record):
    type: str = "Unknown"
    doors: int = 0


class SafetyEquipment(_Record):
    """Presence flags; None when the registry says nothing."""

    abs: bool | None = None
    esc: bool | None = None


class TransmissionSpec(_Record):
    type: str
    speeds: int | None = None


class WeightSpec(_Record):
    """Weights in pounds."""

    gvwr: int | None = None
    curb: int | None = None


class VehicleSpecification(_Record):
    """Result of one VIN decode. Re-decoding replaces, never merges."""

    vin: str
    make: str | None = None
    model: str | None = None
    model_year: int | None = None
    trim: str | None = None
    engine: EngineSpec = Field(default_factory=EngineSpec)
    body: BodySpec = Field(default_factory=BodySpec)
    safety: SafetyEquipment = Field(default_factory=SafetyEquipment)
    transmission: TransmissionSpec | None = None
    weights: WeightSpec = Field(default_factory=WeightSpec)
    decoded_at: datetime
    source: Literal["NHTSA_vPIC"] = "NHTSA_vPIC"


# === RECALLS / COMPLAINTS ===


class RecallRecord(_Record):
    """Read-only mirror of one recall campaign."""

    manufacturer: str = ""
    campaign_number: str
    report_received_date: str = ""
    component: str = ""
    summary: str = ""
    consequence: str = ""
    remedy: str = ""
    notes: str = ""
    model_year: str = ""
    make: str = ""
    model: str = ""
    park_it: bool | None = None
    park_outside: bool | None = None
    over_the_air_update: bool | None = None


class ComplaintRecord(_Record):
    """Read-only mirror of one consumer complaint, keyed by its ODI number."""

    odi_number: int
    manufacturer: str = ""
    crash: bool = False
    fire: bool = False
    number_of_injuries: int = 0
    number_of_deaths: int = 0
    date_of_incident: str = ""
    date_complaint_filed: str = ""
    vin: str = ""
    components: str = ""
    summary: str = ""


# === SAFETY RATINGS ===


class SafetyFeatures(_Record):
    """Availability text as published: Standard, Optional, No, ..."""

    electronic_stability_control: str | None = None
    forward_collision_warning: str | None = None
    lane_departure_warning: str | None = None


class SafetyRatingRecord(_Record):
    """Star ratings 0-5 (0 = not rated) and rollover risk in percent."""

    overall: int = 0
    front_driver: int = 0
    front_passenger: int = 0
    side: int = 0
    rollover: int = 0
    rollover_possibility: float = 0.0
    features: SafetyFeatures = Field(default_factory=SafetyFeatures)
    vehicle_id: int
    vehicle_description: str | None = None
    last_updated: datetime


# === FUEL ECONOMY ===


class FuelEconomyCandidate(_Record):
    """Unresolved fuzzy-search hit: a registry id plus its engine/transmission text."""

    fuel_economy_id: int
    description: str


class FuelEconomyRecord(_Record):
    fuel_economy_id: int
    city_mpg: float
    highway_mpg: float
    combined_mpg: float
    annual_fuel_cost: float = 0.0
    co2_grams_per_mile: float = 0.0
    last_updated: datetime


# === AGGREGATES ===


class SafetySummary(BaseModel):
    """Counts derived from recalls, complaints and ratings for one vehicle."""

    total_recalls: int = 0
    total_complaints: int = 0
    has_active_recalls: bool = False
    has_safety_ratings: bool = False
    overall_rating: int | None = None
    complaints_with_injuries: int = 0
    complaints_with_deaths: int = 0
    complaints_with_fire: int = 0
    complaints_with_crash: int = 0


def summarize_safety(
    recalls: list[RecallRecord],
    complaints: list[ComplaintRecord],
    rating: SafetyRatingRecord | None = None,
) -> SafetySummary:
    """Build the safety counters callers show next to the raw records."""
    return SafetySummary(
        total_recalls=len(recalls),
        total_complaints=len(complaints),
        has_active_recalls=bool(recalls),
        has_safety_ratings=rating is not None,
        overall_rating=(rating.overall or None) if rating is not None else None,
        complaints_with_injuries=sum(1 for c in complaints if c.number_of_injuries > 0),
        complaints_with_deaths=sum(1 for c in complaints if c.number_of_deaths > 0),
        complaints_with_fire=sum(1 for c in complaints if c.fire),
        complaints_with_crash=sum(1 for c in complaints if c.crash),
    )
