# src/core/errors.py — v1
"""Error taxonomy: validation failures and external-service failures."""

from __future__ import annotations


class VinValidationError(ValueError):
    """Malformed vehicle identifier, detected before any network call."""

    def __init__(self, vin: str, message: str):
        self.vin = vin
        self.message = message
        super().__init__(message)


class ExternalServiceError(Exception):
    """A registry call failed.

    Attributes:
        service: Registry name, e.g. "NHTSA vPIC".
        cause: Underlying exception.
        fallback_available: Whether a degraded response could be synthesized.
            Always False for now; callers must not rely on it being set.
    """

    def __init__(
        self, service: str, cause: BaseException, fallback_available: bool = False
    ):
        self.service = service
        self.cause = cause
        self.fallback_available = fallback_available
        super().__init__(f"{service} API failed: {cause}")
