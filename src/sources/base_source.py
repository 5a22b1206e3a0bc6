# src/sources/base_source.py — v2
"""Shared HTTP plumbing for registry adapters.

Each adapter is stateless apart from the shared ``httpx.AsyncClient``: build
a request, perform it under a timeout with bounded retries, map the JSON.
Every failure leaves this module as an ExternalServiceError carrying the
adapter's service name.
"""

from __future__ import annotations

import logging
import time
from abc import ABC
from typing import Any

import httpx

from vehicledata.core.errors import ExternalServiceError
from vehicledata.sources.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class RegistryResponseError(Exception):
    """A registry answered, but not with usable data."""


class BaseSource(ABC):
    """Base class for registry adapters."""

    service_name: str = "unknown"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        timeout: float = 15.0,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._retry_configs = retry_configs

    def fail(self, cause: BaseException | str) -> ExternalServiceError:
        """Build the typed failure for this registry."""
        if isinstance(cause, str):
            cause = RegistryResponseError(cause)
        return ExternalServiceError(self.service_name, cause, fallback_available=False)

    async def get_json(
        self, path: str, params: dict[str, Any] | None = None, allow_empty: bool = False
    ) -> Any:
        """GET ``base_url + path`` and decode the JSON body.

        Args:
            path: Path appended to the base URL.
            params: Query parameters.
            allow_empty: Return None for an empty body instead of failing.

        Raises:
            ExternalServiceError: On transport errors, non-2xx status or an
                undecodable body.
        """
        url = f"{self._base_url}{path}"
        started = time.monotonic()
        try:
            response = await with_retry(
                self._request, url, params,
                service=self.service_name, retry_configs=self._retry_configs,
            )
        except httpx.HTTPStatusError as e:
            logger.warning(
                "%s returned HTTP %d for %s",
                self.service_name, e.response.status_code, url,
            )
            raise self.fail(
                RegistryResponseError(
                    f"HTTP {e.response.status_code}: {e.response.reason_phrase}"
                )
            ) from e
        except httpx.HTTPError as e:
            logger.warning("%s request failed for %s: %s", self.service_name, url, e)
            raise self.fail(e) from e

        logger.debug(
            "%s GET %s -> %d", self.service_name, url, response.status_code,
            extra={"http": {
                "method": "GET",
                "url": str(response.url),
                "status": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            }},
        )

        text = response.text.strip()
        if not text or text == "null":
            if allow_empty:
                return None
            raise self.fail("Empty response body")
        try:
            return response.json()
        except ValueError as e:
            raise self.fail(RegistryResponseError(f"Malformed JSON: {e}")) from e

    async def _request(self, url: str, params: dict[str, Any] | None) -> httpx.Response:
        response = await self._client.get(
            url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response


_ERROR_CODE_KEYS = ("ErrorCode", "errorCode", "error_code")
_ERROR_TEXT_KEYS = ("ErrorText", "errorMessage", "Message", "message")


def embedded_error(body: Any) -> str | None:
    """Error message hidden in a nominally successful response body, if any."""
    if not isinstance(body, dict):
        return None
    for code_key in _ERROR_CODE_KEYS:
        code = body.get(code_key)
        if code in (None, "", "0", 0):
            continue
        for text_key in _ERROR_TEXT_KEYS:
            if body.get(text_key):
                return f"{code}: {body[text_key]}"
        return f"Error code {code}"
    return None
