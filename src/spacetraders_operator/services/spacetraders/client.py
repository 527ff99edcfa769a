"""SpaceTraders API client implementation."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from ... import metrics
from ...utils.rate_limit import rate_limit_spacetraders
from .errors import (
    SpaceTradersResponseError,
    SpaceTradersTransportError,
    api_error_from_response,
)
from .models import Registration, ServiceStatus

logger = logging.getLogger(__name__)


class SpaceTradersClient:
    """Client for the parts of the SpaceTraders v2 API the operator uses."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize SpaceTraders client.

        Args:
            base_url: API base URL, e.g. https://api.spacetraders.io/v2
            timeout: Timeout in seconds applied to every request
            session: Optional requests session (a new one is created otherwise)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    @rate_limit_spacetraders
    def _request(self, method: str, path: str, operation: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            metrics.api_call_total.labels(api_type="spacetraders", operation=operation, result="error").inc()
            logger.error(f"SpaceTraders {operation} request failed: {type(e).__name__}")
            raise SpaceTradersTransportError(f"{method} {path} failed: {e}") from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="spacetraders", operation=operation).observe(duration)

        result = "success" if response.ok else "failed"
        metrics.api_call_total.labels(api_type="spacetraders", operation=operation, result=result).inc()
        if response.status_code == 429:
            metrics.rate_limit_hits_total.labels(api_type="spacetraders").inc()
        return response

    def register(self, symbol: str, faction: str, email: str | None = None) -> Registration:
        """Register a new agent.

        Registration is not idempotent: every successful call creates a new
        account and issues a new token.

        Args:
            symbol: Agent call sign (3-14 characters)
            faction: Starting faction symbol
            email: Optional account email

        Returns:
            Registration carrying the access token

        Raises:
            SpaceTradersApiError: The API rejected the registration
            SpaceTradersResponseError: The response body could not be decoded
            SpaceTradersTransportError: The request did not complete
        """
        body: dict[str, Any] = {"symbol": symbol, "faction": faction}
        if email:
            body["email"] = email

        response = self._request("POST", "/register", operation="register", json=body)
        if response.status_code != 201:
            raise api_error_from_response(response.status_code, response.content)

        try:
            return Registration.from_payload(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SpaceTradersResponseError(response.status_code, f"invalid registration body: {e!r}") from e

    def get_status(self) -> ServiceStatus:
        """Fetch the server status.

        Raises:
            SpaceTradersApiError: The API answered with an error
            SpaceTradersResponseError: The response body could not be decoded
            SpaceTradersTransportError: The request did not complete
        """
        response = self._request("GET", "/", operation="get_status")
        if response.status_code != 200:
            raise api_error_from_response(response.status_code, response.content)

        try:
            return ServiceStatus.from_payload(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SpaceTradersResponseError(response.status_code, f"invalid status body: {e!r}") from e
