"""SpaceTraders API client."""

from .client import SpaceTradersClient
from .errors import (
    SpaceTradersApiError,
    SpaceTradersError,
    SpaceTradersResponseError,
    SpaceTradersTransportError,
)
from .models import Registration, ServiceStatus

__all__ = [
    "SpaceTradersClient",
    "SpaceTradersError",
    "SpaceTradersApiError",
    "SpaceTradersResponseError",
    "SpaceTradersTransportError",
    "Registration",
    "ServiceStatus",
]
