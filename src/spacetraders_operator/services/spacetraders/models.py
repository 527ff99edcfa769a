"""Models for SpaceTraders API payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Registration:
    """Result of a successful agent registration."""

    token: str = field(repr=False)
    account_id: str | None = None
    symbol: str | None = None
    headquarters: str | None = None
    credits: int | None = None
    starting_faction: str | None = None
    ship_count: int | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Registration:
        """Parse the body of a 201 response to ``POST /register``.

        Raises:
            KeyError: If the token is missing
            TypeError: If the payload has the wrong shape
        """
        data = payload["data"]
        token = data["token"]
        if not isinstance(token, str) or not token:
            raise TypeError("token must be a non-empty string")

        agent = data.get("agent") or {}
        return cls(
            token=token,
            account_id=agent.get("accountId"),
            symbol=agent.get("symbol"),
            headquarters=agent.get("headquarters"),
            credits=agent.get("credits"),
            starting_faction=agent.get("startingFaction"),
            ship_count=agent.get("shipCount"),
        )


@dataclass
class ServiceStatus:
    """Server status reported by ``GET /``."""

    status: str
    version: str
    reset_date: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ServiceStatus:
        return cls(
            status=payload["status"],
            version=payload["version"],
            reset_date=payload["resetDate"],
        )
