"""Configuration for the SpaceTraders Operator.

Values are read from environment variables once at operator startup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

DEFAULT_API_URL = "https://api.spacetraders.io/v2"


def _positive_float(name: str, default: str) -> float:
    value = float(os.getenv(name, default))
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


@dataclass
class OperatorConfig:
    """Operator-wide configuration."""

    account_email: str = field(repr=False)
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 30.0
    requeue_delay: float = 1.0
    metrics_port: int = 8080
    spacetraders_rate_limit: float = 2.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Load from environment variables.

        Raises:
            ValueError: If ACCOUNT_EMAIL is unset or a value is invalid
        """
        account_email = os.getenv("ACCOUNT_EMAIL", "").strip()
        if not account_email:
            raise ValueError(
                "ACCOUNT_EMAIL environment variable must be set. "
                "It is sent with every agent registration."
            )

        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LOG_LEVEL {log_level!r} is not a logging level")

        return cls(
            account_email=account_email,
            api_url=os.getenv("API_URL", DEFAULT_API_URL).rstrip("/"),
            request_timeout=_positive_float("REQUEST_TIMEOUT_SECONDS", "30"),
            requeue_delay=float(os.getenv("REQUEUE_DELAY_SECONDS", "1")),
            metrics_port=int(os.getenv("METRICS_PORT", "8080")),
            spacetraders_rate_limit=_positive_float("SPACETRADERS_RATE_LIMIT_PER_SECOND", "2.0"),
            log_level=log_level,
        )
