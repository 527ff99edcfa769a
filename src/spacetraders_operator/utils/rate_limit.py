"""Rate limiting utilities for API calls."""

from __future__ import annotations

import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])

# SpaceTraders allows 2 requests per second per account
DEFAULT_SPACETRADERS_RATE_LIMIT_PER_SECOND = 2.0

_SPACETRADERS_RATE_LIMIT_PER_SECOND = DEFAULT_SPACETRADERS_RATE_LIMIT_PER_SECOND

_spacetraders_last_call_time: float = 0.0
_spacetraders_lock = threading.Lock()


def configure_spacetraders_rate_limit(per_second: float) -> None:
    """Set the shared SpaceTraders call rate.

    Raises:
        ValueError: If per_second is not positive
    """
    global _SPACETRADERS_RATE_LIMIT_PER_SECOND

    if per_second <= 0:
        raise ValueError(f"SpaceTraders rate limit must be positive, got {per_second}")
    _SPACETRADERS_RATE_LIMIT_PER_SECOND = per_second


def rate_limit_spacetraders(func: _F) -> _F:
    """Decorator to rate limit SpaceTraders API calls.

    Spaces calls at least 1/rate seconds apart across all worker threads, so
    concurrent reconciliations do not trip the API's 429 responses.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _spacetraders_last_call_time
        min_interval = 1.0 / _SPACETRADERS_RATE_LIMIT_PER_SECOND

        with _spacetraders_lock:
            time_since_last_call = time.time() - _spacetraders_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)
            _spacetraders_last_call_time = time.time()

        return func(*args, **kwargs)

    return wrapper  # type: ignore
