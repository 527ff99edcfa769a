"""Health check endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Response

_ready = threading.Event()


def set_ready(ready: bool) -> None:
    """Mark the operator as ready (or not) to reconcile."""
    if ready:
        _ready.set()
    else:
        _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def _health_response(path: str) -> Response | None:
    if path == "/healthz":
        return Response('{"status":"ok"}', mimetype="application/json", status=200)
    if path == "/readyz":
        if is_ready():
            return Response('{"status":"ready"}', mimetype="application/json", status=200)
        return Response('{"status":"not ready"}', mimetype="application/json", status=503)
    return None


def create_combined_wsgi_app() -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        """WSGI app that routes /healthz and /readyz, delegates /metrics to prometheus."""
        response = _health_response(environ.get("PATH_INFO", ""))
        if response is not None:
            return response(environ, start_response)
        # Everything else, including /metrics, goes to prometheus
        return metrics_app(environ, start_response)

    return combined_app


def start_metrics_server(port: int) -> BaseWSGIServer:
    """Serve metrics and health endpoints from a background thread.

    Args:
        port: Port to listen on

    Returns:
        The running server, so callers can shut it down
    """
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server
