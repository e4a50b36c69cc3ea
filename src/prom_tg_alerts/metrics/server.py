"""Background HTTP server exposing /metrics and /health."""

import logging
import threading
from collections.abc import Callable
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

logger = logging.getLogger(__name__)

_server_lock = threading.Lock()
_server_thread: threading.Thread | None = None

StartResponse = Callable[[str, list[tuple[str, str]]], Any]
HealthCheck = Callable[[], bool]


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        pass


def make_metrics_app(health_check: HealthCheck | None = None) -> Callable[..., list[bytes]]:
    """Build the WSGI app.

    ``health_check`` decides whether /health answers 200 or 503.
    """

    def app(environ: dict[str, Any], start_response: StartResponse) -> list[bytes]:
        path = environ.get("PATH_INFO", "/")

        if path == "/metrics":
            output = generate_latest(REGISTRY)
            status = "200 OK"
            headers = [("Content-Type", CONTENT_TYPE_LATEST)]
        elif path == "/health":
            healthy = health_check() if health_check is not None else True
            output = b"ok" if healthy else b"degraded"
            status = "200 OK" if healthy else "503 Service Unavailable"
            headers = [("Content-Type", "text/plain")]
        else:
            output = b"Not Found"
            status = "404 Not Found"
            headers = [("Content-Type", "text/plain")]

        start_response(status, headers)
        return [output]

    return app


def start_metrics_server(
    port: int = 9095,
    host: str = "0.0.0.0",
    health_check: HealthCheck | None = None,
) -> threading.Thread:
    """Serve metrics from a daemon thread.

    Calling this again while the server runs returns the existing thread.
    """
    global _server_thread
    with _server_lock:
        if _server_thread is not None and _server_thread.is_alive():
            logger.debug("Metrics server already running")
            return _server_thread

        server = make_server(host, port, make_metrics_app(health_check), handler_class=_QuietHandler)

        def serve_forever() -> None:
            try:
                logger.info(f"Metrics server listening on {host}:{port}")
                server.serve_forever()
            except Exception:
                logger.exception("Metrics server failed unexpectedly")

        thread = threading.Thread(target=serve_forever, daemon=True)
        thread.start()
        _server_thread = thread
        return thread
