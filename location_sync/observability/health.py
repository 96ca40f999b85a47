"""
Liveness and metrics HTTP endpoint.

GET / answers 200 with a static plaintext body for platform health checks.
GET /metrics serves the Prometheus registry. No business data is exposed.
"""

import threading
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import make_wsgi_app

from location_sync.observability.logger import get_logger
from location_sync.observability.metrics import REGISTRY

logger = get_logger(__name__)

LIVENESS_BODY = b"Background worker is running.\n"


def create_app():
    """
    Build the WSGI application serving liveness and metrics.

    Returns:
        WSGI callable
    """
    metrics_app = make_wsgi_app(registry=REGISTRY)

    def app(environ, start_response):
        method = environ.get("REQUEST_METHOD", "GET")
        path = environ.get("PATH_INFO", "/")

        if method not in ("GET", "HEAD"):
            start_response(
                "405 Method Not Allowed",
                [("Content-Type", "text/plain"), ("Allow", "GET, HEAD")],
            )
            return [b"Method not allowed.\n"]

        if path == "/metrics":
            return metrics_app(environ, start_response)

        start_response(
            "200 OK",
            [("Content-Type", "text/plain"), ("Content-Length", str(len(LIVENESS_BODY)))],
        )
        if method == "HEAD":
            return []
        return [LIVENESS_BODY]

    return app


class _QuietHandler(WSGIRequestHandler):
    """Routes access logs to the debug level instead of stderr."""

    def log_message(self, format, *args):  # noqa: A002
        logger.debug("HTTP %s" % (format % args))


class HealthServer:
    """
    Serves the liveness app from a daemon thread.

    Usage:
        server = HealthServer(port=3000)
        server.start()
        ...
        server.stop()
    """

    def __init__(self, port: int, host: str = "0.0.0.0"):
        self.host = host
        self.port = port
        self._server: WSGIServer | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._server is not None:
            return
        self._server = make_server(self.host, self.port, create_app(), handler_class=_QuietHandler)
        # Port 0 binds an ephemeral port
        self.port = self._server.server_port
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="health-server",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"HTTP server running on port {self.port}", extra={"port": self.port})

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
