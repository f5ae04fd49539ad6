"""
HTTP server exposing the collected metrics.
"""
import json
import threading
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler
from typing import Optional, Tuple
from urllib.parse import urlparse

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from .collector import GridCollector
from .config import ExporterConfig
from .health import HealthChecker, HealthStatus
from .logger import get_logger

HEALTH_PATH = "/health"


class ExporterServer:
    """
    Serves the metrics path, a health document on ``/health``, and
    redirects every other path to the metrics path.
    """

    def __init__(self, config: ExporterConfig, collector: GridCollector,
                 health_checker: Optional[HealthChecker] = None):
        self.config = config
        self.collector = collector
        self.health_checker = health_checker or HealthChecker(config)
        self.logger = get_logger("server")
        self.server = None
        self.server_thread = None

    @property
    def server_address(self) -> Tuple[str, int]:
        return self.server.server_address[:2]

    def bind(self):
        """Bind the listening socket. Raises OSError if the address is unavailable."""
        if self.server is None:
            self.server = ThreadingHTTPServer(self.config.bind_address(), self._create_handler())
            host, port = self.server_address
            self.logger.info("Listening", host=host, port=port,
                             telemetry_path=self.config.telemetry_path)
        return self.server

    def start(self):
        """Serve on a background daemon thread."""
        self.bind()
        if self.server_thread is None:
            self.server_thread = threading.Thread(target=self.server.serve_forever, daemon=True)
            self.server_thread.start()

    def serve_forever(self):
        """Serve on the calling thread until stopped."""
        self.bind().serve_forever()

    def stop(self):
        """Stop the server and close the listening socket."""
        if self.server is None:
            return
        # shutdown() waits for a running serve_forever loop, so only call it for the thread
        if self.server_thread:
            self.server.shutdown()
            self.server_thread.join()
            self.server_thread = None
        self.server.server_close()
        self.server = None

    def _create_handler(self):
        """Create HTTP request handler."""
        exporter = self
        telemetry_path = self.config.telemetry_path

        class ExporterHandler(BaseHTTPRequestHandler):
            def do_GET(self):
                path = urlparse(self.path).path

                if path == telemetry_path:
                    try:
                        output = generate_latest(exporter.collector.registry)
                    except Exception:
                        exporter.logger.exception("Failed to render metrics")
                        self.send_error(500, "failed to render metrics")
                        return
                    self._send(200, CONTENT_TYPE_LATEST, output)

                elif path == HEALTH_PATH:
                    health_result = exporter.health_checker.run_checks()
                    if health_result["status"] == HealthStatus.UNHEALTHY:
                        status_code = 503
                    else:
                        status_code = 200
                    self._send(status_code, 'application/json',
                               json.dumps(health_result, indent=2).encode())

                else:
                    self.send_response(301)
                    self.send_header('Location', telemetry_path)
                    self.send_header('Content-Length', '0')
                    self.end_headers()

            def _send(self, status_code: int, content_type: str, body: bytes):
                self.send_response(status_code)
                self.send_header('Content-Type', content_type)
                self.send_header('Content-Length', str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format, *args):
                exporter.logger.debug("HTTP request",
                                      client=self.client_address[0],
                                      request=format % args)

        return ExporterHandler
