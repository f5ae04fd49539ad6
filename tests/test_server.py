import pytest
import requests

from selenium_grid_exporter.collector import GridCollector
from selenium_grid_exporter.config import ExporterConfig
from selenium_grid_exporter.errors import FetchFailed
from selenium_grid_exporter.health import HealthChecker
from selenium_grid_exporter.server import ExporterServer

from conftest import FakeFetcher, grid_body


def healthy_checker(config, result=True):
    checker = HealthChecker(config)
    checker.checks = []
    checker.add_check("always", lambda: result)
    return checker


@pytest.fixture
def running_server():
    servers = []

    def start(fetcher, **overrides):
        overrides.setdefault("listen_address", "127.0.0.1:0")
        config = ExporterConfig(scrape_uri="http://hub.test:4444",
                                grid_schema="graphql-usage", **overrides)
        collector = GridCollector(config, fetcher=fetcher)
        server = ExporterServer(config, collector, health_checker=healthy_checker(config))
        server.start()
        servers.append(server)
        host, port = server.server_address
        return server, f"http://{host}:{port}"

    yield start

    for server in servers:
        server.stop()


def test_metrics_endpoint(running_server):
    fetcher = FakeFetcher(grid_body(totalSlots=10, usedSlots=3, sessionCount=3))
    _, base_url = running_server(fetcher)

    response = requests.get(base_url + "/metrics", timeout=5)

    assert response.status_code == 200
    assert response.headers["Content-Type"].startswith("text/plain")
    assert "selenium_grid_up 1.0" in response.text
    assert "selenium_grid_hub_totalSlots 10.0" in response.text
    assert "selenium_grid_hub_usedSlots 3.0" in response.text
    assert "selenium_grid_hub_sessionCount 3.0" in response.text


def test_metrics_endpoint_when_hub_is_down(running_server):
    fetcher = FakeFetcher(FetchFailed("http://hub.test:4444/graphql", "ConnectionError"))
    _, base_url = running_server(fetcher)

    response = requests.get(base_url + "/metrics", timeout=5)

    assert response.status_code == 200
    assert "selenium_grid_up 0.0" in response.text
    assert "selenium_grid_hub_totalSlots 0.0" in response.text


def test_custom_telemetry_path(running_server):
    _, base_url = running_server(FakeFetcher(grid_body()), telemetry_path="/grid-metrics")

    assert requests.get(base_url + "/grid-metrics", timeout=5).status_code == 200

    response = requests.get(base_url + "/", allow_redirects=False, timeout=5)
    assert response.headers["Location"] == "/grid-metrics"


@pytest.mark.parametrize("path", ["/", "/index.html", "/metrics/extra"])
def test_other_paths_redirect_permanently(running_server, path):
    fetcher = FakeFetcher(grid_body())
    _, base_url = running_server(fetcher)

    response = requests.get(base_url + path, allow_redirects=False, timeout=5)

    assert response.status_code == 301
    assert response.headers["Location"] == "/metrics"
    assert fetcher.calls == 0


def test_health_endpoint(running_server):
    server, base_url = running_server(FakeFetcher(grid_body()))

    response = requests.get(base_url + "/health", timeout=5)
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    server.health_checker.add_check("broken", lambda: False)
    response = requests.get(base_url + "/health", timeout=5)
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"
