import json
import socket
import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from selenium_grid_exporter.config import ExporterConfig

ENV_VARS = [
    "LISTEN_ADDRESS", "TELEMETRY_PATH", "SCRAPE_URI", "GRID_SCHEMA",
    "SCRAPE_TIMEOUT", "LOG_LEVEL", "LOG_FORMAT", "LOG_FILE",
]


class FakeFetcher:
    """Returns queued bodies (or raises queued exceptions); the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0
        self.closed = False

    def fetch(self):
        self.calls += 1
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


def grid_body(**fields):
    return json.dumps({"data": {"grid": fields}}).encode()


def sample_values(registry):
    """Collect once and return {sample name: value}."""
    return {
        sample.name: sample.value
        for family in registry.collect()
        for sample in family.samples
        if not sample.labels
    }


def unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    return ExporterConfig(scrape_uri="http://hub.test:4444", listen_address="127.0.0.1:0")
