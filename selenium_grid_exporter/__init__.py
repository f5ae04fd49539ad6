"""
Selenium Grid Exporter

Republishes a Selenium Grid hub's slot and session counters as
Prometheus gauges:
- Scrape-on-read collector guarded by a single lock
- Grid 3 REST and Grid 4 GraphQL response schemas
- Structured JSON logging
- Health endpoint for the exporter process
"""

from .config import ExporterConfig
from .errors import ExporterError, ConfigError, FetchFailed, DecodeFailed
from .schema import HubSchema, SCHEMAS, get_schema
from .logger import ExporterLogger, get_logger, configure_logging
from .fetcher import HubFetcher
from .collector import GridCollector
from .health import HealthChecker
from .server import ExporterServer

__version__ = "1.0.0"
__all__ = [
    "ExporterConfig",
    "ExporterError",
    "ConfigError",
    "FetchFailed",
    "DecodeFailed",
    "HubSchema",
    "SCHEMAS",
    "get_schema",
    "ExporterLogger",
    "get_logger",
    "configure_logging",
    "HubFetcher",
    "GridCollector",
    "HealthChecker",
    "ExporterServer",
]
