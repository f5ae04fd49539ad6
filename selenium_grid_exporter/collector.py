"""
Prometheus collector that scrapes the Selenium Grid hub on every read.
"""
import time
import threading
from typing import Dict, Iterable, List, Optional

from prometheus_client import Counter, Gauge, CollectorRegistry
from prometheus_client.metrics_core import Metric

from .config import ExporterConfig
from .errors import DecodeFailed, FetchFailed
from .fetcher import HubFetcher
from .logger import ExporterLogger, get_exporter_logger

NAMESPACE = "selenium_grid"
SUBSYSTEM = "hub"


class GridCollector:
    """
    Custom collector publishing the hub's slot and session counters.

    Every ``collect()`` runs a fresh fetch and decode while holding a lock,
    and snapshots the gauges before releasing it. Concurrent readers queue
    on the lock and never see values from two different scrapes.
    """

    def __init__(self, config: ExporterConfig, fetcher: Optional[HubFetcher] = None,
                 registry: Optional[CollectorRegistry] = None,
                 logger: Optional[ExporterLogger] = None):
        self.config = config
        self.schema = config.schema
        self.fetcher = fetcher or HubFetcher(config, self.schema)
        self.logger = logger or get_exporter_logger()
        self._lock = threading.Lock()
        self._values: Dict[str, float] = {}

        self._setup_metrics()

        self.registry = registry or CollectorRegistry()
        self.registry.register(self)

    def _setup_metrics(self):
        """Create the gauges. They are owned here, not registered directly."""
        self.up = Gauge(
            'up',
            'was the last scrape of Selenium Grid successful.',
            namespace=NAMESPACE,
            registry=None
        )

        self.gauges: Dict[str, Gauge] = {}
        for field in self.schema.fields:
            self.gauges[field.name] = Gauge(
                field.name,
                field.help,
                namespace=NAMESPACE,
                subsystem=SUBSYSTEM,
                registry=None
            )

        self.scrape_errors_total = Counter(
            'scrape_errors',
            'Total number of failed scrapes of Selenium Grid',
            labelnames=['error_type'],
            namespace='selenium_grid_exporter',
            registry=None
        )
        for error_type in (FetchFailed.error_type, DecodeFailed.error_type):
            self.scrape_errors_total.labels(error_type=error_type)

        self._set('up', self.up, 0)
        self._reset()

    def _metrics(self) -> List:
        return [self.up, *self.gauges.values(), self.scrape_errors_total]

    def _set(self, name: str, gauge: Gauge, value: float):
        gauge.set(value)
        self._values[name] = value

    def _reset(self):
        for name, gauge in self.gauges.items():
            self._set(name, gauge, 0)

    def _scrape(self):
        """One fetch-and-decode cycle. Callers hold the lock."""
        start_time = time.time()
        self._reset()

        try:
            body = self.fetcher.fetch()
        except FetchFailed as e:
            self._set('up', self.up, 0)
            self._record_error(e, start_time)
            return

        self._set('up', self.up, 1)

        try:
            result = self.schema.decode(body)
        except DecodeFailed as e:
            self._record_error(e, start_time)
            return

        for name, value in result.items():
            self._set(name, self.gauges[name], value)

        self.logger.log_scrape_success(dict(self._values), time.time() - start_time)

    def _record_error(self, error, start_time: float):
        self.scrape_errors_total.labels(error_type=error.error_type).inc()
        self.logger.log_scrape_error(error, time.time() - start_time)

    def describe(self) -> Iterable[Metric]:
        """Metric descriptions, without scraping the hub."""
        return [desc for metric in self._metrics() for desc in metric.describe()]

    def collect(self) -> Iterable[Metric]:
        """Scrape the hub and return the resulting metric families."""
        with self._lock:
            self._scrape()
            return [family for metric in self._metrics() for family in metric.collect()]

    def scrape(self) -> Dict[str, float]:
        """Scrape the hub and return ``{name: value}``, including ``up``."""
        with self._lock:
            self._scrape()
            return dict(self._values)

    def close(self):
        self.registry.unregister(self)
        self.fetcher.close()
