import structlog

from selenium_grid_exporter.collector import GridCollector
from selenium_grid_exporter.config import ExporterConfig
from selenium_grid_exporter.errors import FetchFailed
from selenium_grid_exporter.logger import ExporterLogger

from conftest import FakeFetcher, grid_body


class RecordingLogger:
    """Stands in for the bound structlog logger and keeps every call."""

    def __init__(self):
        self.records = []

    def __getattr__(self, level):
        def log(event, *args, **kwargs):
            self.records.append((level, event, kwargs))
        return log


def recording_exporter_logger(config):
    exporter_logger = ExporterLogger(config)
    exporter_logger._logger = RecordingLogger()
    return exporter_logger, exporter_logger._logger


def test_fetch_failure_logged_at_error_level():
    config = ExporterConfig(scrape_uri="http://hub.test:4444")
    logger, recorder = recording_exporter_logger(config)
    fetcher = FakeFetcher(FetchFailed("http://hub.test:4444/graphql", "ConnectionError: refused"))

    GridCollector(config, fetcher=fetcher, logger=logger).scrape()

    [(level, event, fields)] = recorder.records
    assert level == "error"
    assert event == "Scrape failed"
    assert fields["error_type"] == "fetch"
    assert fields["uri"] == "http://hub.test:4444/graphql"
    assert "ConnectionError" in fields["error"]
    assert fields["duration_ms"] >= 0


def test_decode_failure_logged_at_error_level():
    config = ExporterConfig()
    logger, recorder = recording_exporter_logger(config)

    GridCollector(config, fetcher=FakeFetcher(b"<html>"), logger=logger).scrape()

    [(level, event, fields)] = recorder.records
    assert level == "error"
    assert fields["error_type"] == "decode"
    assert fields["error"].startswith("Can't decode Selenium Grid response")


def test_success_logged_at_debug_level():
    config = ExporterConfig(grid_schema="graphql-usage")
    logger, recorder = recording_exporter_logger(config)

    GridCollector(config, fetcher=FakeFetcher(grid_body(totalSlots=2)), logger=logger).scrape()

    [(level, event, fields)] = recorder.records
    assert level == "debug"
    assert fields["values"]["up"] == 1
    assert fields["values"]["totalSlots"] == 2


def test_component_logger_binds_base_labels():
    config = ExporterConfig(scrape_uri="http://hub.test:4444")
    bound = ExporterLogger(config).get_logger("fetcher")
    context = structlog.get_context(bound)
    assert context["component"] == "fetcher"
    assert context["scrape_uri"] == "http://hub.test:4444"
