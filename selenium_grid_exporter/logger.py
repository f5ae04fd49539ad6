"""
Structured logging with JSON formatting.
"""
import logging
import structlog
import sys
from typing import Dict, Any
from pythonjsonlogger import jsonlogger

from .config import ExporterConfig, EXPORTER_NAME


class ExporterLogger:
    """Structured logger for the exporter."""

    def __init__(self, config: ExporterConfig):
        self.config = config
        self._logger = None
        self._setup_logging()

    def _setup_logging(self):
        """Setup structured logging with JSON formatting."""
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer()
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=level
        )
        logging.getLogger().setLevel(level)

        if self.config.log_file:
            file_handler = logging.FileHandler(self.config.log_file)
            if self.config.log_format == "json":
                formatter = jsonlogger.JsonFormatter(
                    '%(asctime)s %(name)s %(levelname)s %(message)s'
                )
            else:
                formatter = logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                )
            file_handler.setFormatter(formatter)
            logging.getLogger().addHandler(file_handler)

        self._logger = structlog.get_logger(EXPORTER_NAME)
        self._logger = self._logger.bind(**self.config.get_base_labels())

    def get_logger(self, name: str) -> structlog.BoundLogger:
        """Get a bound logger for a component."""
        return self._logger.bind(component=name)

    def info(self, message: str, **kwargs):
        self._logger.info(message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._logger.critical(message, **kwargs)

    def log_startup(self, **kwargs):
        """Log exporter startup and the scrape target."""
        self._logger.info("Starting selenium_grid_exporter", **kwargs)
        self._logger.info("Collecting data from: %s", self.config.scrape_uri)

    def log_scrape_success(self, values: Dict[str, Any], duration: float, **kwargs):
        """Log a completed scrape."""
        self._logger.debug(
            "Scrape completed",
            status="success",
            duration_ms=round(duration * 1000, 2),
            values=values,
            **kwargs
        )

    def log_scrape_error(self, error: Exception, duration: float, **kwargs):
        """Log a failed scrape. ExporterErrors contribute their context fields."""
        fields = error.to_dict() if hasattr(error, "to_dict") else {
            'error_type': type(error).__name__,
            'error': str(error),
        }
        fields.update(kwargs)
        self._logger.error(
            "Scrape failed",
            status="failed",
            duration_ms=round(duration * 1000, 2),
            **fields
        )

# Global convenience functions
_default_logger = None

def get_exporter_logger() -> ExporterLogger:
    """
    Get the process-wide ExporterLogger. If none is configured,
    create one with default configuration.
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = ExporterLogger(ExporterConfig())
    return _default_logger


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a bound logger scoped to a component."""
    return get_exporter_logger().get_logger(name)


def configure_logging(config: ExporterConfig) -> ExporterLogger:
    """Replace the default logger with one built from ``config``."""
    global _default_logger
    _default_logger = ExporterLogger(config)
    return _default_logger
