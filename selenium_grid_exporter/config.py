"""
Configuration management for the exporter.
Built once at startup and handed to the fetcher, collector and server.
"""
import os
from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, Tuple

from .errors import ConfigError
from .schema import HubSchema, get_schema

EXPORTER_NAME = "selenium_grid_exporter"
EXPORTER_VERSION = "1.0.0"


@dataclass
class ExporterConfig:
    """Configuration for the Selenium Grid exporter."""

    # HTTP server
    listen_address: str = ":8080"
    telemetry_path: str = "/metrics"

    # Upstream hub
    scrape_uri: str = "http://grid.local"
    grid_schema: str = "graphql"
    timeout: float = 3.0  # seconds

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or standard
    log_file: Optional[str] = None

    def __post_init__(self):
        """Apply environment overrides to fields left at their defaults."""
        self._env_override("listen_address", "LISTEN_ADDRESS")
        self._env_override("telemetry_path", "TELEMETRY_PATH")
        self._env_override("scrape_uri", "SCRAPE_URI")
        self._env_override("grid_schema", "GRID_SCHEMA")
        self._env_override("timeout", "SCRAPE_TIMEOUT", float)
        self._env_override("log_level", "LOG_LEVEL")
        self._env_override("log_format", "LOG_FORMAT")
        self._env_override("log_file", "LOG_FILE")

    def _env_override(self, name: str, env_var: str, cast=str):
        value = os.getenv(env_var)
        if value is None or getattr(self, name) != _DEFAULTS[name]:
            return
        try:
            setattr(self, name, cast(value))
        except ValueError:
            raise ConfigError(f"invalid value for {env_var}: {value!r}") from None

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ExporterConfig':
        """Create config from dictionary."""
        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            'listen_address': self.listen_address,
            'telemetry_path': self.telemetry_path,
            'scrape_uri': self.scrape_uri,
            'grid_schema': self.grid_schema,
            'timeout': self.timeout,
            'log_level': self.log_level,
            'log_format': self.log_format,
            'log_file': self.log_file,
        }

    def validate(self) -> 'ExporterConfig':
        """Raise ConfigError if the configuration cannot be served."""
        get_schema(self.grid_schema)
        if not self.telemetry_path.startswith("/"):
            raise ConfigError(f"telemetry path must start with '/': {self.telemetry_path!r}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive: {self.timeout}")
        if not self.scrape_uri:
            raise ConfigError("scrape URI must not be empty")
        self.bind_address()
        return self

    @property
    def schema(self) -> HubSchema:
        return get_schema(self.grid_schema)

    def endpoint(self, schema: Optional[HubSchema] = None) -> str:
        """Full URL of the hub status endpoint."""
        return self.scrape_uri.rstrip("/") + (schema or self.schema).path

    def bind_address(self) -> Tuple[str, int]:
        """Parse ``host:port``; an empty host binds every interface."""
        host, sep, port = self.listen_address.rpartition(":")
        if not sep:
            raise ConfigError(f"listen address must be host:port: {self.listen_address!r}")
        try:
            port_number = int(port)
        except ValueError:
            raise ConfigError(f"invalid port in listen address: {self.listen_address!r}") from None
        if not 0 <= port_number <= 65535:
            raise ConfigError(f"port out of range in listen address: {self.listen_address!r}")
        return host.strip("[]"), port_number

    def get_base_labels(self) -> Dict[str, str]:
        """Get base labels for logs."""
        return {
            'exporter': EXPORTER_NAME,
            'exporter_version': EXPORTER_VERSION,
            'scrape_uri': self.scrape_uri,
            'grid_schema': self.grid_schema,
        }


_DEFAULTS = {f.name: f.default for f in fields(ExporterConfig)}

