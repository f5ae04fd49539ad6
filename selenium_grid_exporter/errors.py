"""
Exceptions raised by the exporter.
"""
from typing import Any, Dict


class ExporterError(Exception):
    """Base class for exporter errors."""

    error_type = "exporter"

    def to_dict(self) -> Dict[str, Any]:
        """Structured fields for logging."""
        return {'error_type': self.error_type, 'error': str(self)}


class ConfigError(ExporterError):
    """Invalid startup configuration."""

    error_type = "config"


class FetchFailed(ExporterError):
    """The hub could not be reached, or the request timed out."""

    error_type = "fetch"

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"Can't scrape Selenium Grid at {uri}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        fields = super().to_dict()
        fields['uri'] = self.uri
        return fields


class DecodeFailed(ExporterError):
    """The hub response was not valid JSON, or did not match the schema."""

    error_type = "decode"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Can't decode Selenium Grid response: {reason}")
