"""
HTTP client for the Selenium Grid hub status endpoint.
"""
import time
from typing import Optional

import requests

from .config import ExporterConfig
from .errors import FetchFailed
from .logger import get_logger
from .schema import HubSchema

CHUNK_SIZE = 8192


class HubFetcher:
    """
    Issues one request per scrape against the hub.

    The HTTP status is not checked: whatever body comes back is handed to
    the schema, which rejects anything it cannot decode. Transport errors
    and timeouts raise FetchFailed. There are no retries.
    """

    def __init__(self, config: ExporterConfig, schema: Optional[HubSchema] = None,
                 session: Optional[requests.Session] = None):
        self.config = config
        self.schema = schema or config.schema
        self.url = config.endpoint(self.schema)
        self.session = session or requests.Session()
        self.logger = get_logger("fetcher")

    def fetch(self) -> bytes:
        """Return the raw response body, read within ``config.timeout`` seconds overall."""
        headers = {}
        body = self.schema.request_body()
        if body is not None:
            headers["Content-Type"] = "application/json"

        start_time = time.time()
        deadline = start_time + self.config.timeout
        try:
            # requests' timeout bounds each connect/read, the deadline bounds the whole body
            with self.session.request(
                self.schema.method,
                self.url,
                data=body,
                headers=headers,
                timeout=self.config.timeout,
                stream=True,
            ) as response:
                chunks = []
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    chunks.append(chunk)
                    if time.time() > deadline:
                        raise FetchFailed(
                            self.url, f"Timeout: response not complete after {self.config.timeout}s")
        except requests.RequestException as e:
            raise FetchFailed(self.url, f"{type(e).__name__}: {e}") from e

        self.logger.debug("Hub request completed",
                          method=self.schema.method,
                          url=self.url,
                          status_code=response.status_code,
                          duration_ms=round((time.time() - start_time) * 1000, 2))
        return b"".join(chunks)

    def close(self):
        self.session.close()
