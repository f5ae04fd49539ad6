"""
Response schemas for the Selenium Grid hub status endpoints.

Grid 4 exposes its counters through GraphQL, Grid 3 through the
``/grid/api/hub`` REST endpoint. Each schema knows how to request the
counters and how to map the response onto gauge values. One schema is
active per deployment.
"""
import json
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import ConfigError, DecodeFailed


# Metric name -> value, valid for the duration of one scrape
ScrapeResult = Dict[str, float]


@dataclass(frozen=True)
class SchemaField:
    """A gauge and the JSON path it is read from."""

    name: str
    help: str
    path: Tuple[str, ...]


class HubSchema:
    """Base class for hub response schemas."""

    name = ""
    method = "GET"
    path = ""

    def __init__(self, fields: List[SchemaField]):
        self.fields = list(fields)

    @property
    def metric_names(self) -> List[str]:
        return [field.name for field in self.fields]

    def request_body(self) -> Optional[bytes]:
        """Body sent with the request, or None."""
        return None

    def decode(self, body: bytes) -> ScrapeResult:
        """
        Parse a hub response into gauge values.

        Missing keys and nulls decode to zero. Containers that are not
        objects, leaves that are not finite numbers and non-standard
        constants (NaN, Infinity) raise DecodeFailed.
        """
        try:
            document = json.loads(body, parse_constant=_reject_constant)
        except (ValueError, RecursionError) as e:
            raise DecodeFailed(str(e)) from e

        return {field.name: _lookup(document, field.path) for field in self.fields}

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r}, fields={self.metric_names})"


class GraphQLSchema(HubSchema):
    """Grid 4 GraphQL endpoint, queried with POST."""

    method = "POST"
    path = "/graphql"

    def __init__(self, name: str, fields: List[SchemaField]):
        super().__init__(fields)
        self.name = name

    @property
    def query(self) -> str:
        selection = ", ".join(field.path[-1] for field in self.fields)
        return "{ grid {%s} }" % selection

    def request_body(self) -> Optional[bytes]:
        return json.dumps({"query": self.query}).encode()


class HubApiSchema(HubSchema):
    """Grid 3 hub REST endpoint, queried with GET."""

    name = "hub-api"
    path = "/grid/api/hub"


def _grid_field(name: str, help_text: str) -> SchemaField:
    return SchemaField(name, help_text, ("data", "grid", name))


def _lookup(document, path: Tuple[str, ...]) -> float:
    node = document
    for depth, key in enumerate(path):
        if node is None:
            return 0.0
        if not isinstance(node, dict):
            where = ".".join(path[:depth]) or "$"
            raise DecodeFailed(f"expected object at '{where}', got {type(node).__name__}")
        node = node.get(key)

    if node is None:
        return 0.0
    # bool is an int subclass but never a counter
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        raise DecodeFailed(f"field '{'.'.join(path)}' is not a number: {node!r}")
    try:
        value = float(node)
    except OverflowError as e:
        raise DecodeFailed(f"field '{'.'.join(path)}' is out of range") from e
    # 1e999 parses to inf without going through parse_constant
    if not math.isfinite(value):
        raise DecodeFailed(f"field '{'.'.join(path)}' is out of range")
    return value


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant {name}")


SCHEMAS: Dict[str, HubSchema] = {
    "graphql": GraphQLSchema("graphql", [
        _grid_field("totalSlots", "total number of slots"),
        _grid_field("maxSession", "maximum number of sessions"),
        _grid_field("sessionCount", "number of active sessions"),
        _grid_field("sessionQueueSize", "number of queued sessions"),
    ]),
    "graphql-usage": GraphQLSchema("graphql-usage", [
        _grid_field("totalSlots", "total number of slots"),
        _grid_field("usedSlots", "number of used slots"),
        _grid_field("sessionCount", "number of active sessions"),
    ]),
    "hub-api": HubApiSchema([
        SchemaField("slotsTotal", "total number of slots", ("slotCounts", "total")),
        SchemaField("slotsFree", "number of free slots", ("slotCounts", "free")),
        SchemaField("sessions_backlog", "number of sessions waiting for a slot",
                    ("newSessionRequestCount",)),
    ]),
}


def get_schema(name: str) -> HubSchema:
    """Look up a schema by name."""
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ConfigError(
            f"unknown grid schema {name!r}, expected one of: {', '.join(sorted(SCHEMAS))}"
        ) from None
