from coordimap_otel.api import init
from coordimap_otel.consts import VERSION
from coordimap_otel.elements import (
    Element,
    RelationshipElement,
    create_element,
    create_relationship,
)
from coordimap_otel.envelope import Batch, DataSourceConfig, DataSourceInfo
from coordimap_otel.exporter import ConfigurationError, CoordimapSpanExporter
from coordimap_otel.relationships import RelationshipLedger
from coordimap_otel.transport import HttpTransport, Transport, TransportError
from coordimap_otel.utils import SerializationError

__all__ = [  # noqa
    "Batch",
    "ConfigurationError",
    "CoordimapSpanExporter",
    "DataSourceConfig",
    "DataSourceInfo",
    "Element",
    "HttpTransport",
    "RelationshipElement",
    "RelationshipLedger",
    "SerializationError",
    "Transport",
    "TransportError",
    "VERSION",
    "create_element",
    "create_relationship",
    "init",
]
