from coordimap_otel.components import component_from_span_attributes
from coordimap_otel.consts import (
    CRAWL_INTERNAL_ID,
    DATA_SOURCE_TYPE,
    SENSITIVE_CONFIG_KEYS,
)
from coordimap_otel.relationships import (
    RelationshipLedger,
    relationships_from_links,
    relationships_from_resource,
    relationships_from_span_attributes,
)
from coordimap_otel.utils import (
    collect_attributes,
    convert_from_otel_timestamp,
    format_timestamp,
    json_dumps,
    now,
)

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Iterable
    from typing import List
    from typing import Mapping
    from typing import Optional
    from typing import Sequence
    from typing import Tuple

    from opentelemetry.sdk.trace import ReadableSpan

    from coordimap_otel._types import CrawlPayload, DataSourceInfoJson, KeyValuePair
    from coordimap_otel.elements import Element


class DataSourceInfo:
    """Describes where the exported topology comes from."""

    __slots__ = ("name", "desc", "type")

    def __init__(self, name, desc, type=DATA_SOURCE_TYPE):
        # type: (str, str, str) -> None
        self.name = name
        self.desc = desc
        self.type = type

    def to_json(self):
        # type: () -> DataSourceInfoJson
        return {"name": self.name, "desc": self.desc, "type": self.type}


def _is_sensitive(key):
    # type: (str) -> bool
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_CONFIG_KEYS)


class DataSourceConfig:
    """
    Key/value configuration of the data source. Any key that contains
    "password" or "secret" is dropped.
    """

    __slots__ = ("value_pairs",)

    def __init__(self, value_pairs=None):
        # type: (Optional[Iterable[Tuple[str, str]]]) -> None
        self.value_pairs = [
            (key, value) for key, value in (value_pairs or ()) if not _is_sensitive(key)
        ]  # type: List[Tuple[str, str]]

    @classmethod
    def from_mapping(cls, mapping):
        # type: (Optional[Mapping[str, str]]) -> DataSourceConfig
        return cls((mapping or {}).items())

    def to_json(self):
        # type: () -> dict[str, List[KeyValuePair]]
        return {
            "value_pairs": [
                {"key": key, "value": value} for key, value in self.value_pairs
            ]
        }


def _span_timestamp(span):
    # type: (ReadableSpan) -> datetime
    if span.end_time:
        return convert_from_otel_timestamp(span.end_time)
    return now()


class Batch:
    """
    All elements produced for one export call, in emission order.

    Per span, resource relationships come first, then link relationships,
    then span attribute relationships and finally the span's component.
    """

    def __init__(
        self,
        data_source_info,  # type: DataSourceInfo
        data_source_config=None,  # type: Optional[DataSourceConfig]
    ):
        # type: (...) -> None
        self.data_source_info = data_source_info
        self.data_source_config = data_source_config or DataSourceConfig()
        self.elements = []  # type: List[Element]
        self.ledger = RelationshipLedger()

    def __len__(self):
        # type: () -> int
        return len(self.elements)

    @property
    def description(self):
        # type: () -> str
        return "batch with %s elements (%s relationships tracked)" % (
            len(self.elements),
            len(self.ledger),
        )

    def add_span(self, span):
        # type: (ReadableSpan) -> None
        span_attributes = collect_attributes(span.attributes)
        resource_attributes = collect_attributes(
            span.resource.attributes if span.resource is not None else None
        )
        timestamp = _span_timestamp(span)

        self.elements.extend(
            relationships_from_resource(resource_attributes, self.ledger)
        )
        self.elements.extend(relationships_from_links(span.links, timestamp))
        self.elements.extend(
            relationships_from_span_attributes(span_attributes, span.name, timestamp)
        )

        component = component_from_span_attributes(span_attributes, timestamp)
        if component is not None:
            self.elements.append(component)

    def add_spans(self, spans):
        # type: (Iterable[ReadableSpan]) -> None
        for span in spans:
            self.add_span(span)

    def to_json(self, timestamp=None):
        # type: (Optional[datetime]) -> CrawlPayload
        return {
            "data_source": {
                "data_source_info": self.data_source_info.to_json(),
                "data_source_config": self.data_source_config.to_json(),
            },
            "crawled_data": {"data": [element.to_json() for element in self.elements]},
            "timestamp": format_timestamp(timestamp or now()),
            "crawl_internal_id": CRAWL_INTERNAL_ID,
        }

    def serialize(self, timestamp=None):
        # type: (Optional[datetime]) -> bytes
        return json_dumps(self.to_json(timestamp))


def build_batch(spans, data_source_info, data_source_config=None):
    # type: (Sequence[ReadableSpan], DataSourceInfo, Optional[DataSourceConfig]) -> Batch
    batch = Batch(data_source_info, data_source_config)
    batch.add_spans(spans)
    return batch
