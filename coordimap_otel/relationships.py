"""
Infers topology edges from finished spans.

Edges come from three independent passes over a span:

* co-occurring resource attributes (``relationships_from_resource``),
* relationship annotations on span links (``relationships_from_links``),
* relationship, parent and target annotations on the span itself
  (``relationships_from_span_attributes``).

Only the resource pass deduplicates, through a `RelationshipLedger` that lives
for exactly one export call.
"""

from typing import NamedTuple

from coordimap_otel.consts import (
    ELEMENTTYPE,
    RELATIONSHIP_DELIMITER,
    RESOURCEATTR,
    SPANATTR,
)
from coordimap_otel.elements import create_relationship, relationship_key
from coordimap_otel.utils import (
    capture_internal_exceptions,
    collect_attributes,
    logger,
    now,
)

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Dict
    from typing import Iterable
    from typing import List
    from typing import Mapping
    from typing import Optional
    from typing import Union

    from opentelemetry.trace import Link

    from coordimap_otel.elements import Element


# Known correlations between resource attributes, evaluated in this order.
RESOURCE_RELATIONSHIP_RULES = (
    (RESOURCEATTR.K8S_CLUSTER_NAME, RESOURCEATTR.SERVICE_NAME),
    (RESOURCEATTR.K8S_CLUSTER_NAME, RESOURCEATTR.K8S_SERVICE_ACCOUNT),
    (RESOURCEATTR.K8S_CLUSTER_NAME, RESOURCEATTR.K8S_POD_NAME_COMPLETE),
    (RESOURCEATTR.K8S_NODE_NAME, RESOURCEATTR.K8S_CLUSTER_NAME),
    (RESOURCEATTR.K8S_NODE_NAME, RESOURCEATTR.K8S_POD_NAME_COMPLETE),
    (RESOURCEATTR.K8S_NODE_NAME, RESOURCEATTR.SERVICE_NAME),
)


class RelationshipLedger:
    """
    Keys of the relationships already emitted while processing one batch.

    A new ledger must be created for every export call. It is not thread
    safe and must never be shared between concurrent exports.
    """

    def __init__(self):
        # type: () -> None
        self._keys = {}  # type: Dict[str, str]

    def __contains__(self, key):
        # type: (object) -> bool
        return key in self._keys

    def __len__(self):
        # type: () -> int
        return len(self._keys)

    def __repr__(self):
        # type: () -> str
        return "<RelationshipLedger(%d keys)>" % len(self._keys)

    def record(self, key):
        # type: (str) -> None
        self._keys[key] = ""


class ParsedRelationship(NamedTuple):
    source_id: str
    destination_id: str


class MalformedRelationship(NamedTuple):
    value: str
    reason: str


def parse_relationship_value(value, require_source=True):
    # type: (str, bool) -> Union[ParsedRelationship, MalformedRelationship]
    """
    Parse a ``"{source}@@@{destination}"`` encoded relationship.

    Parts after the second one are ignored. A missing delimiter or an empty
    destination yields a `MalformedRelationship`, as does an empty source
    unless `require_source` is false.
    """
    parts = value.split(RELATIONSHIP_DELIMITER)
    if len(parts) < 2:
        return MalformedRelationship(value, "missing %r delimiter" % RELATIONSHIP_DELIMITER)

    source_id, destination_id = parts[0], parts[1]
    if not destination_id:
        return MalformedRelationship(value, "empty destination")
    if require_source and not source_id:
        return MalformedRelationship(value, "empty source")

    return ParsedRelationship(source_id, destination_id)


def _relationship_or_none(source_id, destination_id, timestamp):
    # type: (str, str, datetime) -> Optional[Element]
    with capture_internal_exceptions():
        return create_relationship(
            source_id,
            destination_id,
            ELEMENTTYPE.OTEL_COMPONENT_RELATIONSHIP,
            ELEMENTTYPE.COMPONENT_RELATIONSHIP_SKIP_INSERT,
            timestamp,
        )

    logger.debug("Dropping relationship %s -> %s", source_id, destination_id)
    return None


def relationships_from_resource(resource_attributes, ledger, timestamp=None):
    # type: (Mapping[str, str], RelationshipLedger, Optional[datetime]) -> List[Element]
    """
    Apply `RESOURCE_RELATIONSHIP_RULES` to a resource attribute map.

    Every rule whose two attributes are present and non-empty yields an
    edge between the two attribute values, unless the ledger already holds
    that edge. Emitted edges are recorded in the ledger.
    """
    if timestamp is None:
        timestamp = now()

    found = []  # type: List[Element]

    for from_key, to_key in RESOURCE_RELATIONSHIP_RULES:
        from_value = resource_attributes.get(from_key)
        to_value = resource_attributes.get(to_key)

        if not from_value or not to_value:
            continue

        if relationship_key(from_value, to_value) in ledger:
            continue

        element = _relationship_or_none(from_value, to_value, timestamp)
        if element is None:
            continue

        ledger.record(element.id)
        found.append(element)

    return found


def relationships_from_links(links, timestamp):
    # type: (Iterable[Link], datetime) -> List[Element]
    """Build one edge for every span link carrying a relationship annotation."""
    found = []  # type: List[Element]

    for link in links or ():
        value = collect_attributes(link.attributes).get(SPANATTR.RELATIONSHIP)
        if value is None:
            continue

        parsed = parse_relationship_value(value)
        if isinstance(parsed, MalformedRelationship):
            logger.debug(
                "Skipping link relationship %r: %s", parsed.value, parsed.reason
            )
            continue

        element = _relationship_or_none(
            parsed.source_id, parsed.destination_id, timestamp
        )
        if element is not None:
            found.append(element)

    return found


def relationships_from_span_attributes(span_attributes, span_name, timestamp):
    # type: (Mapping[str, str], str, datetime) -> List[Element]
    """
    Build the edges annotated directly on a span.

    * ``SPANATTR.RELATIONSHIP``: the second part of the encoded value points
      to the span. The first part is not used.
    * ``SPANATTR.PARENT_NAME``: the named parent points to the span.
    * ``SPANATTR.TARGET_SERVICE``: the span points to the named service.
    """
    candidates = []

    value = span_attributes.get(SPANATTR.RELATIONSHIP)
    if value is not None:
        parsed = parse_relationship_value(value, require_source=False)
        if isinstance(parsed, MalformedRelationship):
            logger.debug(
                "Skipping span relationship %r: %s", parsed.value, parsed.reason
            )
        else:
            # TODO: confirm with the collector team whether the first part
            # should become the source instead of being ignored here.
            candidates.append((parsed.destination_id, span_name))

    parent_name = span_attributes.get(SPANATTR.PARENT_NAME)
    if parent_name:
        candidates.append((parent_name, span_name))

    target_service = span_attributes.get(SPANATTR.TARGET_SERVICE)
    if target_service:
        candidates.append((span_name, target_service))

    found = []  # type: List[Element]
    for source_id, destination_id in candidates:
        element = _relationship_or_none(source_id, destination_id, timestamp)
        if element is not None:
            found.append(element)

    return found
