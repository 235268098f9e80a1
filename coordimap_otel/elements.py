import base64

from coordimap_otel.utils import encode_and_hash, format_timestamp

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from coordimap_otel._types import RelationshipPayload, SerializedElement


class Element:
    """
    A content addressed node or edge of the topology graph.

    ``data`` holds the canonical JSON encoding of the payload and ``hash`` is
    the SHA-256 of exactly those bytes, so two elements built from equal
    payloads always share a hash.
    """

    __slots__ = (
        "retrieved_at",
        "name",
        "type",
        "id",
        "hash",
        "data",
        "is_json_data",
    )

    def __init__(
        self,
        retrieved_at,  # type: datetime
        name,  # type: str
        type,  # type: str
        id,  # type: str
        hash,  # type: str
        data,  # type: bytes
        is_json_data=True,  # type: bool
    ):
        # type: (...) -> None
        self.retrieved_at = retrieved_at
        self.name = name
        self.type = type
        self.id = id
        self.hash = hash
        self.data = data
        self.is_json_data = is_json_data

    def __repr__(self):
        # type: () -> str
        return "<Element(id=%r, name=%r, type=%r, hash=%r)>" % (
            self.id,
            self.name,
            self.type,
            self.hash,
        )

    def __eq__(self, other):
        # type: (object) -> bool
        if not isinstance(other, Element):
            return NotImplemented

        return all(getattr(self, k) == getattr(other, k) for k in self.__slots__)

    def to_json(self):
        # type: () -> SerializedElement
        return {
            "retrieved_at": format_timestamp(self.retrieved_at),
            "name": self.name,
            "type": self.type,
            "id": self.id,
            "hash": self.hash,
            # byte fields travel base64 encoded
            "data": base64.b64encode(self.data).decode("ascii"),
            "is_json_data": self.is_json_data,
        }


class RelationshipElement:
    """The payload of an edge between two components."""

    __slots__ = ("source_id", "destination_id", "relationship_type")

    def __init__(self, source_id, destination_id, relationship_type):
        # type: (str, str, str) -> None
        self.source_id = source_id
        self.destination_id = destination_id
        self.relationship_type = relationship_type

    @property
    def key(self):
        # type: () -> str
        return relationship_key(self.source_id, self.destination_id)

    def __repr__(self):
        # type: () -> str
        return "<RelationshipElement(%r -> %r, %r)>" % (
            self.source_id,
            self.destination_id,
            self.relationship_type,
        )

    def to_json(self):
        # type: () -> RelationshipPayload
        return {
            "source_id": self.source_id,
            "destination_id": self.destination_id,
            "relationship_type": self.relationship_type,
        }


def relationship_key(source_id, destination_id):
    # type: (str, str) -> str
    return "%s.%s" % (source_id, destination_id)


def create_element(payload, name, id, type, timestamp):
    # type: (Any, str, str, str, datetime) -> Element
    """
    Wrap a payload into an `Element`.

    Raises `SerializationError` if the payload cannot be encoded.
    """
    if hasattr(payload, "to_json"):
        payload = payload.to_json()

    data, digest = encode_and_hash(payload)

    return Element(
        retrieved_at=timestamp,
        name=name,
        type=type,
        id=id,
        hash=digest,
        data=data,
        is_json_data=True,
    )


def create_relationship(
    source_id,  # type: str
    destination_id,  # type: str
    relationship_type,  # type: str
    wrapper_type,  # type: str
    timestamp,  # type: datetime
):
    # type: (...) -> Element
    """
    Build the element for an edge from `source_id` to `destination_id`.

    `relationship_type` is the edge kind stored inside the payload while
    `wrapper_type` becomes the type of the outer element. Both the name and
    the id of the element are the relationship key ``"{source}.{destination}"``.
    """
    relationship = RelationshipElement(source_id, destination_id, relationship_type)
    key = relationship.key

    return create_element(relationship, key, key, wrapper_type, timestamp)
