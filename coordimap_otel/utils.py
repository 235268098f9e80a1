import json
import hashlib
import logging

from contextlib import contextmanager
from datetime import datetime, timezone

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any
    from typing import Dict
    from typing import Iterable
    from typing import Iterator
    from typing import Optional
    from typing import Tuple
    from typing import Union

    from coordimap_otel._types import Attributes, AttributeValue


# The logger is created here but initialized in the debug support module
logger = logging.getLogger("coordimap_otel.errors")


class SerializationError(TypeError):
    """Raised when a payload has no canonical JSON encoding."""


@contextmanager
def capture_internal_exceptions():
    # type: () -> Iterator[None]
    try:
        yield
    except Exception:
        logger.debug("Internal error in coordimap_otel", exc_info=True)


def json_dumps(data):
    # type: (Any) -> bytes
    """Serialize data into a compact JSON representation encoded as UTF-8."""
    return json.dumps(data, allow_nan=False, separators=(",", ":")).encode("utf-8")


def canonical_json_dumps(data):
    # type: (Any) -> bytes
    """
    Like `json_dumps` but with sorted keys, so two structurally equal
    payloads always produce the same bytes.
    """
    try:
        return json.dumps(
            data,
            allow_nan=False,
            ensure_ascii=False,
            separators=(",", ":"),
            sort_keys=True,
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError("Cannot encode payload: %s" % (e,)) from e


def encode_and_hash(payload):
    # type: (Any) -> Tuple[bytes, str]
    """Return the canonical encoding of `payload` and its hex SHA-256 digest."""
    encoded = canonical_json_dumps(payload)
    return encoded, hashlib.sha256(encoded).hexdigest()


def attribute_value_to_string(value):
    # type: (AttributeValue) -> str
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)

    return json.dumps(list(value), separators=(",", ":"))


def collect_attributes(attributes):
    # type: (Optional[Union[Attributes, Iterable[Tuple[str, AttributeValue]]]]) -> Dict[str, str]
    """
    Flatten a span, link or resource attribute set into a plain
    key -> string mapping. A repeated key keeps its last value.
    """
    if not attributes:
        return {}

    items = attributes.items() if hasattr(attributes, "items") else attributes
    return {str(key): attribute_value_to_string(value) for key, value in items}


def convert_from_otel_timestamp(time):
    # type: (int) -> datetime
    """Convert an OTel ns-level timestamp to a datetime."""
    return datetime.fromtimestamp(time / 1e9, timezone.utc)


def format_timestamp(value):
    # type: (datetime) -> str
    """Format a datetime as an RFC 3339 UTC timestamp."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utctime = value.astimezone(timezone.utc)

    return utctime.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def now():
    # type: () -> datetime
    return datetime.now(timezone.utc)
