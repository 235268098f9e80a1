from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from typing import Any
    from typing import Dict
    from typing import List
    from typing import Mapping
    from typing import Sequence
    from typing import Union

    from typing_extensions import TypedDict

    AttributeValue = Union[
        str,
        bool,
        int,
        float,
        Sequence[str],
        Sequence[bool],
        Sequence[int],
        Sequence[float],
    ]
    Attributes = Mapping[str, AttributeValue]

    # The decoded payload of a span component attribute. Only ``Name`` and
    # ``InternalID`` are required, everything else is passed through.
    ComponentPayload = Dict[str, Any]

    RelationshipPayload = TypedDict(
        "RelationshipPayload",
        {
            "source_id": str,
            "destination_id": str,
            "relationship_type": str,
        },
    )

    SerializedElement = TypedDict(
        "SerializedElement",
        {
            "retrieved_at": str,
            "name": str,
            "type": str,
            "id": str,
            "hash": str,
            "data": str,  # base64 of the canonical JSON bytes
            "is_json_data": bool,
        },
    )

    KeyValuePair = TypedDict("KeyValuePair", {"key": str, "value": str})

    DataSourceInfoJson = TypedDict(
        "DataSourceInfoJson",
        {"name": str, "desc": str, "type": str},
    )

    CrawlPayload = TypedDict(
        "CrawlPayload",
        {
            "data_source": Dict[str, Any],
            "crawled_data": Dict[str, List[SerializedElement]],
            "timestamp": str,
            "crawl_internal_id": str,
        },
    )
