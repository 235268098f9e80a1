import json

from coordimap_otel.consts import ELEMENTTYPE, SPANATTR
from coordimap_otel.elements import create_element
from coordimap_otel.utils import capture_internal_exceptions, logger

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Mapping
    from typing import Optional

    from coordimap_otel._types import ComponentPayload
    from coordimap_otel.elements import Element


REQUIRED_COMPONENT_FIELDS = ("Name", "InternalID")


def find_component_value(span_attributes):
    # type: (Mapping[str, str]) -> Optional[str]
    """Return the value of the first attribute keyed by the component prefix."""
    for key, value in span_attributes.items():
        if key.startswith(SPANATTR.COMPONENT):
            return value

    return None


def parse_component(value):
    # type: (str) -> Optional[ComponentPayload]
    try:
        component = json.loads(value)
    except ValueError as e:
        logger.debug("Skipping span component, invalid JSON: %s", e)
        return None

    if not isinstance(component, dict):
        logger.debug("Skipping span component, expected an object: %r", value)
        return None

    for field in REQUIRED_COMPONENT_FIELDS:
        if not isinstance(component.get(field), str) or not component[field]:
            logger.debug("Skipping span component, missing %s: %r", field, value)
            return None

    return component


def component_from_span_attributes(span_attributes, timestamp):
    # type: (Mapping[str, str], datetime) -> Optional[Element]
    value = find_component_value(span_attributes)
    if value is None:
        return None

    component = parse_component(value)
    if component is None:
        return None

    with capture_internal_exceptions():
        return create_element(
            component,
            component["Name"],
            component["InternalID"],
            ELEMENTTYPE.COMPONENT,
            timestamp,
        )

    logger.debug("Dropping component %s", component["InternalID"])
    return None
