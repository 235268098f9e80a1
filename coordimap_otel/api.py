from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import get_tracer_provider, set_tracer_provider

from coordimap_otel.exporter import CoordimapSpanExporter
from coordimap_otel.utils import logger

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any
    from typing import Optional


def init(*args, **kwargs):
    # type: (*Optional[str], **Any) -> CoordimapSpanExporter
    """
    Create a `CoordimapSpanExporter` and attach it to the global tracer
    provider behind a `BatchSpanProcessor`. Takes the same options as the
    exporter.
    """
    exporter = CoordimapSpanExporter(*args, **kwargs)
    tracer_provider = get_tracer_provider()

    if not isinstance(tracer_provider, TracerProvider):
        logger.debug("No TracerProvider configured by user, creating a new one")
        tracer_provider = TracerProvider()
        set_tracer_provider(tracer_provider)

    tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.debug("Exporting spans to %s", exporter.endpoint_url)

    return exporter
