import os

from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from coordimap_otel.consts import DEFAULT_ENDPOINT_URL, DEFAULT_OPTIONS
from coordimap_otel.debug import init_debug_support
from coordimap_otel.envelope import DataSourceConfig, DataSourceInfo, build_batch
from coordimap_otel.transport import TransportError, make_transport
from coordimap_otel.utils import logger

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any
    from typing import Dict
    from typing import Optional
    from typing import Sequence

    from opentelemetry.sdk.trace import ReadableSpan


class ConfigurationError(ValueError):
    """Raised on missing or invalid exporter options."""


_NON_EMPTY_OPTIONS = (
    ("endpoint_url", "endpoint_url cannot be empty"),
    ("data_source_name", "Data Source Info name cannot be empty"),
    ("data_source_description", "Data Source Info description cannot be empty"),
)


def _get_options(*args, **kwargs):
    # type: (*Optional[str], **Any) -> Dict[str, Any]
    if args and (isinstance(args[0], str) or args[0] is None):
        api_key = args[0]  # type: Optional[str]
        args = args[1:]
    else:
        api_key = None

    rv = dict(DEFAULT_OPTIONS)
    options = dict(*args, **kwargs)
    if api_key is not None and options.get("api_key") is None:
        options["api_key"] = api_key

    for key, value in options.items():
        if key not in rv:
            raise TypeError("Unknown option %r" % (key,))
        rv[key] = value

    if rv["api_key"] is None:
        rv["api_key"] = os.environ.get("COORDIMAP_API_KEY")

    if rv["endpoint_url"] is None:
        rv["endpoint_url"] = (
            os.environ.get("COORDIMAP_ENDPOINT_URL") or DEFAULT_ENDPOINT_URL
        )

    if not rv["api_key"]:
        raise ConfigurationError("The Coordimap API key has not been set")

    for key, message in _NON_EMPTY_OPTIONS:
        if not rv[key]:
            raise ConfigurationError(message)

    return rv


class CoordimapSpanExporter(SpanExporter):
    """
    Turns finished spans into topology elements and relationships and posts
    them to the Coordimap collector, one payload per export call.
    """

    def __init__(self, *args, **kwargs):
        # type: (*Optional[str], **Any) -> None
        self.options = options = _get_options(*args, **kwargs)
        init_debug_support(options["debug"])

        self.data_source_info = DataSourceInfo(
            options["data_source_name"], options["data_source_description"]
        )
        self.data_source_config = DataSourceConfig.from_mapping(
            options["data_source_config"]
        )
        self.transport = make_transport(options)
        self._shutdown = False

    @property
    def endpoint_url(self):
        # type: () -> str
        return self.options["endpoint_url"]

    def export(self, spans):
        # type: (Sequence[ReadableSpan]) -> SpanExportResult
        if self._shutdown:
            logger.warning("Exporter already shut down, dropping %s spans", len(spans))
            return SpanExportResult.FAILURE

        batch = build_batch(spans, self.data_source_info, self.data_source_config)
        logger.debug("Exporting %s spans as %s", len(spans), batch.description)

        try:
            self.transport.send(batch.serialize())
        except TransportError as e:
            logger.error("Failed to export %s spans: %s", len(spans), e)
            return SpanExportResult.FAILURE

        return SpanExportResult.SUCCESS

    def shutdown(self):
        # type: () -> None
        if self._shutdown:
            return

        self._shutdown = True
        self.transport.kill()

    def force_flush(self, timeout_millis=30000):
        # type: (int) -> bool
        return True
