import itertools
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any
    from typing import Callable
    from typing import Dict
    from typing import Optional
    from typing import Type
    from typing import Union

    import coordimap_otel


DEFAULT_ENDPOINT_URL = "https://api.coordimap.com/collector/crawlers/otel"
DEFAULT_TIMEOUT = 10.0

DEFAULT_DATA_SOURCE_NAME = "SampleTraceExporterName"
DEFAULT_DATA_SOURCE_DESCRIPTION = "Sample Trace Exporter Name"
DATA_SOURCE_TYPE = "opentelemetry"

CRAWL_INTERNAL_ID = "otel-coordimap-exporter"

# Separates source and destination in an encoded relationship value.
RELATIONSHIP_DELIMITER = "@@@"

# Data source config keys containing any of these never leave the process.
SENSITIVE_CONFIG_KEYS = ("password", "secret")


class SPANATTR:
    """
    Span and link attribute keys recognized by the exporter.

    Keys are matched exactly, except for ``COMPONENT`` which is matched as a
    prefix of the attribute key.
    """

    RELATIONSHIP = "coordimap.relationship"
    PARENT_NAME = "coordimap.parent_name"
    TARGET_SERVICE = "coordimap.target_service"
    COMPONENT = "coordimap.component"


class RESOURCEATTR:
    """Resource attribute keys describing the deployment environment."""

    K8S_CLUSTER_NAME = "coordimap.k8s.cluster_name"
    K8S_NODE_NAME = "coordimap.k8s.node_name"
    K8S_SERVICE_ACCOUNT = "coordimap.k8s.service_account"
    K8S_POD_NAME_COMPLETE = "coordimap.k8s.pod_name_complete"
    SERVICE_NAME = "service.name"


class ELEMENTTYPE:
    COMPONENT = "component"
    OTEL_COMPONENT_RELATIONSHIP = "otel_component_relationship"
    # The receiving side treats these as hints instead of first-class edges.
    COMPONENT_RELATIONSHIP_SKIP_INSERT = "component_relationship_skip_insert"


# This type exists to trick mypy and PyCharm into thinking the exporter
# takes these arguments (even though it takes opaque **kwargs)
class ExporterConstructor:

    def __init__(
        self,
        api_key=None,  # type: Optional[str]
        *,
        endpoint_url=None,  # type: Optional[str]
        data_source_name=DEFAULT_DATA_SOURCE_NAME,  # type: str
        data_source_description=DEFAULT_DATA_SOURCE_DESCRIPTION,  # type: str
        data_source_config={},  # type: Dict[str, str]  # noqa: B006
        transport=None,  # type: Optional[Union[coordimap_otel.transport.Transport, Type[coordimap_otel.transport.Transport], Callable[[bytes], None]]]
        http_proxy=None,  # type: Optional[str]
        https_proxy=None,  # type: Optional[str]
        ca_certs=None,  # type: Optional[str]
        timeout=DEFAULT_TIMEOUT,  # type: float
        debug=False,  # type: bool
    ):
        # type: (...) -> None
        """Configure the Coordimap span exporter. All parameters described here can be used in a call to
        `coordimap_otel.init()` or `CoordimapSpanExporter()`.

        :param api_key: The key used to authenticate against the Coordimap collector.

            If this option is not set, the `COORDIMAP_API_KEY` environment variable is used. The exporter cannot be
            created without an API key.

        :param endpoint_url: The collector URL the crawl payloads are posted to.

            Falls back to the `COORDIMAP_ENDPOINT_URL` environment variable and then to the public collector.

        :param data_source_name: Name of the data source the exported topology is attributed to.

        :param data_source_description: Human readable description of the data source.

        :param data_source_config: Additional key/value pairs describing the data source. Pairs whose key contains
            `password` or `secret` are never sent.

        :param transport: Switches out the transport used to send the payload. This can be a `Transport` instance,
            a `Transport` subclass, or a function that takes the encoded payload.

        :param http_proxy: When set, a proxy can be configured that should be used for outbound requests.

        :param https_proxy: Configures a separate proxy for outgoing HTTPS requests.

        :param ca_certs: A path to an alternative CA bundle file in PEM-format. Defaults to the `certifi` bundle.

        :param timeout: Seconds to wait for the collector to answer a single request.

        :param debug: Turns debug mode on or off.

            When `True`, the exporter prints debugging information about dropped candidates and delivery to stderr.
        """
        pass


def _get_default_options():
    # type: () -> dict[str, Any]
    import inspect

    a = inspect.getfullargspec(ExporterConstructor.__init__)
    defaults = a.defaults or ()
    kwonlydefaults = a.kwonlydefaults or {}

    return dict(
        itertools.chain(
            zip(a.args[-len(defaults) :], defaults),
            kwonlydefaults.items(),
        )
    )


DEFAULT_OPTIONS = _get_default_options()
del _get_default_options


VERSION = "0.3.0"
