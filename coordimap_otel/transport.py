import urllib3
import certifi

from urllib.request import getproxies
from urllib3.util import parse_url

from coordimap_otel.consts import VERSION
from coordimap_otel.utils import logger

from coordimap_otel._types import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any
    from typing import Callable
    from typing import Dict
    from typing import Optional
    from typing import Type
    from typing import Union

    from urllib3.poolmanager import PoolManager
    from urllib3.poolmanager import ProxyManager


class TransportError(Exception):
    """Raised when the collector did not accept a payload."""

    def __init__(self, message, status=None):
        # type: (str, Optional[int]) -> None
        Exception.__init__(self, message)
        self.status = status


class Transport:
    """Baseclass for all transports.

    A transport delivers an encoded crawl payload to the Coordimap collector.
    """

    def __init__(
        self, options=None  # type: Optional[Dict[str, Any]]
    ):
        # type: (...) -> None
        self.options = options

    def send(
        self, body  # type: bytes
    ):
        # type: (...) -> None
        """
        This gets invoked with the JSON encoded payload of one export call.
        Implementations raise `TransportError` if delivery failed.
        """
        raise NotImplementedError()

    def kill(self):
        # type: () -> None
        """Forcefully kills the transport."""
        pass


class HttpTransport(Transport):
    """The default HTTP transport."""

    def __init__(
        self, options  # type: Dict[str, Any]
    ):
        # type: (...) -> None
        Transport.__init__(self, options)
        self._endpoint_url = options["endpoint_url"]
        self._api_key = options["api_key"]
        self._timeout = urllib3.Timeout(total=options["timeout"])
        self._pool = self._make_pool(
            self._endpoint_url,
            http_proxy=options["http_proxy"],
            https_proxy=options["https_proxy"],
            ca_certs=options["ca_certs"],
        )

    def send(
        self, body  # type: bytes
    ):
        # type: (...) -> None
        logger.debug("Sending %s bytes to %s", len(body), self._endpoint_url)

        try:
            response = self._pool.request(
                "POST",
                self._endpoint_url,
                body=body,
                headers={
                    "Content-Type": "application/json",
                    "Api-Key": self._api_key,
                    "User-Agent": "coordimap-otel-python/%s" % VERSION,
                },
                timeout=self._timeout,
                retries=False,
            )
        except urllib3.exceptions.HTTPError as e:
            logger.error("Failed to reach the collector: %s", e)
            raise TransportError("Failed to reach the collector: %s" % (e,)) from e

        try:
            if response.status != 200:
                logger.error(
                    "Unexpected status code: %s (body: %s)",
                    response.status,
                    response.data,
                )
                raise TransportError(
                    "HTTP request failed with status code: %d" % response.status,
                    status=response.status,
                )
        finally:
            response.close()

    def _get_pool_options(self, ca_certs):
        # type: (Optional[Any]) -> Dict[str, Any]
        return {
            "num_pools": 2,
            "cert_reqs": "CERT_REQUIRED",
            "ca_certs": ca_certs or certifi.where(),
        }

    def _in_no_proxy(self, host):
        # type: (str) -> bool
        no_proxy = getproxies().get("no")
        if not no_proxy:
            return False
        for entry in no_proxy.split(","):
            entry = entry.strip()
            if entry and host.endswith(entry):
                return True
        return False

    def _make_pool(
        self,
        endpoint_url,  # type: str
        http_proxy,  # type: Optional[str]
        https_proxy,  # type: Optional[str]
        ca_certs,  # type: Optional[Any]
    ):
        # type: (...) -> Union[PoolManager, ProxyManager]
        proxy = None
        parsed_url = parse_url(endpoint_url)
        no_proxy = self._in_no_proxy(parsed_url.host or "")

        # try HTTPS first
        if parsed_url.scheme == "https" and (https_proxy != ""):
            proxy = https_proxy or (not no_proxy and getproxies().get("https"))

        # maybe fallback to HTTP proxy
        if not proxy and (http_proxy != ""):
            proxy = http_proxy or (not no_proxy and getproxies().get("http"))

        opts = self._get_pool_options(ca_certs)

        if proxy:
            return urllib3.ProxyManager(proxy, **opts)
        else:
            return urllib3.PoolManager(**opts)

    def kill(self):
        # type: () -> None
        logger.debug("Killing HTTP transport")
        self._pool.clear()


class _FunctionTransport(Transport):
    def __init__(
        self, func  # type: Callable[[bytes], None]
    ):
        # type: (...) -> None
        Transport.__init__(self)
        self._func = func

    def send(
        self, body  # type: bytes
    ):
        # type: (...) -> None
        self._func(body)


def make_transport(options):
    # type: (Dict[str, Any]) -> Transport
    ref_transport = options["transport"]

    # If no transport is given, we use the http transport class
    if ref_transport is None:
        transport_cls = HttpTransport  # type: Type[Transport]
    elif isinstance(ref_transport, Transport):
        return ref_transport
    elif isinstance(ref_transport, type) and issubclass(ref_transport, Transport):
        transport_cls = ref_transport
    elif callable(ref_transport):
        return _FunctionTransport(ref_transport)
    else:
        raise TypeError("Invalid transport %r" % (ref_transport,))

    return transport_cls(options)
