import json
import socket
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread

import pytest
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.trace import Link, SpanContext

from coordimap_otel.utils import logger

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any, Dict, List, Optional


END_TIME = 1_700_000_000_000_000_000


def make_link(attributes=None):
    context = SpanContext(
        trace_id=int("1234567890abcdef1234567890abcdef", 16),
        span_id=int("1234567890abcdef", 16),
        is_remote=True,
    )
    return Link(context, attributes=attributes)


@pytest.fixture
def make_span():
    def inner(
        name="span",  # type: str
        attributes=None,  # type: Optional[Dict[str, Any]]
        resource_attributes=None,  # type: Optional[Dict[str, Any]]
        links=(),
        end_time=END_TIME,  # type: Optional[int]
    ):
        # type: (...) -> ReadableSpan
        return ReadableSpan(
            name=name,
            resource=Resource(resource_attributes or {}),
            attributes=attributes or {},
            links=tuple(make_link(link) for link in links),
            start_time=(end_time - 1_000) if end_time else None,
            end_time=end_time,
        )

    return inner


@pytest.fixture
def capture_payloads():
    """A transport function that records every decoded payload."""
    payloads = []  # type: List[Dict[str, Any]]

    def transport(body):
        # type: (bytes) -> None
        payloads.append(json.loads(body.decode("utf-8")))

    transport.payloads = payloads
    return transport


@pytest.fixture
def exporter_options(capture_payloads):
    return {
        "api_key": "test-api-key",
        "transport": capture_payloads,
    }


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


class CapturingRequestHandler(BaseHTTPRequestHandler):
    def do_POST(self):  # noqa: N802
        # If the path ends with /status/<number>, return status code <number>.
        # Otherwise return a 200 response.
        code = 200
        if "/status/" in self.path:
            code = int(self.path[-3:])

        length = int(self.headers.get("Content-Length", 0))
        self.server.captured.append(
            {
                "path": self.path,
                "headers": dict(self.headers),
                "body": self.rfile.read(length),
            }
        )

        self.send_response(code)
        self.end_headers()
        self.wfile.write(b"{}")

    def log_message(self, format, *args):
        pass


def get_free_port():
    s = socket.socket(socket.AF_INET, type=socket.SOCK_STREAM)
    s.bind(("localhost", 0))
    _, port = s.getsockname()
    s.close()
    return port


@pytest.fixture
def capturing_server():
    port = get_free_port()
    server = HTTPServer(("localhost", port), CapturingRequestHandler)
    server.captured = []
    server.url = "http://localhost:%s" % port

    thread = Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()

    yield server

    server.shutdown()
    server.server_close()
