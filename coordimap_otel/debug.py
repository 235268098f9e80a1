import sys
import logging

from coordimap_otel.utils import logger


def init_debug_support(debug):
    # type: (bool) -> None
    if debug and not logger.handlers:
        configure_logger()


def configure_logger():
    # type: () -> None
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter(" [coordimap] %(levelname)s: %(message)s"))
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG)
