"""Logger factory for nest_network.

Every module logs through a child of the `nest_network` logger. Unless the
embedding application attached its own handler first, the library logger
writes to stderr at `NEST_NETWORK_LOG_LEVEL` and does not propagate.
"""

import logging
import sys

from nest_network.config import LOG_LEVEL

LIBRARY_LOGGER_NAME = "nest_network"
LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"


def get_logger(module_name: str) -> logging.Logger:
    """Get the logger of a nest_network module.

    Args:
        module_name: Dotted module path below the package, e.g. `http.client`.

    Returns:
        logging.Logger: The `nest_network.<module_name>` logger.
    """
    library_logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    if not library_logger.handlers:
        attach_stderr_handler(library_logger=library_logger, level=LOG_LEVEL)
    return library_logger.getChild(module_name)


def attach_stderr_handler(library_logger: logging.Logger, level: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    library_logger.addHandler(handler)
    library_logger.setLevel(level)
    library_logger.propagate = False
