import logging
import os
from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING  # noqa: F401
from typing import Optional

# Environment variable holding the log level, e.g. 'DEBUG'.
ENVVAR_LUAUGEN_LOGGING = 'LUAUGEN_LOGGING'

formatter = logging.Formatter(
    '%(asctime)s %(levelname)s %(module)s:%(lineno)d: %(message)s'
)

# NOTE: `StreamHandler` writes to stderr, which is the only place a protoc
# plugin may log to; stdout carries the `CodeGeneratorResponse`.
stream_handler = logging.StreamHandler()
stream_handler.setLevel(logging.DEBUG)
stream_handler.setFormatter(formatter)

logger = logging.getLogger('luaugen')
logger.addHandler(stream_handler)

# Our handler is the only one that prints; don't also hand records to any
# handler on the root logger.
logger.propagate = False

# Child logger for tests; always at DEBUG, regardless of `LUAUGEN_LOGGING`.
test_logger = logger.getChild('test')
test_logger.setLevel(logging.DEBUG)


def set_log_level(log_level: int) -> None:
    """ Set the log level of the luaugen logger, and so of all its children.
    """
    global logger
    logger.setLevel(log_level)


def get_logger(name: Optional[str] = None, parent=None) -> logging.Logger:
    """ Get a named logger.

    If no name is given, return the luaugen logger, else return a child logger
    of `parent`, which defaults to the luaugen logger.
    """
    global logger
    parent = parent or logger
    return logger if name is None else parent.getChild(name)


def get_test_logger(name: Optional[str] = None) -> logging.Logger:
    global test_logger
    return get_logger(name, parent=test_logger)


set_log_level(
    getattr(
        logging,
        os.environ.get(ENVVAR_LUAUGEN_LOGGING, '').upper(), logging.INFO
    )
)
