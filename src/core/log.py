"""Logging setup and the injectable silent logger."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")


def silent_logger(name: str = "silent") -> logging.Logger:
    """Return a detached logger that drops every record.

    Not registered with the logging manager, so silencing one engine never
    affects loggers used elsewhere in the process.
    """
    logger = logging.Logger(name, level=logging.CRITICAL + 1)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    logger.disabled = True
    return logger


def resolve_logger(
    logger: logging.Logger | None, default_name: str, *, silent: bool = False,
) -> logging.Logger:
    if silent:
        return silent_logger(default_name)
    return logger if logger is not None else logging.getLogger(default_name)
