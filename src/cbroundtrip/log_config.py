import logging
import os
from pathlib import Path


def get_logformat() -> logging.Formatter:
    """A function to get a common log formatter"""
    return logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] <%(processName)s> (%(name)s): %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",  # ISO 8601
    )


def get_loglevel():
    """A function to get a common loglevel"""
    return logging.DEBUG if os.environ.get("DEBUG", False) else logging.INFO


def configure_logging(logpath: Path | None = None) -> list[logging.Handler]:
    """Configure the root logger so all subsequent loggers inherit this config

    By default, log INFO level messages. However, log DEBUG messages if DEBUG is set in
    the environment. This configuration creates a default handler to log messages to
    stderr. If given a filepath, it will also log messages to the given file.

    Logging can be done in other modules by calling:
      `logger = logging.getLogger(__name__)`
    and then logging with logger.info(), etc...

    Returns the handlers that were added so the caller can pass them to remove_handlers()
    """
    # Set log format & log level
    log_format = get_logformat()
    level = get_loglevel()

    # Get the root logger and set the global log level - handlers can only accept levels that are higher than the root
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Create the handler for stderr with the same log level
    c_handler = logging.StreamHandler()
    c_handler.setLevel(level)
    c_handler.setFormatter(log_format)
    handlers: list[logging.Handler] = [c_handler]

    # Create a file logger and required directory if we have a logpath
    if logpath:
        logpath.parent.mkdir(parents=True, exist_ok=True)
        f_handler = logging.FileHandler(logpath)
        f_handler.setLevel(level)
        f_handler.setFormatter(log_format)
        handlers.append(f_handler)

    for handler in handlers:
        root_logger.addHandler(handler)
    return handlers


def remove_handlers(handlers: list[logging.Handler]) -> None:
    """Removes the given handlers from the root logger and closes them"""
    root_logger = logging.getLogger()
    for handler in handlers:
        root_logger.removeHandler(handler)
        handler.close()
