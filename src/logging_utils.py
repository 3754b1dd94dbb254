"""
Logging for ALF Coach.

Every module logs under the "alfcoach" logger hierarchy:

    from logging_utils import get_logger

    logger = get_logger(__name__)      # -> "alfcoach.workflow"
    logger.info("Stage BIG_IDEA complete; advancing to ESSENTIAL_QUESTION")

Hosts that juggle several design sessions tag their lines with a
LoggerAdapter bound to a session id:

    log = LoggerAdapter(get_logger("session"), session_id="4f2a9c")
    log("Saved to sessions/water.json")   # "[4f2a9c] Saved to sessions/water.json"
"""

import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "alfcoach"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def configure_logging(
    level: int = logging.INFO,
    stream: Optional[TextIO] = None,
    log_file: Optional[str] = None,
    format_str: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> None:
    """
    Attach handlers to the "alfcoach" logger. Only the first call has any effect.

    Args:
        level: Level for the logger and its handlers.
        stream: Console stream (default: sys.stderr).
        log_file: Optional file that receives the same records.
        format_str: Record format.
        date_format: Timestamp format.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    formatter = logging.Formatter(format_str, date_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, nested under "alfcoach".

    Names that already carry the prefix are used as given. Handlers are
    attached by configure_logging(), which the entry point calls.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_verbose(verbose: bool) -> None:
    """DEBUG for the whole hierarchy when verbose, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)


class LoggerAdapter:
    """
    Print-like wrapper over a logger, optionally tagged with a session id.

    Calling the adapter logs at INFO, and only when verbose. Warnings and
    errors are always logged.
    """

    def __init__(
        self,
        logger: logging.Logger,
        verbose: bool = True,
        session_id: Optional[str] = None,
    ):
        self.logger = logger
        self.verbose = verbose
        self.session_id = session_id

    def _tag(self, message: str) -> str:
        return f"[{self.session_id}] {message}" if self.session_id else message

    def __call__(self, message: str) -> None:
        if self.verbose:
            self.logger.info(self._tag(message))

    def debug(self, message: str) -> None:
        if self.verbose:
            self.logger.debug(self._tag(message))

    def info(self, message: str) -> None:
        self.logger.info(self._tag(message))

    def warning(self, message: str) -> None:
        self.logger.warning(self._tag(message))

    def error(self, message: str) -> None:
        self.logger.error(self._tag(message))
