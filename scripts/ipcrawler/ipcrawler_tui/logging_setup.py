"""Logging setup for the dashboard process.

The dashboard owns the terminal, so records go to a log file (if any) and
warnings are mirrored into the on-screen log viewport.
"""

from __future__ import annotations

import logging

from ipcrawler_tui.bridge import EventBridge

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER = "ipcrawler_tui"


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    handlers: list[logging.Handler] = []
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


class BridgeLogHandler(logging.Handler):
    """Forward records into the dashboard log viewport.

    Records from the bridge module itself are skipped: an overflow warning
    forwarded into a full bridge would only overflow it again.
    """

    def __init__(self, bridge: EventBridge, level: int = logging.WARNING):
        super().__init__(level)
        self.bridge = bridge

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == EventBridge.__module__:
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
            if record.exc_info and record.exc_info[1] is not None:
                message = f"{message}: {record.exc_info[1]!r}"
            self.bridge.log_appended(record.levelname, message, category="ui", logger=record.name)
        except Exception:
            self.handleError(record)


def attach_bridge_handler(bridge: EventBridge, level: int = logging.WARNING) -> BridgeLogHandler:
    handler = BridgeLogHandler(bridge, level)
    logging.getLogger(PACKAGE_LOGGER).addHandler(handler)
    return handler


def detach_bridge_handler(handler: BridgeLogHandler) -> None:
    logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)
