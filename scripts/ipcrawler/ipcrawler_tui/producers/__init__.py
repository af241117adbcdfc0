"""Background event producers.

Producers run in their own threads and talk to the dashboard only through
an ``EventBridge``.
"""

from __future__ import annotations

import logging
import threading

from ipcrawler_tui.bridge import EventBridge

logger = logging.getLogger(__name__)


class Producer(threading.Thread):
    interval = 1.0

    def __init__(self, bridge: EventBridge, interval: float | None = None):
        super().__init__(name=self.__class__.__name__, daemon=True)
        self.bridge = bridge
        self.stop_event = threading.Event()
        if interval is not None:
            self.interval = max(0.0, float(interval))

    def stop(self) -> None:
        self.stop_event.set()

    @property
    def running(self) -> bool:
        return not self.stop_event.is_set() and not self.bridge.closed

    def run(self) -> None:
        while self.running:
            try:
                self.poll()
            except Exception:
                logger.exception("%s poll failed", self.name)
            self.stop_event.wait(self.interval)

    def poll(self) -> None:
        raise NotImplementedError
