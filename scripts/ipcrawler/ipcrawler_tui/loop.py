"""Single-consumer runtime loop and the terminal frame writer."""

from __future__ import annotations

import logging
from typing import Callable

from rich.console import Console
from rich.live import Live
from rich.text import Text

from ipcrawler_tui.bridge import EventBridge
from ipcrawler_tui.dashboard import Dashboard

logger = logging.getLogger(__name__)


class DashboardLoop:
    """Take one event, apply it, render, write; repeat.

    Only this loop touches the dashboard. A frame is written after every
    applied event unless it is identical to the previous one.
    """

    def __init__(self, dashboard: Dashboard, bridge: EventBridge, write: Callable[[str], None]):
        self.dashboard = dashboard
        self.bridge = bridge
        self.write = write
        self.frames = 0
        self.events = 0
        self._last_frame: str | None = None

    def step(self, timeout: float | None = None) -> bool:
        """Process at most one event. Returns False once the loop should stop."""
        event = self.bridge.get(timeout)
        if event is None:
            return not self.bridge.closed

        self.dashboard.update(event)
        self.events += 1
        self.dashboard.set_dropped(self.bridge.dropped)
        frame = self.dashboard.render()
        if frame != self._last_frame:
            self.write(frame)
            self.frames += 1
            self._last_frame = frame

        if self.dashboard.quitting:
            self.bridge.close()
            return False
        return True

    def run(self, timeout: float = 0.5) -> None:
        logger.debug("dashboard loop started")
        while self.step(timeout):
            pass
        logger.debug("dashboard loop stopped after %s events, %s frames", self.events, self.frames)


class LiveWriter:
    """Writes frames to the alternate screen through one rich ``Live``."""

    def __init__(self, console: Console):
        self.console = console
        self.live = Live(
            console=console,
            screen=True,
            auto_refresh=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )

    def __enter__(self) -> "LiveWriter":
        self.live.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.live.stop()

    def __call__(self, frame: str) -> None:
        self.live.update(Text.from_ansi(frame, no_wrap=True, overflow="crop"), refresh=True)
