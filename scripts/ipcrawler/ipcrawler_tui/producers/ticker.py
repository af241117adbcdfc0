"""Periodic tick source for spinner animation."""

from __future__ import annotations

from ipcrawler_tui.producers import Producer


class Ticker(Producer):
    interval = 0.1

    def poll(self) -> None:
        self.bridge.tick()
