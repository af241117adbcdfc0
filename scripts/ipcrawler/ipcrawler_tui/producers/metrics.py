"""Host metrics sampler.

CPU, memory, disk and load figures come from ``psutil``. A figure the host
cannot report is sent as None.
"""

from __future__ import annotations

import logging

import psutil

from ipcrawler_tui.producers import Producer

logger = logging.getLogger(__name__)


def read_cpu_percent() -> float | None:
    # non-blocking: compares against the previous call
    try:
        return round(psutil.cpu_percent(interval=None), 1)
    except (OSError, RuntimeError):
        return None


def read_memory_percent() -> float | None:
    try:
        return round(psutil.virtual_memory().percent, 1)
    except (OSError, RuntimeError):
        return None


def read_disk_percent(path: str = "/") -> float | None:
    try:
        return round(psutil.disk_usage(path).percent, 1)
    except OSError:
        return None


def read_loadavg() -> tuple[float, float, float] | None:
    try:
        one, five, fifteen = psutil.getloadavg()
    except (OSError, AttributeError):
        return None
    return (round(one, 2), round(five, 2), round(fifteen, 2))


class MetricsSampler(Producer):
    interval = 2.0

    def __init__(self, bridge, interval: float | None = None, disk_path: str = "/"):
        super().__init__(bridge, interval)
        self.disk_path = disk_path
        self._cpu_primed = False

    def sample(self) -> dict:
        cpu = read_cpu_percent()
        if not self._cpu_primed:
            # the first reading has no baseline
            self._cpu_primed = True
            cpu = None
        return {
            "cpu_percent": cpu,
            "memory_percent": read_memory_percent(),
            "disk_percent": read_disk_percent(self.disk_path),
            "load": read_loadavg(),
        }

    def poll(self) -> None:
        values = self.sample()
        if all(value is None for value in values.values()):
            logger.debug("no host metrics available")
            return
        self.bridge.metrics_updated(**values)
