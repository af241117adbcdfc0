"""Keyboard and terminal-size watcher.

Puts the controlling TTY into non-canonical, no-echo mode (VMIN=0/VTIME=0)
rather than raw mode so rich's alternate screen keeps working over SSH,
then polls stdin with ``select`` and the console size on every pass.
"""

from __future__ import annotations

import logging
import os
import select
import shutil
import sys
from typing import Callable

from ipcrawler_tui.keys import decode_keys
from ipcrawler_tui.producers import Producer

try:
    import termios
except ImportError:  # non-POSIX hosts: size events only, no keyboard
    termios = None

logger = logging.getLogger(__name__)


def terminal_size() -> tuple[int, int]:
    size = shutil.get_terminal_size()
    return size.columns, size.lines


class TerminalWatcher(Producer):
    interval = 0.05

    def __init__(
        self,
        bridge,
        fd: int | None = None,
        size: Callable[[], tuple[int, int]] = terminal_size,
        interval: float | None = None,
    ):
        super().__init__(bridge, interval)
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.size = size
        self.last_size: tuple[int, int] | None = None
        self._saved_attrs = None

    def check_size(self) -> None:
        size = self.size()
        if size != self.last_size:
            self.last_size = size
            self.bridge.resize(*size)

    def read_input(self) -> str | None:
        """Return pending input, None when nothing is waiting, "" on EOF."""
        ready, _, _ = select.select([self.fd], [], [], 0)
        if not ready:
            return None
        try:
            return os.read(self.fd, 1024).decode("utf-8", errors="ignore")
        except OSError:
            return ""

    def poll(self) -> None:
        self.check_size()
        data = self.read_input()
        if data is None:
            return
        if data == "":
            logger.info("input stream closed")
            self.bridge.request_quit("input closed")
            self.stop()
            return
        for key in decode_keys(data):
            self.bridge.key(key)

    def enter_input_mode(self) -> None:
        if termios is None or not os.isatty(self.fd):
            return
        try:
            self._saved_attrs = termios.tcgetattr(self.fd)
            attrs = termios.tcgetattr(self.fd)
            attrs[3] &= ~(termios.ICANON | termios.ECHO)
            attrs[6][termios.VMIN] = 0
            attrs[6][termios.VTIME] = 0
            termios.tcsetattr(self.fd, termios.TCSADRAIN, attrs)
        except termios.error:
            logger.warning("could not switch terminal to key input mode", exc_info=True)
            self._saved_attrs = None

    def restore_input_mode(self) -> None:
        if self._saved_attrs is None:
            return
        termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved_attrs)
        self._saved_attrs = None

    def run(self) -> None:
        self.enter_input_mode()
        try:
            super().run()
        finally:
            self.restore_input_mode()
