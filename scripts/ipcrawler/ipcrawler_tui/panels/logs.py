"""Scrolling log viewport.

Entries are wrapped once when they arrive (and again only when the inner
width changes). The viewport follows new output until the user scrolls up,
and resumes following only after an explicit jump to the bottom.
"""

from __future__ import annotations

from collections import deque

from rich.text import Text

from ipcrawler_tui.events import LogAppended
from ipcrawler_tui.formatting import format_clock, format_fields
from ipcrawler_tui.keys import navigation_action
from ipcrawler_tui.models import LogEntry
from ipcrawler_tui.panels import Widget, frame_panel, muted_text
from ipcrawler_tui.render import make_console

LEVEL_STYLES = {
    "DEBUG": "debug",
    "INFO": "running",
    "WARNING": "warning",
    "ERROR": "error",
    "CRITICAL": "error",
}


class LogViewport(Widget):
    title = "Logs"

    def __init__(self, config):
        super().__init__(config)
        settings = config.log_viewport
        self.show_timestamps = settings.show_timestamps
        self.show_levels = settings.show_levels
        self.entries: deque[LogEntry] = deque(maxlen=settings.max_entries)
        self.wrapped: deque[list[Text]] = deque(maxlen=settings.max_entries)
        self.line_count = 0
        self.top = 0
        self.follow = settings.auto_scroll
        self._console = make_console()

    @property
    def rows(self) -> int:
        return self.inner_height

    def _max_top(self) -> int:
        return max(0, self.line_count - self.rows)

    def format_entry(self, entry: LogEntry) -> Text:
        theme = self.theme
        line = Text()
        if self.show_timestamps:
            line.append(f"[{format_clock(entry.timestamp)}] ", style=theme.style("muted"))
        if self.show_levels:
            line.append(f"{entry.level}: ", style=theme.style(LEVEL_STYLES.get(entry.level, "muted")))
        if entry.category:
            line.append(f"{entry.category}: ", style=theme.style("muted"))
        line.append(entry.message)
        extra = format_fields(entry.fields)
        if extra:
            line.append(f" {extra}", style=theme.style("muted"))
        return line

    def _wrap(self, entry: LogEntry) -> list[Text]:
        lines = self.format_entry(entry).wrap(self._console, self.inner_width, overflow="fold")
        return list(lines) or [Text("")]

    def _rewrap(self) -> None:
        self.wrapped.clear()
        for entry in self.entries:
            self.wrapped.append(self._wrap(entry))
        self.line_count = sum(len(lines) for lines in self.wrapped)
        self.top = min(self.top, self._max_top())

    def on_resize(self) -> None:
        self._rewrap()

    def append(self, entry: LogEntry) -> None:
        evicted = 0
        if len(self.entries) == self.entries.maxlen:
            evicted = len(self.wrapped[0]) if self.wrapped else 0
        self.entries.append(entry)
        if self.width:
            self.wrapped.append(self._wrap(entry))
            self.line_count += len(self.wrapped[-1]) - evicted
        if not self.follow:
            # evicted lines shift the buffer up, keep the same lines on screen
            self.top = max(0, self.top - evicted)
        self.dirty = True

    def ingest(self, event, store) -> None:
        if isinstance(event, LogAppended) and store.logs:
            self.append(store.logs[-1])

    def handle_key(self, key: str) -> Widget:
        action = navigation_action(key)
        if action is None:
            return self
        if action == "bottom":
            self.follow = True
            self.dirty = True
            return self

        if self.follow:
            self.top = self._max_top()
        page = max(1, self.rows - 1)
        moves = {
            "up": self.top - 1,
            "down": self.top + 1,
            "page_up": self.top - page,
            "page_down": self.top + page,
            "top": 0,
        }
        self.top = min(max(0, moves[action]), self._max_top())
        if action in ("up", "page_up", "top"):
            self.follow = False
        self.dirty = True
        return self

    def visible_lines(self) -> list[Text]:
        top = self._max_top() if self.follow else min(self.top, self._max_top())
        lines: list[Text] = []
        position = 0
        for chunk in self.wrapped:
            if position + len(chunk) <= top:
                position += len(chunk)
                continue
            for line in chunk:
                if position >= top:
                    lines.append(line)
                    if len(lines) >= self.rows:
                        return lines
                position += 1
        return lines

    def render(self, store, focused: bool = False):
        title = f"{self.title} ({len(self.entries)})"
        subtitle = None if self.follow else "paused · End to follow"
        if not self.entries:
            return frame_panel(muted_text("Waiting for log output...", self.theme), title, self.theme, focused)
        body = Text("\n").join(self.visible_lines())
        body.no_wrap = True
        body.overflow = "crop"
        return frame_panel(body, title, self.theme, focused, subtitle=subtitle)
