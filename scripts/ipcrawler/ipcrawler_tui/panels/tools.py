"""Tool execution table."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from ipcrawler_tui.formatting import format_duration
from ipcrawler_tui.keys import navigation_action
from ipcrawler_tui.models import ToolRecord
from ipcrawler_tui.panels import Widget, frame_panel, muted_text

COLUMNS = (
    ("Tool", 3),
    ("Workflow", 3),
    ("Status", 2),
    ("Time", 2),
    ("Output", 5),
)


class ToolTable(Widget):
    title = "Tools"

    def __init__(self, config):
        super().__init__(config)
        self.recent_limit = config.tool_table.recent_limit
        self.show_args = config.tool_table.show_args
        self.total = 0
        # rows scrolled back from the newest record, 0 follows new rows
        self.scroll_back = 0

    @property
    def rows(self) -> int:
        # one line for the column header
        return max(1, self.inner_height - 1)

    def _max_scroll(self) -> int:
        return max(0, self.total - self.rows)

    def on_resize(self) -> None:
        self.scroll_back = min(self.scroll_back, self._max_scroll())

    def ingest(self, event, store) -> None:
        previous = self.total
        self.total = len(store.recent_tools(self.recent_limit))
        if self.scroll_back and self.total > previous:
            # keep the rows the user is reading in place
            self.scroll_back = min(self.scroll_back + self.total - previous, self._max_scroll())
        self.dirty = True

    def handle_key(self, key: str) -> Widget:
        action = navigation_action(key)
        if action is None:
            return self
        moves = {
            "up": self.scroll_back + 1,
            "down": self.scroll_back - 1,
            "page_up": self.scroll_back + self.rows,
            "page_down": self.scroll_back - self.rows,
            "top": self._max_scroll(),
            "bottom": 0,
        }
        target = min(max(0, moves[action]), self._max_scroll())
        if target != self.scroll_back:
            self.scroll_back = target
            self.dirty = True
        return self

    def _cells(self, record: ToolRecord) -> list[Text]:
        theme = self.theme
        status = Text(theme.glyph(record.status) + " ", style=theme.style(record.status))
        status.append(record.status)
        output = record.error or record.output
        cells = [
            Text(record.name, style="bold"),
            Text(record.workflow_id or "-"),
            status,
            Text(format_duration(record.duration), style=theme.style("muted")),
            Text(output or "", style=theme.style("failed") if record.error else ""),
        ]
        if self.show_args:
            cells.append(Text(" ".join(record.args), style=theme.style("muted")))
        return cells

    def render(self, store, focused: bool = False):
        records = store.recent_tools(self.recent_limit)
        end = len(records) - self.scroll_back
        visible = records[max(0, end - self.rows):max(0, end)]
        title = f"{self.title} ({len(records)}/{len(store.tools)})"
        subtitle = "scrolled" if self.scroll_back else None

        if not records:
            return frame_panel(muted_text("No tool executions yet", self.theme), title, self.theme, focused)

        table = Table(
            box=None,
            expand=True,
            show_edge=False,
            pad_edge=False,
            header_style=self.theme.style("title"),
        )
        columns = list(COLUMNS)
        if self.show_args:
            columns.append(("Args", 3))
        for header, ratio in columns:
            table.add_column(header, ratio=ratio, no_wrap=True, overflow="ellipsis")
        for record in visible:
            table.add_row(*self._cells(record))
        return frame_panel(table, title, self.theme, focused, subtitle=subtitle)
