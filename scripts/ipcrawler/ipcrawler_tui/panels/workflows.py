"""Selectable workflow list."""

from __future__ import annotations

from rich.console import Group
from rich.text import Text

from ipcrawler_tui.formatting import format_duration, workflow_label
from ipcrawler_tui.keys import navigation_action
from ipcrawler_tui.models import WorkflowRecord
from ipcrawler_tui.panels import Widget, frame_panel, muted_text

def _detail(record: WorkflowRecord) -> str:
    if record.duration is not None:
        return format_duration(record.duration)
    if record.status == "running" and record.progress is not None:
        return f"{int(record.progress * 100)}%"
    return ""


class WorkflowList(Widget):
    title = "Workflows"

    def __init__(self, config):
        super().__init__(config)
        self.max_items = config.workflow_list.max_items
        self.item_height = config.workflow_list.item_height
        self.ids: list[str] = []
        self.selected_id: str | None = None
        self.offset = 0

    @property
    def rows(self) -> int:
        return max(1, self.inner_height // self.item_height)

    @property
    def selected_index(self) -> int:
        if self.selected_id is None or self.selected_id not in self.ids:
            return 0
        return self.ids.index(self.selected_id)

    def on_resize(self) -> None:
        self._scroll_to_selection()

    def ingest(self, event, store) -> None:
        self.ids = [record.id for record in store.workflow_view(self.max_items)]
        if self.selected_id not in self.ids:
            # first workflow, or the selection fell out of the visible window
            self.selected_id = self.ids[0] if self.ids else None
        self._scroll_to_selection()
        self.dirty = True

    def handle_key(self, key: str) -> Widget:
        action = navigation_action(key)
        if action is None or not self.ids:
            return self
        index = self.selected_index
        last = len(self.ids) - 1
        moves = {
            "up": index - 1,
            "down": index + 1,
            "page_up": index - self.rows,
            "page_down": index + self.rows,
            "top": 0,
            "bottom": last,
        }
        target = min(max(0, moves[action]), last)
        if self.ids[target] != self.selected_id:
            self.selected_id = self.ids[target]
            self._scroll_to_selection()
            self.dirty = True
        return self

    def _scroll_to_selection(self) -> None:
        index = self.selected_index
        rows = self.rows
        if index < self.offset:
            self.offset = index
        elif index >= self.offset + rows:
            self.offset = index - rows + 1
        self.offset = max(0, min(self.offset, max(0, len(self.ids) - rows)))

    def _row(self, record: WorkflowRecord, selected: bool) -> Text:
        theme = self.theme
        width = self.inner_width
        cursor = theme.cursor if selected else " " * len(theme.cursor)
        detail = _detail(record)

        line = Text(no_wrap=True, overflow="ellipsis")
        line.append(cursor, style=theme.style("focus"))
        line.append(" ")
        line.append(theme.glyph(record.status), style=theme.style(record.status))
        line.append(" ")
        detail = f" {detail}" if detail else ""
        label_width = max(1, width - line.cell_len - len(detail))
        label = Text(workflow_label(record.id, record.description), style="bold" if selected else "")
        label.truncate(label_width, overflow="ellipsis", pad=True)
        line.append_text(label)
        line.append(detail, style=theme.style("muted"))
        if self.item_height == 1:
            return line

        note = record.error or record.status
        second = Text(" " * (len(cursor) + 3), no_wrap=True, overflow="ellipsis")
        second.append(note, style=theme.style("failed" if record.error else "muted"))
        second.truncate(width, overflow="ellipsis")
        return Text("\n").join([line, second])

    def render(self, store, focused: bool = False):
        records = {record.id: record for record in store.workflow_view(self.max_items)}
        visible = [records[i] for i in self.ids[self.offset:self.offset + self.rows] if i in records]
        total = len(store.workflows)
        title = f"{self.title} ({total})"

        if not visible:
            body = muted_text("No workflows yet", self.theme)
        else:
            body = Group(*[self._row(record, record.id == self.selected_id) for record in visible])
        return frame_panel(body, title, self.theme, focused)
