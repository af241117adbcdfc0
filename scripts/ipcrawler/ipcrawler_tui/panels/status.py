"""Aggregate status and system metrics readout."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from ipcrawler_tui.events import Tick
from ipcrawler_tui.formatting import STATUSES, format_percent
from ipcrawler_tui.panels import Widget, frame_panel


class StatusReadout(Widget):
    """Counts are recomputed from the store on every render."""

    title = "Status"
    cacheable = False

    def __init__(self, config):
        super().__init__(config)
        self.frame = 0
        self.dropped = 0

    def ingest(self, event, store) -> None:
        if isinstance(event, Tick):
            self.frame = (self.frame + 1) % len(self.theme.spinner)
        self.dirty = True

    def spinner(self, store) -> Text:
        theme = self.theme
        if store.any_running():
            return Text(theme.spinner[self.frame % len(theme.spinner)], style=theme.style("running"))
        return Text(theme.glyph("completed") if store.workflows else theme.glyph("pending"), style=theme.style("muted"))

    def _counts(self, label: str, counts: dict[str, int]) -> Text:
        theme = self.theme
        line = Text(f"{label} ", style=theme.style("title"))
        for status in STATUSES:
            line.append(f"{theme.glyph(status)}{counts.get(status, 0)} ", style=theme.style(status))
        return line

    def _metrics_line(self, store) -> Text | None:
        metrics = store.metrics
        if metrics is None:
            return None
        parts = [
            f"CPU {format_percent(metrics.cpu_percent)}",
            f"MEM {format_percent(metrics.memory_percent)}",
            f"DISK {format_percent(metrics.disk_percent)}",
        ]
        return Text(" ".join(parts), style=self.theme.style("muted"))

    def render_compact(self, store) -> Text:
        line = self.spinner(store)
        line.append(" ")
        line.append_text(self._counts("Workflows", store.workflow_counts()))
        line.append("│ ", style=self.theme.style("muted"))
        line.append_text(self._counts("Tools", store.tool_counts()))
        metrics = self._metrics_line(store)
        if metrics is not None:
            line.append("│ ", style=self.theme.style("muted"))
            line.append_text(metrics)
        if self.dropped:
            line.append(f" │ dropped {self.dropped}", style=self.theme.style("warning"))
        line.no_wrap = True
        line.overflow = "ellipsis"
        return line

    def _table(self, store) -> Table:
        theme = self.theme
        table = Table(box=None, show_header=False, expand=True, pad_edge=False)
        table.add_column("key", style=theme.style("title"), no_wrap=True)
        table.add_column("value", justify="right", no_wrap=True, overflow="ellipsis")

        state = self.spinner(store)
        state.append(" scanning" if store.any_running() else " idle")
        table.add_row("State", state)

        for label, counts in (("Workflows", store.workflow_counts()), ("Tools", store.tool_counts())):
            table.add_row(Text(label, style="underline"), "")
            for status in STATUSES:
                table.add_row(
                    Text(f" {theme.glyph(status)} {status}", style=theme.style(status)),
                    str(counts.get(status, 0)),
                )

        metrics = store.metrics
        if metrics is not None:
            table.add_row(Text("System", style="underline"), "")
            table.add_row(" CPU", format_percent(metrics.cpu_percent))
            table.add_row(" Memory", format_percent(metrics.memory_percent))
            table.add_row(" Disk", format_percent(metrics.disk_percent))
            if metrics.load:
                table.add_row(" Load", " ".join(f"{value:.2f}" for value in metrics.load))

        table.add_row("Logs", str(len(store.logs)))
        if self.dropped:
            table.add_row(Text("Dropped", style=theme.style("warning")), str(self.dropped))
        return table

    def render(self, store, focused: bool = False):
        if self.inner_height <= 1:
            return frame_panel(self.render_compact(store), self.title, self.theme, focused)
        return frame_panel(self._table(store), self.title, self.theme, focused)
