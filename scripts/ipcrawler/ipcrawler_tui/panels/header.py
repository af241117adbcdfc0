"""Header line, tab bar, help panel and the too-small notice."""

from __future__ import annotations

from rich.align import Align
from rich.table import Table
from rich.text import Text

from ipcrawler_tui.formatting import sanitize_text, truncate
from ipcrawler_tui.panels import frame_panel
from ipcrawler_tui.profiles import ThemeConfig

TITLE = "IPCrawler"

HELP_ROWS = (
    ("quit", "Quit and cancel running scans"),
    ("help", "Toggle this help"),
    ("back", "Close help"),
    ("next_panel", "Focus next panel"),
    ("prev_panel", "Focus previous panel"),
    ("focus_1", "Focus workflows"),
    ("focus_2", "Focus tools"),
    ("focus_3", "Focus logs"),
    ("focus_4", "Focus status"),
)

NAVIGATION_ROWS = (
    ("↑/k ↓/j", "Move or scroll one line"),
    ("PgUp PgDn", "Scroll one page"),
    ("Home/g End/G", "Jump to top / bottom (End resumes log follow)"),
)


def render_header(
    theme: ThemeConfig,
    target: str,
    workflow_counts: dict[str, int],
    layout_mode: str,
) -> Text:
    line = Text(f" {TITLE}", style=theme.style("header"), no_wrap=True, overflow="ellipsis")
    target = truncate(sanitize_text(target), 40)
    if target:
        line.append(f"  target: {target}", style="bold")
    line.append("  │ ", style=theme.style("muted"))
    for status in ("running", "completed", "failed", "pending"):
        line.append(f"{theme.glyph(status)} {workflow_counts.get(status, 0)} {status}  ", style=theme.style(status))
    line.append(f"│ {layout_mode}  ", style=theme.style("muted"))
    line.append("?: help  q: quit", style=theme.style("muted"))
    return line


def render_tab_bar(theme: ThemeConfig, names: list[str], active: int) -> Text:
    line = Text(no_wrap=True, overflow="ellipsis")
    for index, name in enumerate(names):
        if index == active:
            line.append(f"[{name}]", style=theme.style("focus") or "reverse")
        else:
            line.append(f" {name} ", style=theme.style("muted"))
        line.append(" ")
    line.append(" Tab: switch • ?: help • q: quit", style=theme.style("muted"))
    return line


def render_help(theme: ThemeConfig, keymap: dict[str, list[str]]):
    table = Table(box=None, show_header=False, expand=True, pad_edge=False)
    table.add_column("keys", style=theme.style("title"), no_wrap=True, overflow="ellipsis")
    table.add_column("action", overflow="ellipsis", no_wrap=True)
    for action, description in HELP_ROWS:
        keys = keymap.get(action) or []
        if keys:
            table.add_row(" ".join(keys), description)
    for keys, description in NAVIGATION_ROWS:
        table.add_row(keys, description)
    return frame_panel(table, "Help", theme, focused=True, subtitle="? or Esc to close")


def render_too_small(theme: ThemeConfig, width: int, height: int, minimum: tuple[int, int]) -> Align:
    message = Text(justify="center")
    message.append(f"Terminal too small: {width}x{height}\n", style=theme.style("error"))
    message.append(f"Minimum required: {minimum[0]}x{minimum[1]}", style=theme.style("muted"))
    return Align(message, align="center", vertical="middle")
